"""MediaService — binds stored uploads to users and messages.

Flows:
    set_profile_image: validate -> confirm user -> (per-user lock) store new
        file -> swap reference on the user -> delete the superseded file
    create_message: validate -> store file -> insert message
    list_messages: newest first, joined with the owner's name and image

Nothing is written to disk until validation passes and, for profile images,
the owning user is known to exist. An old profile image is removed only after
the new reference is committed.
"""
import logging
from typing import Iterable, List, Optional

from ..config import AppSettings, get_config
from ..errors import NotFoundError, StorageError, StoreError
from ..records.schemas import Message, MessageView
from ..records.service import RecordStore
from .locks import KeyedLock
from .schemas import ALLOWED_IMAGE_TYPES, MAX_FILE_SIZE_BYTES, UploadedImage
from .store import MediaStore
from .validator import validate_upload

logger = logging.getLogger(__name__)


class MediaService:
    """Upload validation, storage and reference association."""

    def __init__(
        self,
        records: RecordStore,
        store: MediaStore,
        max_file_size_bytes: int = MAX_FILE_SIZE_BYTES,
        allowed_types: Iterable[str] = ALLOWED_IMAGE_TYPES,
    ) -> None:
        self._records = records
        self._store = store
        self._max_file_size_bytes = max_file_size_bytes
        self._allowed_types = tuple(allowed_types)
        self._user_locks = KeyedLock()

    @classmethod
    def from_config(cls, config: AppSettings, records: Optional[RecordStore] = None) -> "MediaService":
        storage = config.storage
        return cls(
            records=records or RecordStore.get_instance(config.database.path),
            store=MediaStore(storage.upload_dir, storage.url_prefix),
            max_file_size_bytes=storage.max_file_size_bytes,
            allowed_types=storage.allowed_extensions,
        )

    @property
    def records(self) -> RecordStore:
        return self._records

    @property
    def store(self) -> MediaStore:
        return self._store

    @property
    def max_file_size_bytes(self) -> int:
        return self._max_file_size_bytes

    @property
    def read_limit(self) -> int:
        """Bytes to read from an upload: one past the ceiling, so oversize still fails."""
        return self._max_file_size_bytes + 1

    def validate(self, upload: UploadedImage) -> None:
        validate_upload(
            upload.filename,
            upload.media_type,
            upload.size_bytes,
            max_size_bytes=self._max_file_size_bytes,
            allowed=self._allowed_types,
        )

    async def _discard(self, ref: str) -> None:
        """Remove a file that never got bound to a record."""
        try:
            await self._store.delete(ref)
        except StorageError as exc:
            logger.warning("Orphaned upload left behind: %s (%s)", ref, exc)

    # -----------------------------------------------------------------------
    # Profile image
    # -----------------------------------------------------------------------

    async def set_profile_image(
        self,
        user_id: str,
        content: bytes,
        filename: Optional[str],
        media_type: Optional[str],
    ) -> str:
        """Replace a user's profile image and return the new reference.

        Raises:
            ValidationError: Upload rejected; nothing stored.
            NotFoundError: No such user; nothing stored.
            StorageError: New file could not be written; record unchanged.
            StoreError: Record update failed; the new file is discarded.
        """
        self.validate(UploadedImage(filename=filename, media_type=media_type, content=content))

        if self._records.get_user(user_id) is None:
            raise NotFoundError("User not found")

        async with self._user_locks.hold(user_id):
            user = self._records.get_user(user_id)
            if user is None:
                raise NotFoundError("User not found")
            old_ref = user.profile_image

            new_ref = await self._store.put(content, filename)

            try:
                swapped = self._records.set_profile_image(user_id, new_ref, expected=old_ref)
            except StoreError:
                await self._discard(new_ref)
                raise

            if not swapped:
                await self._discard(new_ref)
                if self._records.get_user(user_id) is None:
                    raise NotFoundError("User not found")
                raise StoreError("profile image changed concurrently")

            logger.info("User %s profile image: %s -> %s", user_id, old_ref, new_ref)

            if old_ref and old_ref != new_ref:
                try:
                    await self._store.delete(old_ref)
                except StorageError as exc:
                    logger.warning(
                        "Could not remove superseded image %s for user %s: %s",
                        old_ref, user_id, exc,
                    )

        return new_ref

    # -----------------------------------------------------------------------
    # Messages
    # -----------------------------------------------------------------------

    async def create_message(
        self,
        user_id: str,
        content: Optional[str] = None,
        image: Optional[UploadedImage] = None,
    ) -> Message:
        """Create a message, storing its optional image first.

        ``user_id`` is taken as given; it is not checked against the users
        table.
        """
        image_ref: Optional[str] = None
        if image is not None:
            self.validate(image)
            image_ref = await self._store.put(image.content, image.filename or "")

        try:
            message = self._records.create_message(user_id, content=content, image=image_ref)
        except StoreError:
            if image_ref:
                await self._discard(image_ref)
            raise

        logger.info(
            "Message %s created for user %s (image=%s)", message.id, user_id, image_ref
        )
        return message

    async def list_messages(self) -> List[MessageView]:
        return self._records.list_messages()


# ---------------------------------------------------------------------------
# Process-wide instance
# ---------------------------------------------------------------------------

_service: Optional[MediaService] = None


def set_media_service(service: Optional[MediaService]) -> None:
    global _service
    _service = service


def get_media_service() -> MediaService:
    """FastAPI dependency returning the process-wide MediaService."""
    global _service
    if _service is None:
        _service = MediaService.from_config(get_config())
    return _service
