"""MediaStore — writes uploads to the local upload directory.

Files are stored as ``{upload_dir}/{millis}-{original filename}`` and
referenced as ``{url_prefix}/{millis}-{original filename}``, which is also the
path they are served under.

The millisecond token is unique within the process: a second upload in the
same millisecond takes the next one. Files are opened with ``O_EXCL``, so an
existing name (another process, clock skew) is skipped, never overwritten.
"""
import asyncio
import contextlib
import logging
import threading
import time
from pathlib import Path, PurePosixPath

from ..errors import StorageError

logger = logging.getLogger(__name__)

_MAX_NAME_ATTEMPTS = 16
_FALLBACK_NAME = "upload"


def _safe_filename(filename: str) -> str:
    name = PurePosixPath(filename.replace("\\", "/")).name
    if name in ("", ".", ".."):
        return _FALLBACK_NAME
    return name


class MediaStore:
    """Local-filesystem object store for uploaded images."""

    def __init__(self, upload_dir: str = "uploads", url_prefix: str = "/uploads") -> None:
        self._upload_dir = Path(upload_dir)
        self._url_prefix = "/" + url_prefix.strip("/")
        self._token_lock = threading.Lock()
        self._last_token = 0

    @property
    def upload_dir(self) -> Path:
        return self._upload_dir

    @property
    def url_prefix(self) -> str:
        return self._url_prefix

    def ensure_upload_dir(self) -> None:
        """Create the upload directory if it doesn't exist."""
        try:
            self._upload_dir.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"cannot create upload directory: {exc}") from exc

    def _next_token(self) -> int:
        now = time.time_ns() // 1_000_000
        with self._token_lock:
            token = max(now, self._last_token + 1)
            self._last_token = token
        return token

    def _write(self, content: bytes, filename: str) -> str:
        self.ensure_upload_dir()
        safe_name = _safe_filename(filename)

        for _ in range(_MAX_NAME_ATTEMPTS):
            name = f"{self._next_token()}-{safe_name}"
            path = self._upload_dir / name
            try:
                fh = path.open("xb")
            except FileExistsError:
                logger.debug("Object name taken, retrying: %s", name)
                continue
            except OSError as exc:
                raise StorageError(f"cannot create {name}: {exc}") from exc

            try:
                with fh:
                    fh.write(content)
            except OSError as exc:
                with contextlib.suppress(OSError):
                    path.unlink()
                raise StorageError(f"cannot write {name}: {exc}") from exc
            return name

        raise StorageError(f"no free object name for {safe_name!r}")

    async def put(self, content: bytes, original_filename: str) -> str:
        """Write ``content`` and return its reference.

        Only returns once the bytes are fully written.

        Raises:
            StorageError: If the directory or file cannot be written.
        """
        name = await asyncio.to_thread(self._write, content, original_filename)
        ref = f"{self._url_prefix}/{name}"
        logger.info("Stored %s (%d bytes)", ref, len(content))
        return ref

    def path_for(self, ref: str) -> Path:
        """Resolve a reference to its file path.

        Raises:
            StorageError: If ``ref`` does not name an object in this store.
        """
        prefix = self._url_prefix + "/"
        if not ref.startswith(prefix):
            raise StorageError(f"reference outside {self._url_prefix}: {ref!r}")
        name = ref[len(prefix):]
        if not name or "/" in name or "\\" in name or name in (".", ".."):
            raise StorageError(f"invalid object reference: {ref!r}")
        return self._upload_dir / name

    def exists(self, ref: str) -> bool:
        return self.path_for(ref).is_file()

    def _unlink(self, path: Path) -> bool:
        try:
            path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise StorageError(f"cannot delete {path.name}: {exc}") from exc
        return True

    async def delete(self, ref: str) -> bool:
        """Remove a stored object. Missing objects are not an error.

        Returns True if a file was removed.
        """
        path = self.path_for(ref)
        removed = await asyncio.to_thread(self._unlink, path)
        if removed:
            logger.info("Deleted %s", ref)
        else:
            logger.debug("Delete of missing object ignored: %s", ref)
        return removed
