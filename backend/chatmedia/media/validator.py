"""Upload validation: decide accept/reject from metadata alone."""
import re
from pathlib import PurePosixPath
from typing import Iterable, Optional

from ..errors import ValidationError
from .schemas import ALLOWED_IMAGE_TYPES, MAX_FILE_SIZE_BYTES


def file_extension(filename: str) -> str:
    """Lower-cased extension without the dot (``"Photo.PNG"`` -> ``"png"``)."""
    return PurePosixPath(filename.replace("\\", "/")).suffix.lstrip(".").lower()


def media_type_pattern(allowed: Iterable[str]) -> "re.Pattern[str]":
    alternatives = "|".join(re.escape(a) for a in allowed)
    return re.compile(rf"^image/({alternatives})$")


def validate_upload(
    filename: Optional[str],
    media_type: Optional[str],
    size_bytes: int,
    max_size_bytes: int = MAX_FILE_SIZE_BYTES,
    allowed: Iterable[str] = ALLOWED_IMAGE_TYPES,
) -> None:
    """Reject an upload that is missing, of the wrong type, or too large.

    Both signals must agree: the extension must be in ``allowed`` and the
    declared media type must be ``image/<one of allowed>``. Parameters such
    as ``; charset=...`` on the media type are ignored.

    Raises:
        ValidationError: ``no file uploaded``, ``unsupported media type`` or
            ``payload too large``.
    """
    if not filename:
        raise ValidationError("no file uploaded")

    allowed = tuple(allowed)
    ext_ok = file_extension(filename) in allowed
    declared = (media_type or "").split(";", 1)[0].strip().lower()
    type_ok = media_type_pattern(allowed).match(declared) is not None
    if not (ext_ok and type_ok):
        raise ValidationError("unsupported media type")

    if size_bytes > max_size_bytes:
        raise ValidationError("payload too large")
