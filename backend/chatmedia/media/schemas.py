"""Schemas and limits for image uploads.

Uploads are accepted only when both the filename extension and the declared
media type name one of the allowed image types. The size ceiling is 5 MiB
unless configured otherwise.
"""
from dataclasses import dataclass
from typing import Optional, Tuple

from pydantic import Field

from ..records.schemas import CamelModel

# File size limit: 5MB
MAX_FILE_SIZE_BYTES = 5 * 1024 * 1024

ALLOWED_IMAGE_TYPES: Tuple[str, ...] = ("jpeg", "jpg", "png", "gif")


@dataclass
class UploadedImage:
    """An upload as received, before anything is written to disk."""
    filename: Optional[str]
    media_type: Optional[str]
    content: bytes

    @property
    def size_bytes(self) -> int:
        return len(self.content)


class ProfileImageResponse(CamelModel):
    """Response after a successful profile image replace."""
    message: str = Field(default="Profile image updated successfully")
    profile_image: str = Field(..., description="Reference of the new image")
