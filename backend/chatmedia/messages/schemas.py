"""Request schema for message creation."""
from typing import Optional

from pydantic import Field

from ..records.schemas import CamelModel


class MessageCreate(CamelModel):
    """Form fields of ``POST /messages`` (the image travels separately)."""
    user_id: str = Field(..., min_length=1)
    content: Optional[str] = Field(default=None, max_length=10000)
