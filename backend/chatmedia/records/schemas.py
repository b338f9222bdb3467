"""Pydantic schemas for User and Message records.

JSON uses camelCase field names (``userId``, ``profileImage``, ``createdAt``);
Python code uses snake_case. Serialize with ``model_dump(by_alias=True)``.
"""
from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class User(CamelModel):
    """A user as stored in the ``users`` table."""
    id: str
    username: Optional[str] = None
    email: Optional[str] = None
    profile_image: Optional[str] = Field(
        default=None, description="Stored file reference, e.g. /uploads/<ts>-a.png"
    )


class UserCreate(CamelModel):
    """Request body for creating a user."""
    username: str = Field(..., min_length=1, max_length=100)
    email: str = Field(..., min_length=3, max_length=254)


class Message(CamelModel):
    """A chat message. ``image`` is set at creation and never changes."""
    id: str
    user_id: str
    content: Optional[str] = None
    image: Optional[str] = None
    created_at: datetime

    @field_validator("created_at")
    @classmethod
    def _as_utc(cls, value: datetime) -> datetime:
        # naive values come from TIMESTAMP columns and are UTC
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)


class MessageView(Message):
    """A message enriched with fields of its owning user.

    Both enrichment fields are ``None`` when the owner no longer exists.
    """
    username: Optional[str] = None
    profile_image: Optional[str] = None
