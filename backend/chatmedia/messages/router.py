"""Messages router — create messages with optional images, list them."""
import logging
from typing import Optional

import pydantic
from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from ..errors import MediaError
from ..media.schemas import UploadedImage
from ..media.service import MediaService, get_media_service
from .schemas import MessageCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["messages"])


def _describe(error: pydantic.ValidationError) -> str:
    first = error.errors()[0]
    field = ".".join(str(p) for p in first.get("loc", ())) or "body"
    return f"{field}: {first.get('msg', 'invalid value')}"


@router.post("", status_code=201)
async def create_message(
    user_id: Optional[str] = Form(None, alias="userId"),
    content: Optional[str] = Form(None),
    image: Optional[UploadFile] = File(None),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    """Create a message, optionally with one attached image.

    Args:
        user_id: Owning user id (form field ``userId``; not checked for existence)
        content: Message text
        image: Optional image file (jpg, jpeg, png or gif, up to 5MB)

    Returns:
        The created message (201 Created).

    Raises:
        HTTPException 400: Missing userId, unsupported image type or image too large
        HTTPException 500: Storage or database failure
    """
    try:
        body = MessageCreate(user_id=user_id, content=content)
    except pydantic.ValidationError as e:
        raise HTTPException(status_code=400, detail=_describe(e))

    try:
        upload = None
        if image is not None and image.filename:
            upload = UploadedImage(
                filename=image.filename,
                media_type=image.content_type,
                content=await image.read(service.read_limit),
            )
        message = await service.create_message(body.user_id, content=body.content, image=upload)
    except MediaError as e:
        if e.status_code >= 500:
            logger.error("Message creation failed: %s", e)
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Message creation failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    return JSONResponse(message.model_dump(mode="json", by_alias=True), status_code=201)


@router.get("")
async def list_messages(
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    """List all messages, newest first.

    Each message carries its owner's ``username`` and ``profileImage``
    (both null if the user no longer exists).
    """
    try:
        messages = await service.list_messages()
    except Exception as e:
        logger.error("Listing messages failed: %s", e)
        raise HTTPException(status_code=500, detail=str(e))

    return JSONResponse([m.model_dump(mode="json", by_alias=True) for m in messages])


@router.get("/{message_id}")
async def get_message(
    message_id: str,
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    """Fetch a single message by id, or 404."""
    try:
        message = service.records.get_message(message_id)
    except MediaError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if message is None:
        raise HTTPException(status_code=404, detail="Message not found")
    return JSONResponse(message.model_dump(mode="json", by_alias=True))
