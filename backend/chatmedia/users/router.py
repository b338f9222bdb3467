"""Users router — user records and profile image upload."""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, File, HTTPException, UploadFile
from fastapi.responses import JSONResponse

from ..errors import MediaError
from ..media.schemas import ProfileImageResponse
from ..media.service import MediaService, get_media_service
from ..records.schemas import UserCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["users"])


@router.post("", status_code=201)
async def create_user(
    body: UserCreate,
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    """Create a user.

    Returns:
        The created user (201 Created).
    """
    try:
        user = service.records.create_user(username=body.username, email=body.email)
    except MediaError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    logger.info("[users] Created %s (%s)", user.id, user.username)
    return JSONResponse(user.model_dump(mode="json", by_alias=True), status_code=201)


@router.get("/{user_id}")
async def get_user(
    user_id: str,
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    """Fetch a user by id, or 404."""
    try:
        user = service.records.get_user(user_id)
    except MediaError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
    if user is None:
        raise HTTPException(status_code=404, detail="User not found")
    return JSONResponse(user.model_dump(mode="json", by_alias=True))


@router.put("/{user_id}/profile-image")
async def upload_profile_image(
    user_id: str,
    image: Optional[UploadFile] = File(None),
    service: MediaService = Depends(get_media_service),
) -> JSONResponse:
    """Replace a user's profile image.

    Accepts a single multipart file field ``image`` (jpg, jpeg, png or gif,
    up to 5MB). The previous image is deleted after the new one is bound.

    Args:
        user_id: User whose profile image is replaced
        image: The uploaded file

    Returns:
        ``{"message": ..., "profileImage": "/uploads/<ts>-<name>"}``

    Raises:
        HTTPException 400: No file, unsupported type, or file too large
        HTTPException 404: User not found
        HTTPException 500: Storage or database failure
    """
    if image is None or not image.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")

    try:
        content = await image.read(service.read_limit)
        ref = await service.set_profile_image(
            user_id,
            content=content,
            filename=image.filename,
            media_type=image.content_type,
        )
    except MediaError as e:
        if e.status_code >= 500:
            logger.error("Profile image upload failed for %s: %s", user_id, e)
        raise HTTPException(status_code=e.status_code, detail=e.message)
    except Exception as e:
        logger.error("Profile image upload failed for %s: %s", user_id, e)
        raise HTTPException(status_code=500, detail=str(e))

    response = ProfileImageResponse(profile_image=ref)
    return JSONResponse(response.model_dump(by_alias=True))
