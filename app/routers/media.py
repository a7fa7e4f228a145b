import logging
from fastapi import APIRouter, Depends, File, Form, UploadFile
from app.models.user import User
from app.schemas.search import MediaUploadResponse
from app.api.deps import get_current_active_user
from app.utils.file_storage import MediaStore, get_media_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/media", tags=["Media"])


@router.post("/upload", response_model=MediaUploadResponse)
async def upload_media(
    file: UploadFile = File(...),
    category: str = Form(..., pattern="^(cv|certificate|equipment)$"),
    store: MediaStore = Depends(get_media_store),
    current_user: User = Depends(get_current_active_user),
):
    """
    Direct upload: store one file and get its URL back.
    The URL can then be sent as `cvFilePath`, `newCertificates` or in `equipmentImages`.
    """
    stored = await store.save(file, category)
    logger.info("Media uploaded by user_id=%s: %s", current_user.id, stored.public_id)
    return MediaUploadResponse(secure_url=stored.secure_url, public_id=stored.public_id)
