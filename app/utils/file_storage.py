"""
utils/file_storage.py

The media store: uploaded CVs, certificates and equipment images are handed
to it and only the returned URL is persisted. Two backends share one interface:

    LocalMediaStore       writes under MEDIA_ROOT, served by the /media mount
    CloudinaryMediaStore  uploads to Cloudinary (MEDIA_BACKEND=cloudinary)

Routers depend on `get_media_store`, so tests can swap in a store rooted in
a temporary directory.
"""

import io
import logging
import re
import uuid
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple

import aiofiles
import cloudinary
import cloudinary.uploader
from fastapi import UploadFile, HTTPException, status
from starlette.concurrency import run_in_threadpool

from app.core.config import settings

logger = logging.getLogger(__name__)

MAX_UPLOAD_SIZE_BYTES = settings.MAX_UPLOAD_SIZE_MB * 1024 * 1024

_CONTENT_TYPE_TO_EXT = {
    "application/pdf": ".pdf",
    "image/jpeg": ".jpg",
    "image/png": ".png",
    "image/gif": ".gif",
    "image/webp": ".webp",
}

# Allowed extensions per upload category
UPLOAD_RULES = {
    "cv": {".pdf"},
    "certificate": {".pdf", ".jpg", ".jpeg", ".png"},
    "equipment": {".jpg", ".jpeg", ".png", ".gif", ".webp"},
}


@dataclass
class StoredMedia:
    secure_url: str
    public_id: str


def _resolve_extension(file: UploadFile, category: str) -> str:
    """
    Return the canonical extension for the upload, validated against `category`.

    Some mobile clients send 'application/octet-stream' instead of the real
    MIME type, so the filename extension is used as a fallback.
    """
    if category not in UPLOAD_RULES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Unknown upload category '{category}'.",
        )
    allowed = UPLOAD_RULES[category]

    content_type = (file.content_type or "").lower()
    ext = _CONTENT_TYPE_TO_EXT.get(content_type)
    if ext in allowed:
        return ext

    filename = file.filename or ""
    ext = Path(filename).suffix.lower()
    if ext in allowed:
        return ".jpg" if ext == ".jpeg" else ext

    readable = ", ".join(sorted(e.lstrip(".").upper() for e in allowed))
    raise HTTPException(
        status_code=status.HTTP_400_BAD_REQUEST,
        detail=(
            f"Invalid file type for {category} '{filename}' "
            f"(content-type: '{content_type}'). Allowed: {readable}."
        ),
    )


async def _read_validated(file: UploadFile, category: str) -> Tuple[bytes, str]:
    ext = _resolve_extension(file, category)
    contents = await file.read()
    if not contents:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File '{file.filename}' is empty.",
        )
    if len(contents) > MAX_UPLOAD_SIZE_BYTES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"File '{file.filename}' exceeds {settings.MAX_UPLOAD_SIZE_MB}MB limit.",
        )
    return contents, ext


def real_uploads(files: Optional[List[UploadFile]]) -> List[UploadFile]:
    """Drop the empty parts browsers send for untouched file inputs."""
    return [f for f in (files or []) if f is not None and f.filename]


class MediaStore(ABC):
    """Upload a binary and get a stable URL back; delete by that URL."""

    @abstractmethod
    async def save(self, file: UploadFile, category: str) -> StoredMedia:
        ...

    @abstractmethod
    async def delete(self, url: str) -> bool:
        ...

    async def save_many(self, files: List[UploadFile], category: str) -> List[str]:
        """Save several files and return their URLs in upload order."""
        urls = []
        for f in files:
            stored = await self.save(f, category)
            urls.append(stored.secure_url)
        return urls


class LocalMediaStore(MediaStore):
    def __init__(self, root: Optional[Path] = None, base_url: Optional[str] = None):
        self.root = Path(root or settings.MEDIA_ROOT)
        self.base_url = (base_url or settings.BASE_URL).rstrip("/")

    async def save(self, file: UploadFile, category: str) -> StoredMedia:
        contents, ext = await _read_validated(file, category)

        directory = self.root / category
        directory.mkdir(parents=True, exist_ok=True)

        stem = uuid.uuid4().hex
        async with aiofiles.open(directory / f"{stem}{ext}", "wb") as out:
            await out.write(contents)

        return StoredMedia(
            secure_url=f"{self.base_url}/media/{category}/{stem}{ext}",
            public_id=f"{category}/{stem}",
        )

    async def delete(self, url: str) -> bool:
        """Remove the file behind `url`. Missing files and OS errors are logged, not raised."""
        if "/media/" not in url:
            logger.warning("Not a local media URL, nothing deleted: %s", url)
            return False

        relative = url.split("/media/", 1)[1]
        file_path = (self.root / relative).resolve()
        if self.root.resolve() not in file_path.parents:
            logger.warning("Refusing to delete outside media root: %s", url)
            return False

        try:
            if file_path.exists():
                file_path.unlink()
                return True
            logger.info("Media file already gone: %s", relative)
            return False
        except OSError:
            logger.error("Failed to delete media file %s", relative, exc_info=True)
            return False


_CLOUDINARY_URL = re.compile(
    r"/(?P<resource_type>image|raw|video)/upload/(?:v\d+/)?(?P<path>[^?#]+)"
)


def parse_cloudinary_url(url: str) -> Tuple[str, str]:
    """
    Return (public_id, resource_type) for a Cloudinary delivery URL.

    Image and video public ids carry no extension, raw ones (PDFs) do.
    """
    match = _CLOUDINARY_URL.search(url)
    if not match:
        raise ValueError(f"Not a Cloudinary URL: {url}")

    resource_type = match.group("resource_type")
    path = match.group("path")
    if resource_type != "raw":
        path = str(Path(path).with_suffix(""))
    return path, resource_type


class CloudinaryMediaStore(MediaStore):
    def __init__(self):
        cloudinary.config(
            cloud_name=settings.CLOUDINARY_CLOUD_NAME,
            api_key=settings.CLOUDINARY_API_KEY,
            api_secret=settings.CLOUDINARY_API_SECRET,
            secure=True,
        )
        self._uploader = cloudinary.uploader

    async def save(self, file: UploadFile, category: str) -> StoredMedia:
        contents, ext = await _read_validated(file, category)

        # The SDK is blocking; keep it off the event loop
        result = await run_in_threadpool(
            self._uploader.upload,
            io.BytesIO(contents),
            folder=f"{settings.MEDIA_FOLDER}/{category}",
            resource_type="raw" if ext == ".pdf" else "image",
            use_filename=False,
            unique_filename=True,
        )
        return StoredMedia(secure_url=result["secure_url"], public_id=result["public_id"])

    async def delete(self, url: str) -> bool:
        public_id, resource_type = parse_cloudinary_url(url)
        result = await run_in_threadpool(
            self._uploader.destroy, public_id, resource_type=resource_type
        )
        deleted = result.get("result") == "ok"
        if not deleted:
            logger.warning("Cloudinary did not delete %s: %s", public_id, result)
        return deleted


async def discard_media(store: MediaStore, urls: List[str]):
    """Best-effort cleanup of files no longer referenced. Failures are logged only."""
    for url in urls:
        try:
            await store.delete(url)
        except Exception:
            logger.warning("Could not delete media %s", url, exc_info=True)


_media_store: Optional[MediaStore] = None


def get_media_store() -> MediaStore:
    """FastAPI dependency returning the configured media store."""
    global _media_store
    if _media_store is None:
        if settings.MEDIA_BACKEND == "cloudinary":
            _media_store = CloudinaryMediaStore()
        else:
            _media_store = LocalMediaStore()
        logger.info("Media store initialised (%s)", _media_store.__class__.__name__)
    return _media_store
