import asyncio

import pytest

from app.utils.file_storage import MAX_UPLOAD_SIZE_BYTES, MediaStore
from conftest import PDF_BYTES, PNG_BYTES, auth_header, register


@pytest.fixture
def token(client):
    token, _ = register(client)
    return token


def _upload(client, token, category, name, content, content_type):
    return client.post(
        "/api/media/upload",
        data={"category": category},
        files={"file": (name, content, content_type)},
        headers=auth_header(token),
    )


def test_upload_returns_servable_url(client, token, media_store):
    response = _upload(client, token, "certificate", "cert.png", PNG_BYTES, "image/png")
    assert response.status_code == 200
    body = response.json()
    assert body["secureUrl"].startswith("http://testserver/media/certificate/")
    assert body["publicId"].startswith("certificate/")

    stored = media_store.root / (body["publicId"] + ".png")
    assert stored.read_bytes() == PNG_BYTES


def test_extension_fallback_for_octet_stream(client, token):
    response = _upload(client, token, "cv", "resume.PDF", PDF_BYTES, "application/octet-stream")
    assert response.status_code == 200
    assert response.json()["secureUrl"].endswith(".pdf")


@pytest.mark.parametrize("category,name,content_type", [
    ("cv", "photo.jpg", "image/jpeg"),
    ("equipment", "manual.pdf", "application/pdf"),
    ("certificate", "notes.txt", "text/plain"),
])
def test_type_rules_per_category(client, token, category, name, content_type):
    response = _upload(client, token, category, name, b"data", content_type)
    assert response.status_code == 400


def test_unknown_category_is_rejected(client, token):
    response = _upload(client, token, "avatar", "me.png", PNG_BYTES, "image/png")
    assert response.status_code == 400


def test_empty_and_oversized_files(client, token):
    assert _upload(client, token, "cv", "empty.pdf", b"", "application/pdf").status_code == 400

    too_big = b"0" * (MAX_UPLOAD_SIZE_BYTES + 1)
    response = _upload(client, token, "cv", "big.pdf", too_big, "application/pdf")
    assert response.status_code == 400
    assert "limit" in response.json()["detail"]


def test_upload_requires_authentication(client):
    response = client.post(
        "/api/media/upload",
        data={"category": "cv"},
        files={"file": ("cv.pdf", PDF_BYTES, "application/pdf")},
    )
    assert response.status_code == 401


def test_local_delete_stays_inside_media_root(media_store):
    assert asyncio.run(media_store.delete("http://testserver/media/../../etc/passwd")) is False
    assert asyncio.run(media_store.delete("https://cdn.example/other.png")) is False


def test_backend_without_delete_cannot_be_created():
    class UploadOnlyStore(MediaStore):
        async def save(self, file, category):
            return None

    with pytest.raises(TypeError):
        UploadOnlyStore()
