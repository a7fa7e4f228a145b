import os
import tempfile
from pathlib import Path

_tmp = Path(tempfile.mkdtemp(prefix="profetch-tests-"))
os.environ["DATABASE_URL"] = f"sqlite:///{_tmp / 'test.db'}"
os.environ["MEDIA_BACKEND"] = "local"
os.environ["MEDIA_ROOT"] = str(_tmp / "media")
os.environ["EMAIL_USER"] = ""
os.environ["EMAIL_PASSWORD"] = ""
os.environ["DB_CONNECT_RETRIES"] = "1"
os.environ["LOG_FILE"] = ""

import pytest
from fastapi.testclient import TestClient

from app.core.database import Base, engine, init_db
from app.main import app
from app.services.email_service import email_service
from app.utils.file_storage import LocalMediaStore, get_media_store

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\ntrailer\n<<>>\n%%EOF\n"
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


@pytest.fixture
def media_store(tmp_path):
    return LocalMediaStore(root=tmp_path / "media", base_url="http://testserver")


@pytest.fixture
def sent_emails(monkeypatch):
    sent = []

    def fake_send(recipient, subject, html):
        sent.append({"to": recipient, "subject": subject, "html": html})
        return True

    monkeypatch.setattr(email_service, "send", fake_send)
    return sent


@pytest.fixture
def client(media_store, sent_emails):
    init_db()
    Base.metadata.drop_all(bind=engine)

    app.dependency_overrides[get_media_store] = lambda: media_store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture
def quiet_client(client):
    """Same app, but unhandled errors come back as responses instead of raising."""
    return TestClient(app, raise_server_exceptions=False)


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def signup(client, user_name="alice1", email="a@x.com", password="secret1", **extra):
    payload = {
        "userName": user_name,
        "email": email,
        "password": password,
        "firstName": extra.pop("firstName", "Alice"),
        "lastName": extra.pop("lastName", "Smith"),
    }
    payload.update(extra)
    return client.post("/api/users/create", json=payload)


def register(client, roles=None, **kwargs):
    """Sign up and optionally select roles. Returns (token, user json)."""
    response = signup(client, **kwargs)
    assert response.status_code == 201, response.text
    body = response.json()
    token = body["token"]
    if roles:
        selected = client.post(
            "/api/users/select-roles",
            json={
                "isFreelancer": "freelancer" in roles,
                "isEquipmentOwner": "equipment_owner" in roles,
            },
            headers=auth_header(token),
        )
        assert selected.status_code == 200, selected.text
        body = selected.json()
        token = body["token"]
    return token, body["user"]


@pytest.fixture
def freelancer(client):
    token, user = register(client, roles=["freelancer"], location="Anna Nagar, Chennai")
    return token, user


@pytest.fixture
def owner(client):
    token, user = register(
        client,
        roles=["equipment_owner"],
        user_name="owner1",
        email="owner@x.com",
        firstName="Omar",
        lastName="Khan",
        phone="+971500000000",
        location="Dubai",
    )
    return token, user
