import json

from app.core.database import SessionLocal
from app.models.profile import JobSeekerProfile
from app.models.user import User
from conftest import PDF_BYTES, PNG_BYTES, auth_header, register


def _stored_certificates(email="a@x.com"):
    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == email).one()
        return list(user.job_seeker_profile.certificates)
    finally:
        db.close()


def test_profile_requires_freelancer_role(client, owner):
    token, _ = owner
    assert client.get("/api/freelancer/profile", headers=auth_header(token)).status_code == 403


def test_get_empty_profile(client, freelancer):
    token, _ = freelancer
    body = client.get("/api/freelancer/profile", headers=auth_header(token)).json()
    assert body["profile"]["certificates"] == []
    assert body["profile"]["availability"] == "available"
    assert body["user"]["userName"] == "alice1"


def test_update_profile_with_files(client, freelancer, media_store, sent_emails):
    token, _ = freelancer
    sent_emails.clear()

    response = client.put(
        "/api/freelancer/profile",
        data={
            "firstName": "Alicia",
            "title": "Backend Developer",
            "experience": "3-5 years",
            "expectedSalary": "5000",
            "bio": "Python and APIs",
            "availability": "busy",
            "availableFrom": "2026-11-01",
        },
        files=[
            ("cv", ("resume.pdf", PDF_BYTES, "application/pdf")),
            ("certificates", ("aws.png", PNG_BYTES, "image/png")),
            ("certificates", ("scrum.pdf", PDF_BYTES, "application/pdf")),
        ],
        headers=auth_header(token),
    )
    assert response.status_code == 200, response.text
    body = response.json()

    profile = body["profile"]
    assert body["user"]["firstName"] == "Alicia"
    assert profile["title"] == "Backend Developer"
    assert profile["availability"] == "busy"
    assert profile["availableFrom"] == "2026-11-01"
    assert profile["salaryCurrency"] == "USD"
    assert profile["cvFilePath"].startswith("http://testserver/media/cv/")
    assert len(profile["certificates"]) == 2

    stored = list((media_store.root / "certificate").iterdir())
    assert len(stored) == 2
    assert len(list((media_store.root / "cv").iterdir())) == 1
    assert len(sent_emails) == 1


def test_existing_plus_new_certificate(client, freelancer):
    token, _ = freelancer
    client.put(
        "/api/freelancer/profile",
        data={"newCertificates": json.dumps(["https://cdn/u1", "https://cdn/u2"])},
        headers=auth_header(token),
    )

    response = client.put(
        "/api/freelancer/profile",
        data={"existingCertificates": json.dumps(["https://cdn/u1", "https://cdn/u2"])},
        files=[("certificates", ("c.pdf", PDF_BYTES, "application/pdf"))],
        headers=auth_header(token),
    )
    assert response.status_code == 200
    certificates = response.json()["profile"]["certificates"]
    assert certificates[:2] == ["https://cdn/u1", "https://cdn/u2"]
    assert len(certificates) == 3

    # Repeating without new files changes nothing
    again = client.put(
        "/api/freelancer/profile",
        data={"existingCertificates": json.dumps(certificates)},
        headers=auth_header(token),
    )
    assert again.json()["profile"]["certificates"] == certificates


def test_empty_declaration_keeps_certificates_unless_replace(client, freelancer):
    token, _ = freelancer
    client.put(
        "/api/freelancer/profile",
        data={"newCertificates": json.dumps(["https://cdn/u1"])},
        headers=auth_header(token),
    )

    kept = client.put(
        "/api/freelancer/profile",
        data={"existingCertificates": "[]", "title": "QA"},
        headers=auth_header(token),
    )
    assert kept.json()["profile"]["certificates"] == ["https://cdn/u1"]

    wiped = client.put(
        "/api/freelancer/profile",
        data={"existingCertificates": "[]", "replaceCertificates": "true"},
        headers=auth_header(token),
    )
    assert wiped.json()["profile"]["certificates"] == []


def test_conflicting_email_leaves_profile_unchanged(client, freelancer, media_store):
    token, _ = freelancer
    register(client, user_name="bob_22", email="bob@x.com")

    response = client.put(
        "/api/freelancer/profile",
        data={"email": "bob@x.com", "title": "Should not stick"},
        files=[("cv", ("resume.pdf", PDF_BYTES, "application/pdf"))],
        headers=auth_header(token),
    )
    assert response.status_code == 409
    assert response.json()["detail"]["conflictField"] == "email"

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.user_name == "alice1").one()
        assert user.email == "a@x.com"
        assert user.job_seeker_profile.title is None
    finally:
        db.close()
    # Nothing was uploaded for the rejected update
    assert not (media_store.root / "cv").exists()


def test_unique_violation_rolls_back_account_and_profile(client, freelancer, monkeypatch):
    token, _ = freelancer
    register(client, user_name="bob_22", email="bob@x.com")
    # Let the update reach the database so the unique index rejects it
    monkeypatch.setattr("app.routers.freelancers.ensure_no_conflict", lambda *args, **kwargs: None)
    monkeypatch.setattr("app.services.profiles.ensure_no_conflict", lambda *args, **kwargs: None)

    response = client.put(
        "/api/freelancer/profile",
        data={"email": "bob@x.com", "firstName": "Changed", "title": "Should not stick"},
        headers=auth_header(token),
    )
    assert response.status_code == 409
    assert response.json()["detail"]["conflictField"] == "email"

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.user_name == "alice1").one()
        assert user.email == "a@x.com"
        assert user.first_name == "Alice"
        assert user.job_seeker_profile.title is None
    finally:
        db.close()


def test_blank_phone_and_location_clear_them(client):
    token, _ = register(
        client, roles=["freelancer"], phone="+911234567890", location="Anna Nagar, Chennai"
    )

    kept = client.put("/api/freelancer/profile", data={"title": "Welder"}, headers=auth_header(token))
    assert kept.json()["user"]["phone"] == "+911234567890"

    response = client.put(
        "/api/freelancer/profile",
        data={"phone": "", "location": "  "},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    body = response.json()
    assert body["user"]["phone"] is None
    assert body["user"]["location"] is None
    assert body["profile"]["title"] == "Welder"


def test_conflicting_username(client, freelancer):
    token, _ = freelancer
    register(client, user_name="bob_22", email="bob@x.com")
    response = client.put(
        "/api/freelancer/profile",
        data={"userName": "BOB_22"},
        headers=auth_header(token),
    )
    assert response.status_code == 409
    assert response.json()["detail"]["conflictField"] == "userName"


def test_own_email_is_not_a_conflict(client, freelancer):
    token, _ = freelancer
    response = client.put(
        "/api/freelancer/profile",
        data={"email": "A@X.com", "userName": "alice1"},
        headers=auth_header(token),
    )
    assert response.status_code == 200


def test_invalid_file_type_is_rejected(client, freelancer, media_store):
    token, _ = freelancer
    response = client.put(
        "/api/freelancer/profile",
        files=[("cv", ("resume.png", PNG_BYTES, "image/png"))],
        headers=auth_header(token),
    )
    assert response.status_code == 400
    assert "PDF" in response.json()["detail"]


def test_too_many_new_certificates(client, freelancer):
    token, _ = freelancer
    urls = [f"https://cdn/c{i}" for i in range(6)]
    response = client.put(
        "/api/freelancer/profile",
        data={"newCertificates": json.dumps(urls)},
        headers=auth_header(token),
    )
    assert response.status_code == 400


def test_malformed_certificate_list(client, freelancer):
    token, _ = freelancer
    response = client.put(
        "/api/freelancer/profile",
        data={"existingCertificates": "{not json"},
        headers=auth_header(token),
    )
    assert response.status_code == 400


def test_remove_certificate_deletes_file(client, freelancer, media_store):
    token, _ = freelancer
    uploaded = client.put(
        "/api/freelancer/profile",
        files=[("certificates", ("cert.pdf", PDF_BYTES, "application/pdf"))],
        headers=auth_header(token),
    ).json()["profile"]["certificates"][0]

    response = client.request(
        "DELETE",
        "/api/freelancer/certificate",
        json={"certificateUrl": uploaded},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    assert response.json()["profile"]["certificates"] == []
    assert list((media_store.root / "certificate").iterdir()) == []


def test_remove_certificate_survives_store_failure(client, freelancer):
    token, _ = freelancer
    client.put(
        "/api/freelancer/profile",
        data={"newCertificates": json.dumps(["https://elsewhere.example/cert.pdf"])},
        headers=auth_header(token),
    )
    response = client.request(
        "DELETE",
        "/api/freelancer/certificate",
        json={"certificateUrl": "https://elsewhere.example/cert.pdf"},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    assert _stored_certificates() == []


def test_remove_unknown_certificate_is_404(client, freelancer):
    token, _ = freelancer
    response = client.request(
        "DELETE",
        "/api/freelancer/certificate",
        json={"certificateUrl": "https://cdn/missing"},
        headers=auth_header(token),
    )
    assert response.status_code == 404


def test_profile_row_created_if_missing(client, freelancer, sent_emails):
    token, _ = freelancer
    db = SessionLocal()
    try:
        db.query(JobSeekerProfile).delete()
        db.commit()
    finally:
        db.close()
    sent_emails.clear()

    response = client.put(
        "/api/freelancer/profile",
        data={"title": "Data Engineer"},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    assert response.json()["profile"]["title"] == "Data Engineer"
    assert "Data Engineer" in sent_emails[0]["html"]


def test_null_certificate_list_reads_back_empty(client, freelancer):
    token, _ = freelancer
    db = SessionLocal()
    try:
        profile = db.query(JobSeekerProfile).one()
        profile.certificates = None
        db.commit()
        db.expire_all()
        assert db.query(JobSeekerProfile).one().certificates == []
    finally:
        db.close()

    body = client.get("/api/freelancer/profile", headers=auth_header(token)).json()
    assert body["profile"]["certificates"] == []
