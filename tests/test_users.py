import pytest
from sqlalchemy import event
from sqlalchemy.exc import IntegrityError

from app.core.database import SessionLocal
from app.models.equipment import Equipment
from app.models.profile import EquipmentOwnerProfile, JobSeekerProfile
from app.models.user import User
from app.utils.auth import decode_token
from conftest import auth_header, register, signup


def test_signup_then_select_freelancer_role(client, sent_emails):
    response = signup(client)
    assert response.status_code == 201
    body = response.json()
    assert body["success"] is True
    assert body["requiresRoleSelection"] is True
    assert body["user"]["rolesSelected"] is False
    assert body["user"]["userType"] is None
    assert "passwordHash" not in body["user"]

    claims = decode_token(body["token"])
    assert claims["userType"] is None
    assert claims["isFreelancer"] is False
    assert claims["isEquipmentOwner"] is False
    assert claims["rolesSelected"] is False

    selected = client.post(
        "/api/users/select-roles",
        json={"isFreelancer": True, "isEquipmentOwner": False},
        headers=auth_header(body["token"]),
    )
    assert selected.status_code == 200
    data = selected.json()
    assert data["userType"] == "jobseeker"
    assert data["user"]["isFreelancer"] is True
    assert data["user"]["rolesSelected"] is True

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == "a@x.com").one()
        assert db.query(JobSeekerProfile).filter(JobSeekerProfile.user_id == user.id).count() == 1
        assert db.query(EquipmentOwnerProfile).filter(EquipmentOwnerProfile.user_id == user.id).count() == 0
    finally:
        db.close()

    subjects = [m["subject"] for m in sent_emails]
    assert len(subjects) == 2


def test_role_selection_is_one_time(client):
    token, _ = register(client, roles=["freelancer"])
    again = client.post(
        "/api/users/select-roles",
        json={"isFreelancer": False, "isEquipmentOwner": True},
        headers=auth_header(token),
    )
    assert again.status_code == 400

    me = client.get("/api/users/me", headers=auth_header(token)).json()
    assert me["isFreelancer"] is True
    assert me["isEquipmentOwner"] is False


def test_select_roles_requires_at_least_one(client):
    token = signup(client).json()["token"]
    response = client.post(
        "/api/users/select-roles",
        json={"isFreelancer": False, "isEquipmentOwner": False},
        headers=auth_header(token),
    )
    assert response.status_code == 400

    me = client.get("/api/users/me", headers=auth_header(token)).json()
    assert me["rolesSelected"] is False


def test_both_roles_create_both_profiles(client):
    token = signup(client).json()["token"]
    response = client.post(
        "/api/users/select-roles",
        json={"isFreelancer": True, "isEquipmentOwner": True, "primaryRole": "equipment_owner"},
        headers=auth_header(token),
    )
    assert response.status_code == 200
    assert response.json()["userType"] == "equipment_owner"

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == "a@x.com").one()
        assert user.job_seeker_profile is not None
        assert user.equipment_owner_profile is not None
        assert user.has_both_roles
    finally:
        db.close()


@pytest.fixture
def failing_owner_insert():
    def fail(mapper, connection, target):
        raise IntegrityError("INSERT INTO equipment_owners", {}, Exception("constraint failed"))

    event.listen(EquipmentOwnerProfile, "before_insert", fail)
    yield
    event.remove(EquipmentOwnerProfile, "before_insert", fail)


def test_failed_profile_insert_rolls_back_role_selection(client, quiet_client, failing_owner_insert):
    token = signup(client).json()["token"]
    response = quiet_client.post(
        "/api/users/select-roles",
        json={"isFreelancer": True, "isEquipmentOwner": True},
        headers=auth_header(token),
    )
    assert response.status_code == 500
    assert response.json() == {"success": False, "msg": "Internal server error"}

    db = SessionLocal()
    try:
        user = db.query(User).filter(User.email == "a@x.com").one()
        assert user.roles_selected is False
        assert user.is_freelancer is False
        assert user.user_type is None
        assert db.query(JobSeekerProfile).count() == 0
        assert db.query(EquipmentOwnerProfile).count() == 0
    finally:
        db.close()


def test_select_roles_requires_token(client):
    response = client.post("/api/users/select-roles", json={"isFreelancer": True})
    assert response.status_code == 401
    assert response.headers["www-authenticate"] == "Bearer"


def test_duplicate_email_and_username_conflict(client):
    assert signup(client).status_code == 201

    response = signup(client, user_name="other1", email="A@X.com")
    assert response.status_code == 409
    assert response.json()["detail"]["conflictField"] == "email"

    response = signup(client, user_name="ALICE1", email="b@x.com")
    assert response.status_code == 409
    assert response.json()["detail"]["conflictField"] == "userName"


def test_signup_validation_errors_are_400(client):
    response = signup(client, user_name="a b", email="not-an-email", password="123")
    assert response.status_code == 400
    body = response.json()
    assert body["success"] is False
    assert len(body["errors"]) == 3
    assert "password" in body["msg"]


def test_users_can_only_modify_themselves(client):
    alice_token, alice = register(client)
    bob_token, bob = register(client, user_name="bob_22", email="bob@x.com")

    response = client.put(
        f"/api/users/{bob['id']}",
        json={"firstName": "Mallory"},
        headers=auth_header(alice_token),
    )
    assert response.status_code == 403

    response = client.delete(f"/api/users/{bob['id']}", headers=auth_header(alice_token))
    assert response.status_code == 403

    response = client.put(
        f"/api/users/{alice['id']}",
        json={"firstName": " Alicia ", "phone": ""},
        headers=auth_header(alice_token),
    )
    assert response.status_code == 200
    assert response.json()["firstName"] == "Alicia"
    assert response.json()["phone"] is None


def test_password_change_through_update(client):
    token, user = register(client)
    client.put(f"/api/users/{user['id']}", json={"password": "newpass1"}, headers=auth_header(token))

    old = client.post("/api/login/login", json={"usernameOrEmail": "alice1", "password": "secret1"})
    new = client.post("/api/login/login", json={"usernameOrEmail": "alice1", "password": "newpass1"})
    assert old.status_code == 401
    assert new.status_code == 200


def test_delete_account_cascades(client, owner):
    token, user = owner
    created = client.post(
        "/api/equipment/add",
        json={"equipmentName": "Crane", "equipmentType": "Heavy"},
        headers=auth_header(token),
    )
    assert created.status_code == 201

    response = client.delete(f"/api/users/{user['id']}", headers=auth_header(token))
    assert response.status_code == 200

    db = SessionLocal()
    try:
        assert db.query(User).count() == 0
        assert db.query(Equipment).count() == 0
        assert db.query(EquipmentOwnerProfile).count() == 0
    finally:
        db.close()

    # Token of a deleted account no longer authenticates
    assert client.get("/api/users/me", headers=auth_header(token)).status_code == 401


def test_list_stats_and_search(client):
    token, _ = register(client, roles=["freelancer"])
    register(client, roles=["equipment_owner"], user_name="owner1", email="o@x.com", firstName="Omar")
    register(client, user_name="pending", email="p@x.com")

    listing = client.get("/api/users/?page=1&limit=2", headers=auth_header(token)).json()
    assert listing["total"] == 3
    assert len(listing["users"]) == 2

    stats = client.get("/api/users/stats", headers=auth_header(token)).json()
    assert stats == {
        "totalUsers": 3,
        "freelancers": 1,
        "equipmentOwners": 1,
        "bothRoles": 0,
        "pendingRoleSelection": 1,
    }

    found = client.get("/api/users/search?q=omar", headers=auth_header(token)).json()
    assert [u["userName"] for u in found] == ["owner1"]

    for wildcard in ("%", "_"):
        assert client.get(f"/api/users/search?q={wildcard}", headers=auth_header(token)).json() == []

    owners = client.get("/api/users/search?userType=equipment_owner", headers=auth_header(token)).json()
    assert [u["email"] for u in owners] == ["o@x.com"]

    assert client.get("/api/users/9999", headers=auth_header(token)).status_code == 404
