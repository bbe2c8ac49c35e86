from sqlalchemy import select

from qr_ordering.models import User
from qr_ordering.services.accounts import hash_password, verify_password

ALICE = {"fullName": "Alice Admin", "email": "Alice@Example.com", "password": "s3cret"}


def test_password_hash_roundtrip():
    hashed = hash_password("s3cret")
    assert hashed != "s3cret"
    assert verify_password("s3cret", hashed)
    assert not verify_password("wrong", hashed)


async def test_register_and_login(db_session, client):
    r = await client.post("/api/auth/register", json=ALICE)
    assert r.status_code == 200
    user = r.json()["data"]
    assert user["email"] == "alice@example.com"
    assert user["full_name"] == "Alice Admin"
    assert user["role"] == "user"
    assert "password_hash" not in user

    stored = await db_session.scalar(select(User.password_hash).where(User.id == user["id"]))
    assert stored != "s3cret"

    r = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "s3cret"})
    assert r.status_code == 200
    assert r.json()["data"]["id"] == user["id"]


async def test_duplicate_email_rejected(db_session, client):
    await client.post("/api/auth/register", json=ALICE)
    r = await client.post("/api/auth/register", json=ALICE)
    assert r.status_code == 400
    assert r.json()["message"] == "User with this email already exists"


async def test_wrong_password_is_401(db_session, client):
    await client.post("/api/auth/register", json=ALICE)

    r = await client.post("/api/auth/login", json={"email": "alice@example.com", "password": "nope"})
    assert r.status_code == 401
    assert r.json()["message"] == "Invalid email or password"

    r = await client.post("/api/auth/login", json={"email": "nobody@example.com", "password": "s3cret"})
    assert r.status_code == 401


async def test_invalid_email_is_422(db_session, client):
    r = await client.post("/api/auth/register", json={**ALICE, "email": "not-an-email"})
    assert r.status_code == 422
    assert r.json()["success"] is False
