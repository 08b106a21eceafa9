from datetime import datetime, timedelta, timezone
from uuid import uuid4

from certiai.db import SessionLocal
from certiai.models.user import User


def _register(client, email=None, password="hunter2hunter2", **extra):
    payload = {
        "email": email or f"new-{uuid4().hex[:8]}@example.com",
        "password": password,
        "fullName": "Ada Lovelace",
        "role": "INDIVIDUAL",
    }
    payload.update(extra)
    return client.post("/api/auth/register", json=payload), payload


def _login(client, email, password):
    return client.post("/api/auth/login", json={"email": email, "password": password})


def _user_by_email(email):
    db = SessionLocal()
    try:
        return db.query(User).filter(User.email == email).first()
    finally:
        db.close()


def test_register_sends_code_and_hides_password(client, mailer):
    r, payload = _register(client, institutionName="Uni of Tests")

    assert r.status_code == 201
    user = r.json()["data"]["user"]
    assert user["email"] == payload["email"]
    assert user["fullName"] == "Ada Lovelace"
    assert user["institutionName"] == "Uni of Tests"
    assert user["isEmailVerified"] is False
    assert "password" not in user and "passwordHash" not in user

    kind, to, code = mailer.sent[-1]
    assert (kind, to) == ("verify", payload["email"])
    assert len(code) == 5 and code.isdigit()


def test_register_duplicate_email_conflicts(client):
    r, payload = _register(client)
    assert r.status_code == 201

    again, _ = _register(client, email=payload["email"].upper())
    assert again.status_code == 409
    assert again.json()["message"] == "Email already registered"


def test_register_validation(client):
    r, _ = _register(client, password="short")
    assert r.status_code == 400
    assert r.json()["success"] is False

    r, _ = _register(client, email="not-an-email")
    assert r.status_code == 400

    r, _ = _register(client, role="SUPERUSER")
    assert r.status_code == 400


def test_register_survives_mail_failure(client, mailer):
    mailer.fail = True
    r, payload = _register(client)
    assert r.status_code == 201
    assert _user_by_email(payload["email"]) is not None


def test_verify_email_flow(client, mailer):
    _, payload = _register(client)
    code = mailer.last_code("verify")

    r = client.post("/api/auth/verify-email", json={"code": code})
    assert r.status_code == 200
    assert r.json()["message"] == "Email verified successfully"

    user = _user_by_email(payload["email"])
    assert user.is_email_verified is True
    assert user.verification_code is None

    # code is eenmalig
    assert client.post("/api/auth/verify-email", json={"code": code}).status_code == 400


def test_verify_email_rejects_malformed_and_expired_codes(client, mailer):
    assert client.post("/api/auth/verify-email", json={"code": "12"}).status_code == 400
    assert client.post("/api/auth/verify-email", json={"code": "abcde"}).status_code == 400

    _, payload = _register(client)
    code = mailer.last_code("verify")

    db = SessionLocal()
    user = db.query(User).filter(User.email == payload["email"]).first()
    user.verification_code_expiry = datetime.now(timezone.utc) - timedelta(minutes=1)
    db.commit()
    db.close()

    r = client.post("/api/auth/verify-email", json={"code": code})
    assert r.status_code == 400
    assert r.json()["message"] == "Invalid or expired verification code"


def test_login_and_profile(client):
    _, payload = _register(client)

    r = _login(client, payload["email"], payload["password"])
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["tokenType"] == "Bearer"
    assert data["user"]["email"] == payload["email"]

    me = client.get("/api/auth/profile", headers={"Authorization": f"Bearer {data['accessToken']}"})
    assert me.status_code == 200
    assert me.json()["data"]["email"] == payload["email"]


def test_login_rejects_bad_credentials(client):
    _, payload = _register(client)

    wrong = _login(client, payload["email"], "wrong-password")
    assert wrong.status_code == 401
    assert wrong.json()["message"] == "Invalid credentials"

    unknown = _login(client, "nobody@example.com", "whatever123")
    assert unknown.status_code == 401
    assert unknown.json() == wrong.json()


def test_forgot_password_does_not_reveal_accounts(client, mailer):
    _, payload = _register(client)

    known = client.post("/api/auth/forgot-password", json={"email": payload["email"]})
    unknown = client.post("/api/auth/forgot-password", json={"email": "ghost@example.com"})

    assert known.status_code == unknown.status_code == 200
    assert known.json() == unknown.json()
    assert [k for k, to, _ in mailer.sent if to == payload["email"]] == ["verify", "reset"]
    assert all(to != "ghost@example.com" for _, to, _ in mailer.sent)


def test_reset_password_flow(client, mailer):
    _, payload = _register(client)
    client.post("/api/auth/forgot-password", json={"email": payload["email"]})
    code = mailer.last_code("reset")

    r = client.post("/api/auth/reset-password", json={"code": code, "newPassword": "brand-new-pass"})
    assert r.status_code == 200

    assert _login(client, payload["email"], payload["password"]).status_code == 401
    assert _login(client, payload["email"], "brand-new-pass").status_code == 200

    reused = client.post("/api/auth/reset-password", json={"code": code, "newPassword": "another-pass"})
    assert reused.status_code == 400
    assert reused.json()["message"] == "Invalid or expired reset code"


def test_reset_password_validation(client):
    r = client.post("/api/auth/reset-password", json={"code": "12345", "newPassword": "short"})
    assert r.status_code == 400


def test_profile_requires_auth(client):
    assert client.get("/api/auth/profile").status_code == 401
