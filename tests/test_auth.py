"""Registration, login, logout blacklisting, and password-change revocation tests."""
from datetime import datetime, timedelta

import pytest

from extensions import db
from models import ROLE_GOVERNMENT_OFFICIAL, ROLE_LOCALITY_MEMBER, BlacklistedToken
from utils.session_revocation import blacklist_token, is_blacklisted, prune_expired_tokens

PASSWORD = "Secret123"


def bearer(token):
    return {"Authorization": f"Bearer {token}"}


def _register_body(**overrides):
    body = {
        "name": "Meera Iyer",
        "email": "meera@grievances.org",
        "password": PASSWORD,
        "phoneNumber": "9000000001",
        "address": "Ward 7, Jayanagar",
        "signInType": ROLE_LOCALITY_MEMBER,
    }
    body.update(overrides)
    return body


class TestRegistration:
    def test_register_logs_user_in(self, client):
        resp = client.post("/api/auth/register", json=_register_body(email="  Meera@Grievances.ORG "))
        assert resp.status_code == 201
        body = resp.get_json()
        assert body["message"] == "Registration successful. You are now logged in."
        user = body["data"]["user"]
        assert user["email"] == "meera@grievances.org"
        assert user["signInType"] == ROLE_LOCALITY_MEMBER
        assert user["isActive"] is True
        assert user["lastLogin"] is not None
        me = client.get("/api/auth/me", headers=bearer(body["data"]["token"]))
        assert me.status_code == 200
        assert me.get_json()["data"]["id"] == user["id"]

    @pytest.mark.parametrize("sign_in_type, role", [(0, ROLE_LOCALITY_MEMBER), ("1", ROLE_GOVERNMENT_OFFICIAL)])
    def test_legacy_numeric_sign_in_type(self, client, sign_in_type, role):
        resp = client.post("/api/auth/register", json=_register_body(signInType=sign_in_type))
        assert resp.status_code == 201
        assert resp.get_json()["data"]["user"]["signInType"] == role

    def test_unknown_sign_in_type(self, client):
        resp = client.post("/api/auth/register", json=_register_body(signInType="Mayor"))
        assert resp.status_code == 400

    def test_duplicate_email_is_conflict(self, client):
        assert client.post("/api/auth/register", json=_register_body()).status_code == 201
        resp = client.post("/api/auth/register", json=_register_body(email="MEERA@grievances.org"))
        assert resp.status_code == 409

    @pytest.mark.parametrize("password", ["short1", "x" * 101])
    def test_password_policy(self, client, password):
        resp = client.post("/api/auth/register", json=_register_body(password=password))
        assert resp.status_code == 400
        assert resp.get_json()["success"] is False

    @pytest.mark.parametrize("password", ["lettersonly", "1234567890", "x" * 100])
    def test_length_is_the_only_password_rule(self, client, password):
        resp = client.post("/api/auth/register", json=_register_body(password=password))
        assert resp.status_code == 201

    def test_invalid_email(self, client):
        resp = client.post("/api/auth/register", json=_register_body(email="not-an-email"))
        assert resp.status_code == 400


class TestLogin:
    def test_login_returns_fresh_token(self, client, citizen):
        resp = client.post("/api/auth/login", json={"email": citizen.user["email"], "password": PASSWORD})
        assert resp.status_code == 200
        token = resp.get_json()["data"]["token"]
        assert client.get("/api/auth/me", headers=bearer(token)).status_code == 200

    def test_wrong_password(self, client, citizen):
        resp = client.post("/api/auth/login", json={"email": citizen.user["email"], "password": "Wrong12345"})
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid email or password."

    def test_unknown_email(self, client):
        resp = client.post("/api/auth/login", json={"email": "ghost@grievances.org", "password": PASSWORD})
        assert resp.status_code == 401

    def test_deactivated_account_cannot_login(self, client, citizen):
        client.put("/api/user/deactivate", headers=citizen.headers)
        resp = client.post("/api/auth/login", json={"email": citizen.user["email"], "password": PASSWORD})
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Account is deactivated. Please contact support."


class TestBearerValidation:
    def test_garbage_token(self, client):
        resp = client.get("/api/auth/me", headers=bearer("not-a-jwt"))
        assert resp.status_code == 401

    def test_missing_scheme(self, client, citizen):
        resp = client.get("/api/auth/me", headers={"Authorization": citizen.token})
        assert resp.status_code == 401

    def test_expired_token(self, app, client, citizen):
        app.config["JWT_EXPIRY_MINUTES"] = -1
        resp = client.post("/api/auth/login", json={"email": citizen.user["email"], "password": PASSWORD})
        expired = resp.get_json()["data"]["token"]
        assert client.get("/api/auth/me", headers=bearer(expired)).status_code == 401


class TestLogout:
    def test_logout_revokes_only_that_token(self, client, citizen):
        second = client.post("/api/auth/login", json={"email": citizen.user["email"], "password": PASSWORD})
        other_token = second.get_json()["data"]["token"]

        resp = client.post("/api/auth/logout", headers=citizen.headers)
        assert resp.status_code == 200
        assert resp.get_json()["message"] == "Logout successful."

        assert client.get("/api/auth/me", headers=citizen.headers).status_code == 401
        assert client.get("/api/auth/me", headers=bearer(other_token)).status_code == 200

    def test_logout_records_natural_expiry(self, app, client, citizen):
        client.post("/api/auth/logout", headers=citizen.headers)
        with app.app_context():
            entry = BlacklistedToken.query.filter_by(token=citizen.token).one()
            assert entry.user_id == citizen.user["id"]
            assert entry.expires_at > datetime.utcnow() + timedelta(minutes=60)


class TestPasswordChange:
    def test_change_revokes_earlier_tokens(self, client, citizen):
        resp = client.put(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "Fresh4567"},
            headers=citizen.headers,
        )
        assert resp.status_code == 200
        new_token = resp.get_json()["data"]["token"]

        stale = client.get("/api/auth/me", headers=citizen.headers)
        assert stale.status_code == 401
        assert client.get("/api/auth/me", headers=bearer(new_token)).status_code == 200

        email = citizen.user["email"]
        assert client.post("/api/auth/login", json={"email": email, "password": PASSWORD}).status_code == 401
        assert client.post("/api/auth/login", json={"email": email, "password": "Fresh4567"}).status_code == 200

    def test_wrong_current_password(self, client, citizen):
        resp = client.put(
            "/api/auth/change-password",
            json={"currentPassword": "Nope12345", "newPassword": "Fresh4567"},
            headers=citizen.headers,
        )
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Current password is incorrect."
        assert client.get("/api/auth/me", headers=citizen.headers).status_code == 200

    def test_weak_new_password(self, client, citizen):
        resp = client.put(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "short1"},
            headers=citizen.headers,
        )
        assert resp.status_code == 400

    def test_letters_only_new_password_accepted(self, client, citizen):
        resp = client.put(
            "/api/auth/change-password",
            json={"currentPassword": PASSWORD, "newPassword": "onlyletters"},
            headers=citizen.headers,
        )
        assert resp.status_code == 200


class TestBlacklistLedger:
    def test_insert_is_idempotent(self, ctx):
        expires = datetime.utcnow() + timedelta(hours=1)
        assert blacklist_token("token-a", "user-1", expires) is True
        assert blacklist_token("token-a", "user-1", expires) is False
        assert BlacklistedToken.query.filter_by(token="token-a").count() == 1

    def test_prune_only_removes_expired(self, ctx):
        now = datetime(2025, 6, 1, 12, 0, 0)
        blacklist_token("expired", "user-1", now - timedelta(seconds=1))
        blacklist_token("boundary", "user-1", now)
        blacklist_token("live", "user-1", now + timedelta(hours=1))

        assert prune_expired_tokens(now=now) == 1
        remaining = {row.token for row in BlacklistedToken.query.all()}
        assert remaining == {"boundary", "live"}

    def test_expired_entries_no_longer_match(self, ctx):
        now = datetime(2025, 6, 1, 12, 0, 0)
        blacklist_token("old", "user-1", now - timedelta(minutes=5))
        assert is_blacklisted("old", now=now) is False
        assert is_blacklisted("old", now=now - timedelta(minutes=10)) is True

    def test_entry_still_matches_at_expiry_instant(self, ctx):
        now = datetime(2025, 6, 1, 12, 0, 0)
        blacklist_token("edge", "user-1", now)
        assert is_blacklisted("edge", now=now) is True
        assert prune_expired_tokens(now=now) == 0
        assert is_blacklisted("edge", now=now + timedelta(microseconds=1)) is False

    def test_prune_command(self, app):
        with app.app_context():
            blacklist_token("stale", "user-1", datetime.utcnow() - timedelta(days=1))
            db.session.commit()
        result = app.test_cli_runner().invoke(args=["blacklist-prune"])
        assert result.exit_code == 0
        assert "Removed 1" in result.output
