"""
Authentication tests.

Verifies:
- Open registration as "user"; privileged roles need their unlock code
- Password strength rules
- Login, token refresh rotation, logout revocation
- Deactivated users lose access immediately
"""

import pytest

from stockroom.extensions import db
from stockroom.models import SecurityEvent
from stockroom.services import auth_service, session_service
from stockroom.services.auth_service import PasswordValidationError

from conftest import PASSWORD, auth_headers, get_auth_token


def _register(client, **overrides):
    body = {
        "username": "newbie",
        "email": "newbie@stockroom.test",
        "password": PASSWORD,
        "first_name": "New",
        "last_name": "Bie",
    }
    body.update(overrides)
    return client.post("/api/auth/register", json=body)


class TestRegistration:

    def test_register_as_user(self, client, db_session):
        resp = _register(client)

        assert resp.status_code == 201
        body = resp.get_json()
        assert body["error"] is False
        assert body["user"]["role"] == "user"
        assert "password_hash" not in body["user"]
        assert body["bearer"]["access_token"]
        assert body["bearer"]["refresh_token"]
        assert "RECORD_TRADES" in body["permissions"]
        assert "DELETE_PRODUCTS" not in body["permissions"]

    def test_registration_token_works(self, client, db_session):
        token = _register(client).get_json()["bearer"]["access_token"]

        resp = client.get("/api/auth/me", headers=auth_headers(token))

        assert resp.status_code == 200
        assert resp.get_json()["data"]["user"]["username"] == "newbie"

    @pytest.mark.parametrize(
        "role,code",
        [("admin", "admin-unlock"), ("staff", "staff-unlock"), ("coordinator", "coordinator-unlock")],
    )
    def test_privileged_role_with_code(self, client, db_session, role, code):
        resp = _register(client, role=role, role_code=code)
        assert resp.status_code == 201
        assert resp.get_json()["user"]["role"] == role

    @pytest.mark.parametrize("code", [None, "", "wrong", "staff-unlock", "\u00e9", "admin-unl\u00f6ck", 42])
    def test_admin_without_valid_code_is_403(self, client, db_session, code):
        resp = _register(client, role="admin", role_code=code)

        assert resp.status_code == 403
        assert db.session.query(SecurityEvent).filter_by(event_type="REGISTRATION_DENIED").count() == 1

    def test_unknown_role_is_400(self, client, db_session):
        assert _register(client, role="superuser").status_code == 400

    @pytest.mark.parametrize(
        "password",
        ["short1!", "alllowercase1!", "ALLUPPERCASE1!", "NoDigitsHere!", "NoSpecials123"],
    )
    def test_weak_password_is_400(self, client, db_session, password):
        resp = _register(client, password=password)
        assert resp.status_code == 400
        assert resp.get_json()["error"] is True

    def test_missing_password_is_400(self, client, db_session):
        resp = _register(client, password=None)
        assert resp.status_code == 400

    def test_invalid_email_is_400(self, client, db_session):
        assert _register(client, email="not-an-email").status_code == 400

    def test_duplicate_username_is_409(self, client, users):
        resp = _register(client, username="admin")
        assert resp.status_code == 409

    def test_unknown_field_is_400(self, client, db_session):
        resp = _register(client, is_active=False)
        assert resp.status_code == 400


class TestLogin:

    def test_login_by_username_and_email(self, client, users):
        assert get_auth_token(client, "staff") is not None
        assert get_auth_token(client, "staff@stockroom.test") is not None

    def test_wrong_password_is_401_and_logged(self, client, users):
        resp = client.post("/api/auth/login", json={"username": "staff", "password": "Nope123!x"})

        assert resp.status_code == 401
        assert db.session.query(SecurityEvent).filter_by(event_type="LOGIN_FAILED").count() == 1

    def test_missing_fields_is_400(self, client, users):
        assert client.post("/api/auth/login", json={"username": "staff"}).status_code == 400

    @pytest.mark.parametrize(
        "body",
        [{"username": 5, "password": PASSWORD}, {"username": "staff", "password": 123}, ["staff", PASSWORD]],
    )
    def test_malformed_credentials_are_400(self, client, users, body):
        resp = client.post("/api/auth/login", json=body)

        assert resp.status_code == 400
        assert resp.get_json()["error"] is True

    def test_inactive_user_cannot_login(self, client, users, headers_for):
        client.delete(f"/api/users/{users['user'].id}", headers=headers_for("admin"))
        assert get_auth_token(client, "user") is None


class TestSessions:

    def test_refresh_rotates_pair(self, client, users):
        login = client.post("/api/auth/login", json={"username": "staff", "password": PASSWORD}).get_json()
        old = login["bearer"]

        resp = client.post("/api/auth/refresh", json={"refresh_token": old["refresh_token"]})

        assert resp.status_code == 200
        new = resp.get_json()["bearer"]
        assert new["access_token"] != old["access_token"]
        assert client.get("/api/auth/me", headers=auth_headers(new["access_token"])).status_code == 200
        assert client.get("/api/auth/me", headers=auth_headers(old["access_token"])).status_code == 401

        # a refresh token works once
        resp = client.post("/api/auth/refresh", json={"refresh_token": old["refresh_token"]})
        assert resp.status_code == 401

    def test_refresh_requires_token(self, client, db_session):
        assert client.post("/api/auth/refresh", json={}).status_code == 400
        assert client.post("/api/auth/refresh", json={"refresh_token": "garbage"}).status_code == 401

    def test_logout_revokes(self, client, users):
        token = get_auth_token(client, "coordinator")

        resp = client.post("/api/auth/logout", headers=auth_headers(token))
        assert resp.status_code == 200

        resp = client.get("/api/auth/me", headers=auth_headers(token))
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Invalid or expired token"

    def test_deactivation_revokes_sessions(self, client, users, headers_for):
        token = get_auth_token(client, "user")

        resp = client.delete(f"/api/users/{users['user'].id}", headers=headers_for("admin"))
        assert resp.status_code == 200

        assert client.get("/api/auth/me", headers=auth_headers(token)).status_code == 401

    def test_missing_header_is_401(self, client, db_session):
        resp = client.get("/api/auth/me")
        assert resp.status_code == 401
        assert resp.get_json()["message"] == "Authentication required"


class TestAuthService:

    def test_password_is_hashed(self, users):
        assert users["admin"].password_hash != PASSWORD
        assert auth_service.verify_password(PASSWORD, users["admin"].password_hash)
        assert not auth_service.verify_password("Wrong123!", users["admin"].password_hash)

    def test_malformed_hash_never_matches(self):
        assert auth_service.verify_password(PASSWORD, "not-a-bcrypt-hash") is False

    def test_validate_password_strength(self):
        auth_service.validate_password_strength(PASSWORD)
        with pytest.raises(PasswordValidationError):
            auth_service.validate_password_strength("weak")

    def test_tokens_stored_hashed(self, users):
        session, pair = session_service.create_session(users["staff"], user_agent="pytest", ip_address="127.0.0.1")

        assert session.access_token_hash == session_service.hash_token(pair.access_token)
        assert session.access_token_hash != pair.access_token
        assert session_service.validate_session(pair.access_token).user.id == users["staff"].id

    def test_revoke_all_user_sessions(self, users):
        for _ in range(2):
            session_service.create_session(users["staff"], user_agent=None, ip_address=None)

        assert session_service.revoke_all_user_sessions(users["staff"].id) == 2
        assert session_service.revoke_all_user_sessions(users["staff"].id) == 0
