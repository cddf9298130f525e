"""Registration, login and refresh-token rotation tests."""

import logging
from datetime import UTC, datetime, timedelta
from unittest.mock import patch

import pytest
from sqlalchemy.orm import sessionmaker

import marketplace.services.auth as auth_module
from marketplace.models import RefreshToken, User
from marketplace.models.enums import Region, Role
from marketplace.schemas import LogoutResponse
from marketplace.services.auth import (
    AuthService,
    create_access_token,
    decode_access_token,
    decode_refresh_token,
)
from marketplace.services.errors import ConflictError, UnauthorizedError


def _register(client, email="newuser@example.com", **extra):
    return client.post(
        "/api/v1/auth/register",
        json={"email": email, "password": "password123", "name": "New User", **extra},
    )


def test_health_check(client):
    """Test health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_register_returns_token_pair_for_created_user(client):
    response = _register(client)
    assert response.status_code == 201
    data = response.json()

    assert data["token_type"] == "bearer"
    assert data["user"]["email"] == "newuser@example.com"
    assert data["user"]["role"] == "USER"

    access = decode_access_token(data["access_token"])
    refresh = decode_refresh_token(data["refresh_token"])
    for claims in (access, refresh):
        assert claims["sub"] == str(data["user"]["id"])
        assert claims["email"] == "newuser@example.com"
        assert claims["role"] == "USER"


def test_register_duplicate_email(client):
    """The first registration wins; the second is a conflict."""
    assert _register(client).status_code == 201

    response = _register(client)
    assert response.status_code == 409
    assert response.json() == {"detail": "User already exists", "error": "conflict"}


def test_register_short_password_rejected(client):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "short@example.com", "password": "123", "name": "Short"},
    )
    assert response.status_code == 422


@pytest.mark.parametrize(
    "currency, region",
    [("INR", Region.INDIA), ("USD", Region.FOREIGN), (None, Region.FOREIGN)],
)
def test_region_from_currency(client, currency, region):
    extra = {"currency": currency} if currency else {}
    response = _register(client, **extra)
    assert response.status_code == 201
    assert response.json()["user"]["region"] == region.value


def test_login(client, auth_headers):
    response = client.post(
        "/api/v1/auth/login", json={"email": "test@example.com", "password": "testpass123"}
    )
    assert response.status_code == 200
    data = response.json()
    assert data["user"]["id"] == auth_headers.user_id
    assert data["access_token"]
    assert data["refresh_token"]


def test_login_failures_are_indistinguishable(client, admin_headers):
    """Wrong password and unknown email give the same error."""
    wrong_password = client.post(
        "/api/v1/auth/login", json={"email": "admin@example.com", "password": "wrong"}
    )
    unknown_user = client.post(
        "/api/v1/auth/login", json={"email": "nouser@example.com", "password": "anything"}
    )

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.json() == unknown_user.json()
    assert wrong_password.json()["detail"] == "Invalid credentials"


def test_get_current_user(client, auth_headers):
    response = client.get("/api/v1/auth/me", headers=auth_headers)
    assert response.status_code == 200
    assert response.json()["email"] == "test@example.com"
    assert response.json()["region"] == "INDIA"


def test_unauthorized_access(client):
    """Test that endpoints require authentication."""
    response = client.get("/api/v1/tasks")
    # HTTPBearer answers 403 on older FastAPI releases
    assert response.status_code in (401, 403)


def test_refresh_token_cannot_authenticate_requests(client):
    data = _register(client).json()
    response = client.get(
        "/api/v1/auth/me", headers={"Authorization": f"Bearer {data['refresh_token']}"}
    )
    assert response.status_code == 401


def test_access_token_for_deleted_user(client, db):
    token = create_access_token(999999, "ghost@example.com")
    response = client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert response.status_code == 401


def test_refresh_rotates_once(client):
    """A refresh token can be exchanged exactly once."""
    refresh_token = _register(client).json()["refresh_token"]

    first = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert first.status_code == 200
    assert first.json()["refresh_token"] != refresh_token

    second = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert second.status_code == 401
    assert second.json()["detail"] == "Invalid refresh token"

    # The replacement is still good
    third = client.post(
        "/api/v1/auth/refresh", json={"refresh_token": first.json()["refresh_token"]}
    )
    assert third.status_code == 200


def test_refresh_with_access_token_fails(client):
    access_token = _register(client).json()["access_token"]
    response = client.post("/api/v1/auth/refresh", json={"refresh_token": access_token})
    assert response.status_code == 401


def test_refresh_with_garbage_fails(client):
    response = client.post("/api/v1/auth/refresh", json={"refresh_token": "not-a-jwt"})
    assert response.status_code == 401


def test_refresh_rejects_expired_stored_token(client, db):
    refresh_token = _register(client).json()["refresh_token"]
    stored = db.query(RefreshToken).filter(RefreshToken.token == refresh_token).first()
    stored.expires_at = datetime.now(UTC) - timedelta(minutes=1)
    db.commit()

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == 401


def test_logout_revokes_given_refresh_token(client):
    data = _register(client).json()
    headers = {"Authorization": f"Bearer {data['access_token']}"}

    response = client.post(
        "/api/v1/auth/logout", json={"refresh_token": data["refresh_token"]}, headers=headers
    )
    assert response.status_code == 200
    assert response.json()["success"] is True
    assert LogoutResponse.model_validate(response.json()) == LogoutResponse()

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": data["refresh_token"]})
    assert response.status_code == 401


def test_logout_without_body_revokes_all_sessions(client, db):
    data = _register(client).json()
    client.post(
        "/api/v1/auth/login", json={"email": "newuser@example.com", "password": "password123"}
    )
    user_id = data["user"]["id"]
    assert db.query(RefreshToken).filter(RefreshToken.user_id == user_id).count() == 2

    response = client.post(
        "/api/v1/auth/logout", headers={"Authorization": f"Bearer {data['access_token']}"}
    )
    assert response.status_code == 200
    assert db.query(RefreshToken).filter(RefreshToken.user_id == user_id).count() == 0


def test_logout_with_only_refresh_token(client):
    refresh_token = _register(client).json()["refresh_token"]

    response = client.post("/api/v1/auth/logout", json={"refresh_token": refresh_token})
    assert response.status_code == 200

    response = client.post("/api/v1/auth/refresh", json={"refresh_token": refresh_token})
    assert response.status_code == 401


class TestAuthService:
    """Service-level checks that don't need HTTP."""

    def test_register_conflict_raises(self, db):
        service = AuthService(db)
        service.register("dup@example.com", "password123", "Dup")
        with pytest.raises(ConflictError):
            service.register("dup@example.com", "password123", "Dup again")

    def test_login_unknown_email_raises(self, db):
        with pytest.raises(UnauthorizedError, match="Invalid credentials"):
            AuthService(db).login("nouser@example.com", "anything")

    def test_refresh_consumes_stored_row(self, db):
        service = AuthService(db)
        bundle = service.register("rot@example.com", "password123", "Rot")

        rotated = service.refresh_tokens(bundle.refresh_token)

        tokens = [row.token for row in db.query(RefreshToken).all()]
        assert bundle.refresh_token not in tokens
        assert rotated.refresh_token in tokens
        with pytest.raises(UnauthorizedError):
            service.refresh_tokens(bundle.refresh_token)

    def test_concurrent_refresh_only_one_wins(self, db, caplog):
        """Both callers load the stored row; only the first DELETE counts."""
        bundle = AuthService(db).register("race@example.com", "password123", "Race")
        rival_session = sessionmaker(autocommit=False, autoflush=False, bind=db.get_bind())()
        rival = AuthService(rival_session)
        rival_results = []
        expiry_checks = []
        real_as_aware = auth_module._as_aware

        def rival_rotates_first(value):
            # Runs after the row is loaded and before it is deleted
            expiry_checks.append(value)
            if len(expiry_checks) == 1:
                rival_results.append(rival.refresh_tokens(bundle.refresh_token))
            return real_as_aware(value)

        try:
            with (
                patch.object(auth_module, "_as_aware", side_effect=rival_rotates_first),
                caplog.at_level(logging.WARNING, logger="marketplace.services.auth"),
            ):
                with pytest.raises(UnauthorizedError, match="Invalid refresh token"):
                    AuthService(db).refresh_tokens(bundle.refresh_token)
        finally:
            rival_session.close()

        assert len(expiry_checks) == 2
        assert len(rival_results) == 1
        assert "already consumed" in caplog.text
        tokens = [row.token for row in db.query(RefreshToken).all()]
        assert tokens == [rival_results[0].refresh_token]

    def test_reset_admin_promotes_existing_user(self, db):
        service = AuthService(db)
        bundle = service.register("boss@example.com", "password123", "Boss")

        admin = service.reset_admin("boss@example.com", "newpass456")

        assert admin.id == bundle.user.id
        assert admin.role == Role.ADMIN
        assert service.authenticate("boss@example.com", "newpass456") is not None
        assert service.authenticate("boss@example.com", "password123") is None

    def test_reset_admin_creates_missing_admin(self, db):
        admin = AuthService(db).reset_admin("root@example.com", "Admin@123")
        stored = db.query(User).filter(User.email == "root@example.com").first()
        assert stored.id == admin.id
        assert stored.role == "ADMIN"
        assert stored.region == "INDIA"
