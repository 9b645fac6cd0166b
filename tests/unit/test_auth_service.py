"""Unit tests for AuthService - bcrypt hashing and JWT round trips."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import jwt
import pytest

from saraswathi.models.user import User, UserRole
from saraswathi.services.auth_service import AuthService, hash_password, verify_password
from saraswathi.utils.errors import AccountExistsError, AuthenticationError

_SECRET = "test-secret-with-enough-length-for-hs256"


@pytest.fixture
def auth_service(user_provider) -> AuthService:
    return AuthService(user_provider, secret=_SECRET, expiry_days=7)


class TestPasswords:
    def test_hash_and_verify(self) -> None:
        hashed = hash_password("s3cret")
        assert hashed.startswith("$2b$10$")
        assert verify_password("s3cret", hashed)
        assert not verify_password("wrong", hashed)

    def test_malformed_hash(self) -> None:
        assert verify_password("s3cret", "not-a-bcrypt-hash") is False


class TestTokens:
    def test_issue_and_decode(self, auth_service: AuthService) -> None:
        user = User(email="admin@example.com", password_hash="x", name="A", role=UserRole.ADMIN)
        token = auth_service.issue_token(user)

        claims = jwt.decode(token, _SECRET, algorithms=["HS256"])
        assert claims["userId"] == user.id
        assert claims["email"] == "admin@example.com"
        assert claims["exp"] - claims["iat"] == 7 * 24 * 3600

        auth = auth_service.decode_token(token)
        assert auth.user_id == user.id
        assert auth.is_admin
        assert auth.token == token

    def test_wrong_secret(self, auth_service: AuthService) -> None:
        token = jwt.encode({"userId": "u1"}, "another-secret-of-sufficient-length", algorithm="HS256")
        with pytest.raises(AuthenticationError):
            auth_service.decode_token(token)

    def test_expired(self, auth_service: AuthService) -> None:
        past = datetime.now(tz=timezone.utc) - timedelta(days=1)
        token = jwt.encode({"userId": "u1", "exp": past}, _SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="Invalid token"):
            auth_service.decode_token(token)

    def test_missing_user_id_claim(self, auth_service: AuthService) -> None:
        token = jwt.encode({"email": "a@b.c"}, _SECRET, algorithm="HS256")
        with pytest.raises(AuthenticationError, match="userId"):
            auth_service.decode_token(token)

    def test_role_defaults_to_user(self, auth_service: AuthService) -> None:
        token = jwt.encode({"userId": "u1"}, _SECRET, algorithm="HS256")
        auth = auth_service.decode_token(token)
        assert auth.role == "user"
        assert auth.email is None

    def test_garbage(self, auth_service: AuthService) -> None:
        with pytest.raises(AuthenticationError):
            auth_service.decode_token("not.a.jwt")


class TestAccounts:
    async def test_register_then_login(self, auth_service: AuthService, user_provider) -> None:
        user, token = await auth_service.register("Scribe@Example.com", "s3cret", "Scribe")
        assert user.email == "scribe@example.com"
        assert user.password_hash != "s3cret"
        assert auth_service.decode_token(token).user_id == user.id

        stored = await user_provider.get_user_by_email("scribe@example.com")
        assert stored is not None

        logged_in, _ = await auth_service.login("scribe@example.com", "s3cret")
        assert logged_in.id == user.id

    async def test_register_duplicate(self, auth_service: AuthService) -> None:
        await auth_service.register("a@b.c", "pw", "A")
        with pytest.raises(AccountExistsError):
            await auth_service.register("A@B.C", "pw2", "A2")

    async def test_login_wrong_password(self, auth_service: AuthService) -> None:
        await auth_service.register("a@b.c", "pw", "A")
        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await auth_service.login("a@b.c", "nope")

    async def test_login_unknown_email(self, auth_service: AuthService) -> None:
        with pytest.raises(AuthenticationError, match="Invalid email or password"):
            await auth_service.login("ghost@example.com", "pw")
