"""Password hashing and JWT issue/verification.

Tokens are HS256 JWTs carrying ``userId``, ``email`` and ``role`` claims and
expire after ``jwt_expiry_days`` (7 by default).  Passwords are hashed with
bcrypt; hashing runs in a worker thread because bcrypt is deliberately slow.
"""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone

import bcrypt
import jwt

from saraswathi.interfaces.user_provider import IUserProvider
from saraswathi.models.user import AuthContext, User
from saraswathi.utils.errors import AccountExistsError, AuthenticationError
from saraswathi.utils.logging import get_logger

_ALGORITHM = "HS256"
_BCRYPT_ROUNDS = 10


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt(rounds=_BCRYPT_ROUNDS)).decode(
        "utf-8"
    )


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Malformed stored hash.
        return False


class AuthService:
    """Registers users, checks credentials and mints/validates tokens."""

    def __init__(self, users: IUserProvider, secret: str, expiry_days: int = 7) -> None:
        self._users = users
        self._secret = secret
        self._expiry = timedelta(days=expiry_days)
        self._logger = get_logger(__name__)

    # ------------------------------------------------------------------
    # Tokens
    # ------------------------------------------------------------------

    def issue_token(self, user: User) -> str:
        now = datetime.now(tz=timezone.utc)  # noqa: UP017
        claims = {
            "userId": user.id,
            "email": user.email,
            "role": user.role.value,
            "iat": now,
            "exp": now + self._expiry,
        }
        return jwt.encode(claims, self._secret, algorithm=_ALGORITHM)

    def decode_token(self, token: str) -> AuthContext:
        """Verify *token* and return the identity it carries.

        Raises
        ------
        AuthenticationError
            If the signature is invalid, the token expired, or claims are missing.
        """
        try:
            claims = jwt.decode(token, self._secret, algorithms=[_ALGORITHM])
        except jwt.PyJWTError as exc:
            raise AuthenticationError(f"Invalid token: {exc}") from exc

        user_id = claims.get("userId")
        if not user_id:
            raise AuthenticationError("Token has no userId claim")
        return AuthContext(
            user_id=str(user_id),
            email=claims.get("email"),
            role=claims.get("role") or "user",
            token=token,
        )

    # ------------------------------------------------------------------
    # Accounts
    # ------------------------------------------------------------------

    async def register(self, email: str, password: str, name: str) -> tuple[User, str]:
        """Create an account and return it with a fresh token.

        Raises
        ------
        AccountExistsError
            If the email is already registered.
        """
        if await self._users.get_user_by_email(email) is not None:
            raise AccountExistsError()

        password_hash = await asyncio.to_thread(hash_password, password)
        user = await self._users.create_user(
            User(email=email, password_hash=password_hash, name=name)
        )
        self._logger.info("user_registered", user_id=user.id)
        return user, self.issue_token(user)

    async def login(self, email: str, password: str) -> tuple[User, str]:
        """Check credentials and return the user with a fresh token.

        Raises
        ------
        AuthenticationError
            If the email is unknown or the password does not match.
        """
        user = await self._users.get_user_by_email(email)
        if user is None:
            raise AuthenticationError("Invalid email or password")
        if not await asyncio.to_thread(verify_password, password, user.password_hash):
            self._logger.info("login_rejected", user_id=user.id)
            raise AuthenticationError("Invalid email or password")
        self._logger.info("user_logged_in", user_id=user.id)
        return user, self.issue_token(user)
