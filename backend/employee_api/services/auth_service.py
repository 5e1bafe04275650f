"""
Account registration, login and profile lookup.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from functools import lru_cache
from typing import Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from employee_api.core.exceptions import AuthError, ConflictError, NotFoundError, ValidationError
from employee_api.core.security import (
    get_password_hash,
    password_policy_message,
    validate_password_strength,
    verify_password,
)
from employee_api.core.tokens import TokenClaims, TokenService, get_token_service
from employee_api.models.user import User
from employee_api.services.store import store_errors

logger = logging.getLogger("employee_api.auth")


@dataclass(frozen=True)
class LoginResult:
    token: str
    user: User
    expires_at: datetime


@lru_cache(maxsize=1)
def _placeholder_hash() -> str:
    # Checked when the username is unknown so both failure paths cost one bcrypt round
    return get_password_hash("placeholder-password")


def _login_failed() -> AuthError:
    return AuthError("Authentication failed", "Invalid username or password")


class AuthService:
    def __init__(self, db: AsyncSession, token_service: Optional[TokenService] = None):
        self.db = db
        self.tokens = token_service or get_token_service()

    async def _exists(self, *criteria) -> bool:
        async with store_errors(self.db, "users"):
            count = await self.db.scalar(select(func.count()).select_from(User).where(*criteria))
        return bool(count)

    async def _find_by_username(self, username: str) -> Optional[User]:
        async with store_errors(self.db, "users"):
            return await self.db.scalar(select(User).where(User.username == username))

    def _check_password_policy(self, password: str) -> None:
        if not validate_password_strength(password):
            raise ValidationError("Invalid password", password_policy_message())

    async def register(self, username: str, email: str, password: str) -> User:
        """
        Create a new account.

        Raises:
            ValidationError: Password does not satisfy the policy
            ConflictError: Username or email is already taken
        """
        self._check_password_policy(password)

        if await self._exists(User.username == username):
            raise ConflictError("Username already exists", "Please choose a different username")
        if await self._exists(User.email == email):
            raise ConflictError("Email already exists", "Please use a different email address")

        user = User(username=username, email=email, password_hash=get_password_hash(password))
        async with store_errors(self.db, "users"):
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)

        logger.info(f"Registered user {user.username} (id {user.id})")
        return user

    async def login(self, username: str, password: str, now: Optional[datetime] = None) -> LoginResult:
        """
        Check credentials and issue an access token.

        Unknown usernames and wrong passwords fail with the same error.
        """
        user = await self._find_by_username(username)
        if user is None:
            verify_password(password, _placeholder_hash())
            logger.info(f"Failed login for unknown user {username!r}")
            raise _login_failed()

        if not verify_password(password, user.password_hash):
            logger.info(f"Failed login for user {username!r}")
            raise _login_failed()

        issued = self.tokens.issue(user, now)
        logger.info(f"User {user.username} logged in")
        return LoginResult(token=issued.token, user=user, expires_at=issued.expires_at)

    async def get_profile(self, claims: TokenClaims) -> User:
        async with store_errors(self.db, "users"):
            user = await self.db.get(User, claims.user_id)
        if user is None:
            raise NotFoundError("User not found", "User with the specified ID does not exist")
        return user

    async def ensure_user(
        self,
        username: str,
        email: str,
        password: str,
        reset_password: bool = False,
    ) -> Tuple[User, bool]:
        """
        Create a user unless the username is taken.

        Args:
            reset_password: Replace the password of an existing user

        Returns:
            (user, created)
        """
        self._check_password_policy(password)

        user = await self._find_by_username(username)
        if user is not None:
            if reset_password:
                user.password_hash = get_password_hash(password)
                async with store_errors(self.db, "users"):
                    await self.db.commit()
                logger.info(f"Password reset for user {username}")
            return user, False

        user = User(username=username, email=email, password_hash=get_password_hash(password))
        async with store_errors(self.db, "users"):
            self.db.add(user)
            await self.db.commit()
            await self.db.refresh(user)
        logger.info(f"Created user {username}")
        return user, True
