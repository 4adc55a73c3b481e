"""
Identity service for user authentication and account operations.
"""

from typing import TYPE_CHECKING, Any, Dict, Optional

from fastapi.concurrency import run_in_threadpool

from luna.kernel.identity.jwt import IdentityClaim, JWTManager, TokenPair
from luna.kernel.identity.password import needs_rehash, verify_password
from luna.kernel.models.user import User, UserRegistration
from luna.logging_config import get_logger

if TYPE_CHECKING:
    from luna.kernel.directory import UserDirectory

logger = get_logger(__name__)

REMEMBER_ME_EXPIRES_IN = "30d"
DEFAULT_EXPIRES_IN = "7d"


class RefreshRejectedError(Exception):
    """A refresh token could not be exchanged."""

    def __init__(self, code: str):
        super().__init__(code)
        self.code = code


def claim_for(user: User) -> IdentityClaim:
    return IdentityClaim(user_id=user.id, email=user.email)


class IdentityService:
    """
    Service for user identity operations.

    Handles registration, authentication, token refresh and account changes.
    Tokens are never stored; logout has no server-side effect.
    """

    def __init__(self, directory: "UserDirectory", jwt_manager: JWTManager):
        self.directory = directory
        self.jwt_manager = jwt_manager

    async def register_user(self, registration: UserRegistration) -> tuple[User, TokenPair]:
        """
        Register a new user and issue their first token pair.

        Raises:
            UserAlreadyExistsError: If email already exists
        """
        user = await self.directory.create_user(registration)
        token_pair = self.jwt_manager.create_token_pair(claim_for(user))
        logger.info("User registered", extra={"user_id": user.id})
        return user, token_pair

    async def authenticate(
        self,
        email: str,
        password: str,
        remember_me: bool = False,
    ) -> Optional[tuple[User, TokenPair]]:
        """
        Authenticate a user and return tokens.

        Unknown email and wrong password are indistinguishable to the caller.

        Args:
            email: User's email
            password: Plain text password
            remember_me: Report the longer advisory expiry

        Returns:
            Tuple of (User, TokenPair) if successful, None otherwise
        """
        user = await self.directory.find_user_by_email(email)
        if not user:
            logger.info("Login failed: unknown email")
            return None

        if not await run_in_threadpool(verify_password, password, user.password_hash):
            logger.info("Login failed: bad password", extra={"user_id": user.id})
            return None

        if needs_rehash(user.password_hash):
            await self.directory.change_password(user.id, password)
            logger.info("Credential upgraded to current cost", extra={"user_id": user.id})

        await self.directory.update_last_login(user.id)
        user = await self.directory.find_user_by_id(user.id) or user

        expires_in = REMEMBER_ME_EXPIRES_IN if remember_me else DEFAULT_EXPIRES_IN
        token_pair = self.jwt_manager.create_token_pair(claim_for(user), expires_in)
        logger.info("User logged in", extra={"user_id": user.id})
        return user, token_pair

    async def refresh_tokens(self, refresh_token: str) -> tuple[User, TokenPair]:
        """
        Mint a new token pair from a refresh token.

        The old refresh token is not invalidated.

        Raises:
            RefreshRejectedError: code INVALID_REFRESH_TOKEN or USER_NOT_FOUND
        """
        claims = self.jwt_manager.verify_refresh_token(refresh_token)
        if not claims:
            logger.info("Refresh rejected: invalid token")
            raise RefreshRejectedError("INVALID_REFRESH_TOKEN")

        user = await self.directory.find_user_by_id(claims.user_id)
        if not user:
            logger.info("Refresh rejected: user gone", extra={"user_id": claims.user_id})
            raise RefreshRejectedError("USER_NOT_FOUND")

        return user, self.jwt_manager.create_token_pair(claim_for(user))

    async def logout(self, user_id: str) -> bool:
        """
        Log out a user.

        Tokens stay valid until they expire; the client discards them.
        """
        logger.info("User logged out", extra={"user_id": user_id})
        return True

    async def update_profile(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        """Apply profile changes. Returns None if the user does not exist."""
        return await self.directory.update_user(user_id, updates)

    async def check_password(self, user: User, password: str) -> bool:
        return await run_in_threadpool(verify_password, password, user.password_hash)

    async def change_password(self, user_id: str, new_password: str) -> bool:
        """Store a new credential. Existing tokens remain valid."""
        return await self.directory.change_password(user_id, new_password)

    async def delete_account(self, user_id: str) -> bool:
        return await self.directory.delete_user(user_id)
