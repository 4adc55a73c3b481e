"""
FastAPI dependencies for authentication, storage and services.
"""

from typing import Annotated, Optional

from fastapi import Depends, Request, status

from luna.ai.interpreter import DreamInterpreter
from luna.api.errors import ApiError
from luna.dreams.store import DreamStore
from luna.kernel.directory import UserDirectory
from luna.kernel.identity.identity_service import IdentityService
from luna.kernel.identity.jwt import (
    IdentityClaim,
    JWTManager,
    extract_bearer_token,
    get_jwt_manager,
)
from luna.kernel.models.user import SubscriptionStatus, User
from luna.kernel.store import InMemoryStore, KeyValueStore
from luna.logging_config import get_logger, user_id_var

logger = get_logger(__name__)

_BEARER_CHALLENGE = {"WWW-Authenticate": "Bearer"}

# Process-wide singletons; tests swap them via app.dependency_overrides
_store: Optional[KeyValueStore] = None
_interpreter: Optional[DreamInterpreter] = None


def get_store() -> KeyValueStore:
    global _store
    if _store is None:
        _store = InMemoryStore()
    return _store


def get_user_directory(store: Annotated[KeyValueStore, Depends(get_store)]) -> UserDirectory:
    return UserDirectory(store)


def get_dream_store(store: Annotated[KeyValueStore, Depends(get_store)]) -> DreamStore:
    return DreamStore(store)


def get_interpreter() -> DreamInterpreter:
    global _interpreter
    if _interpreter is None:
        _interpreter = DreamInterpreter()
    return _interpreter


Directory = Annotated[UserDirectory, Depends(get_user_directory)]
Dreams = Annotated[DreamStore, Depends(get_dream_store)]
Interpreter = Annotated[DreamInterpreter, Depends(get_interpreter)]
Tokens = Annotated[JWTManager, Depends(get_jwt_manager)]


def get_identity_service(directory: Directory, jwt_manager: Tokens) -> IdentityService:
    return IdentityService(directory, jwt_manager)


Identity = Annotated[IdentityService, Depends(get_identity_service)]


async def get_current_identity(
    request: Request,
    directory: Directory,
    jwt_manager: Tokens,
) -> IdentityClaim:
    """
    Authenticate the request from its bearer token or raise 401.

    The token is checked first; the directory lookup rejects tokens whose
    account has since been deleted.
    """
    try:
        token = extract_bearer_token(request.headers.get("authorization"))
        if not token:
            raise ApiError(
                status.HTTP_401_UNAUTHORIZED,
                "Access token is required",
                "MISSING_TOKEN",
                headers=_BEARER_CHALLENGE,
            )

        claims = jwt_manager.verify_access_token(token)
        if not claims:
            raise ApiError(
                status.HTTP_401_UNAUTHORIZED,
                "Invalid or expired access token",
                "INVALID_TOKEN",
                headers=_BEARER_CHALLENGE,
            )

        user = await directory.find_user_by_id(claims.user_id)
        if not user:
            raise ApiError(
                status.HTTP_401_UNAUTHORIZED,
                "User not found",
                "USER_NOT_FOUND",
                headers=_BEARER_CHALLENGE,
            )
    except ApiError:
        raise
    except Exception:
        logger.exception("Authentication failed unexpectedly")
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            "Authentication failed",
            "AUTH_FAILED",
            headers=_BEARER_CHALLENGE,
        )

    identity = claims.identity()
    user_id_var.set(identity.user_id)
    request.state.user = identity
    return identity


async def get_current_identity_optional(
    request: Request,
    directory: Directory,
    jwt_manager: Tokens,
) -> Optional[IdentityClaim]:
    """Same as get_current_identity but yields None instead of failing."""
    try:
        token = extract_bearer_token(request.headers.get("authorization"))
        if not token:
            return None
        claims = jwt_manager.verify_access_token(token)
        if not claims:
            return None
        if not await directory.find_user_by_id(claims.user_id):
            return None
    except Exception as exc:
        logger.warning("Optional auth failed: %s", exc)
        return None

    identity = claims.identity()
    user_id_var.set(identity.user_id)
    request.state.user = identity
    return identity


CurrentIdentity = Annotated[IdentityClaim, Depends(get_current_identity)]
OptionalIdentity = Annotated[Optional[IdentityClaim], Depends(get_current_identity_optional)]


async def _load_authenticated_user(
    identity: Optional[IdentityClaim],
    directory: UserDirectory,
) -> User:
    if identity is None:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "Authentication required", "AUTH_REQUIRED")

    user = await directory.find_user_by_id(identity.user_id)
    if not user:
        raise ApiError(status.HTTP_401_UNAUTHORIZED, "User not found", "USER_NOT_FOUND")
    return user


async def require_email_verification(
    identity: OptionalIdentity,
    directory: Directory,
) -> User:
    """Require an authenticated user whose email is verified."""
    user = await _load_authenticated_user(identity, directory)
    if not user.is_email_verified:
        raise ApiError(status.HTTP_403_FORBIDDEN, "Email verification required", "EMAIL_NOT_VERIFIED")
    return user


async def require_active_subscription(
    identity: OptionalIdentity,
    directory: Directory,
) -> User:
    """Require an authenticated user with an active subscription."""
    user = await _load_authenticated_user(identity, directory)
    if user.subscription.status != SubscriptionStatus.ACTIVE:
        raise ApiError(status.HTTP_403_FORBIDDEN, "Active subscription required", "SUBSCRIPTION_REQUIRED")
    return user


VerifiedUser = Annotated[User, Depends(require_email_verification)]
SubscribedUser = Annotated[User, Depends(require_active_subscription)]
