"""
Identity Core - credentials, tokens and account operations.
"""

from luna.kernel.identity.password import (
    PasswordHasher,
    PasswordValidation,
    hash_password,
    needs_rehash,
    is_valid_email,
    validate_password,
    verify_password,
)
from luna.kernel.identity.jwt import (
    IdentityClaim,
    JWTManager,
    TokenClaims,
    TokenConfig,
    TokenPair,
    compute_expiry_timestamp,
    extract_bearer_token,
    get_jwt_manager,
)
from luna.kernel.identity.identity_service import IdentityService, RefreshRejectedError

__all__ = [
    "PasswordHasher",
    "PasswordValidation",
    "hash_password",
    "verify_password",
    "needs_rehash",
    "validate_password",
    "is_valid_email",
    "IdentityClaim",
    "JWTManager",
    "TokenClaims",
    "TokenConfig",
    "TokenPair",
    "compute_expiry_timestamp",
    "extract_bearer_token",
    "get_jwt_manager",
    "IdentityService",
    "RefreshRejectedError",
]
