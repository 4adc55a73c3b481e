"""
Authentication endpoints.
"""

from fastapi import APIRouter, Depends, status

from luna.api.deps import CurrentIdentity, Directory, Dreams, Identity
from luna.api.errors import ApiError
from luna.api.middleware.rate_limit import RateLimit
from luna.config import get_settings
from luna.kernel.directory import UserAlreadyExistsError
from luna.kernel.identity.identity_service import RefreshRejectedError
from luna.kernel.identity.password import is_valid_email, validate_password
from luna.kernel.models.user import UserRegistration
from luna.schemas.auth import (
    AuthData,
    AuthResponse,
    ChangePasswordRequest,
    LoginRequest,
    RefreshTokenRequest,
    RegisterRequest,
    TokenData,
    TokenRefreshResponse,
    UpdateProfileRequest,
    UserData,
    UserEnvelope,
    UserResponse,
)
from luna.schemas.common import MessageResponse


_settings = get_settings()

router = APIRouter(
    dependencies=[
        Depends(
            RateLimit(
                max_requests=_settings.rate_limit_auth_max_requests,
                window_ms=_settings.rate_limit_auth_window_ms,
            )
        )
    ],
)


def _user_not_found() -> ApiError:
    return ApiError(status.HTTP_404_NOT_FOUND, "User not found", "USER_NOT_FOUND")


@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(data: RegisterRequest, identity_service: Identity):
    """
    Register a new user account.

    Returns access and refresh tokens on successful registration.
    """
    if not is_valid_email(data.email):
        raise ApiError(status.HTTP_400_BAD_REQUEST, "Invalid email format", "INVALID_EMAIL")

    validation = validate_password(data.password)
    if not validation.is_valid:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Password does not meet requirements",
            "WEAK_PASSWORD",
            details=validation.errors,
        )

    try:
        user, token_pair = await identity_service.register_user(
            UserRegistration(
                email=data.email,
                password=data.password,
                first_name=data.first_name,
                last_name=data.last_name,
            )
        )
    except UserAlreadyExistsError as e:
        raise ApiError(status.HTTP_409_CONFLICT, str(e), "USER_EXISTS")

    return AuthResponse(
        message="User registered successfully",
        data=AuthData(
            user=UserResponse.model_validate(user),
            token=token_pair.access_token,
            refresh_token=token_pair.refresh_token,
            expires_in=token_pair.expires_in,
        ),
    )


@router.post("/login", response_model=AuthResponse)
async def login(data: LoginRequest, identity_service: Identity):
    """Authenticate user and return tokens."""
    result = await identity_service.authenticate(
        email=data.email,
        password=data.password,
        remember_me=data.remember_me,
    )
    if not result:
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid email or password",
            "INVALID_CREDENTIALS",
        )

    user, token_pair = result

    return AuthResponse(
        message="Login successful",
        data=AuthData(
            user=UserResponse.model_validate(user),
            token=token_pair.access_token,
            refresh_token=token_pair.refresh_token,
            expires_in=token_pair.expires_in,
        ),
    )


@router.post("/refresh", response_model=TokenRefreshResponse)
async def refresh_token(data: RefreshTokenRequest, identity_service: Identity):
    """
    Exchange a refresh token for a new token pair.

    The presented refresh token stays valid until it expires.
    """
    try:
        _, token_pair = await identity_service.refresh_tokens(data.refresh_token)
    except RefreshRejectedError as e:
        if e.code == "USER_NOT_FOUND":
            raise ApiError(status.HTTP_401_UNAUTHORIZED, "User not found", e.code)
        raise ApiError(
            status.HTTP_401_UNAUTHORIZED,
            "Invalid or expired refresh token",
            e.code,
        )

    return TokenRefreshResponse(
        message="Tokens refreshed successfully",
        data=TokenData(
            token=token_pair.access_token,
            refresh_token=token_pair.refresh_token,
            expires_in=token_pair.expires_in,
        ),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(identity: CurrentIdentity, identity_service: Identity):
    """
    Log out.

    Nothing is revoked server-side; the client is expected to drop its tokens.
    """
    await identity_service.logout(identity.user_id)
    return MessageResponse(message="Logged out successfully")


@router.get("/me", response_model=UserEnvelope)
async def get_current_user_profile(identity: CurrentIdentity, directory: Directory):
    """Get current user's profile."""
    user = await directory.find_user_by_id(identity.user_id)
    if not user:
        raise _user_not_found()
    return UserEnvelope(data=UserData(user=UserResponse.model_validate(user)))


@router.put("/profile", response_model=UserEnvelope)
async def update_profile(
    data: UpdateProfileRequest,
    identity: CurrentIdentity,
    identity_service: Identity,
    directory: Directory,
):
    """Update current user's profile."""
    user = await directory.find_user_by_id(identity.user_id)
    if not user:
        raise _user_not_found()

    updates = data.model_dump(exclude_unset=True, exclude={"preferences"})
    if data.preferences is not None:
        preferences = user.preferences.model_dump()
        preferences.update(data.preferences.model_dump(exclude_none=True))
        updates["preferences"] = preferences

    try:
        updated = await identity_service.update_profile(identity.user_id, updates)
    except UserAlreadyExistsError as e:
        raise ApiError(status.HTTP_409_CONFLICT, str(e), "USER_EXISTS")

    if not updated:
        raise _user_not_found()

    return UserEnvelope(
        message="Profile updated successfully",
        data=UserData(user=UserResponse.model_validate(updated)),
    )


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    data: ChangePasswordRequest,
    identity: CurrentIdentity,
    identity_service: Identity,
    directory: Directory,
):
    """
    Change user's password.

    Previously issued tokens remain valid.
    """
    user = await directory.find_user_by_id(identity.user_id)
    if not user:
        raise _user_not_found()

    if not await identity_service.check_password(user, data.current_password):
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "Current password is incorrect",
            "INVALID_CURRENT_PASSWORD",
        )

    validation = validate_password(data.new_password)
    if not validation.is_valid:
        raise ApiError(
            status.HTTP_400_BAD_REQUEST,
            "New password does not meet requirements",
            "WEAK_PASSWORD",
            details=validation.errors,
        )

    if not await identity_service.change_password(identity.user_id, data.new_password):
        raise ApiError(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            "Failed to change password",
            "PASSWORD_CHANGE_FAILED",
        )

    return MessageResponse(message="Password changed successfully")


@router.delete("/account", response_model=MessageResponse)
async def delete_account(identity: CurrentIdentity, identity_service: Identity, dreams: Dreams):
    """
    Delete the current user's account and saved dreams.

    Outstanding tokens stop authenticating because the user lookup fails.
    """
    if not await identity_service.delete_account(identity.user_id):
        raise _user_not_found()
    await dreams.delete_user_dreams(identity.user_id)

    return MessageResponse(message="Account deleted successfully")
