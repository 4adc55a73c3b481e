"""
JWT token management for authentication.

Access and refresh tokens are signed with separate secrets and scoped to this
service through a fixed issuer/audience pair. Verification collapses every
failure to None.
"""

import time
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Optional

from jose import JWTError, jwt
from pydantic import BaseModel, ValidationError

from luna.config import LIFETIME_PATTERN, Settings, get_settings

ACCESS = "access"
REFRESH = "refresh"

DEFAULT_LIFETIME = timedelta(days=7)

_UNIT_SECONDS = {
    "d": 24 * 60 * 60,
    "h": 60 * 60,
    "m": 60,
}


class IdentityClaim(BaseModel):
    """The identity bound into a token."""

    user_id: str
    email: str


class TokenClaims(BaseModel):
    """Decoded, verified token payload."""

    user_id: str
    email: str
    issued_at: datetime
    expires_at: datetime
    token_id: str

    def identity(self) -> IdentityClaim:
        return IdentityClaim(user_id=self.user_id, email=self.email)


class TokenPair(BaseModel):
    """Access and refresh token pair."""

    access_token: str
    refresh_token: str
    token_type: str = "bearer"
    expires_in: int  # Unix seconds, advisory only


class TokenConfig(BaseModel):
    """Signing configuration for JWTManager."""

    access_secret: str
    access_expires_in: str = "7d"
    refresh_secret: str
    refresh_expires_in: str = "30d"
    issuer: str = "luna-api"
    audience: str = "luna-frontend"
    algorithm: str = "HS256"

    @classmethod
    def from_settings(cls, settings: Settings) -> "TokenConfig":
        return cls(
            access_secret=settings.jwt_secret,
            access_expires_in=settings.jwt_expires_in,
            refresh_secret=settings.jwt_refresh_secret,
            refresh_expires_in=settings.jwt_refresh_expires_in,
            issuer=settings.jwt_issuer,
            audience=settings.jwt_audience,
            algorithm=settings.jwt_algorithm,
        )


def parse_lifetime(spec: str) -> Optional[timedelta]:
    """Parse '7d' / '12h' / '30m' into a timedelta, or None if unparsable."""
    match = LIFETIME_PATTERN.fullmatch(spec) if isinstance(spec, str) else None
    if not match:
        return None
    value, unit = match.groups()
    return timedelta(seconds=int(value) * _UNIT_SECONDS[unit])


def compute_expiry_timestamp(lifetime_spec: str = "7d", now: Optional[float] = None) -> int:
    """
    Unix timestamp `lifetime_spec` from now.

    Unparsable specs fall back to 7 days. Only used for the advisory
    expiresIn value reported to clients; tokens carry their own exp.
    """
    current = int(now if now is not None else time.time())
    lifetime = parse_lifetime(lifetime_spec) or DEFAULT_LIFETIME
    return current + int(lifetime.total_seconds())


def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token from 'Bearer <token>', or None for any other shape."""
    if not authorization:
        return None

    parts = authorization.split(" ")
    if len(parts) != 2 or parts[0] != "Bearer" or not parts[1]:
        return None

    return parts[1]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class JWTManager:
    """
    JWT token creation and verification.

    Holds no state besides its configuration; safe to share between requests.
    """

    def __init__(
        self,
        config: Optional[TokenConfig] = None,
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.config = config or TokenConfig.from_settings(get_settings())
        self._clock = clock

    def _secret(self, kind: str) -> str:
        return self.config.access_secret if kind == ACCESS else self.config.refresh_secret

    def _lifetime(self, kind: str) -> timedelta:
        spec = self.config.access_expires_in if kind == ACCESS else self.config.refresh_expires_in
        return parse_lifetime(spec) or DEFAULT_LIFETIME

    def _issue(self, claim: IdentityClaim, kind: str) -> str:
        now = self._clock()
        expire = now + self._lifetime(kind)
        payload = {
            "sub": claim.user_id,
            "email": claim.email,
            "iat": int(now.timestamp()),
            "exp": int(expire.timestamp()),
            "iss": self.config.issuer,
            "aud": self.config.audience,
            "jti": str(uuid.uuid4()),
            "type": kind,
        }
        return jwt.encode(payload, self._secret(kind), algorithm=self.config.algorithm)

    def _verify(self, token: Any, kind: str) -> Optional[TokenClaims]:
        if not isinstance(token, str) or not token:
            return None
        try:
            payload = jwt.decode(
                token,
                self._secret(kind),
                algorithms=[self.config.algorithm],
                audience=self.config.audience,
                issuer=self.config.issuer,
            )
            if payload.get("type") != kind:
                return None

            return TokenClaims(
                user_id=payload["sub"],
                email=payload["email"],
                issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
                expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
                token_id=payload["jti"],
            )
        except (JWTError, KeyError, TypeError, ValueError, ValidationError):
            return None

    def issue_access_token(self, claim: IdentityClaim) -> str:
        """Sign a short-lived access token for claim."""
        return self._issue(claim, ACCESS)

    def issue_refresh_token(self, claim: IdentityClaim) -> str:
        """Sign a long-lived refresh token for claim."""
        return self._issue(claim, REFRESH)

    def create_token_pair(
        self,
        claim: IdentityClaim,
        expires_in_spec: Optional[str] = None,
    ) -> TokenPair:
        """
        Create both access and refresh tokens.

        Args:
            claim: Identity to embed
            expires_in_spec: Lifetime spec used for the advisory expires_in;
                defaults to the access token lifetime

        Returns:
            TokenPair
        """
        spec = expires_in_spec or self.config.access_expires_in
        return TokenPair(
            access_token=self.issue_access_token(claim),
            refresh_token=self.issue_refresh_token(claim),
            expires_in=compute_expiry_timestamp(spec, now=self._clock().timestamp()),
        )

    def verify_access_token(self, token: str) -> Optional[TokenClaims]:
        """
        Verify and decode an access token.

        Returns:
            TokenClaims if valid, None otherwise
        """
        return self._verify(token, ACCESS)

    def verify_refresh_token(self, token: str) -> Optional[TokenClaims]:
        """
        Verify and decode a refresh token.

        Returns:
            TokenClaims if valid, None otherwise
        """
        return self._verify(token, REFRESH)


_jwt_manager: Optional[JWTManager] = None


def get_jwt_manager() -> JWTManager:
    """Get or create the default JWT manager."""
    global _jwt_manager
    if _jwt_manager is None:
        _jwt_manager = JWTManager()
    return _jwt_manager
