"""
Password credentials and the strength/email policy checks.

Credentials are bcrypt strings (``$2b$12$<22-char salt><31-char digest>``)
that carry their own cost and salt, so verification needs nothing else.
"""

import re
from typing import List, Optional

import bcrypt
from pydantic import BaseModel

BCRYPT_ROUNDS = 12

# bcrypt ignores everything past this many bytes of input
BCRYPT_MAX_BYTES = 72

SPECIAL_CHARACTERS = '!@#$%^&*(),.?":{}|<>'

_COST_RE = re.compile(r"\$2[abxy]?\$([0-9]{2})\$")
_EMAIL_RE = re.compile(r"[^\s@]+@[^\s@]+\.[^\s@]+")
_SPECIAL_RE = re.compile("[" + re.escape(SPECIAL_CHARACTERS) + "]")


class PasswordValidation(BaseModel):
    """Outcome of the password strength policy."""

    is_valid: bool
    errors: List[str]


def _secret_bytes(password: str) -> bytes:
    return password.encode("utf-8")[:BCRYPT_MAX_BYTES]


def credential_cost(credential: str) -> Optional[int]:
    """Cost factor embedded in a bcrypt credential, or None if it isn't one."""
    match = _COST_RE.match(credential) if isinstance(credential, str) else None
    return int(match.group(1)) if match else None


class PasswordHasher:
    """
    bcrypt at a fixed cost.

    Hashing is CPU-bound by design (~250 ms at cost 12); async callers should
    run it in a worker thread.
    """

    def __init__(self, rounds: int = BCRYPT_ROUNDS):
        self.rounds = rounds

    def hash(self, password: str) -> str:
        salt = bcrypt.gensalt(rounds=self.rounds)
        return bcrypt.hashpw(_secret_bytes(password), salt).decode("ascii")

    def verify(self, password: str, credential: str) -> bool:
        """
        Check password against a stored credential.

        The cost and salt come from the credential itself. Anything that is
        not a well-formed credential counts as a mismatch.
        """
        try:
            return bcrypt.checkpw(_secret_bytes(password), credential.encode("ascii"))
        except (AttributeError, TypeError, ValueError, UnicodeError):
            return False

    def needs_rehash(self, credential: str) -> bool:
        """True if the credential was made at another cost or can't be parsed."""
        return credential_cost(credential) != self.rounds


_hasher = PasswordHasher()


def hash_password(password: str) -> str:
    return _hasher.hash(password)


def verify_password(password: str, credential: str) -> bool:
    return _hasher.verify(password, credential)


def needs_rehash(credential: str) -> bool:
    return _hasher.needs_rehash(credential)


def validate_password(password: str) -> PasswordValidation:
    """
    Check a password against the strength policy.

    Every rule is evaluated; all violations are returned together.
    """
    errors: List[str] = []

    if len(password) < 8:
        errors.append("Password must be at least 8 characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    if not _SPECIAL_RE.search(password):
        errors.append("Password must contain at least one special character")

    return PasswordValidation(is_valid=not errors, errors=errors)


def is_valid_email(email: str) -> bool:
    """Loose local@domain.tld sanity check; not RFC 5322."""
    return bool(_EMAIL_RE.fullmatch(email))
