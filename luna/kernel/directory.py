"""
User directory: user records keyed by id, with a lowercased-email index.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel

from luna.kernel.identity.password import hash_password
from luna.kernel.models.user import User, UserRegistration, utcnow
from luna.kernel.store import KeyValueStore
from luna.logging_config import get_logger

logger = get_logger(__name__)

USER_PREFIX = "user:"
EMAIL_PREFIX = "user-email:"

ACTIVE_USER_WINDOW = timedelta(days=30)

# Fields a profile update may never touch directly
_PROTECTED_FIELDS = {"id", "password_hash", "created_at", "updated_at"}

# A null for one of these leaves the stored value untouched
_REQUIRED_FIELDS = {"email", "first_name", "last_name"}


class UserAlreadyExistsError(ValueError):
    """Raised when an email address is already registered."""

    def __init__(self, message: str = "User with this email already exists"):
        super().__init__(message)


class UserStatsSummary(BaseModel):
    total_users: int
    verified_users: int
    active_users: int
    new_users_today: int


def normalize_email(email: str) -> str:
    return email.strip().lower()


class UserDirectory:
    """
    Create/find/update/delete user records.

    Records are stored as copies so callers can't mutate stored state without
    going through the directory.
    """

    def __init__(self, store: KeyValueStore):
        self.store = store

    def _save(self, user: User) -> User:
        self.store.set(f"{USER_PREFIX}{user.id}", user.model_copy(deep=True))
        return user

    def _load(self, user_id: str) -> Optional[User]:
        user = self.store.get(f"{USER_PREFIX}{user_id}")
        return user.model_copy(deep=True) if user is not None else None

    async def create_user(self, registration: UserRegistration) -> User:
        """
        Create a new user.

        Raises:
            UserAlreadyExistsError: If the email is already registered
        """
        email = normalize_email(registration.email)
        if self.store.get(f"{EMAIL_PREFIX}{email}") is not None:
            raise UserAlreadyExistsError()

        password_hash = await run_in_threadpool(hash_password, registration.password)

        # The hash yielded the loop; re-check before claiming the email
        if self.store.get(f"{EMAIL_PREFIX}{email}") is not None:
            raise UserAlreadyExistsError()

        user = User(
            email=email,
            password_hash=password_hash,
            first_name=registration.first_name,
            last_name=registration.last_name,
        )
        self.store.set(f"{EMAIL_PREFIX}{email}", user.id)
        self._save(user)

        logger.info("User created", extra={"user_id": user.id})
        return user

    async def find_user_by_email(self, email: str) -> Optional[User]:
        user_id = self.store.get(f"{EMAIL_PREFIX}{normalize_email(email)}")
        if user_id is None:
            return None
        return self._load(user_id)

    async def find_user_by_id(self, user_id: str) -> Optional[User]:
        return self._load(user_id)

    async def update_last_login(self, user_id: str) -> None:
        user = self._load(user_id)
        if user is None:
            return
        now = utcnow()
        user.stats.last_login_at = now
        user.updated_at = now
        self._save(user)

    async def update_user(self, user_id: str, updates: Dict[str, Any]) -> Optional[User]:
        """
        Merge updates into a user record.

        Args:
            user_id: The user's ID
            updates: Field -> value; nested models may be given as dicts

        Returns:
            Updated user or None if not found

        Raises:
            UserAlreadyExistsError: If a new email belongs to someone else
        """
        user = self._load(user_id)
        if user is None:
            return None

        changes = {
            k: v
            for k, v in updates.items()
            if k not in _PROTECTED_FIELDS and not (v is None and k in _REQUIRED_FIELDS)
        }

        old_email = user.email
        new_email = changes.get("email")
        if new_email is not None:
            new_email = normalize_email(new_email)
            owner = self.store.get(f"{EMAIL_PREFIX}{new_email}")
            if owner is not None and owner != user_id:
                raise UserAlreadyExistsError("Email already in use")
            changes["email"] = new_email

        merged = user.model_dump()
        merged.update(changes)
        merged["updated_at"] = utcnow()
        updated = User.model_validate(merged)

        if updated.email != old_email:
            self.store.delete(f"{EMAIL_PREFIX}{old_email}")
            self.store.set(f"{EMAIL_PREFIX}{updated.email}", user_id)

        return self._save(updated)

    async def delete_user(self, user_id: str) -> bool:
        user = self._load(user_id)
        if user is None:
            return False
        self.store.delete(f"{EMAIL_PREFIX}{user.email}")
        self.store.delete(f"{USER_PREFIX}{user_id}")
        logger.info("User deleted", extra={"user_id": user_id})
        return True

    async def get_all_users(self) -> List[User]:
        return [user.model_copy(deep=True) for _, user in self.store.scan(USER_PREFIX)]

    async def verify_email(self, user_id: str) -> bool:
        user = self._load(user_id)
        if user is None:
            return False
        user.is_email_verified = True
        user.updated_at = utcnow()
        self._save(user)
        return True

    async def change_password(self, user_id: str, new_password: str) -> bool:
        user = self._load(user_id)
        if user is None:
            return False
        password_hash = await run_in_threadpool(hash_password, new_password)

        # Re-load: the record may have changed or vanished while hashing
        user = self._load(user_id)
        if user is None:
            return False
        user.password_hash = password_hash
        user.updated_at = utcnow()
        self._save(user)
        return True

    async def increment_dream_count(self, user_id: str) -> None:
        user = self._load(user_id)
        if user is None:
            return
        user.stats.total_dreams += 1
        user.updated_at = utcnow()
        self._save(user)

    async def get_user_stats(self) -> UserStatsSummary:
        users = await self.get_all_users()
        now = datetime.now(timezone.utc)
        today = now.replace(hour=0, minute=0, second=0, microsecond=0)
        active_cutoff = now - ACTIVE_USER_WINDOW

        return UserStatsSummary(
            total_users=len(users),
            verified_users=sum(1 for u in users if u.is_email_verified),
            active_users=sum(
                1 for u in users
                if u.stats.last_login_at and u.stats.last_login_at > active_cutoff
            ),
            new_users_today=sum(1 for u in users if u.created_at >= today),
        )
