"""Unit tests for the user directory."""

from datetime import timedelta

import pytest

from luna.kernel.directory import UserAlreadyExistsError
from luna.kernel.identity.password import verify_password
from luna.kernel.models.user import UserRegistration, utcnow

TEST_PASSWORD = "Str0ng!Pass"


def registration(email: str = "someone@example.com", password: str = TEST_PASSWORD) -> UserRegistration:
    return UserRegistration(email=email, password=password, first_name="Some", last_name="One")


class TestUserDirectory:
    @pytest.mark.asyncio
    async def test_create_user_defaults(self, directory):
        user = await directory.create_user(registration("New.User@Example.COM"))

        assert user.email == "new.user@example.com"
        assert user.password_hash != TEST_PASSWORD
        assert verify_password(TEST_PASSWORD, user.password_hash)
        assert user.is_email_verified is False
        assert user.subscription.plan == "free"
        assert user.subscription.status == "active"
        assert user.stats.total_dreams == 0
        assert user.stats.last_login_at is None
        assert user.preferences.notifications is True

    @pytest.mark.asyncio
    async def test_duplicate_email_rejected_case_insensitively(self, directory):
        await directory.create_user(registration("dup@example.com"))

        with pytest.raises(UserAlreadyExistsError):
            await directory.create_user(registration("DUP@example.com"))

    @pytest.mark.asyncio
    async def test_find_by_email_and_id(self, directory, test_user):
        by_email = await directory.find_user_by_email("DREAMER@example.com")
        by_id = await directory.find_user_by_id(test_user.id)

        assert by_email.id == test_user.id
        assert by_id.email == "dreamer@example.com"
        assert await directory.find_user_by_email("ghost@example.com") is None
        assert await directory.find_user_by_id("missing") is None

    @pytest.mark.asyncio
    async def test_returned_records_are_copies(self, directory, test_user):
        found = await directory.find_user_by_id(test_user.id)
        found.first_name = "Mutated"

        assert (await directory.find_user_by_id(test_user.id)).first_name == "Test"

    @pytest.mark.asyncio
    async def test_update_user_reindexes_email(self, directory, test_user):
        updated = await directory.update_user(test_user.id, {"email": "Moved@Example.com", "first_name": "Moved"})

        assert updated.email == "moved@example.com"
        assert updated.first_name == "Moved"
        assert updated.updated_at >= test_user.updated_at
        assert await directory.find_user_by_email("dreamer@example.com") is None
        assert (await directory.find_user_by_email("moved@example.com")).id == test_user.id

    @pytest.mark.asyncio
    async def test_update_user_rejects_taken_email(self, directory, test_user):
        await directory.create_user(registration("taken@example.com"))

        with pytest.raises(UserAlreadyExistsError):
            await directory.update_user(test_user.id, {"email": "taken@example.com"})

    @pytest.mark.asyncio
    async def test_update_user_ignores_protected_fields(self, directory, test_user):
        updated = await directory.update_user(
            test_user.id,
            {"id": "hijack", "password_hash": "x", "created_at": utcnow() - timedelta(days=99)},
        )

        assert updated.id == test_user.id
        assert updated.password_hash == test_user.password_hash
        assert updated.created_at == test_user.created_at

    @pytest.mark.asyncio
    async def test_update_user_null_required_fields_are_kept(self, directory, test_user):
        updated = await directory.update_user(
            test_user.id,
            {"first_name": None, "last_name": None, "email": None, "timezone": None},
        )

        assert updated.first_name == test_user.first_name
        assert updated.last_name == test_user.last_name
        assert updated.email == test_user.email
        assert updated.timezone is None
        assert (await directory.find_user_by_email(test_user.email)).id == test_user.id

    @pytest.mark.asyncio
    async def test_update_missing_user(self, directory):
        assert await directory.update_user("missing", {"first_name": "X"}) is None

    @pytest.mark.asyncio
    async def test_delete_user(self, directory, test_user):
        assert await directory.delete_user(test_user.id) is True
        assert await directory.find_user_by_id(test_user.id) is None
        assert await directory.find_user_by_email(test_user.email) is None
        assert await directory.delete_user(test_user.id) is False

        # Email is free again
        await directory.create_user(registration(test_user.email))

    @pytest.mark.asyncio
    async def test_verify_email_and_counters(self, directory, test_user):
        assert await directory.verify_email(test_user.id) is True
        await directory.increment_dream_count(test_user.id)
        await directory.increment_dream_count(test_user.id)
        await directory.update_last_login(test_user.id)

        user = await directory.find_user_by_id(test_user.id)
        assert user.is_email_verified is True
        assert user.stats.total_dreams == 2
        assert user.stats.last_login_at is not None
        assert await directory.verify_email("missing") is False

    @pytest.mark.asyncio
    async def test_change_password(self, directory, test_user):
        assert await directory.change_password(test_user.id, "N3w!Password") is True

        user = await directory.find_user_by_id(test_user.id)
        assert verify_password("N3w!Password", user.password_hash)
        assert not verify_password(TEST_PASSWORD, user.password_hash)
        assert await directory.change_password("missing", "N3w!Password") is False

    @pytest.mark.asyncio
    async def test_user_stats(self, directory, test_user):
        other = await directory.create_user(registration("other@example.com"))
        await directory.verify_email(other.id)
        await directory.update_last_login(test_user.id)

        stats = await directory.get_user_stats()

        assert stats.total_users == 2
        assert stats.verified_users == 1
        assert stats.active_users == 1
        assert stats.new_users_today == 2
        assert len(await directory.get_all_users()) == 2
