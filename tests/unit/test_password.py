"""Unit tests for password hashing and credential policy."""

import pytest

from luna.kernel.identity.password import (
    BCRYPT_ROUNDS,
    PasswordHasher,
    credential_cost,
    hash_password,
    is_valid_email,
    needs_rehash,
    validate_password,
    verify_password,
)


@pytest.fixture
def fast_hasher() -> PasswordHasher:
    return PasswordHasher(rounds=4)


class TestPasswordHasher:
    """Tests for PasswordHasher."""

    def test_hash_creates_different_hashes(self, fast_hasher):
        """Same password should create different hashes (due to salt)."""
        password = "TestPassword123!"

        first = fast_hasher.hash(password)
        second = fast_hasher.hash(password)

        assert first != second
        assert fast_hasher.verify(password, first) is True
        assert fast_hasher.verify(password, second) is True

    def test_verify_correct_and_wrong_password(self, fast_hasher):
        hashed = fast_hasher.hash("TestPassword123!")

        assert fast_hasher.verify("TestPassword123!", hashed) is True
        assert fast_hasher.verify("WrongPassword1!", hashed) is False

    def test_verify_uses_cost_from_credential(self, fast_hasher):
        hashed = fast_hasher.hash("TestPassword123!")

        assert PasswordHasher(rounds=BCRYPT_ROUNDS).verify("TestPassword123!", hashed) is True

    @pytest.mark.parametrize("credential", ["not-a-bcrypt-hash", "", "$2b$04$short", None])
    def test_malformed_credential_is_a_mismatch(self, fast_hasher, credential):
        """A corrupt stored hash reads as a wrong password, never an error."""
        assert fast_hasher.verify("TestPassword123!", credential) is False

    def test_only_first_72_bytes_count(self, fast_hasher):
        base = "A1!a" * 18  # 72 bytes
        hashed = fast_hasher.hash(base + "tail")

        assert fast_hasher.verify(base + "different", hashed) is True

    def test_credential_cost(self, fast_hasher):
        assert credential_cost(fast_hasher.hash("x")) == 4
        assert credential_cost("$2a$10$abcdefghijklmnopqrstuv") == 10
        assert credential_cost("garbage") is None

    def test_needs_rehash(self, fast_hasher):
        cheap = fast_hasher.hash("TestPassword123!")

        assert fast_hasher.needs_rehash(cheap) is False
        assert needs_rehash(cheap) is True
        assert needs_rehash("garbage") is True

    def test_default_cost(self):
        password = "TestPassword123!"
        hashed = hash_password(password)

        assert hashed.startswith(f"$2b${BCRYPT_ROUNDS}$")
        assert needs_rehash(hashed) is False
        assert verify_password(password, hashed) is True
        assert verify_password("wrong", hashed) is False


class TestValidatePassword:
    """Tests for the password strength policy."""

    def test_strong_password_passes(self):
        result = validate_password("Str0ng!Pass")

        assert result.is_valid is True
        assert result.errors == []

    def test_all_violations_reported_in_order(self):
        result = validate_password("weak")

        assert result.is_valid is False
        assert result.errors == [
            "Password must be at least 8 characters long",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one number",
            "Password must contain at least one special character",
        ]

    def test_empty_password_fails_every_rule(self):
        assert len(validate_password("").errors) == 5

    @pytest.mark.parametrize(
        "password,message",
        [
            ("nouppercase1!", "Password must contain at least one uppercase letter"),
            ("NOLOWERCASE1!", "Password must contain at least one lowercase letter"),
            ("NoNumbers!!", "Password must contain at least one number"),
            ("NoSpecial123", "Password must contain at least one special character"),
            ("Sh0rt!", "Password must be at least 8 characters long"),
            ("NoAscii\u0661!", "Password must contain at least one number"),
        ],
    )
    def test_single_violation(self, password, message):
        assert validate_password(password).errors == [message]

    def test_underscore_is_not_special(self):
        result = validate_password("Under_score1")

        assert result.errors == ["Password must contain at least one special character"]


class TestEmailFormat:
    @pytest.mark.parametrize(
        "email",
        ["user@example.com", "first.last+tag@sub.domain.org", "UPPER@EXAMPLE.COM"],
    )
    def test_valid(self, email):
        assert is_valid_email(email) is True

    @pytest.mark.parametrize(
        "email",
        [
            "",
            "plainaddress",
            "no-at.example.com",
            "user@nodot",
            "user @example.com",
            "user@exa mple.com",
            "user@example.com\n",
        ],
    )
    def test_invalid(self, email):
        assert is_valid_email(email) is False
