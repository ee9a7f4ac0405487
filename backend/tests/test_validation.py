"""
So Quotable Backend — Input Rules and Token Tests
==================================================

What we test:
    ✅ Email normalization (trim, lowercase, blank rejected)
    ✅ Slug derivation from the email local part
    ✅ Password policy reports every violated rule, in order
    ✅ Token shape (64 hex chars) and plausibility check
    ✅ Password hashing round trip
"""

import re

import pytest

from quotable.exceptions import ValidationError
from quotable.services.passwords import hash_password, verify_password
from quotable.services.tokens import MIN_TOKEN_LENGTH, generate_token, is_plausible_token
from quotable.validation import (
    generate_slug,
    normalize_email,
    require_valid_password,
    validate_password,
)

STRONG_PASSWORD = "Correct-Horse-42"


class TestNormalizeEmail:

    def test_trims_and_lowercases(self):
        assert normalize_email("  Ada.Lovelace@Example.COM ") == "ada.lovelace@example.com"

    @pytest.mark.parametrize("email", ["", "   ", None])
    def test_blank_email_rejected(self, email):
        with pytest.raises(ValidationError) as exc_info:
            normalize_email(email)
        assert exc_info.value.message == "Email is required"


class TestGenerateSlug:

    def test_replaces_non_alphanumerics(self):
        assert generate_slug("John.Doe@example.com") == "john-doe"

    def test_strips_edge_hyphens(self):
        assert generate_slug("_admin+news_@example.com") == "admin-news"

    def test_falls_back_when_nothing_usable(self):
        assert generate_slug("@example.com") == "user"
        assert generate_slug("...@example.com") == "user"
        assert generate_slug("", fallback="anon") == "anon"


class TestPasswordPolicy:

    def test_strong_password_passes(self):
        check = validate_password(STRONG_PASSWORD)
        assert check.valid is True
        assert check.errors == []

    def test_empty_password_lists_every_rule(self):
        check = validate_password("")
        assert check.valid is False
        assert check.errors == [
            "Password must be at least 12 characters long",
            "Password must contain at least one uppercase letter",
            "Password must contain at least one lowercase letter",
            "Password must contain at least one number",
            "Password must contain at least one special character",
        ]

    def test_missing_special_character_only(self):
        check = validate_password("Abcdefghijk1")
        assert check.errors == ["Password must contain at least one special character"]

    def test_require_valid_password_raises_first_error(self):
        with pytest.raises(ValidationError) as exc_info:
            require_valid_password("short")
        assert exc_info.value.message == "Password must be at least 12 characters long"
        assert len(exc_info.value.context["errors"]) == 4


class TestTokens:

    def test_token_is_64_hex_chars(self):
        token = generate_token()
        assert re.fullmatch(r"[0-9a-f]{64}", token)

    def test_tokens_are_unique(self):
        assert len({generate_token() for _ in range(50)}) == 50

    def test_plausibility(self):
        assert is_plausible_token(generate_token())
        assert not is_plausible_token("")
        assert not is_plausible_token("a" * (MIN_TOKEN_LENGTH - 1))
        assert is_plausible_token("a" * MIN_TOKEN_LENGTH)


class TestPasswordHashing:

    def test_hash_round_trip(self):
        hashed = hash_password(STRONG_PASSWORD)
        assert hashed.startswith("pbkdf2:sha256")
        assert verify_password(hashed, STRONG_PASSWORD)
        assert not verify_password(hashed, "Wrong-Horse-42")

    def test_missing_hash_never_matches(self):
        assert verify_password(None, STRONG_PASSWORD) is False
