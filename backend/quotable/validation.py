"""
So Quotable Backend — Input Rules
==================================

Email normalization, slug generation and the password policy. These are
shared by the identity adapter (sign-up) and the password reset flow, so
both enforce exactly the same rules.
"""

import re
from dataclasses import dataclass, field
from typing import List

from quotable.exceptions import ValidationError

PASSWORD_MIN_LENGTH = 12
PASSWORD_SPECIAL_CHARACTERS = "!@#$%^&*()_+-=[]{};':\"\\|,.<>/?"

_SLUG_INVALID = re.compile(r"[^a-z0-9]")
_SPECIAL = re.compile("[" + re.escape(PASSWORD_SPECIAL_CHARACTERS) + "]")


def normalize_email(email: str) -> str:
    """Trims and lowercases an email address; blank input is rejected."""
    trimmed = (email or "").strip()
    if not trimmed:
        raise ValidationError(message="Email is required", field="email")
    return trimmed.lower()


def generate_slug(email: str, fallback: str = "user") -> str:
    """
    Derives a URL slug from the local part of an email address.

    Every character outside [a-z0-9] becomes a hyphen and edge hyphens are
    dropped: "John.Doe@example.com" -> "john-doe".
    """
    prefix = (email or "").split("@")[0]
    if not prefix:
        return fallback
    slug = _SLUG_INVALID.sub("-", prefix.lower()).strip("-")
    return slug or fallback


@dataclass
class PasswordCheck:
    valid: bool
    errors: List[str] = field(default_factory=list)


def validate_password(password: str) -> PasswordCheck:
    """
    Applies the password policy and reports every violated rule, in order.

    Rules: at least 12 characters, one uppercase letter, one lowercase
    letter, one digit and one special character from
    PASSWORD_SPECIAL_CHARACTERS.
    """
    password = password or ""
    errors = []
    if len(password) < PASSWORD_MIN_LENGTH:
        errors.append(f"Password must be at least {PASSWORD_MIN_LENGTH} characters long")
    if not re.search(r"[A-Z]", password):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password):
        errors.append("Password must contain at least one number")
    if not _SPECIAL.search(password):
        errors.append("Password must contain at least one special character")
    return PasswordCheck(valid=not errors, errors=errors)


def require_valid_password(password: str) -> None:
    """Raises ValidationError with the first policy violation."""
    check = validate_password(password)
    if not check.valid:
        raise ValidationError(
            message=check.errors[0],
            field="password",
            context={"errors": check.errors},
        )
