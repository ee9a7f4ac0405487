"""
Opaque single-use tokens for email verification and password reset.

A token is two random UUID4 values with the hyphens stripped: 64 hex
characters (244 random bits). Anything shorter than MIN_TOKEN_LENGTH is
rejected before a database lookup is attempted.
"""

import uuid

MIN_TOKEN_LENGTH = 20


def generate_token() -> str:
    return f"{uuid.uuid4()}{uuid.uuid4()}".replace("-", "")


def is_plausible_token(token: str) -> bool:
    return bool(token) and len(token) >= MIN_TOKEN_LENGTH
