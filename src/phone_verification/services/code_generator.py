"""Verification code generator."""

import secrets
import string

DEFAULT_CODE_LENGTH = 6


def generate_code(length: int = DEFAULT_CODE_LENGTH) -> str:
    """Return a random numeric code of *length* digits.

    Leading zeros are allowed, so every value from ``000000`` to
    ``999999`` is equally likely for the default length.
    """
    if length < 1:
        raise ValueError("Code length must be at least 1")
    return "".join(secrets.choice(string.digits) for _ in range(length))
