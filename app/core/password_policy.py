# app/core/password_policy.py

"""
Password strength rules applied when an invited user sets a password.
"""

import re
from typing import List

MIN_LENGTH = 8

COMMON_WEAK_PASSWORDS = {
    "password", "password123", "123456", "12345678", "qwerty",
    "abc123", "111111", "letmein", "welcome", "monkey",
    "admin", "password1", "123456789", "1234567890",
}


def password_problems(password: str) -> List[str]:
    """Return every rule the password breaks (empty list = acceptable)."""
    errors: List[str] = []

    if not password or len(password) < MIN_LENGTH:
        errors.append(f"Password must be at least {MIN_LENGTH} characters long")
    if not re.search(r"[A-Z]", password or ""):
        errors.append("Password must contain at least one uppercase letter")
    if not re.search(r"[a-z]", password or ""):
        errors.append("Password must contain at least one lowercase letter")
    if not re.search(r"[0-9]", password or ""):
        errors.append("Password must contain at least one number")
    if not re.search(r"[^A-Za-z0-9]", password or ""):
        errors.append("Password must contain at least one special character")
    if password and password.lower() in COMMON_WEAK_PASSWORDS:
        errors.append("Password is too common")

    return errors

