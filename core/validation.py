# core/validation.py

import re

NAME_REGEX = re.compile(r"^[A-Za-zÇÖŞÜĞİIçöşüğıi\s'.-]{2,}$")
PHONE_CHARSET_REGEX = re.compile(r"^\+?[0-9\s()+-]+$")

def is_name_valid(value: str) -> bool:
    if not value:
        return False
    trimmed = value.strip()
    if len(trimmed) < 2:
        return False
    return bool(NAME_REGEX.match(trimmed))

def is_phone_valid(value: str) -> bool:
    """Accepts +, digits, spaces, parentheses and dashes with 10 to 15 digits."""
    if not value:
        return False
    trimmed = value.strip()
    if not PHONE_CHARSET_REGEX.match(trimmed):
        return False
    digit_count = len(re.sub(r"\D", "", trimmed))
    return 10 <= digit_count <= 15
