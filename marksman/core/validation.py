"""
Validation — Name and mark-data rules

Mark names double as identifiers in the persisted file and in user commands,
so they must be:
- 1-50 characters, not whitespace-only
- free of filesystem-unsafe characters: < > : " / \\ | ? *
- not a reserved system token (CON, PRN, AUX, NUL)

NameValidator is swappable: the registry accepts any object exposing
validate(name) -> (ok, reason).
"""

import re
from typing import Any, Optional, Tuple


MAX_NAME_LENGTH = 50
MAX_TEXT_LENGTH = 80

UNSAFE_CHARS = re.compile(r'[<>:"/\\|?*]')
RESERVED_NAMES = ("CON", "PRN", "AUX", "NUL")

REQUIRED_FIELDS = ("file", "line", "col")


class NameValidator:
    """Default mark-name rules."""

    def validate(self, name: Any) -> Tuple[bool, Optional[str]]:
        """
        Check a candidate mark name.

        Returns:
            (True, None) if valid, else (False, reason)
        """
        if not isinstance(name, str):
            return False, "Mark name must be a string"

        if not name.strip():
            return False, "Mark name cannot be empty or whitespace"

        if len(name) > MAX_NAME_LENGTH:
            return False, f"Mark name too long (max {MAX_NAME_LENGTH} characters)"

        if UNSAFE_CHARS.search(name):
            return False, 'Mark name contains invalid characters: < > : " / \\ | ? *'

        if name.upper() in RESERVED_NAMES:
            return False, "Mark name cannot be a reserved system name"

        return True, None


def validate_mark_name(name: Any) -> Tuple[bool, Optional[str]]:
    """Validate with the default rules."""
    return NameValidator().validate(name)


def _is_int(value: Any) -> bool:
    # bool is a subclass of int but never a valid line/col/timestamp
    return isinstance(value, int) and not isinstance(value, bool)


def validate_mark_data(data: Any) -> Tuple[bool, Optional[str]]:
    """
    Validate the stored attributes of a single mark.

    Accepts the raw mapping form used on disk. File existence is NOT
    checked here; staleness is a separate concern.
    """
    if not isinstance(data, dict):
        return False, "Mark must be an object"

    for field_name in REQUIRED_FIELDS:
        if data.get(field_name) is None:
            return False, f"Missing required field: {field_name}"

    if not isinstance(data["file"], str) or not data["file"]:
        return False, "File must be a non-empty string"

    if not _is_int(data["line"]) or data["line"] < 1:
        return False, "Line must be a positive number"

    if not _is_int(data["col"]) or data["col"] < 1:
        return False, "Column must be a positive number"

    if data.get("text") is not None and not isinstance(data["text"], str):
        return False, "Text field must be a string"

    if data.get("description") is not None and not isinstance(data["description"], str):
        return False, "Description field must be a string"

    for stamp in ("created_at", "accessed_at"):
        if data.get(stamp) is not None and not _is_int(data[stamp]):
            return False, f"{stamp} field must be a number (timestamp)"

    return True, None


def sanitize_mark_name(name: Optional[str]) -> Optional[str]:
    """
    Turn an arbitrary suggestion into a valid mark name.

    Returns None when nothing usable is left.
    """
    if not name:
        return None

    sanitized = UNSAFE_CHARS.sub("_", name)
    sanitized = re.sub(r"\s+", "_", sanitized)
    sanitized = re.sub(r"_+", "_", sanitized)
    sanitized = sanitized.strip("_")

    if len(sanitized) > MAX_NAME_LENGTH:
        sanitized = sanitized[:MAX_NAME_LENGTH].rstrip("_")

    if not sanitized:
        return None

    if sanitized.upper() in RESERVED_NAMES:
        sanitized = f"{sanitized}_mark"

    return sanitized
