"""
Input validation helpers shared by the resource layer.
"""


def escape_like_pattern(value: str) -> str:
    """
    Escape special characters in LIKE patterns.

    SQL LIKE uses % and _ as wildcards. This function escapes them so a
    search token is always matched literally.

    Args:
        value: The search string to escape

    Returns:
        The escaped string safe for use in LIKE patterns (escape char: backslash)
    """
    if not value:
        return value

    # Escape the escape character first, then the wildcards
    value = value.replace("\\", "\\\\")
    value = value.replace("%", "\\%")
    value = value.replace("_", "\\_")
    return value


def parse_bool(value: str) -> bool:
    """
    Parse a boolean from its text form.

    Accepts true/false, 1/0, yes/no (case-insensitive).

    Raises:
        ValueError: If the text is not a recognized boolean.
    """
    normalized = value.strip().lower()
    if normalized in ("true", "1", "yes"):
        return True
    if normalized in ("false", "0", "no"):
        return False
    raise ValueError(f"not a boolean: {value!r}")
