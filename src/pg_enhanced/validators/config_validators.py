"""
Normalizers used by the `mode="before"` field validators in config/settings.py.

Each one receives the raw environment value (a string, or whatever was passed as a keyword
argument) and leaves non-strings alone so pydantic can report type errors itself.
"""


def to_uppercase(value):
    """LOG_LEVEL=debug -> "DEBUG"."""
    if isinstance(value, str):
        return value.strip().upper()
    return value


def to_lowercase(value):
    """LOG_FORMAT=JSON -> "json"."""
    if isinstance(value, str):
        return value.strip().lower()
    return value


def empty_to_none(value):
    """
    Treat an empty environment value (e.g. `QUERY_TIMEOUT_SECONDS=`) as unset.
    """
    if isinstance(value, str) and not value.strip():
        return None
    return value
