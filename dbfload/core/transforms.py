"""
Per-field value transforms applied to every row before COPY encoding.

Each transform takes one raw value as decoded by the DBF source and returns
the value to serialize. Transforms are pure and selected once per field by
the DBF type tag.
"""

from datetime import date
from typing import Any, Callable, Dict, Optional

# Standard null date format in DBF files
DBF_NULL_DATE = "00000000"
# dBase writes "?" for an uninitialized logical field
UNKNOWN_LOGICAL = "?"

Transform = Callable[[Any], Any]


def identity(value: Any) -> Any:
    return value


def strip_text(value: Optional[str]) -> Optional[str]:
    """
    Remove the right padding of a character field.

    Args:
        value: Raw field content, padded with spaces (or NULs) to the field width

    Returns:
        The value without trailing padding
    """
    if value is None:
        return None
    return value.rstrip(" \x00")


def null_unknown_logical(value: Optional[str]) -> Optional[str]:
    """Map the unknown logical marker to NULL; every other value is unchanged."""
    if value == UNKNOWN_LOGICAL:
        return None
    return value


def format_dbf_date(value: Optional[str]) -> Optional[str]:
    """
    Format a date field from YYYYMMDD to YYYY-MM-DD.

    Blank values and the null date are mapped to NULL.

    Raises:
        ValueError: If the value is neither blank nor an 8-digit calendar date.
    """
    if value is None:
        return None

    date_value = value.strip(" \x00")
    if not date_value or date_value == DBF_NULL_DATE:
        return None

    if len(date_value) != 8 or not date_value.isdigit():
        raise ValueError(f"Invalid date format: {value!r}")

    try:
        parsed = date(int(date_value[:4]), int(date_value[4:6]), int(date_value[6:8]))
    except ValueError as e:
        raise ValueError(f"Invalid date components: {value!r}") from e

    return parsed.isoformat()


def strip_numeric(value: Optional[str]) -> Optional[str]:
    """Trim a numeric field; a blank field is NULL."""
    if value is None:
        return None
    stripped = value.strip(" \x00")
    return stripped or None


TRANSFORMS_BY_TYPE: Dict[str, Transform] = {
    "C": strip_text,
    "L": null_unknown_logical,
    "D": format_dbf_date,
    "N": strip_numeric,
    "F": strip_numeric,
}


def transform_for(type_tag: str) -> Transform:
    """Return the transform of a DBF type tag; unknown tags pass values through."""
    return TRANSFORMS_BY_TYPE.get(type_tag.upper(), identity)
