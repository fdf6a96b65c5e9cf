"""Identity utilities.

All entity identifiers are random UUID4 strings. Identifiers arriving from
callers are checked with ``is_valid_id`` before any lookup.
"""

import uuid


def new_id() -> str:
    """Generate a fresh entity identifier."""
    return str(uuid.uuid4())


def is_valid_id(value: object) -> bool:
    """Check that a value is a canonical UUID string.

    Args:
        value: Candidate identifier.

    Returns:
        True when ``value`` parses as a UUID, ignoring surrounding whitespace.

    Examples:
        >>> is_valid_id("a974e16a-d34f-4d24-bad9-46ce14571e26")
        True
        >>> is_valid_id("invalid_uuid")
        False
    """
    if not isinstance(value, str) or not value.strip():
        return False
    try:
        uuid.UUID(value.strip())
    except ValueError:
        return False
    return True
