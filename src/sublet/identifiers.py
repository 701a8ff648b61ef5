"""Record identifiers are UUID4 strings."""

import uuid


def new_id() -> str:
    return str(uuid.uuid4())


def is_valid_id(value: object) -> bool:
    """True if ``value`` is a string in canonical UUID form."""
    if not isinstance(value, str):
        return False
    try:
        return str(uuid.UUID(value)) == value.lower()
    except ValueError:
        return False
