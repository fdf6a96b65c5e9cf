"""Field error collection.

Workflows validate every field before touching storage and report all
problems at once through a single ValidationError.
"""

from __future__ import annotations

from quorum.core.errors import FieldError, ValidationError
from quorum.core.identity import is_valid_id


class FieldErrors:
    """Accumulates field errors for one request."""

    def __init__(self) -> None:
        self._errors: list[FieldError] = []

    def __bool__(self) -> bool:
        return bool(self._errors)

    def __len__(self) -> int:
        return len(self._errors)

    def add(self, field: str, message: str) -> None:
        self._errors.append(FieldError(field=field, message=message))

    def has(self, *fields: str) -> bool:
        """True if any error targets one of the fields or a nested path under it."""
        for error in self._errors:
            for name in fields:
                if error.field == name or error.field.startswith((f"{name}.", f"{name}[")):
                    return True
        return False

    def require_id(self, field: str, value: object) -> None:
        if value is None or (isinstance(value, str) and not value.strip()):
            self.add(field, f'"{field}" is required.')
        elif not is_valid_id(value):
            self.add(field, f'"{field}" must be a valid GUID.')

    def require_text(self, field: str, value: str | None) -> None:
        if value is None or not value.strip():
            self.add(field, f'"{field}" is required.')

    def raise_if_any(self) -> None:
        if self._errors:
            raise ValidationError(self._errors)
