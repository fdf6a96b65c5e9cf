"""Error taxonomy for Quorum workflows.

The API layer maps each kind to a status code:
ValidationError -> 400, NotFoundError -> 404, ForbiddenError -> 403,
InvalidStateError -> 409.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A problem with a single input field."""

    field: str
    message: str


class QuorumError(Exception):
    """Base class for expected, meaningful failures."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(QuorumError):
    """One or more input fields are invalid.

    Carries every field error collected before the operation was rejected.
    """

    def __init__(self, errors: list[FieldError], message: str = "One or more properties are invalid."):
        super().__init__(message)
        self.errors = list(errors)

    def fields(self) -> set[str]:
        return {e.field for e in self.errors}


class NotFoundError(QuorumError):
    """Referenced survey or user does not exist."""


class ForbiddenError(QuorumError):
    """Requesting user may not act on the survey."""


class InvalidStateError(QuorumError):
    """Survey is not in the lifecycle stage the operation requires."""
