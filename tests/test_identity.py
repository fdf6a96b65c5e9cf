"""Tests for identity utilities."""

import uuid

import pytest

from quorum.core.identity import is_valid_id, new_id


class TestNewId:
    """Identifier generation."""

    def test_is_uuid4(self):
        """New ids are random UUIDs."""
        assert uuid.UUID(new_id()).version == 4

    def test_unique(self):
        """Repeated calls do not collide."""
        assert len({new_id() for _ in range(100)}) == 100


class TestIsValidId:
    """Identifier validation."""

    def test_generated_ids_are_valid(self):
        """Generated ids pass validation."""
        assert is_valid_id(new_id())

    def test_surrounding_whitespace_ignored(self):
        """Padding around an id is tolerated."""
        assert is_valid_id(f"  {new_id()} ")

    @pytest.mark.parametrize("value", ["", "   ", "invalid_uuid", "1234", None, 42])
    def test_rejects_non_ids(self, value):
        """Blanks, junk and non-strings are rejected."""
        assert not is_valid_id(value)
