"""
Tests for custom exceptions

Ensures exception hierarchy and behavior work correctly.
"""
import pytest

from exceptions import BotException, APIException, ConflictException


class TestExceptionHierarchy:
    """Test that exceptions inherit correctly."""

    def test_hierarchy(self):
        assert issubclass(BotException, Exception)
        assert issubclass(APIException, BotException)
        assert issubclass(ConflictException, APIException)

    def test_store_error_details(self):
        exc = ConflictException("duplicate key", status=409, code="23505")

        assert str(exc) == "duplicate key"
        assert exc.status == 409
        assert exc.code == "23505"

    def test_details_are_optional(self):
        exc = APIException("boom")

        assert exc.status is None
        assert exc.code is None

    def test_conflict_caught_as_api_exception(self):
        with pytest.raises(APIException):
            raise ConflictException("duplicate key", status=409)
