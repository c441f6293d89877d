"""Unit tests for custom exceptions."""

import pytest

from deckcanvas.exceptions import AssetStoreError, CanvasContractError, UnknownTemplateError


class TestCanvasContractError:
    """Tests for CanvasContractError."""

    def test_attributes_and_message(self):
        """Test that the offending dimensions are kept and reported."""
        error = CanvasContractError(-1, 540)
        assert error.width == -1
        assert error.height == 540
        assert str(error) == "canvas dimensions must be positive (got -1x540)"

    def test_custom_message(self):
        error = CanvasContractError(0, 0, "bad canvas")
        assert error.message == "bad canvas"
        assert "bad canvas" in str(error)

    def test_is_value_error(self):
        with pytest.raises(ValueError):
            raise CanvasContractError(0, 0)


class TestUnknownTemplateError:
    """Tests for UnknownTemplateError."""

    def test_template_kept(self):
        error = UnknownTemplateError("partner-profile")
        assert error.template == "partner-profile"
        assert "partner-profile" in str(error)

    def test_is_key_error(self):
        with pytest.raises(KeyError):
            raise UnknownTemplateError("x")


class TestAssetStoreError:
    """Tests for AssetStoreError."""

    def test_message(self):
        with pytest.raises(AssetStoreError, match="disk full"):
            raise AssetStoreError("disk full")
