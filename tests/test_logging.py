"""Tests for log sanitizing helpers"""
import pytest

from storefront.logging import get_logger, sanitize_id_for_logging, sanitize_string_for_logging


def test_get_logger_is_cached():
    assert get_logger("storefront.test") is get_logger("storefront.test")


@pytest.mark.parametrize("value", [None, ""])
def test_empty_values(value):
    assert sanitize_id_for_logging(value) == "N/A"
    assert sanitize_string_for_logging(value) == "N/A"


def test_id_is_truncated_without_suffix():
    assert sanitize_id_for_logging("0123456789abcdef") == "01234567"


def test_control_characters_cannot_forge_lines():
    assert sanitize_string_for_logging("a\nFAKE\r\tb\x00") == "a\\nFAKE\\r\\tb"


def test_long_text_gets_ellipsis():
    assert sanitize_string_for_logging("x" * 60, max_length=10) == "x" * 10 + "..."
