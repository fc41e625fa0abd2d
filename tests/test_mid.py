import pytest

from residuals_engine.mid import normalize_mid, validate_mid


def test_normalize_strips_non_digits():
    assert normalize_mid("MID-1234-5678") == "12345678"
    assert normalize_mid(" 123 456 789 ") == "123456789"
    assert normalize_mid(None) == ""


@pytest.mark.parametrize("digits, valid", [
    (7, False),
    (8, True),
    (15, True),
    (20, True),
    (21, False),
])
def test_validate_length_bounds(digits, valid):
    assert validate_mid("9" * digits) is valid


def test_validate_counts_digits_after_normalizing():
    assert validate_mid("1234-5678") is True
    assert validate_mid("ABC-1234") is False
    assert validate_mid("") is False
