import pytest

from tradesim.types import MAX_ID_SIZE, to_long, validate_id


def test_validate_id_returns_value():
    assert validate_id("market-a") == "market-a"


def test_validate_id_accepts_max_length():
    ident = "x" * MAX_ID_SIZE
    assert validate_id(ident) == ident


def test_validate_id_rejects_too_long():
    with pytest.raises(ValueError):
        validate_id("x" * (MAX_ID_SIZE + 1))


def test_validate_id_counts_encoded_bytes():
    with pytest.raises(ValueError):
        validate_id("\u00e9" * MAX_ID_SIZE)


def test_validate_id_rejects_non_string():
    with pytest.raises(TypeError):
        validate_id(12)


@pytest.mark.parametrize("text, expected", [("123", 123), ("-45", -45), ("0", 0)])
def test_to_long_parses(text, expected):
    assert to_long(text) == expected


def test_to_long_uses_leading_digits():
    assert to_long("12abc") == 12


@pytest.mark.parametrize("text", ["", "abc", "-", " 12", "+5"])
def test_to_long_rejects_invalid(text):
    with pytest.raises(ValueError):
        to_long(text)


def test_to_long_rejects_overflow():
    with pytest.raises(ValueError):
        to_long("9" * 30)