"""Unit tests for amount-to-words rendering."""

import pytest

from words import ZERO_PHRASE, amount_in_words


def test_zero_amount_uses_fixed_phrase():
    assert amount_in_words(0) == ZERO_PHRASE == "Zero Rupees Only"


@pytest.mark.parametrize(
    "amount,fragment",
    [
        (1500, "One Thousand Five Hundred"),
        (100000, "One Lakh"),
        (10000000, "One Crore"),
    ],
)
def test_magnitude_groups(amount, fragment):
    assert fragment in amount_in_words(amount)


@pytest.mark.parametrize(
    "amount,expected",
    [
        (1, "Rupees One Only"),
        (13, "Rupees Thirteen Only"),
        (20, "Rupees Twenty Only"),
        (45, "Rupees Forty Five Only"),
        (100, "Rupees One Hundred Only"),
        (189, "Rupees One Hundred Eighty Nine Only"),
        (1500, "Rupees One Thousand Five Hundred Only"),
        (99999, "Rupees Ninety Nine Thousand Nine Hundred Ninety Nine Only"),
        (250000, "Rupees Two Lakh Fifty Thousand Only"),
        (12345678, "Rupees One Crore Twenty Three Lakh Forty Five Thousand Six Hundred Seventy Eight Only"),
        (4500000007, "Rupees Four Hundred Fifty Crore Seven Only"),
        (20000000000, "Rupees Two Thousand Crore Only"),
    ],
)
def test_full_phrases(amount, expected):
    assert amount_in_words(amount) == expected


@pytest.mark.parametrize(
    "amount,expected",
    [
        (189.5, "Rupees One Hundred Eighty Nine and 50/100 Only"),
        (10.25, "Rupees Ten and 25/100 Only"),
        (0.75, "Rupees and 75/100 Only"),
    ],
)
def test_fraction_is_appended_as_hundredths(amount, expected):
    assert amount_in_words(amount) == expected


def test_fraction_rounding_carries_into_whole_part():
    assert amount_in_words(9.999) == "Rupees Ten Only"


def test_tiny_fraction_rounds_to_zero_phrase():
    assert amount_in_words(0.001) == ZERO_PHRASE


@pytest.mark.parametrize("amount", [-1, -0.5, float("nan"), float("inf")])
def test_rejects_negative_and_non_finite(amount):
    with pytest.raises(ValueError):
        amount_in_words(amount)
