"""Amount-to-words rendering with crore/lakh/thousand grouping.

    >>> amount_in_words(1500)
    'Rupees One Thousand Five Hundred Only'
    >>> amount_in_words(12345678.5)
    'Rupees One Crore Twenty Three Lakh Forty Five Thousand Six Hundred Seventy Eight and 50/100 Only'
"""
from __future__ import annotations
import math

ZERO_PHRASE = "Zero Rupees Only"

ONES: tuple[str, ...] = (
    "", "One", "Two", "Three", "Four", "Five", "Six", "Seven", "Eight", "Nine", "Ten",
    "Eleven", "Twelve", "Thirteen", "Fourteen", "Fifteen", "Sixteen", "Seventeen",
    "Eighteen", "Nineteen",
)
TENS: tuple[str, ...] = (
    "", "", "Twenty", "Thirty", "Forty", "Fifty", "Sixty", "Seventy", "Eighty", "Ninety",
)

CRORE = 10_000_000
LAKH = 100_000
THOUSAND = 1_000

def _below_hundred(n: int) -> list[str]:
    if n < 20:
        return [ONES[n]] if n else []
    words = [TENS[n // 10]]
    if n % 10:
        words.append(ONES[n % 10])
    return words

def _below_thousand(n: int) -> list[str]:
    words: list[str] = []
    if n >= 100:
        words += [ONES[n // 100], "Hundred"]
    return words + _below_hundred(n % 100)

def _integer_words(n: int) -> list[str]:
    words: list[str] = []
    crores, n = divmod(n, CRORE)
    lakhs, n = divmod(n, LAKH)
    thousands, n = divmod(n, THOUSAND)

    if crores:
        # Counts past 999 crore are grouped again
        head = _integer_words(crores) if crores >= THOUSAND else _below_thousand(crores)
        words += head + ["Crore"]
    if lakhs:
        words += _below_hundred(lakhs) + ["Lakh"]
    if thousands:
        words += _below_hundred(thousands) + ["Thousand"]
    return words + _below_thousand(n)

def amount_in_words(amount: float) -> str:
    if not math.isfinite(amount) or amount < 0:
        raise ValueError(f"amount must be a non-negative number, got {amount}")

    whole = int(math.floor(amount))
    paisa = int(math.floor((amount - whole) * 100 + 0.5))
    if paisa == 100:
        whole, paisa = whole + 1, 0
    if not whole and not paisa:
        return ZERO_PHRASE

    parts = ["Rupees"] + _integer_words(whole)
    if paisa:
        parts.append(f"and {paisa}/100")
    return " ".join(parts) + " Only"
