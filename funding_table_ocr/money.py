from __future__ import annotations

import re
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional, Union

from . import config

# Letters Tesseract routinely returns in place of digits.
_OCR_DIGITS = str.maketrans(
    {
        "O": "0",
        "o": "0",
        "I": "1",
        "l": "1",
        "|": "1",
        "S": "5",
        "s": "5",
    }
)

_MONEY_RE = re.compile(r"^(\d+)(?:\.(\d{0,%d}))?$" % int(config.MAX_FRACTION_DIGITS))


def _strip_noise(s: str) -> str:
    s = re.sub(r"\s+", "", s or "")
    for sym in config.CURRENCY_SYMBOLS:
        s = s.replace(sym, "")
    return s.replace(",", "")


def parse_amount(text: str) -> Optional[int]:
    """
    Parse noisy OCR money text into integer minor units.

    Returns None (never raises) when the text is not a plain `digits[.digits]` amount.
    """
    s = _strip_noise(text)
    if not s:
        return None
    if any(c.isdigit() for c in s):
        s = s.translate(_OCR_DIGITS)
    m = _MONEY_RE.match(s)
    if not m:
        return None
    whole, frac = m.group(1), m.group(2) or ""
    return int(whole) * 100 + int((frac + "00")[:2])


def to_minor_units(major: Union[int, float, str]) -> int:
    try:
        d = Decimal(str(major))
    except InvalidOperation as e:
        raise ValueError(f"Not a money amount: {major!r}") from e
    return int((d * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_amount(minor: int, symbol: str = config.CURRENCY_SYMBOL) -> str:
    sign = "-" if int(minor) < 0 else ""
    whole, cents = divmod(abs(int(minor)), 100)
    return f"{sign}{symbol}{whole:,}.{cents:02d}"


def looks_like_money(text: str) -> bool:
    """Cheap shape check used by the OCR word filter (digit or currency symbol present)."""
    return any(c.isdigit() or c in config.CURRENCY_SYMBOLS for c in (text or ""))
