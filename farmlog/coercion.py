# farmlog/coercion.py
import math
from typing import Optional, Union

Number = Union[int, float]


def parse_number(text) -> Optional[float]:
    """Parse a form input; blank, non-numeric and non-finite give None (never 0)."""
    if text is None or isinstance(text, bool):
        return None
    if isinstance(text, (int, float)):
        value = float(text)
    else:
        text = str(text).strip()
        # float() also takes "1_000" and full-width digits; a form number does not
        if not text or "_" in text or not text.isascii():
            return None
        try:
            value = float(text)
        except ValueError:
            return None
    if not math.isfinite(value):
        return None
    return value


def is_positive(text) -> bool:
    value = parse_number(text)
    return value is not None and value > 0


def to_number(text) -> Optional[Number]:
    """Coerce a form input for storage. Integral values are stored as int."""
    value = parse_number(text)
    if value is None:
        return None
    if value.is_integer():
        return int(value)
    return value


def format_number(value) -> str:
    """Stored number back to its form string: 10 -> "10", 10.0 -> "10", 0.5 -> "0.5"."""
    if value is None or value == "":
        return ""
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)
