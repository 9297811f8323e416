"""Numeric coercion for heterogeneous spreadsheet cells."""

import math
import re
from typing import Any

_NON_NUMERIC_CHARS = re.compile(r"[^\d.]")
_THOUSANDS_SUFFIX = re.compile(r"[kK]\s*$")


def clean_number(value: Any) -> float:
    """Coerce a spreadsheet cell into a float.

    Strings ending in k/K are multiplied by 1000 ("2.5k" -> 2500). Every
    character other than digits and '.' is stripped ("1,234" -> 1234).
    Anything unparsable becomes 0.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, str):
        text = value.strip()
        multiplier = 1.0
        if _THOUSANDS_SUFFIX.search(text):
            multiplier = 1000.0
            text = _THOUSANDS_SUFFIX.sub("", text)
        text = _NON_NUMERIC_CHARS.sub("", text)
        try:
            number = float(text) * multiplier
        except ValueError:
            return 0.0
    else:
        try:
            number = float(value)
        except (TypeError, ValueError):
            return 0.0

    if math.isnan(number):
        return 0.0
    return number
