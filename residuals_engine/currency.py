"""
Currency token normalization.

Processor extracts format money inconsistently: "$1,234.56", "1234.56",
"-$1,234.56" and accounting-style "(1,234.56)" all appear in the same file.
normalize_currency() turns every variant into a plain decimal string that
the storage layer can persist as-is.
"""
import re
from typing import Any

_STRIP_CHARS = re.compile(r"[$,\s]")
_HAS_DIGIT = re.compile(r"\d")
_ALL_ZERO = re.compile(r"[0.]+")

ZERO = "0"


def normalize_currency(raw: Any) -> str:
    """
    Convert a raw monetary token into a canonical decimal string.

    - Currency symbols, thousands separators and whitespace are removed.
    - "(N)" and "($N)" become "-N".
    - "-$N" becomes "-N".
    - Precision is preserved exactly; nothing is rounded.
    - Empty input, or input with no digits at all, becomes "0".
    - A negative zero such as "(0.00)" becomes "0".
    - Anything else left after stripping is returned as-is, even when it is
      not a number: "12abc" stays "12abc" and "USD 100" becomes "USD100".
      Callers that need a number must coerce the result themselves.

    Never raises.

    Example:
        >>> normalize_currency("($1,234.56)")
        '-1234.56'
        >>> normalize_currency("$5000.00")
        '5000.00'
    """
    if raw is None:
        return ZERO

    value = str(raw).strip()
    if not value:
        return ZERO

    negative = False
    if value.startswith("(") and value.endswith(")"):
        negative = True
        value = value[1:-1]

    value = _STRIP_CHARS.sub("", value)

    if value.startswith("-"):
        negative = True
        value = value[1:]
    elif value.startswith("+"):
        value = value[1:]

    if not _HAS_DIGIT.search(value):
        return ZERO

    if _ALL_ZERO.fullmatch(value):
        # no signed zero
        return ZERO if negative else value

    return f"-{value}" if negative else value
