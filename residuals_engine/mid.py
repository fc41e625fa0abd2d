"""
Merchant identifier (MID) normalization and validation.

A MID is only ever compared, looked up or persisted in its normalized,
digits-only form.
"""
import re
from typing import Any

from config import config

_NON_DIGIT = re.compile(r"\D")


def normalize_mid(raw: Any) -> str:
    """Strip every non-digit character: "MID-1234-5678" -> "12345678"."""
    if raw is None:
        return ""
    return _NON_DIGIT.sub("", str(raw))


def validate_mid(raw: Any) -> bool:
    """True iff the normalized MID has between 8 and 20 digits (inclusive)."""
    length = len(normalize_mid(raw))
    return config.mid.min_length <= length <= config.mid.max_length
