"""
Cell value normalization: utilization percentages and person join keys.
"""

import math
import re
from numbers import Number
from typing import Optional

from utilization_pipeline.config import FRACTION_THRESHOLD, SUMMARY_WORDS

# Leading decimal number, the way a lenient float parse reads "80 %" or "75abc"
LEADING_NUMBER = re.compile(r"^[+-]?(?:\d+(?:\.\d*)?|\.\d+)")
PARENTHESIZED = re.compile(r"\([^)]*\)")
WHITESPACE_RUN = re.compile(r"\s+")


def round1(value: float) -> float:
    """One decimal, halves rounded up (80.25 -> 80.3)."""
    return math.floor(value * 10 + 0.5) / 10


def clamp_percent(value: float) -> float:
    return max(0.0, min(100.0, value))


def _scale(number: float) -> float:
    # <= 1.5 is read as a fraction: 0.8 -> 80, 1.0 -> 100
    if number <= FRACTION_THRESHOLD:
        number = number * 100
    return clamp_percent(round1(number))


def parse_percent(cell) -> Optional[float]:
    """
    Normalize a raw cell into a utilization percentage in [0, 100].

    Accepts numbers, numeric strings and percentage strings with a
    decimal comma or dot. Returns None for empty or unparseable input.
    """
    if cell is None or isinstance(cell, bool):
        return None

    if isinstance(cell, Number):
        number = float(cell)
        if math.isnan(number) or math.isinf(number):
            return None
        return _scale(number)

    text = str(cell).strip()
    if text.endswith("%"):
        text = text[:-1].strip()
    text = text.replace(",", ".")
    m = LEADING_NUMBER.match(text)
    if not m:
        return None
    return _scale(float(m.group(0)))


def to_stored_value(parsed: float, inverse: bool) -> float:
    """Final stored utilization; inverse (NKV) columns hold 100 - utilization."""
    if inverse:
        return clamp_percent(round1(100 - parsed))
    return clamp_percent(round1(parsed))


def normalize_person_key(label: str) -> str:
    """
    Join key for a person label.

    Removes parenthesized annotations and collapses whitespace. Letters and
    casing are left untouched so both sources keep producing the same key.
    """
    without_notes = PARENTHESIZED.sub("", str(label))
    return WHITESPACE_RUN.sub(" ", without_notes).strip()


def is_summary_label(label: str) -> bool:
    """True for 'Total', 'Summe', 'Total Team X', 'Zwischensumme', ..."""
    text = str(label).strip().lower()
    return any(
        text == word or text.startswith(word) or word in text
        for word in SUMMARY_WORDS
    )


def cell_text(cell) -> Optional[str]:
    """Trimmed text of a metadata cell; integral floats lose their '.0'."""
    if cell is None or isinstance(cell, bool):
        return None
    if isinstance(cell, float):
        if math.isnan(cell):
            return None
        if cell.is_integer():
            cell = int(cell)
    text = str(cell).strip()
    return text or None
