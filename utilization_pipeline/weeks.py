"""
Calendar week handling: week-label parsing, canonical YY/WW keys and the
ISO week window used by consolidation.

Supported week labels (case-insensitive, whitespace-tolerant), tried in order:
    KW33(2025)      week, then 4-digit year in parentheses
    KW33/2025       week, then 4-digit year after '/' or '-'
    KW25/33         2-digit year first, then week (reversed operands)
"""

import re
from dataclasses import dataclass
from datetime import date, timedelta
from typing import List, Optional

from utilization_pipeline.config import MAX_WEEK, MIN_WEEK

WEEK_IN_PARENS = re.compile(r"KW\s*(\d{1,2})\s*\(\s*(\d{4})\s*\)", re.IGNORECASE)
WEEK_THEN_YEAR = re.compile(r"KW\s*(\d{1,2})\s*[/-]\s*(\d{4})(?!\d)", re.IGNORECASE)
YEAR_THEN_WEEK = re.compile(r"KW\s*(\d{2})\s*/\s*(\d{1,2})(?!\d)", re.IGNORECASE)

WEEK_KEY_PATTERN = re.compile(r"^\d{2}/\d{2}$")


@dataclass(frozen=True)
class WeekLabel:
    week: int
    year: int

    @property
    def key(self) -> str:
        return to_week_key(self.week, self.year)


@dataclass(frozen=True)
class WindowWeek:
    """One calendar week inside a consolidation window."""
    key: str
    year: int
    week: int
    is_historical: bool


def to_week_key(week: int, year: int) -> str:
    """Render the canonical key, e.g. (1, 2025) -> '25/01'."""
    return f"{year % 100:02d}/{week:02d}"


def is_week_key(value) -> bool:
    return isinstance(value, str) and WEEK_KEY_PATTERN.match(value) is not None


def _accept(week: int, year: int) -> Optional[WeekLabel]:
    if MIN_WEEK <= week <= MAX_WEEK:
        return WeekLabel(week=week, year=year)
    return None


def parse_week_label(cell) -> Optional[WeekLabel]:
    """
    Parse a free-text header cell into a WeekLabel.

    Returns None for non-text cells, unrecognized text, and week numbers
    outside [1, 53]. A pattern that matches but carries an invalid week
    does not fall through to the next pattern.
    """
    if not isinstance(cell, str):
        return None
    text = cell.strip()
    if not text:
        return None

    m = WEEK_IN_PARENS.search(text)
    if m:
        return _accept(int(m.group(1)), int(m.group(2)))

    m = WEEK_THEN_YEAR.search(text)
    if m:
        return _accept(int(m.group(1)), int(m.group(2)))

    m = YEAR_THEN_WEEK.search(text)
    if m:
        return _accept(int(m.group(2)), 2000 + int(m.group(1)))

    return None


def iso_week_of(day: date) -> WeekLabel:
    """ISO-8601 week of a date (week-numbering year, not calendar year)."""
    iso_year, iso_week, _ = day.isocalendar()
    return WeekLabel(week=iso_week, year=iso_year)


def week_window(today: date, lookback_weeks: int, forecast_weeks: int) -> List[WindowWeek]:
    """
    Weeks from `lookback_weeks` before the current ISO week up to
    `forecast_weeks` after it, in chronological order.

    The current week counts as historical. Stepping by whole days keeps
    year boundaries and 53-week years correct.
    """
    if lookback_weeks < 0 or forecast_weeks < 0:
        raise ValueError("lookback_weeks and forecast_weeks must be >= 0")

    weeks = []
    for offset in range(-lookback_weeks, forecast_weeks + 1):
        label = iso_week_of(today + timedelta(weeks=offset))
        weeks.append(WindowWeek(
            key=label.key,
            year=label.year,
            week=label.week,
            is_historical=offset <= 0,
        ))
    return weeks
