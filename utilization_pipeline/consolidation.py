"""
Consolidation: merge current utilization (source A) and deployment plan
(source B) rows into one per-person, per-week series.

Business rules:
    1. Source A wins whenever it has a value for (person, week).
    2. Otherwise source B's value is used.
    3. Weeks without a value in either source produce no entry.
    4. Weeks at or before the current ISO week are historical.
    5. One source empty -> partial run over the other source (flagged).
    6. Both sources empty -> NoDataAvailable.

Every run is a full recompute; the caller replaces the stored series.
"""

from dataclasses import dataclass, field
from datetime import date
from typing import Dict, Iterable, List, Optional, Sequence

import pandas as pd

from utilization_pipeline.config import DEFAULT_FORECAST_WEEKS, DEFAULT_LOOKBACK_WEEKS
from utilization_pipeline.config.column_mappings import CONSOLIDATED_ENTRY_FIELDS
from utilization_pipeline.errors import NoDataAvailable
from utilization_pipeline.models import ConsolidatedEntry, NormalizedRow, SourceType, composite_key
from utilization_pipeline.weeks import week_window


@dataclass(frozen=True)
class ConsolidationStatus:
    can_fully_consolidate: bool
    is_partial: bool
    missing_source: Optional[str]
    message: str


@dataclass
class ConsolidationResult:
    entries: List[ConsolidatedEntry]
    status: ConsolidationStatus
    diagnostics: List[str] = field(default_factory=list)

    def to_frame(self) -> pd.DataFrame:
        return pd.DataFrame(
            [entry.to_record() for entry in self.entries],
            columns=CONSOLIDATED_ENTRY_FIELDS,
        )


def index_by_person(rows: Iterable[NormalizedRow], label: str,
                    diagnostics: List[str]) -> Dict[str, NormalizedRow]:
    """Person key -> row; the first row of a duplicated person wins."""
    index: Dict[str, NormalizedRow] = {}
    for row in rows:
        if not row.person:
            continue
        if row.person in index:
            diagnostics.append(f"WARNING: duplicate person '{row.person}' in source {label}, keeping first row")
            continue
        index[row.person] = row
    return index


def determine_status(rows_a: Sequence[NormalizedRow],
                     rows_b: Sequence[NormalizedRow]) -> ConsolidationStatus:
    has_a = len(rows_a) > 0
    has_b = len(rows_b) > 0

    if not has_a and not has_b:
        raise NoDataAvailable("No data available: neither current utilization nor deployment plan has rows")
    if has_a and has_b:
        return ConsolidationStatus(
            can_fully_consolidate=True,
            is_partial=False,
            missing_source=None,
            message="Both sources available: full consolidation",
        )
    if has_a:
        return ConsolidationStatus(
            can_fully_consolidate=False,
            is_partial=True,
            missing_source=SourceType.DEPLOYMENT_PLAN.code,
            message="Deployment plan missing: partial consolidation from current utilization only",
        )
    return ConsolidationStatus(
        can_fully_consolidate=False,
        is_partial=True,
        missing_source=SourceType.UTILIZATION.code,
        message="Current utilization missing: partial consolidation from deployment plan only",
    )


def _first(*values: Optional[str]) -> Optional[str]:
    for value in values:
        if value:
            return value
    return None


class ConsolidationEngine:
    """Merges the two sources over a window around the current ISO week."""

    def __init__(self, lookback_weeks: int = DEFAULT_LOOKBACK_WEEKS,
                 forecast_weeks: int = DEFAULT_FORECAST_WEEKS):
        if lookback_weeks < 0 or forecast_weeks < 0:
            raise ValueError("lookback_weeks and forecast_weeks must be >= 0")
        self.lookback_weeks = lookback_weeks
        self.forecast_weeks = forecast_weeks

    def consolidate(self, rows_a: Sequence[NormalizedRow], rows_b: Sequence[NormalizedRow],
                    today: Optional[date] = None) -> ConsolidationResult:
        """
        Build consolidated entries for every person in either source.

        Args:
            rows_a: current utilization rows (authoritative)
            rows_b: deployment plan rows
            today: reference day for the current ISO week (defaults to today)

        Raises:
            NoDataAvailable: both sources are empty
        """
        status = determine_status(rows_a, rows_b)
        today = today or date.today()
        diagnostics = [status.message]

        index_a = index_by_person(rows_a, "A", diagnostics)
        index_b = index_by_person(rows_b, "B", diagnostics)
        persons = list(dict.fromkeys(list(index_a) + list(index_b)))

        window = week_window(today, self.lookback_weeks, self.forecast_weeks)
        diagnostics.append(
            f"Window: {window[0].key} .. {window[-1].key} "
            f"({self.lookback_weeks} historical, {self.forecast_weeks} forecast weeks)"
        )

        entries = []
        for person in persons:
            row_a = index_a.get(person)
            row_b = index_b.get(person)
            lob = _first(row_a and row_a.lob, row_b and row_b.lob)
            bereich = _first(row_a and row_a.bereich, row_b and row_b.bereich)
            cc = _first(row_a and row_a.cc, row_b and row_b.cc)
            team = _first(row_a and row_a.team, row_b and row_b.team)
            lbs = _first(row_b and row_b.lbs, row_a and row_a.lbs)

            for week in window:
                value_a = row_a.value_for(week.key) if row_a else None
                value_b = row_b.value_for(week.key) if row_b else None

                if value_a is not None:
                    final_value, source = value_a, SourceType.UTILIZATION.code
                elif value_b is not None:
                    final_value, source = value_b, SourceType.DEPLOYMENT_PLAN.code
                else:
                    continue

                entries.append(ConsolidatedEntry(
                    person=person,
                    week=week.key,
                    year=week.year,
                    week_number=week.week,
                    source_a_value=value_a,
                    source_b_value=value_b,
                    final_value=final_value,
                    is_historical=week.is_historical,
                    is_partial=status.is_partial,
                    missing_source=status.missing_source,
                    source=source,
                    composite_key=composite_key(person, team, cc),
                    lob=lob,
                    bereich=bereich,
                    cc=cc,
                    team=team,
                    lbs=lbs,
                ))

        from_a = sum(1 for e in entries if e.source == SourceType.UTILIZATION.code)
        diagnostics.append(
            f"Consolidated {len(entries)} entries for {len(persons)} persons "
            f"({from_a} from source A, {len(entries) - from_a} from source B)"
        )
        return ConsolidationResult(entries=entries, status=status, diagnostics=diagnostics)
