"""
Sheet extractors: grid -> NormalizedRow list.

Two strategies share one contract:

    UtilizationSheetExtractor      source A, fixed layout (A-D metadata,
                                   person in E, header row 4, data from row 9)
    DeploymentPlanSheetExtractor   source B, dynamic layout ("Name" column,
                                   week triplets project / NKV / location)

Per-file problems never raise past extract_grid / extract_workbook; they
come back as an ExtractionError carrying the error kind and diagnostics.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Union

from utilization_pipeline.config import TOTAL_TEAM_VALUE
from utilization_pipeline.errors import ErrorKind, NoPersonRowsFound, SheetParseError
from utilization_pipeline.headers import (
    ColumnMapping,
    cell_at,
    locate_dynamic_layout,
    locate_fixed_layout,
)
from utilization_pipeline.models import NormalizedRow, SourceType
from utilization_pipeline.values import (
    cell_text,
    is_summary_label,
    normalize_person_key,
    parse_percent,
    to_stored_value,
)
from utilization_pipeline.workbook import Grid, read_first_sheet


# =============================================================================
# RESULT TYPES
# =============================================================================

@dataclass
class ExtractionOk:
    rows: List[NormalizedRow]
    diagnostics: List[str] = field(default_factory=list)
    week_keys: List[str] = field(default_factory=list)

    is_valid = True
    error = None
    kind = None

    def preview(self, limit: int = 5) -> List[List[str]]:
        """Header plus the first `limit` rows, values rendered as 'NN%'."""
        header = ["person"] + self.week_keys
        body = []
        for row in self.rows[:limit]:
            cells = [row.person]
            for key in self.week_keys:
                value = row.value_for(key)
                cells.append("" if value is None else f"{value:g}%")
            body.append(cells)
        return [header] + body


@dataclass
class ExtractionError:
    kind: ErrorKind
    message: str
    diagnostics: List[str] = field(default_factory=list)

    is_valid = False
    rows: List[NormalizedRow] = field(default_factory=list)

    @property
    def error(self) -> str:
        return self.message


ExtractionResult = Union[ExtractionOk, ExtractionError]


def error_result(exc: SheetParseError, diagnostics: List[str]) -> ExtractionError:
    return ExtractionError(kind=exc.kind, message=str(exc), diagnostics=diagnostics)


# =============================================================================
# EXTRACTORS
# =============================================================================

class SheetExtractor(ABC):
    """Turns one sheet grid into normalized rows."""

    source_type: SourceType

    @abstractmethod
    def locate(self, grid: Grid, diagnostics: List[str]) -> ColumnMapping:
        """Build the column mapping; raises a SheetParseError."""

    def skip_reason(self, row: List[Any], mapping: ColumnMapping, person_label: str) -> Optional[str]:
        if is_summary_label(person_label):
            return f"summary row '{person_label}'"
        return None

    def metadata(self, row: List[Any], mapping: ColumnMapping) -> Dict[str, Optional[str]]:
        return {
            name: cell_text(cell_at(row, index))
            for name, index in mapping.metadata_columns.items()
        }

    def extract(self, grid: Grid, mapping: ColumnMapping,
                diagnostics: Optional[List[str]] = None) -> ExtractionResult:
        """Walk the data rows once using a mapping from locate()."""
        diagnostics = [] if diagnostics is None else diagnostics
        rows = []
        available = max(len(grid) - mapping.data_start_row, 0)
        diagnostics.append(f"Processing data from row {mapping.data_start_row + 1} ({available} rows available)")

        for r in range(mapping.data_start_row, len(grid)):
            row = grid[r]
            person_label = cell_text(cell_at(row, mapping.person_column))
            if not person_label:
                continue

            reason = self.skip_reason(row, mapping, person_label)
            if reason:
                diagnostics.append(f"Row {r + 1}: skipping {reason}")
                continue

            person = normalize_person_key(person_label)
            if not person:
                diagnostics.append(f"Row {r + 1}: skipping '{person_label}', empty person key")
                continue

            values = {}
            for week in mapping.week_columns:
                parsed = parse_percent(cell_at(row, week.column))
                if parsed is None:
                    continue
                values[week.key] = to_stored_value(parsed, week.inverse)

            if not values:
                diagnostics.append(f"Row {r + 1}: skipping '{person_label}', no valid week values")
                continue

            diagnostics.append(f"Row {r + 1}: '{person_label}' -> key '{person}', {len(values)} week values")
            rows.append(NormalizedRow(
                person=person,
                person_display=person_label,
                values=values,
                **self.metadata(row, mapping),
            ))

        if not rows:
            diagnostics.append("No person rows found")
            return error_result(NoPersonRowsFound("No person rows found"), diagnostics)

        sample_weeks = ", ".join(list(rows[0].values)[:5])
        diagnostics.append(f"Example person: {rows[0].person_display} -> weeks {sample_weeks}")
        return ExtractionOk(
            rows=rows,
            diagnostics=diagnostics,
            week_keys=[week.key for week in mapping.week_columns],
        )

    def extract_grid(self, grid: Grid) -> ExtractionResult:
        """locate() + extract() with per-file errors folded into the result."""
        diagnostics: List[str] = []
        try:
            mapping = self.locate(grid, diagnostics)
            return self.extract(grid, mapping, diagnostics)
        except SheetParseError as e:
            return error_result(e, diagnostics)


class UtilizationSheetExtractor(SheetExtractor):
    source_type = SourceType.UTILIZATION

    def locate(self, grid: Grid, diagnostics: List[str]) -> ColumnMapping:
        return locate_fixed_layout(grid, diagnostics)

    def skip_reason(self, row, mapping, person_label):
        reason = super().skip_reason(row, mapping, person_label)
        if reason:
            return reason
        team = cell_text(cell_at(row, mapping.metadata_columns.get("team", -1)))
        if team and team.lower() == TOTAL_TEAM_VALUE:
            return f"total row (team '{team}')"
        return None


class DeploymentPlanSheetExtractor(SheetExtractor):
    source_type = SourceType.DEPLOYMENT_PLAN

    def locate(self, grid: Grid, diagnostics: List[str]) -> ColumnMapping:
        return locate_dynamic_layout(grid, diagnostics)


EXTRACTORS = {
    SourceType.UTILIZATION: UtilizationSheetExtractor,
    SourceType.DEPLOYMENT_PLAN: DeploymentPlanSheetExtractor,
}


def extractor_for(source_type: SourceType) -> SheetExtractor:
    return EXTRACTORS[SourceType(source_type)]()


def extract_workbook(content: bytes, source_type: SourceType) -> ExtractionResult:
    """Read the first sheet of a workbook and run the matching extractor."""
    try:
        grid = read_first_sheet(content)
    except SheetParseError as e:
        return error_result(e, [str(e)])
    return extractor_for(source_type).extract_grid(grid)
