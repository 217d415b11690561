"""
Header discovery for utilization sheets.

Both layouts carry a week-header row (repeated week labels such as
"KW33(2025)") followed by a sub-header row naming the role of each column
("Proj | NKV (%) | Ort"). The locator turns those rows, plus the
layout-specific person/metadata columns, into one ColumnMapping that the
extractors consume.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple

from utilization_pipeline.config import (
    DYNAMIC_PERSON_HEADER,
    FIXED_DATA_START_ROW,
    FIXED_HEADER_ROW,
    FIXED_PERSON_HEADER_KEYWORDS,
    INVERSE_COLUMN_KEYWORDS,
    MAX_VALUE_COLUMN_OFFSET,
    MIN_WEEK_LABELS_PER_ROW,
    SCAN_DEPTH,
    VALUE_COLUMN_KEYWORDS,
)
from utilization_pipeline.config.column_mappings import (
    DEPLOYMENT_PLAN_HEADER_ALIASES,
    UTILIZATION_FIXED_COLUMNS,
)
from utilization_pipeline.errors import HeaderNotFound, NoWeekColumnsFound
from utilization_pipeline.weeks import parse_week_label


@dataclass(frozen=True)
class WeekColumn:
    """The value column of one week and how to read it."""
    key: str
    week: int
    year: int
    column: int
    label: str
    inverse: bool


@dataclass(frozen=True)
class HeaderRows:
    week_row: int
    sub_row: int


@dataclass(frozen=True)
class ColumnMapping:
    """Where everything lives in a sheet; produced once, read by extractors."""
    header_row: int
    data_start_row: int
    person_column: int
    week_columns: Tuple[WeekColumn, ...]
    header_rows: HeaderRows
    metadata_columns: Dict[str, int] = field(default_factory=dict)


def cell_at(row: Sequence[Any], index: int) -> Any:
    if row is None or index < 0 or index >= len(row):
        return None
    return row[index]


def label_at(row: Sequence[Any], index: int) -> str:
    value = cell_at(row, index)
    return "" if value is None else str(value).strip().lower()


def matches_any(label: str, keywords: Sequence[str]) -> bool:
    return any(keyword in label for keyword in keywords)


def locate_week_header(grid: List[List[Any]], diagnostics: List[str],
                       scan_depth: int = SCAN_DEPTH) -> HeaderRows:
    """
    Find the first row (within `scan_depth`) carrying at least
    MIN_WEEK_LABELS_PER_ROW week labels; the sub-header is the next row.
    """
    for i, row in enumerate(grid[:scan_depth]):
        count = sum(1 for cell in row if parse_week_label(cell) is not None)
        diagnostics.append(f"Row {i + 1}: {count} week labels found")
        if count >= MIN_WEEK_LABELS_PER_ROW:
            if i + 1 >= len(grid):
                break
            diagnostics.append(f"Week header row: {i + 1}, sub-header row: {i + 2}")
            return HeaderRows(week_row=i, sub_row=i + 1)

    diagnostics.append("Week header not found")
    raise HeaderNotFound("Week header not found")


def resolve_week_columns(week_row: Sequence[Any], sub_row: Sequence[Any],
                         diagnostics: List[str]) -> List[WeekColumn]:
    """
    Pair every week label with the value column next to it.

    The value column is the first of the week column and its right
    neighbours (up to MAX_VALUE_COLUMN_OFFSET) whose sub-header matches a
    value keyword. Weeks without one are dropped.
    """
    columns = []
    seen = set()
    for j, cell in enumerate(week_row):
        label = parse_week_label(cell)
        if label is None:
            continue

        value_column: Optional[int] = None
        for offset in range(MAX_VALUE_COLUMN_OFFSET + 1):
            sub_label = label_at(sub_row, j + offset)
            if matches_any(sub_label, VALUE_COLUMN_KEYWORDS):
                value_column = j + offset
                break

        if value_column is None:
            diagnostics.append(f"WARNING: no value column for week {label.key} (column {j + 1})")
            continue
        if label.key in seen:
            diagnostics.append(f"WARNING: duplicate week {label.key} in column {j + 1} ignored")
            continue

        sub_label = label_at(sub_row, value_column)
        inverse = matches_any(sub_label, INVERSE_COLUMN_KEYWORDS)
        seen.add(label.key)
        columns.append(WeekColumn(
            key=label.key,
            week=label.week,
            year=label.year,
            column=value_column,
            label=sub_label,
            inverse=inverse,
        ))
        diagnostics.append(
            f"Week {label.key}: value column {value_column + 1} "
            f"('{sub_label}', {'inverse' if inverse else 'direct'})"
        )

    preview = ", ".join(c.key for c in columns[:8])
    more = "..." if len(columns) > 8 else ""
    diagnostics.append(f"Detected weeks: {preview}{more}")
    return columns


def _require_week_columns(grid, rows: HeaderRows, diagnostics) -> Tuple[WeekColumn, ...]:
    week_columns = resolve_week_columns(grid[rows.week_row], grid[rows.sub_row], diagnostics)
    if not week_columns:
        raise NoWeekColumnsFound("No matching week columns found")
    return tuple(week_columns)


def locate_fixed_layout(grid: List[List[Any]], diagnostics: List[str]) -> ColumnMapping:
    """
    Current-utilization export: header row and data start at fixed indices,
    metadata in columns A-D, person in column E.
    """
    rows = locate_week_header(grid, diagnostics)

    if FIXED_HEADER_ROW >= len(grid):
        diagnostics.append(f"Header row {FIXED_HEADER_ROW + 1} not available")
        raise HeaderNotFound(f"Header row {FIXED_HEADER_ROW + 1} not available")

    person_column = UTILIZATION_FIXED_COLUMNS["person"]
    person_header = label_at(grid[FIXED_HEADER_ROW], person_column)
    if not matches_any(person_header, FIXED_PERSON_HEADER_KEYWORDS):
        diagnostics.append(
            f"WARNING: column E contains '{cell_at(grid[FIXED_HEADER_ROW], person_column)}' "
            f"instead of the expected 'Mitarbeiter (ID)'"
        )
    diagnostics.append(
        f"Fixed layout: header row {FIXED_HEADER_ROW + 1}, data from row "
        f"{FIXED_DATA_START_ROW + 1}, person column E"
    )

    week_columns = _require_week_columns(grid, rows, diagnostics)
    metadata = {name: index for name, index in UTILIZATION_FIXED_COLUMNS.items() if name != "person"}
    return ColumnMapping(
        header_row=FIXED_HEADER_ROW,
        data_start_row=FIXED_DATA_START_ROW,
        person_column=person_column,
        week_columns=week_columns,
        header_rows=rows,
        metadata_columns=metadata,
    )


def find_person_header_row(grid: List[List[Any]], scan_depth: int = SCAN_DEPTH) -> Optional[int]:
    for i, row in enumerate(grid[:scan_depth]):
        if any(label_at(row, j) == DYNAMIC_PERSON_HEADER for j in range(len(row))):
            return i
    return None


def locate_dynamic_layout(grid: List[List[Any]], diagnostics: List[str]) -> ColumnMapping:
    """
    Deployment plan: the person column is the one headed "Name", metadata
    columns are found by header text, and each week spans a
    project/NKV/location triplet discovered from the week header.
    """
    rows = locate_week_header(grid, diagnostics)

    header_row = find_person_header_row(grid)
    if header_row is None:
        diagnostics.append("Header with 'Name' not found")
        raise HeaderNotFound("Header with 'Name' not found")

    header = grid[header_row]
    labels = [label_at(header, j) for j in range(len(header))]
    person_column = labels.index(DYNAMIC_PERSON_HEADER)

    metadata: Dict[str, int] = {}
    for j, text in enumerate(labels):
        name = DEPLOYMENT_PLAN_HEADER_ALIASES.get(text)
        if name and name not in metadata:
            metadata[name] = j

    diagnostics.append(
        f"Person header row: {header_row + 1}, person column {person_column + 1}, "
        f"metadata columns: {', '.join(sorted(metadata)) or 'none'}"
    )

    week_columns = _require_week_columns(grid, rows, diagnostics)
    return ColumnMapping(
        header_row=header_row,
        data_start_row=max(header_row, rows.sub_row) + 1,
        person_column=person_column,
        week_columns=week_columns,
        header_rows=rows,
        metadata_columns=metadata,
    )
