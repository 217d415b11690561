"""
Sheet extraction for both source types, from grid and from workbook bytes.

Run: pytest tests/test_extractors.py -v
"""

import pytest

from utilization_pipeline.errors import ErrorKind
from utilization_pipeline.extractors import (
    DeploymentPlanSheetExtractor,
    UtilizationSheetExtractor,
    extract_workbook,
    extractor_for,
)
from utilization_pipeline.models import SourceType

from conftest import (
    DEPLOYMENT_PLAN_ROWS,
    build_workbook,
    deployment_plan_grid,
    utilization_grid,
)


def rows_by_person(result):
    return {row.person: row for row in result.rows}


class TestUtilizationExtractor:
    """Source A: fixed layout, NKV columns are inverse."""

    def test_end_to_end_nkv_inverse(self):
        """Raw 25 under an NKV column is stored as 75% utilization."""
        grid = utilization_grid([
            ["LoB1", "B1", "CC1", "Team X", "Anna Schmidt", "P1", 25],
            [None, None, None, None, "Total", None, 50],
            ["LoB1", None, None, "Total", "Gesamt", None, 50],
        ])

        result = UtilizationSheetExtractor().extract_grid(grid)

        assert result.is_valid
        assert len(result.rows) == 1
        row = result.rows[0]
        assert row.person == "Anna Schmidt"
        assert dict(row.values) == {"25/33": 75.0}
        assert (row.lob, row.bereich, row.cc, row.team) == ("LoB1", "B1", "CC1", "Team X")

    def test_workbook_bytes(self, utilization_bytes):
        result = extract_workbook(utilization_bytes, SourceType.UTILIZATION)

        assert result.is_valid, result.error
        rows = rows_by_person(result)
        assert set(rows) == {"Anna Schmidt", "Bob Meier"}
        assert dict(rows["Bob Meier"].values) == {"25/33": 50.0, "25/34": 89.5}
        assert result.week_keys == ["25/33", "25/34", "25/35"]

    def test_summary_rows_excluded(self, utilization_bytes):
        result = extract_workbook(utilization_bytes, SourceType.UTILIZATION)

        persons = {row.person for row in result.rows}
        assert "Summe Team X" not in persons
        assert "Gesamt" not in persons
        assert any("summary row 'Summe Team X'" in line for line in result.diagnostics)
        assert any("total row (team 'Total')" in line for line in result.diagnostics)

    def test_rows_without_values_skipped(self):
        grid = utilization_grid([
            ["LoB1", "B1", "CC1", "Team X", "Anna Schmidt", "P1", 25],
            ["LoB1", "B1", "CC1", "Team X", "Dora Ley", "P1", "n/a"],
        ])

        result = UtilizationSheetExtractor().extract_grid(grid)

        assert [row.person for row in result.rows] == ["Anna Schmidt"]
        assert any("'Dora Ley', no valid week values" in line for line in result.diagnostics)

    def test_annotation_only_person_skipped(self):
        grid = utilization_grid([
            ["LoB1", "B1", "CC1", "Team X", "Anna Schmidt", "P1", 25],
            ["LoB1", "B1", "CC1", "Team X", "(vakant)", "P1", 40],
        ])

        result = UtilizationSheetExtractor().extract_grid(grid)

        assert result.is_valid
        assert [row.person for row in result.rows] == ["Anna Schmidt"]
        assert any("'(vakant)', empty person key" in line for line in result.diagnostics)

    def test_rows_before_data_start_ignored(self):
        grid = utilization_grid([["LoB1", "B1", "CC1", "Team X", "Anna Schmidt", "P1", 25]])
        grid[6] = ["LoB1", "B1", "CC1", "Team X", "Not Data", "P1", 10]

        result = UtilizationSheetExtractor().extract_grid(grid)

        assert [row.person for row in result.rows] == ["Anna Schmidt"]

    def test_no_person_rows(self):
        grid = utilization_grid([[None, None, None, "Total", "Total", None, 50]])

        result = UtilizationSheetExtractor().extract_grid(grid)

        assert not result.is_valid
        assert result.kind == ErrorKind.NO_PERSON_ROWS_FOUND
        assert result.rows == []


class TestDeploymentPlanExtractor:
    """Source B: 'Name' column, week triplets, metadata by header."""

    def test_values_and_metadata(self):
        result = DeploymentPlanSheetExtractor().extract_grid(deployment_plan_grid(DEPLOYMENT_PLAN_ROWS))

        assert result.is_valid
        rows = rows_by_person(result)
        assert set(rows) == {"Anna Schmidt", "Carla Nowak"}

        anna = rows["Anna Schmidt"]
        assert dict(anna.values) == {"25/33": 80.0, "25/34": 70.0, "25/35": 60.0}
        assert (anna.lob, anna.cc, anna.team, anna.lbs, anna.vg) == ("LoB1", "CC1", "Team X", "LBS-7", "VG1")

        carla = rows["Carla Nowak"]
        assert carla.person_display == "Carla Nowak (extern)"
        assert dict(carla.values) == {"25/34": 0.0}
        assert carla.lbs is None

    def test_workbook_bytes(self, deployment_plan_bytes):
        result = extract_workbook(deployment_plan_bytes, SourceType.DEPLOYMENT_PLAN)

        assert result.is_valid, result.error
        assert dict(rows_by_person(result)["Anna Schmidt"].values)["25/33"] == 80.0

    def test_header_not_found(self):
        grid = deployment_plan_grid(DEPLOYMENT_PLAN_ROWS)
        grid[1][6] = "Mitarbeiter"

        result = DeploymentPlanSheetExtractor().extract_grid(grid)

        assert not result.is_valid
        assert result.kind == ErrorKind.HEADER_NOT_FOUND
        assert "Header with 'Name' not found" in result.diagnostics


class TestExtractionErrors:

    def test_no_week_header(self):
        grid = [["Name", "Team"], ["Anna Schmidt", "Team X"]]

        result = DeploymentPlanSheetExtractor().extract_grid(grid)

        assert result.kind == ErrorKind.HEADER_NOT_FOUND

    def test_unreadable_bytes(self):
        result = extract_workbook(b"definitely not a spreadsheet", SourceType.UTILIZATION)

        assert not result.is_valid
        assert result.kind == ErrorKind.UNREADABLE_WORKBOOK

    def test_empty_sheet(self):
        result = extract_workbook(build_workbook([]), SourceType.UTILIZATION)

        assert result.kind == ErrorKind.EMPTY_SHEET

    def test_only_first_sheet_is_read(self, utilization_bytes):
        from io import BytesIO

        from openpyxl import load_workbook

        wb = load_workbook(BytesIO(utilization_bytes))
        wb.create_sheet("Notes", 0)
        wb["Notes"].append(["no weeks here"])
        buffer = BytesIO()
        wb.save(buffer)

        result = extract_workbook(buffer.getvalue(), SourceType.UTILIZATION)

        assert result.kind == ErrorKind.HEADER_NOT_FOUND


class TestExtractorSelection:

    @pytest.mark.parametrize("source_type, cls", [
        (SourceType.UTILIZATION, UtilizationSheetExtractor),
        ("deployment_plan", DeploymentPlanSheetExtractor),
    ])
    def test_extractor_for(self, source_type, cls):
        assert isinstance(extractor_for(source_type), cls)

    def test_preview(self, utilization_bytes):
        result = extract_workbook(utilization_bytes, SourceType.UTILIZATION)

        preview = result.preview(limit=1)

        assert preview[0] == ["person", "25/33", "25/34", "25/35"]
        assert preview[1] == ["Anna Schmidt", "75%", "", ""]
