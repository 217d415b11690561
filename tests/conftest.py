"""
Shared fixtures: sheet grids for both layouts and in-memory workbooks.

Reference week is KW34/2025 (2025-08-20). The sheets carry KW33-KW35.
"""

import io
from datetime import date

import pytest
from openpyxl import Workbook

TODAY = date(2025, 8, 20)


def build_workbook(grid, title="Sheet1") -> bytes:
    """Write a grid (list of rows) into an .xlsx held in memory."""
    wb = Workbook()
    ws = wb.active
    ws.title = title
    for row in grid:
        ws.append(list(row))
    buffer = io.BytesIO()
    wb.save(buffer)
    return buffer.getvalue()


def utilization_grid(data_rows):
    """Fixed layout: header row 4, sub-header row 5, data from row 9."""
    return [
        ["Auslastung Team Report"],
        ["Stand", "2025-08-20"],
        [],
        ["LoB", "Bereich", "CC", "Team", "Mitarbeiter (ID)",
         "KW33(2025)", None, "KW34(2025)", None, "KW35(2025)", None],
        [None, None, None, None, None,
         "Proj", "NKV (%)", "Proj", "NKV (%)", "Proj", "NKV (%)"],
        [],
        [],
        [],
    ] + [list(row) for row in data_rows]


def deployment_plan_grid(data_rows):
    """Dynamic layout: 'Name' header and week triplets project / NKV / location."""
    return [
        ["Einsatzplan"],
        ["Business Unit", "Bereich", "Competence Center (CC)", "Team", "LBS", "VG", "Name",
         "KW33/2025", None, None, "KW34/2025", None, None, "KW35/2025", None, None],
        [None, None, None, None, None, None, None,
         "Projekt", "NKV (%)", "Ort", "Projekt", "NKV (%)", "Ort", "Projekt", "NKV (%)", "Ort"],
    ] + [list(row) for row in data_rows]


UTILIZATION_ROWS = [
    # LoB, Bereich, CC, Team, person, KW33 proj, KW33 NKV, KW34 proj, KW34 NKV, KW35 proj, KW35 NKV
    ["LoB1", "B1", "CC1", "Team X", "Anna Schmidt", "P1", 25, "P1", None, None, None],
    ["LoB1", "B1", "CC1", "Team X", "Bob Meier", "P2", 0.5, "P2", "10,5", None, None],
    ["LoB1", "B1", "CC1", "Team X", "Summe Team X", None, 40, None, 40, None, None],
    ["LoB1", None, None, "Total", "Gesamt", None, 30, None, 30, None, None],
]

DEPLOYMENT_PLAN_ROWS = [
    ["LoB1", "B1", "CC1", "Team X", "LBS-7", "VG1", "Anna Schmidt",
     "P1", 0.2, "Berlin", "P1", "30%", "Berlin", "P3", 40, "Munich"],
    ["LoB2", "B2", "CC2", "Team Y", None, None, "Carla Nowak (extern)",
     "P4", None, None, "P4", 100, "Hamburg", None, None, None],
    [None, None, None, None, None, None, "Total",
     None, 10, None, None, 10, None, None, 10, None],
]


@pytest.fixture
def today():
    return TODAY


@pytest.fixture
def utilization_bytes():
    return build_workbook(utilization_grid(UTILIZATION_ROWS))


@pytest.fixture
def deployment_plan_bytes():
    return build_workbook(deployment_plan_grid(DEPLOYMENT_PLAN_ROWS))
