"""
Workbook loading: raw .xlsx/.xls bytes -> grid of the first sheet.

pandas picks the engine from the content: openpyxl for .xlsx, xlrd for .xls.
"""

import io
import zipfile
from typing import Any, List

import pandas as pd
import xlrd
from openpyxl.utils.exceptions import InvalidFileException

from utilization_pipeline.errors import EmptySheet, NoSheetsFound, UnreadableWorkbook

Grid = List[List[Any]]


def frame_to_grid(df: pd.DataFrame) -> Grid:
    """Row-major list of cells; empty cells become None."""
    df = df.astype(object)
    return df.where(df.notna(), None).values.tolist()


def read_first_sheet(content: bytes) -> Grid:
    """
    Load the first sheet (workbook order) as a grid without header inference.

    Raises:
        UnreadableWorkbook: content is not a readable spreadsheet
        NoSheetsFound: workbook has no sheets
        EmptySheet: first sheet has no rows
    """
    try:
        sheets = pd.read_excel(io.BytesIO(content), sheet_name=None, header=None)
    except (ValueError, OSError, KeyError, zipfile.BadZipFile,
            InvalidFileException, xlrd.XLRDError) as e:
        raise UnreadableWorkbook(f"Workbook could not be read: {e}") from e

    if not sheets:
        raise NoSheetsFound("Workbook contains no sheets")

    first_name = next(iter(sheets))
    df = sheets[first_name]
    if df.empty or df.isna().all(axis=None):
        raise EmptySheet(f"Sheet '{first_name}' is empty")

    return frame_to_grid(df)
