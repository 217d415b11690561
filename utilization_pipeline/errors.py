"""
Error taxonomy for the utilization pipeline.

Per-file errors (SheetParseError and subclasses) are caught at the file
pipeline boundary and returned as ExtractionError results. NoDataAvailable
is consolidation-level and propagates to the caller.
"""

from enum import Enum


class ErrorKind(str, Enum):
    NO_SHEETS_FOUND = "no_sheets_found"
    EMPTY_SHEET = "empty_sheet"
    HEADER_NOT_FOUND = "header_not_found"
    NO_WEEK_COLUMNS_FOUND = "no_week_columns_found"
    NO_PERSON_ROWS_FOUND = "no_person_rows_found"
    UNREADABLE_WORKBOOK = "unreadable_workbook"
    UNSUPPORTED_FILE_TYPE = "unsupported_file_type"
    NO_DATA_AVAILABLE = "no_data_available"
    RECORD_VALIDATION = "record_validation"


class UtilizationPipelineError(Exception):
    """Base class for all pipeline errors."""

    kind: ErrorKind


class SheetParseError(UtilizationPipelineError):
    """A single file could not be turned into normalized rows."""


class NoSheetsFound(SheetParseError):
    kind = ErrorKind.NO_SHEETS_FOUND


class EmptySheet(SheetParseError):
    kind = ErrorKind.EMPTY_SHEET


class HeaderNotFound(SheetParseError):
    kind = ErrorKind.HEADER_NOT_FOUND


class NoWeekColumnsFound(SheetParseError):
    kind = ErrorKind.NO_WEEK_COLUMNS_FOUND


class NoPersonRowsFound(SheetParseError):
    kind = ErrorKind.NO_PERSON_ROWS_FOUND


class UnreadableWorkbook(SheetParseError):
    kind = ErrorKind.UNREADABLE_WORKBOOK


class UnsupportedFileType(SheetParseError):
    kind = ErrorKind.UNSUPPORTED_FILE_TYPE


class NoDataAvailable(UtilizationPipelineError):
    """Neither source has any rows at consolidation time."""

    kind = ErrorKind.NO_DATA_AVAILABLE


class RecordValidationError(UtilizationPipelineError):
    """Records failed their data contract before being persisted."""

    kind = ErrorKind.RECORD_VALIDATION
