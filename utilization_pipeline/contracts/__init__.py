"""
Data Contracts Package

Contains Pandera schema definitions for validating persisted records.
These are the single source of truth for stored data formats.

Usage:
    from utilization_pipeline.contracts import NormalizedRowsSchema, validate_frame

    # Validate a DataFrame (raises RecordValidationError)
    validate_frame(NormalizedRowsSchema, df)
"""

import pandas as pd
import pandera as pa

from utilization_pipeline.errors import RecordValidationError

from .consolidated_entries_schema import ConsolidatedEntriesSchema
from .normalized_rows_schema import NormalizedRowsSchema


def validate_frame(schema, df: pd.DataFrame) -> pd.DataFrame:
    """Validate (lazily, all failures at once) and return the coerced frame."""
    try:
        return schema.validate(df, lazy=True)
    except (pa.errors.SchemaError, pa.errors.SchemaErrors) as e:
        raise RecordValidationError(f"{schema.__name__} validation failed: {e}") from e


__all__ = [
    "ConsolidatedEntriesSchema",
    "NormalizedRowsSchema",
    "validate_frame",
]
