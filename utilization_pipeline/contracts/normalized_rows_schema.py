"""
Data Contract: Normalized Rows Schema

Single source of truth for the flat records persisted per source type
(store/sources/<source_type>.csv). One record per person, one column per
week key ("25/34").

Validated at runtime, before the store writes.
"""

import pandera as pa
from pandera.typing import Series

WEEK_KEY_REGEX = r"^\d{2}/\d{2}$"


class NormalizedRowsSchema(pa.DataFrameModel):
    """
    Contract for persisted NormalizedRow records.
    """

    # =====================================================
    # Required columns (must exist, cannot be null)
    # =====================================================

    # Join key and display label
    person: Series[str] = pa.Field(nullable=False, str_length={"min_value": 1})
    person_display: Series[str] = pa.Field(nullable=False)

    # =====================================================
    # Optional columns (can be null)
    # =====================================================

    lob: Series[str] = pa.Field(nullable=True)
    bereich: Series[str] = pa.Field(nullable=True)
    cc: Series[str] = pa.Field(nullable=True)
    team: Series[str] = pa.Field(nullable=True)
    lbs: Series[str] = pa.Field(nullable=True)
    vg: Series[str] = pa.Field(nullable=True)

    # Every week key column holds a utilization percentage
    week_values: Series[float] = pa.Field(
        alias=WEEK_KEY_REGEX,
        regex=True,
        nullable=True,
        ge=0,
        le=100,
    )

    class Config:
        strict = False  # Allow extra columns
        coerce = True  # Allow type coercion
