"""
Data Contract: Consolidated Entries Schema

Single source of truth for the merged utilization series
(store/consolidated/utilization_series.csv).

Validated at runtime, not statically.
"""

import pandera as pa
from pandera.typing import Series

from utilization_pipeline.contracts.normalized_rows_schema import WEEK_KEY_REGEX


class ConsolidatedEntriesSchema(pa.DataFrameModel):
    """
    Contract for the consolidated series.

    One row per (person, week); source A wins over source B.
    """

    # =====================================================
    # Identity
    # =====================================================

    person: Series[str] = pa.Field(nullable=False)
    week: Series[str] = pa.Field(nullable=False, str_matches=WEEK_KEY_REGEX)
    year: Series[int] = pa.Field(nullable=False, ge=2000)
    week_number: Series[int] = pa.Field(nullable=False, ge=1, le=53)
    composite_key: Series[str] = pa.Field(nullable=False)

    # =====================================================
    # Values (percentages)
    # =====================================================

    source_a_value: Series[float] = pa.Field(nullable=True, ge=0, le=100)
    source_b_value: Series[float] = pa.Field(nullable=True, ge=0, le=100)
    final_value: Series[float] = pa.Field(nullable=False, ge=0, le=100)

    # =====================================================
    # Flags
    # =====================================================

    is_historical: Series[bool] = pa.Field(nullable=False)
    is_partial: Series[bool] = pa.Field(nullable=False)
    missing_source: Series[str] = pa.Field(nullable=True, isin=["A", "B"])
    source: Series[str] = pa.Field(nullable=False, isin=["A", "B"])

    # =====================================================
    # Organisation (optional)
    # =====================================================

    lob: Series[str] = pa.Field(nullable=True)
    bereich: Series[str] = pa.Field(nullable=True)
    cc: Series[str] = pa.Field(nullable=True)
    team: Series[str] = pa.Field(nullable=True)
    lbs: Series[str] = pa.Field(nullable=True)

    class Config:
        strict = False
        coerce = True
        unique = ["composite_key", "week"]

    @pa.dataframe_check(name="final_value_matches_source")
    def validate_final_value(cls, df):
        """final_value is the value of the source named in `source`."""
        expected = df["source_a_value"].where(df["source"] == "A", df["source_b_value"])
        return (expected - df["final_value"]).abs() < 1e-9
