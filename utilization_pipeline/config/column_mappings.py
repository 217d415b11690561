"""
Column Mappings Configuration

Central source of truth for sheet column -> record field mappings.
Used by the header locator to build column mappings and by the store
to order persisted columns.

Naming conventions:
- Sheet headers: original labels from the exports (mixed case, German)
- Record fields: snake_case
"""

# =============================================================================
# CURRENT UTILIZATION (source A): fixed column positions
# =============================================================================
UTILIZATION_FIXED_COLUMNS = {
    # Metadata in columns A-D
    "lob": 0,
    "bereich": 1,
    "cc": 2,
    "team": 3,

    # "Mitarbeiter (ID)" in column E
    "person": 4,
}


# =============================================================================
# DEPLOYMENT PLAN (source B): header label -> record field
# =============================================================================
DEPLOYMENT_PLAN_HEADER_ALIASES = {
    "business unit": "lob",
    "lob": "lob",
    "bereich": "bereich",

    # The export misspells "competence" in some versions
    "compentence center (cc)": "cc",
    "competence center (cc)": "cc",
    "competence center": "cc",
    "cc": "cc",

    "team": "team",
    "lbs": "lbs",
    "vg": "vg",
}


# =============================================================================
# PERSISTED RECORDS
# =============================================================================

# Metadata fields of a normalized row, in output order (week keys follow)
NORMALIZED_ROW_FIELDS = [
    "person",
    "person_display",
    "lob",
    "bereich",
    "cc",
    "team",
    "lbs",
    "vg",
]

CONSOLIDATED_ENTRY_FIELDS = [
    "person",
    "week",
    "year",
    "week_number",
    "source_a_value",
    "source_b_value",
    "final_value",
    "is_historical",
    "is_partial",
    "missing_source",
    "source",
    "composite_key",
    "lob",
    "bereich",
    "cc",
    "team",
    "lbs",
]
