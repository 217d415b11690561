"""
Centralized configuration for the utilization ingestion pipeline.

This module contains all paths, layout conventions and constants used
across the parsing, consolidation and storage modules.
"""

import os

# =============================================================================
# BASE PATHS
# =============================================================================

# Data directories, relative to the working directory of the run
DATA_DIR = 'data'
STORE_DIR = os.path.join(DATA_DIR, 'store')

# Identifier of the merged series inside the store
CONSOLIDATED_IDENTIFIER = 'utilization_series'

# =============================================================================
# HEADER DISCOVERY
# =============================================================================

# Only the first rows of a sheet are scanned for header rows
SCAN_DEPTH = 10

# A row is the week-header row once it carries this many week labels
MIN_WEEK_LABELS_PER_ROW = 3

# The value column of a week may sit 0..3 columns right of the week label
MAX_VALUE_COLUMN_OFFSET = 3

# Valid week numbers
MIN_WEEK = 1
MAX_WEEK = 53

# =============================================================================
# FIXED LAYOUT (source A - current utilization export)
# =============================================================================

# 0-based: header in row 4, data from row 9
FIXED_HEADER_ROW = 3
FIXED_DATA_START_ROW = 8

# Column E header is expected to mention one of these
FIXED_PERSON_HEADER_KEYWORDS = ['mitarbeiter', 'id']

# =============================================================================
# DYNAMIC LAYOUT (source B - deployment plan)
# =============================================================================

# Header cell marking the person column
DYNAMIC_PERSON_HEADER = 'name'

# =============================================================================
# BUSINESS RULES - VALUE COLUMNS
# =============================================================================

# Sub-header labels that mark a week's value column
VALUE_COLUMN_KEYWORDS = [
    'nkv',
    'auslastung',
    'kapazität',
    'utilization',
    'allocation',
    'allokation',
]

# Sub-header labels that mark a non-utilization (inverse) value column
INVERSE_COLUMN_KEYWORDS = [
    'nkv',
    'non-utilization',
    'nicht-auslastung',
]

# Numbers at or below this are fractions (0.8 -> 80%)
FRACTION_THRESHOLD = 1.5

# =============================================================================
# BUSINESS RULES - ROW FILTERING
# =============================================================================

# Person labels containing these words are summary rows
SUMMARY_WORDS = ['total', 'summe']

# Fixed layout: team cell with this value marks a grand-total row
TOTAL_TEAM_VALUE = 'total'

# =============================================================================
# CONSOLIDATION
# =============================================================================

DEFAULT_LOOKBACK_WEEKS = 8
DEFAULT_FORECAST_WEEKS = 4

# Replaces a missing team or cc in the composite key
UNKNOWN_SEGMENT = 'unknown'

# Accepted upload file extensions
EXCEL_EXTENSIONS = ('.xlsx', '.xls')

# =============================================================================
# HELPER FUNCTIONS
# =============================================================================

def print_config():
    """Print current configuration for debugging."""
    print("=" * 60)
    print("PIPELINE CONFIGURATION")
    print("=" * 60)
    print(f"Working Dir:      {os.getcwd()}")
    print(f"Store:            {STORE_DIR}")
    print(f"Lookback weeks:   {DEFAULT_LOOKBACK_WEEKS}")
    print(f"Forecast weeks:   {DEFAULT_FORECAST_WEEKS}")
    print(f"Scan depth:       {SCAN_DEPTH} rows")
    print(f"Fraction <=:      {FRACTION_THRESHOLD}")
    print("=" * 60)


if __name__ == '__main__':
    print_config()
