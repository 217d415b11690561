#!/usr/bin/env python3
"""
Utilization Upload Pipeline

Runs the per-file pipeline for uploaded spreadsheets and re-consolidates
the merged series from the store after every successful upload.

Usage:
    python -m utilization_pipeline --utilization auslastung.xlsx
    python -m utilization_pipeline --deployment-plan einsatzplan.xlsx
    python -m utilization_pipeline --utilization a.xlsx --deployment-plan b.xlsx --today 2025-08-20
    python -m utilization_pipeline                      # Re-consolidate stored sources only

Per file:
    check extension -> extract first sheet -> persist rows (if valid)
    -> consolidate both stored sources -> replace merged series

Output:
    <store>/sources/<source_type>.csv
    <store>/consolidated/utilization_series.csv
"""

import argparse
import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import date, datetime
from pathlib import Path
from typing import List, Optional, Sequence, Tuple

from utilization_pipeline.config import (
    CONSOLIDATED_IDENTIFIER,
    DEFAULT_FORECAST_WEEKS,
    DEFAULT_LOOKBACK_WEEKS,
    EXCEL_EXTENSIONS,
    STORE_DIR,
    print_config,
)
from utilization_pipeline.consolidation import ConsolidationEngine, ConsolidationResult
from utilization_pipeline.errors import UnsupportedFileType, UtilizationPipelineError
from utilization_pipeline.extractors import ExtractionResult, error_result, extract_workbook
from utilization_pipeline.models import SourceType
from utilization_pipeline.store import CsvRecordStore, StoreContext

Upload = Tuple[SourceType, str, bytes]


@dataclass
class UploadOutcome:
    """Everything one file pipeline produced."""
    source_type: SourceType
    file_name: str
    extraction: ExtractionResult
    persisted: bool = False
    persist_error: Optional[str] = None
    consolidation: Optional[ConsolidationResult] = None
    consolidation_error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.extraction.is_valid and self.persisted and self.consolidation is not None


def is_excel_file(file_name: str) -> bool:
    return file_name.lower().endswith(EXCEL_EXTENSIONS)


def consolidate_from_store(store: CsvRecordStore, engine: ConsolidationEngine,
                           context: StoreContext, today: Optional[date] = None) -> ConsolidationResult:
    """
    Re-read both persisted sources, consolidate and replace the merged series.

    Raises:
        NoDataAvailable: neither source has stored rows
        RecordValidationError: merged entries violate their contract
    """
    rows_a = store.load_source(SourceType.UTILIZATION)
    rows_b = store.load_source(SourceType.DEPLOYMENT_PLAN)

    result = engine.consolidate(rows_a, rows_b, today=today)
    store.replace_consolidated(CONSOLIDATED_IDENTIFIER, result.to_frame(), context)
    result.diagnostics.append(f"Stored {len(result.entries)} entries as '{CONSOLIDATED_IDENTIFIER}'")
    return result


def process_upload(source_type: SourceType, file_name: str, content: bytes,
                   store: CsvRecordStore, context: StoreContext,
                   engine: Optional[ConsolidationEngine] = None,
                   today: Optional[date] = None) -> UploadOutcome:
    """
    Run one file pipeline. Per-file problems end up in the outcome, never raised.
    """
    source_type = SourceType(source_type)
    engine = engine or ConsolidationEngine()

    if not is_excel_file(file_name):
        exc = UnsupportedFileType(f"Unsupported file type: '{file_name}' (expected .xlsx or .xls)")
        return UploadOutcome(source_type, file_name, error_result(exc, [str(exc)]))

    extraction = extract_workbook(content, source_type)
    outcome = UploadOutcome(source_type, file_name, extraction)
    if not extraction.is_valid:
        return outcome

    try:
        store.save_source(source_type, file_name, extraction.rows, context, content)
        outcome.persisted = True
    except UtilizationPipelineError as e:
        outcome.persist_error = str(e)
        return outcome

    try:
        outcome.consolidation = consolidate_from_store(store, engine, context, today)
    except UtilizationPipelineError as e:
        outcome.consolidation_error = str(e)

    return outcome


def process_uploads(uploads: Sequence[Upload], store: CsvRecordStore, context: StoreContext,
                    engine: Optional[ConsolidationEngine] = None,
                    today: Optional[date] = None) -> List[UploadOutcome]:
    """
    Run the file pipelines concurrently; outcomes come back in input order.

    Each pipeline consolidates on its own, so a pipeline that read the other
    source before it was saved may write its series last. Once all have
    finished, the series is consolidated once more from the store.
    """
    if not uploads:
        return []
    engine = engine or ConsolidationEngine()
    with ThreadPoolExecutor(max_workers=len(uploads)) as pool:
        futures = [
            pool.submit(process_upload, source_type, file_name, content, store, context, engine, today)
            for source_type, file_name, content in uploads
        ]
        outcomes = [future.result() for future in futures]

    persisted = [outcome for outcome in outcomes if outcome.persisted]
    if len(persisted) > 1:
        try:
            final = consolidate_from_store(store, engine, context, today)
        except UtilizationPipelineError as e:
            for outcome in persisted:
                outcome.consolidation, outcome.consolidation_error = None, str(e)
        else:
            for outcome in persisted:
                outcome.consolidation, outcome.consolidation_error = final, None
    return outcomes


# =============================================================================
# COMMAND LINE
# =============================================================================

def print_diagnostics(lines: Sequence[str]) -> None:
    for line in lines:
        print(f"    {line}")


def print_outcome(outcome: UploadOutcome, verbose: bool) -> None:
    label = f"{outcome.source_type.value} ({outcome.file_name})"
    extraction = outcome.extraction

    if not extraction.is_valid:
        print(f"  ERROR: {label}: {extraction.error} [{extraction.kind.value}]")
    else:
        print(f"  {label}: {len(extraction.rows)} persons, {len(extraction.week_keys)} weeks")
        if outcome.persist_error:
            print(f"  ERROR: {label}: not persisted: {outcome.persist_error}")
        if outcome.consolidation_error:
            print(f"  WARNING: {label}: consolidation failed: {outcome.consolidation_error}")
    if verbose:
        print_diagnostics(extraction.diagnostics)


def print_consolidation(result: ConsolidationResult, verbose: bool) -> None:
    status = result.status
    print(f"  Entries:  {len(result.entries):,}")
    print(f"  Status:   {status.message}")
    if status.is_partial:
        print(f"  WARNING: source {status.missing_source} missing, series is partial")
    if verbose:
        print_diagnostics(result.diagnostics)


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Ingest weekly utilization spreadsheets and consolidate them",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python -m utilization_pipeline --utilization auslastung.xlsx
    python -m utilization_pipeline --deployment-plan einsatzplan.xls --verbose
    python -m utilization_pipeline --store /tmp/store --lookback 4 --forecast 8
        """
    )
    parser.add_argument("--utilization", type=Path,
                        help="Current utilization export (source A)")
    parser.add_argument("--deployment-plan", type=Path,
                        help="Deployment plan (source B)")
    parser.add_argument("--store", type=Path, default=Path(STORE_DIR),
                        help="Store directory (default: data/store)")
    parser.add_argument("--lookback", type=int, default=DEFAULT_LOOKBACK_WEEKS,
                        help="Historical weeks before the current week")
    parser.add_argument("--forecast", type=int, default=DEFAULT_FORECAST_WEEKS,
                        help="Forecast weeks after the current week")
    parser.add_argument("--today", type=date.fromisoformat,
                        help="Reference day YYYY-MM-DD (default: today)")
    parser.add_argument("--actor", default="cli",
                        help="Name recorded as writer in the store metadata")
    parser.add_argument("--show-config", action="store_true",
                        help="Print the configuration and exit")
    parser.add_argument("--verbose", action="store_true",
                        help="Print diagnostics")
    return parser.parse_args(argv)


def run(args: argparse.Namespace) -> bool:
    """Run the CLI pipeline and return success status."""
    start_time = datetime.now()
    print("=" * 60)
    print("UTILIZATION PIPELINE")
    print(" Started at:", start_time.strftime("%Y-%m-%d %H:%M:%S"))
    print("=" * 60)

    store = CsvRecordStore(args.store)
    context = StoreContext(actor=args.actor)
    try:
        engine = ConsolidationEngine(args.lookback, args.forecast)
    except ValueError as e:
        print(f"  ERROR: {e}")
        return False

    # Step 1: Read files
    print("\n[1/3] Reading files...")
    uploads = []
    for source_type, path in [(SourceType.UTILIZATION, args.utilization),
                              (SourceType.DEPLOYMENT_PLAN, args.deployment_plan)]:
        if path is None:
            continue
        if not path.exists():
            print(f"  ERROR: File not found: {path}")
            return False
        uploads.append((source_type, path.name, path.read_bytes()))
        print(f"  {source_type.value}: {path}")
    if not uploads:
        print("  No files given, re-consolidating stored sources")

    # Step 2: Run file pipelines
    print("\n[2/3] Processing uploads...")
    outcomes = process_uploads(uploads, store, context, engine, args.today)
    for outcome in outcomes:
        print_outcome(outcome, args.verbose)
    success = all(outcome.ok for outcome in outcomes)

    # Step 3: Consolidated series
    print("\n[3/3] Consolidated series...")
    try:
        result = consolidate_from_store(store, engine, context, args.today)
    except UtilizationPipelineError as e:
        print(f"  ERROR: {e}")
        return False
    print_consolidation(result, args.verbose)
    print(f"  Output:   {store.consolidated_file(CONSOLIDATED_IDENTIFIER)}")

    duration = datetime.now() - start_time
    print("\n" + "=" * 60)
    print(" PIPELINE COMPLETE" if success else " PIPELINE FINISHED WITH ERRORS")
    print(f" Duration: {duration.total_seconds():.1f} seconds")
    print("=" * 60)
    return success


def main(argv: Optional[Sequence[str]] = None):
    args = parse_args(argv)
    if args.show_config:
        print_config()
        sys.exit(0)
    success = run(args)
    sys.exit(0 if success else 1)


if __name__ == "__main__":
    main()
