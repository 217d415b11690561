"""
CSV Record Store

Reference implementation of the persistence collaborator. Each source type
and the consolidated series are stored as one CSV file that is replaced as
a whole (atomic rename, last write wins), with a metadata sidecar JSON
describing the upload that produced it.

Layout:
    <root>/sources/utilization.csv              + .utilization.meta.json
    <root>/sources/deployment_plan.csv          + .deployment_plan.meta.json
    <root>/consolidated/<identifier>.csv        + .<identifier>.meta.json

Usage:
    store = CsvRecordStore(Path("data/store"))
    context = StoreContext(actor="upload-panel")

    store.save_source(SourceType.UTILIZATION, "auslastung.xlsx", rows, context, content)
    rows_a = store.load_source(SourceType.UTILIZATION)
"""

import hashlib
import json
import os
import threading
from dataclasses import asdict, dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Sequence

import pandas as pd

from utilization_pipeline.config.column_mappings import NORMALIZED_ROW_FIELDS
from utilization_pipeline.contracts import (
    ConsolidatedEntriesSchema,
    NormalizedRowsSchema,
    validate_frame,
)
from utilization_pipeline.models import NormalizedRow, SourceType
from utilization_pipeline.weeks import is_week_key


@dataclass(frozen=True)
class StoreContext:
    """Who is writing; passed explicitly into every write."""
    actor: str = "pipeline"


@dataclass
class RecordMetadata:
    """Metadata stored alongside each persisted CSV."""
    file_name: str            # Upload file name or series identifier
    content_hash: str         # MD5 of the uploaded bytes ('' when unknown)
    row_count: int            # Records written
    saved_at: str             # ISO timestamp of the write
    saved_by: str             # StoreContext.actor


def compute_content_hash(content: Optional[bytes]) -> str:
    """MD5 of an in-memory upload."""
    if not content:
        return ""
    return hashlib.md5(content).hexdigest()


def _temp_path(filepath: Path) -> Path:
    # pid + thread id: concurrent writers never share a temp file
    return filepath.with_suffix(f".tmp.{os.getpid()}.{threading.get_ident()}")


def atomic_write_csv(df: pd.DataFrame, filepath: Path, **csv_kwargs) -> None:
    """
    Write DataFrame to CSV atomically.

    Writes to a temp file first, then replaces the final path.
    This prevents partial/corrupt CSVs if the write is interrupted.
    """
    filepath.parent.mkdir(parents=True, exist_ok=True)
    temp_file = _temp_path(filepath)
    try:
        df.to_csv(temp_file, **csv_kwargs)
        temp_file.replace(filepath)
    except Exception:
        if temp_file.exists():
            temp_file.unlink()
        raise


def atomic_write_json(data: dict, filepath: Path) -> None:
    filepath.parent.mkdir(parents=True, exist_ok=True)
    temp_file = _temp_path(filepath)
    try:
        with open(temp_file, "w") as f:
            json.dump(data, f, indent=2)
        temp_file.replace(filepath)
    except Exception:
        if temp_file.exists():
            temp_file.unlink()
        raise


def rows_to_frame(rows: Sequence[NormalizedRow]) -> pd.DataFrame:
    """Flatten rows: metadata columns first, then week keys in order."""
    records = [row.to_record() for row in rows]
    week_keys = sorted({key for record in records for key in record if is_week_key(key)})
    return pd.DataFrame(records, columns=NORMALIZED_ROW_FIELDS + week_keys)


class CsvRecordStore:
    """File-backed save/replace store for flat records."""

    def __init__(self, root: Path):
        self.root = Path(root)

    # -------------------------------------------------------------------------
    # Paths
    # -------------------------------------------------------------------------

    def source_file(self, source_type: SourceType) -> Path:
        return self.root / "sources" / f"{SourceType(source_type).value}.csv"

    def consolidated_file(self, identifier: str) -> Path:
        return self.root / "consolidated" / f"{identifier}.csv"

    @staticmethod
    def meta_file(data_file: Path) -> Path:
        return data_file.parent / f".{data_file.stem}.meta.json"

    # -------------------------------------------------------------------------
    # Metadata
    # -------------------------------------------------------------------------

    def _save_metadata(self, data_file: Path, file_name: str, row_count: int,
                       context: StoreContext, content: Optional[bytes] = None) -> RecordMetadata:
        meta = RecordMetadata(
            file_name=file_name,
            content_hash=compute_content_hash(content),
            row_count=row_count,
            saved_at=datetime.now().isoformat(),
            saved_by=context.actor,
        )
        atomic_write_json(asdict(meta), self.meta_file(data_file))
        return meta

    def load_metadata(self, data_file: Path) -> Optional[RecordMetadata]:
        """Load metadata from the sidecar file, returning None if missing or invalid."""
        meta_file = self.meta_file(data_file)
        if not meta_file.exists():
            return None
        try:
            with open(meta_file, "r") as f:
                data = json.load(f)
            return RecordMetadata(**data)
        except (json.JSONDecodeError, TypeError, KeyError) as e:
            print(f"  WARNING: Corrupted store metadata {meta_file.name}: {e}")
            return None

    def source_metadata(self, source_type: SourceType) -> Optional[RecordMetadata]:
        return self.load_metadata(self.source_file(source_type))

    # -------------------------------------------------------------------------
    # Sources
    # -------------------------------------------------------------------------

    def save_source(self, source_type: SourceType, file_name: str,
                    rows: Sequence[NormalizedRow], context: StoreContext,
                    content: Optional[bytes] = None) -> RecordMetadata:
        """
        Replace the stored rows of one source.

        Raises:
            RecordValidationError: rows violate NormalizedRowsSchema
        """
        df = rows_to_frame(rows)
        validate_frame(NormalizedRowsSchema, df)

        data_file = self.source_file(source_type)
        atomic_write_csv(df, data_file, index=False)
        return self._save_metadata(data_file, file_name, len(df), context, content)

    def load_source(self, source_type: SourceType) -> List[NormalizedRow]:
        """Latest stored rows of one source; empty when nothing was stored."""
        data_file = self.source_file(source_type)
        if not data_file.exists():
            return []

        df = pd.read_csv(data_file, dtype=str, keep_default_na=False)
        return [NormalizedRow.from_record(record) for record in df.to_dict(orient="records")]

    # -------------------------------------------------------------------------
    # Consolidated series
    # -------------------------------------------------------------------------

    def replace_consolidated(self, identifier: str, df: pd.DataFrame,
                             context: StoreContext) -> RecordMetadata:
        """
        Replace the whole consolidated series stored under `identifier`.

        Raises:
            RecordValidationError: entries violate ConsolidatedEntriesSchema
        """
        validate_frame(ConsolidatedEntriesSchema, df)

        data_file = self.consolidated_file(identifier)
        atomic_write_csv(df, data_file, index=False)
        return self._save_metadata(data_file, identifier, len(df), context)

    def load_consolidated(self, identifier: str) -> pd.DataFrame:
        data_file = self.consolidated_file(identifier)
        if not data_file.exists():
            return pd.DataFrame()
        return pd.read_csv(data_file, dtype={"week": str, "composite_key": str, "person": str})
