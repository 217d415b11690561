"""
CSV record store: replace semantics, sidecar metadata, round trips.

Run: pytest tests/test_store.py -v
"""

import json
from datetime import date

import pytest

from utilization_pipeline.consolidation import ConsolidationEngine
from utilization_pipeline.errors import RecordValidationError
from utilization_pipeline.models import NormalizedRow, SourceType
from utilization_pipeline.store import CsvRecordStore, StoreContext, compute_content_hash, rows_to_frame


@pytest.fixture
def store(tmp_path):
    return CsvRecordStore(tmp_path / "store")


@pytest.fixture
def context():
    return StoreContext(actor="test-suite")


@pytest.fixture
def rows():
    return [
        NormalizedRow(
            person="Anna Schmidt",
            person_display="Anna Schmidt",
            values={"25/33": 75.0, "25/34": 70.5},
            lob="LoB1",
            cc="4711",
            team="Team X",
        ),
        NormalizedRow(
            person="Carla Nowak",
            person_display="Carla Nowak (extern)",
            values={"25/35": 0.0},
            lbs="LBS-7",
        ),
    ]


class TestSourceRecords:

    def test_round_trip(self, store, context, rows):
        store.save_source(SourceType.DEPLOYMENT_PLAN, "plan.xlsx", rows, context)

        loaded = store.load_source(SourceType.DEPLOYMENT_PLAN)

        assert loaded == rows

    def test_metadata_text_preserved(self, store, context, rows):
        store.save_source(SourceType.UTILIZATION, "a.xlsx", rows, context)

        anna = store.load_source(SourceType.UTILIZATION)[0]

        # numeric-looking cost centres stay text
        assert anna.cc == "4711"
        assert anna.bereich is None

    def test_missing_source_is_empty(self, store):
        assert store.load_source(SourceType.UTILIZATION) == []

    def test_last_write_wins(self, store, context, rows):
        store.save_source(SourceType.UTILIZATION, "first.xlsx", rows, context)
        store.save_source(SourceType.UTILIZATION, "second.xlsx", rows[:1], context)

        assert [r.person for r in store.load_source(SourceType.UTILIZATION)] == ["Anna Schmidt"]
        assert store.source_metadata(SourceType.UTILIZATION).file_name == "second.xlsx"

    def test_sources_stored_separately(self, store, context, rows):
        store.save_source(SourceType.UTILIZATION, "a.xlsx", rows[:1], context)
        store.save_source(SourceType.DEPLOYMENT_PLAN, "b.xlsx", rows[1:], context)

        assert len(store.load_source(SourceType.UTILIZATION)) == 1
        assert store.load_source(SourceType.DEPLOYMENT_PLAN)[0].person == "Carla Nowak"

    def test_out_of_range_value_rejected(self, store, context):
        bad = [NormalizedRow(person="X", person_display="X", values={"25/33": 120.0})]

        with pytest.raises(RecordValidationError):
            store.save_source(SourceType.UTILIZATION, "bad.xlsx", bad, context)
        assert not store.source_file(SourceType.UTILIZATION).exists()

    def test_frame_column_order(self, rows):
        df = rows_to_frame(rows)
        assert list(df.columns)[-3:] == ["25/33", "25/34", "25/35"]
        assert list(df.columns)[:2] == ["person", "person_display"]


class TestMetadataSidecar:

    def test_sidecar_written(self, store, context, rows):
        content = b"workbook bytes"
        store.save_source(SourceType.UTILIZATION, "a.xlsx", rows, context, content)

        meta_file = store.meta_file(store.source_file(SourceType.UTILIZATION))
        data = json.loads(meta_file.read_text())

        assert meta_file.name == ".utilization.meta.json"
        assert data["file_name"] == "a.xlsx"
        assert data["row_count"] == 2
        assert data["saved_by"] == "test-suite"
        assert data["content_hash"] == compute_content_hash(content)

    def test_corrupted_sidecar(self, store, context, rows, capsys):
        store.save_source(SourceType.UTILIZATION, "a.xlsx", rows, context)
        store.meta_file(store.source_file(SourceType.UTILIZATION)).write_text("{not json")

        assert store.source_metadata(SourceType.UTILIZATION) is None
        assert "WARNING: Corrupted store metadata" in capsys.readouterr().out

    def test_no_temp_files_left(self, store, context, rows):
        store.save_source(SourceType.UTILIZATION, "a.xlsx", rows, context)

        leftovers = [p for p in store.root.rglob("*") if ".tmp." in p.name]
        assert leftovers == []


class TestConsolidatedSeries:

    def test_replace_and_load(self, store, context, rows):
        result = ConsolidationEngine(2, 2).consolidate(rows, [], today=date(2025, 8, 20))

        store.replace_consolidated("series", result.to_frame(), context)
        df = store.load_consolidated("series")

        assert len(df) == len(result.entries) == 3
        assert set(df["week"]) == {"25/33", "25/34", "25/35"}
        assert set(df["source"]) == {"A"}

    def test_replace_drops_previous_series(self, store, context, rows):
        engine = ConsolidationEngine(2, 2)
        store.replace_consolidated(
            "series", engine.consolidate(rows, [], today=date(2025, 8, 20)).to_frame(), context)
        store.replace_consolidated(
            "series", engine.consolidate(rows[1:], [], today=date(2025, 8, 20)).to_frame(), context)

        assert list(store.load_consolidated("series")["person"]) == ["Carla Nowak"]

    def test_missing_series(self, store):
        assert store.load_consolidated("series").empty
