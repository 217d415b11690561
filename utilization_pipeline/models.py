"""
Record types shared by the extractors, the consolidation engine and the store.
"""

import math
from dataclasses import asdict, dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional

from utilization_pipeline.config import UNKNOWN_SEGMENT
from utilization_pipeline.config.column_mappings import NORMALIZED_ROW_FIELDS
from utilization_pipeline.weeks import is_week_key


class SourceType(str, Enum):
    """The two independently maintained spreadsheets."""
    UTILIZATION = "utilization"          # source A, authoritative
    DEPLOYMENT_PLAN = "deployment_plan"  # source B, forecast

    @property
    def code(self) -> str:
        return "A" if self is SourceType.UTILIZATION else "B"


@dataclass(frozen=True)
class NormalizedRow:
    """One person row of one source, week key -> utilization percentage."""
    person: str
    person_display: str
    values: Mapping[str, float] = field(default_factory=dict)
    lob: Optional[str] = None
    bereich: Optional[str] = None
    cc: Optional[str] = None
    team: Optional[str] = None
    lbs: Optional[str] = None
    vg: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "values", MappingProxyType(dict(self.values)))

    def value_for(self, week_key: str) -> Optional[float]:
        return self.values.get(week_key)

    def to_record(self) -> Dict[str, Any]:
        """Flat record: metadata fields plus one top-level field per week key."""
        record = {name: getattr(self, name) for name in NORMALIZED_ROW_FIELDS}
        for week_key in sorted(self.values):
            record[week_key] = self.values[week_key]
        return record

    @classmethod
    def from_record(cls, record: Mapping[str, Any]) -> "NormalizedRow":
        values = {}
        for key, value in record.items():
            if not is_week_key(key) or value is None or value == "":
                continue
            number = float(value)
            if not math.isnan(number):
                values[key] = number

        def text(name):
            value = record.get(name)
            if value is None or (isinstance(value, float) and math.isnan(value)):
                return None
            value = str(value).strip()
            return value or None

        return cls(
            person=text("person") or "",
            person_display=text("person_display") or text("person") or "",
            values=values,
            lob=text("lob"),
            bereich=text("bereich"),
            cc=text("cc"),
            team=text("team"),
            lbs=text("lbs"),
            vg=text("vg"),
        )


def composite_key(person: str, team: Optional[str], cc: Optional[str]) -> str:
    return f"{person}__{team or UNKNOWN_SEGMENT}__{cc or UNKNOWN_SEGMENT}"


@dataclass(frozen=True)
class ConsolidatedEntry:
    """Merged utilization of one person in one week."""
    person: str
    week: str
    year: int
    week_number: int
    source_a_value: Optional[float]
    source_b_value: Optional[float]
    final_value: float
    is_historical: bool
    is_partial: bool
    source: str
    composite_key: str
    missing_source: Optional[str] = None
    lob: Optional[str] = None
    bereich: Optional[str] = None
    cc: Optional[str] = None
    team: Optional[str] = None
    lbs: Optional[str] = None

    def to_record(self) -> Dict[str, Any]:
        return asdict(self)
