"""Tabular export: fixed header row plus one defensively coerced row per record."""

import csv
import io
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Sequence

from src.errors import SerializationFailure
from src.models import SCORE_AXES
from src.pipeline.rows import TABLE_COLUMNS, coerce_score
from src.utils import round_score

log = logging.getLogger("photo_judge.tabular")

HEADER = [label for _, label in TABLE_COLUMNS]
UNKNOWN_NAME = "Unknown Name"


@dataclass
class Table:
    header: list[str] = field(default_factory=lambda: list(HEADER))
    rows: list[list[Any]] = field(default_factory=list)

    def to_csv_bytes(self) -> bytes:
        """UTF-8 CSV with a byte-order mark so spreadsheet applications detect the encoding."""
        try:
            buffer = io.StringIO(newline="")
            writer = csv.writer(buffer)
            writer.writerow(self.header)
            writer.writerows(self.rows)
            return buffer.getvalue().encode("utf-8-sig")
        except (csv.Error, UnicodeError) as exc:
            raise SerializationFailure(f"Could not encode table as CSV: {exc}") from exc


def _as_mapping(record: Any) -> Mapping | None:
    if record is None:
        return None
    if isinstance(record, Mapping):
        return record
    if hasattr(record, "to_dict"):
        return record.to_dict()
    raise SerializationFailure(f"Cannot export record of type {type(record).__name__}")


def _row_for(data: Mapping, position: int) -> list[Any]:
    key = str(data.get("id") or "")
    name = data.get("display_name") or data.get("name") or ""
    observations = data.get("observations") or ""
    scores = data.get("scores")
    if isinstance(scores, Mapping):
        axes = [round_score(coerce_score(scores.get(axis), axis, key)) for axis in SCORE_AXES]
        total = sum(axes)
    else:
        log.warning("Record %s at row %d has no score breakdown; exporting its total only", key, position)
        axes = [0] * len(SCORE_AXES)
        total = round_score(coerce_score(data.get("total_score"), "total_score", key))
    return [key, name, *axes, total, observations]


def serialize(records: Sequence) -> Table:
    """
    Build the export table in the given order. Each score axis is coerced (non-numeric,
    empty or non-finite becomes 0) and rounded; the total is the sum of the rounded axes.
    A missing record becomes a placeholder row, so the row count always equals the input count.
    """
    table = Table()
    for position, record in enumerate(records, start=1):
        data = _as_mapping(record)
        if data is None:
            log.warning("Record at row %d is missing; writing a placeholder row", position)
            table.rows.append([f"Unknown ID (row {position})", UNKNOWN_NAME, *([0] * len(SCORE_AXES)), 0, ""])
            continue
        table.rows.append(_row_for(data, position))
    log.info("Serialized %d records for export", len(table.rows))
    return table
