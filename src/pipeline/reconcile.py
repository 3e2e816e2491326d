"""Source reconciliation: merge folder scans and spreadsheet imports by identity key."""

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Iterable, Iterator, Mapping

from src.models import ScoredRecord, ScoreRow

log = logging.getLogger("photo_judge.reconcile")


class Source(str, Enum):
    FOLDER = "folder"
    SPREADSHEET = "spreadsheet"


@dataclass(frozen=True)
class RecordSet:
    """
    The session's records keyed by identity key, with a version that increases on every pass.
    Passes never modify a RecordSet; they return a new one.
    """

    records: Mapping[str, ScoredRecord] = field(default_factory=dict)
    version: int = 0

    @classmethod
    def from_records(cls, records: Iterable[ScoredRecord], version: int = 0) -> "RecordSet":
        by_key: dict[str, ScoredRecord] = {}
        for record in records:
            by_key[record.key] = record
        return cls(records=by_key, version=version)

    def get(self, key: str) -> ScoredRecord | None:
        return self.records.get(key)

    def __contains__(self, key: object) -> bool:
        return key in self.records

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[ScoredRecord]:
        """Records in identity-key order."""
        for key in sorted(self.records):
            yield self.records[key]

    def replace_record(self, record: ScoredRecord) -> "RecordSet":
        updated = dict(self.records)
        updated[record.key] = record
        return RecordSet(records=updated, version=self.version + 1)


@dataclass
class ReconcileResult:
    records: RecordSet
    inserted: list[str] = field(default_factory=list)
    updated: list[str] = field(default_factory=list)
    # Spreadsheet keys that did not match any record already in the session.
    unmatched: list[str] = field(default_factory=list)


def _merge_status_error(existing: ScoredRecord, incoming: ScoredRecord) -> str | None:
    if incoming.status_error:
        return incoming.status_error
    if incoming.preview is not None:
        return None
    return existing.status_error


def merge_folder(existing: ScoredRecord, incoming: ScoredRecord) -> ScoredRecord:
    """A re-scan refreshes name, preview, attachment and error; scores and observations are kept."""
    return replace(
        existing,
        display_name=incoming.display_name or existing.display_name,
        preview=incoming.preview or existing.preview,
        auxiliary=incoming.auxiliary or existing.auxiliary,
        status_error=_merge_status_error(existing, incoming),
    )


def merge_spreadsheet(existing: ScoredRecord, incoming: ScoredRecord) -> ScoredRecord:
    """A spreadsheet import overwrites scores and observations outright."""
    return replace(
        existing,
        display_name=incoming.display_name or existing.display_name,
        scores=incoming.scores,
        observations=incoming.observations,
        preview=incoming.preview or existing.preview,
        auxiliary=incoming.auxiliary or existing.auxiliary,
        status_error=_merge_status_error(existing, incoming),
    )


def reconcile(
    existing: RecordSet | Iterable[ScoredRecord],
    incoming: Iterable[ScoredRecord],
    source: Source,
) -> ReconcileResult:
    """
    Fold `incoming` into `existing` one record at a time.
    Keys absent from `existing` are inserted; present keys are merged by the source's rule;
    untouched keys carry forward. `existing` itself is never modified, so a failed pass
    leaves the prior state intact.
    """
    if not isinstance(existing, RecordSet):
        existing = RecordSet.from_records(existing)
    merge = merge_spreadsheet if source is Source.SPREADSHEET else merge_folder

    merged: dict[str, ScoredRecord] = dict(existing.records)
    result = ReconcileResult(records=existing)
    for record in incoming:
        current = merged.get(record.key)
        if current is None:
            merged[record.key] = record
            result.inserted.append(record.key)
            if source is Source.SPREADSHEET and record.key not in existing:
                result.unmatched.append(record.key)
        else:
            merged[record.key] = merge(current, record)
            if record.key in existing:
                result.updated.append(record.key)

    result.records = RecordSet(records=merged, version=existing.version + 1)
    log.info(
        "Reconciled %s source: %d inserted, %d updated, %d total records (version %d)",
        source.value, len(result.inserted), len(result.updated), len(merged), result.records.version,
    )
    if result.unmatched:
        log.warning("%d spreadsheet rows matched no loaded image; first: %s", len(result.unmatched), result.unmatched[0])
    return result


def records_from_rows(rows: Iterable[ScoreRow]) -> list[ScoredRecord]:
    return [
        ScoredRecord(key=row.key, display_name=row.name, scores=row.scores, observations=row.observations)
        for row in rows
    ]


def reconcile_rows(existing: RecordSet | Iterable[ScoredRecord], rows: Iterable[ScoreRow]) -> ReconcileResult:
    """Apply a single-session spreadsheet import."""
    return reconcile(existing, records_from_rows(rows), Source.SPREADSHEET)
