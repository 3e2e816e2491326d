"""Record store: one JSON artifact per scored record, keyed by identity key."""

import json
import logging
from pathlib import Path
from typing import Iterable

import jsonschema

from src.models import ScoredRecord
from src.utils import hash_text
from src.validation import validate_scored_record

log = logging.getLogger("photo_judge.store")

DEFAULT_STORE_DIR = Path(__file__).resolve().parent.parent.parent / "data" / "records"


class JsonRecordStore:
    """Simple put/get/get_all/delete/clear surface. No multi-record transactions."""

    def __init__(self, root: str | Path = DEFAULT_STORE_DIR):
        self.root = Path(root)
        self.invalid: list[str] = []

    def _ensure_dir(self) -> Path:
        self.root.mkdir(parents=True, exist_ok=True)
        return self.root

    def _path_for(self, key: str) -> Path:
        return self.root / f"record.{hash_text(key)[:24]}.json"

    def put(self, record: ScoredRecord) -> Path:
        data = record.to_dict()
        validate_scored_record(data)
        self._ensure_dir()
        path = self._path_for(record.key)
        path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        return path

    def get(self, key: str) -> ScoredRecord | None:
        path = self._path_for(key)
        if not path.exists():
            return None
        return ScoredRecord.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def get_all(self) -> list[ScoredRecord]:
        """All valid records in key order. Unreadable or invalid artifacts are skipped and listed in `invalid`."""
        self.invalid = []
        if not self.root.exists():
            return []
        records = []
        for path in sorted(self.root.glob("record.*.json")):
            try:
                data = json.loads(path.read_text(encoding="utf-8"))
                validate_scored_record(data)
            except (OSError, json.JSONDecodeError, jsonschema.ValidationError) as exc:
                log.warning("Skipping invalid record artifact %s: %s", path.name, exc)
                self.invalid.append(path.name)
                continue
            records.append(ScoredRecord.from_dict(data))
        records.sort(key=lambda r: r.key)
        return records

    def delete(self, key: str) -> None:
        self._path_for(key).unlink(missing_ok=True)

    def clear(self) -> None:
        if not self.root.exists():
            return
        for path in self.root.glob("record.*.json"):
            path.unlink()


def save_records(store: JsonRecordStore, records: Iterable[ScoredRecord]) -> list[tuple[str, str]]:
    """Write each record independently. Returns (key, reason) for every failed write."""
    failed: list[tuple[str, str]] = []
    for record in records:
        try:
            store.put(record)
        except (OSError, jsonschema.ValidationError) as exc:
            log.error("Could not save record %s (%s): %s", record.key, record.display_name, exc)
            failed.append((record.key, str(exc)))
    return failed
