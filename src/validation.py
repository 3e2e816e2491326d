"""Schema validation for spreadsheet score rows and persisted records."""

import json
from functools import lru_cache
from pathlib import Path

import jsonschema

SCHEMAS_DIR = Path(__file__).resolve().parent.parent / "schemas"


@lru_cache(maxsize=None)
def _load_schema(name: str) -> dict:
    path = SCHEMAS_DIR / f"{name}.schema.json"
    return json.loads(path.read_text(encoding="utf-8"))


def validate_score_row(data: dict) -> None:
    """Validate a mapped spreadsheet row. Raises jsonschema.ValidationError if invalid."""
    schema = _load_schema("score_row")
    jsonschema.validate(data, schema)


def validate_scored_record(data: dict) -> None:
    """Validate a persisted record. Raises jsonschema.ValidationError if invalid."""
    schema = _load_schema("scored_record")
    jsonschema.validate(data, schema)
