"""Spreadsheet row boundary: map headers, validate, coerce scores, build judge score sets."""

import logging
import math
from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping

import jsonschema

from src.errors import InvalidIdentity
from src.identity import canonicalize, last_segment
from src.models import SCORE_AXES, ScoreRow, ScoreTriple
from src.utils import normalize_text
from src.validation import validate_score_row

log = logging.getLogger("photo_judge.rows")

# Column order of the tabular export; import accepts the same labels.
TABLE_COLUMNS = [
    ("id", "Identity Key"),
    ("name", "Name"),
    ("artistic_quality", "Artistic Quality (pts)"),
    ("contextualization", "Contextualization (pts)"),
    ("originality", "Originality (pts)"),
    ("total_score", "Total Score (pts)"),
    ("observations", "Observations"),
]

# Header labels used by judge workbooks produced before the English export.
LEGACY_HEADERS = {
    "ID (Clave de Ordenación)": "id",
    "Nombre de Imagen": "name",
    "Calidad Artística (pts)": "artistic_quality",
    "Contextualización (pts)": "contextualization",
    "Originalidad (pts)": "originality",
    "Puntuación Total (pts)": "total_score",
    "Observaciones": "observations",
}

HEADER_FIELDS = {label: field_name for field_name, label in TABLE_COLUMNS}
HEADER_FIELDS.update(LEGACY_HEADERS)


@dataclass
class RowParseResult:
    """Rows that passed the boundary plus the ones rejected for lacking an identity."""

    rows: list[ScoreRow] = field(default_factory=list)
    skipped: list[InvalidIdentity] = field(default_factory=list)
    total: int = 0


def map_headers(raw_row: Mapping[str, Any]) -> dict:
    """Translate header labels to field names. Unknown columns are dropped."""
    mapped: dict = {}
    for header, value in raw_row.items():
        field_name = HEADER_FIELDS.get(normalize_text(str(header or "")).strip())
        if field_name and field_name not in mapped:
            mapped[field_name] = value
    return mapped


def coerce_score(value: Any, axis: str = "", key: str = "") -> float:
    """Parse one score cell. Empty, non-numeric, non-finite or negative values become 0."""
    if value is None or (isinstance(value, str) and not value.strip()):
        log.warning("Score %s for %s is empty; using 0", axis, key)
        return 0.0
    if isinstance(value, bool):
        log.warning("Score %s for %s is a boolean (%r); using 0", axis, key, value)
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        log.warning("Score %s for %s is not a number (%r); using 0", axis, key, value)
        return 0.0
    if not math.isfinite(number) or number < 0:
        log.warning("Score %s for %s is out of range (%r); using 0", axis, key, value)
        return 0.0
    return number


def parse_row(raw_row: Mapping[str, Any], row_number: int | None = None, source: str = "") -> ScoreRow:
    """
    Turn one loosely-typed spreadsheet row into a ScoreRow.
    Raises InvalidIdentity when the row has no usable identity key.
    """
    mapped = map_headers(raw_row)
    raw_id = mapped.get("id")
    mapped["id"] = str(raw_id).strip() if raw_id is not None else ""
    try:
        validate_score_row(mapped)
    except jsonschema.ValidationError as exc:
        raise InvalidIdentity(
            f"Row {row_number} in {source or 'spreadsheet'} has no usable identity key: {exc.message}",
            source=source,
            row_number=row_number,
        ) from exc

    key = canonicalize(mapped["id"])
    name = normalize_text(str(mapped.get("name") or "").strip()) or last_segment(key)
    scores = ScoreTriple(**{axis: coerce_score(mapped.get(axis), axis, key) for axis in SCORE_AXES})
    observations = normalize_text(str(mapped.get("observations") or "").strip())
    return ScoreRow(key=key, name=name, scores=scores, observations=observations)


def parse_rows(raw_rows: Iterable[Mapping[str, Any]], source: str = "") -> RowParseResult:
    """Parse every row; rows without an identity are skipped and reported, never fabricated."""
    result = RowParseResult()
    # Row 1 is the header row in the source sheet.
    for row_number, raw_row in enumerate(raw_rows, start=2):
        result.total += 1
        try:
            result.rows.append(parse_row(raw_row, row_number, source))
        except InvalidIdentity as exc:
            log.warning("Skipping row: %s", exc)
            result.skipped.append(exc)
    log.info(
        "Parsed %d/%d rows from %s (%d skipped)",
        len(result.rows), result.total, source or "spreadsheet", len(result.skipped),
    )
    return result


def build_judge_set(rows: Iterable[ScoreRow]) -> dict[str, ScoreRow]:
    """One judge's scores keyed by identity key. A repeated key keeps its last row."""
    judge_set: dict[str, ScoreRow] = {}
    for row in rows:
        if row.key in judge_set:
            log.warning("Judge sheet repeats key %s; keeping the later row", row.key)
        judge_set[row.key] = row
    return judge_set
