"""XLSX codec for score sheets: export tables to a workbook, read judge workbooks back as rows."""

import logging
import re
from io import BytesIO
from pathlib import Path
from typing import Any

from openpyxl import Workbook, load_workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter
from openpyxl.utils.exceptions import InvalidFileException

from src.errors import SerializationFailure
from photo_judge.tabular import Table

log = logging.getLogger("photo_judge.workbook")

SHEET_TITLE = "Scores"
COLUMN_WIDTHS = [60, 30, 22, 24, 20, 20, 60]

# Excel/openpyxl rejects control chars: 0x00-0x08, 0x0B-0x0C, 0x0E-0x1F
_ILLEGAL_XLSX_RE = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F]")


def _clean(value: Any) -> Any:
    if isinstance(value, str):
        return _ILLEGAL_XLSX_RE.sub("", value)
    return value


def write_workbook(table: Table, sheet_title: str = SHEET_TITLE) -> bytes:
    """Write the table into a single-sheet workbook and return its bytes."""
    try:
        wb = Workbook()
        ws = wb.active
        ws.title = sheet_title
        ws.append(table.header)
        for cell in ws[1]:
            cell.font = Font(bold=True)
        for row in table.rows:
            ws.append([_clean(v) for v in row])
        for idx, width in enumerate(COLUMN_WIDTHS[: len(table.header)], start=1):
            ws.column_dimensions[get_column_letter(idx)].width = width
        ws.freeze_panes = "A2"

        bio = BytesIO()
        wb.save(bio)
    except (ValueError, TypeError, OSError) as exc:
        raise SerializationFailure(f"Could not write workbook: {exc}") from exc
    log.info("Wrote workbook with %d rows", len(table.rows))
    return bio.getvalue()


def read_rows(source: str | Path | bytes) -> list[dict]:
    """
    Read the first sheet of a workbook as header-keyed dicts.
    Fully empty rows are dropped; cell values are returned as openpyxl gives them.
    """
    stream = BytesIO(source) if isinstance(source, bytes) else Path(source)
    label = "<bytes>" if isinstance(source, bytes) else str(source)
    try:
        wb = load_workbook(stream, read_only=True, data_only=True)
    except (InvalidFileException, OSError, KeyError, ValueError) as exc:
        raise SerializationFailure(f"Could not read workbook {label}: {exc}") from exc

    try:
        ws = wb.worksheets[0]
        rows = ws.iter_rows(values_only=True)
        header = next(rows, None)
        if header is None:
            return []
        names = [str(h).strip() if h is not None else "" for h in header]
        out = []
        for values in rows:
            if all(v is None or (isinstance(v, str) and not v.strip()) for v in values):
                continue
            out.append({name: value for name, value in zip(names, values) if name})
    finally:
        wb.close()
    log.info("Read %d rows from workbook", len(out))
    return out
