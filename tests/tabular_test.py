"""Tabular export: fixed header, defensive coercion, placeholder rows, CSV and XLSX encodings."""

import csv
import io
import logging

from photo_judge.tabular import HEADER, serialize
from photo_judge.workbook import read_rows, write_workbook
from src.models import AveragedRecord, ScoredRecord, ScoreTriple
from src.pipeline.rows import parse_rows


def test_header_row_is_fixed():
    assert serialize([]).header == [
        "Identity Key",
        "Name",
        "Artistic Quality (pts)",
        "Contextualization (pts)",
        "Originality (pts)",
        "Total Score (pts)",
        "Observations",
    ]


def test_non_numeric_axis_written_as_zero_and_null_record_kept():
    """"N/A" becomes 0; a null record becomes a placeholder so row count equals input count."""
    records = [
        {"id": "C/a.jpg", "display_name": "a", "scores": {"artistic_quality": "N/A", "contextualization": 4.5, "originality": 3}},
        None,
        ScoredRecord(key="C/b.jpg", display_name="b", scores=ScoreTriple(1.2, 2.5, 3.49), observations="ok"),
    ]
    table = serialize(records)
    assert len(table.rows) == 3
    assert table.rows[0] == ["C/a.jpg", "a", 0, 5, 3, 8, ""]
    assert table.rows[1][:2] == ["Unknown ID (row 2)", "Unknown Name"]
    assert table.rows[1][2:6] == [0, 0, 0, 0]
    assert table.rows[2] == ["C/b.jpg", "b", 1, 3, 3, 7, "ok"]


def test_missing_score_object_exports_total_only():
    table = serialize([{"id": "C/x.jpg", "name": "x", "total_score": 12.6}])
    assert table.rows[0] == ["C/x.jpg", "x", 0, 0, 0, 13, ""]


def test_empty_and_infinite_values_become_zero(caplog):
    """Empty, null and infinite cells export as 0, each with a warning naming the axis."""
    with caplog.at_level(logging.WARNING, logger="photo_judge.rows"):
        table = serialize([{"id": "k", "scores": {"artistic_quality": "", "contextualization": float("inf"), "originality": None}}])
    assert table.rows[0][2:6] == [0, 0, 0, 0]
    messages = [r.getMessage() for r in caplog.records if r.name == "photo_judge.rows"]
    assert any("artistic_quality" in m and "empty" in m for m in messages)
    assert any("originality" in m and "empty" in m for m in messages)
    assert any("contextualization" in m and "out of range" in m for m in messages)


def test_boolean_score_warns(caplog):
    with caplog.at_level(logging.WARNING, logger="photo_judge.rows"):
        table = serialize([{"id": "k", "scores": {"artistic_quality": True, "contextualization": 2, "originality": 2}}])
    assert table.rows[0][2:6] == [0, 2, 2, 4]
    assert any("boolean" in r.getMessage() for r in caplog.records)



def test_averaged_records_export_without_observations():
    record = AveragedRecord("CONCURSANTES/ana/a.jpg", "ANA", ScoreTriple(5, 5, 0), 2)
    assert serialize([record]).rows[0] == ["CONCURSANTES/ana/a.jpg", "ANA", 5, 5, 0, 10, ""]


def test_csv_bytes():
    data = serialize([ScoredRecord(key="C/ñ.jpg", display_name="ñandú", scores=ScoreTriple(1, 1, 1))]).to_csv_bytes()
    assert data.startswith(b"\xef\xbb\xbf")
    rows = list(csv.reader(io.StringIO(data.decode("utf-8-sig"))))
    assert rows[0] == HEADER
    assert rows[1] == ["C/ñ.jpg", "ñandú", "1", "1", "1", "3", ""]


def test_workbook_export_reads_back_as_import_rows():
    """An exported workbook can be re-imported; its header labels map to the same fields."""
    records = [
        ScoredRecord(key="C/a.jpg", display_name="a.jpg", scores=ScoreTriple(7, 8, 9), observations="line\x01 one"),
        ScoredRecord(key="C/b.jpg", display_name="b.jpg"),
    ]
    data = write_workbook(serialize(records))
    raw = read_rows(data)
    assert len(raw) == 2
    assert raw[0]["Identity Key"] == "C/a.jpg"
    parsed = parse_rows(raw).rows
    assert [r.key for r in parsed] == ["C/a.jpg", "C/b.jpg"]
    assert parsed[0].scores == ScoreTriple(7, 8, 9)
    assert parsed[0].observations == "line one"
