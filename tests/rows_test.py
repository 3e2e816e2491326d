"""Spreadsheet row boundary: identity validation, header aliases, score coercion."""

import pytest

from src.errors import InvalidIdentity
from src.pipeline.rows import build_judge_set, coerce_score, parse_row, parse_rows


def test_row_without_identity_is_skipped_and_counted():
    """Rows lacking an identity key are reported, never fabricated."""
    raw = [
        {"Identity Key": "C/Ana/a.jpg", "Name": "a.jpg", "Artistic Quality (pts)": 8},
        {"Identity Key": "", "Name": "orphan.jpg", "Artistic Quality (pts)": 9},
        {"Name": "no key at all"},
        {"Identity Key": "   ", "Name": "blank"},
    ]
    result = parse_rows(raw, source="judge1.xlsx")
    assert [r.key for r in result.rows] == ["C/Ana/a.jpg"]
    assert result.total == 4
    assert len(result.skipped) == 3
    assert [exc.row_number for exc in result.skipped] == [3, 4, 5]
    assert all(exc.source == "judge1.xlsx" for exc in result.skipped)


def test_parse_row_raises_invalid_identity():
    with pytest.raises(InvalidIdentity):
        parse_row({"Name": "x"}, row_number=2)


def test_legacy_spanish_headers_accepted():
    """Workbooks with the older Spanish header labels import the same fields."""
    row = parse_row(
        {
            "ID (Clave de Ordenación)": "CONCURSANTES\\Ana\\foto.jpg",
            "Nombre de Imagen": "foto.jpg",
            "Calidad Artística (pts)": "7",
            "Contextualización (pts)": 6.5,
            "Originalidad (pts)": 3,
            "Observaciones": "Buena luz",
        }
    )
    assert row.key == "CONCURSANTES/Ana/foto.jpg"
    assert row.scores.artistic_quality == 7.0
    assert row.scores.contextualization == 6.5
    assert row.scores.originality == 3.0
    assert row.scores.total == 16.5
    assert row.observations == "Buena luz"


def test_missing_name_falls_back_to_file_name():
    row = parse_row({"Identity Key": "C/Ana/foto.jpg"})
    assert row.name == "foto.jpg"


@pytest.mark.parametrize("value", [None, "", "  ", "N/A", "abc", float("nan"), float("inf"), -3, True])
def test_coerce_score_bad_values_become_zero(value):
    assert coerce_score(value, "originality", "k") == 0.0


@pytest.mark.parametrize("value,expected", [(7, 7.0), ("8.5", 8.5), (0, 0.0), ("10", 10.0)])
def test_coerce_score_numbers(value, expected):
    assert coerce_score(value) == expected


def test_judge_set_keeps_last_duplicate():
    """A key repeated within one judge sheet keeps its later row."""
    rows = parse_rows(
        [
            {"Identity Key": "C/a.jpg", "Artistic Quality (pts)": 1},
            {"Identity Key": "C/b.jpg", "Artistic Quality (pts)": 2},
            {"Identity Key": "C/a.jpg", "Artistic Quality (pts)": 9},
        ]
    ).rows
    judge_set = build_judge_set(rows)
    assert set(judge_set) == {"C/a.jpg", "C/b.jpg"}
    assert judge_set["C/a.jpg"].scores.artistic_quality == 9.0
