"""Report layout: pagination, header/footer per page, truncation, wrapped observations, failure wrapping."""

import logging
from types import SimpleNamespace

import pytest
from reportlab.pdfbase.pdfmetrics import stringWidth

from photo_judge.config import DEFAULT_TITLE, ReportOptions
from photo_judge.report_layout import (
    ELLIPSIS,
    FONT,
    ImageOp,
    LogoAsset,
    PageGeometry,
    compute_columns,
    fit_text,
    render,
    wrap_text,
)
from src.errors import LayoutFailure
from src.models import ScoredRecord, ScoreTriple

# Landscape A4 width with a height whose content band holds exactly 40 rows.
FORTY_ROWS = PageGeometry(height=642)


def _records(n, observations=""):
    return [
        ScoredRecord(
            key=f"CONCURSANTES/C{i:03d}/img.jpg",
            display_name=f"img{i:03d}.jpg",
            scores=ScoreTriple(n - i, 1.5, 2),
            observations=observations,
        )
        for i in range(n)
    ]


def _cell_ranks(page, role="cell"):
    return [op.text for op in page.texts(role) if op.x == page_columns().rank_x]


def page_columns(options=None):
    return compute_columns(FORTY_ROWS, options or ReportOptions())


def test_forty_row_band():
    assert FORTY_ROWS.rows_per_page() == 40


def test_default_page_is_landscape_a4():
    g = PageGeometry()
    assert g.width > g.height
    assert round(g.width, 2) == 841.89
    assert round(g.height, 2) == 595.28


def test_fifty_records_make_two_pages_with_header_and_footer():
    """50 rows with a 40-row band → 2 pages; footer counters read 1 then 2."""
    pages = render(_records(50), ReportOptions(hide_observations=True), FORTY_ROWS, year=2024)
    assert len(pages) == 2
    for page in pages:
        assert [op.text for op in page.texts("title")] == [DEFAULT_TITLE]
        assert "Rank" in [op.text for op in page.texts("column_label")]
        assert len(page.texts("footer")) == 1
    assert [p.page_label for p in pages] == ["1", "2"]
    assert _cell_ranks(pages[0]) == [str(i) for i in range(1, 41)]
    assert _cell_ranks(pages[1]) == [str(i) for i in range(41, 51)]


def test_exactly_forty_records_fit_one_page():
    pages = render(_records(40), ReportOptions(hide_observations=True), FORTY_ROWS)
    assert len(pages) == 1


def test_no_records_still_gives_one_page():
    pages = render([], ReportOptions(), FORTY_ROWS)
    assert len(pages) == 1
    assert pages[0].page_label == "1"
    assert pages[0].texts("cell") == []


def test_footer_copyright_year_substituted():
    options = ReportOptions(copyright_text="© {year} Photo Unit")
    pages = render(_records(1), options, FORTY_ROWS, year=2031)
    assert pages[0].texts("footer")[0].text == "© 2031 Photo Unit"


def test_observation_continues_on_next_page_with_repeated_columns():
    """Record 40 starts on the last line; its 3-line note breaks mid-record and the continuation repeats its columns."""
    records = _records(40)
    records[39] = ScoredRecord(
        key="CONCURSANTES/Last/img.jpg",
        display_name="last.jpg",
        scores=ScoreTriple(1, 2, 3),
        observations="line one\nline two\nline three",
    )
    records.append(ScoredRecord(key="CONCURSANTES/Zed/after.jpg", display_name="after.jpg"))
    pages = render(records, ReportOptions(), FORTY_ROWS)
    assert len(pages) == 2
    first, second = pages

    notes_first = [op for op in first.texts("observation") if op.record_key == "CONCURSANTES/Last/img.jpg"]
    assert [op.text for op in notes_first] == ["line one"]
    notes_first_y = notes_first[0].y
    assert notes_first_y == min(op.y for op in first.texts("cell"))

    continuation = second.texts("continuation")
    assert {op.record_key for op in continuation} == {"CONCURSANTES/Last/img.jpg"}
    texts = [op.text for op in continuation]
    assert texts[:2] == ["40", "last.jpg"]
    assert texts[2:] == ["1", "2", "3", "6"]
    assert all(op.y == FORTY_ROWS.first_row_y for op in continuation)

    notes_second = [op for op in second.texts("observation") if op.record_key == "CONCURSANTES/Last/img.jpg"]
    assert [op.text for op in notes_second] == ["line two", "line three"]
    assert notes_second[0].y == FORTY_ROWS.first_row_y
    assert notes_second[1].y == FORTY_ROWS.first_row_y - FORTY_ROWS.line_height

    # The next record starts exactly one line below the last fragment.
    after = [op for op in second.texts("cell") if op.record_key == "CONCURSANTES/Zed/after.jpg"]
    assert after[0].text == "41"
    assert after[0].y == notes_second[1].y - FORTY_ROWS.line_height


def test_cursor_advances_one_line_per_plain_record():
    pages = render(_records(3), ReportOptions(), FORTY_ROWS)
    ys = sorted({op.y for op in pages[0].texts("cell")}, reverse=True)
    assert ys == pytest.approx([FORTY_ROWS.first_row_y - i * FORTY_ROWS.line_height for i in range(3)])


def test_hidden_observations_are_not_drawn():
    pages = render(_records(2, "some note"), ReportOptions(hide_observations=True), FORTY_ROWS)
    assert pages[0].texts("observation") == []
    assert "Observations" not in [op.text for op in pages[0].texts("column_label")]


def test_long_names_truncated_to_column():
    long_name = "An extremely long image file name that will never fit the column.jpg"
    record = ScoredRecord(key="C/x.jpg", display_name=long_name)
    pages = render([record], ReportOptions(), FORTY_ROWS)
    columns = page_columns()
    name_op = [op for op in pages[0].texts("cell") if op.x == columns.main_x][0]
    assert name_op.text.endswith(ELLIPSIS)
    assert stringWidth(name_op.text, FONT, FORTY_ROWS.font_size) <= columns.main_width


def test_average_preset_columns():
    """Contestant and image columns; contestant upper-cased, image name from the key."""
    options = ReportOptions.for_average()
    record = SimpleNamespace(
        key="CONCURSANTES/ana/amanecer.jpg",
        display_name="Ana",
        scores=ScoreTriple(5, 5, 0),
        total_score=10,
        observations="",
    )
    pages = render([record], options, FORTY_ROWS)
    labels = [op.text for op in pages[0].texts("column_label")]
    assert "Contestant Name" in labels and "Image Name" in labels
    assert "Observations" not in labels
    cells = [op.text for op in pages[0].texts("cell")]
    assert cells == ["1", "ANA", "amanecer.jpg", "5", "5", "0", "10"]


def test_scores_rounded_half_up():
    record = ScoredRecord(key="C/r.jpg", display_name="r", scores=ScoreTriple(2.5, 0.49, 7.5))
    cells = [op.text for op in render([record], ReportOptions(), FORTY_ROWS)[0].texts("cell")]
    assert cells[2:] == ["3", "0", "8", "10"]


def test_column_offsets_fixed():
    plain = compute_columns(PageGeometry(), ReportOptions())
    assert (plain.rank_x, plain.main_x, plain.main_width) == (30, 65, 150)
    assert plain.score_x == (225, 305, 385)
    assert plain.total_x == 465
    assert plain.observations_x == 545
    with_item = compute_columns(PageGeometry(), ReportOptions.for_average())
    assert with_item.main_width == 120
    assert with_item.item_x == 195
    assert with_item.score_x[0] == 325
    assert with_item.observations_x is None


def test_logos_drawn_when_available():
    class Assets:
        def logo(self, slot):
            return LogoAsset(slot, 200, 100, b"png")

    pages = render(_records(45), ReportOptions(), FORTY_ROWS, Assets())
    for page in pages:
        images = [op for op in page.ops if isinstance(op, ImageOp)]
        assert len(images) == 2
    title = pages[0].texts("title")[0]
    assert title.x == pytest.approx(FORTY_ROWS.margin + 200 * 0.15 + 10)


def test_logo_provider_error_treated_as_unavailable(caplog):
    class BrokenAssets:
        def logo(self, slot):
            raise OSError(f"cannot open {slot} logo")

    with caplog.at_level(logging.WARNING, logger="photo_judge.layout"):
        pages = render(_records(3), ReportOptions(), FORTY_ROWS, BrokenAssets())
    assert len(pages) == 1
    assert not [op for op in pages[0].ops if isinstance(op, ImageOp)]
    assert pages[0].texts("title")[0].text
    assert sum("unavailable" in r.getMessage() for r in caplog.records) == 2


def test_drawing_failure_names_the_record():
    """A record that cannot be drawn aborts the render with its identity and name."""
    bad = SimpleNamespace(key="C/bad.jpg", display_name="Bad One", scores=None, total_score=0, observations="")
    with pytest.raises(LayoutFailure) as info:
        render([_records(1)[0], bad], ReportOptions(), FORTY_ROWS)
    assert info.value.record_id == "C/bad.jpg"
    assert info.value.record_name == "Bad One"
    assert "C/bad.jpg" in str(info.value)
    assert isinstance(info.value.__cause__, AttributeError)


def test_fit_text():
    assert fit_text("short", 100) == "short"
    trimmed = fit_text("W" * 80, 60)
    assert trimmed.endswith(ELLIPSIS)
    assert stringWidth(trimmed, FONT, 8) <= 60


def test_fit_text_narrower_than_ellipsis_never_overflows():
    """A column too narrow for "..." keeps only the prefix that fits."""
    assert stringWidth(ELLIPSIS, FONT, 8) > 6
    assert fit_text("iiiiii", 6) == "iii"
    assert fit_text("abcdef", 3) == ""
    for width in (0, 1, 3, 5, 6):
        assert stringWidth(fit_text("Wide name here", width), FONT, 8) <= width



def test_wrap_text_greedy_and_newlines():
    text = "alpha beta gamma delta epsilon zeta eta theta iota kappa\nsecond paragraph"
    width = stringWidth("alpha beta gamma", FONT, 8) + 1
    fragments = wrap_text(text, width)
    assert fragments[0] == "alpha beta gamma"
    assert fragments[-1] == "second paragraph"
    assert all(stringWidth(f, FONT, 8) <= width for f in fragments)
    assert " ".join(fragments[:-1]).split() == text.split("\n")[0].split()


def test_wrap_text_splits_overlong_words():
    fragments = wrap_text("x" * 300, 50)
    assert len(fragments) > 1
    assert "".join(fragments) == "x" * 300
    assert all(stringWidth(f, FONT, 8) <= 50 for f in fragments)
