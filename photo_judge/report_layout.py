"""
Paginated ranking report layout.

Lays out an ordered list of scored records on fixed-size landscape pages: a title and
column-label header on every page, a footer with page counter and copyright line, a fixed
column grid, truncated names, and word-wrapped observations that may continue onto the
next page. The output is a list of Page objects holding positioned drawing instructions;
report_pdf.py turns them into a PDF.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Protocol, Sequence

from reportlab.lib.pagesizes import A4, landscape
from reportlab.pdfbase.pdfmetrics import stringWidth

from src.errors import LayoutFailure
from src.identity import last_segment
from src.models import SCORE_AXES
from src.utils import round_score
from photo_judge.config import ReportOptions

log = logging.getLogger("photo_judge.layout")

FONT = "Helvetica"
BOLD_FONT = "Helvetica-Bold"
ELLIPSIS = "..."

BLACK = (0.0, 0.0, 0.0)
TITLE_COLOR = (0.0, 0.2, 0.4)
FOOTER_COLOR = (0.3, 0.3, 0.3)

RANK_WIDTH = 30
RANK_GAP = 5
NAME_WIDTH = 150
NAME_WIDTH_WITH_ITEM = 120
ITEM_WIDTH = 120
SCORE_WIDTH = 70
TOTAL_WIDTH = 70
COLUMN_GAP = 10

HEADER_LOGO_SCALE = 0.15
FOOTER_LOGO_SCALE = 0.20

SCORE_LABELS = {
    "artistic_quality": "Artistic Q.",
    "contextualization": "Context.",
    "originality": "Originality",
}


@dataclass(frozen=True)
class PageGeometry:
    """Fixed page size and the vertical bands derived from it."""

    width: float = landscape(A4)[0]
    height: float = landscape(A4)[1]
    margin: float = 30
    footer_height: float = 50
    header_top_margin: float = 30
    line_height: float = 12
    font_size: float = 8
    title_font_size: float = 14
    footer_font_size: float = 7

    @property
    def content_top(self) -> float:
        return self.height - self.header_top_margin

    @property
    def label_y(self) -> float:
        return self.content_top - (self.title_font_size + self.line_height * 0.8) - self.line_height

    @property
    def first_row_y(self) -> float:
        return self.label_y - self.line_height * 1.2

    @property
    def break_limit(self) -> float:
        """A row may start at this y or above; below it a new page begins."""
        return self.margin + self.footer_height + self.line_height

    def rows_per_page(self) -> int:
        y, rows = self.first_row_y, 0
        while y >= self.break_limit:
            rows += 1
            y -= self.line_height
        return rows


@dataclass(frozen=True)
class TextOp:
    x: float
    y: float
    text: str
    font: str = FONT
    size: float = 8
    color: tuple = BLACK
    role: str = "cell"
    record_key: str | None = None


@dataclass(frozen=True)
class LineOp:
    x1: float
    y1: float
    x2: float
    y2: float
    width: float = 0.4
    color: tuple = BLACK


@dataclass(frozen=True)
class LogoAsset:
    name: str
    width: float
    height: float
    data: bytes = field(repr=False)


@dataclass(frozen=True)
class ImageOp:
    x: float
    y: float
    width: float
    height: float
    asset: LogoAsset


@dataclass
class Page:
    number: int
    width: float
    height: float
    ops: list = field(default_factory=list)

    def texts(self, role: str | None = None) -> list[TextOp]:
        return [op for op in self.ops if isinstance(op, TextOp) and (role is None or op.role == role)]

    @property
    def page_label(self) -> str:
        labels = self.texts("page_number")
        return labels[0].text if labels else ""


class AssetProvider(Protocol):
    """Best-effort logo source. Returning None means the logo is unavailable."""

    def logo(self, slot: str) -> LogoAsset | None: ...


class NoAssets:
    def logo(self, slot: str) -> LogoAsset | None:
        return None


@dataclass(frozen=True)
class ColumnLayout:
    rank_x: float
    main_x: float
    main_width: float
    item_x: float | None
    item_width: float
    score_x: tuple
    total_x: float
    observations_x: float | None
    observations_width: float


def compute_columns(geometry: PageGeometry, options: ReportOptions) -> ColumnLayout:
    """Column x-offsets from fixed widths and gaps; content never changes them."""
    rank_x = geometry.margin
    main_x = rank_x + RANK_WIDTH + RANK_GAP
    has_item = bool(options.item_name_label)
    main_width = NAME_WIDTH_WITH_ITEM if has_item else NAME_WIDTH
    x = main_x + main_width + COLUMN_GAP
    item_x = None
    item_width = 0
    if has_item:
        item_x, item_width = x, ITEM_WIDTH
        x = item_x + item_width + COLUMN_GAP
    score_x = []
    for _ in SCORE_AXES:
        score_x.append(x)
        x += SCORE_WIDTH + COLUMN_GAP
    total_x = x
    observations_x = None
    observations_width = 0.0
    if not options.hide_observations:
        observations_x = total_x + TOTAL_WIDTH + COLUMN_GAP
        observations_width = geometry.width - observations_x - geometry.margin
    return ColumnLayout(
        rank_x=rank_x,
        main_x=main_x,
        main_width=main_width,
        item_x=item_x,
        item_width=item_width,
        score_x=tuple(score_x),
        total_x=total_x,
        observations_x=observations_x,
        observations_width=observations_width,
    )


def fit_text(text: str, max_width: float, font: str = FONT, size: float = 8) -> str:
    """
    Trim characters until text plus an ellipsis fits `max_width`. Fitting text is unchanged.
    A column narrower than the ellipsis gets the longest prefix that fits, possibly empty.
    """
    if stringWidth(text, font, size) <= max_width:
        return text
    trimmed = text
    if stringWidth(ELLIPSIS, font, size) > max_width:
        while trimmed and stringWidth(trimmed, font, size) > max_width:
            trimmed = trimmed[:-1]
        return trimmed
    while trimmed and stringWidth(trimmed + ELLIPSIS, font, size) > max_width:
        trimmed = trimmed[:-1]
    return trimmed + ELLIPSIS


def _split_long_word(word: str, max_width: float, font: str, size: float) -> list[str]:
    pieces, current = [], ""
    for ch in word:
        if current and stringWidth(current + ch, font, size) > max_width:
            pieces.append(current)
            current = ch
        else:
            current += ch
    if current:
        pieces.append(current)
    return pieces


def wrap_text(text: str, max_width: float, font: str = FONT, size: float = 8) -> list[str]:
    """Split on explicit newlines, then greedily word-wrap each line to `max_width`."""
    fragments: list[str] = []
    for line in text.split("\n"):
        current = ""
        for word in line.split():
            if stringWidth(word, font, size) > max_width:
                pieces = _split_long_word(word, max_width, font, size)
                if current:
                    fragments.append(current)
                fragments.extend(pieces[:-1])
                current = pieces[-1]
                continue
            candidate = f"{current} {word}" if current else word
            if current and stringWidth(candidate, font, size) > max_width:
                fragments.append(current)
                current = word
            else:
                current = candidate
        if current:
            fragments.append(current)
    return fragments


class ReportLayout:
    """Renders ordered records into Pages. One instance may render many times."""

    def __init__(
        self,
        options: ReportOptions | None = None,
        geometry: PageGeometry | None = None,
        assets: AssetProvider | None = None,
        year: int | None = None,
    ):
        self.options = options or ReportOptions()
        self.geometry = geometry or PageGeometry()
        self.assets = assets or NoAssets()
        self.year = year or date.today().year
        self.columns = compute_columns(self.geometry, self.options)
        self._pages: list[Page] = []
        self._header_logo = None
        self._footer_logo = None

    # Public API
    def render(self, records: Sequence) -> list[Page]:
        """
        Lay out `records` in the given order; rank is the 1-based position.
        Any failure aborts the whole render with a LayoutFailure naming the record.
        """
        self._pages = []
        self._header_logo = self._load_logo("header")
        self._footer_logo = self._load_logo("footer")
        current = None
        try:
            y = self._open_page()
            for rank, record in enumerate(records, start=1):
                current = record
                y = self._emit_record(rank, record, y)
            current = None
            self._close_page()
        except Exception as exc:
            self._pages = []
            record_id = getattr(current, "key", None)
            record_name = getattr(current, "display_name", None)
            log.error("Report layout failed at record id=%s name=%s: %s", record_id, record_name, exc)
            raise LayoutFailure(
                f"Failed to lay out ranking report at record {record_id!r} ({record_name!r}): {exc}",
                record_id=record_id,
                record_name=record_name,
            ) from exc
        pages, self._pages = self._pages, []
        log.info("Report laid out: %d records on %d pages", len(records), len(pages))
        return pages

    def _load_logo(self, slot: str) -> LogoAsset | None:
        """Ask the provider for a logo; a provider error counts as unavailable."""
        try:
            return self.assets.logo(slot)
        except Exception as exc:
            log.warning("Logo %r unavailable: %s", slot, exc)
            return None

    # Pages
    def _open_page(self) -> float:
        g = self.geometry
        page = Page(number=len(self._pages) + 1, width=g.width, height=g.height)
        self._pages.append(page)
        self._draw_header(page)
        return g.first_row_y

    def _close_page(self) -> None:
        self._draw_footer(self._pages[-1])

    def _new_page(self) -> float:
        self._close_page()
        return self._open_page()

    def _draw_header(self, page: Page) -> None:
        g, c, o = self.geometry, self.columns, self.options
        text_x = g.margin
        logo = self._header_logo
        if logo:
            w, h = logo.width * HEADER_LOGO_SCALE, logo.height * HEADER_LOGO_SCALE
            page.ops.append(ImageOp(g.margin, g.content_top - h, w, h, logo))
            text_x += w + 10
        title = fit_text(o.resolved_title, g.width - g.margin - text_x, BOLD_FONT, g.title_font_size)
        page.ops.append(
            TextOp(text_x, g.content_top - g.title_font_size * 0.8, title, BOLD_FONT, g.title_font_size, TITLE_COLOR, "title")
        )

        labels = [(c.rank_x, "Rank"), (c.main_x, o.main_name_label)]
        if c.item_x is not None:
            labels.append((c.item_x, o.item_name_label))
        labels.extend((x, SCORE_LABELS[axis]) for x, axis in zip(c.score_x, SCORE_AXES))
        labels.append((c.total_x, "Total"))
        if c.observations_x is not None:
            labels.append((c.observations_x, "Observations"))
        for x, label in labels:
            page.ops.append(TextOp(x, g.label_y, label, BOLD_FONT, g.font_size, BLACK, "column_label"))
        page.ops.append(LineOp(g.margin, g.label_y - 3, g.width - g.margin, g.label_y - 3))

    def _draw_footer(self, page: Page) -> None:
        g = self.geometry
        footer_y = g.margin + 15
        x = g.margin
        logo = self._footer_logo
        if logo:
            w, h = logo.width * FOOTER_LOGO_SCALE, logo.height * FOOTER_LOGO_SCALE
            page.ops.append(ImageOp(x, footer_y - h / 2, w, h, logo))
            x += w + 5
        copyright_text = self.options.copyright_text.replace("{year}", str(self.year))
        page.ops.append(TextOp(x, footer_y, copyright_text, FONT, g.footer_font_size, FOOTER_COLOR, "footer"))
        number = str(page.number)
        number_x = g.width - g.margin - stringWidth(number, FONT, g.footer_font_size)
        page.ops.append(TextOp(number_x, footer_y, number, FONT, g.footer_font_size, FOOTER_COLOR, "page_number"))

    # Rows
    def _row_cells(self, rank: int, record) -> list[tuple[float, str]]:
        c, o, size = self.columns, self.options, self.geometry.font_size
        name = record.display_name or ""
        if c.item_x is not None:
            name = name.upper()
        cells = [(c.rank_x, str(rank)), (c.main_x, fit_text(name, c.main_width, FONT, size))]
        if c.item_x is not None:
            cells.append((c.item_x, fit_text(last_segment(record.key), c.item_width, FONT, size)))
        for x, axis in zip(c.score_x, SCORE_AXES):
            cells.append((x, str(round_score(getattr(record.scores, axis)))))
        cells.append((c.total_x, str(round_score(record.total_score))))
        return cells

    def _draw_cells(self, cells, y: float, role: str, key: str) -> None:
        page = self._pages[-1]
        size = self.geometry.font_size
        for x, text in cells:
            page.ops.append(TextOp(x, y, text, FONT, size, BLACK, role, key))

    def _emit_record(self, rank: int, record, y: float) -> float:
        g, c = self.geometry, self.columns
        if y < g.break_limit:
            y = self._new_page()

        cells = self._row_cells(rank, record)
        self._draw_cells(cells, y, "cell", record.key)

        fragments: list[str] = []
        if c.observations_x is not None and record.observations:
            fragments = wrap_text(record.observations, c.observations_width, FONT, g.font_size)

        cursor = y
        for i, fragment in enumerate(fragments):
            if i > 0:
                cursor -= g.line_height
                if cursor < g.break_limit:
                    cursor = self._new_page()
                    # Continuation rows repeat the record's fixed columns.
                    self._draw_cells(cells, cursor, "continuation", record.key)
            self._pages[-1].ops.append(
                TextOp(c.observations_x, cursor, fragment, FONT, g.font_size, BLACK, "observation", record.key)
            )
        return cursor - g.line_height


def render(
    records: Sequence,
    options: ReportOptions | None = None,
    geometry: PageGeometry | None = None,
    assets: AssetProvider | None = None,
    year: int | None = None,
) -> list[Page]:
    """Lay out an ordered record sequence into pages."""
    return ReportLayout(options, geometry, assets, year).render(records)
