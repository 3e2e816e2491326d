"""PDF serialization of laid-out report pages, plus the directory-backed logo provider."""

import logging
from io import BytesIO
from pathlib import Path
from typing import Sequence

from reportlab.lib.utils import ImageReader
from reportlab.pdfgen import canvas

from src.errors import LayoutFailure
from photo_judge.config import ReportOptions
from photo_judge.report_layout import (
    AssetProvider,
    ImageOp,
    LineOp,
    LogoAsset,
    Page,
    PageGeometry,
    TextOp,
    render,
)

log = logging.getLogger("photo_judge.pdf")

LOGO_FILES = {"header": "header_logo.png", "footer": "footer_logo.png"}


class DirectoryAssets:
    """Looks up logos by file name in a directory. A missing or unreadable file is reported as unavailable."""

    def __init__(self, root: str | Path):
        self.root = Path(root)

    def logo(self, slot: str) -> LogoAsset | None:
        filename = LOGO_FILES.get(slot)
        if not filename:
            return None
        path = self.root / filename
        if not path.is_file():
            log.debug("Logo %s not found at %s", slot, path)
            return None
        try:
            data = path.read_bytes()
            width, height = ImageReader(BytesIO(data)).getSize()
        except (OSError, ValueError) as exc:
            log.warning("Could not load %s logo from %s: %s", slot, path, exc)
            return None
        return LogoAsset(name=slot, width=width, height=height, data=data)


def pages_to_pdf(pages: Sequence[Page], title: str = "") -> bytes:
    """Replay each page's drawing instructions onto a reportlab canvas."""
    if not pages:
        raise LayoutFailure("No pages to serialize")
    buffer = BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=(pages[0].width, pages[0].height))
    if title:
        pdf.setTitle(title)
    try:
        for page in pages:
            pdf.setPageSize((page.width, page.height))
            for op in page.ops:
                if isinstance(op, TextOp):
                    pdf.setFont(op.font, op.size)
                    pdf.setFillColorRGB(*op.color)
                    pdf.drawString(op.x, op.y, op.text)
                elif isinstance(op, LineOp):
                    pdf.setStrokeColorRGB(*op.color)
                    pdf.setLineWidth(op.width)
                    pdf.line(op.x1, op.y1, op.x2, op.y2)
                elif isinstance(op, ImageOp):
                    image = ImageReader(BytesIO(op.asset.data))
                    pdf.drawImage(image, op.x, op.y, width=op.width, height=op.height, mask="auto")
            pdf.showPage()
        pdf.save()
    except Exception as exc:
        raise LayoutFailure(f"Failed to write PDF page {page.number}: {exc}") from exc
    return buffer.getvalue()


def render_pdf(
    records: Sequence,
    options: ReportOptions | None = None,
    geometry: PageGeometry | None = None,
    assets: AssetProvider | None = None,
    year: int | None = None,
) -> bytes:
    """Lay out `records` in the given order and return the PDF document bytes."""
    options = options or ReportOptions()
    pages = render(records, options, geometry, assets, year)
    data = pages_to_pdf(pages, options.resolved_title)
    log.info("Rendered PDF report: %d pages, %d bytes", len(pages), len(data))
    return data
