"""Photo contest judging: session orchestration, report layout and export."""

from photo_judge.config import ReportOptions, Settings, load_settings
from photo_judge.report_layout import PageGeometry, ReportLayout, render
from photo_judge.report_pdf import DirectoryAssets, render_pdf
from photo_judge.session import JudgingSession
from photo_judge.tabular import Table, serialize

__all__ = [
    "ReportOptions",
    "Settings",
    "load_settings",
    "PageGeometry",
    "ReportLayout",
    "render",
    "DirectoryAssets",
    "render_pdf",
    "JudgingSession",
    "Table",
    "serialize",
]
