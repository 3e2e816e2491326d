"""Ingest pipeline: folder scan → spreadsheet rows → reconciliation → record store."""

from src.pipeline.scan import FileDescriptor, build_records, dedupe_format_variants, scan_directory
from src.pipeline.rows import build_judge_set, parse_rows
from src.pipeline.reconcile import RecordSet, ReconcileResult, Source, reconcile, reconcile_rows
from src.pipeline.artifacts import JsonRecordStore, save_records

__all__ = [
    "FileDescriptor",
    "build_records",
    "dedupe_format_variants",
    "scan_directory",
    "build_judge_set",
    "parse_rows",
    "RecordSet",
    "ReconcileResult",
    "Source",
    "reconcile",
    "reconcile_rows",
    "JsonRecordStore",
    "save_records",
]
