"""Judging session: the versioned record set, three judge slots, and the batch operations over them."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from src.errors import MissingJudgeData, PhotoJudgeError
from src.models import SCORE_AXES, AveragedRecord, ScoredRecord, ScoreTriple
from src.pipeline.artifacts import JsonRecordStore, save_records
from src.pipeline.reconcile import RecordSet, ReconcileResult, Source, reconcile, reconcile_rows
from src.pipeline.rows import RowParseResult, build_judge_set, coerce_score, parse_rows
from src.pipeline.scan import FileDescriptor, FormatConverter, build_records, scan_directory
from src.scoring.averaging import DEFAULT_CONTESTANT_ROOT, JUDGE_COUNT, average
from src.scoring.ranking import order_by_identity, rank
from photo_judge.audit import audit_log
from photo_judge.config import ReportOptions, Settings
from photo_judge.report_layout import AssetProvider, PageGeometry
from photo_judge.report_pdf import render_pdf
from photo_judge.tabular import Table, serialize

log = logging.getLogger("photo_judge.session")


@dataclass
class RestoreSummary:
    loaded: int = 0
    invalid: list[str] = field(default_factory=list)
    status_errors: int = 0


@dataclass
class IngestReport:
    """What one scan or import pass did to the session."""

    result: ReconcileResult
    skipped: list = field(default_factory=list)
    discarded: list[str] = field(default_factory=list)
    unsupported: list[str] = field(default_factory=list)
    failed_writes: list[tuple[str, str]] = field(default_factory=list)


class JudgingSession:
    def __init__(
        self,
        store: JsonRecordStore,
        *,
        converter: FormatConverter | None = None,
        assets: AssetProvider | None = None,
        contestant_root: str = DEFAULT_CONTESTANT_ROOT,
        scan_workers: int = 4,
        log_dir: Path | None = None,
    ):
        self.store = store
        self.converter = converter
        self.assets = assets
        self.contestant_root = contestant_root
        self.scan_workers = scan_workers
        self.log_dir = log_dir
        self.records = RecordSet()
        self.judges: list[dict | None] = [None] * JUDGE_COUNT

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        converter: FormatConverter | None = None,
        assets: AssetProvider | None = None,
    ) -> "JudgingSession":
        return cls(
            JsonRecordStore(settings.data_dir / "records"),
            converter=converter,
            assets=assets,
            contestant_root=settings.contestant_root,
            scan_workers=settings.scan_workers,
            log_dir=settings.log_dir,
        )

    def _audit(self, action: str, status: str, **fields: Any) -> None:
        audit_log(action, status, log_dir=self.log_dir, **fields)

    # Records
    def load(self) -> RestoreSummary:
        """Restore the persisted record set. Invalid artifacts are skipped and counted."""
        restored = self.store.get_all()
        self.records = RecordSet.from_records(restored, version=self.records.version + 1)
        summary = RestoreSummary(
            loaded=len(restored),
            invalid=list(self.store.invalid),
            status_errors=sum(1 for r in restored if r.status_error),
        )
        log.info(
            "Restored %d records (%d invalid skipped, %d with status errors)",
            summary.loaded, len(summary.invalid), summary.status_errors,
        )
        return summary

    def _apply(self, result: ReconcileResult) -> list[tuple[str, str]]:
        self.records = result.records
        touched = [result.records.get(key) for key in result.inserted + result.updated]
        return save_records(self.store, [r for r in touched if r is not None])

    def ingest_files(self, files: Iterable[FileDescriptor], label: str = "") -> IngestReport:
        scan = build_records(files, self.converter)
        result = reconcile(self.records, scan.records, Source.FOLDER)
        report = IngestReport(
            result=result,
            skipped=scan.skipped,
            discarded=scan.discarded,
            unsupported=scan.unsupported,
        )
        report.failed_writes = self._apply(result)
        self._audit(
            "scan",
            "ok" if not report.failed_writes else "partial",
            record_count=len(self.records),
            skipped=len(scan.skipped),
            filename=label or None,
            extra={
                "inserted": len(result.inserted),
                "updated": len(result.updated),
                "discarded": len(scan.discarded),
                "unsupported": len(scan.unsupported),
                "failed_writes": len(report.failed_writes),
            },
        )
        return report

    def scan_folder(self, root: str | Path) -> IngestReport:
        files = scan_directory(root, max_workers=self.scan_workers)
        return self.ingest_files(files, label=str(root))

    def import_spreadsheet(self, raw_rows: Iterable[Mapping], source: str = "") -> IngestReport:
        """Single-session import: matching records get the sheet's scores and observations outright."""
        parsed = parse_rows(raw_rows, source)
        result = reconcile_rows(self.records, parsed.rows)
        report = IngestReport(result=result, skipped=parsed.skipped)
        report.failed_writes = self._apply(result)
        self._audit(
            "import",
            "ok" if not report.failed_writes else "partial",
            record_count=len(parsed.rows),
            skipped=len(parsed.skipped),
            filename=source or None,
            extra={"unmatched": len(result.unmatched), "failed_writes": len(report.failed_writes)},
        )
        return report

    def set_scores(
        self,
        key: str,
        scores: ScoreTriple | Mapping[str, Any],
        observations: str | None = None,
    ) -> ScoredRecord:
        """
        Live scoring of one record. Raises KeyError for an unknown key.
        Every axis is coerced like an imported cell. The record is persisted before the
        in-memory set changes, so a failed write leaves both untouched.
        """
        current = self.records.get(key)
        if current is None:
            raise KeyError(f"No record with identity key {key!r}")
        raw = scores.as_dict() if isinstance(scores, ScoreTriple) else scores
        coerced = ScoreTriple(**{axis: coerce_score(raw.get(axis), axis, key) for axis in SCORE_AXES})
        updated = current.with_scores(coerced, observations)
        self.store.put(updated)
        self.records = self.records.replace_record(updated)
        log.debug("Scores set for %s: total %.2f", key, updated.total_score)
        return updated

    def ranking(self) -> list[ScoredRecord]:
        return rank(self.records)

    # Judges
    def import_judge(self, slot: int, raw_rows: Iterable[Mapping], source: str = "") -> RowParseResult:
        """Replace judge slot `slot` (0-based) with the parsed score set."""
        if not 0 <= slot < JUDGE_COUNT:
            raise ValueError(f"Judge slot must be between 1 and {JUDGE_COUNT}, got {slot + 1}")
        parsed = parse_rows(raw_rows, source or f"judge {slot + 1}")
        self.judges[slot] = build_judge_set(parsed.rows)
        self._audit(
            "import_judge",
            "ok",
            record_count=len(parsed.rows),
            skipped=len(parsed.skipped),
            filename=source or None,
            extra={"slot": slot + 1},
        )
        return parsed

    def averaged(self) -> list[AveragedRecord]:
        """Averaged records in identity-key order. Raises MissingJudgeData unless all slots are filled."""
        try:
            records = average(self.judges, self.contestant_root)
        except MissingJudgeData as exc:
            self._audit("average", "failed", error=str(exc))
            raise
        self._audit("average", "ok", record_count=len(records))
        return records

    def averaged_ranking(self) -> list[AveragedRecord]:
        return rank(self.averaged())

    # Outputs
    def render_report(
        self,
        options: ReportOptions | None = None,
        geometry: PageGeometry | None = None,
    ) -> bytes:
        """Single-session ranking report as PDF bytes."""
        return self._render(self.ranking(), options or ReportOptions(), geometry, "render")

    def render_average_report(
        self,
        options: ReportOptions | None = None,
        geometry: PageGeometry | None = None,
    ) -> bytes:
        return self._render(self.averaged_ranking(), options or ReportOptions.for_average(), geometry, "render_average")

    def _render(self, ranked: list, options: ReportOptions, geometry: PageGeometry | None, action: str) -> bytes:
        try:
            data = render_pdf(ranked, options, geometry, self.assets)
        except PhotoJudgeError as exc:
            self._audit(action, "failed", record_count=len(ranked), error=str(exc))
            raise
        self._audit(action, "ok", record_count=len(ranked), extra={"bytes": len(data)})
        return data

    def export_table(self) -> Table:
        """Single-session export in identity-key order."""
        table = serialize(order_by_identity(self.records))
        self._audit("export", "ok", record_count=len(table.rows))
        return table

    def export_average_table(self) -> Table:
        table = serialize(self.averaged())
        self._audit("export_average", "ok", record_count=len(table.rows))
        return table

    def reset(self) -> None:
        """Clear the store, the record set and every judge slot."""
        self.store.clear()
        self.records = RecordSet(version=self.records.version + 1)
        self.judges = [None] * JUDGE_COUNT
        self._audit("reset", "ok")
        log.info("Session reset")
