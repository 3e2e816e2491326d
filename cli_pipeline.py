#!/usr/bin/env python3
"""CLI for the photo contest judging pipeline."""

import argparse
import json
import sys
import uuid
from pathlib import Path

from dotenv import load_dotenv

load_dotenv()

from src.errors import PhotoJudgeError
from src.run_report import write_run_report
from photo_judge.audit import setup_app_logging
from photo_judge.config import ReportOptions, load_settings
from photo_judge.conversion import PillowConverter
from photo_judge.report_pdf import DirectoryAssets
from photo_judge.session import JudgingSession
from photo_judge.workbook import read_rows, write_workbook


def _session(args: argparse.Namespace) -> JudgingSession:
    settings = load_settings(args.env_file)
    setup_app_logging(settings.log_dir)
    session = JudgingSession.from_settings(
        settings,
        converter=PillowConverter(),
        assets=DirectoryAssets(settings.assets_dir),
    )
    summary = session.load()
    if summary.invalid:
        print(f"Warning: {len(summary.invalid)} stored records were invalid and skipped", file=sys.stderr)
    args.settings = settings
    return session


def _write_table(table, out: Path) -> None:
    if out.suffix.lower() == ".csv":
        data = table.to_csv_bytes()
    else:
        data = write_workbook(table)
    out.parent.mkdir(parents=True, exist_ok=True)
    out.write_bytes(data)


def cmd_scan(args: argparse.Namespace) -> None:
    """Scan a contest folder and merge its images into the session."""
    session = _session(args)
    report = session.scan_folder(args.folder)
    result = report.result
    print(f"Scanned {args.folder}: {len(result.inserted)} new, {len(result.updated)} refreshed, {len(session.records)} total")
    for note in report.discarded:
        print(f"  discarded: {note}")
    for key in report.unsupported:
        print(f"  unsupported: {key}")
    for key, reason in report.failed_writes:
        print(f"  not saved: {key}: {reason}", file=sys.stderr)


def cmd_import(args: argparse.Namespace) -> None:
    """Import a score workbook into the session; its scores replace the stored ones."""
    session = _session(args)
    report = session.import_spreadsheet(read_rows(args.workbook), source=args.workbook.name)
    result = report.result
    print(f"Imported {args.workbook}: {len(result.updated)} updated, {len(result.inserted)} inserted, {len(report.skipped)} skipped")
    for key in result.unmatched:
        print(f"  not in session: {key}")


def cmd_score(args: argparse.Namespace) -> None:
    """Set one record's scores."""
    session = _session(args)
    scores = {
        "artistic_quality": args.artistic,
        "contextualization": args.context,
        "originality": args.originality,
    }
    try:
        record = session.set_scores(args.key, scores, args.observations)
    except KeyError as exc:
        print(f"Error: {exc.args[0]}", file=sys.stderr)
        sys.exit(1)
    print(f"{record.key}: total {record.total_score:g}")


def cmd_report(args: argparse.Namespace) -> None:
    """Render the ranking report PDF."""
    session = _session(args)
    options = ReportOptions(
        title=args.title or args.settings.report_title,
        hide_observations=args.hide_observations,
    )
    data = session.render_report(options)
    args.out.parent.mkdir(parents=True, exist_ok=True)
    args.out.write_bytes(data)
    print(f"Report written: {args.out}")
    if args.reports_dir:
        ranked = session.ranking()
        run_id = str(uuid.uuid4())[:8]
        path = args.reports_dir / f"run_report_{run_id}.json"
        write_run_report(
            path,
            run_id=run_id,
            mode="session",
            ranked=ranked,
            status_errors=sum(1 for r in ranked if r.status_error),
        )
        print(f"Run report: {path}")


def cmd_export(args: argparse.Namespace) -> None:
    """Export the session's scores in identity-key order (.xlsx or .csv)."""
    session = _session(args)
    _write_table(session.export_table(), args.out)
    print(f"Export written: {args.out}")


def cmd_average(args: argparse.Namespace) -> None:
    """Average three judge workbooks into a final ranking."""
    session = _session(args)
    skipped = 0
    for slot, path in enumerate(args.judges):
        parsed = session.import_judge(slot, read_rows(path), source=path.name)
        skipped += len(parsed.skipped)
        print(f"Judge {slot + 1}: {len(parsed.rows)} rows from {path} ({len(parsed.skipped)} skipped)")

    ranked = session.averaged_ranking()
    if args.pdf:
        options = ReportOptions.for_average(args.title)
        args.pdf.parent.mkdir(parents=True, exist_ok=True)
        args.pdf.write_bytes(session.render_average_report(options))
        print(f"Averaged report written: {args.pdf}")
    if args.out:
        _write_table(session.export_average_table(), args.out)
        print(f"Averaged export written: {args.out}")

    if args.reports_dir:
        run_id = str(uuid.uuid4())[:8]
        path = args.reports_dir / f"run_report_{run_id}.json"
        write_run_report(
            path,
            run_id=run_id,
            mode="average",
            ranked=ranked,
            source_counts={f"judge_{i + 1}": len(j or {}) for i, j in enumerate(session.judges)},
            skipped_rows=skipped,
        )
        print(f"Run report: {path}")

    if args.json:
        print(json.dumps([r.to_dict() for r in ranked], indent=2, ensure_ascii=False))
    else:
        print("=== Averaged ranking ===")
        for i, r in enumerate(ranked[:10], start=1):
            print(f"{i:>3}. {r.total_score:7.2f}  {r.display_name}  ({r.key})")


def cmd_reset(args: argparse.Namespace) -> None:
    """Clear all stored records."""
    session = _session(args)
    session.reset()
    print("Session cleared")


def main() -> None:
    parser = argparse.ArgumentParser(description="Photo contest judging: scan, score, rank, report")
    parser.add_argument("--env-file", type=Path, help="Settings file (default: .env)")
    sub = parser.add_subparsers(dest="command", required=True)

    p_scan = sub.add_parser("scan", help="Scan a contest folder into the session")
    p_scan.add_argument("folder", type=Path, help="Folder containing contestant images")
    p_scan.set_defaults(func=cmd_scan)

    p_import = sub.add_parser("import", help="Import a score workbook into the session")
    p_import.add_argument("workbook", type=Path, help="Path to .xlsx score sheet")
    p_import.set_defaults(func=cmd_import)

    p_score = sub.add_parser("score", help="Set the scores of one image")
    p_score.add_argument("key", help="Identity key (relative image path)")
    p_score.add_argument("--artistic", type=float, default=0.0, help="Artistic quality points")
    p_score.add_argument("--context", type=float, default=0.0, help="Contextualization points")
    p_score.add_argument("--originality", type=float, default=0.0, help="Originality points")
    p_score.add_argument("--observations", help="Free-text observations")
    p_score.set_defaults(func=cmd_score)

    p_report = sub.add_parser("report", help="Render the ranking report PDF")
    p_report.add_argument("--out", type=Path, default=Path("ranking.pdf"), help="Output PDF path")
    p_report.add_argument("--title", help="Report title (default: PHOTOJUDGE_REPORT_TITLE or built-in)")
    p_report.add_argument("--hide-observations", action="store_true", help="Omit the observations column")
    p_report.add_argument("--reports-dir", type=Path, help="Directory for run_report.json")
    p_report.set_defaults(func=cmd_report)

    p_export = sub.add_parser("export", help="Export session scores to .xlsx or .csv")
    p_export.add_argument("--out", type=Path, default=Path("scores.xlsx"), help="Output path")
    p_export.set_defaults(func=cmd_export)

    p_avg = sub.add_parser("average", help="Average three judge workbooks")
    p_avg.add_argument("judges", type=Path, nargs=3, help="Judge 1, 2 and 3 score workbooks")
    p_avg.add_argument("--pdf", type=Path, help="Averaged ranking PDF output path")
    p_avg.add_argument("--out", type=Path, help="Averaged scores .xlsx or .csv output path")
    p_avg.add_argument("--title", default="", help="Averaged report title")
    p_avg.add_argument("--reports-dir", type=Path, help="Directory for run_report.json")
    p_avg.add_argument("--json", action="store_true", help="Output JSON")
    p_avg.set_defaults(func=cmd_average)

    p_reset = sub.add_parser("reset", help="Clear all stored records")
    p_reset.set_defaults(func=cmd_reset)

    args = parser.parse_args()
    try:
        args.func(args)
    except (PhotoJudgeError, FileNotFoundError) as exc:
        print(f"Error: {exc}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
