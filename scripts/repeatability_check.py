#!/usr/bin/env python3
"""
Repeatability harness: average the same three judge workbooks N times, shuffling row order
each run; assert the ranking, the laid-out pages and the export are identical every time.
Exits 0 if stable, 1 if unstable. Prints a variance report on failure.

Usage: python scripts/repeatability_check.py judge1.xlsx judge2.xlsx judge3.xlsx [--runs 10] [--seed 0]
"""

import argparse
import random
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from src.pipeline.rows import build_judge_set, parse_rows
from src.run_report import ranking_digest
from src.scoring import average, rank
from src.utils import hash_text
from photo_judge.config import ReportOptions
from photo_judge.report_layout import render
from photo_judge.tabular import serialize
from photo_judge.workbook import read_rows

DEFAULT_RUNS = 10


def _pages_digest(pages) -> str:
    lines = []
    for page in pages:
        for op in page.texts():
            lines.append(f"{page.number}|{op.role}|{op.x:.2f}|{op.y:.2f}|{op.text}")
    return hash_text("\n".join(lines))


def main():
    parser = argparse.ArgumentParser()
    parser.add_argument("judges", type=Path, nargs=3)
    parser.add_argument("--runs", type=int, default=DEFAULT_RUNS)
    parser.add_argument("--seed", type=int, default=0)
    args = parser.parse_args()

    for path in args.judges:
        if not path.exists():
            print(f"Error: judge workbook not found: {path}", file=sys.stderr)
            sys.exit(1)

    raw_sheets = [read_rows(path) for path in args.judges]
    rng = random.Random(args.seed)
    options = ReportOptions.for_average()

    print(f"Averaging {len(args.judges)} judge workbooks {args.runs} times...")
    results = []
    for _ in range(args.runs):
        judge_sets = []
        for raw in raw_sheets:
            shuffled = raw[:]
            rng.shuffle(shuffled)
            judge_sets.append(build_judge_set(parse_rows(shuffled).rows))
        averaged = average(judge_sets)
        ranked = rank(averaged)
        results.append({
            "record_count": len(ranked),
            "ranking_digest": ranking_digest(ranked),
            "pages_digest": _pages_digest(render(ranked, options, year=2000)),
            "export_digest": hash_text(serialize(averaged).to_csv_bytes().decode("utf-8-sig")),
            "top": [(r.key, r.total_score) for r in ranked[:5]],
        })

    first = results[0]
    variances = []
    for i, r in enumerate(results[1:], start=2):
        for field in ("record_count", "ranking_digest", "pages_digest", "export_digest"):
            if r[field] != first[field]:
                variances.append((field, i, f"{r[field]} != {first[field]}"))

    if variances:
        print("\n=== VARIANCE REPORT ===\n")
        for stage, run, detail in variances:
            print(f"  Run {run} - {stage}: {detail}")
        print("\nRepeatability check FAILED.")
        sys.exit(1)

    print("\nPASS: Repeatability check passed.")
    print(f"  runs: {args.runs}")
    print(f"  records: {first['record_count']}")
    print(f"  ranking_digest: {first['ranking_digest']}")
    print(f"  top: {first['top']}")
    sys.exit(0)


if __name__ == "__main__":
    main()
