"""Generate run_report.json for auditability."""

import json
from pathlib import Path
from typing import Sequence

from src.utils import hash_text, iso_now, round_score

TOP_ENTRIES = 10


def ranking_digest(ranked: Sequence) -> str:
    """Hash of the ordered (key, total) pairs; identical rankings give identical digests."""
    payload = "\n".join(f"{r.key}|{r.total_score!r}" for r in ranked)
    return hash_text(payload)


def write_run_report(
    output_path: Path,
    run_id: str,
    mode: str,
    ranked: Sequence,
    source_counts: dict | None = None,
    skipped_rows: int = 0,
    status_errors: int = 0,
) -> dict:
    """
    Write run_report.json with counts, ranking digest and the top of the ranking.
    `mode` is "session" or "average".
    """
    report = {
        "run_id": run_id,
        "timestamp": iso_now(),
        "mode": mode,
        "record_count": len(ranked),
        "source_counts": source_counts or {},
        "skipped_rows": skipped_rows,
        "status_errors": status_errors,
        "ranking_digest": ranking_digest(ranked),
        "top": [
            {"rank": i, "id": r.key, "name": r.display_name, "total_score": round_score(r.total_score)}
            for i, r in enumerate(ranked[:TOP_ENTRIES], start=1)
        ],
    }
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(json.dumps(report, indent=2, ensure_ascii=False), encoding="utf-8")
    return report
