"""Audit trail for judging batches and application logging setup."""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

LOG_DIR = Path(__file__).resolve().parent.parent / "logs"


def _ensure_log_dir(log_dir: Path) -> Path:
    log_dir.mkdir(parents=True, exist_ok=True)
    return log_dir


def _iso_ts():
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"


def audit_log(
    action: str,
    status: str,
    *,
    record_count: int | None = None,
    skipped: int | None = None,
    filename: str | None = None,
    error: str | None = None,
    extra: dict | None = None,
    log_dir: Path | None = None,
):
    """Append a structured audit entry (JSONL) for a scan, import, average, render, export or reset."""
    directory = _ensure_log_dir(log_dir or LOG_DIR)
    entry = {
        "timestamp": _iso_ts(),
        "action": action,
        "status": status,
    }
    if record_count is not None:
        entry["record_count"] = record_count
    if skipped is not None:
        entry["skipped"] = skipped
    if filename:
        entry["filename"] = filename
    if error:
        entry["error"] = error
    if extra:
        entry.update(extra)

    with open(directory / "audit.log", "a", encoding="utf-8") as f:
        f.write(json.dumps(entry, default=str, ensure_ascii=False) + "\n")


def setup_app_logging(log_dir: Path | None = None):
    """Configure application logging to console and file."""
    directory = _ensure_log_dir(log_dir or LOG_DIR)
    logger = logging.getLogger("photo_judge")
    if logger.handlers:
        return logger
    logger.setLevel(logging.DEBUG)

    fmt = "%(asctime)s %(levelname)s [%(name)s] %(message)s"
    datefmt = "%Y-%m-%d %H:%M:%S"

    # Console
    ch = logging.StreamHandler()
    ch.setLevel(logging.INFO)
    ch.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    logger.addHandler(ch)

    # File
    fh = logging.FileHandler(directory / "app.log", encoding="utf-8")
    fh.setLevel(logging.DEBUG)
    fh.setFormatter(logging.Formatter(fmt, datefmt=datefmt))
    logger.addHandler(fh)

    return logger
