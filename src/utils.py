"""Utilities for text normalization, score rounding and audit metadata."""

import hashlib
import math
import unicodedata
from datetime import datetime, timezone


def normalize_text(text: str | None) -> str:
    """NFC-normalize text. None becomes an empty string."""
    if not text:
        return ""
    return unicodedata.normalize("NFC", str(text))


def round_score(value: float) -> int:
    """Round a non-negative score half-up to an integer. Shared by report and export."""
    return int(math.floor(float(value) + 0.5))


def hash_text(text: str) -> str:
    """Compute SHA256 hash of text. Deterministic."""
    return hashlib.sha256(text.encode("utf-8")).hexdigest()


def iso_now() -> str:
    """Current UTC timestamp as ISO string."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
