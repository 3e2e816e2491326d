"""Multi-judge averaging: combine exactly three judge score sets into averaged records."""

import logging
from typing import Mapping, Sequence

from src.errors import MissingJudgeData
from src.identity import segments
from src.models import SCORE_AXES, AveragedRecord, ScoreRow, ScoreTriple
from src.utils import normalize_text

log = logging.getLogger("photo_judge.averaging")

JUDGE_COUNT = 3
DEFAULT_CONTESTANT_ROOT = "CONCURSANTES"

JudgeScoreSet = Mapping[str, ScoreRow]


def contestant_name(key: str, judge_names: Sequence[str], contestant_root: str = DEFAULT_CONTESTANT_ROOT) -> str:
    """
    Contestant label derived from the key's path layout: "<root>/<contestant>/...".
    When the layout does not match, falls back to the first judge-supplied name, then to the
    key's first segment, and logs the fallback.
    """
    parts = segments(key)
    if len(parts) >= 2 and parts[0].casefold() == contestant_root.casefold():
        name = parts[1]
    else:
        name = next((n for n in judge_names if n), "") or (parts[0] if parts else key)
        log.warning(
            "Contestant name for %r not derived from '%s/<name>/...' layout; using fallback %r",
            key, contestant_root, name,
        )
    return normalize_text(name.upper())


def average(
    judge_sets: Sequence[JudgeScoreSet | None],
    contestant_root: str = DEFAULT_CONTESTANT_ROOT,
) -> list[AveragedRecord]:
    """
    Per-axis mean over the judges who scored each key; judges who did not score a key are
    left out of its divisor. Raises MissingJudgeData unless all three slots are populated.
    Records are returned in identity-key order.
    """
    slots = list(judge_sets)
    if len(slots) > JUDGE_COUNT:
        raise ValueError(f"Exactly {JUDGE_COUNT} judge score sets are supported, got {len(slots)}")
    slots += [None] * (JUDGE_COUNT - len(slots))
    missing = [i for i, s in enumerate(slots) if s is None]
    if missing:
        raise MissingJudgeData(missing)

    keys = sorted({key for judge_set in slots for key in judge_set})
    averaged: list[AveragedRecord] = []
    for key in keys:
        scored = [judge_set[key] for judge_set in slots if key in judge_set]
        count = len(scored)
        means = {axis: sum(getattr(row.scores, axis) for row in scored) / count for axis in SCORE_AXES}
        averaged.append(
            AveragedRecord(
                key=key,
                display_name=contestant_name(key, [row.name for row in scored], contestant_root),
                scores=ScoreTriple(**means),
                judge_count=count,
            )
        )
    log.info("Averaged %d keys across %d judges", len(averaged), JUDGE_COUNT)
    return averaged
