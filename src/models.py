"""Domain records: score triples, attachments, scored and averaged records."""

from __future__ import annotations

from dataclasses import dataclass, field, replace

from src.utils import normalize_text

SCORE_AXES = ("artistic_quality", "contextualization", "originality")


@dataclass(frozen=True)
class ScoreTriple:
    """The three judged axes. Each value is a non-negative real number."""

    artistic_quality: float = 0.0
    contextualization: float = 0.0
    originality: float = 0.0

    @property
    def total(self) -> float:
        return self.artistic_quality + self.contextualization + self.originality

    def as_dict(self) -> dict:
        return {axis: getattr(self, axis) for axis in SCORE_AXES}

    @classmethod
    def from_dict(cls, data: dict | None) -> ScoreTriple:
        data = data or {}
        return cls(**{axis: float(data.get(axis) or 0) for axis in SCORE_AXES})


@dataclass(frozen=True)
class Attachment:
    """Handle to a preview image or companion document. Carried through unchanged."""

    name: str
    path: str
    media_type: str = ""
    size: int = 0
    data: bytes | None = field(default=None, repr=False, compare=False)

    def as_dict(self) -> dict:
        # Bytes are not persisted; a rescan reproduces them.
        return {"name": self.name, "path": self.path, "media_type": self.media_type, "size": self.size}

    @classmethod
    def from_dict(cls, data: dict | None) -> Attachment | None:
        if not data:
            return None
        return cls(
            name=data.get("name", ""),
            path=data.get("path", ""),
            media_type=data.get("media_type", ""),
            size=int(data.get("size") or 0),
        )


@dataclass
class ScoredRecord:
    """
    One image's judged state, keyed by its identity key.
    total_score is derived from the score triple and never stored on its own.
    """

    key: str
    display_name: str
    scores: ScoreTriple = field(default_factory=ScoreTriple)
    observations: str = ""
    preview: Attachment | None = None
    auxiliary: Attachment | None = None
    status_error: str | None = None

    def __post_init__(self) -> None:
        self.display_name = normalize_text(self.display_name)
        self.observations = normalize_text(self.observations)

    @property
    def original_path(self) -> str:
        return self.key

    @property
    def total_score(self) -> float:
        return self.scores.total

    def with_scores(self, scores: ScoreTriple, observations: str | None = None) -> ScoredRecord:
        """Copy with a new triple (and observations, when given)."""
        if observations is None:
            return replace(self, scores=scores)
        return replace(self, scores=scores, observations=observations)

    def to_dict(self) -> dict:
        return {
            "id": self.key,
            "display_name": self.display_name,
            "scores": self.scores.as_dict(),
            "total_score": self.total_score,
            "observations": self.observations,
            "preview": self.preview.as_dict() if self.preview else None,
            "auxiliary": self.auxiliary.as_dict() if self.auxiliary else None,
            "status_error": self.status_error,
        }

    @classmethod
    def from_dict(cls, data: dict) -> ScoredRecord:
        return cls(
            key=data["id"],
            display_name=data.get("display_name") or "",
            scores=ScoreTriple.from_dict(data.get("scores")),
            observations=data.get("observations") or "",
            preview=Attachment.from_dict(data.get("preview")),
            auxiliary=Attachment.from_dict(data.get("auxiliary")),
            status_error=data.get("status_error"),
        )


@dataclass(frozen=True)
class ScoreRow:
    """One spreadsheet row after boundary validation: key, name, scores, observations."""

    key: str
    name: str
    scores: ScoreTriple
    observations: str = ""


@dataclass(frozen=True)
class AveragedRecord:
    """Per-axis mean over the judges who scored a key. Observations are never averaged."""

    key: str
    display_name: str
    scores: ScoreTriple
    judge_count: int

    @property
    def total_score(self) -> float:
        return self.scores.total

    @property
    def observations(self) -> str:
        return ""

    def to_dict(self) -> dict:
        return {
            "id": self.key,
            "display_name": self.display_name,
            "scores": self.scores.as_dict(),
            "total_score": self.total_score,
            "observations": "",
            "judge_count": self.judge_count,
        }
