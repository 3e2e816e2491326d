"""Ranking sort: total score descending, identity key ascending on ties."""

from typing import Iterable, Protocol, TypeVar


class Rankable(Protocol):
    key: str

    @property
    def total_score(self) -> float: ...


R = TypeVar("R", bound=Rankable)


def ranking_key(record: Rankable) -> tuple[float, str]:
    return (-record.total_score, record.key)


def rank(records: Iterable[R]) -> list[R]:
    """Deterministic total order; equal totals are ordered by code-point comparison of keys."""
    return sorted(records, key=ranking_key)


def order_by_identity(records: Iterable[R]) -> list[R]:
    """Identity-key order, used by the tabular exports."""
    return sorted(records, key=lambda r: r.key)
