"""Deterministic scoring: multi-judge averaging and ranking."""

from src.scoring.averaging import average, contestant_name
from src.scoring.ranking import order_by_identity, rank

__all__ = ["average", "contestant_name", "order_by_identity", "rank"]
