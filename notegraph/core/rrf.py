"""
Reciprocal Rank Fusion.

Merges independently ranked lists into one: each list contributes
``1 / (k + rank)`` (1-indexed rank) per id, contributions are summed, and
the source tag records which engines saw the id.

Dependencies: None
System role: Rank fusion for hybrid search
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable

DEFAULT_RRF_K = 60


class SearchSource(str, Enum):
    """Which engine(s) contributed a merged result."""

    LEXICAL = "LEXICAL"
    SEMANTIC = "SEMANTIC"
    HYBRID = "HYBRID"


@dataclass
class FusedScore:
    """Accumulated RRF score for one id."""

    id: str
    score: float = 0.0
    lexical: bool = False
    semantic: bool = False
    contributions: list[float] = field(default_factory=list)

    @property
    def source(self) -> SearchSource:
        if self.lexical and self.semantic:
            return SearchSource.HYBRID
        if self.lexical:
            return SearchSource.LEXICAL
        return SearchSource.SEMANTIC


def rrf_contribution(rank: int, k: int = DEFAULT_RRF_K) -> float:
    """Score contribution of a 1-indexed rank."""
    return 1.0 / (k + rank)


def dedupe_preserving_order(ids: Iterable[str]) -> list[str]:
    """Keep the first occurrence of each id."""
    seen: set[str] = set()
    ordered: list[str] = []
    for item in ids:
        if item not in seen:
            seen.add(item)
            ordered.append(item)
    return ordered


def reciprocal_rank_fusion(
    lexical_ids: list[str],
    semantic_ids: list[str],
    k: int = DEFAULT_RRF_K,
    limit: int | None = None,
) -> list[FusedScore]:
    """
    Fuse a lexical and a semantic ranking.

    Ties on the combined score are broken by id ascending so the merged
    order is deterministic.

    Args:
        lexical_ids: Ids in lexical rank order (best first)
        semantic_ids: Ids in semantic rank order (best first)
        k: RRF constant
        limit: Truncate the merged list to this many entries

    Returns:
        list[FusedScore]: Merged entries, best first
    """
    scores: dict[str, FusedScore] = {}

    for rank, item_id in enumerate(lexical_ids, start=1):
        entry = scores.setdefault(item_id, FusedScore(id=item_id))
        contribution = rrf_contribution(rank, k)
        entry.score += contribution
        entry.contributions.append(contribution)
        entry.lexical = True

    for rank, item_id in enumerate(semantic_ids, start=1):
        entry = scores.setdefault(item_id, FusedScore(id=item_id))
        contribution = rrf_contribution(rank, k)
        entry.score += contribution
        entry.contributions.append(contribution)
        entry.semantic = True

    merged = sorted(scores.values(), key=lambda e: (-e.score, e.id))
    if limit is not None:
        merged = merged[:limit]
    return merged
