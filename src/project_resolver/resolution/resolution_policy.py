"""
Scoring policy: merge per-candidate results, boost exact matches, rank.
"""
from typing import AbstractSet, Dict, Iterable, List, Optional

from ..indexing.snapshot import IndexSnapshot
from ..schemas import ScoredResult


class ResolutionPolicy:
    """
    Turns raw per-candidate hits into the final ranked list.

    - merge: per key, the highest score across candidates wins
    - boost: a verbatim (case-insensitive) key/name match gets exact_match_score
    - rank: score desc, exact matches first, then shorter key, then key
    """

    def __init__(self, exact_match_score: float = 1.0, score_precision: Optional[int] = 4):
        """
        :param exact_match_score: Score forced onto exact key/name matches
        :param score_precision: Decimal places kept in returned scores (None keeps all)
        """
        if not 0.0 <= exact_match_score <= 1.0:
            raise ValueError(
                f"exact_match_score must be between 0.0 and 1.0, got {exact_match_score}"
            )
        self.exact_match_score = exact_match_score
        self.score_precision = score_precision

    @staticmethod
    def merge(result_sets: Iterable[Iterable[ScoredResult]]) -> Dict[str, ScoredResult]:
        merged: Dict[str, ScoredResult] = {}
        for results in result_sets:
            for result in results:
                current = merged.get(result.key)
                if current is None or result.score > current.score:
                    merged[result.key] = result
        return merged

    def apply_exact_boost(
        self,
        merged: Dict[str, ScoredResult],
        query: str,
        snapshot: IndexSnapshot,
    ) -> Dict[str, ScoredResult]:
        """
        Force exact_match_score onto projects the query names verbatim.

        Projects the search missed are added, so an exact key or name always
        surfaces.
        """
        boosted = dict(merged)
        for project in snapshot.exact_matches(query):
            current = boosted.get(project.key)
            name = current.name if current is not None else project.name
            boosted[project.key] = ScoredResult(
                key=project.key, name=name, score=self.exact_match_score
            )
        return boosted

    def rank(
        self,
        results: Iterable[ScoredResult],
        limit: int,
        exact_keys: AbstractSet[str] = frozenset(),
    ) -> List[ScoredResult]:
        """
        :param exact_keys: Keys the query named verbatim; they win score ties
        """
        if limit <= 0:
            return []
        if self.score_precision is not None:
            # Round first so the tie-break applies to the scores callers see
            results = [
                ScoredResult(key=r.key, name=r.name, score=round(r.score, self.score_precision))
                for r in results
            ]
        return sorted(
            results,
            key=lambda r: (-r.score, r.key not in exact_keys, len(r.key), r.key),
        )[:limit]

    def finalize(
        self,
        result_sets: Iterable[Iterable[ScoredResult]],
        query: str,
        snapshot: IndexSnapshot,
        limit: int,
    ) -> List[ScoredResult]:
        merged = self.merge(result_sets)
        boosted = self.apply_exact_boost(merged, query, snapshot)
        exact_keys = {p.key for p in snapshot.exact_matches(query)}
        return self.rank(boosted.values(), limit, exact_keys=exact_keys)
