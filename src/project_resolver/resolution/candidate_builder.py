"""
Builds the set of strings a query is searched under.
"""
from typing import List

from ..models import CandidateOrigin, SearchCandidate
from ..transliteration import contains_cyrillic, contains_latin, enumerate_variants


class CandidateBuilder:
    """
    Expands a raw query into search candidates.

    Latin queries get Latin -> Cyrillic spelling variants; queries that
    already contain Cyrillic are searched as-is.
    """

    def __init__(self, max_variants: int = 20):
        """
        :param max_variants: Cap on transliteration variants per query
        """
        if max_variants < 0:
            raise ValueError(f"max_variants must be >= 0, got {max_variants}")
        self.max_variants = max_variants

    def build(self, query: str) -> List[SearchCandidate]:
        """
        :param query: Raw user query (not yet stripped)
        :return: Raw query at rank 0, then variants ranked by plausibility
        """
        raw = query.strip()
        if not raw:
            return []

        candidates = [SearchCandidate(text=raw, origin=CandidateOrigin.RAW, rank=0)]
        if self.max_variants == 0 or contains_cyrillic(raw) or not contains_latin(raw):
            return candidates

        seen = {raw}
        for variant in enumerate_variants(raw.lower(), self.max_variants):
            if variant in seen:
                continue
            seen.add(variant)
            candidates.append(SearchCandidate(
                text=variant,
                origin=CandidateOrigin.TRANSLITERATION_VARIANT,
                rank=len(candidates),
            ))
        return candidates
