"""
Lexical scoring used when the embedding provider is unavailable.
"""
from functools import lru_cache
from typing import Dict, Iterable, List, Tuple

from ..models import ProjectRef
from ..schemas import ScoredResult
from ..transliteration import contains_cyrillic, transliterate
from .phrase_similarity import phrase_similarity


@lru_cache(maxsize=4096)
def project_forms(project: ProjectRef) -> Tuple[str, ...]:
    """
    Casefolded key and name, plus the Latin spelling of any Cyrillic one.
    """
    forms = [project.key.casefold(), project.name.casefold()]
    forms += [transliterate(f) for f in forms if contains_cyrillic(f)]
    return tuple(dict.fromkeys(f for f in forms if f))


def containment_score(query: str, field: str) -> float:
    """
    1.0 for equal strings, len(shorter) / len(longer) when one contains the
    other, 0.0 otherwise. Both inputs are expected casefolded.
    """
    if not query or not field:
        return 0.0
    if query == field:
        return 1.0
    if query in field:
        return len(query) / len(field)
    if field in query:
        return len(field) / len(query)
    return 0.0


class LexicalMatcher:
    """
    Scores projects against query candidates without embeddings.

    Exact case-insensitive key or name match scores 1.0; otherwise substring
    containment proportional to match length. With fuzzy matching on, the
    phrase similarity of the pair is used when it scores higher.

    Cyrillic text on either side is also compared in its Latin spelling, so
    "айтех" reaches "AITECH" and "bukhgalteriya" reaches "Бухгалтерия".
    """

    def __init__(self, enable_fuzzy_matching: bool = True):
        self.enable_fuzzy_matching = enable_fuzzy_matching

    def score(self, candidate: str, project: ProjectRef) -> float:
        needle = candidate.strip().casefold()
        if not needle:
            return 0.0

        needles = [needle]
        if contains_cyrillic(needle):
            needles.append(transliterate(needle))

        best = 0.0
        for field in project_forms(project):
            for text in needles:
                value = containment_score(text, field)
                if self.enable_fuzzy_matching and value < 1.0:
                    value = max(value, phrase_similarity(text, field))
                best = max(best, value)
                if best >= 1.0:
                    return 1.0
        return best

    def match(
        self,
        candidates: Iterable[str],
        projects: Iterable[ProjectRef],
        threshold: float,
    ) -> List[ScoredResult]:
        """
        :return: One result per project scoring >= threshold (best candidate
                 wins), unsorted.
        """
        candidates = list(candidates)
        best: Dict[str, ScoredResult] = {}
        for project in projects:
            score = max((self.score(c, project) for c in candidates), default=0.0)
            score = min(max(score, 0.0), 1.0)
            if score < threshold:
                continue
            best[project.key] = ScoredResult(key=project.key, name=project.name, score=score)
        return list(best.values())
