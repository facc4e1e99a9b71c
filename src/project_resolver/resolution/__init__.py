"""
Project resolution layer.

Converts free-form, possibly misspelled or transliterated text into
canonical project keys.

Key components:
- CandidateBuilder: raw query + Latin -> Cyrillic spelling variants
- LexicalMatcher: exact/substring/phrase scoring used without embeddings
- ResolutionPolicy: merge, exact-match boost, ranking
- ProjectResolver: the orchestrator tying them to the index and provider
"""
from .candidate_builder import CandidateBuilder
from .lexical_matcher import LexicalMatcher, containment_score
from .phrase_similarity import phrase_similarity
from .resolution_policy import ResolutionPolicy
from .project_resolver import ProjectResolver, WILDCARD_QUERY
from .resolver_factory import create_project_resolver

__all__ = [
    "CandidateBuilder",
    "LexicalMatcher",
    "containment_score",
    "phrase_similarity",
    "ResolutionPolicy",
    "ProjectResolver",
    "WILDCARD_QUERY",
    "create_project_resolver",
]
