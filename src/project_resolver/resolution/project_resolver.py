"""
Resolution orchestrator: raw query in, ranked project keys out.
"""
import logging
from typing import List, Optional

from ..embeddings import EmbeddingProvider
from ..exceptions import DimensionMismatchError, ProviderUnavailableError
from ..indexing.snapshot import IndexSnapshot
from ..schemas import ScoredResult
from .candidate_builder import CandidateBuilder
from .lexical_matcher import LexicalMatcher
from .resolution_policy import ResolutionPolicy

logger = logging.getLogger(__name__)

WILDCARD_QUERY = "*"


class ProjectResolver:
    """
    Resolves free-form, possibly misspelled or transliterated text to project keys.

    Pipeline:
    1. Build candidates (raw query + Latin -> Cyrillic variants)
    2. Embed all candidates in one provider call
    3. Search the snapshot's vector store per candidate, keep best score per key
    4. Force exact key/name matches to the exact-match score
    5. Sort and truncate

    When the provider fails or times out, step 2-3 are replaced by a lexical
    pass over the snapshot's project list. resolve() never raises.

    Usage:
        resolver = ProjectResolver(index_manager, provider)
        results = resolver.resolve("aitech", limit=5)
        if results and results[0].score == 1.0:
            key = results[0].key
    """

    def __init__(
        self,
        index_manager,
        embedding_provider: EmbeddingProvider,
        candidate_builder: Optional[CandidateBuilder] = None,
        lexical_matcher: Optional[LexicalMatcher] = None,
        policy: Optional[ResolutionPolicy] = None,
        default_limit: int = 10,
        default_threshold: float = 0.3,
    ):
        """
        :param index_manager: Anything exposing a `snapshot` (IndexSnapshot) attribute
        :param embedding_provider: Adapter used to embed query candidates
        :param candidate_builder: Query expansion (20 variants by default)
        :param lexical_matcher: Fallback scorer used when embeddings are unavailable
        :param policy: Merge/boost/rank policy
        :param default_limit: Limit used when resolve() gets none
        :param default_threshold: Threshold used when resolve() gets none
        """
        self._index = index_manager
        self._provider = embedding_provider
        self._candidates = candidate_builder or CandidateBuilder()
        self._lexical = lexical_matcher or LexicalMatcher()
        self._policy = policy or ResolutionPolicy()
        self.default_limit = default_limit
        self.default_threshold = default_threshold

    def resolve(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[ScoredResult]:
        """
        Resolve a query to scored projects.

        :param query: Free-form text ("aitech", "AI TECH", "айтех", "*")
        :param limit: Max results (default from construction)
        :param threshold: Minimum score in [0, 1] (default from construction)
        :return: Results sorted by score desc, unique per key, at most `limit`
        """
        limit = self.default_limit if limit is None else limit
        threshold = self.default_threshold if threshold is None else threshold

        if not isinstance(query, str) or not query.strip() or limit <= 0:
            return []

        # One snapshot for the whole call; a concurrent sync publishes a new
        # object and leaves this one untouched.
        snapshot: IndexSnapshot = self._index.snapshot
        if snapshot.is_empty():
            logger.debug("Project index is empty, nothing to resolve")
            return []

        query = query.strip()
        if query == WILDCARD_QUERY:
            return self._all_projects(snapshot, limit)

        candidates = self._candidates.build(query)
        texts = [c.text for c in candidates]

        try:
            if not snapshot.has_vectors():
                raise ProviderUnavailableError("No vectors indexed yet")
            result_sets = self._vector_search(snapshot, texts, limit, threshold)
        except (ProviderUnavailableError, DimensionMismatchError) as e:
            logger.warning(f"Vector search unavailable for '{query}', using lexical match: {e}")
            result_sets = [self._lexical.match(texts, snapshot.projects, threshold)]
        except Exception:
            logger.exception(f"Vector search failed for '{query}', using lexical match")
            result_sets = [self._lexical.match(texts, snapshot.projects, threshold)]

        return self._policy.finalize(result_sets, query, snapshot, limit)

    def _vector_search(
        self,
        snapshot: IndexSnapshot,
        texts: List[str],
        limit: int,
        threshold: float,
    ) -> List[List[ScoredResult]]:
        vectors = self._provider.embed(texts)
        return [snapshot.store.search(vector, limit, threshold) for vector in vectors]

    @staticmethod
    def _all_projects(snapshot: IndexSnapshot, limit: int) -> List[ScoredResult]:
        return [
            ScoredResult(key=p.key, name=p.name, score=0.0)
            for p in snapshot.sorted_projects()[:limit]
        ]
