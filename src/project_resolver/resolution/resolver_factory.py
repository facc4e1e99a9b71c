"""
Factory for creating configured project resolvers.
"""
from ..config import ProjectResolverConfig
from ..embeddings import EmbeddingProvider
from .candidate_builder import CandidateBuilder
from .lexical_matcher import LexicalMatcher
from .project_resolver import ProjectResolver
from .resolution_policy import ResolutionPolicy


def create_project_resolver(
    config: ProjectResolverConfig,
    index_manager,
    embedding_provider: EmbeddingProvider,
) -> ProjectResolver:
    """
    Wire a ProjectResolver with thresholds and boosts taken from config.

    :param config: ProjectResolverConfig instance
    :param index_manager: Source of the current IndexSnapshot
    :param embedding_provider: Adapter used to embed queries
    :return: ProjectResolver
    """
    return ProjectResolver(
        index_manager=index_manager,
        embedding_provider=embedding_provider,
        candidate_builder=CandidateBuilder(max_variants=config.max_variants),
        lexical_matcher=LexicalMatcher(enable_fuzzy_matching=config.enable_fuzzy_matching),
        policy=ResolutionPolicy(
            exact_match_score=config.exact_match_score,
            score_precision=config.score_precision,
        ),
        default_limit=config.default_limit,
        default_threshold=config.default_threshold,
    )
