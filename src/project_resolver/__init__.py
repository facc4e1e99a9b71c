from .app import ProjectResolverApp
from .config import ProjectResolverConfig
from .config_loader import load_config_from_env
from .exceptions import (
    ProjectResolverError,
    ConfigurationError,
    AppNotInitializedError,
    DimensionMismatchError,
    ProviderUnavailableError,
    CorruptIndexError,
)
from .models import ProjectRef, ProjectEntry, SearchCandidate, CandidateOrigin
from .schemas import ScoredResult

__all__ = [
    "ProjectResolverApp",
    "ProjectResolverConfig",
    "load_config_from_env",
    "ProjectResolverError",
    "ConfigurationError",
    "AppNotInitializedError",
    "DimensionMismatchError",
    "ProviderUnavailableError",
    "CorruptIndexError",
    "ProjectRef",
    "ProjectEntry",
    "SearchCandidate",
    "CandidateOrigin",
    "ScoredResult",
]
