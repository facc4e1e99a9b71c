from dataclasses import dataclass
from typing import Optional

from .exceptions import ConfigurationError


@dataclass
class ProjectResolverConfig:
    # Storage
    storage_path: str = "data/project_index.json"

    # Embeddings
    embedding_provider: str = "openai"
    embedding_model: str = "text-embedding-3-large"
    embedding_dimensions: Optional[int] = 1536
    embedding_timeout_seconds: float = 10.0
    batch_token_limit: int = 8000

    # Resolution
    default_limit: int = 10
    default_threshold: float = 0.3
    max_variants: int = 20
    exact_match_score: float = 1.0
    score_precision: int = 4
    enable_fuzzy_matching: bool = True

    def __post_init__(self):
        """Validate numeric ranges."""
        if not 0.0 <= self.default_threshold <= 1.0:
            raise ConfigurationError(
                f"default_threshold must be between 0.0 and 1.0, got {self.default_threshold}"
            )
        if not 0.0 <= self.exact_match_score <= 1.0:
            raise ConfigurationError(
                f"exact_match_score must be between 0.0 and 1.0, got {self.exact_match_score}"
            )
        if self.default_limit < 0:
            raise ConfigurationError(f"default_limit must be >= 0, got {self.default_limit}")
        if self.max_variants < 0:
            raise ConfigurationError(f"max_variants must be >= 0, got {self.max_variants}")
        if self.score_precision < 0:
            raise ConfigurationError(
                f"score_precision must be >= 0, got {self.score_precision}"
            )
        if self.embedding_timeout_seconds <= 0:
            raise ConfigurationError(
                f"embedding_timeout_seconds must be positive, got {self.embedding_timeout_seconds}"
            )
        if self.batch_token_limit <= 0:
            raise ConfigurationError(
                f"batch_token_limit must be positive, got {self.batch_token_limit}"
            )
        if self.embedding_dimensions is not None and self.embedding_dimensions <= 0:
            raise ConfigurationError(
                f"embedding_dimensions must be positive, got {self.embedding_dimensions}"
            )
