"""
Configuration loader.

Builds ProjectResolverConfig from environment variables (and a local .env).
"""
from dotenv import load_dotenv
from .config import ProjectResolverConfig
from .config_validator import (
    get_optional_env,
    get_int_env,
    get_float_env,
    parse_bool,
)


def load_config_from_env(use_dotenv: bool = True) -> ProjectResolverConfig:
    """
    Load configuration from environment variables with validation.

    Usage:
        config = load_config_from_env()
        app = ProjectResolverApp(config)
        app.initialize()

    :param use_dotenv: Load a .env file first (local development)
    :return: Validated ProjectResolverConfig instance
    :raises: ConfigurationError if values are malformed or out of range
    """
    if use_dotenv:
        load_dotenv()

    defaults = ProjectResolverConfig()

    return ProjectResolverConfig(
        storage_path=get_optional_env("PROJECT_INDEX_PATH", defaults.storage_path),
        embedding_provider=get_optional_env(
            "EMBEDDING_PROVIDER", defaults.embedding_provider
        ).lower(),
        embedding_model=get_optional_env("EMBEDDING_MODEL", defaults.embedding_model),
        embedding_dimensions=get_int_env(
            "EMBEDDING_DIMENSIONS", defaults.embedding_dimensions
        ),
        embedding_timeout_seconds=get_float_env(
            "EMBEDDING_TIMEOUT_SECONDS", defaults.embedding_timeout_seconds
        ),
        batch_token_limit=get_int_env(
            "EMBEDDING_BATCH_TOKEN_LIMIT", defaults.batch_token_limit
        ),
        default_limit=get_int_env("RESOLVE_LIMIT", defaults.default_limit),
        default_threshold=get_float_env("RESOLVE_THRESHOLD", defaults.default_threshold),
        max_variants=get_int_env("MAX_TRANSLIT_VARIANTS", defaults.max_variants),
        exact_match_score=get_float_env("EXACT_MATCH_SCORE", defaults.exact_match_score),
        score_precision=get_int_env("SCORE_PRECISION", defaults.score_precision),
        enable_fuzzy_matching=parse_bool(
            get_optional_env("ENABLE_FUZZY_MATCHING"), defaults.enable_fuzzy_matching
        ),
    )
