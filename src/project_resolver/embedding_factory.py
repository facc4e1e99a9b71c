from typing import Optional

from langchain_core.embeddings import Embeddings

from .config import ProjectResolverConfig
from .embeddings import EmbeddingProvider


def create_embedding_model(config: ProjectResolverConfig) -> Embeddings:
    """
    Factory to return a LangChain embeddings model for the configured provider.

    :param config: ProjectResolverConfig instance
    :return: Embeddings instance
    :raises: ValueError for unknown providers, ConfigurationError for missing keys
    """
    provider = config.embedding_provider.lower()

    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings
        from .config_validator import get_required_env, get_optional_env, validate_api_key
        api_key = validate_api_key(
            get_required_env(
                "OPENAI_API_KEY",
                description="OpenAI API key for embeddings (get from https://platform.openai.com/api-keys)"
            ),
            "OPENAI_API_KEY",
        )
        kwargs = {
            "model": config.embedding_model,
            "api_key": api_key,
            "timeout": config.embedding_timeout_seconds,
            "max_retries": 1,
        }
        if config.embedding_dimensions:
            kwargs["dimensions"] = config.embedding_dimensions
        base_url = get_optional_env("OPENAI_BASE_URL")
        if base_url:
            kwargs["base_url"] = base_url
        return OpenAIEmbeddings(**kwargs)

    raise ValueError(f"Unknown embedding provider: {provider}")


def create_embedding_provider(
    config: ProjectResolverConfig,
    embedding_model: Optional[Embeddings] = None,
) -> EmbeddingProvider:
    """
    Wrap an embeddings model (created from config if not given) in the adapter.

    :param config: ProjectResolverConfig instance
    :param embedding_model: Pre-built Embeddings (tests inject fakes here)
    :return: Configured EmbeddingProvider
    """
    if embedding_model is None:
        embedding_model = create_embedding_model(config)

    return EmbeddingProvider(
        model=embedding_model,
        timeout_seconds=config.embedding_timeout_seconds,
        dimension=config.embedding_dimensions,
        batch_token_limit=config.batch_token_limit,
    )
