"""
Public application facade for the project resolver.

This is the single stable entry point for the library; the tool-dispatch
layer only calls initialize(), resolve(), sync_index() and clear().
"""
import logging
from typing import Iterable, List, Optional

from langchain_core.embeddings import Embeddings

from .config import ProjectResolverConfig
from .embedding_factory import create_embedding_provider
from .embeddings import EmbeddingProvider
from .exceptions import AppNotInitializedError
from .indexing import ProjectIndexManager, SyncReport
from .indexing.index_manager import ProjectLike
from .resolution import ProjectResolver, create_project_resolver
from .schemas import ScoredResult
from .storage import BlobStorage

logger = logging.getLogger(__name__)


class ProjectResolverApp:
    """
    Public application facade for the project resolver.

    All dependency wiring and factory usage is encapsulated here.

    Usage:
        config = load_config_from_env()
        app = ProjectResolverApp(config)
        app.initialize()
        app.sync_index([{"key": "AITECH", "name": "AI Technologies"}])
        results = app.resolve("айтех")
    """

    def __init__(
        self,
        config: ProjectResolverConfig,
        embedding_model: Optional[Embeddings] = None,
        storage: Optional[BlobStorage] = None,
    ):
        """
        :param config: ProjectResolverConfig instance
        :param embedding_model: LangChain embeddings; built from config when None
        :param storage: Blob storage for the index; filesystem when None
        """
        self._config = config
        self._embedding_model = embedding_model
        self._storage = storage
        self._provider: Optional[EmbeddingProvider] = None
        self._index: Optional[ProjectIndexManager] = None
        self._resolver: Optional[ProjectResolver] = None

    @property
    def config(self) -> ProjectResolverConfig:
        return self._config

    @property
    def index(self) -> ProjectIndexManager:
        self._require_initialized()
        return self._index

    def initialize(self) -> None:
        """
        Wire the provider, index manager and resolver, then load the
        persisted index (if any). Safe to call more than once.
        """
        if self._resolver:
            return

        self._provider = create_embedding_provider(
            self._config, embedding_model=self._embedding_model
        )
        self._index = ProjectIndexManager(
            embedding_provider=self._provider,
            storage_path=self._config.storage_path,
            storage=self._storage,
        )
        self._index.load_or_initialize()
        self._resolver = create_project_resolver(
            self._config, index_manager=self._index, embedding_provider=self._provider
        )
        logger.info(
            f"Project resolver ready (provider={self._config.embedding_provider}, "
            f"model={self._config.embedding_model}, index={self._config.storage_path})"
        )

    def resolve(
        self,
        query: str,
        limit: Optional[int] = None,
        threshold: Optional[float] = None,
    ) -> List[ScoredResult]:
        """
        Resolve free text to the most likely projects.

        :raises: AppNotInitializedError if initialize() has not been called
        """
        self._require_initialized()
        return self._resolver.resolve(query, limit=limit, threshold=threshold)

    def sync_index(
        self,
        projects: Iterable[ProjectLike],
        force_rebuild: bool = False,
    ) -> SyncReport:
        """
        Synchronize the index with the full list of known projects.

        :raises: AppNotInitializedError if initialize() has not been called
        """
        self._require_initialized()
        return self._index.sync_index(projects, force_rebuild=force_rebuild)

    def clear(self) -> None:
        """Drop the index and its persisted copy."""
        self._require_initialized()
        self._index.clear()

    def close(self) -> None:
        if self._provider:
            self._provider.close()

    def _require_initialized(self) -> None:
        if not self._resolver:
            raise AppNotInitializedError("App not initialized. Call initialize() first.")
