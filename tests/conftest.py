"""
Shared fixtures for project resolver tests.
"""
import pytest

from fakes import FAKE_DIMENSION, LetterEmbeddings
from project_resolver.config import ProjectResolverConfig
from project_resolver.embeddings import EmbeddingProvider
from project_resolver.indexing import ProjectIndexManager
from project_resolver.storage import InMemoryBlobStorage


@pytest.fixture
def test_config(tmp_path):
    return ProjectResolverConfig(
        storage_path=str(tmp_path / "index" / "projects.json"),
        embedding_dimensions=FAKE_DIMENSION,
        embedding_timeout_seconds=5.0,
    )


@pytest.fixture
def letter_embeddings():
    return LetterEmbeddings()


@pytest.fixture
def provider(letter_embeddings):
    provider = EmbeddingProvider(
        letter_embeddings, timeout_seconds=5.0, dimension=FAKE_DIMENSION
    )
    yield provider
    provider.close()


@pytest.fixture
def memory_storage():
    return InMemoryBlobStorage()


@pytest.fixture
def index_manager(provider, memory_storage):
    manager = ProjectIndexManager(provider, storage_path="index.json", storage=memory_storage)
    manager.load_or_initialize()
    return manager
