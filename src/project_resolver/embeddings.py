"""
Embedding provider adapter.

Wraps a LangChain Embeddings model behind a timeout and turns every kind of
provider trouble into ProviderUnavailableError.
"""
import logging
import math
from concurrent.futures import ThreadPoolExecutor, TimeoutError as FutureTimeoutError
from typing import Iterator, List, Optional, Sequence, Tuple

from langchain_core.embeddings import Embeddings

from .exceptions import ProviderUnavailableError

logger = logging.getLogger(__name__)


def estimate_tokens(text: str) -> int:
    """Rough token count: one token per two characters."""
    return math.ceil(len(text) / 2) if text else 0


class EmbeddingProvider:
    """
    Adapter over a LangChain Embeddings model.

    Usage:
        provider = EmbeddingProvider(OpenAIEmbeddings(...), timeout_seconds=10)
        vectors = provider.embed(["AITECH", "айтех"])
    """

    def __init__(
        self,
        model: Embeddings,
        timeout_seconds: float = 10.0,
        dimension: Optional[int] = None,
        batch_token_limit: int = 8000,
        max_workers: int = 4,
    ):
        """
        :param model: LangChain Embeddings implementation
        :param timeout_seconds: Per-call deadline; expiry counts as provider failure
        :param dimension: Expected vector length, None when unknown
        :param batch_token_limit: Token budget per embed_in_batches() request
        :param max_workers: Threads available for concurrent provider calls
        """
        self._model = model
        self.timeout_seconds = timeout_seconds
        self.dimension = dimension
        self.batch_token_limit = batch_token_limit
        self._executor = ThreadPoolExecutor(
            max_workers=max_workers, thread_name_prefix="embedding"
        )

    def embed(self, texts: Sequence[str]) -> List[List[float]]:
        """
        Embed texts in a single provider call.

        On timeout the caller gets an error right away, but a call already
        running keeps its worker thread until the model returns; the model's
        own request timeout (OpenAIEmbeddings `timeout`) bounds that.

        :return: one vector per text, in input order
        :raises: ProviderUnavailableError on error, timeout or malformed output
        """
        texts = list(texts)
        if not texts:
            return []

        future = self._executor.submit(self._model.embed_documents, texts)
        try:
            vectors = future.result(timeout=self.timeout_seconds)
        except FutureTimeoutError:
            future.cancel()
            raise ProviderUnavailableError(
                f"Embedding call timed out after {self.timeout_seconds}s"
            )
        except Exception as e:
            raise ProviderUnavailableError(f"Embedding call failed: {e}") from e

        return self._validate(texts, vectors)

    def embed_in_batches(
        self, texts: Sequence[str]
    ) -> Iterator[Tuple[List[str], Optional[List[List[float]]]]]:
        """
        Embed texts in token-budgeted batches.

        Yields (batch_texts, vectors) pairs; vectors is None for a batch the
        provider failed on, so callers can skip it and keep going. A single
        text over the budget is sent on its own.
        """
        for batch in self._split_batches(texts):
            try:
                yield batch, self.embed(batch)
            except ProviderUnavailableError as e:
                logger.warning(f"Embedding batch of {len(batch)} texts failed: {e}")
                yield batch, None

    def _split_batches(self, texts: Sequence[str]) -> Iterator[List[str]]:
        batch: List[str] = []
        batch_tokens = 0
        for text in texts:
            tokens = estimate_tokens(text)
            if batch and batch_tokens + tokens > self.batch_token_limit:
                yield batch
                batch, batch_tokens = [], 0
            batch.append(text)
            batch_tokens += tokens
        if batch:
            yield batch

    def _validate(self, texts: List[str], vectors) -> List[List[float]]:
        if vectors is None or len(vectors) != len(texts):
            got = "None" if vectors is None else len(vectors)
            raise ProviderUnavailableError(
                f"Provider returned {got} vectors for {len(texts)} texts"
            )

        result = [list(map(float, vector)) for vector in vectors]
        lengths = {len(vector) for vector in result}
        if len(lengths) != 1 or 0 in lengths:
            raise ProviderUnavailableError(
                f"Provider returned vectors of inconsistent length: {sorted(lengths)}"
            )

        actual = lengths.pop()
        if self.dimension is not None and actual != self.dimension:
            raise ProviderUnavailableError(
                f"Provider returned {actual}-dimensional vectors, expected {self.dimension}"
            )
        return result

    def close(self) -> None:
        self._executor.shutdown(wait=False)
