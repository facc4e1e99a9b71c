import json
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np

from .exceptions import CorruptIndexError, DimensionMismatchError
from .models import ProjectEntry
from .schemas import ScoredResult

logger = logging.getLogger(__name__)

STORE_FORMAT = "project-vector-store"
STORE_FORMAT_VERSION = 1


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    """dot(a, b) / (|a| * |b|); 0.0 when either vector has zero norm."""
    va = np.asarray(a, dtype=np.float64)
    vb = np.asarray(b, dtype=np.float64)
    norm_a = np.linalg.norm(va)
    norm_b = np.linalg.norm(vb)
    if norm_a == 0 or norm_b == 0:
        return 0.0
    return float(np.dot(va, vb) / (norm_a * norm_b))


class ProjectVectorStore:
    """
    Keyed collection of (key, name, vector) entries with cosine search.

    Dimensionality is fixed by the first upsert. Search is a brute-force
    O(n * d) scan, fine for project catalogs of up to a few thousand keys.
    """

    def __init__(self, dimension: Optional[int] = None):
        self._dimension = dimension
        self._entries: Dict[str, Tuple[str, np.ndarray]] = {}
        self._matrix_cache: Optional[Tuple[List[str], np.ndarray]] = None
        self.metadata: Dict[str, object] = {}

    @property
    def dimension(self) -> Optional[int]:
        return self._dimension

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: str) -> bool:
        return key in self._entries

    def upsert(self, key: str, name: str, vector: Sequence[float]) -> None:
        """
        Insert or replace an entry.

        :raises: DimensionMismatchError if the vector length differs from the
                 established dimensionality
        """
        array = np.asarray(vector, dtype=np.float64).reshape(-1)
        if self._dimension is None:
            if array.size == 0:
                raise DimensionMismatchError(expected=1, actual=0, key=key)
            self._dimension = int(array.size)
        elif array.size != self._dimension:
            raise DimensionMismatchError(self._dimension, int(array.size), key=key)

        self._entries[key] = (name, array)
        self._matrix_cache = None

    def remove(self, key: str) -> None:
        if self._entries.pop(key, None) is not None:
            self._matrix_cache = None

    def get(self, key: str) -> Optional[ProjectEntry]:
        item = self._entries.get(key)
        if item is None:
            return None
        name, vector = item
        return ProjectEntry(key=key, name=name, vector=vector.tolist())

    def all_keys(self) -> List[str]:
        return sorted(self._entries)

    def entries(self) -> List[ProjectEntry]:
        return [self.get(key) for key in self.all_keys()]

    def copy(self) -> "ProjectVectorStore":
        """Shallow copy; vectors are shared since they are never mutated in place."""
        clone = ProjectVectorStore(dimension=self._dimension)
        clone._entries = dict(self._entries)
        clone.metadata = dict(self.metadata)
        return clone

    def search(
        self,
        query_vector: Sequence[float],
        limit: int,
        threshold: float,
    ) -> List[ScoredResult]:
        """
        Rank entries by cosine similarity to query_vector.

        Similarities are clamped to [0, 1]; entries below threshold are
        dropped; ties are broken by key ascending.

        :raises: DimensionMismatchError if the query length is wrong
        """
        if limit <= 0 or not self._entries:
            return []

        query = np.asarray(query_vector, dtype=np.float64).reshape(-1)
        if query.size != self._dimension:
            raise DimensionMismatchError(self._dimension, int(query.size))

        keys, matrix = self._matrix()
        query_norm = np.linalg.norm(query)
        row_norms = np.linalg.norm(matrix, axis=1)
        if query_norm == 0:
            similarities = np.zeros(len(keys))
        else:
            denominators = row_norms * query_norm
            dots = matrix @ query
            similarities = np.divide(
                dots,
                denominators,
                out=np.zeros(len(keys)),
                where=denominators != 0,
            )
        similarities = np.clip(similarities, 0.0, 1.0)

        scored = [
            (float(score), key)
            for key, score in zip(keys, similarities)
            if score >= threshold
        ]
        scored.sort(key=lambda item: (-item[0], item[1]))

        return [
            ScoredResult(key=key, name=self._entries[key][0], score=score)
            for score, key in scored[:limit]
        ]

    def _matrix(self) -> Tuple[List[str], np.ndarray]:
        cached = self._matrix_cache
        if cached is None:
            keys = sorted(self._entries)
            matrix = np.vstack([self._entries[key][1] for key in keys])
            cached = (keys, matrix)
            self._matrix_cache = cached
        return cached

    # ----------------------------
    # Persistence
    # ----------------------------
    def persist(self) -> bytes:
        """Serialize entries, dimensionality and metadata to a JSON blob."""
        payload = {
            "format": STORE_FORMAT,
            "version": STORE_FORMAT_VERSION,
            "dimension": self._dimension,
            "metadata": self.metadata,
            "entries": [
                {"key": key, "name": name, "vector": vector.tolist()}
                for key, (name, vector) in sorted(self._entries.items())
            ],
        }
        return json.dumps(payload, ensure_ascii=False).encode("utf-8")

    @classmethod
    def load(cls, blob: bytes) -> "ProjectVectorStore":
        """
        Rebuild a store from persist() output.

        :raises: CorruptIndexError on any malformed input
        """
        try:
            payload = json.loads(blob.decode("utf-8"))
        except (UnicodeDecodeError, ValueError, AttributeError) as e:
            raise CorruptIndexError(f"Index blob is not valid JSON: {e}") from e

        if not isinstance(payload, dict) or payload.get("format") != STORE_FORMAT:
            raise CorruptIndexError("Index blob has an unknown format")
        if payload.get("version") != STORE_FORMAT_VERSION:
            raise CorruptIndexError(
                f"Unsupported index version: {payload.get('version')}"
            )

        dimension = payload.get("dimension")
        if dimension is not None and (not isinstance(dimension, int) or dimension <= 0):
            raise CorruptIndexError(f"Invalid dimension in index blob: {dimension!r}")

        store = cls(dimension=dimension)
        metadata = payload.get("metadata") or {}
        if not isinstance(metadata, dict):
            raise CorruptIndexError("Index metadata must be an object")
        store.metadata = metadata

        entries = payload.get("entries")
        if not isinstance(entries, list):
            raise CorruptIndexError("Index entries must be a list")

        try:
            for entry in entries:
                key, name, vector = entry["key"], entry["name"], entry["vector"]
                if not isinstance(key, str) or not isinstance(name, str):
                    raise CorruptIndexError(f"Invalid entry identity: {entry!r:.80}")
                if key in store:
                    raise CorruptIndexError(f"Duplicate key in index blob: {key}")
                store.upsert(key, name, vector)
        except (KeyError, TypeError, ValueError, DimensionMismatchError) as e:
            raise CorruptIndexError(f"Invalid entry in index blob: {e}") from e

        logger.debug(f"Loaded {len(store)} entries (dimension={store.dimension})")
        return store
