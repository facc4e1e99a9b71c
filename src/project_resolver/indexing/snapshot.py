"""
Immutable, versioned view of the project index.
"""
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from ..models import ProjectRef
from ..vector_store import ProjectVectorStore


@dataclass(frozen=True)
class IndexSnapshot:
    """
    One consistent state of the index.

    The store must not be mutated once the snapshot is published; the index
    manager builds every new state on a copy.

    Attributes:
        store: Vectors for every project that was embedded successfully
        projects: The full project list this snapshot was built from
        fingerprint: Content hash of that project list
        version: Monotonic counter, bumped on every publish
        complete: False when some projects are missing from the store
    """
    store: ProjectVectorStore
    projects: Tuple[ProjectRef, ...] = ()
    fingerprint: Optional[str] = None
    version: int = 0
    complete: bool = True
    _by_key: Dict[str, ProjectRef] = field(default=None, init=False, repr=False, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "_by_key", {p.key: p for p in self.projects})

    @classmethod
    def empty(cls, version: int = 0) -> "IndexSnapshot":
        return cls(store=ProjectVectorStore(), version=version)

    def is_empty(self) -> bool:
        return not self.projects and len(self.store) == 0

    def has_vectors(self) -> bool:
        return len(self.store) > 0

    def project(self, key: str) -> Optional[ProjectRef]:
        return self._by_key.get(key)

    def sorted_projects(self) -> List[ProjectRef]:
        return sorted(self.projects, key=lambda p: p.key)

    def exact_matches(self, query: str) -> List[ProjectRef]:
        """Projects whose key or name equals query, case-insensitively."""
        needle = query.strip().casefold()
        if not needle:
            return []
        return [
            p for p in self.projects
            if p.key.casefold() == needle or p.name.casefold() == needle
        ]
