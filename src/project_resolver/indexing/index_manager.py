"""
Project index lifecycle: fingerprinting, incremental sync, persistence.
"""
import hashlib
import logging
import threading
from dataclasses import dataclass
from typing import Dict, Iterable, List, Mapping, Optional, Tuple, Union

from ..embeddings import EmbeddingProvider
from ..exceptions import CorruptIndexError, DimensionMismatchError
from ..models import ProjectRef
from ..transliteration import contains_cyrillic, transliterate
from ..storage import BlobStorage, FileBlobStorage
from ..vector_store import ProjectVectorStore
from .snapshot import IndexSnapshot

logger = logging.getLogger(__name__)

ProjectLike = Union[ProjectRef, Mapping[str, str], Tuple[str, str]]


@dataclass(frozen=True)
class SyncReport:
    """Outcome of one sync_index() call."""
    added: int = 0
    updated: int = 0
    removed: int = 0
    unchanged: int = 0
    failed: int = 0
    skipped: bool = False
    persisted: bool = False
    version: int = 0

    def to_dict(self) -> dict:
        return {
            "added": self.added,
            "updated": self.updated,
            "removed": self.removed,
            "unchanged": self.unchanged,
            "failed": self.failed,
            "skipped": self.skipped,
            "persisted": self.persisted,
            "version": self.version,
        }


def compute_fingerprint(projects: Iterable[ProjectRef]) -> str:
    """sha256 over the key-sorted "key<TAB>name" lines."""
    digest = hashlib.sha256()
    for project in sorted(projects, key=lambda p: p.key):
        digest.update(f"{project.key}\t{project.name}\n".encode("utf-8"))
    return digest.hexdigest()


def build_document_text(project: ProjectRef) -> str:
    """
    Text embedded for a project: key and name, plus the Latin spelling of
    Cyrillic names so both scripts land near the same vector.
    """
    parts = [project.key, project.name]
    if contains_cyrillic(project.name):
        parts.append(transliterate(project.name))
    return " | ".join(parts)


def normalize_projects(projects: Iterable[ProjectLike]) -> List[ProjectRef]:
    """
    Coerce ProjectRef / {"key", "name"} / (key, name) items into ProjectRefs.

    Entries without a key are dropped; for duplicate keys the last one wins.
    """
    by_key: Dict[str, ProjectRef] = {}
    for item in projects:
        if isinstance(item, ProjectRef):
            ref = item
        elif isinstance(item, Mapping):
            ref = ProjectRef(key=str(item.get("key") or ""), name=str(item.get("name") or ""))
        else:
            key, name = item
            ref = ProjectRef(key=str(key or ""), name=str(name or ""))

        if not ref.key:
            logger.warning(f"Skipping project without key: {item!r}")
            continue
        if ref.key in by_key:
            logger.warning(f"Duplicate project key '{ref.key}', keeping the last entry")
        by_key[ref.key] = ref
    return list(by_key.values())


class ProjectIndexManager:
    """
    Owns the published IndexSnapshot and keeps it in sync with the project list.

    Readers take `snapshot` without locking; sync_index() and clear() are
    serialized and publish by swapping the snapshot reference.

    Usage:
        manager = ProjectIndexManager(provider, storage_path="data/index.json")
        manager.load_or_initialize()
        report = manager.sync_index([{"key": "AITECH", "name": "AI Technologies"}])
    """

    def __init__(
        self,
        embedding_provider: EmbeddingProvider,
        storage_path: str,
        storage: Optional[BlobStorage] = None,
    ):
        """
        :param embedding_provider: Adapter used to embed new or renamed projects
        :param storage_path: Where the index blob is persisted
        :param storage: Blob storage backend (filesystem by default)
        """
        self._provider = embedding_provider
        self._storage_path = storage_path
        self._storage = storage or FileBlobStorage()
        self._sync_lock = threading.Lock()
        self._snapshot = IndexSnapshot.empty()

    @property
    def snapshot(self) -> IndexSnapshot:
        return self._snapshot

    @property
    def storage_path(self) -> str:
        return self._storage_path

    # ----------------------------
    # Startup
    # ----------------------------
    def load_or_initialize(self, storage_path: Optional[str] = None) -> IndexSnapshot:
        """
        Load the persisted index, or start empty.

        A corrupt blob, or one whose dimensionality disagrees with the
        embedding provider, is deleted and the index starts empty until the
        next sync_index().
        A blob that exists but cannot be read is left in place.
        """
        with self._sync_lock:
            if storage_path:
                self._storage_path = storage_path

            try:
                blob = self._storage.read(self._storage_path)
            except FileNotFoundError:
                logger.info(f"No persisted project index at {self._storage_path}, starting empty")
                self._publish(IndexSnapshot.empty(self._next_version()))
                return self._snapshot
            except OSError as e:
                logger.error(f"Cannot read project index {self._storage_path}, starting empty: {e}")
                self._publish(IndexSnapshot.empty(self._next_version()))
                return self._snapshot

            try:
                snapshot = self._snapshot_from_store(ProjectVectorStore.load(blob))
            except CorruptIndexError as e:
                logger.warning(f"Discarding corrupt project index {self._storage_path}: {e}")
                self._discard_blob()
                self._publish(IndexSnapshot.empty(self._next_version()))
                return self._snapshot

            expected = self._provider.dimension
            actual = snapshot.store.dimension
            if expected is not None and actual is not None and expected != actual:
                logger.warning(
                    f"Persisted project index has dimension {actual}, provider "
                    f"produces {expected}; discarding it"
                )
                self._discard_blob()
                self._publish(IndexSnapshot.empty(self._next_version()))
                return self._snapshot

            self._publish(snapshot)
            logger.info(
                f"Loaded project index: {len(snapshot.projects)} projects, "
                f"{len(snapshot.store)} vectors"
            )
            return self._snapshot

    # ----------------------------
    # Sync
    # ----------------------------
    def sync_index(
        self,
        projects: Iterable[ProjectLike],
        force_rebuild: bool = False,
    ) -> SyncReport:
        """
        Bring the index in line with the given project list.

        No-op when the list fingerprint matches a complete published snapshot
        and force_rebuild is False. Otherwise only new or renamed projects are
        embedded (every project when forced), vanished keys are removed, and
        the result is published atomically. Projects whose embedding fails are
        counted in `failed` and retried on the next call.
        """
        refs = normalize_projects(projects)
        fingerprint = compute_fingerprint(refs)

        with self._sync_lock:
            current = self._snapshot
            if (
                not force_rebuild
                and current.complete
                and current.fingerprint == fingerprint
            ):
                logger.debug("Project list unchanged, skipping index sync")
                return SyncReport(
                    unchanged=len(refs), skipped=True, version=current.version
                )

            store = current.store.copy()
            wanted = {ref.key for ref in refs}

            removed = 0
            for key in store.all_keys():
                if key not in wanted:
                    store.remove(key)
                    removed += 1

            to_embed: List[ProjectRef] = []
            added = updated = unchanged = 0
            for ref in refs:
                existing = store.get(ref.key)
                if existing is not None and existing.name == ref.name and not force_rebuild:
                    unchanged += 1
                    continue
                to_embed.append(ref)

            if to_embed:
                logger.info(
                    f"Updating project index: {len(to_embed)} to embed, {removed} to remove"
                )

            failed = 0
            for ref, vector in self._embed_projects(to_embed):
                if vector is None:
                    failed += 1
                    continue
                was_present = ref.key in store
                try:
                    store.upsert(ref.key, ref.name, vector)
                except DimensionMismatchError as e:
                    logger.warning(f"Skipping project '{ref.key}': {e}")
                    failed += 1
                    continue
                if was_present:
                    updated += 1
                else:
                    added += 1

            # A failed re-embed of a renamed project must not leave the old
            # name's vector behind under the new name.
            for ref in refs:
                existing = store.get(ref.key)
                if existing is not None and existing.name != ref.name:
                    store.remove(ref.key)

            complete = failed == 0
            store.metadata = {
                "fingerprint": fingerprint,
                "complete": complete,
                "projects": [[ref.key, ref.name] for ref in refs],
            }
            snapshot = IndexSnapshot(
                store=store,
                projects=tuple(refs),
                fingerprint=fingerprint,
                version=self._next_version(),
                complete=complete,
            )
            self._publish(snapshot)
            persisted = self._persist(store)

            if failed:
                logger.warning(
                    f"Project index sync left {failed} project(s) without vectors; "
                    f"they will be retried on the next sync"
                )
            logger.info(
                f"Project index v{snapshot.version}: {len(refs)} projects "
                f"(+{added} ~{updated} -{removed}, {failed} failed)"
            )
            return SyncReport(
                added=added,
                updated=updated,
                removed=removed,
                unchanged=unchanged,
                failed=failed,
                persisted=persisted,
                version=snapshot.version,
            )

    def clear(self) -> None:
        """Drop every entry and the persisted blob."""
        with self._sync_lock:
            self._discard_blob()
            self._publish(IndexSnapshot.empty(self._next_version()))
            logger.info("Project index cleared")

    # ----------------------------
    # Internals
    # ----------------------------
    def _embed_projects(self, refs: List[ProjectRef]):
        """Yield (ref, vector or None) for every ref, batch by batch."""
        if not refs:
            return
        texts = [build_document_text(ref) for ref in refs]
        offset = 0
        for batch, vectors in self._provider.embed_in_batches(texts):
            batch_refs = refs[offset:offset + len(batch)]
            offset += len(batch)
            if vectors is None:
                for ref in batch_refs:
                    yield ref, None
            else:
                yield from zip(batch_refs, vectors)

    def _snapshot_from_store(self, store: ProjectVectorStore) -> IndexSnapshot:
        metadata = store.metadata
        raw_projects = metadata.get("projects")
        if raw_projects is None:
            refs = [ProjectRef(entry.key, entry.name) for entry in store.entries()]
        else:
            try:
                refs = [ProjectRef(key=str(k), name=str(n)) for k, n in raw_projects]
            except (TypeError, ValueError) as e:
                raise CorruptIndexError(f"Invalid project list in index metadata: {e}") from e

        fingerprint = metadata.get("fingerprint")
        if not isinstance(fingerprint, str):
            fingerprint = None

        return IndexSnapshot(
            store=store,
            projects=tuple(refs),
            fingerprint=fingerprint,
            version=self._next_version(),
            complete=bool(metadata.get("complete", fingerprint is not None)),
        )

    def _persist(self, store: ProjectVectorStore) -> bool:
        try:
            self._storage.write(self._storage_path, store.persist())
            return True
        except OSError as e:
            logger.error(f"Failed to persist project index to {self._storage_path}: {e}")
            return False

    def _discard_blob(self) -> None:
        try:
            self._storage.delete(self._storage_path)
        except OSError as e:
            logger.error(f"Failed to delete project index {self._storage_path}: {e}")

    def _next_version(self) -> int:
        return self._snapshot.version + 1

    def _publish(self, snapshot: IndexSnapshot) -> None:
        self._snapshot = snapshot
