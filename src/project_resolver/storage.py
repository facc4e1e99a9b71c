"""
Durable blob storage for the persisted project index.

The index treats storage as an opaque byte sink/source.
"""
import logging
import os
import tempfile
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Dict

logger = logging.getLogger(__name__)


class BlobStorage(ABC):
    """Protocol for durable byte storage addressed by path."""

    @abstractmethod
    def write(self, path: str, data: bytes) -> None:
        pass

    @abstractmethod
    def read(self, path: str) -> bytes:
        """:raises: FileNotFoundError when nothing is stored at path"""
        pass

    @abstractmethod
    def delete(self, path: str) -> None:
        """Remove the blob; no-op if absent."""
        pass

    @abstractmethod
    def exists(self, path: str) -> bool:
        pass


class FileBlobStorage(BlobStorage):
    """
    Filesystem storage. Writes go to a temp file in the target directory and
    are moved into place with os.replace, so readers never see a partial file.
    """

    def write(self, path: str, data: bytes) -> None:
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{target.name}.", suffix=".tmp", dir=str(target.parent)
        )
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, target)
        except BaseException:
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            raise
        logger.debug(f"Wrote {len(data)} bytes to {target}")

    def read(self, path: str) -> bytes:
        return Path(path).read_bytes()

    def delete(self, path: str) -> None:
        try:
            Path(path).unlink()
            logger.debug(f"Deleted {path}")
        except FileNotFoundError:
            pass

    def exists(self, path: str) -> bool:
        return Path(path).is_file()


class InMemoryBlobStorage(BlobStorage):
    """Dict-backed storage for tests and ephemeral deployments."""

    def __init__(self):
        self._blobs: Dict[str, bytes] = {}

    def write(self, path: str, data: bytes) -> None:
        self._blobs[path] = bytes(data)

    def read(self, path: str) -> bytes:
        try:
            return self._blobs[path]
        except KeyError:
            raise FileNotFoundError(path)

    def delete(self, path: str) -> None:
        self._blobs.pop(path, None)

    def exists(self, path: str) -> bool:
        return path in self._blobs
