from .snapshot import IndexSnapshot
from .index_manager import (
    ProjectIndexManager,
    SyncReport,
    build_document_text,
    compute_fingerprint,
    normalize_projects,
)

__all__ = [
    "IndexSnapshot",
    "ProjectIndexManager",
    "SyncReport",
    "build_document_text",
    "compute_fingerprint",
    "normalize_projects",
]
