class ProjectResolverError(Exception):
    """Base exception for project resolver service."""


class ConfigurationError(ProjectResolverError):
    """Raised when configuration is missing or invalid."""


class AppNotInitializedError(ProjectResolverError):
    """Raised when the app is used before initialize() is called."""


class DimensionMismatchError(ProjectResolverError):
    """Raised when a vector length differs from the store's dimensionality."""

    def __init__(self, expected: int, actual: int, key: str = None):
        self.expected = expected
        self.actual = actual
        self.key = key
        target = f" for '{key}'" if key else ""
        super().__init__(
            f"Vector dimension mismatch{target}: expected {expected}, got {actual}"
        )


class ProviderUnavailableError(ProjectResolverError):
    """Raised when the embedding provider fails, times out or returns garbage."""


class CorruptIndexError(ProjectResolverError):
    """Raised when a persisted index cannot be deserialized."""
