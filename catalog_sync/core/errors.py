"""
Exception hierarchy for the reconciliation and cache-refresh pipeline.

Every failure the pipeline can surface to a caller derives from PipelineError,
so the refresh entry points can turn any of them into a structured failure
response without catching unrelated exceptions.
"""


class PipelineError(Exception):
    """Base class for all pipeline failures."""

    error_type = "pipeline_error"


class ConfigurationError(PipelineError):
    """Raised when a required setting is missing or invalid."""

    error_type = "configuration_error"


class AuthenticationError(PipelineError):
    """Raised when a refresh caller presents no valid credentials."""

    error_type = "unauthorized"


class UpstreamUnavailableError(PipelineError):
    """Raised when the legacy source API times out, errors, or returns an error payload."""

    error_type = "upstream_unavailable"

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


class MalformedRecordError(PipelineError):
    """Raised when a single source record cannot be normalized."""

    error_type = "malformed_record"

    def __init__(self, field_name: str, message: str, record_name: str | None = None):
        self.field_name = field_name
        self.message = message
        self.record_name = record_name
        super().__init__(f"{field_name}: {message}")


class CacheWriteError(PipelineError):
    """Raised when the edge cache rejects a write."""

    error_type = "cache_write_failure"

    def __init__(self, key: str, message: str):
        self.key = key
        self.message = message
        super().__init__(f"[{key}] {message}")


class SnapshotTooLargeError(CacheWriteError):
    """Raised when a value still exceeds the cache item ceiling after trimming."""

    error_type = "snapshot_too_large"

    def __init__(self, key: str, size_bytes: int, max_bytes: int):
        self.size_bytes = size_bytes
        self.max_bytes = max_bytes
        super().__init__(key, f"value is {size_bytes} bytes, ceiling is {max_bytes} bytes")


class CacheReadError(PipelineError):
    """Raised when the edge cache cannot be read."""

    error_type = "cache_read_failure"
