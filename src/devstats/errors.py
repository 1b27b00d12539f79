"""Custom exception types for the developer stats dashboard."""


class DevStatsError(Exception):
    """Base exception for all recoverable dashboard errors."""


class ConfigurationError(DevStatsError):
    """Raised when runtime configuration values are missing or invalid."""


class UpstreamError(DevStatsError):
    """Raised when an Azure DevOps API request fails or returns an unexpected response."""


class MalformedRecordError(DevStatsError):
    """Raised for a single work item whose fields cannot be interpreted.

    Never escapes the aggregation engine; the affected item is degraded instead.
    """
