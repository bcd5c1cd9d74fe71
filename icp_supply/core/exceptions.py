"""Custom exceptions for the ICP supply dashboard."""


class SupplyDashboardError(Exception):
    """Base exception for all supply dashboard errors."""

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class EndpointUnavailableError(SupplyDashboardError):
    """Raised when an endpoint still fails after exhausting its retries."""

    def __init__(
        self,
        endpoint: str,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        attempts: int | None = None,
    ):
        full_message = f"[{endpoint}] {message}"
        if attempts:
            full_message += f" (after {attempts} attempts)"
        super().__init__(
            full_message,
            {
                "endpoint": endpoint,
                "url": url,
                "status_code": status_code,
                "attempts": attempts,
            },
        )
        self.endpoint = endpoint
        self.url = url
        self.status_code = status_code
        self.attempts = attempts


class MalformedPayloadError(SupplyDashboardError):
    """Raised when a payload is missing a required field or has the wrong type."""

    def __init__(self, endpoint: str, message: str):
        full_message = f"Malformed payload from {endpoint}: {message}"
        super().__init__(full_message, {"endpoint": endpoint})
        self.endpoint = endpoint


class TreeInvariantViolation(SupplyDashboardError):
    """Raised when a supply tree is structurally broken or its rollups disagree."""

    def __init__(self, key: str, message: str):
        full_message = f"Tree invariant violated at '{key}': {message}"
        super().__init__(full_message, {"key": key})
        self.key = key


class UnknownBucketKeyError(SupplyDashboardError):
    """Raised when a dissolve delay does not fall into any bucket range."""

    def __init__(self, months: int):
        message = f"Dissolve delay {months} months does not map to any bucket range"
        super().__init__(message, {"months": months})
        self.months = months


class ConfigurationError(SupplyDashboardError):
    """Raised when configuration is invalid or missing."""

    def __init__(self, config_key: str, message: str):
        full_message = f"Configuration error [{config_key}]: {message}"
        super().__init__(full_message, {"config_key": config_key})
        self.config_key = config_key


class SnapshotNotFoundError(SupplyDashboardError):
    """Raised when no persisted snapshot exists at the expected path."""

    def __init__(self, path: str):
        super().__init__(f"Snapshot not found: {path}", {"path": path})
        self.path = path
