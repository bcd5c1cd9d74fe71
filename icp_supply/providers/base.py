"""Base classes for data providers."""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from ..core.models import AuditEntry

logger = logging.getLogger(__name__)


class BaseProvider(ABC):
    """Abstract base class for metric providers with a per-request retry policy."""

    # Subclasses must name their source
    SOURCE: str = "unknown"

    def __init__(
        self,
        max_retries: int = 3,
        retry_delay: float = 1.0,
        timeout: float = 10.0,
    ):
        """
        Initialize provider with its retry policy.

        Args:
            max_retries: Attempts per request before giving up
            retry_delay: Base backoff in seconds; attempt ``n`` waits ``n * retry_delay``
            timeout: Per-attempt timeout in seconds
        """
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.timeout = timeout
        self._audit_entries: list[AuditEntry] = []

    def backoff_delay(self, attempt: int) -> float:
        """Delay before the attempt following ``attempt`` (linear backoff)."""
        return self.retry_delay * attempt

    def _record_audit(
        self,
        endpoint: str,
        action: str = "fetch",
        url: str | None = None,
        attempt: int | None = None,
        success: bool = True,
        error_message: str | None = None,
        duration_ms: int | None = None,
        notes: str | None = None,
    ) -> AuditEntry:
        """Record an audit entry for this provider action."""
        entry = AuditEntry(
            timestamp=datetime.now(timezone.utc),
            endpoint=endpoint,
            action=action,
            url=url,
            attempt=attempt,
            success=success,
            error_message=error_message,
            duration_ms=duration_ms,
            notes=notes,
        )
        self._audit_entries.append(entry)
        return entry

    def get_audit_trail(self) -> list[AuditEntry]:
        """Return all audit entries recorded by this provider."""
        return self._audit_entries.copy()

    def clear_audit_trail(self) -> None:
        """Clear the audit trail."""
        self._audit_entries.clear()

    @abstractmethod
    async def fetch_all(self) -> dict:
        """Fetch every payload this provider is responsible for."""
        pass
