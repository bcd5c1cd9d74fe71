"""Audit trail formatter for fetch transparency.

Summarizes, per endpoint, how many attempts were made, which succeeded and
the last error seen.
"""

import logging
from typing import Any

from ..core.models import AuditEntry

logger = logging.getLogger(__name__)


class AuditTrailFormatter:
    """Formats provider audit entries."""

    def _summarize(self, entries: list[AuditEntry]) -> dict[str, dict[str, Any]]:
        summary: dict[str, dict[str, Any]] = {}
        for entry in entries:
            info = summary.setdefault(
                entry.endpoint,
                {"total_count": 0, "success_count": 0, "last_error": None, "duration_ms": 0},
            )
            info["total_count"] += 1
            info["duration_ms"] += entry.duration_ms or 0
            if entry.success:
                info["success_count"] += 1
            else:
                info["last_error"] = entry.error_message
        return summary

    def format_summary(self, entries: list[AuditEntry]) -> str:
        """
        Format a summary of the audit trail.

        Args:
            entries: Audit entries collected from providers

        Returns:
            Formatted string summary
        """
        lines = []
        lines.append("=" * 70)
        lines.append("AUDIT TRAIL SUMMARY")
        lines.append("=" * 70)
        lines.append("")

        if not entries:
            lines.append("  No requests recorded")
            return "\n".join(lines)

        for endpoint, info in self._summarize(entries).items():
            status = "OK" if info["success_count"] > 0 else "FAILED"
            lines.append(f"  {endpoint}: {status}")
            lines.append(
                f"    - Attempts: {info['total_count']} "
                f"({info['success_count']} successful, {info['duration_ms']}ms)"
            )
            if info["last_error"]:
                lines.append(f"    - Last error: {info['last_error']}")

        return "\n".join(lines)
