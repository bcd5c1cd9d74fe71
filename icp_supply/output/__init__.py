"""Output formatting module."""

from .formatters import (
    OutputFormatter,
    JSONFormatter,
    CSVFormatter,
    TableFormatter,
    format_number,
    format_percentage,
    percentage_of_total,
)
from .audit_trail import AuditTrailFormatter

__all__ = [
    "OutputFormatter",
    "JSONFormatter",
    "CSVFormatter",
    "TableFormatter",
    "AuditTrailFormatter",
    "format_number",
    "format_percentage",
    "percentage_of_total",
]
