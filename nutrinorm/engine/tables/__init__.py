"""Built-in regulation tables, one module per regulation year."""

from nutrinorm.engine.tables import nl2025, nl2026

BUILTIN_YEARS = (nl2025, nl2026)

__all__ = ["BUILTIN_YEARS", "nl2025", "nl2026"]
