"""Dutch regulation tables for 2026.

Tabel 9 is unchanged from 2025.  The derogation ends after 2025, so the
manure ceiling no longer depends on a farm's derogation status.
"""

from __future__ import annotations

from typing import Any

from nutrinorm.engine.tables import nl2025

YEAR = 2026

WORKING_COEFFICIENTS: list[dict[str, Any]] = list(nl2025.WORKING_COEFFICIENTS)

NORMS: dict[str, list[dict[str, Any]]] = {
    "nitrogen": list(nl2025.NORMS["nitrogen"]),
    "phosphate": list(nl2025.NORMS["phosphate"]),
    "manure": [
        {"description": "Standaard - derogatie beeindigd", "value": 170},
    ],
}

PHOSPHATE_DISCOUNT: dict[str, Any] = dict(nl2025.PHOSPHATE_DISCOUNT)
