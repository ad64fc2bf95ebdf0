"""ORM model registry — importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from nutrinorm.models import Farm, Field, FertilizerApplication
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from nutrinorm.models.base import Base, TimestampMixin, UUIDPrimaryKeyMixin

# ── Enums ───────────────────────────────────────────────────────────────────
from nutrinorm.models.enums import LandUseEnum, SoilTypeEnum

# ── Farm data ───────────────────────────────────────────────────────────────
from nutrinorm.models.farm import Farm, FarmYear, FertilizerApplication, Field

__all__ = [
    # Base & mixins
    "Base",
    # Farm data
    "Farm",
    "FarmYear",
    "FertilizerApplication",
    "Field",
    # Enums
    "LandUseEnum",
    "SoilTypeEnum",
    "TimestampMixin",
    "UUIDPrimaryKeyMixin",
]
