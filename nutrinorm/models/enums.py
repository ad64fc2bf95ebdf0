"""PostgreSQL-backed enum types for ORM columns.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM.
The engine has its own ``LandUse``; the ORM enum keeps the same values so
rows convert without a lookup table.
"""

from enum import StrEnum


class LandUseEnum(StrEnum):
    """Land-use class of a field."""

    arable = "arable"
    grassland = "grassland"


class SoilTypeEnum(StrEnum):
    """Soil regions used by the Dutch usage norms."""

    klei = "klei"
    veen = "veen"
    zand_nwc = "zand_nwc"
    zand_zuid = "zand_zuid"
    loess = "loess"
    dal = "dal"
