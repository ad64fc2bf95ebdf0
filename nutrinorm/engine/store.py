"""Year-keyed store of regulation tables.

Loaded once at process start and passed into every calculation.  The store
never tracks a "current" year: callers always name the regulation year they
evaluate, so one request can compare several years side by side.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from types import MappingProxyType, ModuleType

from nutrinorm.engine.definitions import load_norms_table, load_rule_table
from nutrinorm.engine.errors import TableDefinitionError, UnsupportedYearError
from nutrinorm.engine.rules import NormsTable, RuleTable, TableKind
from nutrinorm.engine.tables import BUILTIN_YEARS


@dataclass(frozen=True, slots=True)
class RegulationStore:
    coefficient_tables: Mapping[int, RuleTable]
    norms_tables: Mapping[int, NormsTable]

    @property
    def years(self) -> list[int]:
        return sorted(set(self.coefficient_tables) | set(self.norms_tables))

    def coefficient_table(self, year: int) -> RuleTable:
        table = self.coefficient_tables.get(year)
        if table is None:
            raise UnsupportedYearError(year, "working coefficient")
        return table

    def norms_table(self, year: int) -> NormsTable:
        table = self.norms_tables.get(year)
        if table is None:
            raise UnsupportedYearError(year, "norms")
        return table


def build_store(
    coefficient_tables: Iterable[RuleTable],
    norms_tables: Iterable[NormsTable],
) -> RegulationStore:
    """Assemble a store, refusing two tables for the same year."""
    coefficients: dict[int, RuleTable] = {}
    for table in coefficient_tables:
        if table.kind != TableKind.working_coefficient:
            raise TableDefinitionError(f"table {table.name!r} is not a working coefficient table")
        if table.year in coefficients:
            raise TableDefinitionError(f"duplicate working coefficient table for {table.year}")
        coefficients[table.year] = table

    norms: dict[int, NormsTable] = {}
    for norms_table in norms_tables:
        if norms_table.year in norms:
            raise TableDefinitionError(f"duplicate norms table for {norms_table.year}")
        norms[norms_table.year] = norms_table

    return RegulationStore(
        coefficient_tables=MappingProxyType(coefficients),
        norms_tables=MappingProxyType(norms),
    )


def _load_module(module: ModuleType) -> tuple[RuleTable, NormsTable]:
    year: int = module.YEAR
    coefficients = load_rule_table(
        module.WORKING_COEFFICIENTS,
        year=year,
        kind=TableKind.working_coefficient,
        name=f"tabel-9-{year}",
    )
    norms = load_norms_table(
        module.NORMS,
        year=year,
        phosphate_discount=getattr(module, "PHOSPHATE_DISCOUNT", None),
    )
    return coefficients, norms


def load_regulation_store(years: Iterable[int] | None = None) -> RegulationStore:
    """Compile the built-in tables, optionally restricted to ``years``."""
    wanted = set(years) if years is not None else None
    modules = [module for module in BUILTIN_YEARS if wanted is None or module.YEAR in wanted]
    if wanted is not None:
        unknown = wanted - {module.YEAR for module in modules}
        if unknown:
            raise UnsupportedYearError(min(unknown), "built-in")

    loaded = [_load_module(module) for module in modules]
    return build_store(
        (coefficients for coefficients, _ in loaded),
        (norms for _, norms in loaded),
    )
