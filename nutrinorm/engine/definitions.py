"""Pydantic models for rule-table source data and their compilation.

Regulation tables are written as literal data per year (see
``nutrinorm.engine.tables``).  They are validated here and compiled into the
frozen structures of ``nutrinorm.engine.rules``.  Any inconsistency is a
``TableDefinitionError`` at load time; a table that cannot be applied
unambiguously is never loaded.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator

from nutrinorm.engine.errors import TableDefinitionError
from nutrinorm.engine.records import to_decimal
from nutrinorm.engine.rules import (
    ApplicationPeriod,
    ArableLand,
    Derogation,
    DiscountTier,
    FertilizerCodeIn,
    GrazingIntention,
    NormsTable,
    OnFarmProduced,
    PhosphateDiscount,
    Predicate,
    Rule,
    RuleTable,
    SoilTypeIn,
    SubRule,
    TableKind,
)


def _parse_month_day(token: str) -> tuple[int, int]:
    try:
        month_text, day_text = token.split("-")
        month, day = int(month_text), int(day_text)
        # 2000 is a leap year, so 02-29 is accepted
        date(2000, month, day)
    except ValueError as exc:
        raise ValueError(f"invalid MM-DD period bound: {token!r}") from exc
    return month, day


class PeriodDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    start: str
    end: str
    label: str = ""

    @field_validator("start", "end")
    @classmethod
    def _validate_bound(cls, value: str) -> str:
        _parse_month_day(value)
        return value

    def compile(self) -> ApplicationPeriod:
        start_month, start_day = _parse_month_day(self.start)
        end_month, end_day = _parse_month_day(self.end)
        return ApplicationPeriod(
            start_month=start_month,
            start_day=start_day,
            end_month=end_month,
            end_day=end_day,
            label=self.label,
        )


class _PredicateFields(BaseModel):
    """Optional filters shared by rules and sub-rules."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    description: str = Field(min_length=1)
    soil_type_codes: list[str] | None = None
    grazing_intention: bool | None = None
    is_arable_land: bool | None = None
    derogation: bool | None = None
    application_period: PeriodDefinition | None = None

    @field_validator("soil_type_codes")
    @classmethod
    def _non_empty_codes(cls, value: list[str] | None) -> list[str] | None:
        if value is not None and not value:
            raise ValueError("code sets must not be empty")
        return value

    def context_predicates(self) -> list[Predicate]:
        predicates: list[Predicate] = []
        if self.soil_type_codes is not None:
            predicates.append(SoilTypeIn(frozenset(self.soil_type_codes)))
        if self.grazing_intention is not None:
            predicates.append(GrazingIntention(self.grazing_intention))
        if self.is_arable_land is not None:
            predicates.append(ArableLand(self.is_arable_land))
        if self.derogation is not None:
            predicates.append(Derogation(self.derogation))
        if self.application_period is not None:
            predicates.append(self.application_period.compile())
        return predicates


def _coerce_value(value: Any) -> Any:
    if isinstance(value, (int, float, str)) and not isinstance(value, bool):
        return to_decimal(value)
    return value


class SubRuleDefinition(_PredicateFields):
    value: Decimal

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> Any:
        return _coerce_value(value)

    def compile(self) -> SubRule:
        return SubRule(
            description=self.description,
            predicates=tuple(self.context_predicates()),
            value=self.value,
        )


class RuleDefinition(_PredicateFields):
    fertilizer_type_codes: list[str] | None = None
    on_farm_produced: bool | None = None
    value: Decimal | None = None
    sub_rules: list[SubRuleDefinition] = Field(default_factory=list)
    is_manure: bool = False

    @field_validator("value", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> Any:
        return _coerce_value(value)

    @field_validator("fertilizer_type_codes")
    @classmethod
    def _non_empty_fertilizer_codes(cls, value: list[str] | None) -> list[str] | None:
        if value is not None and not value:
            raise ValueError("code sets must not be empty")
        return value

    @model_validator(mode="after")
    def _requires_value_source(self) -> RuleDefinition:
        if self.value is None and not self.sub_rules:
            raise ValueError(f"rule {self.description!r} has neither a value nor sub-rules")
        return self

    def compile(self) -> Rule:
        predicates: list[Predicate] = []
        if self.fertilizer_type_codes is not None:
            predicates.append(FertilizerCodeIn(frozenset(self.fertilizer_type_codes)))
        if self.on_farm_produced is not None:
            predicates.append(OnFarmProduced(self.on_farm_produced))
        predicates.extend(self.context_predicates())
        return Rule(
            description=self.description,
            predicates=tuple(predicates),
            value=self.value,
            sub_rules=tuple(sub_rule.compile() for sub_rule in self.sub_rules),
            is_manure=self.is_manure,
        )


class TableDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    year: int = Field(ge=1900, le=2200)
    kind: TableKind
    name: str = Field(min_length=1)
    rules: list[RuleDefinition] = Field(min_length=1)

    @model_validator(mode="after")
    def _validate_values(self) -> TableDefinition:
        for rule in self.rules:
            values = [rule.value] + [sub_rule.value for sub_rule in rule.sub_rules]
            for value in values:
                if value is None:
                    continue
                if value < 0:
                    raise ValueError(f"rule {rule.description!r} has a negative value")
                if self.kind == TableKind.working_coefficient and value > 1:
                    raise ValueError(
                        f"rule {rule.description!r} has a working coefficient above 1"
                    )
            if self.kind == TableKind.working_coefficient and rule.fertilizer_type_codes is None:
                raise ValueError(
                    f"coefficient rule {rule.description!r} does not name fertilizer codes"
                )
        return self

    def compile(self) -> RuleTable:
        return RuleTable(
            year=self.year,
            kind=self.kind,
            name=self.name,
            rules=tuple(rule.compile() for rule in self.rules),
        )


class DiscountTierDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    description: str = Field(min_length=1)
    fertilizer_type_codes: list[str] = Field(min_length=1)
    factor: Decimal

    @field_validator("factor", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> Any:
        return _coerce_value(value)

    @field_validator("factor")
    @classmethod
    def _factor_in_range(cls, value: Decimal) -> Decimal:
        if value < 0 or value > 1:
            raise ValueError(f"discount factor {value} is outside 0..1")
        return value

    def compile(self) -> DiscountTier:
        return DiscountTier(
            description=self.description,
            fertilizer_codes=frozenset(self.fertilizer_type_codes),
            factor=self.factor,
        )


class PhosphateDiscountDefinition(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    threshold_per_ha: Decimal
    tiers: list[DiscountTierDefinition] = Field(min_length=1)

    @field_validator("threshold_per_ha", mode="before")
    @classmethod
    def _coerce_decimal(cls, value: Any) -> Any:
        return _coerce_value(value)

    @model_validator(mode="after")
    def _validate_tiers(self) -> PhosphateDiscountDefinition:
        if self.threshold_per_ha < 0:
            raise ValueError("discount threshold must not be negative")
        seen: set[str] = set()
        for tier in self.tiers:
            overlap = seen & set(tier.fertilizer_type_codes)
            if overlap:
                raise ValueError(
                    f"fertilizer codes {', '.join(sorted(overlap))} appear in more than one discount tier"
                )
            seen.update(tier.fertilizer_type_codes)
        return self

    def compile(self) -> PhosphateDiscount:
        tiers = sorted((tier.compile() for tier in self.tiers), key=lambda tier: tier.factor)
        return PhosphateDiscount(threshold_per_ha=self.threshold_per_ha, tiers=tuple(tiers))


def load_rule_table(
    raw_rules: list[dict[str, Any]],
    *,
    year: int,
    kind: TableKind,
    name: str,
) -> RuleTable:
    """Validate literal rule data and compile it into a ``RuleTable``."""
    try:
        definition = TableDefinition(year=year, kind=kind, name=name, rules=raw_rules)
    except ValidationError as exc:
        raise TableDefinitionError(f"invalid table {name!r} ({year}): {exc}") from exc
    return definition.compile()


def load_phosphate_discount(raw: dict[str, Any], *, year: int) -> PhosphateDiscount:
    """Validate the organic-rich fertilizer phosphate discount of one year."""
    try:
        definition = PhosphateDiscountDefinition.model_validate(raw)
    except ValidationError as exc:
        raise TableDefinitionError(f"invalid phosphate discount ({year}): {exc}") from exc
    return definition.compile()


def load_norms_table(
    raw: dict[str, list[dict[str, Any]]],
    *,
    year: int,
    phosphate_discount: dict[str, Any] | None = None,
) -> NormsTable:
    """Compile the three ceiling tables of one regulation year."""
    missing = {"nitrogen", "phosphate", "manure"} - set(raw)
    if missing:
        raise TableDefinitionError(
            f"norms table {year} is missing: {', '.join(sorted(missing))}"
        )
    tables = {
        key: load_rule_table(raw[key], year=year, kind=TableKind.ceiling, name=f"{key}-{year}")
        for key in ("nitrogen", "phosphate", "manure")
    }
    discount = (
        load_phosphate_discount(phosphate_discount, year=year)
        if phosphate_discount is not None
        else None
    )
    return NormsTable(year=year, phosphate_discount=discount, **tables)
