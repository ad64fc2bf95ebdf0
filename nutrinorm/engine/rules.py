"""Compiled rule structures shared by coefficient and ceiling tables.

A rule is a description, an ordered tuple of predicates and a value, with
optional sub-rules that narrow the match further.  Every predicate is a
small frozen dataclass exposing ``evaluate(context)``; a rule matches when
all of its predicates hold, so the matcher is the same fold for every
regulation year and every table kind.

Ordering is part of the contract: among top-level rules and among the
sub-rules of a rule, the first match in declaration order wins.  Table
authors write sub-rules narrowest-first.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from enum import StrEnum


class TableKind(StrEnum):
    working_coefficient = "working_coefficient"
    ceiling = "ceiling"


@dataclass(frozen=True, slots=True)
class MatchContext:
    """Attributes a predicate may read.  ``None`` means unknown."""

    fertilizer_code: str | None = None
    on_farm_produced: bool | None = None
    soil_type: str | None = None
    grazing_intention: bool | None = None
    is_arable: bool | None = None
    derogation: bool | None = None
    applied_on: date | None = None


# ── Predicates ──────────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class FertilizerCodeIn:
    codes: frozenset[str]

    def evaluate(self, context: MatchContext) -> bool:
        return context.fertilizer_code is not None and context.fertilizer_code in self.codes


@dataclass(frozen=True, slots=True)
class OnFarmProduced:
    expected: bool

    def evaluate(self, context: MatchContext) -> bool:
        return context.on_farm_produced is not None and context.on_farm_produced == self.expected


@dataclass(frozen=True, slots=True)
class SoilTypeIn:
    codes: frozenset[str]

    def evaluate(self, context: MatchContext) -> bool:
        return context.soil_type is not None and context.soil_type in self.codes


@dataclass(frozen=True, slots=True)
class GrazingIntention:
    expected: bool

    def evaluate(self, context: MatchContext) -> bool:
        return context.grazing_intention is not None and context.grazing_intention == self.expected


@dataclass(frozen=True, slots=True)
class ArableLand:
    expected: bool

    def evaluate(self, context: MatchContext) -> bool:
        return context.is_arable is not None and context.is_arable == self.expected


@dataclass(frozen=True, slots=True)
class Derogation:
    expected: bool

    def evaluate(self, context: MatchContext) -> bool:
        return context.derogation is not None and context.derogation == self.expected


@dataclass(frozen=True, slots=True)
class ApplicationPeriod:
    """Day-of-year window, inclusive on both ends.

    When the start lies after the end (e.g. 1 September t/m 31 January) the
    window wraps over the year boundary: a date matches when it falls on or
    after the start, or on or before the end, of its own calendar year.
    """

    start_month: int
    start_day: int
    end_month: int
    end_day: int
    label: str = ""

    @property
    def wraps(self) -> bool:
        return (self.start_month, self.start_day) > (self.end_month, self.end_day)

    def contains(self, day: date) -> bool:
        key = (day.month, day.day)
        start = (self.start_month, self.start_day)
        end = (self.end_month, self.end_day)
        if self.wraps:
            return key >= start or key <= end
        return start <= key <= end

    def evaluate(self, context: MatchContext) -> bool:
        return context.applied_on is not None and self.contains(context.applied_on)


Predicate = (
    FertilizerCodeIn
    | OnFarmProduced
    | SoilTypeIn
    | GrazingIntention
    | ArableLand
    | Derogation
    | ApplicationPeriod
)


def all_hold(predicates: tuple[Predicate, ...], context: MatchContext) -> bool:
    return all(predicate.evaluate(context) for predicate in predicates)


# ── Rules & tables ──────────────────────────────────────────────────────────


@dataclass(frozen=True, slots=True)
class SubRule:
    description: str
    predicates: tuple[Predicate, ...]
    value: Decimal

    def matches(self, context: MatchContext) -> bool:
        return all_hold(self.predicates, context)


@dataclass(frozen=True, slots=True)
class Rule:
    description: str
    predicates: tuple[Predicate, ...]
    value: Decimal | None = None
    sub_rules: tuple[SubRule, ...] = ()
    is_manure: bool = False

    def matches(self, context: MatchContext) -> bool:
        return all_hold(self.predicates, context)


@dataclass(frozen=True, slots=True)
class RuleTable:
    year: int
    kind: TableKind
    name: str
    rules: tuple[Rule, ...]

    def __len__(self) -> int:
        return len(self.rules)


@dataclass(frozen=True, slots=True)
class DiscountTier:
    """Fertilizer codes whose phosphate counts at ``factor`` of its weight."""

    description: str
    fertilizer_codes: frozenset[str]
    factor: Decimal


@dataclass(frozen=True, slots=True)
class PhosphateDiscount:
    """Reduced phosphate filling for organic-rich fertilizers.

    The tiers only apply once the qualifying P2O5 reaches
    ``threshold_per_ha`` on a field.  Tiers are kept lowest factor first,
    and the discounted amount never exceeds the field's phosphate ceiling.
    """

    threshold_per_ha: Decimal
    tiers: tuple[DiscountTier, ...]

    def tier_for(self, fertilizer_code: str | None) -> DiscountTier | None:
        if fertilizer_code is None:
            return None
        for tier in self.tiers:
            if fertilizer_code in tier.fertilizer_codes:
                return tier
        return None


@dataclass(frozen=True, slots=True)
class NormsTable:
    """Ceiling tables (kg per hectare) for one regulation year."""

    year: int
    nitrogen: RuleTable
    phosphate: RuleTable
    manure: RuleTable
    phosphate_discount: PhosphateDiscount | None = None

    def tables(self) -> dict[str, RuleTable]:
        return {
            "nitrogen": self.nitrogen,
            "phosphate": self.phosphate,
            "manure": self.manure,
        }
