"""Rule matcher: select the single applicable rule (or sub-rule) for an input.

Selection is first-match-wins in declaration order, at both levels:

1. top-level rules whose predicates all hold are candidates.  None means
   ``NoMatch``.  More than one is a table-authoring overlap; the first is
   used and the others are reported in ``RuleMatch.ambiguous_with``.
2. the first sub-rule of the selected rule whose predicates all hold
   supplies the value.
3. without a matching sub-rule the rule's own value applies; a rule that
   has none yields ``NoMatch``.

Matching is a pure function of the table and the context.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal

from nutrinorm.engine.errors import YearMismatchError
from nutrinorm.engine.records import FarmContext, FertilizerApplication, FieldContext
from nutrinorm.engine.rules import MatchContext, Rule, RuleTable, SubRule


@dataclass(frozen=True, slots=True)
class RuleMatch:
    value: Decimal
    rule: Rule
    sub_rule: SubRule | None = None
    ambiguous_with: tuple[str, ...] = ()

    @property
    def is_ambiguous(self) -> bool:
        return bool(self.ambiguous_with)

    @property
    def description(self) -> str:
        parts = [self.rule.description]
        if self.sub_rule is not None:
            parts.append(self.sub_rule.description)
        return " - ".join(parts)


@dataclass(frozen=True, slots=True)
class NoMatch:
    reason: str
    rule: Rule | None = None
    ambiguous_with: tuple[str, ...] = ()


def match_rule(table: RuleTable, context: MatchContext) -> RuleMatch | NoMatch:
    candidates = [rule for rule in table.rules if rule.matches(context)]
    if not candidates:
        return NoMatch(reason=f"no rule in {table.name} applies")

    rule = candidates[0]
    ambiguous_with = tuple(other.description for other in candidates[1:])

    for sub_rule in rule.sub_rules:
        if sub_rule.matches(context):
            return RuleMatch(
                value=sub_rule.value,
                rule=rule,
                sub_rule=sub_rule,
                ambiguous_with=ambiguous_with,
            )

    if rule.value is None:
        return NoMatch(
            reason=f"no sub-rule of {rule.description!r} applies",
            rule=rule,
            ambiguous_with=ambiguous_with,
        )
    return RuleMatch(value=rule.value, rule=rule, ambiguous_with=ambiguous_with)


def context_for_field(field: FieldContext, farm: FarmContext, year: int) -> MatchContext:
    """Context for ceiling lookups: field and farm attributes only."""
    return MatchContext(
        soil_type=field.soil_type,
        is_arable=field.is_arable,
        grazing_intention=farm.has_grazing_intention(year),
        derogation=farm.has_derogation(year),
    )


def context_for_application(
    application: FertilizerApplication,
    field: FieldContext,
    farm: FarmContext,
    year: int,
) -> MatchContext:
    return MatchContext(
        fertilizer_code=application.fertilizer_code,
        on_farm_produced=application.on_farm_produced,
        soil_type=field.soil_type,
        grazing_intention=farm.has_grazing_intention(year),
        is_arable=field.is_arable,
        derogation=farm.has_derogation(year),
        applied_on=application.applied_on,
    )


def match(
    table: RuleTable,
    year: int,
    application: FertilizerApplication,
    field: FieldContext,
    farm: FarmContext,
) -> RuleMatch | NoMatch:
    """Resolve the working coefficient rule for one fertilizer application."""
    if table.year != year:
        raise YearMismatchError(
            f"table {table.name!r} is for {table.year}, not {year}"
        )
    return match_rule(table, context_for_application(application, field, farm, year))
