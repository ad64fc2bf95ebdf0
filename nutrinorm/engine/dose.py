"""Dose calculator: total and working nutrient amounts per field and farm.

For every application inside the timeframe::

    total   = nutrient content * quantity
    working = total * working coefficient

The working coefficient comes from the year's coefficient table and applies
to nitrogen; phosphate and potassium count in full.  Record-level problems
never abort the calculation: invalid applications are left out, unmatched
ones keep their total with a zero working amount, and both are reported as
issues.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import Decimal

from nutrinorm.engine.errors import EngineIssue, IssueKind, YearMismatchError
from nutrinorm.engine.matcher import NoMatch, RuleMatch, match
from nutrinorm.engine.records import (
    FarmContext,
    FertilizerApplication,
    FieldContext,
    Nutrient,
    Timeframe,
)
from nutrinorm.engine.rules import RuleTable

ZERO = Decimal(0)
HUNDRED = Decimal(100)


@dataclass(frozen=True, slots=True)
class NutrientDose:
    total: Decimal = ZERO
    working: Decimal = ZERO
    total_per_ha: Decimal | None = None
    working_per_ha: Decimal | None = None

    def plus(self, total: Decimal, working: Decimal) -> NutrientDose:
        return NutrientDose(total=self.total + total, working=self.working + working)

    def per_hectare(self, area_ha: Decimal | None) -> NutrientDose:
        if area_ha is None or area_ha <= 0:
            return NutrientDose(total=self.total, working=self.working)
        return NutrientDose(
            total=self.total,
            working=self.working,
            total_per_ha=self.total / area_ha,
            working_per_ha=self.working / area_ha,
        )


def _empty_nutrients() -> dict[Nutrient, NutrientDose]:
    return {nutrient: NutrientDose() for nutrient in Nutrient}


@dataclass(frozen=True, slots=True)
class Dose:
    area_ha: Decimal | None
    nutrients: dict[Nutrient, NutrientDose] = field(default_factory=_empty_nutrients)
    manure_nitrogen: NutrientDose = field(default_factory=NutrientDose)

    def __getitem__(self, nutrient: Nutrient) -> NutrientDose:
        return self.nutrients[nutrient]


@dataclass(frozen=True, slots=True)
class ApplicationDose:
    """Per-application breakdown, used to explain a field's figures."""

    application_id: str
    field_id: str
    fertilizer_code: str | None
    coefficient: Decimal
    totals: dict[Nutrient, Decimal]
    working_nitrogen: Decimal
    is_manure: bool
    matched: bool
    rule_description: str | None = None
    sub_rule_description: str | None = None

    @property
    def explanation(self) -> str:
        if not self.matched:
            return "Werkingscoefficient: onbekend - geen regel van toepassing"
        percentage = (self.coefficient * HUNDRED).normalize()
        parts = [part for part in (self.rule_description, self.sub_rule_description) if part]
        return f"Werkingscoefficient: {percentage:f}% - {' - '.join(parts)}"


@dataclass(frozen=True, slots=True)
class DoseResult:
    year: int
    timeframe: Timeframe
    per_field: dict[str, Dose]
    farm: Dose
    applications: list[ApplicationDose]
    issues: list[EngineIssue]


def validate_application(
    application: FertilizerApplication,
    fields_by_id: dict[str, FieldContext],
) -> str | None:
    """Return why a record cannot be used, or ``None`` when it is valid."""
    if application.field_id is None:
        return "application has no field reference"
    if application.field_id not in fields_by_id:
        return f"application references unknown field {application.field_id}"
    if application.quantity < 0:
        return f"negative quantity {application.quantity}"
    for nutrient in Nutrient:
        if application.content(nutrient) < 0:
            return f"negative {nutrient.value} content {application.content(nutrient)}"
    return None


def _dose_application(
    application: FertilizerApplication,
    outcome: RuleMatch | NoMatch,
) -> ApplicationDose:
    coefficient = outcome.value if isinstance(outcome, RuleMatch) else ZERO
    totals = {
        nutrient: application.content(nutrient) * application.quantity
        for nutrient in Nutrient
    }
    if isinstance(outcome, RuleMatch):
        return ApplicationDose(
            application_id=application.id,
            field_id=str(application.field_id),
            fertilizer_code=application.fertilizer_code,
            coefficient=coefficient,
            totals=totals,
            working_nitrogen=totals[Nutrient.nitrogen] * coefficient,
            is_manure=outcome.rule.is_manure,
            matched=True,
            rule_description=outcome.rule.description,
            sub_rule_description=outcome.sub_rule.description if outcome.sub_rule else None,
        )
    return ApplicationDose(
        application_id=application.id,
        field_id=str(application.field_id),
        fertilizer_code=application.fertilizer_code,
        coefficient=coefficient,
        totals=totals,
        working_nitrogen=ZERO,
        is_manure=False,
        matched=False,
        rule_description=outcome.rule.description if outcome.rule else None,
    )


def _match_issues(application: FertilizerApplication, outcome: RuleMatch | NoMatch) -> list[EngineIssue]:
    issues: list[EngineIssue] = []
    if outcome.ambiguous_with:
        issues.append(
            EngineIssue(
                kind=IssueKind.rule_ambiguity,
                message=(
                    f"fertilizer code {application.fertilizer_code} also matches: "
                    + "; ".join(outcome.ambiguous_with)
                ),
                record_id=application.id,
                field_id=application.field_id,
            )
        )
    if isinstance(outcome, NoMatch):
        issues.append(
            EngineIssue(
                kind=IssueKind.no_match,
                message=(
                    f"no working coefficient for fertilizer code "
                    f"{application.fertilizer_code}: {outcome.reason}"
                ),
                record_id=application.id,
                field_id=application.field_id,
            )
        )
    return issues


def _accumulate(doses: Iterable[ApplicationDose], area_ha: Decimal | None) -> Dose:
    nutrients = _empty_nutrients()
    manure = NutrientDose()
    for item in doses:
        for nutrient in Nutrient:
            working = item.working_nitrogen if nutrient == Nutrient.nitrogen else item.totals[nutrient]
            nutrients[nutrient] = nutrients[nutrient].plus(item.totals[nutrient], working)
        if item.is_manure:
            manure = manure.plus(item.totals[Nutrient.nitrogen], item.working_nitrogen)
    return Dose(
        area_ha=area_ha,
        nutrients={nutrient: value.per_hectare(area_ha) for nutrient, value in nutrients.items()},
        manure_nitrogen=manure.per_hectare(area_ha),
    )


def _sum_field_doses(field_doses: Iterable[Dose]) -> Dose:
    nutrients = _empty_nutrients()
    manure = NutrientDose()
    area = ZERO
    for dose in field_doses:
        if dose.area_ha is not None and dose.area_ha > 0:
            area += dose.area_ha
        for nutrient in Nutrient:
            nutrients[nutrient] = nutrients[nutrient].plus(dose[nutrient].total, dose[nutrient].working)
        manure = manure.plus(dose.manure_nitrogen.total, dose.manure_nitrogen.working)
    area_ha = area if area > 0 else None
    return Dose(
        area_ha=area_ha,
        nutrients={nutrient: value.per_hectare(area_ha) for nutrient, value in nutrients.items()},
        manure_nitrogen=manure.per_hectare(area_ha),
    )


def compute_dose(
    applications: Iterable[FertilizerApplication],
    fields: Iterable[FieldContext],
    farm: FarmContext,
    year: int,
    table: RuleTable,
    timeframe: Timeframe | None = None,
) -> DoseResult:
    """Aggregate doses per field and for the farm over ``timeframe``.

    ``timeframe`` defaults to the calendar ``year``; both ends are inclusive.
    Every field passed in appears in ``per_field``, with a zero dose when it
    received nothing.  The farm dose is the plain sum of the field doses.
    """
    if table.year != year:
        raise YearMismatchError(f"table {table.name!r} is for {table.year}, not {year}")
    window = timeframe or Timeframe.calendar_year(year)
    fields_by_id = {field_context.id: field_context for field_context in fields}

    issues: list[EngineIssue] = []
    application_doses: list[ApplicationDose] = []

    for application in applications:
        if not window.contains(application.applied_on):
            continue
        problem = validate_application(application, fields_by_id)
        if problem is not None:
            issues.append(
                EngineIssue(
                    kind=IssueKind.invalid_record,
                    message=problem,
                    record_id=application.id,
                    field_id=application.field_id,
                )
            )
            continue

        field_context = fields_by_id[str(application.field_id)]
        outcome = match(table, year, application, field_context, farm)
        issues.extend(_match_issues(application, outcome))
        application_doses.append(_dose_application(application, outcome))

    per_field = {
        field_id: _accumulate(
            (item for item in application_doses if item.field_id == field_id),
            field_context.area_ha,
        )
        for field_id, field_context in fields_by_id.items()
    }

    return DoseResult(
        year=year,
        timeframe=window,
        per_field=per_field,
        farm=_sum_field_doses(per_field.values()),
        applications=application_doses,
        issues=issues,
    )
