"""Norms aggregator: statutory ceilings against the filling from the dose.

Each field gets a ceiling per norm from the year's ceiling tables (kg/ha
times area), looked up with the same matcher as the working coefficients.
The filling is the working amount from the dose calculator:

* ``nitrogen``  - working N of all applications
* ``phosphate`` - P2O5 of all applications, with organic-rich fertilizers
  discounted as the year's phosphate discount prescribes
* ``manure``    - working N of applications classified as animal manure

A ceiling that cannot be determined stays ``None``; the field is left out of
the farm ceiling for that norm and an issue is reported.  Its filling still
counts in the farm filling, while the farm percentage is taken over the
fields whose ceiling is known (``compared_filling``).  A farm is never shown
at 0% of an unknown ceiling.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from enum import StrEnum

from nutrinorm.engine.dose import HUNDRED, ZERO, ApplicationDose, Dose, DoseResult
from nutrinorm.engine.errors import EngineIssue, IssueKind, YearMismatchError
from nutrinorm.engine.matcher import RuleMatch, context_for_field, match_rule
from nutrinorm.engine.records import FarmContext, FieldContext, Nutrient
from nutrinorm.engine.rules import NormsTable, PhosphateDiscount


class NormKind(StrEnum):
    nitrogen = "nitrogen"
    phosphate = "phosphate"
    manure = "manure"


def percentage_filled(filling: Decimal, ceiling: Decimal | None) -> Decimal | None:
    """``filling / ceiling * 100``; 0 for a zero ceiling, ``None`` if unknown.

    Overage is not clamped.
    """
    if ceiling is None:
        return None
    if ceiling <= 0:
        return ZERO
    return filling / ceiling * HUNDRED


def round_kg(value: Decimal | None) -> Decimal | None:
    if value is None:
        return None
    return value.quantize(Decimal(1), rounding=ROUND_HALF_UP)


@dataclass(frozen=True, slots=True)
class NormFigure:
    ceiling: Decimal | None
    filling: Decimal
    ceiling_per_ha: Decimal | None = None
    source: str | None = None
    # farm level: filling of the fields whose ceiling is known
    compared_filling: Decimal | None = None

    @property
    def percentage_filled(self) -> Decimal | None:
        compared = self.filling if self.compared_filling is None else self.compared_filling
        return percentage_filled(compared, self.ceiling)

    @property
    def ceiling_rounded(self) -> Decimal | None:
        return round_kg(self.ceiling)

    @property
    def filling_rounded(self) -> Decimal:
        return round_kg(self.filling) or ZERO

    @property
    def compared_filling_rounded(self) -> Decimal | None:
        return round_kg(self.compared_filling)


@dataclass(frozen=True, slots=True)
class FieldNorms:
    field_id: str
    area_ha: Decimal | None
    norms: dict[NormKind, NormFigure]

    def __getitem__(self, kind: NormKind) -> NormFigure:
        return self.norms[kind]


@dataclass(frozen=True, slots=True)
class FarmNorms:
    norms: dict[NormKind, NormFigure]
    excluded_field_ids: dict[NormKind, list[str]] = field(default_factory=dict)

    def __getitem__(self, kind: NormKind) -> NormFigure:
        return self.norms[kind]


@dataclass(frozen=True, slots=True)
class NormsResult:
    year: int
    per_field: dict[str, FieldNorms]
    farm: FarmNorms
    issues: list[EngineIssue]


def filling_for(kind: NormKind, dose: Dose) -> Decimal:
    """Undiscounted filling of ``kind`` from a dose."""
    if kind == NormKind.nitrogen:
        return dose[Nutrient.nitrogen].working
    if kind == NormKind.phosphate:
        return dose[Nutrient.phosphate].working
    return dose.manure_nitrogen.working


def phosphate_filling(
    applications: Iterable[ApplicationDose],
    discount: PhosphateDiscount | None,
    ceiling: Decimal | None,
    area_ha: Decimal | None,
) -> Decimal:
    """P2O5 of one field counted against its phosphate ceiling.

    Fertilizers in a discount tier count at the tier's factor once, together,
    they supply at least the threshold per hectare.  Lower factors are used
    first and only up to ``ceiling``; whatever lies above it counts in full.
    Without a known ceiling or area nothing is discounted.
    """
    filling = ZERO
    discountable: list[tuple[Decimal, Decimal]] = []
    for item in applications:
        phosphate = item.totals[Nutrient.phosphate]
        tier = discount.tier_for(item.fertilizer_code) if discount is not None else None
        if tier is None:
            filling += phosphate
        else:
            discountable.append((tier.factor, phosphate))

    organic_rich = sum((phosphate for _, phosphate in discountable), ZERO)
    if (
        discount is None
        or ceiling is None
        or area_ha is None
        or area_ha <= 0
        or organic_rich / area_ha < discount.threshold_per_ha
    ):
        return filling + organic_rich

    remaining = ceiling
    for factor, phosphate in sorted(discountable, key=lambda entry: entry[0]):
        discounted = min(phosphate, max(remaining, ZERO))
        remaining -= discounted
        filling += discounted * factor + (phosphate - discounted)
    return filling


def _field_figure(
    kind: NormKind,
    field_context: FieldContext,
    farm: FarmContext,
    year: int,
    table: NormsTable,
    dose: Dose,
    applications: list[ApplicationDose],
) -> tuple[NormFigure, EngineIssue | None]:
    outcome = match_rule(table.tables()[kind.value], context_for_field(field_context, farm, year))
    ceiling: Decimal | None = None
    ceiling_per_ha: Decimal | None = None
    source: str | None = None
    issue: EngineIssue | None = None

    if not isinstance(outcome, RuleMatch):
        issue = EngineIssue(
            kind=IssueKind.undetermined_ceiling,
            message=f"no {kind.value} ceiling for field {field_context.id} in {year}: {outcome.reason}",
            field_id=field_context.id,
        )
    else:
        ceiling_per_ha = outcome.value
        source = outcome.description
        if field_context.has_area:
            assert field_context.area_ha is not None
            ceiling = outcome.value * field_context.area_ha
        else:
            issue = EngineIssue(
                kind=IssueKind.undetermined_ceiling,
                message=f"field {field_context.id} has no area; {kind.value} ceiling unknown",
                field_id=field_context.id,
            )

    if kind == NormKind.phosphate:
        filling = phosphate_filling(applications, table.phosphate_discount, ceiling, field_context.area_ha)
    else:
        filling = filling_for(kind, dose)

    figure = NormFigure(
        ceiling=ceiling,
        filling=filling,
        ceiling_per_ha=ceiling_per_ha,
        source=source,
    )
    return figure, issue


def _farm_figure(kind: NormKind, field_figures: Iterable[tuple[str, NormFigure]]) -> tuple[NormFigure, list[str]]:
    ceiling = ZERO
    filling = ZERO
    compared = ZERO
    determined = 0
    excluded: list[str] = []
    for field_id, figure in field_figures:
        filling += figure.filling
        if figure.ceiling is None:
            excluded.append(field_id)
            continue
        determined += 1
        ceiling += figure.ceiling
        compared += figure.filling
    return (
        NormFigure(
            ceiling=ceiling if determined else None,
            filling=filling,
            compared_filling=compared,
        ),
        excluded,
    )


def compute_norms(
    dose: DoseResult,
    fields: Iterable[FieldContext],
    farm: FarmContext,
    year: int,
    table: NormsTable,
) -> NormsResult:
    """Compare per-field and farm-level fillings against the year's ceilings."""
    if table.year != year or dose.year != year:
        raise YearMismatchError(
            f"norms for {year} need a {year} table and dose (got {table.year} and {dose.year})"
        )

    issues: list[EngineIssue] = []
    per_field: dict[str, FieldNorms] = {}
    for field_context in fields:
        field_dose = dose.per_field.get(field_context.id) or Dose(area_ha=field_context.area_ha)
        field_applications = [item for item in dose.applications if item.field_id == field_context.id]
        figures: dict[NormKind, NormFigure] = {}
        for kind in NormKind:
            figure, issue = _field_figure(
                kind, field_context, farm, year, table, field_dose, field_applications
            )
            figures[kind] = figure
            if issue is not None:
                issues.append(issue)
        per_field[field_context.id] = FieldNorms(
            field_id=field_context.id,
            area_ha=field_context.area_ha,
            norms=figures,
        )

    farm_figures: dict[NormKind, NormFigure] = {}
    excluded: dict[NormKind, list[str]] = {}
    for kind in NormKind:
        figure, excluded_ids = _farm_figure(
            kind,
            ((field_id, field_norms[kind]) for field_id, field_norms in per_field.items()),
        )
        farm_figures[kind] = figure
        if excluded_ids:
            excluded[kind] = excluded_ids

    return NormsResult(
        year=year,
        per_field=per_field,
        farm=FarmNorms(norms=farm_figures, excluded_field_ids=excluded),
        issues=issues,
    )
