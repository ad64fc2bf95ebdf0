from __future__ import annotations

from datetime import date
from decimal import Decimal

import pytest

from conftest import make_application, make_farm, make_field
from nutrinorm.engine import (
	IssueKind,
	LandUse,
	Nutrient,
	RegulationStore,
	Timeframe,
	YearMismatchError,
	compute_dose,
)


def _dose(store: RegulationStore, applications, fields, farm, year: int = 2025, timeframe=None):
	return compute_dose(applications, fields, farm, year, store.coefficient_table(year), timeframe)


def test_grazing_slurry_on_two_hectares(store: RegulationStore) -> None:
	# 10 t slurry at 10 kg N/t on a 2 ha field of a grazing farm
	result = _dose(store, [make_application()], [make_field()], make_farm(grazing=True))

	nitrogen = result.per_field["field-1"][Nutrient.nitrogen]
	assert nitrogen.total == Decimal(100)
	assert nitrogen.working == Decimal(45)
	assert nitrogen.total_per_ha == Decimal(50)
	assert nitrogen.working_per_ha == Decimal("22.5")
	assert result.issues == []

	explanation = result.applications[0].explanation
	assert explanation.startswith("Werkingscoefficient: 45% - Drijfmest van graasdieren")
	assert explanation.endswith("Op bedrijf met beweiding")


def test_same_slurry_without_grazing(store: RegulationStore) -> None:
	result = _dose(store, [make_application()], [make_field()], make_farm(grazing=False))
	assert result.farm[Nutrient.nitrogen].working == Decimal(60)


def test_phosphate_and_potassium_count_in_full(store: RegulationStore) -> None:
	application = make_application(phosphate="4", potassium="8")
	result = _dose(store, [application], [make_field()], make_farm())

	phosphate = result.farm[Nutrient.phosphate]
	potassium = result.farm[Nutrient.potassium]
	assert phosphate.total == phosphate.working == Decimal(40)
	assert potassium.total == potassium.working == Decimal(80)


def test_working_never_exceeds_total(store: RegulationStore) -> None:
	applications = [
		make_application("a", fertilizer_code="14"),
		make_application("b", fertilizer_code="115", on_farm_produced=None),
		make_application("c", fertilizer_code="111", on_farm_produced=None),
		make_application("d", fertilizer_code="999"),
	]
	result = _dose(store, applications, [make_field()], make_farm())

	for nutrient in Nutrient:
		assert result.farm[nutrient].working <= result.farm[nutrient].total
	assert result.farm.manure_nitrogen.working <= result.farm[Nutrient.nitrogen].working


def test_farm_dose_is_sum_of_field_doses(store: RegulationStore) -> None:
	fields = [
		make_field("field-1", area_ha="2"),
		make_field("field-2", area_ha="3", soil_type="klei", land_use=None),
		make_field("field-3", area_ha="0"),
	]
	applications = [
		make_application("a", field_id="field-1"),
		make_application("b", field_id="field-2", fertilizer_code="46", nitrogen="5"),
		make_application("c", field_id="field-3", fertilizer_code="115", on_farm_produced=None),
	]
	result = _dose(store, applications, fields, make_farm())

	for nutrient in Nutrient:
		assert result.farm[nutrient].total == sum(
			dose[nutrient].total for dose in result.per_field.values()
		)
		assert result.farm[nutrient].working == sum(
			dose[nutrient].working for dose in result.per_field.values()
		)
	# only fields with a positive area count towards the farm area
	assert result.farm.area_ha == Decimal(5)
	assert result.per_field["field-3"][Nutrient.nitrogen].total_per_ha is None


def test_fields_without_applications_get_zero_dose(store: RegulationStore) -> None:
	result = _dose(store, [], [make_field("field-1"), make_field("field-2")], make_farm())

	assert set(result.per_field) == {"field-1", "field-2"}
	assert result.per_field["field-2"][Nutrient.nitrogen].working == 0
	assert result.per_field["field-2"][Nutrient.nitrogen].working_per_ha == 0


def test_manure_nitrogen_is_tracked_separately(store: RegulationStore) -> None:
	applications = [
		make_application("slurry"),
		make_application("mineral", fertilizer_code="115", on_farm_produced=None, nitrogen="27"),
	]
	result = _dose(store, applications, [make_field()], make_farm())

	assert result.farm.manure_nitrogen.total == Decimal(100)
	assert result.farm.manure_nitrogen.working == Decimal(45)
	assert result.farm[Nutrient.nitrogen].working == Decimal(45) + Decimal(270)


def test_unmatched_application_keeps_total_with_zero_working(store: RegulationStore) -> None:
	result = _dose(store, [make_application(fertilizer_code="999")], [make_field()], make_farm())

	assert result.farm[Nutrient.nitrogen].total == Decimal(100)
	assert result.farm[Nutrient.nitrogen].working == 0
	assert [issue.kind for issue in result.issues] == [IssueKind.no_match]
	assert result.issues[0].record_id == "app-1"
	assert result.applications[0].matched is False


def test_ambiguous_rule_is_reported_but_counted(store: RegulationStore) -> None:
	result = _dose(store, [make_application(fertilizer_code="30")], [make_field()], make_farm())

	assert [issue.kind for issue in result.issues] == [IssueKind.rule_ambiguity]
	assert result.farm[Nutrient.nitrogen].working == Decimal(60)


@pytest.mark.parametrize(
	"application",
	[
		make_application(field_id=None),
		make_application(field_id="elsewhere"),
		make_application(quantity="-1"),
		make_application(nitrogen="-2"),
	],
)
def test_invalid_records_are_excluded(store: RegulationStore, application) -> None:
	valid = make_application("valid")
	result = _dose(store, [application, valid], [make_field()], make_farm())

	assert [issue.kind for issue in result.issues] == [IssueKind.invalid_record]
	assert result.farm[Nutrient.nitrogen].total == Decimal(100)
	assert [item.application_id for item in result.applications] == ["valid"]


def test_timeframe_bounds_are_inclusive(store: RegulationStore) -> None:
	applications = [
		make_application("before", applied_on=date(2025, 2, 28)),
		make_application("start", applied_on=date(2025, 3, 1)),
		make_application("end", applied_on=date(2025, 3, 31)),
		make_application("after", applied_on=date(2025, 4, 1)),
	]
	window = Timeframe(start=date(2025, 3, 1), end=date(2025, 3, 31))
	result = _dose(store, applications, [make_field()], make_farm(), timeframe=window)

	assert [item.application_id for item in result.applications] == ["start", "end"]
	assert result.timeframe == window


def test_default_timeframe_is_calendar_year(store: RegulationStore) -> None:
	applications = [
		make_application("old", applied_on=date(2024, 12, 31)),
		make_application("new", applied_on=date(2025, 12, 31)),
	]
	result = _dose(store, applications, [make_field()], make_farm())
	assert [item.application_id for item in result.applications] == ["new"]


def test_repeated_calculation_gives_identical_result(store: RegulationStore) -> None:
	applications = [make_application("a"), make_application("b", fertilizer_code="30")]
	first = _dose(store, applications, [make_field()], make_farm())
	second = _dose(store, applications, [make_field()], make_farm())
	assert first == second


def test_table_year_must_match(store: RegulationStore) -> None:
	with pytest.raises(YearMismatchError):
		compute_dose([], [make_field()], make_farm(), 2026, store.coefficient_table(2025))


def test_inverted_timeframe_is_rejected() -> None:
	with pytest.raises(ValueError):
		Timeframe(start=date(2025, 5, 1), end=date(2025, 4, 1))


@pytest.mark.parametrize(("grazing", "working"), [(True, "45"), (False, "60")])
def test_clay_grassland_slurry_applied_in_june(store: RegulationStore, grazing: bool, working: str) -> None:
	field = make_field(soil_type="klei", land_use=LandUse.grassland)
	application = make_application(applied_on=date(2025, 6, 1), quantity="1", nitrogen="100")
	result = _dose(store, [application], [field], make_farm(grazing=grazing))

	nitrogen = result.farm[Nutrient.nitrogen]
	assert nitrogen.total == Decimal(100)
	assert nitrogen.working == Decimal(working)
	assert nitrogen.working_per_ha == Decimal(working) / 2
