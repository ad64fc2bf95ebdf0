"""Dose and usage-norm reporting on top of the calculation engine.

Results are recomputed on every call: the underlying records can change at
any time, so nothing is cached here.
"""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from decimal import Decimal
from functools import lru_cache

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from nutrinorm.config import get_settings
from nutrinorm.engine import (
	Dose,
	DoseResult,
	EngineIssue,
	FieldContext,
	NormFigure,
	NormKind,
	NormsResult,
	Nutrient,
	NutrientDose,
	RegulationStore,
	Timeframe,
	compute_dose,
	compute_norms,
	load_regulation_store,
)
from nutrinorm.schemas.norms import (
	ApplicationDoseRead,
	DoseRead,
	DoseResponse,
	FarmNormsRead,
	FieldDoseRead,
	FieldNormsRead,
	IssueRead,
	NormFigureRead,
	NormsResponse,
	NutrientDoseRead,
	RegulationsResponse,
	RegulationYearRead,
	TimeframeQuery,
)
from nutrinorm.services.farm_data_service import FarmDataService

logger = structlog.get_logger("nutrinorm.norms")


def _float(value: Decimal | None) -> float | None:
	return float(value) if value is not None else None


class NormsService:
	def __init__(self, db: AsyncSession, store: RegulationStore):
		self.db = db
		self.store = store
		self.data = FarmDataService(db)

	async def farm_dose(self, farm_id: uuid.UUID, query: TimeframeQuery) -> DoseResponse:
		timeframe = self._timeframe(query)
		table = self.store.coefficient_table(query.year)
		fields = await self.data.get_field_contexts(farm_id)
		farm = await self.data.get_farm_context(farm_id, query.year)
		applications = await self.data.get_fertilizer_applications(timeframe, farm_id=farm_id)

		result = compute_dose(applications, fields, farm, query.year, table, timeframe)
		self._log_issues("dose", farm_id, query.year, result.issues)
		return self._to_dose_response(farm_id, result, fields)

	async def field_dose(self, field_id: uuid.UUID, query: TimeframeQuery) -> DoseResponse:
		timeframe = self._timeframe(query)
		table = self.store.coefficient_table(query.year)
		field = await self.data.get_field_context(field_id)
		farm_id = uuid.UUID(field.farm_id)
		farm = await self.data.get_farm_context(farm_id, query.year)
		applications = await self.data.get_fertilizer_applications(timeframe, field_id=field_id)

		result = compute_dose(applications, [field], farm, query.year, table, timeframe)
		self._log_issues("dose", farm_id, query.year, result.issues)
		return self._to_dose_response(farm_id, result, [field])

	async def farm_norms(self, farm_id: uuid.UUID, year: int) -> NormsResponse:
		coefficients = self.store.coefficient_table(year)
		norms_table = self.store.norms_table(year)
		timeframe = Timeframe.calendar_year(year)
		fields = await self.data.get_field_contexts(farm_id)
		farm = await self.data.get_farm_context(farm_id, year)
		applications = await self.data.get_fertilizer_applications(timeframe, farm_id=farm_id)

		dose = compute_dose(applications, fields, farm, year, coefficients, timeframe)
		norms = compute_norms(dose, fields, farm, year, norms_table)
		issues = [*dose.issues, *norms.issues]
		self._log_issues("norms", farm_id, year, issues)
		return self._to_norms_response(farm_id, norms, issues)

	def regulations(self) -> RegulationsResponse:
		items: list[RegulationYearRead] = []
		for year in self.store.years:
			coefficients = self.store.coefficient_tables.get(year)
			norms = self.store.norms_tables.get(year)
			items.append(
				RegulationYearRead(
					year=year,
					coefficient_rules=len(coefficients) if coefficients is not None else 0,
					nitrogen_rules=len(norms.nitrogen) if norms is not None else 0,
					phosphate_rules=len(norms.phosphate) if norms is not None else 0,
					manure_rules=len(norms.manure) if norms is not None else 0,
				)
			)
		return RegulationsResponse(years=items)

	@staticmethod
	def _timeframe(query: TimeframeQuery) -> Timeframe:
		if query.start is not None and query.end is not None:
			return Timeframe(start=query.start, end=query.end)
		return Timeframe.calendar_year(query.year)

	@staticmethod
	def _log_issues(kind: str, farm_id: uuid.UUID, year: int, issues: list[EngineIssue]) -> None:
		for issue in issues:
			logger.warning(
				"calculation_issue",
				calculation=kind,
				farm_id=str(farm_id),
				year=year,
				issue=issue.kind.value,
				record_id=issue.record_id,
				field_id=issue.field_id,
				detail=issue.message,
			)

	@staticmethod
	def _to_issue(issue: EngineIssue) -> IssueRead:
		return IssueRead(
			kind=issue.kind.value,
			message=issue.message,
			record_id=issue.record_id,
			field_id=issue.field_id,
		)

	@staticmethod
	def _to_nutrient(value: NutrientDose) -> NutrientDoseRead:
		return NutrientDoseRead(
			total_kg=float(value.total),
			working_kg=float(value.working),
			total_kg_per_ha=_float(value.total_per_ha),
			working_kg_per_ha=_float(value.working_per_ha),
		)

	@classmethod
	def _dose_fields(cls, dose: Dose) -> dict[str, object]:
		return {
			"area_ha": _float(dose.area_ha),
			"nitrogen": cls._to_nutrient(dose[Nutrient.nitrogen]),
			"phosphate": cls._to_nutrient(dose[Nutrient.phosphate]),
			"potassium": cls._to_nutrient(dose[Nutrient.potassium]),
			"manure_nitrogen": cls._to_nutrient(dose.manure_nitrogen),
		}

	@classmethod
	def _to_dose_response(
		cls,
		farm_id: uuid.UUID,
		result: DoseResult,
		fields: list[FieldContext],
	) -> DoseResponse:
		return DoseResponse(
			farm_id=farm_id,
			year=result.year,
			start=result.timeframe.start,
			end=result.timeframe.end,
			generated_at=datetime.now(UTC),
			farm=DoseRead(**cls._dose_fields(result.farm)),
			fields=[
				FieldDoseRead(field_id=uuid.UUID(field.id), **cls._dose_fields(result.per_field[field.id]))
				for field in fields
			],
			applications=[
				ApplicationDoseRead(
					application_id=uuid.UUID(item.application_id),
					field_id=uuid.UUID(item.field_id),
					coefficient=float(item.coefficient),
					working_nitrogen_kg=float(item.working_nitrogen),
					is_manure=item.is_manure,
					matched=item.matched,
					explanation=item.explanation,
				)
				for item in result.applications
			],
			issues=[cls._to_issue(issue) for issue in result.issues],
		)

	@staticmethod
	def _to_figure(figure: NormFigure, *, rounded: bool = False) -> NormFigureRead:
		ceiling = figure.ceiling_rounded if rounded else figure.ceiling
		filling = figure.filling_rounded if rounded else figure.filling
		compared = figure.compared_filling_rounded if rounded else figure.compared_filling
		return NormFigureRead(
			ceiling_kg=_float(ceiling),
			ceiling_kg_per_ha=_float(figure.ceiling_per_ha),
			filling_kg=float(filling),
			compared_filling_kg=_float(compared),
			percentage_filled=_float(figure.percentage_filled),
			source=figure.source,
		)

	@classmethod
	def _to_norms_response(
		cls,
		farm_id: uuid.UUID,
		result: NormsResult,
		issues: list[EngineIssue],
	) -> NormsResponse:
		return NormsResponse(
			farm_id=farm_id,
			year=result.year,
			generated_at=datetime.now(UTC),
			farm=FarmNormsRead(
				nitrogen=cls._to_figure(result.farm[NormKind.nitrogen], rounded=True),
				phosphate=cls._to_figure(result.farm[NormKind.phosphate], rounded=True),
				manure=cls._to_figure(result.farm[NormKind.manure], rounded=True),
				excluded_field_ids={
					kind.value: [uuid.UUID(field_id) for field_id in field_ids]
					for kind, field_ids in result.farm.excluded_field_ids.items()
				},
			),
			fields=[
				FieldNormsRead(
					field_id=uuid.UUID(field_id),
					area_ha=_float(field_norms.area_ha),
					nitrogen=cls._to_figure(field_norms[NormKind.nitrogen]),
					phosphate=cls._to_figure(field_norms[NormKind.phosphate]),
					manure=cls._to_figure(field_norms[NormKind.manure]),
				)
				for field_id, field_norms in result.per_field.items()
			],
			issues=[cls._to_issue(issue) for issue in issues],
		)


@lru_cache
def load_configured_store() -> RegulationStore:
	"""Regulation tables for the configured years (all built-in years by default)."""
	years = get_settings().regulation_years
	return load_regulation_store(years or None)
