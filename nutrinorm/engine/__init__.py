"""Nutrient-norm and dose calculation engine.

Pure, synchronous functions over plain input records and immutable,
year-versioned rule tables::

    store = load_regulation_store()
    dose = compute_dose(applications, fields, farm, 2025, store.coefficient_table(2025))
    norms = compute_norms(dose, fields, farm, 2025, store.norms_table(2025))
"""

from nutrinorm.engine.dose import ApplicationDose, Dose, DoseResult, NutrientDose, compute_dose
from nutrinorm.engine.errors import (
    EngineIssue,
    IssueKind,
    NormEngineError,
    TableDefinitionError,
    UnsupportedYearError,
    YearMismatchError,
)
from nutrinorm.engine.matcher import NoMatch, RuleMatch, match, match_rule
from nutrinorm.engine.norms import FarmNorms, FieldNorms, NormFigure, NormKind, NormsResult, compute_norms
from nutrinorm.engine.records import (
    FarmContext,
    FertilizerApplication,
    FieldContext,
    LandUse,
    Nutrient,
    Timeframe,
)
from nutrinorm.engine.rules import (
    MatchContext,
    NormsTable,
    PhosphateDiscount,
    Rule,
    RuleTable,
    SubRule,
    TableKind,
)
from nutrinorm.engine.store import RegulationStore, build_store, load_regulation_store

__all__ = [
    "ApplicationDose",
    "Dose",
    "DoseResult",
    "EngineIssue",
    "FarmContext",
    "FarmNorms",
    "FertilizerApplication",
    "FieldContext",
    "FieldNorms",
    "IssueKind",
    "LandUse",
    "MatchContext",
    "NoMatch",
    "NormEngineError",
    "NormFigure",
    "NormKind",
    "NormsResult",
    "NormsTable",
    "Nutrient",
    "PhosphateDiscount",
    "NutrientDose",
    "RegulationStore",
    "Rule",
    "RuleMatch",
    "RuleTable",
    "SubRule",
    "TableDefinitionError",
    "TableKind",
    "Timeframe",
    "UnsupportedYearError",
    "YearMismatchError",
    "build_store",
    "compute_dose",
    "compute_norms",
    "load_regulation_store",
    "match",
    "match_rule",
]
