"""Category modules package."""

from salamat.categories.base import CategoryModule, CategoryRegistry
from salamat.categories.information_seeking import InformationSeekingModule
from salamat.categories.medication_queries import MedicationQueriesModule
from salamat.categories.placeholders import (
    ChronicDiseaseManagementModule,
    DiagnosticResultInterpretationModule,
    PreventiveCareWellnessModule,
)
from salamat.categories.symptom_reporting import SymptomReportingModule
from salamat.config.llm_config import ModelProvider, get_chat_model


def build_default_registry(model_provider: ModelProvider = get_chat_model) -> CategoryRegistry:
    """Register one module per medical intent."""
    registry = CategoryRegistry()
    for module in (
        SymptomReportingModule(model_provider),
        MedicationQueriesModule(model_provider),
        InformationSeekingModule(model_provider),
        ChronicDiseaseManagementModule(model_provider),
        DiagnosticResultInterpretationModule(model_provider),
        PreventiveCareWellnessModule(model_provider),
    ):
        registry.register(module.intent, module)
    return registry


__all__ = [
    "CategoryModule",
    "CategoryRegistry",
    "SymptomReportingModule",
    "MedicationQueriesModule",
    "InformationSeekingModule",
    "ChronicDiseaseManagementModule",
    "DiagnosticResultInterpretationModule",
    "PreventiveCareWellnessModule",
    "build_default_registry",
]
