"""Pydantic data models for blueprint authoring."""

from .enums import (
    ArtifactKind,
    BlueprintPhase,
    BlueprintStatus,
    ExtractionFormat,
    Stage,
    StageAction,
    TurnOutcome,
)
from .blueprint import (
    BlueprintData,
    DeliverablesData,
    IdeationData,
    ImpactStatement,
    JourneyData,
    JourneyPhase,
    Milestone,
    RubricCriterion,
)
from .extraction import ExtractionConfig, ExtractionResult

__all__ = [
    # Enums
    "ArtifactKind",
    "BlueprintPhase",
    "BlueprintStatus",
    "ExtractionFormat",
    "Stage",
    "StageAction",
    "TurnOutcome",
    # Blueprint
    "BlueprintData",
    "IdeationData",
    "JourneyData",
    "DeliverablesData",
    "JourneyPhase",
    "Milestone",
    "RubricCriterion",
    "ImpactStatement",
    # Extraction
    "ExtractionConfig",
    "ExtractionResult",
]
