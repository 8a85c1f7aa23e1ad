"""Stage state machine for guided blueprint authoring."""

from .stages import (
    PHASE_ORDER,
    STAGE_ORDER,
    STAGE_SPECS,
    StageRole,
    StageSpec,
    next_stage,
    phase_complete,
    spec_for,
)
from .progress import StageProgress, blueprint_status, detect_stage, progress
from .controller import StageController, StageTransitionError, TurnResult

__all__ = [
    # Stage table
    "PHASE_ORDER",
    "STAGE_ORDER",
    "STAGE_SPECS",
    "StageRole",
    "StageSpec",
    "next_stage",
    "phase_complete",
    "spec_for",
    # Progress
    "StageProgress",
    "blueprint_status",
    "detect_stage",
    "progress",
    # Controller
    "StageController",
    "StageTransitionError",
    "TurnResult",
]
