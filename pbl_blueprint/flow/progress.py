"""Progress, status and resume position for a blueprint."""

from pydantic import BaseModel, ConfigDict, Field

from pbl_blueprint.flow.stages import (
    PHASE_ORDER,
    STAGE_ORDER,
    clarifier_for,
    data_stages,
    has_value,
    initiator_for,
    spec_for,
    stage_index,
    stages_in_phase,
)
from pbl_blueprint.models import BlueprintData, BlueprintPhase, BlueprintStatus, Stage


class StageProgress(BaseModel):
    """Where a stage sits in its phase and in the whole flow."""

    model_config = ConfigDict(frozen=True)

    stage: Stage
    phase: BlueprintPhase
    step_number: int = Field(..., ge=1, description="1-based position inside the phase")
    steps_in_phase: int = Field(..., ge=1)
    percentage: int = Field(..., ge=0, le=100, description="Progress through the phase")
    overall_percentage: int = Field(..., ge=0, le=100, description="Progress through all stages")


def progress(stage: Stage) -> StageProgress:
    stage = Stage(stage)
    phase = spec_for(stage).phase
    phase_stages = stages_in_phase(phase)
    step_number = phase_stages.index(stage) + 1

    return StageProgress(
        stage=stage,
        phase=phase,
        step_number=step_number,
        steps_in_phase=len(phase_stages),
        percentage=round(step_number / len(phase_stages) * 100),
        overall_percentage=round(stage_index(stage) / (len(STAGE_ORDER) - 1) * 100),
    )


def _required_stages() -> list[Stage]:
    return [
        stage
        for phase in PHASE_ORDER
        for stage in data_stages(phase)
        if not spec_for(stage).optional
    ]


def blueprint_status(blueprint: BlueprintData) -> BlueprintStatus:
    """draft when nothing is filled, ready when every required field is."""
    filled = [has_value(blueprint, stage) for stage in _required_stages()]
    if all(filled):
        return BlueprintStatus.READY
    if any(filled):
        return BlueprintStatus.IN_PROGRESS
    return BlueprintStatus.DRAFT


def detect_stage(blueprint: BlueprintData) -> Stage:
    """Stage a conversation over this blueprint should resume at.

    The first phase with missing required data decides: its initiator when
    the phase holds no data yet, else its first missing data stage. A fully
    filled blueprint resumes at the last clarifier.
    """
    for phase in PHASE_ORDER:
        stages = data_stages(phase)
        missing = [
            stage for stage in stages
            if not spec_for(stage).optional and not has_value(blueprint, stage)
        ]
        if not missing:
            continue
        if not any(has_value(blueprint, stage) for stage in stages):
            return initiator_for(phase)
        return missing[0]
    return clarifier_for(PHASE_ORDER[-1])
