"""Fixed stage table for the authoring state machine.

Stage Flow:
  IDEATION      INITIATOR → BIG_IDEA → EQ → CHALLENGE → CLARIFIER
  JOURNEY       INITIATOR → PHASES → ACTIVITIES → RESOURCES* → CLARIFIER
  DELIVERABLES  INITIATOR → MILESTONES → RUBRIC → IMPACT → CLARIFIER
  PUBLISH       (terminal)

* optional, may be skipped

Every data-collecting stage maps to exactly one blueprint field of its own
phase; the mapping is total and nothing else writes the blueprint.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

from pbl_blueprint.models import ArtifactKind, BlueprintData, BlueprintPhase, Stage


class StageRole(str, Enum):
    """Role a stage plays inside its phase."""

    INITIATOR = "initiator"
    DATA = "data"
    CLARIFIER = "clarifier"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class StageSpec:
    """Static description of one stage."""
    stage: Stage
    phase: BlueprintPhase
    role: StageRole
    artifact: Optional[ArtifactKind] = None
    # (section, field) on BlueprintData, e.g. ("journey", "phases")
    field_path: Optional[tuple[str, str]] = None
    optional: bool = False
    free_text: bool = False

    @property
    def is_data(self) -> bool:
        return self.role == StageRole.DATA


_SPECS: tuple[StageSpec, ...] = (
    StageSpec(Stage.IDEATION_INITIATOR, BlueprintPhase.IDEATION, StageRole.INITIATOR),
    StageSpec(
        Stage.IDEATION_BIG_IDEA, BlueprintPhase.IDEATION, StageRole.DATA,
        ArtifactKind.IDEA, ("ideation", "big_idea"), free_text=True,
    ),
    StageSpec(
        Stage.IDEATION_EQ, BlueprintPhase.IDEATION, StageRole.DATA,
        ArtifactKind.QUESTION, ("ideation", "essential_question"), free_text=True,
    ),
    StageSpec(
        Stage.IDEATION_CHALLENGE, BlueprintPhase.IDEATION, StageRole.DATA,
        ArtifactKind.IDEA, ("ideation", "challenge"), free_text=True,
    ),
    StageSpec(Stage.IDEATION_CLARIFIER, BlueprintPhase.IDEATION, StageRole.CLARIFIER),

    StageSpec(Stage.JOURNEY_INITIATOR, BlueprintPhase.JOURNEY, StageRole.INITIATOR),
    StageSpec(
        Stage.JOURNEY_PHASES, BlueprintPhase.JOURNEY, StageRole.DATA,
        ArtifactKind.PHASES, ("journey", "phases"),
    ),
    StageSpec(
        Stage.JOURNEY_ACTIVITIES, BlueprintPhase.JOURNEY, StageRole.DATA,
        ArtifactKind.ACTIVITIES, ("journey", "activities"),
    ),
    StageSpec(
        Stage.JOURNEY_RESOURCES, BlueprintPhase.JOURNEY, StageRole.DATA,
        ArtifactKind.RESOURCES, ("journey", "resources"), optional=True,
    ),
    StageSpec(Stage.JOURNEY_CLARIFIER, BlueprintPhase.JOURNEY, StageRole.CLARIFIER),

    StageSpec(Stage.DELIVERABLES_INITIATOR, BlueprintPhase.DELIVERABLES, StageRole.INITIATOR),
    StageSpec(
        Stage.DELIVER_MILESTONES, BlueprintPhase.DELIVERABLES, StageRole.DATA,
        ArtifactKind.MILESTONES, ("deliverables", "milestones"),
    ),
    StageSpec(
        Stage.DELIVER_RUBRIC, BlueprintPhase.DELIVERABLES, StageRole.DATA,
        ArtifactKind.RUBRIC, ("deliverables", "rubric"),
    ),
    StageSpec(
        Stage.DELIVER_IMPACT, BlueprintPhase.DELIVERABLES, StageRole.DATA,
        ArtifactKind.IMPACT, ("deliverables", "impact"), free_text=True,
    ),
    StageSpec(Stage.DELIVERABLES_CLARIFIER, BlueprintPhase.DELIVERABLES, StageRole.CLARIFIER),

    StageSpec(Stage.PUBLISH, BlueprintPhase.PUBLISH, StageRole.TERMINAL),
)

STAGE_SPECS: dict[Stage, StageSpec] = {spec.stage: spec for spec in _SPECS}
STAGE_ORDER: tuple[Stage, ...] = tuple(spec.stage for spec in _SPECS)

PHASE_ORDER: tuple[BlueprintPhase, ...] = (
    BlueprintPhase.IDEATION,
    BlueprintPhase.JOURNEY,
    BlueprintPhase.DELIVERABLES,
)


def spec_for(stage: Stage) -> StageSpec:
    return STAGE_SPECS[Stage(stage)]


def stage_index(stage: Stage) -> int:
    return STAGE_ORDER.index(Stage(stage))


def next_stage(stage: Stage) -> Optional[Stage]:
    """Next stage in declared order, or None after PUBLISH."""
    index = stage_index(stage)
    if index == len(STAGE_ORDER) - 1:
        return None
    return STAGE_ORDER[index + 1]


def stages_in_phase(phase: BlueprintPhase) -> tuple[Stage, ...]:
    return tuple(spec.stage for spec in _SPECS if spec.phase == phase)


def data_stages(phase: BlueprintPhase) -> tuple[Stage, ...]:
    return tuple(spec.stage for spec in _SPECS if spec.phase == phase and spec.is_data)


def first_data_stage(phase: BlueprintPhase) -> Stage:
    return data_stages(phase)[0]


def initiator_for(phase: BlueprintPhase) -> Stage:
    return next(s.stage for s in _SPECS if s.phase == phase and s.role == StageRole.INITIATOR)


def clarifier_for(phase: BlueprintPhase) -> Stage:
    return next(s.stage for s in _SPECS if s.phase == phase and s.role == StageRole.CLARIFIER)


# =============================================================================
# Blueprint Field Access
# =============================================================================

def read_field(blueprint: BlueprintData, stage: Stage) -> Any:
    """Current blueprint value owned by a data stage."""
    section, name = spec_for(stage).field_path
    return getattr(getattr(blueprint, section), name)


def write_field(blueprint: BlueprintData, stage: Stage, value: Any) -> BlueprintData:
    """New blueprint with one data stage's field replaced."""
    section, name = spec_for(stage).field_path
    updated_section = getattr(blueprint, section).model_copy(update={name: value})
    return blueprint.model_copy(update={section: updated_section})


def has_value(blueprint: BlueprintData, stage: Stage) -> bool:
    value = read_field(blueprint, stage)
    if hasattr(value, "is_empty"):
        return not value.is_empty
    return bool(value)


def phase_complete(blueprint: BlueprintData, phase: BlueprintPhase) -> bool:
    """All required data stages of the phase hold non-empty values."""
    return all(
        has_value(blueprint, stage)
        for stage in data_stages(phase)
        if not spec_for(stage).optional
    )
