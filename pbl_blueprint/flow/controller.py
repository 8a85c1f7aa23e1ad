"""StageController - finite-state machine over blueprint authoring stages.

Philosophy: "Bad user text is a turn, bad caller logic is an error."

- Low-confidence extraction is recoverable: the stage stays put and the
  extraction warnings come back as guidance (TurnOutcome.REPROMPT)
- Illegal transitions (continue outside a clarifier, editing an unreached
  stage, ...) raise StageTransitionError

One controller owns one BlueprintData. Operations are strictly sequential;
each one finishes extraction, merge and transition before returning.
"""

from typing import Optional

import structlog
from pydantic import BaseModel, ConfigDict, Field

from pbl_blueprint.config.prompts import (
    EDIT_TEMPLATE,
    reprompt,
    stage_prompt,
    transition_message,
)
from pbl_blueprint.config.settings import Settings, get_settings
from pbl_blueprint.extraction import ContentExtractor, render_items
from pbl_blueprint.flow.progress import detect_stage
from pbl_blueprint.flow.stages import (
    PHASE_ORDER,
    StageRole,
    clarifier_for,
    first_data_stage,
    has_value,
    initiator_for,
    next_stage,
    phase_complete,
    read_field,
    spec_for,
    stage_index,
    write_field,
)
from pbl_blueprint.models import (
    BlueprintData,
    BlueprintPhase,
    ExtractionResult,
    Stage,
    StageAction,
    TurnOutcome,
)

logger = structlog.get_logger(__name__)


class StageTransitionError(Exception):
    """Caller requested a transition the current stage does not allow."""

    def __init__(self, action: StageAction, stage: Stage, reason: str):
        self.action = action
        self.stage = stage
        self.reason = reason
        super().__init__(f"Cannot {action.value} from {stage.value}: {reason}")


class TurnResult(BaseModel):
    """What one controller operation did."""

    model_config = ConfigDict(frozen=True)

    outcome: TurnOutcome = Field(..., description="What happened this turn")
    stage: Stage = Field(..., description="Active stage after the turn")
    previous_stage: Stage = Field(..., description="Active stage before the turn")
    extraction: Optional[ExtractionResult] = Field(
        None, description="Extraction behind a submit, if any"
    )
    warnings: tuple[str, ...] = Field(default=(), description="User-facing guidance")
    prompt: str = Field(default="", description="What to ask the educator next")
    editable_default: Optional[str] = Field(
        None, description="Pre-filled text when the stage already holds a value"
    )
    blueprint: BlueprintData = Field(..., description="Blueprint snapshot after the turn")


class StageController:
    """Guides one blueprint through the authoring stages."""

    def __init__(
        self,
        extractor: Optional[ContentExtractor] = None,
        blueprint: Optional[BlueprintData] = None,
        stage: Stage = Stage.IDEATION_INITIATOR,
        settings: Optional[Settings] = None,
        acceptance_floors: Optional[dict[Stage, float]] = None,
    ):
        settings = settings or get_settings()
        self._extractor = extractor or ContentExtractor()
        self._blueprint = blueprint or BlueprintData()
        self._stage = Stage(stage)
        self._default_floor = settings.acceptance_floor
        self._free_text_floor = settings.free_text_acceptance_floor
        self._floors = dict(acceptance_floors or {})
        # Clarifier to return to once an edited stage is accepted
        self._return_to: Optional[Stage] = None
        self._passed_clarifiers: set[Stage] = self._start_clarifiers(self._stage, self._blueprint)

    @staticmethod
    def _start_clarifiers(stage: Stage, blueprint: BlueprintData) -> set[Stage]:
        """Clarifiers already behind a starting stage.

        Raises:
            ValueError: If the blueprint lacks data the starting stage relies on.
        """
        spec = spec_for(stage)
        passed = set()
        for phase in PHASE_ORDER:
            if phase == spec.phase:
                break
            if not phase_complete(blueprint, phase):
                logger.error("invalid_start_stage", stage=stage.value, incomplete_phase=phase.value)
                raise ValueError(f"Cannot start at {stage.value}: {phase.value} data is incomplete")
            passed.add(clarifier_for(phase))

        if spec.role == StageRole.CLARIFIER and not phase_complete(blueprint, spec.phase):
            logger.error("invalid_start_stage", stage=stage.value, incomplete_phase=spec.phase.value)
            raise ValueError(f"Cannot start at {stage.value}: {spec.phase.value} data is incomplete")
        return passed

    @classmethod
    def resume(
        cls,
        blueprint: BlueprintData,
        extractor: Optional[ContentExtractor] = None,
        settings: Optional[Settings] = None,
    ) -> "StageController":
        """Controller positioned at the first stage whose data is missing.

        Clarifiers of phases before the resumed one count as passed.
        """
        stage = detect_stage(blueprint)
        controller = cls(extractor, blueprint=blueprint, stage=stage, settings=settings)
        logger.info("controller_resumed", stage=stage.value)
        return controller

    # =========================================================================
    # Read-only views
    # =========================================================================

    @property
    def stage(self) -> Stage:
        return self._stage

    @property
    def phase(self) -> BlueprintPhase:
        return spec_for(self._stage).phase

    @property
    def extractor(self) -> ContentExtractor:
        return self._extractor

    @property
    def is_editing(self) -> bool:
        return self._return_to is not None

    @property
    def editable_default(self) -> Optional[str]:
        """Current value of the active data stage rendered as text."""
        spec = spec_for(self._stage)
        if not spec.is_data or not has_value(self._blueprint, self._stage):
            return None
        return render_items(spec.artifact, read_field(self._blueprint, self._stage))

    def snapshot(self) -> BlueprintData:
        """Immutable view of the blueprint."""
        return self._blueprint

    def acceptance_floor(self, stage: Optional[Stage] = None) -> float:
        stage = Stage(stage or self._stage)
        if stage in self._floors:
            return self._floors[stage]
        return self._free_text_floor if spec_for(stage).free_text else self._default_floor

    def current_prompt(self) -> str:
        return stage_prompt(self._stage, self._blueprint)

    def allowed_actions(self) -> list[StageAction]:
        """Actions the active stage accepts."""
        spec = spec_for(self._stage)
        if spec.role == StageRole.INITIATOR:
            return [StageAction.BEGIN]
        if spec.role == StageRole.DATA:
            actions = [StageAction.SUBMIT]
            if spec.optional:
                actions.append(StageAction.SKIP)
            actions.append(StageAction.RESTART_PHASE)
            return actions
        if spec.role == StageRole.CLARIFIER:
            return [StageAction.CONTINUE, StageAction.EDIT, StageAction.RESTART_PHASE]
        return []

    # =========================================================================
    # Transitions
    # =========================================================================

    def begin(self) -> TurnResult:
        """Leave a phase initiator for the phase's first data stage."""
        self._require_role(StageAction.BEGIN, StageRole.INITIATOR)
        previous = self._stage
        target = first_data_stage(self.phase)
        self._check_target(StageAction.BEGIN, target, self._blueprint, self._passed_clarifiers)
        self._enter(target)
        return self._result(TurnOutcome.ADVANCED, previous, prompt=self.current_prompt())

    def submit(self, text: str) -> TurnResult:
        """Extract the active stage's artifact from text and advance if confident.

        Returns:
            TurnResult with outcome ACCEPTED, or REPROMPT when confidence is
            below the stage's acceptance floor (blueprint untouched).

        Raises:
            StageTransitionError: If the active stage does not collect data, or
                the accepted value cannot lead to the next stage. The blueprint
                is unchanged in both cases.
        """
        self._require_role(StageAction.SUBMIT, StageRole.DATA)
        previous = self._stage
        spec = spec_for(previous)

        extraction = self._extractor.extract(spec.artifact, text)
        floor = self.acceptance_floor(previous)

        if extraction.confidence < floor:
            logger.info(
                "submission_reprompt",
                stage=previous.value,
                confidence=extraction.confidence,
                floor=floor,
                format=extraction.format.value,
            )
            return self._result(
                TurnOutcome.REPROMPT,
                previous,
                extraction=extraction,
                warnings=extraction.warnings,
                prompt=reprompt(previous, self._blueprint, extraction.warnings),
                editable_default=self.editable_default,
            )

        target = self._after_data_stage(previous)
        candidate = write_field(self._blueprint, previous, extraction.items)
        self._check_target(StageAction.SUBMIT, target, candidate, self._passed_clarifiers)

        self._blueprint = candidate
        self._return_to = None
        logger.info(
            "submission_accepted",
            stage=previous.value,
            confidence=extraction.confidence,
            format=extraction.format.value,
            items=extraction.count,
        )
        self._enter(target)
        return self._result(
            TurnOutcome.ACCEPTED,
            previous,
            extraction=extraction,
            warnings=extraction.warnings,
            prompt=transition_message(previous, self._stage, self._blueprint),
        )

    def skip(self) -> TurnResult:
        """Advance past an optional stage without extraction."""
        self._require_role(StageAction.SKIP, StageRole.DATA)
        previous = self._stage
        if not spec_for(previous).optional:
            self._violation(StageAction.SKIP, "stage is required")

        target = self._after_data_stage(previous)
        self._check_target(StageAction.SKIP, target, self._blueprint, self._passed_clarifiers)
        self._return_to = None
        self._enter(target)
        logger.info("stage_skipped", stage=previous.value)
        return self._result(TurnOutcome.SKIPPED, previous, prompt=self.current_prompt())

    def edit(self, stage: Stage | str) -> TurnResult:
        """Return from a clarifier to an earlier data stage.

        Data outside the edited stage is untouched and its current value is
        offered back as the editable default.
        """
        self._require_role(StageAction.EDIT, StageRole.CLARIFIER)
        previous = self._stage
        try:
            target = Stage(stage)
        except ValueError:
            self._violation(StageAction.EDIT, f"unknown stage {stage!r}")

        if not spec_for(target).is_data:
            self._violation(StageAction.EDIT, f"{target.value} does not collect data")
        if stage_index(target) >= stage_index(previous):
            self._violation(StageAction.EDIT, f"{target.value} has not been reached yet")

        self._check_target(
            StageAction.EDIT, target, self._blueprint, self._passed_clarifiers, check_order=False
        )
        self._return_to = previous
        self._enter(target)
        logger.info("stage_edit_started", stage=target.value, return_to=previous.value)

        default = self.editable_default
        prompt = stage_prompt(target, self._blueprint)
        if default:
            prompt = f"{prompt} {EDIT_TEMPLATE}"
        return self._result(
            TurnOutcome.EDITING, previous, prompt=prompt, editable_default=default
        )

    def continue_(self) -> TurnResult:
        """Leave a clarifier for the next phase's initiator, or PUBLISH."""
        self._require_role(StageAction.CONTINUE, StageRole.CLARIFIER)
        previous = self._stage
        if not phase_complete(self._blueprint, self.phase):
            self._violation(StageAction.CONTINUE, "phase data is incomplete")

        phase_position = PHASE_ORDER.index(self.phase)
        if phase_position + 1 < len(PHASE_ORDER):
            target = initiator_for(PHASE_ORDER[phase_position + 1])
        else:
            target = Stage.PUBLISH
        passed = self._passed_clarifiers | {previous}
        self._check_target(StageAction.CONTINUE, target, self._blueprint, passed)

        self._passed_clarifiers = passed
        self._enter(target)
        return self._result(TurnOutcome.ADVANCED, previous, prompt=self.current_prompt())

    def restart_phase(self) -> TurnResult:
        """Go back to the active phase's first data stage, keeping all data."""
        spec = spec_for(self._stage)
        if spec.role not in (StageRole.DATA, StageRole.CLARIFIER):
            self._violation(StageAction.RESTART_PHASE, "no phase in progress")

        previous = self._stage
        target = first_data_stage(self.phase)
        self._check_target(
            StageAction.RESTART_PHASE,
            target,
            self._blueprint,
            self._passed_clarifiers,
            check_order=False,
        )
        self._return_to = None
        self._enter(target)
        return self._result(
            TurnOutcome.RESTARTED,
            previous,
            prompt=self.current_prompt(),
            editable_default=self.editable_default,
        )

    def perform(self, action: StageAction | str, argument: Optional[str] = None) -> TurnResult:
        """Dispatch an action by name."""
        action = StageAction(action)
        if action == StageAction.BEGIN:
            return self.begin()
        if action == StageAction.SUBMIT:
            return self.submit(argument or "")
        if action == StageAction.SKIP:
            return self.skip()
        if action == StageAction.EDIT:
            if argument is None:
                self._violation(StageAction.EDIT, "no stage given")
            return self.edit(argument)
        if action == StageAction.CONTINUE:
            return self.continue_()
        return self.restart_phase()

    # =========================================================================
    # Internals
    # =========================================================================

    def _after_data_stage(self, stage: Stage) -> Stage:
        if self._return_to is not None:
            return self._return_to
        return next_stage(stage)

    def _check_target(
        self,
        action: StageAction,
        target: Stage,
        blueprint: BlueprintData,
        passed_clarifiers: set[Stage],
        check_order: bool = True,
    ) -> None:
        """Raise unless target may follow the active stage.

        Runs against the state the transition would produce, before any of
        it is committed.
        """
        spec = spec_for(target)
        if spec.role == StageRole.CLARIFIER and not phase_complete(blueprint, spec.phase):
            self._violation(action, f"{target.value} requires all phase data")
        if target == Stage.PUBLISH and len(passed_clarifiers) < len(PHASE_ORDER):
            self._violation(action, "every clarifier must be passed first")
        if check_order and stage_index(target) < stage_index(self._stage):
            self._violation(action, f"{target.value} is behind the active stage")

    def _enter(self, target: Stage) -> None:
        logger.debug("stage_entered", previous=self._stage.value, stage=target.value)
        self._stage = target

    def _require_role(self, action: StageAction, role: StageRole) -> None:
        if spec_for(self._stage).role != role:
            self._violation(action, f"only allowed in {role.value} stages")

    def _violation(self, action: StageAction, reason: str) -> None:
        error = StageTransitionError(action, self._stage, reason)
        logger.error(
            "illegal_stage_transition",
            action=action.value,
            stage=self._stage.value,
            reason=reason,
        )
        raise error

    def _result(
        self,
        outcome: TurnOutcome,
        previous: Stage,
        extraction: Optional[ExtractionResult] = None,
        warnings: tuple[str, ...] = (),
        prompt: str = "",
        editable_default: Optional[str] = None,
    ) -> TurnResult:
        return TurnResult(
            outcome=outcome,
            stage=self._stage,
            previous_stage=previous,
            extraction=extraction,
            warnings=warnings,
            prompt=prompt,
            editable_default=editable_default,
            blueprint=self._blueprint,
        )

