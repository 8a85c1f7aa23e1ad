"""Unit tests for the stage controller."""

import pytest

from pbl_blueprint.config.settings import Settings
from pbl_blueprint.flow import StageController, StageTransitionError
from pbl_blueprint.flow.stages import read_field, spec_for
from pbl_blueprint.models import (
    BlueprintData,
    IdeationData,
    JourneyData,
    JourneyPhase,
    Stage,
    StageAction,
    TurnOutcome,
)


@pytest.fixture
def controller(extractor, settings) -> StageController:
    return StageController(extractor, settings=settings)


def _walk_to(controller: StageController, answers: dict[str, str], target: Stage) -> None:
    """Drive the controller forward with acceptable answers until target."""
    while controller.stage != target:
        stage = controller.stage
        if StageAction.BEGIN in controller.allowed_actions():
            controller.begin()
        elif StageAction.CONTINUE in controller.allowed_actions():
            controller.continue_()
        else:
            result = controller.submit(answers[stage.value])
            assert result.outcome == TurnOutcome.ACCEPTED, result.warnings


class TestBeginAndSubmit:
    """Tests for forward progress."""

    def test_begin_enters_first_data_stage(self, controller):
        result = controller.begin()
        assert result.outcome == TurnOutcome.ADVANCED
        assert result.previous_stage == Stage.IDEATION_INITIATOR
        assert controller.stage == Stage.IDEATION_BIG_IDEA
        assert "Big Idea" in result.prompt

    def test_submit_accepts_and_advances(self, controller):
        controller.begin()
        result = controller.submit("Systems change over time")
        assert result.outcome == TurnOutcome.ACCEPTED
        assert controller.stage == Stage.IDEATION_EQ
        assert controller.snapshot().ideation.big_idea == "Systems change over time"
        assert "Systems change over time" in result.prompt

    def test_numbered_phases_advance(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.JOURNEY_PHASES)
        result = controller.submit("1. Research\n2. Design\n3. Build")
        assert result.outcome == TurnOutcome.ACCEPTED
        assert result.extraction.confidence >= 0.7
        assert len(controller.snapshot().journey.phases) == 3
        assert controller.stage == Stage.JOURNEY_ACTIVITIES

    def test_empty_essential_question_reprompts(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.IDEATION_EQ)
        before = controller.snapshot()
        result = controller.submit("")
        assert result.outcome == TurnOutcome.REPROMPT
        assert result.extraction.confidence == 0.0
        assert controller.stage == Stage.IDEATION_EQ
        assert controller.snapshot() == before
        assert any("question mark" in w for w in result.warnings)
        assert "question mark" in result.prompt

    def test_low_confidence_leaves_blueprint_untouched(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.JOURNEY_PHASES)
        before = controller.snapshot()
        result = controller.submit("We will research the topic")
        assert result.outcome == TurnOutcome.REPROMPT
        assert result.blueprint == before
        assert controller.snapshot() is before
        assert "Found 1 phase; at least 3 expected." in result.warnings

    def test_custom_acceptance_floor(self, extractor, session_answers):
        strict = StageController(
            extractor,
            settings=Settings(_env_file=None, acceptance_floor=0.8),
        )
        _walk_to(strict, session_answers, Stage.JOURNEY_PHASES)
        result = strict.submit("1. Research\n2. Design\n3. Build")
        assert result.outcome == TurnOutcome.REPROMPT

    def test_skip_optional_resources(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.JOURNEY_RESOURCES)
        result = controller.skip()
        assert result.outcome == TurnOutcome.SKIPPED
        assert controller.stage == Stage.JOURNEY_CLARIFIER
        assert controller.snapshot().journey.resources == ()

    def test_full_walk_reaches_publish(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.PUBLISH)
        blueprint = controller.snapshot()
        assert blueprint.deliverables.impact.audience == "the school board"
        assert blueprint.journey.resources == ("City recycling coordinator",)
        assert controller.allowed_actions() == []


class TestEdit:
    """Tests for editing from a clarifier."""

    def test_edit_big_idea_from_journey_clarifier(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.JOURNEY_CLARIFIER)
        journey_before = controller.snapshot().journey

        result = controller.edit(Stage.IDEATION_BIG_IDEA)
        assert result.outcome == TurnOutcome.EDITING
        assert controller.stage == Stage.IDEATION_BIG_IDEA
        assert result.editable_default == "Systems change over time"
        assert controller.snapshot().journey == journey_before

        result = controller.submit("Communities shape their environment")
        assert result.outcome == TurnOutcome.ACCEPTED
        assert controller.stage == Stage.JOURNEY_CLARIFIER
        blueprint = controller.snapshot()
        assert blueprint.ideation.big_idea == "Communities shape their environment"
        assert blueprint.ideation.essential_question == session_answers["IDEATION_EQ"]
        assert blueprint.journey == journey_before

    def test_edit_list_stage_prefills_numbered_text(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.JOURNEY_CLARIFIER)
        result = controller.edit("JOURNEY_PHASES")
        assert result.editable_default == "1. Research\n2. Design\n3. Build"

    @pytest.mark.parametrize(
        "stage", [Stage.DELIVER_MILESTONES, Stage.DELIVER_RUBRIC, Stage.DELIVER_IMPACT]
    )
    def test_editable_default_re_extracts_to_stored_value(self, controller, session_answers, stage):
        _walk_to(controller, session_answers, Stage.DELIVERABLES_CLARIFIER)
        result = controller.edit(stage)
        extraction = controller.extractor.extract(spec_for(stage).artifact, result.editable_default)
        assert extraction.items == read_field(controller.snapshot(), stage)

    def test_reprompt_while_editing_keeps_edit_target(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.IDEATION_CLARIFIER)
        controller.edit(Stage.IDEATION_EQ)
        result = controller.submit("No question here")
        assert result.outcome == TurnOutcome.REPROMPT
        assert controller.stage == Stage.IDEATION_EQ
        assert controller.is_editing

    def test_edit_unreached_stage_raises(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.IDEATION_CLARIFIER)
        with pytest.raises(StageTransitionError):
            controller.edit(Stage.JOURNEY_PHASES)
        assert controller.stage == Stage.IDEATION_CLARIFIER

    def test_edit_outside_clarifier_raises(self, controller):
        controller.begin()
        with pytest.raises(StageTransitionError):
            controller.edit(Stage.IDEATION_BIG_IDEA)

    def test_edit_non_data_stage_raises(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.JOURNEY_CLARIFIER)
        with pytest.raises(StageTransitionError):
            controller.edit(Stage.JOURNEY_INITIATOR)


class TestIllegalTransitions:
    """Tests for caller-contract violations."""

    def test_submit_in_initiator(self, controller):
        with pytest.raises(StageTransitionError) as exc_info:
            controller.submit("Systems change")
        assert exc_info.value.stage == Stage.IDEATION_INITIATOR
        assert exc_info.value.action == StageAction.SUBMIT

    def test_continue_outside_clarifier(self, controller):
        controller.begin()
        with pytest.raises(StageTransitionError):
            controller.continue_()

    def test_skip_required_stage(self, controller):
        controller.begin()
        with pytest.raises(StageTransitionError):
            controller.skip()

    def test_restart_from_initiator(self, controller):
        with pytest.raises(StageTransitionError):
            controller.restart_phase()

    def test_nothing_allowed_in_publish(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.PUBLISH)
        for action in StageAction:
            with pytest.raises(StageTransitionError):
                controller.perform(action, "text")

    def test_rejected_submit_leaves_blueprint_untouched(self, extractor, settings):
        controller = StageController(extractor, stage=Stage.IDEATION_CHALLENGE, settings=settings)
        with pytest.raises(StageTransitionError) as exc_info:
            controller.submit("Design a recycling plan")
        assert exc_info.value.action == StageAction.SUBMIT
        assert exc_info.value.stage == Stage.IDEATION_CHALLENGE
        assert controller.snapshot() == BlueprintData()
        assert controller.stage == Stage.IDEATION_CHALLENGE


class TestStartStage:
    """Tests for the stage a controller is constructed at."""

    @pytest.mark.parametrize(
        "stage",
        [Stage.JOURNEY_INITIATOR, Stage.DELIVER_RUBRIC, Stage.IDEATION_CLARIFIER, Stage.PUBLISH],
    )
    def test_stage_needing_missing_data_is_rejected(self, extractor, settings, stage):
        with pytest.raises(ValueError):
            StageController(extractor, stage=stage, settings=settings)

    def test_data_stage_of_first_phase_is_allowed(self, extractor, settings):
        controller = StageController(extractor, stage=Stage.IDEATION_EQ, settings=settings)
        assert controller.stage == Stage.IDEATION_EQ

    def test_earlier_clarifiers_count_as_passed(self, controller, session_answers, extractor, settings):
        _walk_to(controller, session_answers, Stage.PUBLISH)
        started = StageController(
            extractor,
            blueprint=controller.snapshot(),
            stage=Stage.DELIVERABLES_CLARIFIER,
            settings=settings,
        )
        result = started.continue_()
        assert result.stage == Stage.PUBLISH


class TestRestartAndActions:
    """Tests for restart_phase and allowed_actions."""

    def test_restart_keeps_data(self, controller, session_answers):
        _walk_to(controller, session_answers, Stage.JOURNEY_CLARIFIER)
        before = controller.snapshot()
        result = controller.restart_phase()
        assert result.outcome == TurnOutcome.RESTARTED
        assert controller.stage == Stage.JOURNEY_PHASES
        assert controller.snapshot() == before
        assert result.editable_default == "1. Research\n2. Design\n3. Build"

    def test_allowed_actions_per_role(self, controller, session_answers):
        assert controller.allowed_actions() == [StageAction.BEGIN]
        _walk_to(controller, session_answers, Stage.JOURNEY_RESOURCES)
        assert controller.allowed_actions() == [
            StageAction.SUBMIT,
            StageAction.SKIP,
            StageAction.RESTART_PHASE,
        ]
        controller.skip()
        assert controller.allowed_actions() == [
            StageAction.CONTINUE,
            StageAction.EDIT,
            StageAction.RESTART_PHASE,
        ]

    def test_free_text_stages_use_lower_floor(self, controller):
        assert controller.acceptance_floor(Stage.IDEATION_EQ) == 0.4
        assert controller.acceptance_floor(Stage.DELIVER_IMPACT) == 0.4
        assert controller.acceptance_floor(Stage.JOURNEY_PHASES) == 0.5


class TestResume:
    """Tests for StageController.resume."""

    def test_resume_empty_blueprint(self, extractor, settings):
        controller = StageController.resume(BlueprintData(), extractor, settings=settings)
        assert controller.stage == Stage.IDEATION_INITIATOR

    def test_resume_mid_phase(self, extractor, settings):
        blueprint = BlueprintData(ideation=IdeationData(big_idea="Systems change"))
        controller = StageController.resume(blueprint, extractor, settings=settings)
        assert controller.stage == Stage.IDEATION_EQ

    def test_resume_next_phase(self, extractor, settings):
        blueprint = BlueprintData(
            ideation=IdeationData(big_idea="a", essential_question="b?", challenge="c"),
            journey=JourneyData(phases=(JourneyPhase(name="Research"),)),
        )
        controller = StageController.resume(blueprint, extractor, settings=settings)
        assert controller.stage == Stage.JOURNEY_ACTIVITIES

    def test_resume_complete_blueprint_can_publish(self, controller, session_answers, extractor, settings):
        _walk_to(controller, session_answers, Stage.PUBLISH)
        resumed = StageController.resume(controller.snapshot(), extractor, settings=settings)
        assert resumed.stage == Stage.DELIVERABLES_CLARIFIER
        resumed.continue_()
        assert resumed.stage == Stage.PUBLISH
