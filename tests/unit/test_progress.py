"""Unit tests for stage table, progress and guidance helpers."""

import pytest

from pbl_blueprint.config.prompts import STAGE_GUIDES, reprompt, stage_prompt
from pbl_blueprint.flow import (
    STAGE_ORDER,
    blueprint_status,
    detect_stage,
    next_stage,
    phase_complete,
    progress,
    spec_for,
)
from pbl_blueprint.flow.stages import read_field, write_field
from pbl_blueprint.models import (
    BlueprintData,
    BlueprintPhase,
    BlueprintStatus,
    DeliverablesData,
    IdeationData,
    ImpactStatement,
    JourneyData,
    JourneyPhase,
    Milestone,
    RubricCriterion,
    Stage,
)


@pytest.fixture
def complete_blueprint() -> BlueprintData:
    return BlueprintData(
        ideation=IdeationData(
            big_idea="Systems change",
            essential_question="How might we reduce waste?",
            challenge="Design a recycling plan",
        ),
        journey=JourneyData(
            phases=(JourneyPhase(name="Research"),),
            activities=("Waste audit",),
        ),
        deliverables=DeliverablesData(
            milestones=(Milestone(title="Pitch"),),
            rubric=(RubricCriterion(criterion="Research"),),
            impact=ImpactStatement(audience="council", method="exhibition"),
        ),
    )


class TestStageTable:
    """Tests for the fixed stage table."""

    def test_every_data_stage_maps_to_its_own_phase(self):
        for stage in STAGE_ORDER:
            spec = spec_for(stage)
            if spec.is_data:
                assert spec.field_path[0] == spec.phase.value
                assert spec.artifact is not None

    def test_order_ends_in_publish(self):
        assert STAGE_ORDER[0] == Stage.IDEATION_INITIATOR
        assert STAGE_ORDER[-1] == Stage.PUBLISH
        assert next_stage(Stage.PUBLISH) is None
        assert next_stage(Stage.IDEATION_CHALLENGE) == Stage.IDEATION_CLARIFIER

    def test_write_field_touches_one_field(self, complete_blueprint):
        updated = write_field(complete_blueprint, Stage.IDEATION_CHALLENGE, "New challenge")
        assert read_field(updated, Stage.IDEATION_CHALLENGE) == "New challenge"
        assert updated.ideation.big_idea == complete_blueprint.ideation.big_idea
        assert updated.journey == complete_blueprint.journey
        assert complete_blueprint.ideation.challenge == "Design a recycling plan"

    def test_phase_complete_ignores_optional_resources(self, complete_blueprint):
        assert complete_blueprint.journey.resources == ()
        assert phase_complete(complete_blueprint, BlueprintPhase.JOURNEY)
        assert not phase_complete(BlueprintData(), BlueprintPhase.JOURNEY)


class TestProgress:
    """Tests for progress()."""

    def test_first_stage(self):
        result = progress(Stage.IDEATION_INITIATOR)
        assert result.phase == BlueprintPhase.IDEATION
        assert result.step_number == 1
        assert result.steps_in_phase == 5
        assert result.percentage == 20
        assert result.overall_percentage == 0

    def test_mid_flow(self):
        result = progress(Stage.JOURNEY_PHASES)
        assert result.step_number == 2
        assert result.percentage == 40
        assert result.overall_percentage == 40

    def test_publish(self):
        result = progress(Stage.PUBLISH)
        assert result.phase == BlueprintPhase.PUBLISH
        assert result.percentage == 100
        assert result.overall_percentage == 100


class TestStatusAndDetection:
    """Tests for blueprint_status() and detect_stage()."""

    def test_status(self, complete_blueprint):
        assert blueprint_status(BlueprintData()) == BlueprintStatus.DRAFT
        partial = BlueprintData(ideation=IdeationData(big_idea="Systems change"))
        assert blueprint_status(partial) == BlueprintStatus.IN_PROGRESS
        assert blueprint_status(complete_blueprint) == BlueprintStatus.READY

    def test_detect_stage(self, complete_blueprint):
        assert detect_stage(BlueprintData()) == Stage.IDEATION_INITIATOR
        ideation_only = BlueprintData(ideation=complete_blueprint.ideation)
        assert detect_stage(ideation_only) == Stage.JOURNEY_INITIATOR
        assert detect_stage(complete_blueprint) == Stage.DELIVERABLES_CLARIFIER

    def test_detect_first_missing_stage(self, complete_blueprint):
        missing_rubric = complete_blueprint.model_copy(
            update={"deliverables": complete_blueprint.deliverables.model_copy(update={"rubric": ()})}
        )
        assert detect_stage(missing_rubric) == Stage.DELIVER_RUBRIC


class TestPrompts:
    """Tests for guidance copy."""

    def test_every_stage_has_a_guide(self):
        assert set(STAGE_GUIDES) == set(Stage)

    def test_question_prompt_references_big_idea(self):
        blueprint = BlueprintData(ideation=IdeationData(big_idea="Systems change"))
        assert '"Systems change"' in stage_prompt(Stage.IDEATION_EQ, blueprint)

    def test_reprompt_includes_warnings(self):
        text = reprompt(Stage.JOURNEY_PHASES, BlueprintData(), ("Found 1 phase; at least 3 expected.",))
        assert text.endswith("Found 1 phase; at least 3 expected.")
