"""Models for the blueprint aggregate assembled across authoring stages.

All models are frozen: the controller replaces the aggregate wholesale on
each accepted turn, so snapshots handed to callers never change underneath
them.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class JourneyPhase(BaseModel):
    """One phase of the learning journey."""

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1, description="Phase name")
    description: Optional[str] = Field(None, description="What happens in the phase")


class Milestone(BaseModel):
    """A checkpoint students reach on the way to the final product."""

    model_config = ConfigDict(frozen=True)

    title: str = Field(..., min_length=1, description="Milestone title")
    description: str = Field(default="", description="What completing it looks like")


class RubricCriterion(BaseModel):
    """A single rubric row."""

    model_config = ConfigDict(frozen=True)

    criterion: str = Field(..., min_length=1, description="Criterion name")
    weight: Optional[float] = Field(None, ge=0, le=100, description="Percentage weight")
    description: str = Field(default="", description="What quality looks like")


class ImpactStatement(BaseModel):
    """Who sees the work, how it is shared, and why."""

    model_config = ConfigDict(frozen=True)

    audience: str = Field(default="", description="Authentic audience")
    method: str = Field(default="", description="How the work is shared")
    purpose: str = Field(default="", description="Intended effect on the audience")

    @property
    def is_empty(self) -> bool:
        return not (self.audience or self.method or self.purpose)


class IdeationData(BaseModel):
    """Ideation phase fields."""

    model_config = ConfigDict(frozen=True)

    big_idea: str = Field(default="", description="Transferable concept anchoring the project")
    essential_question: str = Field(default="", description="Open-ended driving question")
    challenge: str = Field(default="", description="Authentic challenge for a real audience")


class JourneyData(BaseModel):
    """Journey phase fields."""

    model_config = ConfigDict(frozen=True)

    phases: tuple[JourneyPhase, ...] = Field(default=(), description="Ordered journey phases")
    activities: tuple[str, ...] = Field(default=(), description="Ordered learning activities")
    resources: tuple[str, ...] = Field(default=(), description="Optional supporting resources")


class DeliverablesData(BaseModel):
    """Deliverables phase fields."""

    model_config = ConfigDict(frozen=True)

    milestones: tuple[Milestone, ...] = Field(default=(), description="Ordered milestones")
    rubric: tuple[RubricCriterion, ...] = Field(default=(), description="Rubric criteria")
    impact: ImpactStatement = Field(
        default_factory=ImpactStatement, description="Audience and impact plan"
    )


class BlueprintData(BaseModel):
    """Complete curriculum blueprint."""

    model_config = ConfigDict(frozen=True)

    ideation: IdeationData = Field(default_factory=IdeationData)
    journey: JourneyData = Field(default_factory=JourneyData)
    deliverables: DeliverablesData = Field(default_factory=DeliverablesData)
