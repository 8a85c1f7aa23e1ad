"""Enumeration types for the authoring models."""

from enum import Enum


class BlueprintPhase(str, Enum):
    """Top-level phases of blueprint authoring."""

    IDEATION = "ideation"
    JOURNEY = "journey"
    DELIVERABLES = "deliverables"
    PUBLISH = "publish"


class Stage(str, Enum):
    """Authoring stages, in visiting order."""

    IDEATION_INITIATOR = "IDEATION_INITIATOR"
    IDEATION_BIG_IDEA = "IDEATION_BIG_IDEA"
    IDEATION_EQ = "IDEATION_EQ"
    IDEATION_CHALLENGE = "IDEATION_CHALLENGE"
    IDEATION_CLARIFIER = "IDEATION_CLARIFIER"

    JOURNEY_INITIATOR = "JOURNEY_INITIATOR"
    JOURNEY_PHASES = "JOURNEY_PHASES"
    JOURNEY_ACTIVITIES = "JOURNEY_ACTIVITIES"
    JOURNEY_RESOURCES = "JOURNEY_RESOURCES"
    JOURNEY_CLARIFIER = "JOURNEY_CLARIFIER"

    DELIVERABLES_INITIATOR = "DELIVERABLES_INITIATOR"
    DELIVER_MILESTONES = "DELIVER_MILESTONES"
    DELIVER_RUBRIC = "DELIVER_RUBRIC"
    DELIVER_IMPACT = "DELIVER_IMPACT"
    DELIVERABLES_CLARIFIER = "DELIVERABLES_CLARIFIER"

    PUBLISH = "PUBLISH"


class ArtifactKind(str, Enum):
    """Kinds of structured data a stage expects from free text."""

    IDEA = "idea"
    QUESTION = "question"
    PHASES = "phases"
    ACTIVITIES = "activities"
    RESOURCES = "resources"
    MILESTONES = "milestones"
    RUBRIC = "rubric"
    IMPACT = "impact"

    @property
    def is_list(self) -> bool:
        """Whether extraction yields an ordered list of items."""
        return self not in (ArtifactKind.IDEA, ArtifactKind.QUESTION, ArtifactKind.IMPACT)


class ExtractionFormat(str, Enum):
    """Parsing strategy that produced an extraction result."""

    JSON_OBJECT = "json-object"
    HEADER_BLOCK = "header-block"
    MARKDOWN_TABLE = "markdown-table"
    NUMBERED_LIST = "numbered-list"
    BULLETED_LIST = "bulleted-list"
    PARAGRAPH_SPLIT = "paragraph-split"
    NONE = "none"


class TurnOutcome(str, Enum):
    """What a controller operation did to the conversation."""

    ACCEPTED = "accepted"        # Extraction merged, stage advanced
    REPROMPT = "reprompt"        # Confidence below floor, same stage
    SKIPPED = "skipped"          # Optional stage skipped
    ADVANCED = "advanced"        # begin / continue moved to a new stage
    EDITING = "editing"          # Returned to an earlier stage for editing
    RESTARTED = "restarted"      # Returned to the phase's first data stage


class StageAction(str, Enum):
    """Caller actions that may be legal at a stage."""

    BEGIN = "begin"
    SUBMIT = "submit"
    SKIP = "skip"
    EDIT = "edit"
    CONTINUE = "continue"
    RESTART_PHASE = "restart_phase"


class BlueprintStatus(str, Enum):
    """Overall completeness of a blueprint."""

    DRAFT = "draft"
    IN_PROGRESS = "in_progress"
    READY = "ready"
