"""Models for free-text extraction configuration and results."""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from ..config.settings import Settings, get_settings
from .enums import ArtifactKind, ExtractionFormat

T = TypeVar("T")


class ExtractionConfig(BaseModel):
    """Minimum-completeness thresholds and cleaning switches.

    Immutable; extractors swap the whole object when it changes, so results
    already handed out are never re-validated.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    min_phases: int = Field(default=3, ge=0, description="Minimum journey phases")
    min_activities: int = Field(default=3, ge=0, description="Minimum activities")
    min_milestones: int = Field(default=3, ge=0, description="Minimum milestones")
    min_resources: int = Field(default=1, ge=0, description="Minimum resources")
    min_rubric_criteria: int = Field(default=3, ge=0, description="Minimum rubric criteria")
    clean_markdown: bool = Field(default=True, description="Strip emphasis before parsing")
    verbose: bool = Field(default=False, description="Log every strategy attempt")

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None) -> "ExtractionConfig":
        """Build the default config from application settings."""
        settings = settings or get_settings()
        return cls(
            min_phases=settings.extraction_min_phases,
            min_activities=settings.extraction_min_activities,
            min_milestones=settings.extraction_min_milestones,
            min_resources=settings.extraction_min_resources,
            min_rubric_criteria=settings.extraction_min_rubric_criteria,
            clean_markdown=settings.extraction_clean_markdown,
            verbose=settings.extraction_verbose,
        )

    def minimum_for(self, kind: ArtifactKind) -> int:
        """Minimum item count for an artifact kind (single kinds need one)."""
        return {
            ArtifactKind.PHASES: self.min_phases,
            ArtifactKind.ACTIVITIES: self.min_activities,
            ArtifactKind.RESOURCES: self.min_resources,
            ArtifactKind.MILESTONES: self.min_milestones,
            ArtifactKind.RUBRIC: self.min_rubric_criteria,
        }.get(kind, 1)


class ExtractionResult(BaseModel, Generic[T]):
    """Outcome of one extraction call.

    Consumed immediately by the stage controller; never persisted.
    """

    model_config = ConfigDict(frozen=True)

    items: T = Field(..., description="Extracted artifact(s)")
    format: ExtractionFormat = Field(..., description="Strategy that matched")
    confidence: float = Field(..., ge=0.0, le=1.0, description="Extraction reliability")
    warnings: tuple[str, ...] = Field(default=(), description="Human-readable guidance")

    @property
    def count(self) -> int:
        """Number of extracted items (0 or 1 for single kinds)."""
        if self.items is None:
            return 0
        if isinstance(self.items, tuple):
            return len(self.items)
        return 1
