"""ContentExtractor - free-text responses to typed blueprint artifacts.

HYBRID APPROACH:
- Generated text is treated as an opaque, already-resolved string
- Regex strategies propose items, most explicit structure first
- Field decomposition shapes items per artifact kind
- Minimum counts scale confidence; nothing is silently dropped

The extractor is pure: identical text and config always yield an identical
result, and it never raises on input. Callers (the stage controller) decide
whether a result is good enough to keep.
"""

import json
from typing import Any, Optional, Sequence

import structlog
from pydantic import BaseModel, ValidationError

from pbl_blueprint.extraction.fields import (
    DECOMPOSERS,
    HEADER_LABELS,
    KIND_NOUNS,
    Decomposition,
    missing_question_mark_warning,
    render_item,
)
from pbl_blueprint.extraction.strategies import (
    JSON_KEYS,
    RawItem,
    Strategy,
    break_marker_lines,
    cascade_for,
)
from pbl_blueprint.extraction.text_cleaner import clean_markdown
from pbl_blueprint.models import (
    ArtifactKind,
    ExtractionConfig,
    ExtractionFormat,
    ExtractionResult,
    ImpactStatement,
    JourneyPhase,
    Milestone,
    RubricCriterion,
)

logger = structlog.get_logger(__name__)


# =============================================================================
# Pure Extraction
# =============================================================================

def _prepare_text(text: Any, config: ExtractionConfig) -> str:
    if not isinstance(text, str):
        text = "" if text is None else str(text)
    if config.clean_markdown:
        return clean_markdown(text).text
    return text.replace("\r\n", "\n").replace("\r", "\n").strip()


def _empty_items(kind: ArtifactKind) -> Any:
    return () if kind.is_list else None


def _empty_result(kind: ArtifactKind, warnings: list[str]) -> ExtractionResult:
    return ExtractionResult(
        items=_empty_items(kind),
        format=ExtractionFormat.NONE,
        confidence=0.0,
        warnings=tuple(warnings),
    )


def _run_cascade(
    kind: ArtifactKind,
    text: str,
    config: ExtractionConfig,
) -> tuple[Optional[Strategy], list[RawItem]]:
    """Try strategies in priority order; first with at least one item wins."""
    cascade = cascade_for(kind)
    log = logger.info if config.verbose else logger.debug

    for strategy in cascade:
        raw_items = strategy.parse(text)
        log(
            "strategy_attempt",
            kind=kind.value,
            strategy=strategy.format.value,
            items_found=len(raw_items),
        )
        if raw_items:
            return strategy, raw_items
    return None, []


def _score(
    kind: ArtifactKind,
    strategy: Strategy,
    decomposition: Decomposition,
    config: ExtractionConfig,
) -> tuple[float, list[str]]:
    """Scale the strategy's base confidence by completeness."""
    confidence = strategy.base_confidence * decomposition.completeness
    warnings = []

    minimum = config.minimum_for(kind)
    if kind.is_list and minimum > 0 and decomposition.count < minimum:
        confidence *= decomposition.count / minimum
        singular, plural = KIND_NOUNS[kind]
        found = singular if decomposition.count == 1 else plural
        warnings.append(
            f"Found {decomposition.count} {found}; at least {minimum} expected."
        )

    return min(confidence, strategy.base_confidence), warnings


def extract(
    text: Any,
    kind: ArtifactKind | str,
    config: Optional[ExtractionConfig] = None,
) -> ExtractionResult:
    """Extract one artifact kind from a raw text blob.

    Args:
        text: Raw response text (may be empty or contain markdown).
        kind: Artifact kind to extract.
        config: Extraction thresholds; settings defaults when omitted.

    Returns:
        ExtractionResult with items, matched format, confidence and warnings.
    """
    kind = ArtifactKind(kind)
    config = config or ExtractionConfig.from_settings()
    singular, plural = KIND_NOUNS[kind]

    cleaned = _prepare_text(text, config)
    if not cleaned:
        noun = plural if kind.is_list else singular
        warnings = [f"No {noun} found: the response was empty."]
        if kind.is_list:
            warnings.append("No numbered or bulleted structure found.")
        if kind == ArtifactKind.QUESTION:
            warnings.append(missing_question_mark_warning())
        logger.debug("extraction_empty_input", kind=kind.value)
        return _empty_result(kind, warnings)

    strategy, raw_items = _run_cascade(kind, cleaned, config)
    if strategy is None:
        return _empty_result(kind, [f"No {plural} found in the response."])

    try:
        decomposition = DECOMPOSERS[kind](raw_items)
    except ValidationError as e:
        logger.warning("extraction_decomposition_failed", kind=kind.value, error=str(e))
        return _empty_result(kind, [f"Could not read the {plural} in the response."])

    warnings = []
    if kind.is_list and strategy.format == ExtractionFormat.PARAGRAPH_SPLIT:
        warnings.append(
            f"No numbered or bulleted structure found; each paragraph was read as one {singular}."
        )
    warnings.extend(decomposition.warnings)

    if decomposition.count == 0:
        return _empty_result(kind, warnings)

    confidence, threshold_warnings = _score(kind, strategy, decomposition, config)
    warnings.extend(threshold_warnings)

    result = ExtractionResult(
        items=decomposition.items,
        format=strategy.format,
        confidence=round(confidence, 4),
        warnings=tuple(warnings),
    )

    logger.debug(
        "extraction_complete",
        kind=kind.value,
        format=result.format.value,
        items=result.count,
        confidence=result.confidence,
        warnings=len(result.warnings),
    )
    return result


def _json_payload(item: Any) -> Any:
    if isinstance(item, BaseModel):
        return item.model_dump(mode="json", exclude_defaults=True)
    return item


def render_items(
    kind: ArtifactKind | str,
    items: Any,
    format: Optional[ExtractionFormat] = None,
) -> str:
    """Render typed items as text that re-extracts to the same items.

    Args:
        kind: Artifact kind the items belong to.
        items: A tuple of items for list kinds, a single value otherwise.
        format: Layout to write; numbered lines for list kinds and plain
            text for single kinds when omitted.
    """
    kind = ArtifactKind(kind)
    if items is None or items == () or items == "":
        return ""
    if format is None:
        format = ExtractionFormat.NUMBERED_LIST if kind.is_list else ExtractionFormat.PARAGRAPH_SPLIT

    if format == ExtractionFormat.JSON_OBJECT:
        payload = [_json_payload(item) for item in items] if kind.is_list else _json_payload(items)
        return json.dumps({JSON_KEYS[kind][0]: payload}, indent=2, ensure_ascii=False)

    values: Sequence[Any] = items if kind.is_list else (items,)
    lines = [render_item(kind, item) for item in values]
    if format == ExtractionFormat.HEADER_BLOCK:
        label = HEADER_LABELS[kind]
        return "\n".join(f"{label} {i}: {line}" for i, line in enumerate(lines, 1))
    if format == ExtractionFormat.MARKDOWN_TABLE:
        rows = [f"| {HEADER_LABELS[kind]} |", "| --- |"]
        rows.extend(f"| {line} |" for line in lines)
        return "\n".join(rows)
    if format == ExtractionFormat.NUMBERED_LIST:
        return "\n".join(f"{i}. {line}" for i, line in enumerate(lines, 1))
    if format == ExtractionFormat.BULLETED_LIST:
        return "\n".join(f"- {line}" for line in lines)
    return "\n\n".join(break_marker_lines(line) for line in lines)


def join_items(result: ExtractionResult, kind: ArtifactKind | str) -> str:
    """Render extracted items back into text in the format they came from.

    Re-extracting the rendered text yields the same items, format and
    confidence.
    """
    return render_items(kind, result.items, result.format)


# =============================================================================
# Extractor
# =============================================================================

class ContentExtractor:
    """Stateless extractor bound to an immutable ExtractionConfig.

    The only mutable thing is the config reference itself, swapped as a
    whole by update_config / reset_config, so one instance can serve any
    number of conversations.
    """

    def __init__(self, config: Optional[ExtractionConfig] = None):
        self._config = config or ExtractionConfig.from_settings()

    @property
    def config(self) -> ExtractionConfig:
        return self._config

    def update_config(self, **changes: Any) -> ExtractionConfig:
        """Apply config changes to future extractions.

        Raises:
            ValidationError: If a change names an unknown field or an invalid value.
        """
        self._config = ExtractionConfig.model_validate(
            {**self._config.model_dump(), **changes}
        )
        logger.info("extraction_config_updated", changes=sorted(changes))
        return self._config

    def reset_config(self) -> ExtractionConfig:
        """Restore the settings defaults."""
        self._config = ExtractionConfig.from_settings()
        logger.info("extraction_config_reset")
        return self._config

    def extract(
        self,
        kind: ArtifactKind | str,
        text: Any,
        config: Optional[ExtractionConfig] = None,
    ) -> ExtractionResult:
        return extract(text, kind, config or self._config)

    def extract_phases(
        self, text: str, config: Optional[ExtractionConfig] = None
    ) -> ExtractionResult[tuple[JourneyPhase, ...]]:
        return self.extract(ArtifactKind.PHASES, text, config)

    def extract_activities(
        self, text: str, config: Optional[ExtractionConfig] = None
    ) -> ExtractionResult[tuple[str, ...]]:
        return self.extract(ArtifactKind.ACTIVITIES, text, config)

    def extract_resources(
        self, text: str, config: Optional[ExtractionConfig] = None
    ) -> ExtractionResult[tuple[str, ...]]:
        return self.extract(ArtifactKind.RESOURCES, text, config)

    def extract_milestones(
        self, text: str, config: Optional[ExtractionConfig] = None
    ) -> ExtractionResult[tuple[Milestone, ...]]:
        return self.extract(ArtifactKind.MILESTONES, text, config)

    def extract_rubric(
        self, text: str, config: Optional[ExtractionConfig] = None
    ) -> ExtractionResult[tuple[RubricCriterion, ...]]:
        return self.extract(ArtifactKind.RUBRIC, text, config)

    def extract_impact(
        self, text: str, config: Optional[ExtractionConfig] = None
    ) -> ExtractionResult[Optional[ImpactStatement]]:
        return self.extract(ArtifactKind.IMPACT, text, config)

    def extract_idea(
        self, text: str, config: Optional[ExtractionConfig] = None
    ) -> ExtractionResult[Optional[str]]:
        """Single free-text artifact: big idea or challenge."""
        return self.extract(ArtifactKind.IDEA, text, config)

    def extract_question(
        self, text: str, config: Optional[ExtractionConfig] = None
    ) -> ExtractionResult[Optional[str]]:
        """Essential question; only confident when it contains a "?"."""
        return self.extract(ArtifactKind.QUESTION, text, config)

    def join_items(self, result: ExtractionResult, kind: ArtifactKind | str) -> str:
        return join_items(result, kind)
