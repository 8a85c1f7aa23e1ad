"""Field decomposition and rendering per artifact kind.

Strategies only find items; this module turns each RawItem into the typed
artifact a stage stores (and back into a single line of text, so that
re-parsing rendered items reproduces them).

Splitting rules:
- phases: name / description at the first ":" or " - "
- milestones: title / description at the first colon
- rubric: criterion, optional "(25%)" weight, description after the colon
- impact: audience / method / purpose from keyword anchors
"""

import re
from dataclasses import dataclass, field
from typing import Any, Optional

from pbl_blueprint.extraction.strategies import RawItem
from pbl_blueprint.extraction.text_cleaner import normalize_whitespace
from pbl_blueprint.models import (
    ArtifactKind,
    ImpactStatement,
    JourneyPhase,
    Milestone,
    RubricCriterion,
)


@dataclass
class Decomposition:
    """Typed items plus anything worth telling the user about them."""
    items: Any
    count: int
    # Share of required fields present; only below 1.0 for partial impacts
    completeness: float = 1.0
    warnings: list[str] = field(default_factory=list)


# Singular / plural nouns used in warnings and header labels
KIND_NOUNS: dict[ArtifactKind, tuple[str, str]] = {
    ArtifactKind.IDEA: ("idea", "ideas"),
    ArtifactKind.QUESTION: ("question", "questions"),
    ArtifactKind.PHASES: ("phase", "phases"),
    ArtifactKind.ACTIVITIES: ("activity", "activities"),
    ArtifactKind.RESOURCES: ("resource", "resources"),
    ArtifactKind.MILESTONES: ("milestone", "milestones"),
    ArtifactKind.RUBRIC: ("rubric criterion", "rubric criteria"),
    ArtifactKind.IMPACT: ("impact statement", "impact statements"),
}

HEADER_LABELS: dict[ArtifactKind, str] = {
    ArtifactKind.IDEA: "Idea",
    ArtifactKind.QUESTION: "Question",
    ArtifactKind.PHASES: "Phase",
    ArtifactKind.ACTIVITIES: "Activity",
    ArtifactKind.RESOURCES: "Resource",
    ArtifactKind.MILESTONES: "Milestone",
    ArtifactKind.RUBRIC: "Criterion",
    ArtifactKind.IMPACT: "Impact",
}


# =============================================================================
# Splitting Patterns
# =============================================================================

# First ":" or a spaced dash ("Research - dig in", "Research – dig in")
NAME_SEPARATOR_PATTERN = re.compile(r":|\s+[-–—]\s+")

# Trailing "(25%)", "(25)", "(weight: 25%)", "(20 pts)" on a criterion name
WEIGHT_PATTERN = re.compile(
    r"^(?P<name>.*?)\s*\(\s*(?:weight\s*:?\s*)?(?P<weight>\d+(?:\.\d+)?)\s*"
    r"(?:%|pts?|points)?\s*\)\s*$",
    re.IGNORECASE,
)

IMPACT_ANCHORS: dict[str, list[re.Pattern]] = {
    "audience": [
        re.compile(
            r"\bpresent(?:s|ed|ing)?\s+(?:(?:it|them|this|findings|their\s+\w+)\s+)?to\b",
            re.IGNORECASE,
        ),
        re.compile(
            r"\bshar(?:e|es|ed|ing)\s+(?:(?:it|them|this|findings|their\s+\w+)\s+)?with\b",
            re.IGNORECASE,
        ),
        re.compile(r"\baudience\s*(?::|is\b)", re.IGNORECASE),
    ],
    "method": [
        re.compile(r"\bthrough\b", re.IGNORECASE),
        re.compile(r"\bvia\b", re.IGNORECASE),
        re.compile(r"\bmethod\s*(?::|is\b)", re.IGNORECASE),
    ],
    "purpose": [
        re.compile(r"\bwill\b", re.IGNORECASE),
        re.compile(r"\bso\s+that\b", re.IGNORECASE),
        re.compile(r"\bin\s+order\s+to\b", re.IGNORECASE),
        re.compile(r"\bpurpose\s*(?::|is\b)", re.IGNORECASE),
    ],
}

IMPACT_REQUIRED_FIELDS = ("audience", "method")

SENTENCE_STOP_PATTERN = re.compile(r"[.;!?](?=\s|$)")

# Leading "Essential Question:" style section label on a single artifact
ARTIFACT_LABEL_PATTERN = re.compile(
    r"^(?:the\s+|our\s+)?"
    r"(?:big\s+idea|idea|essential\s+question|driving\s+question|question"
    r"|(?:authentic\s+)?challenge|impact(?:\s+statement)?)"
    r"\s*:\s*",
    re.IGNORECASE,
)


# =============================================================================
# Helpers
# =============================================================================

def _flatten(item: RawItem) -> str:
    """Header title and sub-lines as one line."""
    if not item.body:
        return item.title
    return f"{item.title}: {'; '.join(item.body)}"


def strip_artifact_label(text: str) -> str:
    """Drop a leading "Big Idea:" / "Essential Question:" section label."""
    return ARTIFACT_LABEL_PATTERN.sub("", text, count=1).strip()


def _single_texts(raw_items: list[RawItem]) -> list[str]:
    """Each item as running text, sub-lines included, labels removed."""
    texts = []
    for raw in raw_items:
        text = strip_artifact_label(normalize_whitespace(" ".join((raw.title, *raw.body))))
        if text:
            texts.append(text)
    return texts


def _extra_items_warning(kind: ArtifactKind, found: int) -> str:
    singular, plural = KIND_NOUNS[kind]
    return f"Found {found} {plural}; only the first {singular} was kept."


def _first_colon_outside_parens(text: str) -> int:
    depth = 0
    for index, char in enumerate(text):
        if char == "(":
            depth += 1
        elif char == ")":
            depth = max(depth - 1, 0)
        elif char == ":" and depth == 0:
            return index
    return -1


def split_name_description(text: str) -> tuple[str, Optional[str]]:
    """Split "Name: description" or "Name - description"."""
    match = NAME_SEPARATOR_PATTERN.search(text)
    if not match:
        return text.strip(), None
    name = text[: match.start()].strip()
    description = text[match.end():].strip()
    if not name:
        return text.strip(), None
    return name, description or None


def split_title_description(text: str) -> tuple[str, str]:
    """Split "Title: description" at the first colon."""
    head, sep, tail = text.partition(":")
    if not sep or not head.strip():
        return text.strip(), ""
    return head.strip(), tail.strip()


def format_weight(weight: float) -> str:
    return f"{weight:g}%"


# =============================================================================
# Per-kind Decomposition
# =============================================================================

def decompose_phases(raw_items: list[RawItem]) -> Decomposition:
    phases = []
    for raw in raw_items:
        name, description = split_name_description(_flatten(raw))
        phases.append(JourneyPhase(name=name, description=description))
    return Decomposition(items=tuple(phases), count=len(phases))


def decompose_strings(raw_items: list[RawItem]) -> Decomposition:
    values = tuple(_flatten(raw) for raw in raw_items)
    return Decomposition(items=values, count=len(values))


def decompose_milestones(raw_items: list[RawItem]) -> Decomposition:
    milestones = []
    for raw in raw_items:
        title, description = split_title_description(_flatten(raw))
        milestones.append(Milestone(title=title, description=description))
    return Decomposition(items=tuple(milestones), count=len(milestones))


def parse_criterion(text: str) -> RubricCriterion:
    """Parse "Criterion (25%): description"."""
    colon = _first_colon_outside_parens(text)
    head = text if colon < 0 else text[:colon]
    description = "" if colon < 0 else text[colon + 1:].strip()
    head = head.strip()

    name, weight = head, None
    match = WEIGHT_PATTERN.match(head)
    if match and match.group("name").strip():
        value = float(match.group("weight"))
        # Out-of-range weights stay in the name rather than being dropped
        if value <= 100:
            name, weight = match.group("name").strip(), value

    if not name:
        name, description = text.strip(), ""
    return RubricCriterion(criterion=name, weight=weight, description=description)


def decompose_rubric(raw_items: list[RawItem]) -> Decomposition:
    criteria = tuple(parse_criterion(_flatten(raw)) for raw in raw_items)
    warnings = []
    weights = [c.weight for c in criteria]
    if criteria and all(w is not None for w in weights):
        total = sum(weights)
        if abs(total - 100) > 0.5:
            warnings.append(
                f"Rubric weights add up to {format_weight(total)}, not 100%."
            )
    return Decomposition(items=criteria, count=len(criteria), warnings=warnings)


def _anchor_matches(text: str, names: tuple[str, ...]) -> list[re.Match]:
    matches = [m for name in names for pattern in IMPACT_ANCHORS[name] for m in pattern.finditer(text)]
    return sorted(matches, key=lambda m: m.start())


def _capture_after(text: str, anchor: re.Match, stops: list[re.Match]) -> str:
    end = len(text)
    sentence_stop = SENTENCE_STOP_PATTERN.search(text, anchor.end())
    if sentence_stop:
        end = sentence_stop.start()
    for stop in stops:
        if anchor.end() <= stop.start() < end:
            end = stop.start()
            break
    return text[anchor.end():end].strip(" ,:-–—\t")


def extract_impact_fields(text: str) -> dict[str, str]:
    """Pull audience, method and purpose out of an impact statement."""
    fields = {}
    for name in IMPACT_ANCHORS:
        others = tuple(other for other in IMPACT_ANCHORS if other != name)
        stops = _anchor_matches(text, others)
        value = ""
        for anchor in _anchor_matches(text, (name,)):
            value = normalize_whitespace(_capture_after(text, anchor, stops))
            if value:
                break
        fields[name] = value
    return fields


def decompose_impact(raw_items: list[RawItem]) -> Decomposition:
    # Listed parts ("- Audience: ...", "- Method: ...") form one statement
    text = "; ".join(_single_texts(raw_items))
    fields = extract_impact_fields(text)
    impact = ImpactStatement(**fields)

    warnings = []
    missing_required = [name for name in IMPACT_REQUIRED_FIELDS if not fields[name]]
    for name in missing_required:
        hint = "who will see the work" if name == "audience" else "how the work will be shared"
        warnings.append(f"Could not find the impact {name}; say {hint}.")
    if not fields["purpose"]:
        warnings.append("No purpose found; consider saying what the audience will do or learn.")

    if impact.is_empty:
        return Decomposition(items=None, count=0, completeness=0.0, warnings=warnings)

    found = len(IMPACT_REQUIRED_FIELDS) - len(missing_required)
    return Decomposition(
        items=impact,
        count=1,
        completeness=found / len(IMPACT_REQUIRED_FIELDS),
        warnings=warnings,
    )


def decompose_text(raw_items: list[RawItem]) -> Decomposition:
    texts = _single_texts(raw_items)
    if not texts:
        return Decomposition(items=None, count=0)
    warnings = [_extra_items_warning(ArtifactKind.IDEA, len(texts))] if len(texts) > 1 else []
    return Decomposition(items=texts[0], count=1, warnings=warnings)


def decompose_question(raw_items: list[RawItem]) -> Decomposition:
    texts = _single_texts(raw_items)
    if not texts:
        return Decomposition(items=None, count=0, warnings=[missing_question_mark_warning()])
    warnings = [_extra_items_warning(ArtifactKind.QUESTION, len(texts))] if len(texts) > 1 else []
    questions = [text for text in texts if "?" in text]
    if not questions:
        warnings.append(missing_question_mark_warning())
        return Decomposition(items=texts[0], count=1, completeness=0.0, warnings=warnings)
    return Decomposition(items=questions[0], count=1, warnings=warnings)


def missing_question_mark_warning() -> str:
    return "An essential question must include a question mark (?); none was found."


DECOMPOSERS = {
    ArtifactKind.IDEA: decompose_text,
    ArtifactKind.QUESTION: decompose_question,
    ArtifactKind.PHASES: decompose_phases,
    ArtifactKind.ACTIVITIES: decompose_strings,
    ArtifactKind.RESOURCES: decompose_strings,
    ArtifactKind.MILESTONES: decompose_milestones,
    ArtifactKind.RUBRIC: decompose_rubric,
    ArtifactKind.IMPACT: decompose_impact,
}


# =============================================================================
# Rendering
# =============================================================================

def render_item(kind: ArtifactKind, item: Any) -> str:
    """Render one typed item as a single line that parses back to itself."""
    if kind == ArtifactKind.PHASES:
        return f"{item.name}: {item.description}" if item.description else item.name
    if kind == ArtifactKind.MILESTONES:
        return f"{item.title}: {item.description}" if item.description else item.title
    if kind == ArtifactKind.RUBRIC:
        head = item.criterion
        if item.weight is not None:
            head = f"{head} ({format_weight(item.weight)})"
        return f"{head}: {item.description}" if item.description else head
    if kind == ArtifactKind.IMPACT:
        parts = [
            f"{label}: {value}"
            for label, value in (
                ("Audience", item.audience),
                ("Method", item.method),
                ("Purpose", item.purpose),
            )
            if value
        ]
        return "; ".join(parts)
    return str(item)
