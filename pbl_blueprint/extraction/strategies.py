"""Parsing strategies for free-text responses.

Each strategy is a pure function from cleaned text to a list of RawItem.
They are tried in cascade order and the first one that yields at least one
item wins. The base confidence reflects how explicit the matched structure
is.

Priority levels:
- 1.00: Embedded JSON object ({"phases": [...]}, {"criteria": [...]})
- 0.90: Header blocks ("Phase 1: Research" + sub-lines)
- 0.80: Markdown tables ("| Criterion | Weight | Description |")
- 0.75: Numbered list lines ("1." / "2)")
- 0.65: Bulleted list lines ("*", "-", "•")
- 0.40: Paragraph split (fallback; whole text for single kinds)

Single kinds (idea, question, impact) skip the table strategy and fall back
to the whole text instead of paragraphs.
"""

import json
import re
from dataclasses import dataclass, field
from functools import partial
from typing import Any, Callable, Iterator, Optional

from pbl_blueprint.extraction.text_cleaner import normalize_whitespace
from pbl_blueprint.models import ArtifactKind, ExtractionFormat


@dataclass(frozen=True)
class RawItem:
    """One item found by a strategy, before field decomposition."""
    title: str
    body: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class Strategy:
    """A parsing strategy and its base confidence."""
    format: ExtractionFormat
    base_confidence: float
    parse: Callable[[str], list[RawItem]]


# =============================================================================
# Line Patterns
# =============================================================================

# "Phase 1: Research", "Milestone 2: Prototype", "## Week 3: Share"
HEADER_LINE_PATTERN = re.compile(
    r"^\s*(?:#{1,6}\s*)?"
    r"(?P<label>[A-Za-z][A-Za-z&/'\-]*(?:\s+[A-Za-z][A-Za-z&/'\-]*){0,2})"
    r"\s+(?P<number>\d+)\s*:\s*(?P<title>\S.*?)\s*$"
)

# "1. Research" / "2) Design"
NUMBERED_LINE_PATTERN = re.compile(r"^\s*(?P<number>\d+)[.)]\s+(?P<text>\S.*?)\s*$")

# "* Research" / "- Design" / "• Build"
BULLET_LINE_PATTERN = re.compile(r"^\s*[*\-•]\s+(?P<text>\S.*?)\s*$")

PARAGRAPH_BREAK_PATTERN = re.compile(r"\n\s*\n")

# "|---|:---:|" row under a table header
TABLE_SEPARATOR_PATTERN = re.compile(r"^\s*\|?\s*:?-{3,}:?\s*(?:\|\s*:?-{3,}:?\s*)*\|?\s*$")

# Table column holding rubric weights
WEIGHT_HEADER_PATTERN = re.compile(r"weight|%|points|pts", re.IGNORECASE)

# "30%", "30", "20 pts" as a weight cell
WEIGHT_CELL_PATTERN = re.compile(r"^\d+(?:\.\d+)?\s*(?:%|pts?|points)?$", re.IGNORECASE)

JSON_START_PATTERN = re.compile(r"[{\[]")


def _indent(line: str) -> int:
    return len(line) - len(line.lstrip())


def _sub_item_text(line: str) -> Optional[str]:
    """Text of a nested bullet or numbered line, None for plain lines."""
    match = BULLET_LINE_PATTERN.match(line) or NUMBERED_LINE_PATTERN.match(line)
    return match.group("text") if match else None


# =============================================================================
# Text Strategies
# =============================================================================

def parse_header_blocks(text: str) -> list[RawItem]:
    """Group "<Label> <n>: <title>" lines with their contiguous sub-lines.

    A blank line closes the current block, so trailing commentary after the
    last block is not swallowed into it.
    """
    items: list[RawItem] = []
    title: str | None = None
    body: list[str] = []
    block_open = False

    def close() -> None:
        if title is not None:
            items.append(RawItem(title=title, body=tuple(body)))

    for line in text.split("\n"):
        match = HEADER_LINE_PATTERN.match(line)
        if match:
            close()
            title = normalize_whitespace(match.group("title"))
            body = []
            block_open = True
            continue

        stripped = line.strip()
        if not stripped:
            block_open = False
            continue

        if block_open:
            bullet = BULLET_LINE_PATTERN.match(stripped)
            sub_line = bullet.group("text") if bullet else stripped
            body.append(normalize_whitespace(sub_line))

    close()
    return items


def _parse_marker_list(text: str, is_item: Callable[[str], Optional[re.Match]]) -> list[RawItem]:
    """Items start at marker lines; the lines under them are kept with them.

    Nested bullet or numbered lines become body entries. Plain lines are
    wrapped continuations of the title (or of the last body entry). A blank
    line closes the current item.
    """
    items: list[RawItem] = []
    title: list[str] = []
    body: list[list[str]] = []
    open_item = False

    def close() -> None:
        if title:
            items.append(
                RawItem(
                    title=normalize_whitespace(" ".join(title)),
                    body=tuple(normalize_whitespace(" ".join(entry)) for entry in body),
                )
            )

    for line in text.split("\n"):
        match = is_item(line)
        if match:
            close()
            title, body = [match.group("text")], []
            open_item = True
            continue

        stripped = line.strip()
        if not stripped:
            open_item = False
            continue
        if not open_item:
            continue

        sub_text = _sub_item_text(stripped)
        if sub_text is not None:
            body.append([sub_text])
        elif body:
            body[-1].append(stripped)
        else:
            title.append(stripped)

    close()
    return items


def parse_numbered_list(text: str) -> list[RawItem]:
    """One item per line starting with an integer and "." or ")"."""
    return _parse_marker_list(text, NUMBERED_LINE_PATTERN.match)


def parse_bulleted_list(text: str) -> list[RawItem]:
    """One item per line starting with a bullet marker.

    Bullets indented deeper than the shallowest bullet are sub-lines of the
    item above them.
    """
    indents = [_indent(line) for line in text.split("\n") if BULLET_LINE_PATTERN.match(line)]
    if not indents:
        return []
    top = min(indents)

    def is_item(line: str) -> Optional[re.Match]:
        match = BULLET_LINE_PATTERN.match(line)
        return match if match and _indent(line) <= top else None

    return _parse_marker_list(text, is_item)


def _table_cells(line: str) -> list[str]:
    stripped = line.strip()
    if stripped.startswith("|"):
        stripped = stripped[1:]
    if stripped.endswith("|"):
        stripped = stripped[:-1]
    return [normalize_whitespace(cell) for cell in stripped.split("|")]


def _table_row_item(headers: list[str], cells: list[str]) -> Optional[RawItem]:
    if not cells or not cells[0]:
        return None
    title = cells[0]
    extra = []
    for index, cell in enumerate(cells[1:], 1):
        header = headers[index] if index < len(headers) else ""
        if not cell:
            continue
        if WEIGHT_HEADER_PATTERN.search(header) and WEIGHT_CELL_PATTERN.match(cell):
            title = f"{title} ({cell})"
        else:
            extra.append((header, cell))
    # Several descriptive columns (rubric levels) keep their header as a label
    if len(extra) > 1:
        body = tuple(f"{header}: {cell}" if header else cell for header, cell in extra)
    else:
        body = tuple(cell for _, cell in extra)
    return RawItem(title=title, body=body)


def parse_markdown_table(text: str) -> list[RawItem]:
    """One item per row of the first markdown table.

    The first column is the item title. A weight column is folded into the
    title as "(30%)"; other columns become body entries.
    """
    lines = text.split("\n")
    for index in range(1, len(lines)):
        if not TABLE_SEPARATOR_PATTERN.match(lines[index]) or "|" not in lines[index - 1]:
            continue
        headers = _table_cells(lines[index - 1])
        items = []
        for row in lines[index + 1:]:
            if "|" not in row:
                break
            item = _table_row_item(headers, _table_cells(row))
            if item is not None:
                items.append(item)
        if items:
            return items
    return []


def parse_paragraphs(text: str) -> list[RawItem]:
    """One item per blank-line separated paragraph."""
    items = []
    for paragraph in PARAGRAPH_BREAK_PATTERN.split(text):
        collapsed = normalize_whitespace(paragraph)
        if collapsed:
            items.append(RawItem(title=collapsed))
    return items


def parse_whole_text(text: str) -> list[RawItem]:
    """The entire text as a single item."""
    collapsed = normalize_whitespace(text)
    return [RawItem(title=collapsed)] if collapsed else []


# =============================================================================
# JSON Strategy
# =============================================================================

# Keys holding each kind's value; the first one is used when rendering
JSON_KEYS: dict[ArtifactKind, tuple[str, ...]] = {
    ArtifactKind.IDEA: ("bigIdea", "big_idea", "idea", "challenge"),
    ArtifactKind.QUESTION: (
        "essentialQuestion",
        "essential_question",
        "drivingQuestion",
        "driving_question",
        "question",
    ),
    ArtifactKind.PHASES: ("phases", "journeyPhases", "journey_phases"),
    ArtifactKind.ACTIVITIES: ("activities",),
    ArtifactKind.RESOURCES: ("resources",),
    ArtifactKind.MILESTONES: ("milestones",),
    ArtifactKind.RUBRIC: ("criteria", "rubric"),
    ArtifactKind.IMPACT: ("impact", "impactStatement", "impact_statement"),
}

JSON_TITLE_KEYS = ("name", "title", "criterion", "phase", "milestone", "activity", "resource", "text")
JSON_DESCRIPTION_KEYS = ("description", "focus", "details", "summary")
IMPACT_JSON_FIELDS = ("audience", "method", "purpose")

_JSON_DECODER = json.JSONDecoder()


def _json_values(text: str) -> Iterator[Any]:
    """Every JSON object or array embedded in the text, in order."""
    for match in JSON_START_PATTERN.finditer(text):
        try:
            value, _ = _JSON_DECODER.raw_decode(text, match.start())
        except json.JSONDecodeError:
            continue
        yield value


def _select_json_value(value: Any, kind: ArtifactKind) -> Any:
    if isinstance(value, list):
        return value if kind.is_list else None
    if not isinstance(value, dict):
        return None
    for key in JSON_KEYS[kind]:
        if key in value:
            selected = value[key]
            # {"rubric": {"criteria": [...]}}
            if kind.is_list and isinstance(selected, dict):
                return _select_json_value(selected, kind)
            return selected
    if kind == ArtifactKind.IMPACT and any(name in value for name in IMPACT_JSON_FIELDS):
        return value
    return None


def _json_item(value: Any) -> Optional[RawItem]:
    if isinstance(value, str):
        text = normalize_whitespace(value)
        return RawItem(title=text) if text else None
    if not isinstance(value, dict):
        return None

    if any(name in value for name in IMPACT_JSON_FIELDS):
        parts = [
            f"{name.capitalize()}: {normalize_whitespace(str(value[name]))}"
            for name in IMPACT_JSON_FIELDS
            if value.get(name)
        ]
        return RawItem(title="; ".join(parts)) if parts else None

    title = next((str(value[key]) for key in JSON_TITLE_KEYS if value.get(key)), "")
    title = normalize_whitespace(title)
    if not title:
        return None
    weight = value.get("weight")
    if isinstance(weight, (int, float)) and not isinstance(weight, bool):
        title = f"{title} ({weight:g}%)"
    elif isinstance(weight, str) and WEIGHT_CELL_PATTERN.match(weight.strip()):
        title = f"{title} ({weight.strip()})"
    description = next(
        (normalize_whitespace(str(value[key])) for key in JSON_DESCRIPTION_KEYS if value.get(key)),
        "",
    )
    return RawItem(title=title, body=(description,) if description else ())


def parse_json_object(text: str, kind: ArtifactKind) -> list[RawItem]:
    """Items from the first embedded JSON value that holds the kind's data.

    List kinds accept a top-level array or an object keyed by the kind
    ("phases", "criteria", ...). Single kinds need an object key.
    """
    for value in _json_values(text):
        selected = _select_json_value(value, kind)
        if selected is None:
            continue
        if kind.is_list:
            if not isinstance(selected, list):
                continue
            items = [item for item in map(_json_item, selected) if item is not None]
        else:
            item = _json_item(selected)
            items = [item] if item is not None else []
        if items:
            return items
    return []


# =============================================================================
# Cascades
# =============================================================================

HEADER_BLOCK = Strategy(ExtractionFormat.HEADER_BLOCK, 0.9, parse_header_blocks)
MARKDOWN_TABLE = Strategy(ExtractionFormat.MARKDOWN_TABLE, 0.8, parse_markdown_table)
NUMBERED_LIST = Strategy(ExtractionFormat.NUMBERED_LIST, 0.75, parse_numbered_list)
BULLETED_LIST = Strategy(ExtractionFormat.BULLETED_LIST, 0.65, parse_bulleted_list)
PARAGRAPH_SPLIT = Strategy(ExtractionFormat.PARAGRAPH_SPLIT, 0.4, parse_paragraphs)
WHOLE_TEXT = Strategy(ExtractionFormat.PARAGRAPH_SPLIT, 0.4, parse_whole_text)

JSON_CONFIDENCE = 1.0

# Kind-independent text strategies for list kinds, most explicit first
STRATEGY_CASCADE: tuple[Strategy, ...] = (
    HEADER_BLOCK,
    MARKDOWN_TABLE,
    NUMBERED_LIST,
    BULLETED_LIST,
    PARAGRAPH_SPLIT,
)

# Single kinds: same markers, the whole response as last resort
SINGLE_TEXT_CASCADE: tuple[Strategy, ...] = (
    HEADER_BLOCK,
    NUMBERED_LIST,
    BULLETED_LIST,
    WHOLE_TEXT,
)


def _build_cascade(kind: ArtifactKind) -> tuple[Strategy, ...]:
    json_strategy = Strategy(
        ExtractionFormat.JSON_OBJECT, JSON_CONFIDENCE, partial(parse_json_object, kind=kind)
    )
    text_strategies = STRATEGY_CASCADE if kind.is_list else SINGLE_TEXT_CASCADE
    return (json_strategy, *text_strategies)


CASCADES: dict[ArtifactKind, tuple[Strategy, ...]] = {
    kind: _build_cascade(kind) for kind in ArtifactKind
}

BASE_CONFIDENCE: dict[ExtractionFormat, float] = {
    ExtractionFormat.JSON_OBJECT: JSON_CONFIDENCE,
    **{strategy.format: strategy.base_confidence for strategy in STRATEGY_CASCADE},
}


def cascade_for(kind: ArtifactKind) -> tuple[Strategy, ...]:
    return CASCADES[kind]


# =============================================================================
# Rendering Guard
# =============================================================================

def _marker_cut(line: str) -> Optional[int]:
    match = HEADER_LINE_PATTERN.match(line)
    if match:
        return match.start("number")
    for pattern in (NUMBERED_LINE_PATTERN, BULLET_LINE_PATTERN):
        match = pattern.match(line)
        if match:
            return match.start("text")
    return None


def break_marker_lines(line: str) -> str:
    """Break a one-line paragraph so no line of it opens a header or list item.

    Paragraph parsing joins the lines back with single spaces, so the
    re-parsed paragraph equals the input line.
    """
    lines = []
    rest = line
    cut = _marker_cut(rest)
    while cut is not None:
        lines.append(rest[:cut].rstrip())
        rest = rest[cut:]
        cut = _marker_cut(rest)
    lines.append(rest)
    return "\n".join(lines)
