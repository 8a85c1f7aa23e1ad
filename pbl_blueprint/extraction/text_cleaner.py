"""Markdown stripping ahead of strategy matching.

Generated responses arrive decorated with emphasis markers, inline code and
heading hashes. Those get in the way of the line-anchored strategies, so they
are removed here.

PATTERNS REMOVED:
1. Bold / italic emphasis ("**x**", "__x__", "*x*", "_x_")
2. Inline code backticks
3. Heading markers ("## Phase 1: ...")
4. Repeated spaces and tabs, excessive blank lines
5. Indentation shared by every line

Line boundaries, leading bullet markers and relative indentation are kept:
the list strategies depend on them to tell items from sub-lines.
"""

import re
from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass
class MarkdownCleaningTrace:
    """Trace of what was cleaned."""
    emphasis_removed: int = 0
    headings_removed: int = 0
    lines_before: int = 0
    lines_after: int = 0
    chars_removed: int = 0


@dataclass
class CleanedText:
    """Result of markdown cleaning."""
    text: str
    trace: MarkdownCleaningTrace


# =============================================================================
# Noise Patterns
# =============================================================================

# "**bold**" and "__bold__" markers, removed wherever they appear
STRONG_MARKER_PATTERN = re.compile(r"\*\*|__")

# "*italic*" - the opening star must hug a word, which keeps "* bullet" intact
STAR_EMPHASIS_PATTERN = re.compile(r"(?<![\w*])\*(?=\S)(.+?)(?<=\S)\*(?![\w*])")

# "_italic_" but not snake_case identifiers
UNDERSCORE_EMPHASIS_PATTERN = re.compile(r"(?<![\w_])_(?=\S)(.+?)(?<=\S)_(?![\w_])")

INLINE_CODE_PATTERN = re.compile(r"`+")

HEADING_PATTERN = re.compile(r"^[ \t]*#{1,6}[ \t]+", re.MULTILINE)

HORIZONTAL_SPACE_PATTERN = re.compile(r"[ \t\f\v]+")


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _clean_line(line: str) -> str:
    """Collapse inner whitespace; leading tabs count as four spaces."""
    content = HORIZONTAL_SPACE_PATTERN.sub(" ", line).strip()
    if not content:
        return ""
    leading = line.expandtabs(4)
    return " " * _indent_width(leading) + content


def clean_markdown(raw_text: str) -> CleanedText:
    """Strip markdown decoration while keeping line structure.

    Args:
        raw_text: Raw response text.

    Returns:
        CleanedText with cleaned text and trace.
    """
    trace = MarkdownCleaningTrace()
    text = raw_text.replace("\r\n", "\n").replace("\r", "\n")
    trace.lines_before = len(text.split("\n"))
    original_len = len(raw_text)

    # 1. Strong emphasis
    text, strong_count = STRONG_MARKER_PATTERN.subn("", text)

    # 2. Italic emphasis
    text, star_count = STAR_EMPHASIS_PATTERN.subn(r"\1", text)
    text, underscore_count = UNDERSCORE_EMPHASIS_PATTERN.subn(r"\1", text)
    trace.emphasis_removed = strong_count // 2 + star_count + underscore_count

    # 3. Inline code
    text = INLINE_CODE_PATTERN.sub("", text)

    # 4. Headings
    text, trace.headings_removed = HEADING_PATTERN.subn("", text)

    # 5. Whitespace, line by line, keeping relative indentation
    lines = [_clean_line(line) for line in text.split("\n")]
    indents = [_indent_width(line) for line in lines if line]
    common = min(indents, default=0)
    text = "\n".join(line[common:] for line in lines)
    text = re.sub(r"\n{3,}", "\n\n", text)
    text = text.strip("\n")

    trace.lines_after = len(text.split("\n")) if text else 0
    trace.chars_removed = original_len - len(text)

    logger.debug(
        "markdown_cleaning_complete",
        emphasis_removed=trace.emphasis_removed,
        headings_removed=trace.headings_removed,
        chars_removed=trace.chars_removed,
    )

    return CleanedText(text=text, trace=trace)


def normalize_whitespace(text: str) -> str:
    """Collapse all whitespace, including newlines, to single spaces."""
    return " ".join(text.split())
