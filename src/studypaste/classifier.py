"""Line-by-line structure classifier for pasted plain text.

Each line is matched against LINE_RULES in order; the first rule whose
predicate accepts the line decides its kind. Heading is checked before
Subheading, so a short colon-terminated line becomes a heading.
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Sequence


class LineKind(Enum):
    """Structural role of a single line of plain text."""
    EMPTY = "empty"
    HEADING = "heading"
    SUBHEADING = "subheading"
    CODE_FENCE = "code-fence"
    BULLET = "bullet"
    ORDERED = "ordered"
    CODE_LINE = "code-line"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class ClassifiedLine:
    """A classified line. ``content`` is raw text, never markup."""
    kind: LineKind
    content: str
    raw: str = ""


CAPS_HEADING_RE = re.compile(r"^[A-Z\s]+$")
BULLET_RE = re.compile(r"^[-•*→]\s+")
NUMBERED_RE = re.compile(r"^\d+\.\s+")
STEP_RE = re.compile(r"^step\s+\d+[:.]\s*", re.IGNORECASE)
ORDINAL_RE = re.compile(
    r"^(first|second|third|fourth|fifth|firstly|secondly)[,:\s]", re.IGNORECASE
)
INDENTED_RE = re.compile(r"^( {4,}|\t)")
FENCE_PREFIXES = ("```", "~~~")

SUBHEADING_LEADS = (
    re.compile(r"^Definition:", re.IGNORECASE),
    re.compile(r"^What is", re.IGNORECASE),
    re.compile(r"^Introduction:", re.IGNORECASE),
    re.compile(r"^Overview:", re.IGNORECASE),
    re.compile(r"^Note:", re.IGNORECASE),
    re.compile(r"^Important:", re.IGNORECASE),
)

# Declarations and statements in common C-family and Python syntax
CODE_PATTERNS = (
    re.compile(r"^(export\s+)?(async\s+)?function\s+\w+\s*\("),
    re.compile(r"^(export\s+)?(const|let|var)\s+\w+\s*="),
    re.compile(r"^(export\s+)?(abstract\s+)?class\s+\w+"),
    re.compile(r"^(async\s+)?def\s+\w+\s*\("),
    re.compile(r"^(public|private|protected)\s+(static\s+)?[\w<>\[\],]+\s+\w+\s*[(;=]"),
    re.compile(r"^#include\s*[<\"]"),
    re.compile(r"^import\s+[\w{*]"),
    re.compile(r"^from\s+[\w.]+\s+import\s"),
    re.compile(r"^return\b"),
    re.compile(r"\{.*\}.*\{.*\}"),
    re.compile(r"\w+\(.*\)\s*\{"),
)


def split_lines(text: str) -> list[str]:
    """Split text into lines, accepting LF, CRLF and CR endings."""
    return text.replace("\r\n", "\n").replace("\r", "\n").split("\n")


def is_caps_heading(text: str) -> bool:
    """ALL CAPS text of at least two words."""
    return len(text.split()) >= 2 and bool(CAPS_HEADING_RE.match(text))


def is_code_fence(text: str) -> bool:
    return text.startswith(FENCE_PREFIXES)


def is_bullet(text: str) -> bool:
    return bool(BULLET_RE.match(text))


def is_ordered(text: str) -> bool:
    return bool(NUMBERED_RE.match(text) or STEP_RE.match(text) or ORDINAL_RE.match(text))


def is_code_shaped(text: str) -> bool:
    return any(pattern.search(text) for pattern in CODE_PATTERNS)


def has_block_marker(raw: str) -> bool:
    """True when a line carries an explicit marker: list, fence, indent or code shape."""
    if INDENTED_RE.match(raw):
        return True
    text = raw.strip()
    return is_code_fence(text) or is_bullet(text) or is_ordered(text) or is_code_shaped(text)


def _is_short_title(text: str) -> bool:
    return 2 <= len(text.split()) <= 6 and not text.endswith(".")


def _is_colon_title(text: str) -> bool:
    return text.endswith(":") and len(text) < 60 and len(text.split()) <= 8


def _looks_like_heading(raw: str, next_raw: Optional[str], lookahead: bool) -> bool:
    text = raw.strip()
    if not text or INDENTED_RE.match(raw):
        return False
    if is_caps_heading(text):
        return True
    if has_block_marker(raw):
        return False
    if _is_short_title(text):
        if not lookahead or next_raw is None or not next_raw.strip():
            return True
        if not _looks_like_heading(next_raw, None, lookahead=False):
            return True
    return _is_colon_title(text)


def _next_line(lines: Sequence[str], index: int) -> Optional[str]:
    return lines[index + 1] if index + 1 < len(lines) else None


def _is_empty(lines: Sequence[str], index: int) -> bool:
    return not lines[index].strip()


def _is_heading(lines: Sequence[str], index: int) -> bool:
    return _looks_like_heading(lines[index], _next_line(lines, index), lookahead=True)


def _is_subheading(lines: Sequence[str], index: int) -> bool:
    raw = lines[index]
    if has_block_marker(raw):
        return False
    text = raw.strip()
    if text.endswith(":") and len(text) < 80:
        return True
    return any(lead.match(text) for lead in SUBHEADING_LEADS)


def _is_fence(lines: Sequence[str], index: int) -> bool:
    return is_code_fence(lines[index].strip())


def _is_bullet(lines: Sequence[str], index: int) -> bool:
    return is_bullet(lines[index].strip())


def _is_ordered(lines: Sequence[str], index: int) -> bool:
    return is_ordered(lines[index].strip())


def _is_code_line(lines: Sequence[str], index: int) -> bool:
    raw = lines[index]
    return bool(INDENTED_RE.match(raw)) or is_code_shaped(raw.strip())


def _always(lines: Sequence[str], index: int) -> bool:
    return True


def _strip_colon(text: str) -> str:
    return text[:-1].rstrip() if text.endswith(":") else text


def _strip_bullet(text: str) -> str:
    return BULLET_RE.sub("", text, count=1)


def _strip_ordered(text: str) -> str:
    text = NUMBERED_RE.sub("", text, count=1)
    return STEP_RE.sub("", text, count=1)


def _discard(text: str) -> str:
    return ""


def _keep(text: str) -> str:
    return text


@dataclass(frozen=True)
class LineRule:
    """One entry of the classification table."""
    kind: LineKind
    matches: Callable[[Sequence[str], int], bool]
    content: Callable[[str], str] = _keep


LINE_RULES: tuple[LineRule, ...] = (
    LineRule(LineKind.EMPTY, _is_empty, _discard),
    LineRule(LineKind.HEADING, _is_heading),
    LineRule(LineKind.SUBHEADING, _is_subheading, _strip_colon),
    LineRule(LineKind.CODE_FENCE, _is_fence, _discard),
    LineRule(LineKind.BULLET, _is_bullet, _strip_bullet),
    LineRule(LineKind.ORDERED, _is_ordered, _strip_ordered),
    LineRule(LineKind.CODE_LINE, _is_code_line),
    LineRule(LineKind.PARAGRAPH, _always),
)


def classify_line(lines: Sequence[str], index: int) -> ClassifiedLine:
    """Classify ``lines[index]``, looking at most one line ahead."""
    raw = lines[index]
    for rule in LINE_RULES:
        if rule.matches(lines, index):
            return ClassifiedLine(kind=rule.kind, content=rule.content(raw.strip()), raw=raw)
    # LINE_RULES ends with a catch-all, kept for type checkers
    return ClassifiedLine(kind=LineKind.PARAGRAPH, content=raw.strip(), raw=raw)


def classify(lines: Sequence[str]) -> list[ClassifiedLine]:
    """Classify every line in a single forward pass."""
    return [classify_line(lines, index) for index in range(len(lines))]
