"""Assemble classified lines into well-nested HTML.

The assembler is a small state machine. Every line kind maps to the state it
requires (TRANSITIONS); moving between states closes whatever the previous
state had open, so lists and code blocks can never be left dangling.
"""

import textwrap
from enum import Enum
from typing import Callable, Iterable, Optional

from .classifier import ClassifiedLine, LineKind, split_lines
from .sanitize import escape_html

StructuredDocument = list[str]


class AssemblerState(Enum):
    IDLE = "idle"
    BULLET_LIST = "bullet-list"
    ORDERED_LIST = "ordered-list"
    CODE_BLOCK = "code-block"


LIST_TAGS = {
    AssemblerState.BULLET_LIST: "ul",
    AssemblerState.ORDERED_LIST: "ol",
}

# State each line kind needs outside a fenced block
TRANSITIONS: dict[LineKind, AssemblerState] = {
    LineKind.EMPTY: AssemblerState.IDLE,
    LineKind.HEADING: AssemblerState.IDLE,
    LineKind.SUBHEADING: AssemblerState.IDLE,
    LineKind.CODE_FENCE: AssemblerState.CODE_BLOCK,
    LineKind.BULLET: AssemblerState.BULLET_LIST,
    LineKind.ORDERED: AssemblerState.ORDERED_LIST,
    LineKind.CODE_LINE: AssemblerState.IDLE,
    LineKind.PARAGRAPH: AssemblerState.IDLE,
}

LIST_CLOSES = frozenset(f"</{tag}>" for tag in LIST_TAGS.values())


def _code_block(lines: list[str]) -> str:
    return f"<pre><code>{escape_html(chr(10).join(lines))}</code></pre>"


class DocumentBuilder:
    """Single forward pass over classified lines, producing HTML fragments."""

    def __init__(self):
        self.fragments: StructuredDocument = []
        self.state = AssemblerState.IDLE
        self._code_buffer: list[str] = []
        self._loose_code: list[str] = []
        self._previous: Optional[LineKind] = None
        self._emitters: dict[LineKind, Callable[[ClassifiedLine], None]] = {
            LineKind.EMPTY: self._emit_break,
            LineKind.HEADING: self._emit_heading,
            LineKind.SUBHEADING: self._emit_subheading,
            LineKind.CODE_FENCE: self._emit_nothing,
            LineKind.BULLET: self._emit_item,
            LineKind.ORDERED: self._emit_item,
            LineKind.CODE_LINE: self._emit_code_line,
            LineKind.PARAGRAPH: self._emit_paragraph,
        }

    def feed(self, line: ClassifiedLine) -> None:
        if self.state is AssemblerState.CODE_BLOCK:
            if line.kind is LineKind.CODE_FENCE:
                self._transition(AssemblerState.IDLE)
            else:
                self._code_buffer.append(line.raw)
        else:
            self._transition(TRANSITIONS[line.kind])
            self._emitters[line.kind](line)
        self._previous = line.kind

    def finish(self) -> StructuredDocument:
        """Close open lists and flush an unterminated fence."""
        self._transition(AssemblerState.IDLE)
        return self.fragments

    def _transition(self, target: AssemblerState) -> None:
        if target is self.state:
            return
        if self.state in LIST_TAGS:
            self.fragments.append(f"</{LIST_TAGS[self.state]}>")
        elif self.state is AssemblerState.CODE_BLOCK:
            self._flush_code_block()

        if target in LIST_TAGS:
            self.fragments.append(f"<{LIST_TAGS[target]}>")
        elif target is AssemblerState.CODE_BLOCK:
            self._code_buffer = []
        self.state = target

    def _flush_code_block(self) -> None:
        if any(line.strip() for line in self._code_buffer):
            self.fragments.append(_code_block(self._code_buffer))
        self._code_buffer = []

    def _emit_break(self, line: ClassifiedLine) -> None:
        if self.fragments and self.fragments[-1] not in LIST_CLOSES:
            self.fragments.append("<br>")

    def _emit_heading(self, line: ClassifiedLine) -> None:
        self.fragments.append(f"<h2>{escape_html(line.content)}</h2>")

    def _emit_subheading(self, line: ClassifiedLine) -> None:
        self.fragments.append(f"<h3>{escape_html(line.content)}</h3>")

    def _emit_nothing(self, line: ClassifiedLine) -> None:
        pass

    def _emit_item(self, line: ClassifiedLine) -> None:
        self.fragments.append(f"<li>{escape_html(line.content)}</li>")

    def _emit_code_line(self, line: ClassifiedLine) -> None:
        if self._previous is LineKind.CODE_LINE:
            self._loose_code.append(line.raw.rstrip())
            self.fragments[-1] = self._render_loose_code()
        else:
            self._loose_code = [line.raw.rstrip()]
            self.fragments.append(self._render_loose_code())

    def _render_loose_code(self) -> str:
        dedented = textwrap.dedent("\n".join(self._loose_code)).strip("\n")
        return _code_block(dedented.split("\n"))

    def _emit_paragraph(self, line: ClassifiedLine) -> None:
        text = escape_html(line.content)
        if self._previous is LineKind.PARAGRAPH:
            # Continue the paragraph the previous line opened
            self.fragments[-1] = f"{self.fragments[-1][:-len('</p>')]} {text}</p>"
        else:
            self.fragments.append(f"<p>{text}</p>")


def build_document(lines: Iterable[ClassifiedLine]) -> StructuredDocument:
    builder = DocumentBuilder()
    for line in lines:
        builder.feed(line)
    return builder.finish()


def assemble(lines: Iterable[ClassifiedLine]) -> str:
    """Render classified lines as HTML. Never raises for any input."""
    return "".join(build_document(lines))


def assemble_paragraphs(text: str) -> str:
    """Naive conversion: one <p> per blank-line-separated block, no inference."""
    if not text:
        return ""

    paragraphs: list[str] = []
    current: list[str] = []
    for line in split_lines(text):
        stripped = line.strip()
        if stripped:
            current.append(stripped)
        elif current:
            paragraphs.append(f"<p>{escape_html(' '.join(current))}</p>")
            current = []
    if current:
        paragraphs.append(f"<p>{escape_html(' '.join(current))}</p>")

    return "".join(paragraphs)
