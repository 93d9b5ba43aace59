"""Export of a subject's questions.

build_export_document() produces the self-contained HTML handed to the PDF
renderer; export_markdown() renders the same document as Markdown.
Answers are stored HTML and always pass through sanitize_html() first.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Union

from .sanitize import DEFAULT_POLICY, SanitizePolicy, escape_html, sanitize_html


class Difficulty(Enum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"

    @classmethod
    def parse(cls, value: Union[str, "Difficulty", None]) -> "Difficulty":
        """Parse a difficulty name case-insensitively; missing means Easy."""
        if isinstance(value, cls):
            return value
        if value is None or not str(value).strip():
            return cls.EASY
        for difficulty in cls:
            if difficulty.value.lower() == str(value).strip().lower():
                return difficulty
        raise ValueError(f"Unknown difficulty '{value}' (expected Easy, Medium or Hard)")


@dataclass
class Subject:
    title: str
    description: str = ""
    owner: str = ""


@dataclass
class Question:
    """A question with its rich-text answer."""
    title: str
    answer_html: str = ""
    difficulty: Difficulty = Difficulty.EASY
    tags: list[str] = field(default_factory=list)

    def __post_init__(self):
        self.title = self.title.strip()
        self.difficulty = Difficulty.parse(self.difficulty)
        self.tags = [tag.strip().lower() for tag in self.tags if tag and tag.strip()]


_FILENAME_UNSAFE_RE = re.compile(r"[^a-z0-9]", re.IGNORECASE)


def difficulty_counts(questions: Iterable[Question]) -> dict[Difficulty, int]:
    counts = Counter(question.difficulty for question in questions)
    return {difficulty: counts.get(difficulty, 0) for difficulty in Difficulty}


def export_filename(subject: Subject, extension: str = "pdf") -> str:
    """File name for an export, e.g. "Data_Structures_questions.pdf"."""
    title = subject.title or "export"
    return f"{_FILENAME_UNSAFE_RE.sub('_', title)}_questions.{extension}"


def _render_question(number: int, question: Question, policy: SanitizePolicy) -> str:
    parts = [
        '<div class="pdf-question">',
        f'<h2 class="pdf-question-header">Q{number}. {escape_html(question.title)}</h2>',
        f'<p class="pdf-question-meta"><em class="pdf-difficulty '
        f'pdf-difficulty-{question.difficulty.value.lower()}">{question.difficulty.value}</em></p>',
    ]
    if question.tags:
        tags = " ".join(
            f'<code class="pdf-tag">{escape_html(tag)}</code>' for tag in question.tags
        )
        parts.append(f'<p class="pdf-tags">{tags}</p>')
    parts.append(f'<div class="pdf-answer">{sanitize_html(question.answer_html, policy)}</div>')
    parts.append("</div>")
    return "".join(parts)


def build_export_document(subject: Subject, questions: list[Question],
                          policy: SanitizePolicy = DEFAULT_POLICY) -> str:
    """HTML for a subject export: title, description, stats and numbered questions."""
    counts = difficulty_counts(questions)
    stats = "".join(
        [f"<span>Total: {len(questions)}</span> "]
        + [f"<span>{difficulty.value}: {counts[difficulty]}</span> " for difficulty in Difficulty]
    ).strip()

    parts = [
        '<div class="pdf-export-container">',
        f'<h1 class="pdf-title">{escape_html(subject.title)}</h1>',
    ]
    if subject.description:
        parts.append(f'<p class="pdf-description">{escape_html(subject.description)}</p>')
    parts.append(f'<p class="pdf-stats">{stats}</p>')

    rendered = [
        _render_question(index, question, policy)
        for index, question in enumerate(questions, start=1)
    ]
    parts.append('<hr class="pdf-separator">'.join(rendered))
    parts.append("</div>")
    return "".join(parts)


def html_to_markdown(html: str, body_width: int = 0) -> str:
    """Convert HTML to Markdown with html2text."""
    import html2text

    h = html2text.HTML2Text()
    h.body_width = body_width
    h.unicode_snob = True
    h.skip_internal_links = True
    h.ignore_emphasis = False
    return h.handle(html).strip()


def export_markdown(subject: Subject, questions: list[Question],
                    policy: SanitizePolicy = DEFAULT_POLICY) -> str:
    """Markdown rendition of build_export_document()."""
    return html_to_markdown(build_export_document(subject, questions, policy))
