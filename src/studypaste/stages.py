"""Paste stages and the chain that runs them.

The HTML and AI paths of the dispatcher are chains of small stages, each
transforming the HTML string of a PasteContext.
"""

import re
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Optional

from .cleaner import HtmlCleaner
from .dom import DEFAULT_PARSER, ScratchContainer, extract_clipboard_fragment
from .extractor import DomExtractor
from .sanitize import DEFAULT_POLICY, SanitizePolicy, escape_html

SOURCE_CLIPBOARD = "clipboard"
SOURCE_AI = "ai"

# ```html ... ``` style fences around AI replies
_FENCE_OPEN_RE = re.compile(r"^\s*```[\w-]*[ \t]*\n?")
_FENCE_CLOSE_RE = re.compile(r"\n?```\s*$")


@dataclass
class PasteContext:
    """HTML moving through the stage chain."""
    html: str
    source: str = SOURCE_CLIPBOARD

    def clone(self, **kwargs) -> "PasteContext":
        """Create a copy with optional field overrides."""
        return replace(self, **kwargs)


class PasteStage(ABC):
    """Base class for paste stages."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable stage name."""
        pass

    @property
    @abstractmethod
    def slug(self) -> str:
        """Canonical slug (e.g., 'clean')."""
        pass

    @abstractmethod
    def should_process(self, context: PasteContext) -> bool:
        """Return True if this stage should handle this paste."""
        pass

    @abstractmethod
    def process(self, context: PasteContext) -> str:
        """Transform the paste, returning new HTML."""
        pass


class ClipboardFragmentStage(PasteStage):
    """Strip the clipboard envelope (fragment markers, CF_HTML header)."""

    @property
    def name(self) -> str:
        return "ClipboardFragment"

    @property
    def slug(self) -> str:
        return "fragment"

    def should_process(self, context: PasteContext) -> bool:
        return bool(context.html)

    def process(self, context: PasteContext) -> str:
        return extract_clipboard_fragment(context.html)


class ExtractStage(PasteStage):
    """Rebuild the paste from semantic tags with DomExtractor."""

    def __init__(self, parser: str = DEFAULT_PARSER, policy: SanitizePolicy = DEFAULT_POLICY):
        self._parser = parser
        self._extractor = DomExtractor(policy)

    @property
    def name(self) -> str:
        return "DomExtractor"

    @property
    def slug(self) -> str:
        return "extract"

    def should_process(self, context: PasteContext) -> bool:
        return bool(context.html and context.html.strip())

    def process(self, context: PasteContext) -> str:
        with ScratchContainer(self._parser) as scratch:
            root = scratch.populate(context.html)
            return self._extractor.extract(root)


class CleanStage(PasteStage):
    """Final cleanup, identical for every path that produces HTML."""

    def __init__(self, parser: str = DEFAULT_PARSER, policy: SanitizePolicy = DEFAULT_POLICY):
        self._cleaner = HtmlCleaner(policy=policy, parser=parser)

    @property
    def name(self) -> str:
        return "HtmlCleaner"

    @property
    def slug(self) -> str:
        return "clean"

    def should_process(self, context: PasteContext) -> bool:
        return bool(context.html)

    def process(self, context: PasteContext) -> str:
        return self._cleaner.clean(context.html)


class AiResponseStage(PasteStage):
    """Unwrap AI replies: drop Markdown code fences, wrap bare text in <p>."""

    @property
    def name(self) -> str:
        return "AiResponse"

    @property
    def slug(self) -> str:
        return "ai-response"

    def should_process(self, context: PasteContext) -> bool:
        return context.source == SOURCE_AI

    def process(self, context: PasteContext) -> str:
        return clean_ai_response(context.html)


def clean_ai_response(html: str) -> str:
    """Strip a fenced reply down to its markup; wrap plain text as a paragraph."""
    if not html:
        return ""
    cleaned = _FENCE_OPEN_RE.sub("", html, count=1)
    cleaned = _FENCE_CLOSE_RE.sub("", cleaned, count=1).strip()
    if cleaned and not cleaned.startswith("<"):
        cleaned = f"<p>{escape_html(cleaned)}</p>"
    return cleaned


class PasteStageChain:
    """Chain of paste stages executed in order."""

    def __init__(self, stages: Optional[list[PasteStage]] = None):
        self.stages = stages or []

    def add(self, stage: PasteStage) -> None:
        self.stages.append(stage)

    @property
    def slugs(self) -> list[str]:
        return [stage.slug for stage in self.stages]

    def execute(self, context: PasteContext) -> str:
        """Execute the chain, transforming the HTML through each stage."""
        current = context
        for stage in self.stages:
            if stage.should_process(current):
                current = current.clone(html=stage.process(current))
        return current.html


def build_html_chain(parser: str = DEFAULT_PARSER,
                     policy: SanitizePolicy = DEFAULT_POLICY) -> PasteStageChain:
    """Chain for rich clipboard HTML: envelope, extraction, cleanup."""
    return PasteStageChain([
        ClipboardFragmentStage(),
        ExtractStage(parser=parser, policy=policy),
        CleanStage(parser=parser, policy=policy),
    ])


def build_ai_chain(parser: str = DEFAULT_PARSER,
                   policy: SanitizePolicy = DEFAULT_POLICY) -> PasteStageChain:
    """Chain for AI formatter replies: unwrap, then cleanup."""
    return PasteStageChain([
        AiResponseStage(),
        CleanStage(parser=parser, policy=policy),
    ])
