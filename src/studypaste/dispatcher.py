"""Paste dispatcher: choose how a paste event becomes editor HTML.

A paste carries up to two payloads, clipboard HTML and plain text. The paste
mode decides which one is used and how:

- plain:     structure the plain text (classifier + assembler)
- formatted: clean the HTML when present, else structure the plain text
- smart:     clean well-formed HTML; otherwise structure text that shows
             structure markers; otherwise fall back to plain paragraphs
"""

import logging
import re
import threading
from enum import Enum
from typing import Optional, Union

from .assembler import assemble, assemble_paragraphs
from .classifier import classify, split_lines
from .config import PasteConfig
from .dom import MarkupRejectedError
from .normalizer import ClipboardNormalizer
from .stages import SOURCE_AI, PasteContext, build_ai_chain, build_html_chain

logger = logging.getLogger(__name__)


class PasteMode(Enum):
    SMART = "smart"
    FORMATTED = "formatted"
    PLAIN = "plain"

    @classmethod
    def parse(cls, value: Union[str, "PasteMode"]) -> "PasteMode":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            valid = ", ".join(mode.value for mode in cls)
            raise ValueError(f"Unknown paste mode '{value}' (expected one of: {valid})") from None


PASTE_MODE_LABELS = {
    PasteMode.SMART: "Smart Paste",
    PasteMode.FORMATTED: "Keep Formatting",
    PasteMode.PLAIN: "Plain Text",
}

_SEMANTIC_TAG_RE = re.compile(
    r"<(p|h[1-6]|ul|ol|li|pre|code|blockquote|strong|em)(?=[\s/>])", re.IGNORECASE
)
_WRAPPER_DIV_RE = re.compile(r"^<div[^>]*>.*</div>$", re.DOTALL)

STRUCTURE_MARKERS = (
    re.compile(r"^\s*[-•*→]\s+", re.MULTILINE),            # Bullets
    re.compile(r"^\s*\d+\.\s+", re.MULTILINE),             # Numbered items
    re.compile(r"^\s*step\s+\d+[:.]", re.MULTILINE | re.IGNORECASE),
    re.compile(r"^[A-Z ]{10,}$", re.MULTILINE),            # ALL CAPS headings
    re.compile(r"^.{1,60}:$", re.MULTILINE),               # Colon-terminated titles
    re.compile(r"```|~~~"),
    re.compile(r"^( {4,}|\t)\S", re.MULTILINE),            # Indented code
)


def get_paste_mode_label(mode: Union[str, PasteMode]) -> str:
    return PASTE_MODE_LABELS[PasteMode.parse(mode)]


def is_well_formed_html(html: Optional[str]) -> bool:
    """True when clipboard HTML carries semantic tags, not just wrapper divs."""
    if not html:
        return False
    has_semantic_tags = bool(_SEMANTIC_TAG_RE.search(html))
    only_wrapper_divs = bool(_WRAPPER_DIV_RE.match(html.strip())) and not has_semantic_tags
    return has_semantic_tags and not only_wrapper_divs


def has_structure_markers(text: Optional[str]) -> bool:
    if not text:
        return False
    return any(marker.search(text) for marker in STRUCTURE_MARKERS)


class PasteDispatcher:
    """Route paste events to the HTML or plain-text pipeline.

    Only one paste is processed at a time per dispatcher; a paste arriving
    while another is running waits up to ``guard_timeout`` seconds and is
    then ignored.
    """

    def __init__(self, config: Optional[PasteConfig] = None):
        self.config = config or PasteConfig()
        self._guard = threading.Lock()
        self._normalizer = ClipboardNormalizer()
        policy = self.config.policy
        self._html_chain = build_html_chain(parser=self.config.parser, policy=policy)
        self._ai_chain = build_ai_chain(parser=self.config.parser, policy=policy)

    def route(self, html: Optional[str], text: Optional[str],
              mode: Union[str, PasteMode, None] = None) -> str:
        """Return the HTML to insert for a paste; "" when there is nothing to insert."""
        mode = PasteMode.parse(mode if mode is not None else self.config.mode)

        if not self._guard.acquire(timeout=self.config.guard_timeout):
            logger.warning("Paste ignored: another paste is still being processed")
            return ""
        try:
            return self._route(html or "", self._normalizer.normalize(text or ""), mode)
        finally:
            self._guard.release()

    def _route(self, html: str, text: str, mode: PasteMode) -> str:
        if mode is PasteMode.PLAIN:
            return self.structure_text(text)

        if mode is PasteMode.FORMATTED:
            if html.strip():
                return self._html_or_text(html, text, self.structure_text)
            return self.structure_text(text)

        if html.strip() and (is_well_formed_html(html) or not text.strip()):
            return self._html_or_text(html, text, self._smart_text)
        return self._smart_text(text)

    def _smart_text(self, text: str) -> str:
        if self.config.auto_detect_structure and has_structure_markers(text):
            return self.structure_text(text)
        return assemble_paragraphs(text)

    def _html_or_text(self, html: str, text: str, fallback) -> str:
        try:
            return self.process_html(html)
        except MarkupRejectedError as e:
            logger.warning("Clipboard HTML rejected by parser, using plain text: %s", e)
            return fallback(text)

    def process_html(self, html: str) -> str:
        return self._html_chain.execute(PasteContext(html=html))

    def structure_text(self, text: str) -> str:
        if not text:
            return ""
        return assemble(classify(split_lines(text)))

    def clean_ai_response(self, html: str) -> str:
        """Clean a reply from the AI formatter before it reaches the editor."""
        return self._ai_chain.execute(PasteContext(html=html or "", source=SOURCE_AI))


def route(html: Optional[str], text: Optional[str],
          mode: Union[str, PasteMode] = PasteMode.SMART) -> str:
    """Route a paste with a default dispatcher."""
    return PasteDispatcher().route(html, text, mode)
