"""Scratch parsing container and DOM helpers shared by the HTML path."""

import logging
import re
import warnings
from typing import Optional, Union

from bs4 import BeautifulSoup, FeatureNotFound, MarkupResemblesLocatorWarning, Tag
from bs4.builder import ParserRejectedMarkup

logger = logging.getLogger(__name__)

DEFAULT_PARSER = "html.parser"

BLOCK_TAGS = frozenset([
    "address", "article", "aside", "blockquote", "div", "dl", "fieldset",
    "figure", "footer", "form", "h1", "h2", "h3", "h4", "h5", "h6", "header",
    "hr", "li", "main", "nav", "ol", "p", "pre", "section", "table", "ul",
])

INLINE_TAGS = frozenset([
    "a", "abbr", "b", "br", "cite", "code", "em", "font", "i", "kbd", "label",
    "mark", "q", "s", "samp", "small", "span", "strike", "strong", "sub",
    "sup", "u", "var",
])

_WHITESPACE_RE = re.compile(r"\s+")

START_FRAGMENT = "<!--StartFragment-->"
END_FRAGMENT = "<!--EndFragment-->"

# Windows CF_HTML header: "Version:0.9" followed by StartHTML/EndHTML offsets
_CF_HTML_HEADER_RE = re.compile(
    r"\AVersion:\d+\.\d+\s*(?:^[A-Za-z]+:[^\r\n]*\s*)*", re.MULTILINE
)


class ScratchContainerError(RuntimeError):
    """The HTML parser needed for a scratch container is unavailable."""


class MarkupRejectedError(ValueError):
    """The parser refused the pasted markup outright."""


def collapse_whitespace(text: str) -> str:
    """Collapse runs of whitespace into a single space."""
    return _WHITESPACE_RE.sub(" ", text)


def has_block_descendant(tag: Tag) -> bool:
    return tag.find(list(BLOCK_TAGS)) is not None


def extract_clipboard_fragment(html: str) -> str:
    """Strip the clipboard envelope around the copied fragment.

    Browsers wrap copied HTML in <!--StartFragment--> / <!--EndFragment-->
    markers, and on Windows in a CF_HTML header as well. Without either the
    markup is returned unchanged.
    """
    if not html:
        return ""

    start_idx = html.find(START_FRAGMENT)
    end_idx = html.find(END_FRAGMENT)

    if start_idx != -1 and end_idx > start_idx:
        return html[start_idx + len(START_FRAGMENT):end_idx].strip()
    if start_idx != -1:
        # Start marker without an end
        return html[start_idx + len(START_FRAGMENT):].strip()

    match = _CF_HTML_HEADER_RE.match(html)
    if match:
        return html[match.end():].strip()
    return html


class ScratchContainer:
    """Disposable parse tree for a single paste event.

    Use as a context manager; the tree is torn down on every exit path:

        with ScratchContainer() as scratch:
            root = scratch.populate(html)
            ...
    """

    def __init__(self, parser: str = DEFAULT_PARSER):
        self.parser = parser
        try:
            self._soup: Optional[BeautifulSoup] = BeautifulSoup("", parser)
        except FeatureNotFound as e:
            raise ScratchContainerError(
                f"Cannot create scratch container: HTML parser '{parser}' is not available"
            ) from e

    def __enter__(self) -> "ScratchContainer":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.clear()

    @property
    def soup(self) -> BeautifulSoup:
        if self._soup is None:
            raise ScratchContainerError("Scratch container has already been cleared")
        return self._soup

    def populate(self, html: str) -> Union[BeautifulSoup, Tag]:
        """Parse ``html`` into the container, replacing any previous content.

        Returns the <body> element when the markup has one, else the document.
        """
        self.clear()
        try:
            with warnings.catch_warnings():
                # Short pastes such as "a.html" are content, not file names
                warnings.simplefilter("ignore", MarkupResemblesLocatorWarning)
                self._soup = BeautifulSoup(html or "", self.parser)
        except ParserRejectedMarkup as e:
            logger.debug("Parser rejected pasted markup: %s", e)
            raise MarkupRejectedError(str(e)) from e
        return self._soup.body or self._soup

    def clear(self) -> None:
        if self._soup is not None:
            self._soup.decompose()
            self._soup = None
