"""Idempotent HTML cleanup applied to every HTML paste result."""

from typing import Optional, Union

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

from .dom import (
    DEFAULT_PARSER,
    INLINE_TAGS,
    ScratchContainer,
    collapse_whitespace,
    has_block_descendant,
)
from .sanitize import (
    DEFAULT_POLICY,
    DROP_WITH_CONTENT,
    HTML_FORMATTER,
    SanitizePolicy,
    strip_attributes,
)

# Longest run of consecutive <br> kept in the output
MAX_BR_RUN = 2

# Upper bound on passes needed to reach a fixed point
MAX_PASSES = 5

Root = Union[BeautifulSoup, Tag]


def _is_br(node: Optional[PageElement]) -> bool:
    return isinstance(node, Tag) and node.name == "br"


def _is_blank(node: Optional[PageElement]) -> bool:
    return isinstance(node, NavigableString) and not node.strip()


def _breaks_line(node: Optional[PageElement]) -> bool:
    """True for elements that end the current line of inline text."""
    return isinstance(node, Tag) and (node.name == "br" or node.name not in INLINE_TAGS)


class HtmlCleaner:
    """Normalize HTML into a compact, predictable form.

    One pass:
    1. Remove script/style/embed-like elements, comments and declarations
    2. Restrict attributes to the policy's per-tag allow-list
    3. Unwrap spans with no element children
    4. Promote inline-only divs to paragraphs
    5. Split paragraphs at runs of two or more <br>
    6. Remove empty paragraphs
    7. Collapse whitespace outside <pre>, dropping inter-tag whitespace
    8. Collapse runs of <br> longer than MAX_BR_RUN

    clean() repeats the pass until the output stops changing, so
    clean(clean(x)) == clean(x).
    """

    def __init__(self, policy: SanitizePolicy = DEFAULT_POLICY, parser: str = DEFAULT_PARSER):
        self.policy = policy
        self.parser = parser

    def clean(self, html: str) -> str:
        if not html or not html.strip():
            return ""

        current = html
        for _ in range(MAX_PASSES):
            cleaned = self.clean_once(current)
            if cleaned == current:
                break
            current = cleaned
        return current

    def clean_once(self, html: str) -> str:
        with ScratchContainer(self.parser) as scratch:
            root = scratch.populate(html)
            self._remove_unwanted(root)
            self._strip_attributes(root)
            self._unwrap_spans(root)
            self._promote_divs(root)
            self._split_paragraphs(scratch.soup, root)
            self._remove_empty_paragraphs(root)
            root.smooth()
            self._collapse_whitespace(root)
            self._collapse_breaks(root)
            return root.decode_contents(formatter=HTML_FORMATTER).strip()

    def _remove_unwanted(self, root: Root) -> None:
        for node in root.find_all(string=lambda s: isinstance(s, PreformattedString)):
            node.extract()
        for tag in root.find_all(list(DROP_WITH_CONTENT)):
            if not tag.decomposed:
                tag.decompose()

    def _strip_attributes(self, root: Root) -> None:
        for tag in root.find_all(True):
            strip_attributes(tag, self.policy)

    def _unwrap_spans(self, root: Root) -> None:
        # Reverse document order handles nested spans innermost first
        for span in reversed(root.find_all("span")):
            if span.find(True) is None:
                span.unwrap()

    def _promote_divs(self, root: Root) -> None:
        for div in reversed(root.find_all("div")):
            if div.get_text(strip=True) and not has_block_descendant(div):
                div.name = "p"

    def _split_paragraphs(self, soup: BeautifulSoup, root: Root) -> None:
        for paragraph in root.find_all("p"):
            segments = self._segments(paragraph)
            if len(segments) < 2:
                continue
            for segment in segments:
                new_paragraph = soup.new_tag("p")
                for node in segment:
                    new_paragraph.append(node.extract())
                paragraph.insert_before(new_paragraph)
            paragraph.decompose()

    def _segments(self, paragraph: Tag) -> list[list[PageElement]]:
        """Split a paragraph's children at every run of two or more <br>."""
        children = list(paragraph.children)
        segments: list[list[PageElement]] = [[]]
        i = 0
        while i < len(children):
            if _is_br(children[i]):
                breaks = 0
                run_end = j = i
                while j < len(children) and (_is_br(children[j]) or _is_blank(children[j])):
                    if _is_br(children[j]):
                        breaks += 1
                        run_end = j
                    j += 1
                if breaks >= 2:
                    segments.append([])
                    i = run_end + 1
                    continue
            segments[-1].append(children[i])
            i += 1
        return segments

    def _remove_empty_paragraphs(self, root: Root) -> None:
        for paragraph in reversed(root.find_all("p")):
            if paragraph.get_text(strip=True):
                continue
            if paragraph.find(lambda tag: tag.name != "br") is None:
                paragraph.decompose()

    def _collapse_whitespace(self, root: Root) -> None:
        for node in list(root.find_all(string=True)):
            if isinstance(node, PreformattedString) or node.find_parent("pre") is not None:
                continue

            text = collapse_whitespace(str(node))
            parent = node.parent
            at_block_start = node.previous_sibling is None and parent.name not in INLINE_TAGS
            at_block_end = node.next_sibling is None and parent.name not in INLINE_TAGS
            if at_block_start or _breaks_line(node.previous_sibling):
                text = text.lstrip()
            if at_block_end or _breaks_line(node.next_sibling):
                text = text.rstrip()

            if not text:
                node.extract()
            elif text != str(node):
                node.replace_with(text)

    def _collapse_breaks(self, root: Root) -> None:
        for br in root.find_all("br"):
            if br.decomposed:
                continue
            run = [br]
            sibling = br.next_sibling
            while _is_br(sibling):
                run.append(sibling)
                sibling = sibling.next_sibling
            for extra in run[MAX_BR_RUN:]:
                extra.decompose()


def clean(html: str, policy: SanitizePolicy = DEFAULT_POLICY) -> str:
    """Clean ``html`` with a default HtmlCleaner."""
    return HtmlCleaner(policy).clean(html)
