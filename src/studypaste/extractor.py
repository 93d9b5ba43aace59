"""Structure extraction from parsed HTML.

DomExtractor walks a parsed paste and rebuilds it from a small vocabulary of
semantic tags. Each tag name maps to a handler; tags without a handler are
transparent and their children are processed in place.
"""

import re
from typing import Callable, Iterable, Union

from bs4 import BeautifulSoup, NavigableString, PageElement, Tag
from bs4.element import PreformattedString

from .dom import BLOCK_TAGS, INLINE_TAGS, collapse_whitespace, has_block_descendant
from .sanitize import DEFAULT_POLICY, DROP_WITH_CONTENT, SanitizePolicy, escape_html

Handler = Callable[[Tag], str]

CANONICAL_INLINE = {
    "strong": "strong",
    "b": "strong",
    "em": "em",
    "i": "em",
    "u": "u",
}

HEADING_MAX_LENGTH = 60

_LANGUAGE_CLASS_RE = re.compile(r"^(?:language|lang)-[\w+#.-]+$")
_TRAILING_COLON_RE = re.compile(r":((?:</[a-z0-9]+>)*)$")
_EDGE_SPACE_RE = re.compile(r"^(\s*)(.*?)(\s*)$", re.DOTALL)


def _is_text(node: PageElement) -> bool:
    return isinstance(node, NavigableString) and not isinstance(node, PreformattedString)


def _text_of(nodes: Iterable[PageElement]) -> str:
    parts = []
    for node in nodes:
        if _is_text(node):
            parts.append(str(node))
        elif isinstance(node, Tag) and node.name not in DROP_WITH_CONTENT:
            parts.append(node.get_text())
    return collapse_whitespace("".join(parts)).strip()


def _wrap(tag_name: str, inner: str) -> str:
    """Wrap inline content, keeping edge whitespace outside the tag."""
    lead, core, trail = _EDGE_SPACE_RE.match(inner).groups()
    if not core:
        return inner
    return f"{lead}<{tag_name}>{core}</{tag_name}>{trail}"


def _is_caps_text(text: str) -> bool:
    return text == text.upper() and text != text.lower() and len(text.split()) >= 2


class DomExtractor:
    """Rebuild pasted HTML as clean semantic markup."""

    def __init__(self, policy: SanitizePolicy = DEFAULT_POLICY):
        self.policy = policy
        self._handlers: dict[str, Handler] = {}

        self.register(["p", "div"], self._handle_paragraph)
        self.register(["h1", "h2", "h3", "h4", "h5", "h6"], self._handle_heading)
        self.register(["ul", "ol"], self._handle_list)
        self.register(["li"], self._handle_orphan_item)
        self.register(["pre"], self._handle_pre)
        self.register(["code"], self._handle_code)
        self.register(["blockquote"], self._handle_blockquote)
        self.register(["br"], lambda tag: "<br>")
        self.register(
            ["a", "strong", "b", "em", "i", "u", "span"], self._handle_inline
        )
        self.register(DROP_WITH_CONTENT, lambda tag: "")

    def register(self, tag_names: Iterable[str], handler: Handler) -> None:
        """Route the given tag names to ``handler``, replacing earlier handlers."""
        for name in tag_names:
            self._handlers[name.lower()] = handler

    def extract(self, container: Union[BeautifulSoup, Tag]) -> str:
        """Return the semantic HTML for everything inside ``container``."""
        return "".join(self._blocks(container.children))

    def process_node(self, node: PageElement) -> str:
        if isinstance(node, PreformattedString):
            return ""
        if isinstance(node, NavigableString):
            text = collapse_whitespace(str(node)).strip()
            return f"<p>{escape_html(text)}</p>" if text else ""
        handler = self._handlers.get(node.name)
        if handler is None:
            return "".join(self._blocks(node.children))
        return handler(node)

    # Block level

    def _is_inline(self, node: PageElement) -> bool:
        if _is_text(node):
            return True
        return (
            isinstance(node, Tag)
            and node.name in INLINE_TAGS
            and not has_block_descendant(node)
        )

    def _blocks(self, children: Iterable[PageElement]) -> list[str]:
        """Process sibling nodes, grouping inline runs and orphan list items."""
        blocks: list[str] = []
        inline_run: list[PageElement] = []
        item_run: list[Tag] = []

        def flush_inline():
            if inline_run:
                blocks.append(self._paragraph(inline_run))
                inline_run.clear()

        def flush_items():
            if item_run:
                items = [self._list_item(item) for item in item_run]
                items = [item for item in items if item]
                if items:
                    blocks.append(f"<ul>{''.join(items)}</ul>")
                item_run.clear()

        for child in list(children):
            if isinstance(child, PreformattedString):
                continue
            if isinstance(child, NavigableString) and not child.strip():
                # Whitespace only matters between inline siblings
                if inline_run:
                    inline_run.append(child)
                continue
            if isinstance(child, Tag) and child.name == "li":
                flush_inline()
                item_run.append(child)
            elif self._is_inline(child):
                flush_items()
                inline_run.append(child)
            else:
                flush_inline()
                flush_items()
                blocks.append(self.process_node(child))

        flush_inline()
        flush_items()
        return [block for block in blocks if block]

    def _paragraph(self, nodes: list[PageElement]) -> str:
        html = collapse_whitespace("".join(self._inline(node) for node in nodes)).strip()
        if not html:
            return ""
        if not _text_of(nodes):
            # Nothing but line breaks
            return html
        return f"<p>{html}</p>"

    def _handle_paragraph(self, tag: Tag) -> str:
        if has_block_descendant(tag):
            return "".join(self._blocks(tag.children))

        content = collapse_whitespace(self._inline_children(tag)).strip()
        text = _text_of(tag.children)
        if not text:
            return ""

        if (
            len(text) < HEADING_MAX_LENGTH
            and not text.endswith(".")
            and tag.find("br") is None
        ):
            if _is_caps_text(text):
                return f"<h2>{content}</h2>"
            if text.endswith(":"):
                content = _TRAILING_COLON_RE.sub(r"\1", content)
                return f"<h3>{content}</h3>"

        return f"<p>{content}</p>"

    def _handle_heading(self, tag: Tag) -> str:
        content = collapse_whitespace(self._inline_children(tag)).strip()
        if not _text_of(tag.children):
            return ""
        level = "h2" if tag.name == "h1" else tag.name
        return f"<{level}>{content}</{level}>"

    def _handle_list(self, tag: Tag) -> str:
        items = [self._list_item(li) for li in tag.find_all("li", recursive=False)]
        items = [item for item in items if item]
        if not items:
            return ""
        return f"<{tag.name}>{''.join(items)}</{tag.name}>"

    def _handle_orphan_item(self, tag: Tag) -> str:
        item = self._list_item(tag)
        return f"<ul>{item}</ul>" if item else ""

    def _list_item(self, tag: Tag) -> str:
        inline_parts: list[str] = []
        nested: list[str] = []
        for child in tag.children:
            if isinstance(child, Tag) and child.name in ("ul", "ol"):
                nested.append(self._handle_list(child))
                continue
            inline_parts.append(self._inline(child))
            if isinstance(child, Tag):
                # Lists under a wrapper are dropped by _inline
                nested.extend(self._handle_list(lst) for lst in self._wrapped_lists(child))

        content = collapse_whitespace("".join(inline_parts)).strip()
        nested_html = "".join(nested)
        if not content and not nested_html:
            return ""
        return f"<li>{content}{nested_html}</li>"

    @staticmethod
    def _wrapped_lists(wrapper: Tag) -> list[Tag]:
        """Outermost lists inside ``wrapper``, in document order."""
        return [
            lst for lst in wrapper.find_all(["ul", "ol"])
            if lst.find_parent(["ul", "ol"]) is wrapper.find_parent(["ul", "ol"])
        ]

    def _handle_pre(self, tag: Tag) -> str:
        text = self._verbatim_text(tag)
        if not text.strip():
            return ""
        language = self._language_class(tag)
        attrs = f' class="{escape_html(language)}"' if language else ""
        return f"<pre><code{attrs}>{escape_html(text)}</code></pre>"

    def _verbatim_text(self, tag: Tag) -> str:
        parts = []
        for node in tag.descendants:
            if _is_text(node):
                parts.append(str(node))
            elif isinstance(node, Tag) and node.name == "br":
                parts.append("\n")
        return "".join(parts)

    def _language_class(self, tag: Tag) -> str:
        candidates = [tag.find("code"), tag]
        for node in candidates:
            if node is None:
                continue
            for value in node.get("class") or []:
                if _LANGUAGE_CLASS_RE.match(value) and self.policy.allows_attribute(
                    "code", "class", value
                ):
                    return value
        return ""

    def _handle_code(self, tag: Tag) -> str:
        if tag.find_parent("pre") is not None:
            return ""
        return self._handle_inline(tag)

    def _handle_blockquote(self, tag: Tag) -> str:
        inner = "".join(self._blocks(tag.children))
        return f"<blockquote>{inner}</blockquote>" if inner else ""

    def _handle_inline(self, tag: Tag) -> str:
        if has_block_descendant(tag):
            return "".join(self._blocks(tag.children))
        return self._paragraph([tag])

    # Inline level

    def _inline_children(self, tag: Tag) -> str:
        return "".join(self._inline(child) for child in tag.children)

    def _inline(self, node: PageElement) -> str:
        if isinstance(node, PreformattedString):
            return ""
        if isinstance(node, NavigableString):
            return escape_html(collapse_whitespace(str(node)))

        name = node.name
        if name == "br":
            return "<br>"
        if name in DROP_WITH_CONTENT or name in ("ul", "ol"):
            return ""
        if name in CANONICAL_INLINE:
            return _wrap(CANONICAL_INLINE[name], self._inline_children(node))
        if name == "code":
            return _wrap("code", escape_html(collapse_whitespace(node.get_text())))
        if name == "a":
            return self._link(node)
        if name in BLOCK_TAGS:
            # Block content nested where only inline content fits
            return f" {self._inline_children(node)} "
        return self._inline_children(node)

    def _link(self, tag: Tag) -> str:
        text = self._inline_children(tag)
        href = tag.get("href")
        if isinstance(href, list):
            href = " ".join(href)
        if not href or not self.policy.allows_attribute("a", "href", href):
            return text
        lead, core, trail = _EDGE_SPACE_RE.match(text).groups()
        if not core:
            return text
        return f'{lead}<a href="{escape_html(href)}">{core}</a>{trail}'


def extract_structured_html(container: Union[BeautifulSoup, Tag],
                            policy: SanitizePolicy = DEFAULT_POLICY) -> str:
    """Convenience wrapper around a default DomExtractor."""
    return DomExtractor(policy).extract(container)
