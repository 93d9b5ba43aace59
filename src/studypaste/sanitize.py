"""HTML escaping and the shared sanitize policy.

Every place where stored or pasted HTML reaches a renderer (editor insert,
answer display, export) goes through the same SanitizePolicy.
"""

import html
import re
from dataclasses import dataclass, field
from typing import Iterable, Mapping, Optional

from bs4 import BeautifulSoup, Tag
from bs4.dammit import EntitySubstitution
from bs4.element import PreformattedString
from bs4.formatter import HTMLFormatter

# Serialize with minimal entity substitution and HTML-style void elements (<br>, not <br/>)
HTML_FORMATTER = HTMLFormatter(
    entity_substitution=EntitySubstitution.substitute_xml,
    void_element_close_prefix=None,
)

DEFAULT_ALLOWED_TAGS = frozenset([
    "h1", "h2", "h3", "h4", "h5", "h6",
    "p", "br", "hr",
    "strong", "b", "em", "i", "u", "s", "strike",
    "ol", "ul", "li",
    "blockquote", "pre", "code",
    "a", "img", "span", "div",
    "table", "thead", "tbody", "tr", "th", "td",
    "sub", "sup", "mark",
])

# Attributes each tag may keep; everything else is stripped
TAG_ATTRIBUTES: dict[str, frozenset[str]] = {
    "a": frozenset(["href", "title"]),
    "img": frozenset(["src", "alt"]),
    "code": frozenset(["class"]),
}

URI_ATTRIBUTES = frozenset(["href", "src"])

DEFAULT_URI_SCHEMES = ("http", "https", "mailto", "tel")

# Disallowed elements removed together with their content (others are unwrapped)
DROP_WITH_CONTENT = frozenset([
    "script", "style", "iframe", "object", "embed", "meta", "link",
    "noscript", "template", "head", "title",
])

# Characters browsers ignore inside URLs ("java\nscript:" still runs)
_URI_NOISE_RE = re.compile(r"[\x00-\x20\u00a0\u1680\u180e\u2000-\u2029\u205f\u3000]")


def escape_html(text: str) -> str:
    """Escape & < > " ' in raw text. Call exactly once per fragment."""
    return html.escape(text, quote=True)


def build_uri_pattern(schemes: Iterable[str]) -> re.Pattern:
    """Compile a URI check allowing the given schemes and scheme-less references."""
    alternatives = "|".join(re.escape(scheme.lower()) for scheme in schemes)
    return re.compile(
        rf"^(?:(?:{alternatives}):|[^a-z]|[a-z+.\-]+(?:[^a-z+.\-:]|$))",
        re.IGNORECASE,
    )


@dataclass(frozen=True)
class SanitizePolicy:
    """Allow-lists applied wherever untrusted HTML is about to be rendered."""
    allowed_tags: frozenset[str] = DEFAULT_ALLOWED_TAGS
    allowed_attributes: frozenset[str] = frozenset().union(*TAG_ATTRIBUTES.values())
    allowed_uri_schemes: re.Pattern = field(
        default_factory=lambda: build_uri_pattern(DEFAULT_URI_SCHEMES)
    )

    @classmethod
    def from_mapping(cls, data: Optional[Mapping]) -> "SanitizePolicy":
        """Build a policy from a config section, keeping defaults for missing keys."""
        data = data or {}
        kwargs = {}
        if data.get("allowed_tags") is not None:
            kwargs["allowed_tags"] = frozenset(t.lower() for t in data["allowed_tags"])
        if data.get("allowed_attributes") is not None:
            kwargs["allowed_attributes"] = frozenset(a.lower() for a in data["allowed_attributes"])
        if data.get("allowed_uri_schemes") is not None:
            kwargs["allowed_uri_schemes"] = build_uri_pattern(data["allowed_uri_schemes"])
        return cls(**kwargs)

    def attributes_for(self, tag_name: str) -> frozenset[str]:
        return TAG_ATTRIBUTES.get(tag_name, frozenset()) & self.allowed_attributes

    def allows_uri(self, value: str) -> bool:
        return bool(self.allowed_uri_schemes.match(_URI_NOISE_RE.sub("", value)))

    def allows_attribute(self, tag_name: str, name: str, value: str) -> bool:
        if name not in self.attributes_for(tag_name):
            return False
        if name in URI_ATTRIBUTES:
            return self.allows_uri(value)
        return True


DEFAULT_POLICY = SanitizePolicy()


def strip_attributes(tag: Tag, policy: SanitizePolicy = DEFAULT_POLICY) -> None:
    """Drop every attribute the policy does not allow on this tag."""
    for name in list(tag.attrs):
        value = tag.attrs[name]
        if isinstance(value, list):
            # bs4 splits multi-valued attributes such as class
            value = " ".join(value)
        if not policy.allows_attribute(tag.name, name, value):
            del tag.attrs[name]


def sanitize_html(markup: str, policy: SanitizePolicy = DEFAULT_POLICY) -> str:
    """Sanitize stored or untrusted HTML before it is rendered or exported.

    - Drops comments and declarations
    - Removes dangerous elements together with their content
    - Unwraps any other tag outside the allow-list, keeping its text
    - Filters attributes and URI schemes

    Violations are dropped silently; they are routine, not errors.
    """
    if not markup or not markup.strip():
        return ""

    soup = BeautifulSoup(markup, "html.parser")

    for node in soup.find_all(string=lambda s: isinstance(s, PreformattedString)):
        node.extract()

    for tag in soup.find_all(True):
        if tag.decomposed:
            continue
        if tag.name in policy.allowed_tags:
            strip_attributes(tag, policy)
        elif tag.name in DROP_WITH_CONTENT:
            tag.decompose()
        else:
            tag.unwrap()

    return soup.decode_contents(formatter=HTML_FORMATTER)
