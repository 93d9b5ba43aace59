"""Normalization of pasted plain text before structure detection."""

import re
import unicodedata

# Invisible characters picked up from web pages and chat UIs
ZERO_WIDTH_CHARS = frozenset([
    '\u200b',  # Zero-width space
    '\u2060',  # Word joiner
    '\ufeff',  # Byte order mark / zero-width no-break space
    '\u00ad',  # Soft hyphen
    '\u180e',  # Mongolian vowel separator
])

# Bidirectional override characters that can reorder displayed text
BIDI_CHARS = frozenset([
    '\u202a',  # Left-to-right embedding
    '\u202b',  # Right-to-left embedding
    '\u202c',  # Pop directional formatting
    '\u202d',  # Left-to-right override
    '\u202e',  # Right-to-left override
    '\u2066',  # Left-to-right isolate
    '\u2067',  # Right-to-left isolate
    '\u2068',  # First strong isolate
    '\u2069',  # Pop directional isolate
])

# Non-breaking and typographic spaces that should count as a plain space
_SPACE_VARIANTS_RE = re.compile('[\u00a0\u2000-\u200a\u202f\u205f\u3000]')


class ClipboardNormalizer:
    """Normalize clipboard text so line heuristics see what the user sees.

    Applies, in order:
    1. Line ending normalization (CRLF and CR become LF)
    2. Unicode NFC composition
    3. Zero-width and bidi override stripping (optional)
    4. Space variants (NBSP, thin space, ...) replaced by a plain space
    5. Trailing whitespace removal per line

    Leading indentation and tabs are preserved; they drive code detection.
    """

    def __init__(self, strip_invisible: bool = True):
        self._strip_invisible = strip_invisible

    def normalize(self, text: str) -> str:
        if not text:
            return ""
        text = self._normalize_line_endings(text)
        text = unicodedata.normalize('NFC', text)
        if self._strip_invisible:
            text = self._strip_invisible_chars(text)
        text = _SPACE_VARIANTS_RE.sub(' ', text)
        return '\n'.join(line.rstrip() for line in text.split('\n'))

    def _normalize_line_endings(self, text: str) -> str:
        return text.replace('\r\n', '\n').replace('\r', '\n')

    def _strip_invisible_chars(self, text: str) -> str:
        chars_to_remove = ZERO_WIDTH_CHARS | BIDI_CHARS
        return ''.join(c for c in text if c not in chars_to_remove)


def normalize_clipboard_text(text: str) -> str:
    """Convenience wrapper around a default ClipboardNormalizer."""
    return ClipboardNormalizer().normalize(text)
