"""Paste processing and auto-structuring for rich-text study notes."""

from .assembler import assemble, assemble_paragraphs, build_document
from .classifier import ClassifiedLine, LineKind, classify, split_lines
from .cleaner import HtmlCleaner, clean
from .config import PasteConfig
from .dispatcher import PasteDispatcher, PasteMode, get_paste_mode_label, route
from .dom import MarkupRejectedError, ScratchContainer, ScratchContainerError
from .export import Difficulty, Question, Subject, build_export_document, export_markdown
from .extractor import DomExtractor
from .formatter import AiFormatter
from .normalizer import ClipboardNormalizer
from .sanitize import DEFAULT_POLICY, SanitizePolicy, escape_html, sanitize_html

__all__ = [
    "assemble",
    "assemble_paragraphs",
    "build_document",
    "ClassifiedLine",
    "LineKind",
    "classify",
    "split_lines",
    "HtmlCleaner",
    "clean",
    "PasteConfig",
    "PasteDispatcher",
    "PasteMode",
    "get_paste_mode_label",
    "route",
    "MarkupRejectedError",
    "ScratchContainer",
    "ScratchContainerError",
    "Difficulty",
    "Question",
    "Subject",
    "build_export_document",
    "export_markdown",
    "DomExtractor",
    "AiFormatter",
    "ClipboardNormalizer",
    "DEFAULT_POLICY",
    "SanitizePolicy",
    "escape_html",
    "sanitize_html",
]
