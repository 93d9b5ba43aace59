"""Tests for paste routing."""

import pytest
from studypaste.config import PasteConfig
from studypaste.dispatcher import (
    PASTE_MODE_LABELS,
    PasteDispatcher,
    PasteMode,
    get_paste_mode_label,
    has_structure_markers,
    is_well_formed_html,
    route,
)
from studypaste.dom import MarkupRejectedError


def make_dispatcher(**paste_settings) -> PasteDispatcher:
    return PasteDispatcher(PasteConfig(overrides={"paste": paste_settings}))


class TestPasteMode:
    def test_parse(self):
        assert PasteMode.parse("smart") is PasteMode.SMART
        assert PasteMode.parse(" PLAIN ") is PasteMode.PLAIN
        assert PasteMode.parse(PasteMode.FORMATTED) is PasteMode.FORMATTED

    def test_parse_unknown(self):
        with pytest.raises(ValueError, match="Unknown paste mode"):
            PasteMode.parse("fancy")

    def test_labels(self):
        assert get_paste_mode_label("smart") == "Smart Paste"
        assert get_paste_mode_label(PasteMode.FORMATTED) == "Keep Formatting"
        assert get_paste_mode_label("plain") == "Plain Text"

    def test_every_mode_has_a_label(self):
        assert set(PASTE_MODE_LABELS) == set(PasteMode)


class TestIsWellFormedHtml:
    @pytest.mark.parametrize("html", [
        "<p>x</p>",
        "<h2>Title</h2>",
        "<pre>code</pre>",
        "<div><strong>x</strong></div>",
        '<ul class="list"><li>a</li></ul>',
    ])
    def test_semantic_html(self, html):
        assert is_well_formed_html(html) is True

    @pytest.mark.parametrize("html", [
        None,
        "",
        "<div>x</div>",
        "<div><span>x</span></div>",
        "<param name='x'>",
        "just text",
    ])
    def test_not_semantic(self, html):
        assert is_well_formed_html(html) is False


class TestHasStructureMarkers:
    @pytest.mark.parametrize("text", [
        "- item",
        "  • indented bullet",
        "1. one",
        "Step 3: go",
        "INTRODUCTION HERE",
        "Key points:",
        "```\ncode\n```",
        "    indented code",
        "\tcode",
    ])
    def test_markers(self, text):
        assert has_structure_markers(text) is True

    @pytest.mark.parametrize("text", [
        None,
        "",
        "Just a plain sentence.",
        "Two lines of prose.\nNothing structured here.",
    ])
    def test_no_markers(self, text):
        assert has_structure_markers(text) is False


class TestSmartMode:
    def test_steps_structure_to_ordered_list(self):
        result = route(None, "Step 1: Open the box\nStep 2: Find the gift", "smart")
        assert result == "<ol><li>Open the box</li><li>Find the gift</li></ol>"

    def test_heading_and_bullets(self):
        text = "TWO POINTER TECHNIQUE\n\n- Sorted arrays\n- Finding pairs"
        assert route(None, text) == (
            "<h2>TWO POINTER TECHNIQUE</h2><br>"
            "<ul><li>Sorted arrays</li><li>Finding pairs</li></ul>"
        )

    def test_well_formed_html_wins(self):
        assert route("<p>Hello <em>there</em></p>", "Hello there") == "<p>Hello <em>there</em></p>"

    def test_wrapper_div_falls_back_to_text(self):
        result = route("<div>just a div</div>", "Just a sentence here.", "smart")
        assert result == "<p>Just a sentence here.</p>"

    def test_html_used_when_no_text(self):
        assert route("<div>Hello <b>world</b></div>", "", "smart") == (
            "<p>Hello <strong>world</strong></p>"
        )

    def test_plain_paragraphs_without_markers(self):
        text = "First paragraph of prose.\n\nSecond paragraph of prose."
        assert route(None, text) == "<p>First paragraph of prose.</p><p>Second paragraph of prose.</p>"

    def test_auto_detect_disabled(self):
        dispatcher = make_dispatcher(auto_detect_structure=False)
        assert dispatcher.route(None, "- a\n- b") == "<p>- a - b</p>"

    def test_clipboard_envelope_removed(self):
        html = "<html><body><!--StartFragment--><h1>Graphs</h1><!--EndFragment--></body></html>"
        assert route(html, "Graphs") == "<h2>Graphs</h2>"


class TestOtherModes:
    def test_plain_ignores_html(self):
        assert route("<p>x</p>", "- a\n- b", "plain") == "<ul><li>a</li><li>b</li></ul>"

    def test_formatted_uses_html(self):
        result = route("<div>Hello <b>world</b></div>", "Hello world", "formatted")
        assert result == "<p>Hello <strong>world</strong></p>"

    def test_formatted_without_html_structures_text(self):
        assert route("", "- a", "formatted") == "<ul><li>a</li></ul>"

    def test_mode_from_config(self):
        dispatcher = make_dispatcher(mode="plain")
        assert dispatcher.route("<p>x</p>", "- a") == "<ul><li>a</li></ul>"

    def test_unknown_mode(self):
        with pytest.raises(ValueError):
            route(None, "text", "bogus")


class TestEdgeCases:
    def test_missing_payloads(self):
        assert route(None, None) == ""
        assert route("", "") == ""
        assert route(None, None, "plain") == ""

    def test_text_is_normalized(self):
        assert route(None, "- a\r\n- b\N{ZERO WIDTH SPACE}", "plain") == (
            "<ul><li>a</li><li>b</li></ul>"
        )

    def test_rejected_markup_falls_back_to_text(self, monkeypatch):
        dispatcher = PasteDispatcher()

        def reject(html):
            raise MarkupRejectedError("unparseable")

        monkeypatch.setattr(dispatcher, "process_html", reject)
        assert dispatcher.route("<p>x</p>", "- a") == "<ul><li>a</li></ul>"

    def test_busy_dispatcher_ignores_paste(self):
        dispatcher = make_dispatcher(guard_timeout=0.05)
        dispatcher._guard.acquire()
        try:
            assert dispatcher.route(None, "- a") == ""
        finally:
            dispatcher._guard.release()

        assert dispatcher.route(None, "- a") == "<ul><li>a</li></ul>"

    def test_clean_ai_response(self):
        dispatcher = PasteDispatcher()
        assert dispatcher.clean_ai_response("```html\n<div>Answer</div>\n```") == "<p>Answer</p>"
