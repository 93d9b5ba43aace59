"""Tests for the HTML cleaner."""

import pytest
from studypaste.cleaner import MAX_BR_RUN, HtmlCleaner, clean
from studypaste.sanitize import SanitizePolicy


class TestRemoval:
    def test_removes_unwanted_elements(self):
        html = '<p>a</p><script>x()</script><style>p {}</style><iframe src="x"></iframe>'
        assert clean(html) == "<p>a</p>"

    def test_removes_embeds_and_metadata(self):
        html = '<meta charset="utf-8"><link rel="stylesheet"><object></object><embed><p>a</p>'
        assert clean(html) == "<p>a</p>"

    def test_removes_comments(self):
        assert clean("<p>a<!-- c -->b</p>") == "<p>ab</p>"

    def test_full_document_reduced_to_body(self):
        html = "<html><head><title>T</title></head><body><p>x</p></body></html>"
        assert clean(html) == "<p>x</p>"


class TestAttributes:
    def test_strips_disallowed_attributes(self):
        html = '<p style="color: red" class="lead">t</p><a href="https://x.org" onclick="e()">l</a>'
        assert clean(html) == '<p>t</p><a href="https://x.org">l</a>'

    def test_strips_unsafe_uri(self):
        assert clean('<a href="javascript:void(0)">l</a>') == "<a>l</a>"

    def test_keeps_code_class(self):
        html = '<pre><code class="language-js">x</code></pre>'
        assert clean(html) == html

    def test_policy_is_applied(self):
        policy = SanitizePolicy.from_mapping({"allowed_attributes": ["href"]})
        html = '<pre><code class="language-js">x</code></pre>'
        assert HtmlCleaner(policy).clean(html) == "<pre><code>x</code></pre>"


class TestStructure:
    def test_unwraps_plain_spans(self):
        assert clean('<p><span style="font-weight:400">plain</span></p>') == "<p>plain</p>"

    def test_unwraps_nested_spans(self):
        assert clean("<p><span><span>deep</span></span></p>") == "<p>deep</p>"

    def test_keeps_span_with_element_children(self):
        assert clean("<p><span><b>x</b></span></p>") == "<p><span><b>x</b></span></p>"

    def test_promotes_inline_div(self):
        assert clean("<div>Just text</div>") == "<p>Just text</p>"

    def test_keeps_div_with_blocks(self):
        assert clean("<div><div>inner</div></div>") == "<div><p>inner</p></div>"

    def test_splits_paragraph_at_double_break(self):
        assert clean("<p>first<br><br>second</p>") == "<p>first</p><p>second</p>"

    def test_splits_paragraph_at_long_break_run(self):
        assert clean("<p>a<br> <br>\n<br>b</p>") == "<p>a</p><p>b</p>"

    def test_single_break_kept(self):
        assert clean("<p>first<br>second</p>") == "<p>first<br>second</p>"

    def test_removes_empty_paragraphs(self):
        assert clean("<p></p><p> </p><p><br></p><p>x</p>") == "<p>x</p>"

    def test_keeps_paragraph_with_image(self):
        assert clean('<p><img src="a.png"></p>') == '<p><img src="a.png"></p>'


class TestWhitespace:
    def test_collapses_whitespace(self):
        html = "<p>  lots   of\n space  </p>\n\n<ul>\n  <li> item </li>\n</ul>"
        assert clean(html) == "<p>lots of space</p><ul><li>item</li></ul>"

    def test_preserves_pre(self):
        assert clean("<pre>  a\n    b</pre>") == "<pre>  a\n    b</pre>"

    def test_keeps_space_between_inline_elements(self):
        assert clean("<p><b>bold</b> <i>italic</i></p>") == "<p><b>bold</b> <i>italic</i></p>"

    def test_space_inside_inline_element_kept(self):
        assert clean("<p><strong>Note </strong>this</p>") == "<p><strong>Note </strong>this</p>"

    def test_non_breaking_space_collapsed(self):
        assert clean("<p>a&nbsp;b</p>") == "<p>a b</p>"


class TestBreaks:
    def test_collapses_break_runs(self):
        assert clean("a<br><br><br><br>b") == "a" + "<br>" * MAX_BR_RUN + "b"

    def test_two_breaks_kept_outside_paragraphs(self):
        assert clean("a<br><br>b") == "a<br><br>b"

    def test_void_elements_serialized_as_html(self):
        assert clean("<p>a<br/>b</p>") == "<p>a<br>b</p>"


class TestEscaping:
    def test_entities_preserved(self):
        assert clean("<p>a &amp; b &lt; c</p>") == "<p>a &amp; b &lt; c</p>"

    def test_empty_input(self):
        assert clean("") == ""
        assert clean("   \n ") == ""


IDEMPOTENCE_CORPUS = [
    "<p>simple</p>",
    "<div><div><span>x</span></div></div>",
    "<p>a<br><br><br>b<br>c</p>",
    "a<br><br><br><br>b",
    "<div>text<br><br><span> more </span></div>",
    "<p><span><span></span></span></p><p> </p>",
    "<ul>\n<li> one </li>\n<li><p>two</p></li>\n</ul>",
    "<pre>  keep\n   this  </pre><p>  and   this </p>",
    "<p><b>bold</b> <i>italic</i> <span style='x'>plain</span></p>",
    "<div><p>para</p>loose text<br><br>more</div>",
    "<p>unclosed <b>bold",
    "<p>a<!-- c --> &amp; <script>x</script>b</p>",
    "<p>a</p><p><br></p><br><br><br><p>b</p>",
    "plain text only",
    "<table><tr><td> cell </td> <td>two</td></tr></table>",
]


class TestIdempotence:
    @pytest.mark.parametrize("html", IDEMPOTENCE_CORPUS)
    def test_clean_is_idempotent(self, html):
        once = clean(html)
        assert clean(once) == once

    def test_single_pass_of_clean_output_is_stable(self):
        cleaner = HtmlCleaner()
        for html in IDEMPOTENCE_CORPUS:
            once = cleaner.clean(html)
            assert cleaner.clean_once(once) == once
