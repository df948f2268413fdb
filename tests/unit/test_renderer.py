"""Unit tests for MarkdownRenderer."""

from typing import Any
from unittest.mock import patch

import pytest
from bs4 import BeautifulSoup

from mdclip.converter.renderer import MarkdownRenderer, escape_markdown, render
from mdclip.exceptions import RenderError
from mdclip.models import ConversionOptions

BASE_URI = "https://example.com/blog/"


def _render(html: str, images: dict[str, str] | None = None, **options: Any) -> str:
    tree = BeautifulSoup(html, "html.parser")
    renderer = MarkdownRenderer(ConversionOptions(**options), base_uri=BASE_URI, images=images)
    return renderer.render(tree)


class TestBlocks:
    """Test block-level rules."""

    def test_paragraph_with_strong(self) -> None:
        """Test a paragraph with inline formatting."""
        assert _render("<p>Hello <strong>world</strong></p>") == "Hello **world**"

    def test_paragraphs_separated_by_blank_line(self) -> None:
        """Test that source indentation does not leak into the output."""
        html = "<div>\n  <p>One</p>\n  <p>Two</p>\n</div>"
        assert _render(html) == "One\n\nTwo"

    def test_atx_headings(self) -> None:
        """Test ATX headings for all levels."""
        html = "<h1>Title</h1><h2>Sub</h2><h6>Deep</h6>"
        assert _render(html) == "# Title\n\n## Sub\n\n###### Deep"

    def test_setext_headings(self) -> None:
        """Test setext headings fall back to ATX below level 2."""
        html = "<h1>Title</h1><h2>Sub</h2><h3>Deep</h3>"
        assert _render(html, heading_style="setext") == "Title\n=====\n\nSub\n---\n\n### Deep"

    def test_setext_underline_matches_last_line(self) -> None:
        """Test that a setext underline spans only the line above it."""
        assert _render("<h1>One<br>Two</h1>", heading_style="setext") == "One  \nTwo\n==="

    def test_empty_heading_dropped(self) -> None:
        """Test that a heading with no text renders nothing."""
        assert _render("<h2> </h2><p>x</p>") == "x"

    def test_horizontal_rule(self) -> None:
        """Test the configured horizontal rule token."""
        assert _render("<p>a</p><hr><p>b</p>", hr="***") == "a\n\n***\n\nb"

    def test_line_break(self) -> None:
        """Test that <br> becomes a hard line break."""
        assert _render("<p>a<br>b</p>") == "a  \nb"

    def test_blockquote_prefixes_blank_lines(self) -> None:
        """Test that every line of a multi-paragraph quote is prefixed."""
        html = "<blockquote><p>One</p><p>Two</p></blockquote>"
        assert _render(html) == "> One\n> \n> Two"

    def test_comments_and_scripts_ignored(self) -> None:
        """Test that comments and script content produce nothing."""
        html = "<p>a<!-- hidden -->b</p><script>var x = 1;</script><style>p{}</style>"
        assert _render(html) == "ab"


class TestInline:
    """Test inline rules."""

    def test_emphasis_strong_strikethrough(self) -> None:
        """Test emphasis, strong and strikethrough delimiters."""
        html = "<p><em>a</em> and <b>b</b> and <del>c</del></p>"
        assert _render(html) == "_a_ and **b** and ~~c~~"

    def test_custom_delimiters(self) -> None:
        """Test configurable emphasis and strong delimiters."""
        html = "<p><i>a</i> <strong>b</strong></p>"
        assert _render(html, em_delimiter="*", strong_delimiter="__") == "*a* __b__"

    def test_delimiters_hug_text(self) -> None:
        """Test that surrounding spaces move outside the delimiters."""
        assert _render("<p>x<em> y </em>z</p>") == "x _y_ z"

    def test_inline_code(self) -> None:
        """Test a simple code span."""
        assert _render("<p>Run <code>ls -la</code> now</p>") == "Run `ls -la` now"

    def test_inline_code_with_backtick(self) -> None:
        """Test that the code fence outgrows backtick runs in the code."""
        assert _render("<p><code>a`b</code></p>") == "``a`b``"

    def test_mark_renders_as_code_span(self) -> None:
        """Test that highlighted text becomes a code span."""
        assert _render("<p>a <mark>hi</mark></p>") == "a `hi`"

    def test_mark_text_not_escaped(self) -> None:
        """Test that code span content is literal even when escaping is on."""
        assert _render("<p><mark>a_b</mark></p>", escape_markdown=True) == "`a_b`"


class TestCodeBlocks:
    """Test preformatted code."""

    def test_fenced_with_language(self) -> None:
        """Test a fenced block keeps whitespace and detects the language."""
        html = '<pre><code class="language-python">def f():\n    return 1\n</code></pre>'
        assert _render(html) == "```python\ndef f():\n    return 1\n```"

    def test_language_from_wrapper(self) -> None:
        """Test language detection from a highlight wrapper class."""
        html = '<div class="highlight-source-js"><pre>let a;</pre></div>'
        assert _render(html) == "```js\nlet a;\n```"

    def test_fence_grows_past_inner_fence(self) -> None:
        """Test that the fence is longer than any fence inside the code."""
        html = "<pre><code>```\nx\n```</code></pre>"
        assert _render(html) == "````\n```\nx\n```\n````"

    def test_tilde_fence(self) -> None:
        """Test a tilde fence token."""
        assert _render("<pre>x</pre>", fence="~~~") == "~~~\nx\n~~~"

    def test_indented(self) -> None:
        """Test indented code blocks."""
        html = "<pre><code>a\n  b</code></pre>"
        assert _render(html, code_block_style="indented") == "    a\n      b"


class TestLists:
    """Test lists and task lists."""

    def test_nested_unordered(self) -> None:
        """Test nested lists indent by two spaces."""
        html = "<ul><li>A</li><li>B<ul><li>C</li></ul></li></ul>"
        assert _render(html) == "- A\n- B\n  - C"

    def test_bullet_marker(self) -> None:
        """Test a custom bullet marker."""
        assert _render("<ul><li>A</li></ul>", bullet_list_marker="*") == "* A"

    def test_ordered_with_start(self) -> None:
        """Test ordered numbering honours the start attribute."""
        assert _render('<ol start="3"><li>x</li><li>y</li></ol>') == "3. x\n4. y"

    def test_ordered_restarts_per_list(self) -> None:
        """Test that each list numbers from its own start."""
        html = "<ol><li>a</li><li>b</li></ol><p>mid</p><ol><li>c</li></ol>"
        assert _render(html) == "1. a\n2. b\n\nmid\n\n1. c"

    def test_task_list(self) -> None:
        """Test checked and unchecked task items."""
        html = (
            '<ul><li><input type="checkbox" checked> done</li>'
            '<li><input type="checkbox"> todo</li></ul>'
        )
        assert _render(html) == "- [x] done\n- [ ] todo"

    def test_source_whitespace_between_items(self) -> None:
        """Test that newlines between items do not create blank lines."""
        html = "<ul>\n  <li>A</li>\n  <li>B</li>\n</ul>"
        assert _render(html) == "- A\n- B"


class TestLinks:
    """Test link styles."""

    HTML = '<p><a href="/about" title="About us">About</a> <a href="post.html">Post</a></p>'

    def test_inlined_resolves_urls(self) -> None:
        """Test inline links with resolved URLs and titles."""
        assert _render(self.HTML) == (
            '[About](https://example.com/about "About us") '
            "[Post](https://example.com/blog/post.html)"
        )

    def test_strip_links(self) -> None:
        """Test that stripLinks keeps only the text."""
        assert _render(self.HTML, link_style="stripLinks") == "About Post"

    def test_referenced_full_numbers_every_occurrence(self) -> None:
        """Test that repeated URLs each get their own reference number."""
        html = '<p><a href="https://a.com">A</a> and <a href="https://a.com">again</a></p>'
        assert _render(html, link_style="referenced") == (
            "[A][1] and [again][2]\n\n[1]: https://a.com\n[2]: https://a.com"
        )

    def test_referenced_collapsed(self) -> None:
        """Test collapsed reference links."""
        html = '<p><a href="https://a.com">A</a></p>'
        result = _render(html, link_style="referenced", link_reference_style="collapsed")
        assert result == "[A][]\n\n[A]: https://a.com"

    def test_referenced_shortcut(self) -> None:
        """Test shortcut reference links."""
        html = '<p><a href="https://a.com">A</a></p>'
        result = _render(html, link_style="referenced", link_reference_style="shortcut")
        assert result == "[A]\n\n[A]: https://a.com"

    def test_references_after_body(self) -> None:
        """Test that references follow all of the content."""
        html = '<p><a href="https://a.com">A</a></p><p>Last paragraph</p>'
        result = _render(html, link_style="referenced")
        assert result == "[A][1]\n\nLast paragraph\n\n[1]: https://a.com"

    def test_anchor_without_href(self) -> None:
        """Test that a named anchor renders as its text."""
        assert _render('<p><a name="top">Top</a></p>') == "Top"

    def test_anchor_around_heading(self) -> None:
        """Test that a link-wrapped heading renders as the heading alone."""
        assert _render('<a href="/x"><h2>Title</h2></a>') == "## Title"

    def test_title_quotes_escaped(self) -> None:
        """Test that quotes in link titles are escaped."""
        html = '<p><a href="https://a.com" title="say &quot;hi&quot;">A</a></p>'
        assert _render(html) == '[A](https://a.com "say \\"hi\\"")'


class TestImages:
    """Test image styles."""

    HTML = '<p><img src="img/a.png" alt="An  image" title="T"></p>'
    URL = "https://example.com/blog/img/a.png"

    def test_markdown_image(self) -> None:
        """Test a standard image with a resolved source."""
        assert _render(self.HTML) == f'![An image]({self.URL} "T")'

    def test_no_image(self) -> None:
        """Test that noImage drops images."""
        assert _render(self.HTML, image_style="noImage") == ""

    def test_base64_uses_supplied_data_uri(self) -> None:
        """Test that inlined images use the supplied data URI."""
        images = {self.URL: "data:image/png;base64,AAA"}
        result = _render(self.HTML, images=images, image_style="base64")
        assert result == '![An image](data:image/png;base64,AAA "T")'

    def test_obsidian(self) -> None:
        """Test the obsidian embed style with a local path."""
        images = {self.URL: "Post/a.png"}
        assert _render(self.HTML, images=images, image_style="obsidian") == "![[Post/a.png]]"

    def test_obsidian_nofolder(self) -> None:
        """Test the folderless obsidian embed style."""
        images = {self.URL: "Post/a.png"}
        result = _render(self.HTML, images=images, image_style="obsidian-nofolder")
        assert result == "![[a.png]]"

    def test_obsidian_without_local_path(self) -> None:
        """Test that obsidian falls back to the file name of the URL."""
        assert _render(self.HTML, image_style="obsidian") == "![[a.png]]"

    def test_referenced_image(self) -> None:
        """Test reference-style images."""
        result = _render(self.HTML, image_ref_style="referenced")
        assert result == f'![An image][1]\n\n[1]: {self.URL} "T"'

    def test_image_without_src(self) -> None:
        """Test that an image with no source renders nothing."""
        assert _render('<p><img alt="x"></p>') == ""


class TestEscaping:
    """Test Markdown escaping of text."""

    @pytest.mark.parametrize(
        ("html", "expected"),
        [
            ("<p>*not* _emph_ [x]</p>", "\\*not\\* \\_emph\\_ \\[x\\]"),
            ("<p>1. item</p>", "1\\. item"),
            ("<p># no heading</p>", "\\# no heading"),
            ("<p>- no list</p>", "\\- no list"),
            ("<p>&gt; no quote</p>", "\\> no quote"),
        ],
    )
    def test_escape_enabled(self, html: str, expected: str) -> None:
        """Test escaping of Markdown-significant text."""
        assert _render(html, escape_markdown=True) == expected

    def test_escape_disabled(self) -> None:
        """Test that text is emitted verbatim when escaping is off."""
        assert _render("<p>*not*</p>") == "*not*"

    def test_code_is_never_escaped(self) -> None:
        """Test that code spans and blocks keep their characters."""
        html = "<p><code>a_b</code></p><pre>*x*</pre>"
        assert _render(html, escape_markdown=True) == "`a_b`\n\n```\n*x*\n```"

    def test_escape_markdown_backslash_first(self) -> None:
        """Test that existing backslashes are doubled before other escapes."""
        assert escape_markdown("\\*") == "\\\\\\*"


class TestModuleFunctions:
    """Test the module-level helpers."""

    def test_render_without_base_uri(self) -> None:
        """Test that links are left as written when no base is given."""
        tree = BeautifulSoup('<p><a href="rel/page">x</a></p>', "html.parser")
        assert render(tree, ConversionOptions()) == "[x](rel/page)"

    def test_render_is_repeatable(self) -> None:
        """Test that rendering does not modify the tree."""
        tree = BeautifulSoup("<p> a  <em>b</em> </p>", "html.parser")
        options = ConversionOptions()
        assert render(tree, options) == render(tree, options) == "a _b_"

    def test_recursion_overflow_raises_render_error(self) -> None:
        """Test that a tree too deep to walk raises RenderError."""
        tree = BeautifulSoup("<p>x</p>", "html.parser")
        renderer = MarkdownRenderer(ConversionOptions())
        with (
            patch.object(renderer, "_node", side_effect=RecursionError),
            pytest.raises(RenderError, match="nested too deeply"),
        ):
            renderer.render(tree)
