"""Rule-based HTML to Markdown rendering.

MarkdownRenderer walks a BeautifulSoup tree and emits Markdown. Behaviour is
chosen per tag from a rule table with a default rule for everything else.
Block rules surround their output with blank lines; adjacent outputs are
joined so that at most one blank line separates blocks.
"""

import re
from collections.abc import Callable, Iterator, Mapping
from contextlib import contextmanager
from typing import ClassVar

from bs4 import NavigableString, Tag
from bs4.element import PageElement, PreformattedString

from mdclip.converter.nodes import heading_only_child, is_block
from mdclip.converter.tables import TableFormatter
from mdclip.exceptions import RenderError
from mdclip.models import ConversionOptions
from mdclip.urls import image_filename, resolve

__all__ = ["MarkdownRenderer", "render", "render_table"]

_WHITESPACE_RE = re.compile(r"[ \t\r\n\f]+")
_INLINE_CODE_PAD_RE = re.compile(r"^`|^ .*?[^ ].* $|`$")

_SKIP_TAGS = frozenset({
    "head", "iframe", "link", "meta", "noscript", "script", "style", "svg",
    "template", "textarea", "title",
})
_VOID_TAGS = frozenset({
    "area", "base", "br", "col", "embed", "hr", "img", "input", "keygen",
    "link", "meta", "param", "source", "track", "wbr",
})
_CODE_LANGUAGE_PREFIXES = ("language-", "lang-", "highlight-source-", "highlight-text-")


def _backslash(match: re.Match[str]) -> str:
    return "\\" + match.group(0)


_ESCAPES: list[tuple[re.Pattern[str], Callable[[re.Match[str]], str]]] = [
    (re.compile(r"\\"), _backslash),
    (re.compile(r"\*"), _backslash),
    (re.compile(r"^-"), _backslash),
    (re.compile(r"^\+ "), _backslash),
    (re.compile(r"^=+"), _backslash),
    (re.compile(r"^#{1,6} "), _backslash),
    (re.compile(r"`"), _backslash),
    (re.compile(r"^~~~"), _backslash),
    (re.compile(r"\["), _backslash),
    (re.compile(r"\]"), _backslash),
    (re.compile(r"^>"), _backslash),
    (re.compile(r"_"), _backslash),
    (re.compile(r"^(\d+)\. "), lambda m: f"{m.group(1)}\\. "),
]


def escape_markdown(text: str) -> str:
    """Backslash-escape characters that would otherwise read as Markdown."""
    for pattern, replacement in _ESCAPES:
        text = pattern.sub(replacement, text)
    return text


def _join(output: str, addition: str) -> str:
    left = output.rstrip("\n")
    right = addition.lstrip("\n")
    newlines = max(len(output) - len(left), len(addition) - len(right))
    return left + "\n" * min(newlines, 2) + right


def _last_element_child(node: Tag) -> Tag | None:
    children = node.find_all(True, recursive=False)
    return children[-1] if children else None


def _quote_title(title: str | None) -> str:
    if not title:
        return ""
    return ' "' + title.replace('"', '\\"') + '"'


def _code_language(pre: Tag) -> str:
    code = pre.find("code")
    for element in (code, pre, pre.parent):
        if not isinstance(element, Tag):
            continue
        for class_name in element.get("class") or []:
            for prefix in _CODE_LANGUAGE_PREFIXES:
                if class_name.startswith(prefix):
                    return class_name[len(prefix):]
    return ""


def _task_checkbox(item: Tag) -> Tag | None:
    for box in item.find_all("input", attrs={"type": "checkbox"}):
        if box.find_parent("li") is item:
            return box
    return None


class _WhitespaceCollapser:
    """Computes collapsed text for every text node, the way browsers render it.

    Runs of whitespace become one space; spaces are dropped at block and
    ``<br>`` boundaries and after a text node that already ends in a space.
    ``<pre>`` content is left untouched. The tree itself is not modified.
    """

    def __init__(self) -> None:
        self.texts: dict[int, str] = {}
        self._previous: int | None = None
        self._keep_leading = False

    def run(self, root: PageElement) -> dict[int, str]:
        if isinstance(root, NavigableString):
            self._text(root)
        elif isinstance(root, Tag):
            self._walk(root)
        self._trim_previous()
        return self.texts

    def _trim_previous(self) -> None:
        if self._previous is not None:
            self.texts[self._previous] = self.texts[self._previous].removesuffix(" ")

    def _boundary(self, element: Tag) -> None:
        if is_block(element) or element.name == "br":
            self._trim_previous()
            self._previous = None
            self._keep_leading = False
        elif element.name in _VOID_TAGS:
            self._previous = None
            self._keep_leading = True
        elif self._previous is not None:
            self._keep_leading = False

    def _text(self, node: NavigableString) -> None:
        text = _WHITESPACE_RE.sub(" ", str(node))
        previous = self.texts.get(self._previous) if self._previous is not None else None
        if (previous is None or previous.endswith(" ")) and not self._keep_leading:
            text = text.removeprefix(" ")
        self.texts[id(node)] = text
        if text:
            self._previous = id(node)
            self._keep_leading = False

    def _walk(self, element: Tag) -> None:
        for child in element.children:
            if isinstance(child, PreformattedString):
                continue
            if isinstance(child, NavigableString):
                self._text(child)
            elif isinstance(child, Tag) and child.name not in _SKIP_TAGS:
                self._boundary(child)
                if child.name == "pre" or not child.contents:
                    continue
                self._walk(child)
                self._boundary(child)


class MarkdownRenderer:
    """Renders an HTML tree to Markdown according to ConversionOptions.

    Rendering is a pure function of the tree and the options; images that
    need replacing (inlined data URIs, downloaded local paths) are supplied up
    front through ``images``.
    """

    LINE_BREAK: ClassVar[str] = "  \n"

    def __init__(
        self,
        options: ConversionOptions,
        base_uri: str | None = None,
        images: Mapping[str, str] | None = None,
    ) -> None:
        """Initialize the renderer.

        Args:
            options: Formatting options.
            base_uri: Absolute page URL used to resolve links and images.
                When None, references are emitted as written.
            images: Replacement targets keyed by resolved image URL.

        """
        self._options = options
        self._base_uri = base_uri
        self._images = dict(images or {})
        self._tables = TableFormatter(options.table_formatting)
        self._references: list[str] = []
        self._texts: dict[int, str] = {}
        self._link_style = options.link_style
        self._plain_emphasis = False
        self._plain_images = False

        heading = self._heading
        self._rules: dict[str, Callable[[Tag], str]] = {
            "p": self._paragraph,
            "h1": heading, "h2": heading, "h3": heading,
            "h4": heading, "h5": heading, "h6": heading,
            "br": self._line_break,
            "hr": self._horizontal_rule,
            "blockquote": self._blockquote,
            "ul": self._list, "ol": self._list,
            "li": self._list_item,
            "pre": self._code_block,
            "code": self._inline_code,
            "kbd": self._inline_code,
            "em": self._emphasis, "i": self._emphasis,
            "strong": self._strong, "b": self._strong,
            "del": self._strikethrough, "s": self._strikethrough,
            "strike": self._strikethrough,
            "mark": self._highlight,
            "a": self._anchor,
            "img": self._image,
            "input": self._input,
            "table": self._table,
        }

    def render(self, node: PageElement) -> str:
        """Render ``node`` and everything beneath it.

        Reference-style link definitions collected during the walk are
        appended after the body.

        Raises:
            RenderError: If the tree is too deeply nested to walk.

        """
        self._references = []

        try:
            self._texts = _WhitespaceCollapser().run(node)
            output = self._node(node)
        except RecursionError as e:
            raise RenderError("document is nested too deeply to render") from e

        if self._references:
            output = _join(output, "\n\n" + "\n".join(self._references) + "\n\n")
        return output.lstrip("\t\r\n").rstrip()

    def _node(self, node: PageElement) -> str:
        if isinstance(node, PreformattedString):
            return ""
        if isinstance(node, NavigableString):
            return self._text(node)
        if isinstance(node, Tag):
            if node.name in _SKIP_TAGS:
                return ""
            return self._rules.get(node.name, self._default)(node)
        return ""

    def _children(self, node: Tag) -> str:
        output = ""
        for child in node.children:
            output = _join(output, self._node(child))
        return output

    def _text(self, node: NavigableString) -> str:
        text = self._texts.get(id(node))
        if text is None:
            text = _WHITESPACE_RE.sub(" ", str(node))
        if text and self._options.escape_markdown:
            text = escape_markdown(text)
        return text

    def _plain_text(self, node: Tag) -> str:
        return "".join(
            self._texts.get(id(string), str(string))
            for string in node.find_all(string=True)
            if not isinstance(string, PreformattedString)
        )

    def _resolve(self, href: str) -> str:
        href = href.strip()
        if self._base_uri is None:
            return href
        return resolve(href, self._base_uri)

    def _delimit(self, content: str, delimiter: str) -> str:
        stripped = content.strip()
        if not stripped:
            return content
        leading = content[: len(content) - len(content.lstrip())]
        trailing = content[len(content.rstrip()):]
        return f"{leading}{delimiter}{stripped}{delimiter}{trailing}"

    def _reference(self, text: str, destination: str, prefix: str = "") -> str:
        style = self._options.link_reference_style
        if style == "collapsed":
            self._references.append(f"[{text}]: {destination}")
            return f"{prefix}[{text}][]"
        if style == "shortcut":
            self._references.append(f"[{text}]: {destination}")
            return f"{prefix}[{text}]"
        index = len(self._references) + 1
        self._references.append(f"[{index}]: {destination}")
        return f"{prefix}[{text}][{index}]"

    # --- Rules ---

    def _default(self, node: Tag) -> str:
        content = self._children(node)
        return f"\n\n{content}\n\n" if is_block(node) else content

    def _paragraph(self, node: Tag) -> str:
        return f"\n\n{self._children(node)}\n\n"

    def _heading(self, node: Tag) -> str:
        level = int(node.name[1])
        content = self._children(node).strip()
        if not content:
            return ""
        if self._options.heading_style == "setext" and level < 3:
            underline = ("=" if level == 1 else "-") * len(content.rpartition("\n")[2])
            return f"\n\n{content}\n{underline}\n\n"
        return f"\n\n{'#' * level} {content}\n\n"

    def _line_break(self, node: Tag) -> str:
        return self.LINE_BREAK

    def _horizontal_rule(self, node: Tag) -> str:
        return f"\n\n{self._options.hr}\n\n"

    def _blockquote(self, node: Tag) -> str:
        content = self._children(node).strip("\n")
        quoted = "\n".join(f"> {line}" for line in content.split("\n"))
        return f"\n\n{quoted}\n\n"

    def _list(self, node: Tag) -> str:
        content = self._children(node)
        parent = node.parent
        if isinstance(parent, Tag) and parent.name == "li" and _last_element_child(parent) is node:
            return "\n" + content
        return f"\n\n{content}\n\n"

    def _list_item(self, node: Tag) -> str:
        parent = node.parent
        if isinstance(parent, Tag) and parent.name == "ol":
            try:
                start = int(str(parent.get("start", "1")))
            except ValueError:
                start = 1
            siblings = parent.find_all("li", recursive=False)
            index = next((i for i, item in enumerate(siblings) if item is node), 0)
            prefix = f"{start + index}. "
        else:
            prefix = f"{self._options.bullet_list_marker} "

        checkbox = _task_checkbox(node)
        if checkbox is not None:
            prefix += "[x] " if checkbox.has_attr("checked") else "[ ] "

        lines = self._children(node).strip().split("\n")
        body = "\n".join([lines[0], *(f"  {line}" if line else line for line in lines[1:])])
        return f"{prefix}{body}\n"

    def _code_block(self, node: Tag) -> str:
        code = node.get_text()
        if code.startswith("\n"):
            code = code[1:]
        code = code.removesuffix("\n")

        if self._options.code_block_style == "indented":
            indented = "\n".join(f"    {line}" for line in code.split("\n"))
            return f"\n\n{indented}\n\n"

        fence_char = self._options.fence[0]
        fence_size = len(self._options.fence)
        for run in re.findall(rf"^{re.escape(fence_char)}{{3,}}", code, re.MULTILINE):
            fence_size = max(fence_size, len(run) + 1)
        fence = fence_char * fence_size
        return f"\n\n{fence}{_code_language(node)}\n{code}\n{fence}\n\n"

    def _inline_code(self, node: Tag) -> str:
        code = self._plain_text(node).replace("\r\n", " ").replace("\n", " ")
        if not code:
            return ""
        pad = " " if _INLINE_CODE_PAD_RE.search(code) else ""
        runs = set(re.findall(r"`+", code))
        delimiter = "`"
        while delimiter in runs:
            delimiter += "`"
        return f"{delimiter}{pad}{code}{pad}{delimiter}"

    def _emphasis(self, node: Tag) -> str:
        content = self._children(node)
        if self._plain_emphasis:
            return content
        return self._delimit(content, self._options.em_delimiter)

    def _strong(self, node: Tag) -> str:
        content = self._children(node)
        if self._plain_emphasis:
            return content
        return self._delimit(content, self._options.strong_delimiter)

    def _strikethrough(self, node: Tag) -> str:
        return self._delimit(self._children(node), "~~")

    def _highlight(self, node: Tag) -> str:
        return self._delimit(self._plain_text(node), "`")

    def _anchor(self, node: Tag) -> str:
        heading = heading_only_child(node)
        if heading is not None:
            return self._node(heading)

        content = self._children(node)
        href = node.get("href")
        if not href or self._link_style == "stripLinks":
            return content

        destination = self._resolve(str(href)) + _quote_title(node.get("title"))
        if self._link_style == "referenced":
            return self._reference(content, destination)
        return f"[{content}]({destination})"

    def _image(self, node: Tag) -> str:
        style = self._options.image_style
        src = str(node.get("src") or "").strip()
        if not src or style == "noImage":
            return ""

        alt = _WHITESPACE_RE.sub(" ", str(node.get("alt") or "")).strip()
        # Cells with links stripped keep only the alt text
        if self._plain_images:
            return escape_markdown(alt) if self._options.escape_markdown else alt

        url = self._resolve(src)
        target = self._images.get(url, url)

        if style in ("obsidian", "obsidian-nofolder"):
            name = target if url in self._images else image_filename(url)
            if style == "obsidian-nofolder":
                name = name.rpartition("/")[2]
            return f"![[{name}]]"

        destination = target + _quote_title(node.get("title"))
        if self._options.image_ref_style == "referenced":
            return self._reference(alt, destination, prefix="!")
        return f"![{alt}]({destination})"

    def _input(self, node: Tag) -> str:
        # Checkboxes are rendered by the enclosing list item.
        return ""

    def _table(self, node: Tag) -> str:
        markdown = self._tables.format(node, self._render_cell)
        return f"\n\n{markdown}\n\n" if markdown else ""

    @contextmanager
    def _cell_overrides(self) -> Iterator[None]:
        saved = (self._link_style, self._plain_emphasis, self._plain_images)
        formatting = self._options.table_formatting
        if formatting.strip_links:
            self._link_style = "stripLinks"
            self._plain_images = True
        if formatting.strip_formatting:
            self._plain_emphasis = True
        try:
            yield
        finally:
            self._link_style, self._plain_emphasis, self._plain_images = saved

    def _render_cell(self, cell: Tag) -> str:
        with self._cell_overrides():
            return self._children(cell)


def render(
    node: PageElement,
    options: ConversionOptions,
    base_uri: str | None = None,
    images: Mapping[str, str] | None = None,
) -> str:
    """Render ``node`` to Markdown with a fresh MarkdownRenderer."""
    return MarkdownRenderer(options, base_uri=base_uri, images=images).render(node)


def render_table(table: Tag, options: ConversionOptions, base_uri: str | None = None) -> str:
    """Render a single ``<table>`` element to a Markdown pipe table."""
    return MarkdownRenderer(options, base_uri=base_uri).render(table)

