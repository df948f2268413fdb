"""Data models shared across the conversion pipeline."""

import re
from collections.abc import Mapping
from types import MappingProxyType
from typing import Literal, NamedTuple

from bs4 import Tag
from pydantic import BaseModel, ConfigDict, field_validator

HeadingStyle = Literal["atx", "setext"]
CodeBlockStyle = Literal["fenced", "indented"]
LinkStyle = Literal["inlined", "referenced", "stripLinks"]
LinkReferenceStyle = Literal["full", "collapsed", "shortcut"]
ImageStyle = Literal["markdown", "base64", "noImage", "obsidian", "obsidian-nofolder"]
ImageRefStyle = Literal["inlined", "referenced"]

TemplateContext = Mapping[str, str | tuple[str, ...]]

_FENCE_RE = re.compile(r"^(`{3,}|~{3,})$")
_HR_RE = re.compile(r"^(?:(?:-\s*){3,}|(?:\*\s*){3,}|(?:_\s*){3,})$")


def check_fence(value: str) -> str:
    """Return ``value`` if it opens a fenced code block.

    Raises:
        ValueError: If the fence is not three or more backticks or tildes

    """
    if not _FENCE_RE.match(value):
        msg = "FENCE must be three or more backticks or tildes"
        raise ValueError(msg)
    return value


def check_hr(value: str) -> str:
    """Return ``value`` if it is a Markdown thematic break.

    Raises:
        ValueError: If the token is not a thematic break

    """
    if not _HR_RE.match(value):
        msg = "HR must be a valid thematic break such as --- or ***"
        raise ValueError(msg)
    return value


class TableFormatting(BaseModel):
    """Independent formatting toggles applied to rendered tables."""

    model_config = ConfigDict(frozen=True)

    strip_links: bool = False
    strip_formatting: bool = False
    pretty_print: bool = False
    center_text: bool = False


class ConversionOptions(BaseModel):
    """User-facing formatting options, read-only for one conversion."""

    model_config = ConfigDict(frozen=True)

    heading_style: HeadingStyle = "atx"
    hr: str = "---"
    bullet_list_marker: str = "-"
    code_block_style: CodeBlockStyle = "fenced"
    fence: str = "```"
    em_delimiter: str = "_"
    strong_delimiter: str = "**"
    link_style: LinkStyle = "inlined"
    link_reference_style: LinkReferenceStyle = "full"
    image_style: ImageStyle = "markdown"
    image_ref_style: ImageRefStyle = "inlined"
    escape_markdown: bool = False

    title_template: str = "{title}"
    frontmatter: str = ""
    backmatter: str = ""
    include_template: bool = True
    download_images: bool = False
    image_prefix: str = ""
    disallowed_chars: frozenset[str] = frozenset()

    table_formatting: TableFormatting = TableFormatting()

    @field_validator("disallowed_chars", mode="before")
    @classmethod
    def split_disallowed_chars(cls, value: object) -> object:
        """Accept the characters as a plain string, e.g. '[]#^'."""
        if isinstance(value, str):
            return frozenset(value)
        return value

    @field_validator("fence")
    @classmethod
    def validate_fence(cls, value: str) -> str:
        """Reject fences the code block rule cannot open."""
        return check_fence(value)

    @field_validator("hr")
    @classmethod
    def validate_hr(cls, value: str) -> str:
        """Reject horizontal rules that are not thematic breaks."""
        return check_hr(value)


class Article(NamedTuple):
    """Extracted page content plus metadata.

    Every text field defaults to an empty string and keywords to an empty
    tuple; ``extra`` carries page meta tags and URL parts for templates.
    """

    content: Tag
    base_uri: str
    title: str = ""
    author: str = ""
    byline: str = ""
    description: str = ""
    site_name: str = ""
    page_title: str = ""
    keywords: tuple[str, ...] = ()
    text_content: str = ""
    length: int = 0
    excerpt: str = ""
    extra: Mapping[str, str] = MappingProxyType({})

    def template_context(self) -> dict[str, str | tuple[str, ...]]:
        """Return every field except content, keyed the way templates name them."""
        context: dict[str, str | tuple[str, ...]] = dict(self.extra)
        context.update(
            {
                "title": self.title,
                "author": self.author,
                "byline": self.byline,
                "description": self.description,
                "siteName": self.site_name,
                "pageTitle": self.page_title,
                "baseURI": self.base_uri,
                "keywords": self.keywords,
                "textContent": self.text_content,
                "length": str(self.length),
                "excerpt": self.excerpt,
            }
        )
        return context


class ConversionResult(NamedTuple):
    """Result of converting one page."""

    markdown: str
    title: str
    filename: str
    image_list: dict[str, str]
    article: Article
