"""Article extraction using readability-lxml."""

from urllib.parse import urlsplit

from bs4 import BeautifulSoup, Tag
from readability import Document
from readability.readability import Unparseable

from mdclip.config import Settings
from mdclip.logger import logger
from mdclip.models import Article
from mdclip.urls import origin


def _meta(tree: Tag, *keys: str) -> str:
    """Return the first non-empty ``<meta>`` content matching a name or property."""
    for key in keys:
        for attr in ("name", "property", "itemprop"):
            tag = tree.find("meta", attrs={attr: key})
            if isinstance(tag, Tag) and tag.get("content"):
                return str(tag["content"]).strip()
    return ""


def _meta_values(tree: Tag) -> dict[str, str]:
    values: dict[str, str] = {}
    for tag in tree.find_all("meta"):
        key = tag.get("name") or tag.get("property")
        content = tag.get("content")
        if key and content and key not in values:
            values[str(key)] = str(content).strip()
    return values


def _url_parts(base_uri: str) -> dict[str, str]:
    parts = urlsplit(base_uri)
    return {
        "host": parts.netloc.rpartition("@")[2],
        "hostname": parts.hostname or "",
        "origin": origin(base_uri),
        "pathname": parts.path or "/",
        "port": str(parts.port or ""),
        "protocol": f"{parts.scheme}:",
        "search": f"?{parts.query}" if parts.query else "",
        "hash": f"#{parts.fragment}" if parts.fragment else "",
    }


class ReadabilityExtractor:
    """Finds the main article of a page with readability-lxml.

    The tree is expected to have been through TreeNormalizer so that
    callouts, tables and code blocks survive the scoring.
    """

    def __init__(self, settings: Settings) -> None:
        """Initialize the extractor with settings.

        Args:
            settings: Application settings containing readability tuning.

        """
        self._positive_keywords = [
            keyword.strip()
            for keyword in settings.readability_positive_keywords.split(",")
            if keyword.strip()
        ]
        self._min_text_length = settings.readability_min_text_length

    def extract(self, tree: Tag, base_uri: str) -> Article | None:
        """Extract the main article and its metadata.

        Links are left as they appear in the page; resolving them against
        ``base_uri`` is the renderer's job.

        Args:
            tree: Normalized page tree.
            base_uri: Absolute URL of the page.

        Returns:
            Article, or None if no readable content was found.

        Raises:
            UrlError: If base_uri is not an absolute URL.

        """
        document = Document(
            str(tree),
            positive_keywords=self._positive_keywords or None,
            min_text_length=self._min_text_length,
        )
        try:
            summary_html = document.summary(html_partial=True)
            title = document.short_title()
        except Unparseable as e:
            logger.debug("Readability could not parse the page: %s", e)
            return None

        content = BeautifulSoup(summary_html, "html.parser")
        text_content = content.get_text()
        if not text_content.strip() and content.find("img") is None:
            logger.debug("Readability returned no content for %s", base_uri)
            return None

        page_title = tree.title.get_text(strip=True) if tree.title else ""
        author = _meta(tree, "author", "article:author")
        byline_tag = tree.select_one('[rel="author"], .byline, [itemprop="author"]')
        byline = byline_tag.get_text(" ", strip=True) if byline_tag else ""
        description = _meta(tree, "description", "og:description", "twitter:description")
        keywords = tuple(
            keyword.strip() for keyword in _meta(tree, "keywords").split(",") if keyword.strip()
        )

        first_paragraph = content.find("p")
        excerpt = description or (
            first_paragraph.get_text(" ", strip=True) if first_paragraph else ""
        )

        return Article(
            content=content,
            base_uri=base_uri,
            title=title or page_title,
            author=author,
            byline=byline or author,
            description=description,
            site_name=_meta(tree, "og:site_name", "application-name"),
            page_title=page_title,
            keywords=keywords,
            text_content=text_content,
            length=len(text_content),
            excerpt=excerpt,
            extra={**_meta_values(tree), **_url_parts(base_uri)},
        )
