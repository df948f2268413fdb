"""Conversion pipeline that orchestrates normalization, extraction and rendering."""

import asyncio
import logging

from bs4 import BeautifulSoup, Tag

from mdclip.config import Settings
from mdclip.converter.extractor import ReadabilityExtractor
from mdclip.converter.fetcher import ResourceFetcher
from mdclip.converter.normalizer import TreeNormalizer
from mdclip.converter.protocols import ContentExtractor, ResourceSource
from mdclip.converter.renderer import MarkdownRenderer
from mdclip.exceptions import ExtractionError, FetchError
from mdclip.filenames import sanitize_filename
from mdclip.logger import logger
from mdclip.models import Article, ConversionOptions, ConversionResult, TemplateContext
from mdclip.templates import fill
from mdclip.timing import timeit
from mdclip.urls import image_filename, resolve


def _unique_name(name: str, taken: set[str]) -> str:
    """Number a clashing file name before its extension: a.png, a.1.png, a.2.png."""
    stem, dot, extension = name.rpartition(".")
    if not dot:
        stem, extension = name, ""
    candidate = name
    counter = 1
    while candidate in taken:
        candidate = f"{stem}.{counter}.{extension}" if dot else f"{stem}.{counter}"
        counter += 1
    return candidate


class Converter:
    """Coordinates tree normalization, extraction, rendering and templating.

    Pipeline: HTML -> normalize -> extract article -> resolve images ->
    render Markdown -> fill title, front matter and back matter.
    """

    def __init__(
        self,
        settings: Settings,
        extractor: ContentExtractor | None = None,
        fetcher: ResourceSource | None = None,
    ) -> None:
        """Initialize the converter with settings.

        Args:
            settings: Application settings containing all configuration.
            extractor: Content extractor; defaults to ReadabilityExtractor.
            fetcher: Resource fetcher for pages and base64 images; one is
                created from the fetch settings when omitted.

        """
        self._settings = settings
        self._normalizer = TreeNormalizer()
        self._extractor = extractor or ReadabilityExtractor(settings)
        self._fetcher: ResourceSource = fetcher or ResourceFetcher(
            timeout=settings.fetch_timeout,
            user_agent=settings.fetch_user_agent,
        )

    async def close(self) -> None:
        """Close the resource fetcher."""
        await self._fetcher.close()

    @timeit("Page conversion", logging.DEBUG)
    async def convert(
        self,
        html: str | Tag,
        base_uri: str,
        options: ConversionOptions | None = None,
    ) -> ConversionResult:
        """Convert a page into a Markdown document.

        Args:
            html: Page HTML, or an already parsed tree which is mutated.
            base_uri: Absolute URL the page was loaded from.
            options: Formatting options; the settings defaults when omitted.

        Returns:
            ConversionResult with the final Markdown and a sanitized file name.

        Raises:
            ExtractionError: If no article content was found.
            UrlError: If base_uri is not an absolute URL.
            RenderError: If the article is too deeply nested to render.

        """
        options = options or self._settings.conversion_options()
        tree = BeautifulSoup(html, "html.parser") if isinstance(html, str) else html

        logger.debug("[NORMALIZATION STARTED] for %s", base_uri)
        self._normalizer.normalize(tree)

        logger.debug("[EXTRACTION STARTED] for %s", base_uri)
        article = await asyncio.to_thread(self._extractor.extract, tree, base_uri)
        if article is None:
            raise ExtractionError("no article content found")

        context = article.template_context()
        image_list = self._local_images(article, options, context)
        images = dict(image_list)
        if options.image_style == "base64":
            images.update(await self._inline_images(article))

        logger.debug("[MARKDOWN GENERATION STARTED] for %s", base_uri)
        renderer = MarkdownRenderer(options, base_uri=base_uri, images=images)
        body = await asyncio.to_thread(renderer.render, article.content)

        title = fill(options.title_template, context, options.disallowed_chars)
        markdown = body
        if options.include_template:
            markdown = fill(options.frontmatter, context) + body + fill(options.backmatter, context)

        return ConversionResult(
            markdown=markdown,
            title=title,
            filename=f"{sanitize_filename(title, options.disallowed_chars)}.md",
            image_list=image_list if options.download_images else {},
            article=article,
        )

    async def clip_url(self, url: str, options: ConversionOptions | None = None) -> ConversionResult:
        """Fetch ``url`` and convert it, resolving links against the final URL.

        Raises:
            FetchError: If the page cannot be retrieved.
            ExtractionError: If no article content was found.

        """
        html, final_url = await self._fetcher.fetch_page(url)
        return await self.convert(html, final_url, options)

    def _image_urls(self, article: Article) -> list[str]:
        urls: list[str] = []
        for image in article.content.find_all("img"):
            src = str(image.get("src") or "").strip()
            if not src:
                continue
            url = resolve(src, article.base_uri)
            if not url.startswith("data:") and url not in urls:
                urls.append(url)
        return urls

    def _local_images(
        self,
        article: Article,
        options: ConversionOptions,
        context: TemplateContext,
    ) -> dict[str, str]:
        """Map image URLs to local file paths when images are saved alongside the note."""
        if not (options.download_images or options.image_style.startswith("obsidian")):
            return {}

        prefix = fill(options.image_prefix, context, options.disallowed_chars)
        local: dict[str, str] = {}
        for url in self._image_urls(article):
            name = sanitize_filename(image_filename(url), options.disallowed_chars) or ""
            local[url] = _unique_name(prefix + name, set(local.values()))
        return local

    async def _inline_images(self, article: Article) -> dict[str, str]:
        """Fetch every image as a data URI, one at a time."""
        inlined: dict[str, str] = {}
        for url in self._image_urls(article):
            logger.debug("[IMAGE FETCH STARTED] %s", url)
            try:
                inlined[url] = await self._fetcher.data_uri(url)
            except FetchError as e:
                logger.warning("Keeping image URL, could not inline %s: %s", url, e)
        return inlined
