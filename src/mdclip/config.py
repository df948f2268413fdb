"""Application configuration using Pydantic Settings.

Environment variables are automatically mapped to Settings fields.
"""

from functools import lru_cache

from pydantic import model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mdclip.models import ConversionOptions, TableFormatting, check_fence, check_hr


class Settings(BaseSettings):
    """Application settings loaded from environment variables.

    Conversion defaults live here so they can be tuned per deployment;
    callers may still pass their own ConversionOptions per request.
    """

    # --- Diagnostics ---
    mdclip_debug: bool = False

    # --- Markdown Rendering ---
    heading_style: str = "atx"
    hr: str = "___"
    bullet_list_marker: str = "-"
    code_block_style: str = "fenced"
    fence: str = "```"
    em_delimiter: str = "_"
    strong_delimiter: str = "**"
    link_style: str = "inlined"
    link_reference_style: str = "full"
    image_style: str = "markdown"
    image_ref_style: str = "inlined"
    escape_markdown: bool = True

    # --- Templates ---
    title_template: str = "{pageTitle}"
    frontmatter: str = (
        "---\n"
        "created: {date:YYYY-MM-DDTHH:mm:ss} (UTC {date:Z})\n"
        "tags: [{keywords}]\n"
        "source: {baseURI}\n"
        "author: {byline}\n"
        "---\n\n"
        "# {pageTitle}\n\n"
        "> ## Excerpt\n"
        "> {excerpt}\n\n"
        "---"
    )
    backmatter: str = ""
    include_template: bool = False
    download_images: bool = False
    image_prefix: str = "{pageTitle}/"
    disallowed_chars: str = "[]#^"

    # --- Tables ---
    table_strip_links: bool = False
    table_strip_formatting: bool = False
    table_pretty_print: bool = True
    table_center_text: bool = False

    # --- Content Extraction ---
    readability_positive_keywords: str = "callout,article,content,main"
    readability_min_text_length: int = 25

    # --- Resource Fetching ---
    fetch_timeout: float = 10.0
    fetch_user_agent: str = "Mozilla/5.0 (compatible; mdclip/0.1)"

    # --- Network Interface ---
    host: str = "0.0.0.0"
    port: int = 8000

    @model_validator(mode="after")
    def validate_markdown_tokens(self) -> "Settings":
        """Validate fence and horizontal rule tokens.

        Raises:
            ValueError: If FENCE or HR is not a valid Markdown token

        """
        check_fence(self.fence)
        check_hr(self.hr)
        return self

    # --- Tool Metadata ---
    tool_clip_html_desc: str = (
        "Convert an HTML page into a Markdown article.\n\n"
        "Returns the rendered Markdown together with a suggested file name."
    )
    tool_clip_url_desc: str = (
        "Fetch a web page and convert its main article into Markdown."
    )

    # Tool argument descriptions
    arg_clip_html_html_desc: str = "Full HTML source of the page to convert."
    arg_clip_html_url_desc: str = "Absolute URL the HTML was loaded from."
    arg_clip_url_url_desc: str = "The URL of the page to clip."

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    def conversion_options(self) -> ConversionOptions:
        """Build the default ConversionOptions from these settings.

        Raises:
            ValidationError: If a style setting holds an unsupported value.

        """
        return ConversionOptions(
            heading_style=self.heading_style,
            hr=self.hr,
            bullet_list_marker=self.bullet_list_marker,
            code_block_style=self.code_block_style,
            fence=self.fence,
            em_delimiter=self.em_delimiter,
            strong_delimiter=self.strong_delimiter,
            link_style=self.link_style,
            link_reference_style=self.link_reference_style,
            image_style=self.image_style,
            image_ref_style=self.image_ref_style,
            escape_markdown=self.escape_markdown,
            title_template=self.title_template,
            frontmatter=self.frontmatter,
            backmatter=self.backmatter,
            include_template=self.include_template,
            download_images=self.download_images,
            image_prefix=self.image_prefix,
            disallowed_chars=frozenset(self.disallowed_chars),
            table_formatting=TableFormatting(
                strip_links=self.table_strip_links,
                strip_formatting=self.table_strip_formatting,
                pretty_print=self.table_pretty_print,
                center_text=self.table_center_text,
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """Return cached settings instance.

    Uses lru_cache to ensure the .env file is only parsed once
    and all modules share the same settings instance.
    """
    return Settings()


settings = get_settings()
