"""Protocol definitions for the converter package.

Structural interfaces for the collaborators the conversion pipeline
consumes but does not implement itself.
"""

from typing import Protocol

from bs4 import Tag

from mdclip.models import Article


class ContentExtractor(Protocol):
    """Finds the main article in a normalized page tree.

    Implementations should:
    - Return an Article when readable content was found
    - Return None when the page has no article content
    """

    def extract(self, tree: Tag, base_uri: str) -> Article | None:
        """Extract the article from ``tree``.

        Args:
            tree: Normalized page tree.
            base_uri: Absolute URL of the page.

        Returns:
            The extracted Article, or None if nothing was found.

        """
        ...


class ResourceSource(Protocol):
    """Fetches pages and remote resources such as images."""

    async def fetch(self, url: str) -> bytes:
        """Return the body of ``url``.

        Raises:
            FetchError: If the resource cannot be retrieved.

        """
        ...

    async def data_uri(self, url: str) -> str:
        """Return ``url`` inlined as a base64 ``data:`` URI.

        Raises:
            FetchError: If the resource cannot be retrieved.

        """
        ...

    async def fetch_page(self, url: str) -> tuple[str, str]:
        """Return the HTML of ``url`` and the final URL after redirects.

        Raises:
            FetchError: If the page cannot be retrieved.

        """
        ...

    async def close(self) -> None:
        """Release any held connections."""
        ...
