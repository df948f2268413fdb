"""HTTP client for pages and images."""

import base64
import mimetypes

import httpx

from mdclip.exceptions import FetchError
from mdclip.logger import logger


class ResourceFetcher:
    """Fetches pages and images over HTTP.

    Uses a persistent httpx client to reuse connections across requests.
    """

    def __init__(self, timeout: float, user_agent: str) -> None:
        """Initialize the fetcher.

        Args:
            timeout: Request timeout in seconds.
            user_agent: User-Agent header sent with every request.

        """
        self._client = httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True,
            headers={"User-Agent": user_agent},
        )

    async def _get(self, url: str) -> httpx.Response:
        try:
            logger.debug("[FETCH STARTED] %s", url)
            resp = await self._client.get(url)
            resp.raise_for_status()

        except httpx.HTTPStatusError as e:
            raise FetchError(f"Server returned error for {url}: {e}") from e

        except httpx.RequestError as e:
            raise FetchError(f"Request failed for {url}: {e}") from e

        return resp

    async def fetch(self, url: str) -> bytes:
        """Return the raw body of ``url``.

        Raises:
            FetchError: If the request fails or returns an error status.

        """
        resp = await self._get(url)
        return resp.content

    async def fetch_page(self, url: str) -> tuple[str, str]:
        """Fetch an HTML page.

        Returns:
            The decoded HTML and the final URL after redirects.

        Raises:
            FetchError: If the request fails or returns an error status.

        """
        resp = await self._get(url)
        return resp.text, str(resp.url)

    async def data_uri(self, url: str) -> str:
        """Return ``url`` inlined as a base64 ``data:`` URI.

        The media type comes from the response, falling back to a guess from
        the URL and then to ``application/octet-stream``.

        Raises:
            FetchError: If the request fails or returns an error status.

        """
        resp = await self._get(url)
        content_type = resp.headers.get("content-type", "").split(";")[0].strip()
        if not content_type:
            content_type = mimetypes.guess_type(url)[0] or "application/octet-stream"
        encoded = base64.b64encode(resp.content).decode("ascii")
        return f"data:{content_type};base64,{encoded}"

    async def close(self) -> None:
        """Close the HTTP client and release resources."""
        logger.debug("Closing resource fetcher")
        await self._client.aclose()
