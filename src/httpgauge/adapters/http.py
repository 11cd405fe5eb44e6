"""httpx adapter for fetching target responses."""

import logging
from collections.abc import Mapping

import httpx

from httpgauge import __version__
from httpgauge.core.errors import FetchError

logger = logging.getLogger(__name__)

USER_AGENT = f"httpgauge/{__version__}"


class HttpxFetcher:
    """FetcherPort implementation backed by a shared httpx.AsyncClient.

    Every request carries a default User-Agent, which target headers may
    override. Timeouts, transport errors and non-2xx responses all surface
    as FetchError.
    """

    def __init__(self, client: httpx.AsyncClient | None = None) -> None:
        self._client = client if client is not None else httpx.AsyncClient(
            follow_redirects=True
        )

    async def fetch(
        self, url: str, headers: Mapping[str, str], timeout: float
    ) -> str:
        """Return the response text of a GET request to url."""
        request_headers = httpx.Headers({"User-Agent": USER_AGENT})
        request_headers.update(headers)
        logger.debug("GET %s", url)
        try:
            response = await self._client.get(
                url, headers=request_headers, timeout=timeout
            )
            response.raise_for_status()
        except httpx.TimeoutException as e:
            raise FetchError(f"timed out after {timeout}s fetching {url}") from e
        except httpx.HTTPStatusError as e:
            raise FetchError(
                f"{url} returned status {e.response.status_code}"
            ) from e
        except httpx.HTTPError as e:
            raise FetchError(f"requesting {url} failed: {e!r}") from e
        return response.text

    async def close(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "HttpxFetcher":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.close()
