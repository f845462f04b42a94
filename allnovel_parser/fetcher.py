"""
Fetch collaborator: retrieves raw markup for a URL.

Extractors never do I/O. The source hands URLs to a BaseFetcher and gets
markup back, or a FetchError. HttpxFetcher is the default implementation;
the host application (or a test) can supply any other BaseFetcher.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from .config import SourceConfig
from .exceptions import FetchError
from .logger import get_module_logger

logger = get_module_logger("fetcher")


class BaseFetcher(ABC):
    """Abstract base class for fetchers."""

    @abstractmethod
    async def fetch(self, url: str, headers: Optional[dict] = None) -> str:
        """
        Retrieve a document.

        Args:
            url: Absolute URL
            headers: Extra request headers

        Returns:
            Response body as text

        Raises:
            FetchError: on a non-success status or a network failure
        """
        pass


class HttpxFetcher(BaseFetcher):
    """httpx-based fetcher. One client per request, so no state leaks between calls."""

    def __init__(
        self,
        timeout: float = 30.0,
        headers: Optional[dict] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.timeout = timeout
        self.headers = headers or {}
        self.transport = transport

    async def fetch(self, url: str, headers: Optional[dict] = None) -> str:
        request_headers = {**self.headers, **(headers or {})}
        logger.debug(f"GET {url}")

        try:
            async with httpx.AsyncClient(
                timeout=httpx.Timeout(self.timeout, connect=min(self.timeout, 10.0)),
                follow_redirects=True,
                transport=self.transport,
            ) as client:
                response = await client.get(url, headers=request_headers)
                response.raise_for_status()
                return response.text
        except httpx.HTTPStatusError as e:
            status = e.response.status_code
            logger.warning(f"HTTP {status} for {url}")
            raise FetchError(f"HTTP {status} for {url}", url=url, status_code=status)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.warning(f"Request failed for {url}: {e}")
            raise FetchError(
                f"Request failed for {url}: {e}",
                url=url,
                details={"error": str(e)}
            )


class Fetcher:
    """
    Factory for fetchers.

    Usage:
        fetcher = Fetcher.create()                      # config from environment
        fetcher = Fetcher.create(SourceConfig(timeout=5))
    """

    @staticmethod
    def create(
        config: Optional[SourceConfig] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ) -> BaseFetcher:
        config = config or SourceConfig.from_env()
        logger.info(f"Creating httpx fetcher (timeout {config.timeout}s)")
        return HttpxFetcher(
            timeout=config.timeout,
            headers={"User-Agent": config.user_agent},
            transport=transport,
        )
