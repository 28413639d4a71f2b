"""
HTTP client utilities with connection pooling.
Provides the shared httpx clients used by the search and scrape tools.
"""
import httpx
from config import Config


class HTTPClientManager:
    """Manages shared httpx clients with connection pooling."""

    _search_client: httpx.AsyncClient | None = None
    _scrape_client: httpx.AsyncClient | None = None

    @classmethod
    def get_search_client(cls) -> httpx.AsyncClient:
        """
        Get or create the shared client for search API calls.

        Returns:
            Configured httpx.AsyncClient for the search provider
        """
        if cls._search_client is None:
            limits = httpx.Limits(
                max_connections=5,
                max_keepalive_connections=5,
                keepalive_expiry=30.0
            )

            cls._search_client = httpx.AsyncClient(
                timeout=Config.SEARCH_TIMEOUT,
                limits=limits,
                http2=True
            )

        return cls._search_client

    @classmethod
    def get_scrape_client(cls) -> httpx.AsyncClient:
        """
        Get or create the shared client for page fetches and robots.txt lookups.

        Features:
        - Connection pooling sized for parallel page fetches
        - Redirect following with a bounded redirect count

        Returns:
            Configured httpx.AsyncClient for web scraping
        """
        if cls._scrape_client is None:
            limits = httpx.Limits(
                max_connections=Config.MAX_CONCURRENT_SCRAPES * 2,
                max_keepalive_connections=10,
                keepalive_expiry=60.0
            )

            cls._scrape_client = httpx.AsyncClient(
                timeout=Config.WEB_SCRAPING_TIMEOUT,
                follow_redirects=True,
                max_redirects=Config.MAX_REDIRECTS,
                limits=limits,
                headers={"User-Agent": Config.SCRAPER_USER_AGENT},
                http2=True
            )

        return cls._scrape_client

    @classmethod
    async def close_all(cls) -> None:
        """
        Close all managed clients and clean up connections.
        """
        if cls._search_client is not None:
            await cls._search_client.aclose()
            cls._search_client = None

        if cls._scrape_client is not None:
            await cls._scrape_client.aclose()
            cls._scrape_client = None
