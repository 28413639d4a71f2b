"""
Web search service using the Serper Google Search API.
"""
from typing import Any, Dict, List

import httpx

from config import Config
from utils.http_client import HTTPClientManager
from utils.logger import app_logger


class SearchError(Exception):
    """Raised when the search provider cannot return results."""


class SearchService:
    """Service for querying the search provider."""

    @staticmethod
    def _build_payload(query: str, num: int) -> Dict[str, Any]:
        return {"q": query, "num": num}

    @staticmethod
    async def search_web(query: str, num: int | None = None) -> List[Dict[str, str]]:
        """
        Search the web and return the top organic results.

        Args:
            query: Search query string
            num: Number of results to request (defaults to Config.SEARCH_RESULTS_COUNT)

        Returns:
            List of {"title", "link", "snippet"} dicts in ranking order

        Raises:
            SearchError: If the API key is missing, the request fails or the API returns an error status
        """
        if not Config.SERPER_API_KEY:
            raise SearchError("Search API key not configured. Cannot perform search.")

        num = num or Config.SEARCH_RESULTS_COUNT
        client = HTTPClientManager.get_search_client()
        app_logger.info(f"Searching web for: '{query}' (top {num})")

        try:
            response = await client.post(
                Config.SERPER_SEARCH_URL,
                headers={
                    "X-API-KEY": Config.SERPER_API_KEY,
                    "Content-Type": "application/json",
                },
                json=SearchService._build_payload(query, num)
            )
        except httpx.TimeoutException as e:
            app_logger.error(f"Search timed out: {str(e)}")
            raise SearchError("Search timed out. Please try again.") from e
        except httpx.RequestError as e:
            app_logger.error(f"Search request failed: {str(e)}")
            raise SearchError(f"Search request failed: {str(e)}") from e

        if response.status_code == 401 or response.status_code == 403:
            raise SearchError("Invalid API key. Please check your SERPER_API_KEY.")
        if response.status_code == 429:
            raise SearchError("API rate limit exceeded. Please try again later.")
        if response.status_code != 200:
            raise SearchError(f"Search API error (status {response.status_code}).")

        results = SearchService._format_organic_results(response.json())
        app_logger.info(f"Search returned {len(results)} results for '{query}'")
        return results

    @staticmethod
    def _format_organic_results(data: dict) -> List[Dict[str, str]]:
        """
        Reduce the provider's organic results to title/link/snippet triples.

        Args:
            data: Search API response data

        Returns:
            List of formatted results, skipping entries without a link
        """
        results = []
        for result in data.get("organic") or []:
            link = result.get("link")
            if not link:
                continue
            results.append({
                "title": result.get("title", ""),
                "link": link,
                "snippet": result.get("snippet", ""),
            })
        return results
