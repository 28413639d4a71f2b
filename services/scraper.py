"""
Bulk web page crawler.
Fetches pages in parallel and converts them to markdown for the model.
"""
import asyncio
import re
from typing import Any, Dict, List, Optional
from urllib.parse import urlparse
from urllib.robotparser import RobotFileParser

import httpx

from config import Config
from utils.html_parser import HTMLParser
from utils.http_client import HTTPClientManager
from utils.logger import app_logger


class ScraperService:
    """Service for crawling web pages."""

    @staticmethod
    async def bulk_crawl_websites(urls: List[str]) -> Dict[str, Any]:
        """
        Crawl several URLs concurrently.

        Args:
            urls: URLs to crawl

        Returns:
            {"success": bool, "results": [{"url", "result": {"success", "data" | "error"}}], "error"?}
            where the top-level success is True only when every URL succeeded and
            error lists each failed URL with its reason.
        """
        client = HTTPClientManager.get_scrape_client()
        robots_cache: Dict[str, asyncio.Task] = {}

        crawled = await asyncio.gather(
            *(ScraperService.crawl_website(client, url, robots_cache) for url in urls),
            return_exceptions=True
        )

        results = []
        for url, result in zip(urls, crawled):
            if isinstance(result, Exception):
                app_logger.warning(f"Unexpected scraping error for {url}: {result}")
                result = ScraperService._failure(f"Unexpected error: {result}")
            results.append({"url": url, "result": result})

        failed = [entry for entry in results if not entry["result"]["success"]]
        app_logger.info(f"Crawled {len(results) - len(failed)}/{len(results)} pages successfully")

        if not failed:
            return {"success": True, "results": results}

        return {
            "success": False,
            "results": results,
            "error": "Failed to crawl some websites:\n" + "\n".join(
                f"{entry['url']}: {entry['result']['error']}" for entry in failed
            ),
        }

    @staticmethod
    async def crawl_website(
        client: httpx.AsyncClient,
        url: str,
        robots_cache: Optional[Dict[str, asyncio.Task]] = None
    ) -> Dict[str, Any]:
        """
        Fetch one page and convert it to markdown.

        Args:
            client: HTTP client for making requests
            url: URL to crawl
            robots_cache: robots.txt lookups per origin, shared within one bulk crawl

        Returns:
            {"success": True, "data": markdown} or {"success": False, "error": reason}
        """
        try:
            ScraperService._validate_url(url)

            if not await ScraperService._is_allowed_by_robots(client, url, robots_cache):
                app_logger.info(f"Skipping {url}: disallowed by robots.txt")
                return ScraperService._failure("Crawling disallowed by robots.txt")

            app_logger.info(f"Scraping content from: {url}")

            async with client.stream('GET', url, timeout=Config.WEB_SCRAPING_TIMEOUT) as page_response:
                if page_response.status_code != 200:
                    app_logger.warning(f"Failed to fetch {url}: status {page_response.status_code}")
                    return ScraperService._failure(f"HTTP {page_response.status_code}")

                # Validate content-type before downloading
                content_type = page_response.headers.get('content-type', '').lower().split(';')[0].strip()
                if content_type and not any(allowed in content_type for allowed in Config.ALLOWED_CONTENT_TYPES):
                    app_logger.warning(f"Skipping {url}: unsupported content-type '{content_type}'")
                    return ScraperService._failure(f"Unsupported content type: {content_type}")

                size = 0
                chunks = []
                async for chunk in page_response.aiter_bytes():
                    size += len(chunk)
                    if size > Config.MAX_RESPONSE_SIZE:
                        app_logger.warning(f"Response from {url} exceeds size limit ({size} bytes)")
                        return ScraperService._failure(
                            f"Response exceeds size limit of {Config.MAX_RESPONSE_SIZE} bytes"
                        )
                    chunks.append(chunk)

                encoding = page_response.charset_encoding or 'utf-8'
                final_url = str(page_response.url)

            body = b''.join(chunks).decode(encoding, errors='ignore')

            if content_type == 'text/plain':
                content = re.sub(r'[ \t]+', ' ', body).strip()[:Config.MAX_PAGE_CONTENT_LENGTH]
            else:
                content = HTMLParser.to_markdown(body, Config.MAX_PAGE_CONTENT_LENGTH, base_url=final_url)

            if not content:
                app_logger.warning(f"Scraping returned empty for {url}")
                return ScraperService._failure("No readable content found")

            app_logger.info(f"Successfully scraped {len(content)} chars from {url}")
            return {"success": True, "data": content}

        except ValueError as e:
            app_logger.warning(f"Scraping validation failed for {url}: {e}")
            return ScraperService._failure(str(e))
        except httpx.TimeoutException:
            app_logger.warning(f"Scraping timed out for {url}")
            return ScraperService._failure("Request timed out")
        except httpx.RequestError as e:
            app_logger.warning(f"Scraping request failed for {url}: {e}")
            return ScraperService._failure(f"Request failed: {e}")

    @staticmethod
    def _failure(error: str) -> Dict[str, Any]:
        return {"success": False, "error": error}

    @staticmethod
    def _validate_url(url: str) -> None:
        """Reject anything that is not an absolute http(s) URL."""
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"Invalid URL: {url}")

    @staticmethod
    async def _is_allowed_by_robots(
        client: httpx.AsyncClient,
        url: str,
        robots_cache: Optional[Dict[str, asyncio.Task]]
    ) -> bool:
        """
        Check robots.txt for the URL's origin.

        A missing or unreadable robots.txt allows crawling.
        """
        parsed = urlparse(url)
        origin = f"{parsed.scheme}://{parsed.netloc}"

        if robots_cache is None:
            parser = await ScraperService._fetch_robots(client, origin)
        else:
            # Concurrent crawls of one origin share a single lookup
            if origin not in robots_cache:
                robots_cache[origin] = asyncio.ensure_future(
                    ScraperService._fetch_robots(client, origin)
                )
            parser = await robots_cache[origin]

        if parser is None:
            return True
        return parser.can_fetch(Config.SCRAPER_USER_AGENT, url)

    @staticmethod
    async def _fetch_robots(client: httpx.AsyncClient, origin: str) -> Optional[RobotFileParser]:
        try:
            response = await client.get(f"{origin}/robots.txt", timeout=Config.WEB_SCRAPING_TIMEOUT)
        except httpx.HTTPError as e:
            app_logger.debug(f"robots.txt unavailable for {origin}: {e}")
            return None

        if response.status_code != 200:
            return None

        parser = RobotFileParser()
        parser.parse(response.text.splitlines())
        return parser
