"""
Tools exposed to the model: web search and page scraping.
Each tool call is executed here and its outcome returned as JSON-serializable data;
failures come back as data, never as exceptions.
"""
import json
from typing import Any, Dict, List

from pydantic import BaseModel, Field, ValidationError

from services.scraper import ScraperService
from services.search import SearchError, SearchService
from utils.cache import cache_with_redis
from utils.constants import ToolName
from utils.logger import app_logger


class SearchWebArgs(BaseModel):
    query: str = Field(description="The query to search the web for")


class ScrapePagesArgs(BaseModel):
    urls: List[str] = Field(description="Array of URLs to scrape for full content")


def _tool_definition(name: str, description: str, args_model: type[BaseModel]) -> Dict[str, Any]:
    schema = args_model.model_json_schema()
    return {
        "type": "function",
        "function": {
            "name": name,
            "description": description,
            "parameters": {
                "type": "object",
                "properties": schema["properties"],
                "required": schema.get("required", []),
            },
        },
    }


TOOL_DEFINITIONS = [
    _tool_definition(
        ToolName.SEARCH_WEB,
        "Search the web and return the top results as title, link and snippet.",
        SearchWebArgs,
    ),
    _tool_definition(
        ToolName.SCRAPE_PAGES,
        "Fetch the full text content of web pages as markdown.",
        ScrapePagesArgs,
    ),
]

# Scrape results are shared across turns and users through redis
cached_scrape_pages = cache_with_redis(ToolName.SCRAPE_PAGES, ScraperService.bulk_crawl_websites)


class ToolService:
    """Executes tool calls requested by the model."""

    @staticmethod
    async def search_web(query: str) -> List[Dict[str, str]]:
        """Run the searchWeb tool."""
        return await SearchService.search_web(query)

    @staticmethod
    async def scrape_pages(urls: List[str]) -> Dict[str, Any]:
        """
        Run the scrapePages tool.

        Returns:
            {"success", "results", "summary"} when every page was scraped, otherwise
            additionally "error" and "failedUrls" with success set to False
        """
        result = await cached_scrape_pages(urls)
        results = [ToolService.format_crawl_result(entry) for entry in result["results"]]

        if result["success"]:
            return {
                "success": True,
                "results": results,
                "summary": f"Successfully scraped {len(results)} pages",
            }

        successful = [entry for entry in result["results"] if entry["result"]["success"]]
        failed = [entry for entry in result["results"] if not entry["result"]["success"]]

        return {
            "success": False,
            "results": results,
            "summary": f"Scraped {len(successful)}/{len(results)} pages successfully",
            "error": result.get("error"),
            "failedUrls": [entry["url"] for entry in failed],
        }

    @staticmethod
    def format_crawl_result(entry: Dict[str, Any]) -> Dict[str, Any]:
        """Flatten one crawl entry into {url, success, content | error}."""
        crawl = entry["result"]
        if crawl["success"]:
            return {"url": entry["url"], "success": True, "content": crawl["data"]}
        return {"url": entry["url"], "success": False, "error": crawl["error"]}

    @staticmethod
    def parse_arguments(raw_args: Any) -> Dict[str, Any]:
        """
        Normalize tool-call arguments, which may arrive as a mapping or a JSON string.

        Unparseable arguments become an empty mapping so that validation in
        execute() reports them back to the model.
        """
        if raw_args is None:
            return {}
        if isinstance(raw_args, str):
            try:
                parsed = json.loads(raw_args) if raw_args.strip() else {}
            except json.JSONDecodeError:
                app_logger.warning(f"Unparseable tool arguments: {raw_args[:200]}")
                return {}
            return parsed if isinstance(parsed, dict) else {}
        return dict(raw_args)

    @staticmethod
    async def execute(tool_name: str, args: Dict[str, Any]) -> Any:
        """
        Execute a tool call and return its result as data.

        Args:
            tool_name: Name of the tool requested by the model
            args: Arguments supplied by the model

        Returns:
            The tool result, or {"error": "..."} if the call could not be completed
        """
        app_logger.info(f"Tool call: {tool_name} {json.dumps(args)[:200]}")

        try:
            if tool_name == ToolName.SEARCH_WEB:
                parsed = SearchWebArgs.model_validate(args)
                return await ToolService.search_web(parsed.query)

            if tool_name == ToolName.SCRAPE_PAGES:
                parsed = ScrapePagesArgs.model_validate(args)
                return await ToolService.scrape_pages(parsed.urls)

        except ValidationError as e:
            app_logger.warning(f"Invalid arguments for {tool_name}: {e}")
            return {"error": f"Invalid arguments for {tool_name}: {e.errors(include_url=False)}"}
        except SearchError as e:
            app_logger.warning(f"searchWeb failed: {e}")
            return {"error": str(e)}
        except Exception as e:
            app_logger.error(f"Tool {tool_name} failed: {str(e)}")
            return {"error": f"{tool_name} failed: {str(e)}"}

        app_logger.warning(f"Model requested unknown tool: {tool_name}")
        return {"error": f"Unknown tool: {tool_name}"}
