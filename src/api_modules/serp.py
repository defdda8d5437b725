"""SERP module - live search engine result pages."""

from typing import Any

from shared.models import HttpMethod, ToolDefinition
from api_modules.base import BaseModule, LANGUAGE_CODE, LOCATION_NAME

SEARCH_ENGINE = {
    "name": "search_engine",
    "type": "string",
    "description": "Search engine to query",
    "enum": ["google", "bing", "yahoo"],
    "default": "google",
}
DEVICE = {
    "name": "device",
    "type": "string",
    "description": "Device type used for the search",
    "enum": ["desktop", "mobile"],
    "default": "desktop",
}


class SerpModule(BaseModule):
    """Organic SERP results and supported locations."""

    key = "SERP"
    description = "Real-time search engine result pages"

    def _define_tools(self) -> None:
        self._tool(
            "serp_organic_live_advanced",
            "Get organic search results for a keyword in the specified search engine, "
            "location and language, including rich result elements.",
            "/v3/serp/{search_engine}/organic/live/advanced",
            [
                SEARCH_ENGINE,
                {"name": "keyword", "type": "string", "description": "Search keyword"},
                LOCATION_NAME,
                LANGUAGE_CODE,
                {
                    "name": "depth",
                    "type": "integer",
                    "description": "Number of results to fetch",
                    "default": 10,
                    "minimum": 1,
                    "maximum": 700,
                },
                DEVICE,
            ],
        )

        self._tool(
            "serp_locations",
            "List locations supported by the search engine, optionally narrowed to a "
            "country or to names containing a search string.",
            "/v3/serp/{search_engine}/locations",
            [
                SEARCH_ENGINE,
                {
                    "name": "country_iso_code",
                    "type": "string",
                    "description": "ISO 3166-1 alpha-2 country code, e.g. 'US'",
                    "required": False,
                },
                {
                    "name": "location_name",
                    "type": "string",
                    "description": "Case-insensitive substring of the location name",
                    "required": False,
                },
            ],
            method=HttpMethod.GET,
        )

        self._tool(
            "serp_youtube_organic_live_advanced",
            "Get YouTube organic search results for a keyword.",
            "/v3/serp/youtube/organic/live/advanced",
            [
                {"name": "keyword", "type": "string", "description": "Search keyword"},
                LOCATION_NAME,
                LANGUAGE_CODE,
                {
                    "name": "block_depth",
                    "type": "integer",
                    "description": "Number of result blocks to fetch",
                    "default": 20,
                    "minimum": 1,
                    "maximum": 700,
                },
                DEVICE,
            ],
        )

    def build_path(self, tool: ToolDefinition, arguments: dict[str, Any]) -> str:
        search_engine = arguments.get("search_engine", "google")
        path = tool.endpoint.format(search_engine=search_engine)
        if tool.name == "serp_locations" and arguments.get("country_iso_code"):
            path = f"{path}/{arguments['country_iso_code'].lower()}"
        return path

    def build_task(self, tool: ToolDefinition, arguments: dict[str, Any]) -> dict[str, Any]:
        task = super().build_task(tool, arguments)
        task.pop("search_engine", None)
        return task

    def postprocess(self, tool: ToolDefinition, arguments: dict[str, Any], result: Any) -> Any:
        needle = arguments.get("location_name")
        if tool.name != "serp_locations" or not needle or not isinstance(result, list):
            return result
        needle = needle.lower()
        return [
            location for location in result
            if needle in str(location.get("location_name", "")).lower()
        ]
