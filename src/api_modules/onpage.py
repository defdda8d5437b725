"""OnPage module - page crawling, content parsing and Lighthouse audits."""

from api_modules.base import BaseModule

URL = {"name": "url", "type": "string", "description": "Absolute URL of the page"}
ENABLE_JAVASCRIPT = {
    "name": "enable_javascript",
    "type": "boolean",
    "description": "Execute JavaScript when loading the page",
    "default": False,
}


class OnPageModule(BaseModule):
    key = "ONPAGE"
    description = "On-page SEO analysis of individual URLs"

    def _define_tools(self) -> None:
        self._tool(
            "on_page_instant_pages",
            "Crawl a single page and return its on-page SEO checks and meta data.",
            "/v3/on_page/instant_pages",
            [
                URL,
                ENABLE_JAVASCRIPT,
                {
                    "name": "custom_user_agent",
                    "type": "string",
                    "description": "User agent used for the crawl",
                    "required": False,
                },
            ],
        )

        self._tool(
            "on_page_content_parsing",
            "Parse the structured content (headings, text, links) of a page.",
            "/v3/on_page/content_parsing/live",
            [URL, ENABLE_JAVASCRIPT],
        )

        self._tool(
            "on_page_lighthouse",
            "Run a Google Lighthouse audit against a page.",
            "/v3/on_page/lighthouse/live/json",
            [
                URL,
                {
                    "name": "for_mobile",
                    "type": "boolean",
                    "description": "Audit with a mobile device profile",
                    "default": False,
                },
                {
                    "name": "categories",
                    "type": "array",
                    "description": "Lighthouse categories to run",
                    "items": {
                        "type": "string",
                        "enum": ["seo", "performance", "best_practices", "accessibility"],
                    },
                    "required": False,
                },
            ],
        )
