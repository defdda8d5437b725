"""DataForSEO Labs module - keyword and competitor research."""

from api_modules.base import BaseModule, LANGUAGE_CODE, LIMIT, LOCATION_NAME

TARGET_DOMAIN = {
    "name": "target",
    "type": "string",
    "description": "Domain without scheme or www, e.g. 'example.com'",
}


class LabsModule(BaseModule):
    key = "DATAFORSEO_LABS"
    description = "Keyword research and competitor analytics from the Labs database"

    def _define_tools(self) -> None:
        self._tool(
            "dataforseo_labs_google_ranked_keywords",
            "List keywords a domain or page ranks for in Google, with positions and traffic estimates.",
            "/v3/dataforseo_labs/google/ranked_keywords/live",
            [TARGET_DOMAIN, LOCATION_NAME, LANGUAGE_CODE, LIMIT],
        )

        self._tool(
            "dataforseo_labs_google_keyword_ideas",
            "Suggest keywords in the same category as the seed keywords.",
            "/v3/dataforseo_labs/google/keyword_ideas/live",
            [
                {
                    "name": "keywords",
                    "type": "array",
                    "description": "Seed keywords",
                    "items": {"type": "string"},
                    "minItems": 1,
                    "maxItems": 200,
                },
                LOCATION_NAME,
                LANGUAGE_CODE,
                LIMIT,
            ],
        )

        self._tool(
            "dataforseo_labs_google_competitors_domain",
            "Find domains competing with the target in organic search.",
            "/v3/dataforseo_labs/google/competitors_domain/live",
            [TARGET_DOMAIN, LOCATION_NAME, LANGUAGE_CODE, LIMIT],
        )
