"""Keywords Data module - search volume and trends."""

from api_modules.base import BaseModule, LANGUAGE_CODE, LOCATION_NAME


class KeywordsDataModule(BaseModule):
    """Google Ads search volume and Google Trends."""

    key = "KEYWORDS_DATA"
    description = "Keyword search volume and trend data"

    def _define_tools(self) -> None:
        self._tool(
            "keywords_data_google_ads_search_volume",
            "Get Google Ads search volume, competition and CPC for up to 1000 keywords.",
            "/v3/keywords_data/google_ads/search_volume/live",
            [
                {
                    "name": "keywords",
                    "type": "array",
                    "description": "Keywords to look up",
                    "items": {"type": "string"},
                    "minItems": 1,
                    "maxItems": 1000,
                },
                LOCATION_NAME,
                LANGUAGE_CODE,
            ],
        )

        self._tool(
            "keywords_data_google_trends_explore",
            "Get Google Trends popularity over time for up to 5 keywords.",
            "/v3/keywords_data/google_trends/explore/live",
            [
                {
                    "name": "keywords",
                    "type": "array",
                    "description": "Keywords to compare",
                    "items": {"type": "string"},
                    "minItems": 1,
                    "maxItems": 5,
                },
                LOCATION_NAME,
                {
                    "name": "time_range",
                    "type": "string",
                    "description": "Preset time range",
                    "enum": [
                        "past_hour", "past_4_hours", "past_day", "past_7_days",
                        "past_30_days", "past_90_days", "past_12_months", "past_5_years",
                    ],
                    "default": "past_12_months",
                },
                {
                    "name": "type",
                    "type": "string",
                    "description": "Google Trends search type",
                    "enum": ["web", "news", "youtube", "images", "froogle"],
                    "default": "web",
                },
            ],
        )
