"""Business Data module - local business listings."""

from api_modules.base import BaseModule, LIMIT


class BusinessDataModule(BaseModule):
    key = "BUSINESS_DATA"
    description = "Business listings from Google Maps"

    def _define_tools(self) -> None:
        self._tool(
            "business_data_business_listings_search",
            "Search business listings by category, title or location.",
            "/v3/business_data/business_listings/search/live",
            [
                {
                    "name": "categories",
                    "type": "array",
                    "description": "Business categories, e.g. ['pizza_restaurant']",
                    "items": {"type": "string"},
                    "required": False,
                },
                {
                    "name": "title",
                    "type": "string",
                    "description": "Business name to search for",
                    "required": False,
                },
                {
                    "name": "location_coordinate",
                    "type": "string",
                    "description": "'latitude,longitude,radius_km', e.g. '53.476,-2.243,10'",
                    "required": False,
                },
                LIMIT,
            ],
        )
