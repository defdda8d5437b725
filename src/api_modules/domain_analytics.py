"""Domain Analytics module - WHOIS and technology detection."""

from api_modules.base import BaseModule, LIMIT


class DomainAnalyticsModule(BaseModule):
    key = "DOMAIN_ANALYTICS"
    description = "WHOIS records and technology stacks of domains"

    def _define_tools(self) -> None:
        self._tool(
            "domain_analytics_whois_overview",
            "Get WHOIS data enriched with ranking and traffic metrics.",
            "/v3/domain_analytics/whois/overview/live",
            [
                LIMIT,
                {
                    "name": "offset",
                    "type": "integer",
                    "description": "Offset in the results list",
                    "default": 0,
                    "minimum": 0,
                },
                {
                    "name": "filters",
                    "type": "array",
                    "description": "DataForSEO filter expression, e.g. ['domain', 'like', '%seo%']",
                    "required": False,
                },
            ],
        )

        self._tool(
            "domain_analytics_technologies_domain_technologies",
            "Detect the technologies used by a domain.",
            "/v3/domain_analytics/technologies/domain_technologies/live",
            [
                {
                    "name": "target",
                    "type": "string",
                    "description": "Domain without scheme or www",
                },
            ],
        )
