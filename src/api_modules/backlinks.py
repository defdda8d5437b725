"""Backlinks module - link profile of a domain, subdomain or page."""

from api_modules.base import BaseModule, LIMIT

TARGET = {
    "name": "target",
    "type": "string",
    "description": "Domain, subdomain or absolute URL",
}


class BacklinksModule(BaseModule):
    key = "BACKLINKS"
    description = "Backlink profiles and referring domains"

    def _define_tools(self) -> None:
        self._tool(
            "backlinks_summary",
            "Get an overview of the target's backlink profile.",
            "/v3/backlinks/summary/live",
            [
                TARGET,
                {
                    "name": "include_subdomains",
                    "type": "boolean",
                    "description": "Count links to subdomains of the target",
                    "default": True,
                },
            ],
        )

        self._tool(
            "backlinks_backlinks",
            "List backlinks pointing to the target.",
            "/v3/backlinks/backlinks/live",
            [
                TARGET,
                {
                    "name": "mode",
                    "type": "string",
                    "description": "Grouping of returned backlinks",
                    "enum": ["as_is", "one_per_domain", "one_per_anchor"],
                    "default": "as_is",
                },
                LIMIT,
            ],
        )

        self._tool(
            "backlinks_referring_domains",
            "List domains linking to the target with per-domain link counts.",
            "/v3/backlinks/referring_domains/live",
            [TARGET, LIMIT],
        )
