"""DataForSEO API modules.

Each module contains:
- Tool definitions with input schemas
- The upstream endpoint each tool calls
- Payload shaping for that endpoint

Modules are instantiated per protocol-server instance, bound to that
instance's API client, and can be enabled or disabled by key.
"""

from typing import Optional

from shared.logging import get_logger
from api_modules.backlinks import BacklinksModule
from api_modules.base import BaseModule
from api_modules.business_data import BusinessDataModule
from api_modules.client import DataForSEOClient, DataForSEOError
from api_modules.domain_analytics import DomainAnalyticsModule
from api_modules.fields import FieldConfiguration
from api_modules.keywords_data import KeywordsDataModule
from api_modules.labs import LabsModule
from api_modules.onpage import OnPageModule
from api_modules.serp import SerpModule

logger = get_logger(__name__)

AVAILABLE_MODULES: dict[str, type[BaseModule]] = {
    module.key: module
    for module in (
        SerpModule,
        KeywordsDataModule,
        OnPageModule,
        LabsModule,
        BacklinksModule,
        BusinessDataModule,
        DomainAnalyticsModule,
    )
}


def enabled_module_keys(requested: Optional[list[str]] = None) -> list[str]:
    """
    Resolve which module keys are enabled.

    An empty or missing request enables every module. Unknown keys are
    ignored with a warning.
    """
    if not requested:
        return list(AVAILABLE_MODULES)

    keys = []
    for key in requested:
        if key in AVAILABLE_MODULES:
            keys.append(key)
        else:
            logger.warning("Unknown module ignored", module=key)
    return keys


def load_modules(
    client: DataForSEOClient,
    enabled: Optional[list[str]] = None,
    field_config: Optional[FieldConfiguration] = None,
) -> list[BaseModule]:
    """Instantiate the enabled modules against ``client``."""
    return [
        AVAILABLE_MODULES[key](client, field_config)
        for key in enabled_module_keys(enabled)
    ]


__all__ = [
    "AVAILABLE_MODULES",
    "BaseModule",
    "DataForSEOClient",
    "DataForSEOError",
    "FieldConfiguration",
    "enabled_module_keys",
    "load_modules",
]
