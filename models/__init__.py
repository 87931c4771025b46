"""Data models for the SEO Asset MCP Server"""

from models.bundle import SiteAssetBundle, SiteFields
from models.icon import IconCatalog, IconDescriptor, IconOutcome
from models.session import Session

__all__ = [
    "IconCatalog",
    "IconDescriptor",
    "IconOutcome",
    "Session",
    "SiteAssetBundle",
    "SiteFields",
]
