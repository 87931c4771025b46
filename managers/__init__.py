"""Manager classes for SEO Asset MCP Server"""

from managers.archive_packager import ArchivePackager
from managers.credit_ledger import CreditLedger
from managers.icon_manager import IconRasterizer
from managers.seo_composer import AssetComposer
from managers.seo_pipeline import SeoPipeline
from managers.session_store import SessionReaper, SessionStore
from managers.settings_manager import SettingsManager

__all__ = [
    "ArchivePackager",
    "AssetComposer",
    "CreditLedger",
    "IconRasterizer",
    "SeoPipeline",
    "SessionReaper",
    "SessionStore",
    "SettingsManager",
]
