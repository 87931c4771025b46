import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator

from mcp.server.fastmcp import FastMCP

from enhancement_client import EnhancementClient
from managers.archive_packager import ArchivePackager
from managers.credit_ledger import CreditLedger
from managers.icon_manager import IconRasterizer
from managers.seo_composer import AssetComposer
from managers.seo_pipeline import SeoPipeline
from managers.session_store import SessionReaper, SessionStore
from managers.settings_manager import SettingsManager
from tools.configuration import register_configuration_tools
from tools.download import register_download_tools
from tools.enhancement import register_enhancement_tools
from tools.generation import register_generation_tools

# Configure logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger("SEO_Server")

settings_manager = SettingsManager()
settings = settings_manager.load()
logging.getLogger().setLevel(settings.log_level)

session_store = SessionStore(settings.sessions)
ledger = CreditLedger(settings.ledger)
enhancer = EnhancementClient(settings.enhancement)
pipeline = SeoPipeline(
    session_store=session_store,
    rasterizer=IconRasterizer(settings.rasterizer, url_prefix=settings.sessions.url_prefix),
    composer=AssetComposer(theme_color=settings.rasterizer.theme_color),
    packager=ArchivePackager(session_store),
    ledger=ledger,
    enhancer=enhancer,
    credits_per_call=settings.enhancement.credits_per_call,
)
reaper = SessionReaper(session_store)


@dataclass
class AppContext:
    pipeline: SeoPipeline
    ledger: CreditLedger
    reaper: SessionReaper


@asynccontextmanager
async def app_lifespan(server: FastMCP) -> AsyncIterator[AppContext]:
    """Manage application lifecycle"""
    logger.info("Starting MCP server lifecycle...")
    if not enhancer.configured:
        logger.warning("No enhancement API key configured; enhancement tools will report UPSTREAM_ERROR")
    reaper.start()
    try:
        yield AppContext(pipeline=pipeline, ledger=ledger, reaper=reaper)
    finally:
        await reaper.stop()
        ledger.close()
        logger.info("Shutting down MCP server")


# Initialize FastMCP with lifespan
mcp = FastMCP("SEO_Asset_MCP_Server", lifespan=app_lifespan)

register_generation_tools(mcp, pipeline, settings.upload)
register_download_tools(mcp, pipeline)
register_enhancement_tools(mcp, pipeline, ledger)
register_configuration_tools(mcp, settings_manager, settings)

if __name__ == "__main__":
    mcp.run(transport="streamable-http")
