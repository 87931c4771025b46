"""Download tools packaging a session into a ZIP archive"""

import logging

from mcp.server.fastmcp import FastMCP

from exceptions import SeoGeneratorError
from managers.seo_pipeline import SeoPipeline
from tools.helpers import error_response

logger = logging.getLogger("SEO_Server")


def register_download_tools(mcp: FastMCP, pipeline: SeoPipeline):
    """Register download tools with the MCP server"""

    @mcp.tool()
    async def download_seo_assets(session_id: str) -> dict:
        """Package every asset of a generation session into a ZIP archive.

        The archive holds html/, config/ and icons/ folders, each file with a
        matching -guide.txt, plus README.md and IMPLEMENTATION-GUIDE.md. Sessions
        expire two hours after generation.

        Args:
            session_id: The session_id returned by generate_seo_assets

        Returns:
            Dict with archive_path, filename and size_bytes, or an error with
            error_code SESSION_EXPIRED when the session is gone.
        """
        try:
            archive_path = await pipeline.package_for_download(session_id)
        except SeoGeneratorError as e:
            logger.warning(f"download_seo_assets failed for {session_id}: {e}")
            return error_response(e)
        except Exception as e:
            return error_response(e, "Failed to create download package")

        return {
            "success": True,
            "session_id": session_id,
            "archive_path": str(archive_path),
            "filename": archive_path.name,
            "size_bytes": archive_path.stat().st_size,
        }

    @mcp.tool()
    async def release_seo_archive(archive_path: str) -> dict:
        """Delete a previously downloaded archive from the session's temp folder.

        Args:
            archive_path: The archive_path returned by download_seo_assets
        """
        try:
            await pipeline.release_download(archive_path)
        except SeoGeneratorError as e:
            return error_response(e)
        return {"success": True}
