"""SEO asset generation tools"""

import logging
from typing import Optional

from mcp.server.fastmcp import FastMCP

from exceptions import SeoGeneratorError
from managers.seo_pipeline import SeoPipeline
from models.config import UploadConfig
from tools.helpers import error_response, validate_upload

logger = logging.getLogger("SEO_Server")


def register_generation_tools(
    mcp: FastMCP,
    pipeline: SeoPipeline,
    upload_config: UploadConfig
):
    """Register generation tools with the MCP server"""

    @mcp.tool()
    async def generate_seo_assets(
        title: str,
        description: str,
        site_url: str,
        site_links: str = "",
        image_path: Optional[str] = None,
        image_mime_type: Optional[str] = None,
        delete_source: bool = False,
    ) -> dict:
        """Generate a complete SEO asset bundle for a website.

        Produces meta tags, Open Graph and Twitter Card tags, JSON-LD structured
        data, a full HTML head template, robots.txt and sitemap.xml. When a logo
        image is supplied, also renders favicons, touch and Android icons, a
        1200x630 social preview image, a web manifest and browserconfig.xml.

        Args:
            title: Website title
            description: Website description
            site_url: Canonical website URL (e.g., "https://example.com")
            site_links: Optional newline-separated page URLs to include in the sitemap
            image_path: Optional path to a JPEG or PNG logo (max 5MB)
            image_mime_type: Optional MIME type of the logo; guessed from the extension if omitted
            delete_source: If True, delete the logo file after it has been processed

        Returns:
            Dict with session_id, every generated tag group and document, and
            icon_data (null when no image was supplied). Pass session_id to
            download_seo_assets to get a ZIP archive.
        """
        try:
            image = None
            if image_path:
                image = validate_upload(image_path, image_mime_type, upload_config)
            bundle = await pipeline.generate(
                title,
                description,
                site_url,
                site_links=site_links,
                image=image,
                delete_source=delete_source,
            )
        except SeoGeneratorError as e:
            logger.warning(f"generate_seo_assets failed: {e}")
            return error_response(e)
        except Exception as e:
            return error_response(e)

        return {"success": True, **bundle.to_dict()}
