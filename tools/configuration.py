"""Configuration tools for the SEO Asset MCP Server"""

from mcp.server.fastmcp import FastMCP

from managers.settings_manager import SettingsManager
from models.config import GeneratorSettings


def register_configuration_tools(
    mcp: FastMCP,
    settings_manager: SettingsManager,
    settings: GeneratorSettings
):
    """Register configuration tools with the MCP server"""

    @mcp.tool()
    def get_generator_settings() -> dict:
        """Get the effective generator settings.

        Returns merged values from all sources (explicit, config file, env, hardcoded)
        with secrets redacted, plus the fixed icon catalog that every logo is
        rendered into.
        """
        return {
            "settings": settings_manager.get_all(redact_secrets=True),
            "config_file": str(settings_manager.config_file),
            "icon_catalog": [
                {"name": spec.name, "sizes": spec.sizes, "rel": spec.rel, "type": spec.mime_type}
                for spec in settings.rasterizer.icon_specs
            ],
            "ico_sizes": list(settings.rasterizer.ico_sizes),
            "allowed_upload_types": list(settings.upload.allowed_mime_types),
            "max_upload_bytes": settings.upload.max_bytes,
        }
