"""Tests for the MCP tool layer and its helpers

Run with pytest from project root:
    pytest tests/test_tools.py -v
"""

import pytest

from exceptions import (
    GenerationError,
    InsufficientCreditsError,
    UpstreamError,
    ValidationError,
)
from managers.settings_manager import SettingsManager
from models.config import UploadConfig
from tools.configuration import register_configuration_tools
from tools.download import register_download_tools
from tools.enhancement import register_enhancement_tools
from tools.generation import register_generation_tools
from tools.helpers import error_response, validate_upload


class FakeMCP:
    """Collects functions registered through @mcp.tool()"""

    def __init__(self):
        self.tools = {}

    def tool(self, *args, **kwargs):
        def decorator(fn):
            self.tools[fn.__name__] = fn
            return fn
        return decorator


@pytest.fixture
def tools(pipeline, ledger, tmp_path):
    mcp = FakeMCP()
    manager = SettingsManager(config_file=tmp_path / "config.json", environ={"SEO_MCP_ENHANCE_API_KEY": "k"})
    settings = manager.load()
    register_generation_tools(mcp, pipeline, UploadConfig())
    register_download_tools(mcp, pipeline)
    register_enhancement_tools(mcp, pipeline, ledger)
    register_configuration_tools(mcp, manager, settings)
    return mcp.tools


class TestValidateUpload:
    """Tests for upload validation"""

    def test_valid_png(self, logo_path):
        """Test a PNG under the ceiling is accepted"""
        upload = validate_upload(logo_path)
        assert upload.mime_type == "image/png"
        assert upload.original_filename == "logo.png"
        assert upload.size_bytes == logo_path.stat().st_size

    def test_declared_type_must_be_allowed(self, logo_path):
        """Test disallowed declared types are rejected"""
        with pytest.raises(ValidationError):
            validate_upload(logo_path, "image/gif")

    def test_size_ceiling(self, logo_path):
        """Test files above the ceiling are rejected"""
        with pytest.raises(ValidationError):
            validate_upload(logo_path, config=UploadConfig(max_bytes=10))

    def test_missing_file(self, tmp_path):
        """Test a missing upload is a validation error"""
        with pytest.raises(ValidationError):
            validate_upload(tmp_path / "nope.png")


class TestErrorResponse:
    """Tests for translating exceptions into tool dicts"""

    def test_known_error_keeps_code(self):
        """Test taxonomy errors keep their message and code"""
        response = error_response(InsufficientCreditsError(1, 1, 0))
        assert response["error_code"] == "INSUFFICIENT_CREDITS"
        assert "need 1 credit(s) but have 0" in response["error"]

    def test_upstream_is_retryable(self):
        """Test upstream errors carry the retryable flag"""
        assert error_response(UpstreamError("down"))["retryable"] is True

    def test_unknown_error_is_generic(self):
        """Test internal error text is never returned"""
        response = error_response(KeyError("/var/secret/path"))
        assert "secret" not in response["error"]
        assert response["error_code"] == "INTERNAL_ERROR"

    def test_generation_error_code(self):
        """Test generation failures map to GENERATION_FAILED"""
        assert error_response(GenerationError("x"))["error_code"] == "GENERATION_FAILED"


class TestGenerationTools:
    """Tests for generate_seo_assets and download_seo_assets"""

    @pytest.mark.asyncio
    async def test_generate_and_download(self, tools, logo_path):
        """Test the happy path from generation to archive"""
        result = await tools["generate_seo_assets"](
            title="Example",
            description="An example.",
            site_url="https://example.com/",
            site_links="https://example.com/about",
            image_path=str(logo_path),
        )
        assert result["success"] is True
        assert result["website_url"] == "https://example.com"
        assert result["icon_data"]["og_image"]["user_href"] == "/icons/og-image.png"

        download = await tools["download_seo_assets"](session_id=result["session_id"])
        assert download["success"] is True
        assert download["filename"].startswith("seo-assets-")
        assert download["size_bytes"] > 0

        released = await tools["release_seo_archive"](archive_path=download["archive_path"])
        assert released == {"success": True}

    @pytest.mark.asyncio
    async def test_generate_validation_error(self, tools):
        """Test missing fields come back as VALIDATION_ERROR"""
        result = await tools["generate_seo_assets"](title="", description="d", site_url="https://example.com")
        assert result["error_code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_generate_rejects_bad_upload_type(self, tools, tmp_path):
        """Test a disallowed upload is rejected before generation"""
        gif = tmp_path / "logo.gif"
        gif.write_bytes(b"GIF89a")
        result = await tools["generate_seo_assets"](
            title="Example", description="d", site_url="https://example.com", image_path=str(gif)
        )
        assert result["error_code"] == "VALIDATION_ERROR"

    @pytest.mark.asyncio
    async def test_download_expired(self, tools):
        """Test an unknown session reports SESSION_EXPIRED"""
        result = await tools["download_seo_assets"](session_id="0" * 16)
        assert result["error_code"] == "SESSION_EXPIRED"


class TestEnhancementTools:
    """Tests for enhancement and account tools"""

    @pytest.mark.asyncio
    async def test_requires_account(self, tools, enhancer):
        """Test calls without a known user ask for authentication"""
        assert (await tools["enhance_description"](description="A site."))["error_code"] == (
            "AUTHENTICATION_REQUIRED"
        )
        assert (await tools["enhance_description"](description="A site.", user_id=999))["error_code"] == (
            "AUTHENTICATION_REQUIRED"
        )
        enhancer.enhance.assert_not_called()

    @pytest.mark.asyncio
    async def test_account_flow(self, tools, enhancer):
        """Test creating an account, enhancing and reading the balance"""
        created = await tools["create_account"](username="alice", email="alice@example.com")
        user_id = created["user"]["id"]
        enhancer.enhance.return_value = "Better."

        result = await tools["enhance_description"](description="A site.", user_id=user_id)
        assert result == {"success": True, "enhanced_description": "Better.", "credits_remaining": 9}

        account = await tools["get_account"](user_id=user_id)
        assert account["user"]["credits"] == 9
        assert account["usage_history"][0]["action"] == "AI Enhancement"

    @pytest.mark.asyncio
    async def test_insufficient_credits(self, tools, ledger, enhancer):
        """Test an empty balance reports INSUFFICIENT_CREDITS"""
        user = ledger.create_user("bob", "bob@example.com")
        ledger.debit_credits(user["id"], 10)
        result = await tools["suggest_extra_fields"](
            site_url="https://example.com", title="T", description="D", user_id=user["id"]
        )
        assert result["error_code"] == "INSUFFICIENT_CREDITS"
        enhancer.generate_extra_fields.assert_not_called()

    @pytest.mark.asyncio
    async def test_duplicate_account(self, tools):
        """Test duplicate usernames are a validation error"""
        await tools["create_account"](username="alice", email="alice@example.com")
        result = await tools["create_account"](username="alice", email="other@example.com")
        assert result["error_code"] == "VALIDATION_ERROR"


class TestConfigurationTools:
    """Tests for get_generator_settings"""

    def test_settings_are_redacted(self, tools):
        """Test secrets are hidden and the catalog is listed"""
        result = tools["get_generator_settings"]()
        assert result["settings"]["enhance_api_key"] == "***"
        assert len(result["icon_catalog"]) == 14
        assert result["ico_sizes"] == [16, 32, 48]
