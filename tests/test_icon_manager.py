"""Tests for icon rasterization and companion descriptors

Run with pytest from project root:
    pytest tests/test_icon_manager.py -v
"""

import json
from unittest.mock import patch

import pytest
from PIL import Image

from exceptions import ConfigurationError, GenerationError
from icon_processor import compose_social_preview, contain_square, encode_png as real_encode_png
from managers.icon_manager import (
    BROWSERCONFIG_NAME,
    LEGACY_ICON_NAME,
    WEB_MANIFEST_NAME,
    IconRasterizer,
)
from models.config import DEFAULT_ICON_SPECS, IconSpec, RasterizerConfig


class TestImageHelpers:
    """Tests for the Pillow helpers"""

    def test_contain_square_pads_transparently(self):
        """Test a wide logo is letterboxed without cropping"""
        logo = Image.new("RGBA", (200, 100), (0, 0, 255, 255))
        square = contain_square(logo, 64)
        assert square.size == (64, 64)
        assert square.getpixel((0, 0))[3] == 0
        assert square.getpixel((32, 32)) == (0, 0, 255, 255)

    def test_social_preview_is_opaque_and_centered(self):
        """Test the preview keeps the logo bounded on an opaque canvas"""
        logo = Image.new("RGBA", (1000, 500), (0, 128, 0, 255))
        preview = compose_social_preview(logo, 1200, 630, logo_box=400)
        assert preview.size == (1200, 630)
        assert preview.mode == "RGB"
        assert preview.getpixel((0, 0)) == (255, 255, 255)
        assert preview.getpixel((600, 315)) == (0, 128, 0)
        # 400x200 logo centered: columns 400..799 are logo, 399 is background
        assert preview.getpixel((399, 315)) == (255, 255, 255)


class TestIconRasterizer:
    """Tests for IconRasterizer.generate_sync"""

    def test_full_catalog(self, rasterizer, session_store, logo_path):
        """Test every configured variant is produced at its exact size"""
        session = session_store.allocate()
        catalog = rasterizer.generate_sync(logo_path, session, site_name="Example", site_description="Desc")

        assert len(catalog.icons) == 13
        assert catalog.social_preview.name == "og-image.png"
        assert catalog.skipped == []
        for spec in DEFAULT_ICON_SPECS:
            with Image.open(session.icons_dir / spec.name) as rendered:
                assert rendered.size == (spec.width, spec.height)

    def test_catalog_paths(self, rasterizer, session_store, logo_path):
        """Test external paths omit the session id and internal paths include it"""
        session = session_store.allocate()
        catalog = rasterizer.generate_sync(logo_path, session)

        for descriptor in catalog.all_descriptors():
            assert session.session_id not in descriptor.external_href
            assert session.session_id in descriptor.internal_href
        assert catalog.icons[0].external_href == "/icons/favicon-16x16.png"
        assert catalog.icons[0].internal_href == (
            f"/generated/sessions/{session.session_id}/icons/favicon-16x16.png"
        )
        assert catalog.legacy_icon.external_href == "/favicon.ico"

    def test_internal_paths_resolve_through_store(self, rasterizer, session_store, logo_path):
        """Test every internal path matches the store and resolves to the written file"""
        session = session_store.allocate()
        catalog = rasterizer.generate_sync(logo_path, session)

        for descriptor in catalog.all_descriptors():
            assert descriptor.internal_href == session_store.internal_href(
                session.session_id, f"icons/{descriptor.name}"
            )
            assert session_store.resolve_internal_path(descriptor.internal_href) == (
                session.icons_dir / descriptor.name
            ).resolve()

    def test_catalog_without_social_preview(self, session_store, logo_path):
        """Test a catalog with only square icons has no social preview"""
        config = RasterizerConfig(icon_specs=(IconSpec(name="favicon-32x32.png", width=32, height=32),))
        catalog = IconRasterizer(config).generate_sync(logo_path, session_store.allocate())
        assert catalog.social_preview is None
        assert [icon.name for icon in catalog.icons] == ["favicon-32x32.png"]
        assert config.square_specs == config.icon_specs
        assert config.social_spec is None

    def test_legacy_icon_written(self, rasterizer, session_store, logo_path):
        """Test favicon.ico is produced as a multi-size ICO"""
        session = session_store.allocate()
        catalog = rasterizer.generate_sync(logo_path, session)
        assert catalog.legacy_icon is not None
        with Image.open(session.icons_dir / LEGACY_ICON_NAME) as ico:
            assert ico.format == "ICO"

    def test_legacy_icon_failure_is_non_fatal(self, rasterizer, session_store, logo_path):
        """Test an ICO failure is recorded as skipped and the catalog survives"""
        session = session_store.allocate()
        with patch("managers.icon_manager.encode_ico", side_effect=OSError("encoder missing")):
            catalog = rasterizer.generate_sync(logo_path, session)

        assert catalog.legacy_icon is None
        assert [outcome.name for outcome in catalog.skipped] == [LEGACY_ICON_NAME]
        assert catalog.skipped[0].reason == "encoder missing"
        assert len(catalog.icons) == 13

    def test_single_size_failure_is_skipped(self, rasterizer, session_store, logo_path):
        """Test one failing size is skipped without aborting the rest"""
        session = session_store.allocate()

        def flaky_encode(image):
            if image.size == (24, 24):
                raise OSError("bad size")
            return real_encode_png(image)

        with patch("managers.icon_manager.encode_png", side_effect=flaky_encode):
            catalog = rasterizer.generate_sync(logo_path, session)

        names = [icon.name for icon in catalog.icons]
        assert "favicon-24x24.png" not in names
        assert len(names) == 12
        assert [outcome.name for outcome in catalog.skipped] == ["favicon-24x24.png"]
        assert not (session.icons_dir / "favicon-24x24.png").exists()

    def test_undecodable_source_raises(self, rasterizer, session_store, tmp_path):
        """Test a corrupt source aborts with GenerationError"""
        broken = tmp_path / "broken.png"
        broken.write_bytes(b"definitely not an image")
        session = session_store.allocate()
        with pytest.raises(GenerationError):
            rasterizer.generate_sync(broken, session)

    def test_jpeg_source(self, rasterizer, session_store, tmp_path, logo_factory):
        """Test JPEG uploads are decoded and reported in source_info"""
        jpeg = logo_factory(tmp_path / "logo.jpg", size=(120, 120), fmt="JPEG")
        session = session_store.allocate()
        catalog = rasterizer.generate_sync(jpeg, session, original_filename="brand.jpg")
        assert catalog.source_info == {
            "original_filename": "brand.jpg",
            "width": 120,
            "height": 120,
            "format": "JPEG",
        }

    def test_companion_descriptors(self, rasterizer, session_store, logo_path):
        """Test manifest and browserconfig use only external icon paths"""
        session = session_store.allocate()
        catalog = rasterizer.generate_sync(
            logo_path, session, site_name="A Very Long Site Name", site_description="Desc"
        )

        manifest = json.loads((session.path / WEB_MANIFEST_NAME).read_text(encoding="utf-8"))
        assert manifest == catalog.web_manifest
        assert manifest["name"] == "A Very Long Site Name"
        assert len(manifest["short_name"]) <= 12
        assert [icon["src"] for icon in manifest["icons"]] == [
            "/icons/android-chrome-192x192.png",
            "/icons/android-chrome-512x512.png",
        ]

        browserconfig = (session.path / BROWSERCONFIG_NAME).read_text(encoding="utf-8")
        assert browserconfig == catalog.browserconfig
        assert 'src="/icons/android-chrome-192x192.png"' in browserconfig
        assert session.session_id not in browserconfig

    @pytest.mark.asyncio
    async def test_generate_async(self, rasterizer, session_store, logo_path):
        """Test the async wrapper returns the same catalog shape"""
        session = session_store.allocate()
        catalog = await rasterizer.generate(logo_path, session)
        assert len(catalog.outcomes) == len(DEFAULT_ICON_SPECS) + 1


class TestRasterizerConfig:
    """Tests for typed configuration validation"""

    def test_duplicate_names_rejected(self):
        """Test duplicate icon names are a configuration error"""
        spec = IconSpec(name="favicon-16x16.png", width=16, height=16)
        with pytest.raises(ConfigurationError):
            RasterizerConfig(icon_specs=(spec, spec))

    def test_non_square_icon_rejected(self):
        """Test square icons must have equal sides"""
        with pytest.raises(ConfigurationError):
            IconSpec(name="odd.png", width=16, height=32)

    def test_bad_colour_rejected(self):
        """Test colours must be #rrggbb"""
        with pytest.raises(ConfigurationError):
            RasterizerConfig(theme_color="white")
