"""Shared fixtures for the SEO asset generator tests"""

from pathlib import Path
from unittest.mock import Mock

import pytest
from PIL import Image

from enhancement_client import EnhancementClient
from managers.archive_packager import ArchivePackager
from managers.credit_ledger import CreditLedger
from managers.icon_manager import IconRasterizer
from managers.seo_composer import AssetComposer
from managers.seo_pipeline import SeoPipeline
from managers.session_store import SessionStore
from models.config import LedgerConfig, SessionStoreConfig


def make_logo(path: Path, size=(300, 150), color=(200, 30, 30, 255), fmt="PNG") -> Path:
    """Write a solid, non-square logo"""
    mode = "RGBA" if fmt == "PNG" else "RGB"
    image = Image.new(mode, size, color if mode == "RGBA" else color[:3])
    image.save(path, format=fmt)
    return path


@pytest.fixture
def logo_factory():
    return make_logo


@pytest.fixture
def logo_path(tmp_path):
    return make_logo(tmp_path / "logo.png")


@pytest.fixture
def session_store(tmp_path):
    return SessionStore(SessionStoreConfig(output_root=tmp_path / "generated"))


@pytest.fixture
def rasterizer():
    return IconRasterizer()


@pytest.fixture
def composer():
    return AssetComposer()


@pytest.fixture
def ledger(tmp_path):
    ledger = CreditLedger(LedgerConfig(database_path=tmp_path / "data" / "users.db"))
    yield ledger
    ledger.close()


@pytest.fixture
def enhancer():
    return Mock(spec=EnhancementClient)


@pytest.fixture
def pipeline(session_store, rasterizer, composer, ledger, enhancer):
    return SeoPipeline(
        session_store=session_store,
        rasterizer=rasterizer,
        composer=composer,
        packager=ArchivePackager(session_store),
        ledger=ledger,
        enhancer=enhancer,
    )
