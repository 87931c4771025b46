"""Icon rasterizer producing the fixed icon catalog for a session"""

import asyncio
import json
import logging
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Union

from PIL import Image

from icon_processor import (
    compose_social_preview,
    contain_square,
    encode_ico,
    encode_png,
    open_source_image,
    write_bytes_atomic,
)
from exceptions import GenerationError
from managers.session_store import build_internal_href
from models.config import REL_ICON, IconSpec, RasterizerConfig
from models.icon import (
    OUTCOME_PRODUCED,
    OUTCOME_SKIPPED,
    IconCatalog,
    IconDescriptor,
    IconOutcome,
)
from models.session import Session

logger = logging.getLogger("SEO_Server")

LEGACY_ICON_NAME = "favicon.ico"
WEB_MANIFEST_NAME = "site.webmanifest"
BROWSERCONFIG_NAME = "browserconfig.xml"
SHORT_NAME_LIMIT = 12


def _find(icons: List[IconDescriptor], name: str) -> Optional[IconDescriptor]:
    for icon in icons:
        if icon.name == name:
            return icon
    return None


def build_web_manifest(
    icons: List[IconDescriptor],
    theme_color: str = "#ffffff",
    background_color: str = "#ffffff",
    name: Optional[str] = None,
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Installable web app manifest referencing external icon paths only"""
    display_name = name or "Your Website"
    short_name = display_name[:SHORT_NAME_LIMIT].strip() if name else "YourSite"
    manifest_icons = [
        {
            "src": icon.external_href,
            "sizes": icon.sizes,
            "type": icon.mime_type,
            "purpose": "maskable any",
        }
        for icon in icons
        if icon.name.startswith("android-chrome-")
    ]
    return {
        "name": display_name,
        "short_name": short_name,
        "description": description or "Your website description",
        "start_url": "/",
        "display": "standalone",
        "theme_color": theme_color,
        "background_color": background_color,
        "orientation": "portrait-primary",
        "icons": manifest_icons,
    }


def build_browserconfig(icons: List[IconDescriptor], tile_color: str = "#ffffff") -> str:
    """Legacy Windows tile descriptor referencing external icon paths only"""
    lines = [
        '<?xml version="1.0" encoding="utf-8"?>',
        "<browserconfig>",
        "    <msapplication>",
        "        <tile>",
    ]
    small = _find(icons, "android-chrome-192x192.png")
    large = _find(icons, "android-chrome-512x512.png")
    if small:
        lines.append(f'            <square150x150logo src="{small.external_href}"/>')
    if large:
        lines.append(f'            <square310x310logo src="{large.external_href}"/>')
    lines.extend([
        f"            <TileColor>{tile_color}</TileColor>",
        "        </tile>",
        "    </msapplication>",
        "</browserconfig>",
    ])
    return "\n".join(lines)


class IconRasterizer:
    """Derives the icon catalog and companion descriptors from one source image"""

    def __init__(self, config: Optional[RasterizerConfig] = None, url_prefix: str = "/generated/sessions"):
        self.config = config or RasterizerConfig()
        self.url_prefix = url_prefix.rstrip("/")

    def _external_href(self, name: str) -> str:
        if name == LEGACY_ICON_NAME:
            # Root level for best compatibility
            return f"/{LEGACY_ICON_NAME}"
        return f"{self.config.external_prefix.rstrip('/')}/{name}"

    def _descriptor(self, session: Session, name: str, width: int, height: int, mime_type: str, rel: str) -> IconDescriptor:
        return IconDescriptor(
            name=name,
            width=width,
            height=height,
            mime_type=mime_type,
            rel=rel,
            internal_href=build_internal_href(self.url_prefix, session.session_id, f"icons/{name}"),
            external_href=self._external_href(name),
        )

    def _render_icon(
        self,
        session: Session,
        spec: IconSpec,
        render: Callable[[], Image.Image],
        outcomes: List[IconOutcome],
    ) -> Optional[IconDescriptor]:
        """Render and write one catalog entry, recording its outcome"""
        try:
            write_bytes_atomic(session.icons_dir / spec.name, encode_png(render()))
        except (OSError, ValueError) as e:
            logger.error(f"Error generating {spec.name}: {e}")
            outcomes.append(IconOutcome(spec.name, OUTCOME_SKIPPED, str(e)))
            return None
        outcomes.append(IconOutcome(spec.name, OUTCOME_PRODUCED))
        logger.debug(f"Generated: {spec.name}")
        return self._descriptor(session, spec.name, spec.width, spec.height, spec.mime_type, spec.rel)

    def generate_sync(
        self,
        source_path: Union[str, Path],
        session: Session,
        original_filename: Optional[str] = None,
        site_name: Optional[str] = None,
        site_description: Optional[str] = None,
    ) -> IconCatalog:
        """Render every catalog entry into session.icons_dir.

        Individual size failures are recorded as skipped outcomes. The legacy
        favicon.ico is best effort and never fails the catalog.

        Raises:
            GenerationError: If the source image cannot be opened or decoded
        """
        try:
            source, metadata = open_source_image(source_path)
        except (OSError, ValueError) as e:
            logger.error(f"Failed to decode source image {source_path}: {e}")
            raise GenerationError("Source image could not be decoded") from e

        logger.info(
            f"Processing source image: {metadata['width']}x{metadata['height']}, "
            f"format: {metadata['format']}"
        )
        icons_dir = session.icons_dir
        icons_dir.mkdir(parents=True, exist_ok=True)

        icons: List[IconDescriptor] = []
        outcomes: List[IconOutcome] = []

        for spec in self.config.square_specs:
            descriptor = self._render_icon(session, spec, lambda: contain_square(source, spec.width), outcomes)
            if descriptor:
                icons.append(descriptor)

        social_preview: Optional[IconDescriptor] = None
        social_spec = self.config.social_spec
        if social_spec:
            social_preview = self._render_icon(
                session,
                social_spec,
                lambda: compose_social_preview(
                    source,
                    social_spec.width,
                    social_spec.height,
                    logo_box=self.config.social_logo_box,
                    background=self.config.social_background,
                ),
                outcomes,
            )

        legacy_icon = None
        try:
            write_bytes_atomic(icons_dir / LEGACY_ICON_NAME, encode_ico(source, self.config.ico_sizes))
            largest = max(self.config.ico_sizes)
            legacy_icon = self._descriptor(session, LEGACY_ICON_NAME, largest, largest, "image/x-icon", REL_ICON)
            outcomes.append(IconOutcome(LEGACY_ICON_NAME, OUTCOME_PRODUCED))
        except (OSError, ValueError) as e:
            logger.warning(f"Error generating {LEGACY_ICON_NAME}: {e}")
            outcomes.append(IconOutcome(LEGACY_ICON_NAME, OUTCOME_SKIPPED, str(e)))

        web_manifest = build_web_manifest(
            icons,
            theme_color=self.config.theme_color,
            background_color=self.config.background_color,
            name=site_name,
            description=site_description,
        )
        browserconfig = build_browserconfig(icons, tile_color=self.config.theme_color)
        self._write_companion(session.path / WEB_MANIFEST_NAME, json.dumps(web_manifest, indent=2))
        self._write_companion(session.path / BROWSERCONFIG_NAME, browserconfig)

        return IconCatalog(
            icons=icons,
            social_preview=social_preview,
            outcomes=outcomes,
            legacy_icon=legacy_icon,
            web_manifest=web_manifest,
            browserconfig=browserconfig,
            source_info={
                "original_filename": original_filename or Path(source_path).name,
                "width": metadata["width"],
                "height": metadata["height"],
                "format": metadata["format"],
            },
        )

    def _write_companion(self, path: Path, content: str):
        try:
            write_bytes_atomic(path, content.encode("utf-8"))
            logger.debug(f"Generated: {path.name}")
        except OSError as e:
            logger.error(f"Error saving {path.name}: {e}")

    async def generate(
        self,
        source_path: Union[str, Path],
        session: Session,
        original_filename: Optional[str] = None,
        site_name: Optional[str] = None,
        site_description: Optional[str] = None,
    ) -> IconCatalog:
        """Async wrapper running the Pillow work in a worker thread"""
        return await asyncio.to_thread(
            self.generate_sync,
            source_path,
            session,
            original_filename,
            site_name,
            site_description,
        )
