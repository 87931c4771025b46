"""Archive packager bundling one session's artifacts into a downloadable zip"""

import asyncio
import json
import logging
import zipfile
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional, Tuple, Union

from exceptions import PackagingError, SessionExpiredError
from managers.archive_guides import (
    CONFIG_GUIDES,
    HTML_GUIDES,
    ICONS_GUIDE,
    guide_name,
    render_implementation_guide,
    render_readme,
)
from managers.icon_manager import BROWSERCONFIG_NAME, WEB_MANIFEST_NAME
from managers.session_store import SessionStore
from models.bundle import SiteAssetBundle
from models.session import Session

logger = logging.getLogger("SEO_Server")

HTML_ARTIFACTS = (
    "complete.html",
    "meta-tags.html",
    "opengraph-tags.html",
    "twitter-tags.html",
    "structured-data.json",
)
CONFIG_ARTIFACTS = ("robots.txt", "sitemap.xml", WEB_MANIFEST_NAME, BROWSERCONFIG_NAME)


def site_identity(structured_data: str) -> Tuple[str, str]:
    """Site name and canonical URL read back from the persisted JSON-LD record"""
    start, end = structured_data.find("{"), structured_data.rfind("}")
    try:
        record = json.loads(structured_data[start:end + 1]) if start != -1 else {}
    except json.JSONDecodeError:
        record = {}
    if not isinstance(record, dict):
        record = {}
    title = record.get("name") or "Your Website"
    site_url = str(record.get("url") or "").rstrip("/")
    return title, site_url


def generate_archive_filename(now: Optional[datetime] = None) -> str:
    """seo-assets-<YYYY-MM-DD_HH-MM-SS>.zip"""
    return f"seo-assets-{(now or datetime.now()).strftime('%Y-%m-%d_%H-%M-%S')}.zip"


@dataclass(frozen=True)
class ArtifactSource:
    """Named blob with optional on-disk backing"""
    archive_name: str
    content: Optional[bytes] = None
    path: Optional[Path] = None

    def read(self) -> bytes:
        if self.content is not None:
            return self.content
        if self.path is None:
            raise ValueError(f"Artifact {self.archive_name} has neither content nor path")
        return self.path.read_bytes()

    def read_text(self) -> str:
        return self.read().decode("utf-8")

    @classmethod
    def from_text(cls, archive_name: str, text: str, path: Optional[Path] = None) -> "ArtifactSource":
        return cls(archive_name=archive_name, content=text.encode("utf-8"), path=path)


class ArchivePackager:
    """Packages a bundle (or a session's persisted files) as a zip archive"""

    def __init__(self, session_store: SessionStore, compression_level: int = 9):
        self.session_store = session_store
        self.compression_level = compression_level

    def _text_sources(self, session: Session, bundle: Optional[SiteAssetBundle]) -> dict:
        """Filename -> ArtifactSource for every text artifact available"""
        sources = {}
        in_memory = bundle.text_artifacts() if bundle else {}
        catalog = bundle.icon_catalog if bundle else None
        if catalog:
            in_memory[WEB_MANIFEST_NAME] = json.dumps(catalog.web_manifest, indent=2)
            in_memory[BROWSERCONFIG_NAME] = catalog.browserconfig

        for filename in HTML_ARTIFACTS + CONFIG_ARTIFACTS:
            disk_path = session.path / filename
            if filename in in_memory:
                sources[filename] = ArtifactSource.from_text(filename, in_memory[filename], disk_path)
            elif disk_path.is_file():
                sources[filename] = ArtifactSource(archive_name=filename, path=disk_path)
        return sources

    def _icon_sources(self, session: Session, bundle: Optional[SiteAssetBundle]) -> List[ArtifactSource]:
        if bundle is not None:
            if not bundle.icon_catalog:
                return []
            names = [descriptor.name for descriptor in bundle.icon_catalog.all_descriptors()]
        elif session.icons_dir.is_dir():
            names = sorted(
                path.name for path in session.icons_dir.iterdir()
                if path.is_file() and not path.name.endswith(".tmp")
            )
        else:
            names = []

        sources = []
        for name in names:
            path = session.icons_dir / name
            if path.is_file():
                sources.append(ArtifactSource(archive_name=f"icons/{name}", path=path))
            else:
                logger.warning(f"Icon {name} missing from session {session.session_id}, omitting")
        return sources

    def collect_artifacts(self, session: Session, bundle: Optional[SiteAssetBundle] = None) -> List[ArtifactSource]:
        """Everything that goes into the archive, guides included"""
        text_sources = self._text_sources(session, bundle)
        icon_sources = self._icon_sources(session, bundle)
        artifacts: List[ArtifactSource] = []

        html_files = [name for name in HTML_ARTIFACTS if name in text_sources]
        config_files = [name for name in CONFIG_ARTIFACTS if name in text_sources]

        for filename in html_files:
            source = text_sources[filename]
            artifacts.append(ArtifactSource(f"html/{filename}", source.content, source.path))
            artifacts.append(ArtifactSource.from_text(f"html/{guide_name(filename)}", HTML_GUIDES[filename]))

        for filename in config_files:
            source = text_sources[filename]
            artifacts.append(ArtifactSource(f"config/{filename}", source.content, source.path))
            artifacts.append(ArtifactSource.from_text(f"config/{guide_name(filename)}", CONFIG_GUIDES[filename]))

        if icon_sources:
            artifacts.extend(icon_sources)
            artifacts.append(ArtifactSource.from_text("icons/ICONS-GUIDE.txt", ICONS_GUIDE))

        def text_of(filename: str) -> str:
            source = text_sources.get(filename)
            return source.read_text() if source else ""

        if bundle:
            title, site_url = bundle.title, bundle.site_url
        else:
            title, site_url = site_identity(text_of("structured-data.json"))
        artifacts.append(ArtifactSource.from_text("README.md", render_readme(
            title,
            site_url,
            html_files,
            config_files,
            [source.archive_name.split("/", 1)[1] for source in icon_sources],
        )))
        artifacts.append(ArtifactSource.from_text("IMPLEMENTATION-GUIDE.md", render_implementation_guide(
            meta_tags=text_of("meta-tags.html"),
            open_graph_tags=text_of("opengraph-tags.html"),
            twitter_tags=text_of("twitter-tags.html"),
            structured_data=text_of("structured-data.json"),
            has_icons=bool(icon_sources),
            has_manifest=WEB_MANIFEST_NAME in text_sources,
        )))
        return artifacts

    def _resolve(self, bundle_or_session_id: Union[SiteAssetBundle, str]):
        if isinstance(bundle_or_session_id, SiteAssetBundle):
            bundle = bundle_or_session_id
            return self.session_store.get(bundle.session_id), bundle
        return self.session_store.get(bundle_or_session_id), None

    def _unique_output_path(self, session: Session) -> Path:
        session.temp_dir.mkdir(parents=True, exist_ok=True)
        filename = generate_archive_filename()
        output_path = session.temp_dir / filename
        counter = 2
        while output_path.exists():
            output_path = session.temp_dir / filename.replace(".zip", f"-{counter}.zip")
            counter += 1
        return output_path

    def package_sync(
        self,
        bundle_or_session_id: Union[SiteAssetBundle, str],
        output_path: Optional[Path] = None,
    ) -> Path:
        """Write the archive and return its path.

        The zip is written to a temporary name and renamed only after it is
        complete, so a failed write never leaves a truncated archive behind.

        Raises:
            SessionExpiredError: If the session namespace no longer exists
            PackagingError: If any artifact cannot be read or the archive cannot be written
        """
        session, bundle = self._resolve(bundle_or_session_id)
        output_path = Path(output_path) if output_path else self._unique_output_path(session)
        temp_path = output_path.with_suffix(output_path.suffix + ".tmp")

        try:
            artifacts = self.collect_artifacts(session, bundle)
            with zipfile.ZipFile(
                temp_path, "w", compression=zipfile.ZIP_DEFLATED, compresslevel=self.compression_level
            ) as archive:
                for artifact in artifacts:
                    archive.writestr(artifact.archive_name, artifact.read())
            temp_path.replace(output_path)
        except SessionExpiredError:
            raise
        except (OSError, ValueError, zipfile.BadZipFile) as e:
            if temp_path.exists():
                try:
                    temp_path.unlink()
                except OSError:
                    logger.warning(f"Could not remove partial archive {temp_path}")
            if not session.path.exists():
                raise SessionExpiredError(session.session_id) from e
            logger.error(f"Failed to package session {session.session_id}: {e}")
            raise PackagingError("Failed to create download package") from e

        logger.info(f"ZIP archive created: {output_path.stat().st_size} total bytes ({len(artifacts)} entries)")
        return output_path

    async def package(
        self,
        bundle_or_session_id: Union[SiteAssetBundle, str],
        output_path: Optional[Path] = None,
    ) -> Path:
        return await asyncio.to_thread(self.package_sync, bundle_or_session_id, output_path)
