"""Icon catalog data models"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

OUTCOME_PRODUCED = "produced"
OUTCOME_SKIPPED = "skipped"


@dataclass(frozen=True)
class IconDescriptor:
    """One rasterized variant written into a session namespace"""
    name: str
    width: int
    height: int
    mime_type: str
    rel: str
    internal_href: str  # Session-scoped, only valid while the session lives
    external_href: str  # Root-relative path for documents the user deploys

    @property
    def sizes(self) -> str:
        return f"{self.width}x{self.height}"

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "sizes": self.sizes,
            "width": self.width,
            "height": self.height,
            "type": self.mime_type,
            "rel": self.rel,
            "href": self.internal_href,
            "user_href": self.external_href,
        }


@dataclass(frozen=True)
class IconOutcome:
    """Result of rendering one catalog entry"""
    name: str
    status: str
    reason: Optional[str] = None

    @property
    def produced(self) -> bool:
        return self.status == OUTCOME_PRODUCED


@dataclass(frozen=True)
class IconCatalog:
    """All variants derived from one source image"""
    icons: List[IconDescriptor]
    social_preview: Optional[IconDescriptor]
    outcomes: List[IconOutcome]
    legacy_icon: Optional[IconDescriptor] = None
    web_manifest: Dict[str, Any] = field(default_factory=dict)
    browserconfig: str = ""
    source_info: Dict[str, Any] = field(default_factory=dict)

    @property
    def skipped(self) -> List[IconOutcome]:
        return [outcome for outcome in self.outcomes if not outcome.produced]

    def all_descriptors(self) -> List[IconDescriptor]:
        """Every file in the catalog, in catalog order"""
        descriptors = list(self.icons)
        if self.social_preview:
            descriptors.append(self.social_preview)
        if self.legacy_icon:
            descriptors.append(self.legacy_icon)
        return descriptors

    def to_dict(self) -> Dict[str, Any]:
        return {
            "icons": [icon.to_dict() for icon in self.icons],
            "og_image": self.social_preview.to_dict() if self.social_preview else None,
            "favicon_ico": self.legacy_icon.to_dict() if self.legacy_icon else None,
            "skipped": [
                {"name": outcome.name, "reason": outcome.reason} for outcome in self.skipped
            ],
            "web_manifest": self.web_manifest,
            "browserconfig": self.browserconfig,
            "source_info": self.source_info,
        }
