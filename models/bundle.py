"""Site asset bundle data models"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from models.icon import IconCatalog


@dataclass(frozen=True)
class SiteFields:
    """Raw text fields supplied by the caller"""
    title: str
    description: str
    site_url: str


@dataclass(frozen=True)
class SiteAssetBundle:
    """Full output of one generation"""
    title: str
    description: str
    site_url: str
    site_links: List[str]
    meta_tags: List[str]
    open_graph_tags: List[str]
    twitter_tags: List[str]
    structured_data: str
    html_document: str
    robots_txt: str
    sitemap_xml: str
    session_id: str
    generated_at: datetime
    icon_catalog: Optional[IconCatalog] = None
    artifact_failures: List[str] = field(default_factory=list)

    def text_artifacts(self) -> Dict[str, str]:
        """Persisted filename -> content for every text artifact"""
        return {
            "complete.html": self.html_document,
            "meta-tags.html": "\n".join(self.meta_tags),
            "opengraph-tags.html": "\n".join(self.open_graph_tags),
            "twitter-tags.html": "\n".join(self.twitter_tags),
            "structured-data.json": self.structured_data,
            "robots.txt": self.robots_txt,
            "sitemap.xml": self.sitemap_xml,
        }

    def to_dict(self) -> Dict[str, Any]:
        return {
            "session_id": self.session_id,
            "timestamp": self.generated_at.isoformat(),
            "title": self.title,
            "description": self.description,
            "website_url": self.site_url,
            "site_links": list(self.site_links),
            "meta_tags": list(self.meta_tags),
            "open_graph_tags": list(self.open_graph_tags),
            "twitter_tags": list(self.twitter_tags),
            "structured_data": self.structured_data,
            "html_head": self.html_document,
            "robots_txt": self.robots_txt,
            "sitemap_xml": self.sitemap_xml,
            "icon_data": self.icon_catalog.to_dict() if self.icon_catalog else None,
            "artifact_failures": list(self.artifact_failures),
        }
