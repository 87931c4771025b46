"""Asset composer building the cross-referenced SEO text artifacts"""

import asyncio
import json
import logging
from dataclasses import replace
from datetime import date, datetime
from typing import List, Optional
from urllib.parse import urlsplit
from xml.sax.saxutils import escape

from exceptions import ArtifactWriteError
from icon_processor import write_bytes_atomic
from models.bundle import SiteAssetBundle, SiteFields
from models.config import REL_ICON, REL_TOUCH_ICON
from models.icon import IconCatalog
from models.session import Session

logger = logging.getLogger("SEO_Server")

GENERATOR_NAME = "SEO Generator v1.0"
BLOCKED_CRAWLERS = ("AhrefsBot", "MJ12bot", "DotBot")
SEARCH_PATH = "/search?q={search_term_string}"


def sanitize_text(text: str) -> str:
    """Trim and escape angle brackets. Not a full HTML sanitizer."""
    return text.strip().replace("<", "&lt;").replace(">", "&gt;")


def canonicalize_url(url: str) -> str:
    """Trim whitespace and strip trailing slashes"""
    return url.strip().rstrip("/")


def is_well_formed_url(candidate: str) -> bool:
    """True when candidate parses as an absolute URL"""
    if any(char.isspace() for char in candidate):
        return False
    try:
        parts = urlsplit(candidate)
        # Raises ValueError for an out-of-range port
        parts.port
    except ValueError:
        return False
    if not parts.scheme or not parts.scheme[0].isalpha():
        return False
    if parts.scheme in ("http", "https", "ftp", "ws", "wss"):
        return bool(parts.hostname)
    return bool(parts.netloc or parts.path)


def parse_site_links(raw_links: Optional[str], site_url: str) -> List[str]:
    """Parse newline-delimited links; the homepage is always index 0.

    Lines that do not parse as URLs are silently dropped.
    """
    if not raw_links or not raw_links.strip():
        return [site_url]

    links = []
    for line in raw_links.strip().splitlines():
        link = line.strip()
        if link and is_well_formed_url(link):
            links.append(link)

    if not links:
        return [site_url]
    if site_url not in links and f"{site_url}/" not in links:
        return [site_url] + links
    if links[0] not in (site_url, f"{site_url}/"):
        # Homepage present but not first: move it to the front
        homepage = next(link for link in links if link in (site_url, f"{site_url}/"))
        links.remove(homepage)
        links.insert(0, homepage)
    return links


def build_meta_tags(title: str, description: str, site_url: str, catalog: Optional[IconCatalog] = None) -> List[str]:
    tags = [
        '<meta charset="UTF-8">',
        '<meta name="viewport" content="width=device-width, initial-scale=1.0">',
        f"<title>{title}</title>",
        f'<meta name="description" content="{description}">',
        '<meta name="robots" content="index, follow">',
        f'<meta name="author" content="{title}">',
        f'<meta name="generator" content="{GENERATOR_NAME}">',
        f'<link rel="canonical" href="{site_url}/">',
    ]
    if catalog:
        for icon in catalog.icons:
            if icon.rel == REL_ICON:
                tags.append(
                    f'<link rel="icon" type="{icon.mime_type}" sizes="{icon.sizes}" href="{icon.external_href}">'
                )
            elif icon.rel == REL_TOUCH_ICON:
                tags.append(f'<link rel="apple-touch-icon" sizes="{icon.sizes}" href="{icon.external_href}">')
    return tags


def build_open_graph_tags(title: str, description: str, site_url: str, catalog: Optional[IconCatalog] = None) -> List[str]:
    tags = [
        f'<meta property="og:title" content="{title}">',
        f'<meta property="og:description" content="{description}">',
        '<meta property="og:type" content="website">',
        f'<meta property="og:url" content="{site_url}/">',
        f'<meta property="og:site_name" content="{title}">',
        '<meta property="og:locale" content="en_US">',
    ]
    if catalog and catalog.social_preview:
        preview = catalog.social_preview
        tags.extend([
            f'<meta property="og:image" content="{site_url}{preview.external_href}">',
            f'<meta property="og:image:width" content="{preview.width}">',
            f'<meta property="og:image:height" content="{preview.height}">',
            f'<meta property="og:image:type" content="{preview.mime_type}">',
        ])
    return tags


def build_twitter_tags(title: str, description: str, site_url: str, catalog: Optional[IconCatalog] = None) -> List[str]:
    tags = [
        '<meta name="twitter:card" content="summary_large_image">',
        f'<meta name="twitter:title" content="{title}">',
        f'<meta name="twitter:description" content="{description}">',
        '<meta name="twitter:site" content="@yourhandle">',
        '<meta name="twitter:creator" content="@yourhandle">',
    ]
    if catalog and catalog.social_preview:
        tags.append(f'<meta name="twitter:image" content="{site_url}{catalog.social_preview.external_href}">')
    return tags


def build_structured_data(title: str, description: str, site_url: str) -> str:
    """JSON-LD WebSite record wrapped in its script tag"""
    document = {
        "@context": "https://schema.org",
        "@type": "WebSite",
        "name": title,
        "description": description,
        "url": f"{site_url}/",
        "potentialAction": {
            "@type": "SearchAction",
            "target": {
                "@type": "EntryPoint",
                "urlTemplate": f"{site_url}{SEARCH_PATH}",
            },
            "query-input": "required name=search_term_string",
        },
    }
    return f'<script type="application/ld+json">\n{json.dumps(document, indent=2, ensure_ascii=False)}\n</script>'


def build_html_document(
    meta_tags: List[str],
    open_graph_tags: List[str],
    twitter_tags: List[str],
    structured_data: str,
    theme_color: str = "#ffffff",
) -> str:
    lines = [
        "<!DOCTYPE html>",
        '<html lang="en">',
        "<head>",
        "    <!-- Basic Meta Tags -->",
        *[f"    {tag}" for tag in meta_tags],
        "",
        "    <!-- Open Graph Meta Tags -->",
        *[f"    {tag}" for tag in open_graph_tags],
        "",
        "    <!-- Twitter Card Meta Tags -->",
        *[f"    {tag}" for tag in twitter_tags],
        "",
        "    <!-- Structured Data -->",
        f"    {structured_data}",
        "",
        "    <!-- Additional SEO Meta Tags -->",
        f'    <meta name="theme-color" content="{theme_color}">',
        f'    <meta name="msapplication-TileColor" content="{theme_color}">',
        "",
        "    <!-- Preconnect for Performance -->",
        '    <link rel="preconnect" href="https://fonts.googleapis.com">',
        '    <link rel="preconnect" href="https://fonts.gstatic.com" crossorigin>',
        "</head>",
        "<body>",
        "    <!-- Your content goes here -->",
        "</body>",
        "</html>",
    ]
    return "\n".join(lines)


def build_robots_txt(site_url: str) -> str:
    sections = [
        "User-agent: *\nAllow: /",
        f"# Sitemap\nSitemap: {site_url}/sitemap.xml",
        "# Block common spam bots\n" + "\n\n".join(
            f"User-agent: {crawler}\nDisallow: /" for crawler in BLOCKED_CRAWLERS
        ),
    ]
    return "\n\n".join(sections)


def _sitemap_entry(url: str, lastmod: str, is_homepage: bool) -> str:
    loc = url if url.endswith("/") else f"{url}/"
    priority, changefreq = ("1.0", "daily") if is_homepage else ("0.8", "weekly")
    return (
        "    <url>\n"
        f"        <loc>{escape(loc)}</loc>\n"
        f"        <lastmod>{lastmod}</lastmod>\n"
        f"        <changefreq>{changefreq}</changefreq>\n"
        f"        <priority>{priority}</priority>\n"
        "    </url>"
    )


def build_sitemap_xml(site_url: str, site_links: List[str], today: Optional[date] = None) -> str:
    """One <url> per link; index 0 is the homepage"""
    lastmod = (today or date.today()).isoformat()
    homepage_forms = (site_url, f"{site_url}/")
    entries = [
        _sitemap_entry(link, lastmod, index == 0 or link in homepage_forms)
        for index, link in enumerate(site_links)
    ]
    return "\n".join([
        '<?xml version="1.0" encoding="UTF-8"?>',
        '<urlset xmlns="http://www.sitemaps.org/schemas/sitemap/0.9">',
        *entries,
        "</urlset>",
    ])


class AssetComposer:
    """Builds a SiteAssetBundle and persists each artifact into the session namespace"""

    def __init__(self, theme_color: str = "#ffffff"):
        self.theme_color = theme_color

    def build(
        self,
        fields: SiteFields,
        catalog: Optional[IconCatalog],
        raw_links: Optional[str],
        session_id: str,
        today: Optional[date] = None,
        generated_at: Optional[datetime] = None,
    ) -> SiteAssetBundle:
        """Compose every artifact in memory without touching the filesystem"""
        title = sanitize_text(fields.title)
        description = sanitize_text(fields.description)
        site_url = canonicalize_url(fields.site_url)
        site_links = parse_site_links(raw_links, site_url)

        meta_tags = build_meta_tags(title, description, site_url, catalog)
        open_graph_tags = build_open_graph_tags(title, description, site_url, catalog)
        twitter_tags = build_twitter_tags(title, description, site_url, catalog)
        structured_data = build_structured_data(title, description, site_url)
        html_document = build_html_document(
            meta_tags, open_graph_tags, twitter_tags, structured_data, theme_color=self.theme_color
        )

        return SiteAssetBundle(
            title=title,
            description=description,
            site_url=site_url,
            site_links=site_links,
            meta_tags=meta_tags,
            open_graph_tags=open_graph_tags,
            twitter_tags=twitter_tags,
            structured_data=structured_data,
            html_document=html_document,
            robots_txt=build_robots_txt(site_url),
            sitemap_xml=build_sitemap_xml(site_url, site_links, today),
            session_id=session_id,
            generated_at=generated_at or datetime.now(),
            icon_catalog=catalog,
        )

    def persist(self, bundle: SiteAssetBundle, session: Session) -> List[ArtifactWriteError]:
        """Write each artifact independently. Returns one error per file that failed."""
        failures = []
        for filename, content in bundle.text_artifacts().items():
            try:
                write_bytes_atomic(session.path / filename, content.encode("utf-8"))
            except OSError as e:
                failure = ArtifactWriteError(filename, str(e))
                logger.error(str(failure))
                failures.append(failure)
        return failures

    async def compose(
        self,
        fields: SiteFields,
        catalog: Optional[IconCatalog],
        raw_links: Optional[str],
        session: Session,
    ) -> SiteAssetBundle:
        bundle = self.build(fields, catalog, raw_links, session.session_id)
        failures = await asyncio.to_thread(self.persist, bundle, session)
        failed_names = [failure.filename for failure in failures]
        if failures:
            logger.warning(f"Session {session.session_id}: {len(failures)} artifact(s) not written: {failed_names}")
        return replace(bundle, artifact_failures=failed_names)
