"""Human-readable guides bundled into the download archive"""

from datetime import datetime
from typing import Dict, Iterable, Optional

HTML_GUIDES: Dict[str, str] = {
    "complete.html": """Complete HTML template with all SEO elements

WHERE TO USE:
- Use this as a starting template for your website's HTML structure
- Copy the <head> section to your existing HTML files
- Check that the canonical URL matches your live domain

WHY IT'S NEEDED:
- Contains all essential SEO meta tags
- Includes proper viewport settings for mobile compatibility
- Has structured data for better search engine understanding
- Includes icon references for favicons and app icons""",
    "meta-tags.html": """Basic meta tags for SEO

WHERE TO ADD:
- Add these inside the <head> section of every HTML page
- Place them before any other stylesheets or scripts
- Update the canonical URL for each specific page

WHY IT'S NEEDED:
- Title and description appear in search results
- Viewport meta tag ensures proper mobile display
- Robots meta tag controls search engine indexing
- Canonical URL prevents duplicate content issues""",
    "opengraph-tags.html": """Open Graph tags for social media sharing

WHERE TO ADD:
- Add inside <head> section after basic meta tags
- Update og:url for each specific page
- Customize og:image for page-specific sharing images

WHY IT'S NEEDED:
- Controls how your content appears when shared on social media
- Facebook, LinkedIn, and other platforms use these tags
- Provides consistent branding across social platforms""",
    "twitter-tags.html": """Twitter Card meta tags for Twitter sharing

WHERE TO ADD:
- Add inside <head> section alongside Open Graph tags
- Update twitter:site and twitter:creator with your handles
- Customize twitter:image for tweet-specific images

WHY IT'S NEEDED:
- Optimizes how your content appears in Twitter feeds
- Creates rich media attachments in tweets""",
    "structured-data.json": """JSON-LD structured data for search engines

WHERE TO ADD:
- Add this script tag inside the <head> section
- Can also be placed just before the closing </body> tag
- Update the URL and details for each page as needed

WHY IT'S NEEDED:
- Helps search engines understand your content better
- Enables rich snippets and a sitelinks search box in search results""",
}

CONFIG_GUIDES: Dict[str, str] = {
    "robots.txt": """Robots.txt file for search engine crawlers

WHERE TO PLACE:
- Upload to the root directory of your website
- Must be accessible at: https://yourwebsite.com/robots.txt
- DO NOT place in subdirectories

WHY IT'S NEEDED:
- Tells search engines which pages to crawl
- Blocks unwanted bots from accessing your site
- Points to your sitemap location""",
    "sitemap.xml": """XML sitemap for search engines

WHERE TO PLACE:
- Upload to your website's root directory
- Accessible at: https://yourwebsite.com/sitemap.xml
- Submit to Google Search Console and Bing Webmaster Tools

WHY IT'S NEEDED:
- Helps search engines discover all your pages
- Indicates page importance and update frequency

IMPORTANT:
- Add all your important pages to the sitemap
- Update lastmod dates when you modify pages""",
    "site.webmanifest": """Web App Manifest for Progressive Web App features

WHERE TO PLACE:
- Upload to your website's root directory
- Link in HTML: <link rel="manifest" href="/site.webmanifest">
- Ensure icon files are uploaded to the /icons/ folder

WHY IT'S NEEDED:
- Enables "Add to Home Screen" functionality
- Defines app appearance when installed on mobile""",
    "browserconfig.xml": """Browser configuration for Windows tiles

WHERE TO PLACE:
- Upload to your website's root directory
- Accessible at: https://yourwebsite.com/browserconfig.xml
- No HTML linking required, Windows discovers it automatically

WHY IT'S NEEDED:
- Controls how your site appears in the Windows Start menu
- Defines tile colors and icons for Windows devices""",
}

ICONS_GUIDE = """ICON FILES GUIDE

FAVICON FILES:
- favicon.ico: Classic favicon for older browsers
  Place in root directory: https://yourwebsite.com/favicon.ico

MODERN FAVICONS:
- favicon-*.png: Modern browser favicons in multiple sizes
  Link in HTML: <link rel="icon" type="image/png" sizes="32x32" href="/icons/favicon-32x32.png">

APPLE TOUCH ICONS:
- apple-touch-icon.png: iOS home screen icon
  Link in HTML: <link rel="apple-touch-icon" sizes="180x180" href="/icons/apple-touch-icon.png">

ANDROID CHROME ICONS:
- android-chrome-192x192.png, android-chrome-512x512.png: Android app icons
  Referenced in the site.webmanifest file

SOCIAL MEDIA IMAGE:
- og-image.png: 1200x630 image for social media sharing
  Used in the Open Graph and Twitter Card meta tags

IMPLEMENTATION STEPS:
1. Upload all PNG files to the /icons/ folder of your website
2. Upload favicon.ico to the root directory
3. Ensure all icon files are accessible via direct URL
4. Test icons using browser dev tools and social media debuggers"""


def guide_name(filename: str) -> str:
    """complete.html -> complete-guide.txt"""
    stem = filename.rsplit(".", 1)[0] if "." in filename else filename
    return f"{stem}-guide.txt"


def _tree_lines(html_files: Iterable[str], config_files: Iterable[str], icon_files: Iterable[str]) -> str:
    lines = ["seo-assets/", "├── README.md", "├── IMPLEMENTATION-GUIDE.md"]
    groups = [("html", list(html_files)), ("config", list(config_files)), ("icons", list(icon_files))]
    groups = [(name, files) for name, files in groups if files]
    for group_index, (name, files) in enumerate(groups):
        last_group = group_index == len(groups) - 1
        lines.append(f"{'└──' if last_group else '├──'} {name}/")
        indent = "    " if last_group else "│   "
        for file_index, filename in enumerate(files):
            branch = "└──" if file_index == len(files) - 1 else "├──"
            lines.append(f"{indent}{branch} {filename}")
    return "\n".join(lines)


def render_readme(
    title: str,
    site_url: str,
    html_files: Iterable[str],
    config_files: Iterable[str],
    icon_files: Iterable[str],
    generated_at: Optional[datetime] = None,
) -> str:
    icon_files = list(icon_files)
    stamp = (generated_at or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    icon_line = "- **Icon Files**: Favicons and social media images in multiple formats\n" if icon_files else ""
    icon_step = (
        "- Upload the PNG files from `icons/` to your `/icons/` folder and `favicon.ico` to the root\n"
        if icon_files else ""
    )
    return f"""# SEO Assets Package
Site: {title} ({site_url})
Generated on: {stamp}

## Contents Overview

This package contains all the SEO assets generated for your website:
- **HTML Files**: Ready-to-use HTML code snippets
- **Configuration Files**: robots.txt, sitemap.xml and related files
{icon_line}- **Implementation Guides**: Detailed instructions for each file

## Quick Start

### 1. Basic Meta Tags
Copy the content from `html/meta-tags.html` and paste into your website's `<head>` section.

### 2. Social Media Optimization
Add the tags from `html/opengraph-tags.html` and `html/twitter-tags.html` to enable rich social media sharing.

### 3. Upload Configuration Files
- Place `config/robots.txt` in your website's root directory
- Upload `config/sitemap.xml` to your root directory
{icon_step}
## File Structure

```
{_tree_lines(html_files, config_files, icon_files)}
```

## SEO Checklist

- [ ] All meta tags added to HTML `<head>`
- [ ] robots.txt uploaded to root directory
- [ ] sitemap.xml uploaded and submitted to search engines
- [ ] Open Graph tags tested with social media debuggers
- [ ] Structured data validated with Google's Rich Results Test

Each file includes an implementation guide. Look for files ending in `-guide.txt` for specific instructions.

---
Generated by SEO Generator v1.0
"""


def render_implementation_guide(
    meta_tags: str,
    open_graph_tags: str,
    twitter_tags: str,
    structured_data: str,
    has_icons: bool,
    has_manifest: bool,
) -> str:
    sections = [
        "# SEO Implementation Guide",
        "",
        "## Phase 1: Essential SEO Elements",
        "",
        "### 1.1 Add Basic Meta Tags",
        "```html",
        "<!-- Copy this into your <head> section -->",
        meta_tags,
        "```",
        "",
        "### 1.2 Upload Root Files",
        "- Upload `robots.txt` to: `https://yourdomain.com/robots.txt`",
        "- Upload `sitemap.xml` to: `https://yourdomain.com/sitemap.xml`",
    ]
    if has_icons:
        sections.append("- Upload `favicon.ico` to: `https://yourdomain.com/favicon.ico`")
    sections.extend([
        "",
        "## Phase 2: Social Media Optimization",
        "",
        "### 2.1 Add Open Graph Tags",
        "```html",
        "<!-- Add after basic meta tags -->",
        open_graph_tags,
        "```",
        "",
        "### 2.2 Add Twitter Cards",
        "```html",
        "<!-- Add after Open Graph tags -->",
        twitter_tags,
        "```",
        "",
        "## Phase 3: Advanced Features",
        "",
        "### 3.1 Add Structured Data",
        "```html",
        "<!-- Add before closing </head> tag -->",
        structured_data,
        "```",
    ])
    if has_icons:
        sections.extend([
            "",
            "### 3.2 Upload All Icons",
            "Upload all files from the `icons/` folder to the `/icons/` folder of your website.",
        ])
    if has_manifest:
        sections.extend([
            "",
            "### 3.3 Configure PWA",
            "- Upload `site.webmanifest` to the root directory",
            '- Add manifest link: `<link rel="manifest" href="/site.webmanifest">`',
        ])
    sections.extend([
        "",
        "## Testing Your Implementation",
        "",
        "- Google Rich Results: https://search.google.com/test/rich-results",
        "- Facebook: https://developers.facebook.com/tools/debug/",
        "- LinkedIn: https://www.linkedin.com/post-inspector/",
        "- Google Search Console: submit sitemap",
        "",
    ])
    return "\n".join(sections)
