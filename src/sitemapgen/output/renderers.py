"""Serialization of sitemap entries to XML, TXT, index and gzip bytes."""

import gzip
from collections.abc import Iterable
from datetime import datetime
from typing import Optional
from xml.sax.saxutils import escape

from .. import __version__
from ..models.config import SITEMAP_NAMESPACE
from ..models.items import IndexEntry, SiteItem, format_w3c_datetime

XML_DECLARATION = '<?xml version="1.0" encoding="UTF-8"?>'


def generation_header(generated_at: datetime) -> str:
    """
    Comment line placed right after the XML declaration.

    It is the only line that differs between two runs over unchanged input.
    """
    return f"<!-- Generated by sitemapgen v{__version__} on {format_w3c_datetime(generated_at)} -->"


def _format_priority(priority: float) -> str:
    return str(round(float(priority), 2))


def render_urlset(items: Iterable[SiteItem], header: Optional[str] = None) -> str:
    """
    Render a <urlset> document.

    Optional child elements are written only when the entry carries them.

    Args:
        items: Sitemap entries in output order
        header: Generation comment line, if any

    Returns:
        XML text ending with a newline
    """
    lines = [XML_DECLARATION]
    if header:
        lines.append(header)
    lines.append(f'<urlset xmlns="{SITEMAP_NAMESPACE}">')
    for item in items:
        lines.append("  <url>")
        lines.append(f"    <loc>{escape(item.url)}</loc>")
        if item.lastmod is not None:
            lines.append(f"    <lastmod>{item.lastmod_text}</lastmod>")
        if item.changefreq is not None:
            lines.append(f"    <changefreq>{item.changefreq.value}</changefreq>")
        if item.priority is not None:
            lines.append(f"    <priority>{_format_priority(item.priority)}</priority>")
        lines.append("  </url>")
    lines.append("</urlset>")
    return "\n".join(lines) + "\n"


def render_txt(items: Iterable[SiteItem]) -> str:
    """
    Render a plain-text sitemap: one URL per line, nothing else.

    Returns:
        Text ending with a newline (empty for no items)
    """
    urls = [item.url for item in items]
    return "\n".join(urls) + "\n" if urls else ""


def render_index(entries: Iterable[IndexEntry], header: Optional[str] = None) -> str:
    """
    Render a <sitemapindex> document referencing chunk files.

    Args:
        entries: One entry per numbered XML sitemap
        header: Generation comment line, if any

    Returns:
        XML text ending with a newline
    """
    lines = [XML_DECLARATION]
    if header:
        lines.append(header)
    lines.append(f'<sitemapindex xmlns="{SITEMAP_NAMESPACE}">')
    for entry in entries:
        lines.append("  <sitemap>")
        lines.append(f"    <loc>{escape(entry.loc)}</loc>")
        if entry.lastmod is not None:
            lines.append(f"    <lastmod>{format_w3c_datetime(entry.lastmod)}</lastmod>")
        lines.append("  </sitemap>")
    lines.append("</sitemapindex>")
    return "\n".join(lines) + "\n"


def gzip_bytes(data: bytes) -> bytes:
    """Compress rendered bytes with a fixed header timestamp so reruns are byte-identical."""
    return gzip.compress(data, mtime=0)
