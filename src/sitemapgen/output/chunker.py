"""Split a sorted collection into protocol-sized sitemap chunks."""

import math
import posixpath
from collections.abc import Sequence

from ..models.items import SiteItem, SitemapChunk


def chunk_items(items: Sequence[SiteItem], max_per_file: int) -> list[SitemapChunk]:
    """
    Split items into consecutive chunks of at most max_per_file entries.

    An empty collection still yields one (empty) chunk, so an empty
    sitemap gets written.

    Args:
        items: Sorted sitemap entries
        max_per_file: Maximum entries per chunk (>= 1)

    Returns:
        Chunks numbered from 1; concatenating them reproduces items

    Example:
        >>> [len(c) for c in chunk_items(items_12, 5)]
        [5, 5, 2]
    """
    if max_per_file < 1:
        raise ValueError(f"max_per_file must be >= 1 (got {max_per_file})")
    if not items:
        return [SitemapChunk(number=1, items=())]

    count = math.ceil(len(items) / max_per_file)
    return [
        SitemapChunk(number=n + 1, items=tuple(items[n * max_per_file : (n + 1) * max_per_file]))
        for n in range(count)
    ]


def numbered_filename(filename: str, number: int) -> str:
    """
    Insert a chunk number before the extension.

    Example:
        >>> numbered_filename("sitemap.xml", 2)
        'sitemap-2.xml'
    """
    stem, ext = posixpath.splitext(filename)
    return f"{stem}-{number}{ext}"
