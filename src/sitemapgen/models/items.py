"""Sitemap data model: entries, chunks, documents and index entries."""

from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional

from .config import ChangeFreq


class DocumentKind(str, Enum):
    """Kinds of sitemap documents."""

    XML = "xml"
    TXT = "txt"
    INDEX = "index"


def format_w3c_datetime(value: datetime) -> str:
    """
    Format a datetime as a W3C datetime string (seconds precision).

    Naive datetimes are assumed to be UTC.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat(timespec="seconds")


@dataclass(frozen=True)
class SiteItem:
    """
    One URL entry of a sitemap.

    Attributes:
        url: Absolute http(s) URL, unique within a collection
        lastmod: Optional last modification time
        changefreq: Optional change frequency hint
        priority: Optional priority in [0.0, 1.0]
    """

    url: str
    lastmod: Optional[datetime] = None
    changefreq: Optional[ChangeFreq] = None
    priority: Optional[float] = None

    @property
    def lastmod_text(self) -> Optional[str]:
        """The lastmod rendered as W3C datetime, or None."""
        return format_w3c_datetime(self.lastmod) if self.lastmod is not None else None


@dataclass(frozen=True)
class DiscoveryCandidate:
    """An internal link found in a page, before it is merged into the collection."""

    href: str
    resolved_path: Path


@dataclass(frozen=True)
class SitemapChunk:
    """A bounded, ordered slice of the final collection (1-based number)."""

    number: int
    items: tuple[SiteItem, ...]

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class IndexEntry:
    """One <sitemap> entry of a sitemap index."""

    loc: str
    lastmod: Optional[datetime] = None


@dataclass(frozen=True)
class SitemapDocument:
    """A rendered sitemap document and the path it is written to."""

    kind: DocumentKind
    path: Path
    content: str
    url_count: int = 0

    @property
    def data(self) -> bytes:
        """Document content as UTF-8 bytes."""
        return self.content.encode("utf-8")
