"""Assembly of the final, deduplicated sitemap URL collection."""

import logging
from collections.abc import Iterator
from dataclasses import dataclass, field
from typing import Optional

from ..exceptions import DiscoveryError, LimitExceeded
from ..models.config import SitemapConfig
from ..models.items import SiteItem
from .filters import ArtifactGuard, UrlExcludeFilter, UrlFilter
from .html import HtmlLinkParser, is_html_file
from .lastmod import LastmodResolver
from .urls import path_to_url
from .walker import FileWalker

logger = logging.getLogger(__name__)

# How many guarded URLs are listed individually in the warning
GUARD_REPORT_LIMIT = 10


class DiscoverySet:
    """
    Insertion-ordered set of discovered URLs with a hard cap.

    Example:
        found = DiscoverySet(limit=2)
        found.add("https://example.com/a.html")
        found.add("https://example.com/b.html")
        found.add("https://example.com/c.html")  # raises LimitExceeded
    """

    def __init__(self, limit: int):
        self.limit = limit
        self._urls: dict[str, None] = {}

    def add(self, url: str) -> bool:
        """
        Add a URL unless already present.

        Returns:
            True if the URL was new

        Raises:
            LimitExceeded: If the set is full and the URL is new
        """
        if url in self._urls:
            return False
        if len(self._urls) >= self.limit:
            raise LimitExceeded("max_discovered_links", self.limit)
        self._urls[url] = None
        return True

    def __contains__(self, url: object) -> bool:
        return url in self._urls

    def __iter__(self) -> Iterator[str]:
        return iter(self._urls)

    def __len__(self) -> int:
        return len(self._urls)


@dataclass
class CollectionResult:
    """
    Final URL collection plus the counters gathered while building it.

    Attributes:
        items: Sorted, unique sitemap entries
        guarded: (url, reason) pairs removed by the pre-write guard
        limits_reached: Names of caps that stopped additions
    """

    items: list[SiteItem] = field(default_factory=list)
    files_walked: int = 0
    files_skipped: int = 0
    canonical_urls: int = 0
    links_discovered: int = 0
    manual_urls: int = 0
    urls_excluded: int = 0
    guarded: list[tuple[str, str]] = field(default_factory=list)
    limits_reached: list[str] = field(default_factory=list)

    @property
    def urls(self) -> list[str]:
        return [item.url for item in self.items]


class UrlCollector:
    """
    Walk the content root and assemble the sitemap collection.

    Merge order sets dedup precedence: walked (possibly canonicalized)
    pages first, then manual additional_urls, then discovered links.
    Only the discovered tail is subject to max_total_urls.

    Example:
        resolver = LastmodResolver(config.entries.strategy)
        result = UrlCollector(config, resolver).collect()
        for item in result.items:
            print(item.url)
    """

    def __init__(
        self,
        config: SitemapConfig,
        resolver: LastmodResolver,
        exclude_filter: Optional[UrlFilter] = None,
    ):
        """
        Initialize the collector.

        Args:
            config: Validated configuration
            resolver: Lastmod resolver for walked files
            exclude_filter: Override for the exclude_urls filter
        """
        self.config = config
        self.resolver = resolver
        self.root = config.public_dir

        discovery = config.discovery
        self.walker = FileWalker(self.root, discovery.include_patterns, discovery.exclude_patterns)
        self.parser = HtmlLinkParser(self.root, config.site_url)
        self.exclude_filter = exclude_filter or UrlExcludeFilter(discovery.exclude_urls)
        self.guard = ArtifactGuard(
            discovery.exclude_extensions,
            [config.output.filename, config.output.txt_filename, config.output.index_filename],
        )

    def _entry(self, url: str, lastmod=None) -> SiteItem:
        entries = self.config.entries
        return SiteItem(url=url, lastmod=lastmod, changefreq=entries.changefreq, priority=entries.priority)

    def _walk_pages(self, result: CollectionResult, discovered: DiscoverySet) -> list[SiteItem]:
        discovery = self.config.discovery
        walk = self.walker.walk()
        result.files_walked = len(walk.files)
        result.files_skipped = walk.skipped_count

        items: list[SiteItem] = []
        capped = False

        for rel in walk.files:
            fs_path = self.root / rel
            url = path_to_url(self.config.site_url, self.root, fs_path)

            want_anchors = discovery.discover_links and not capped
            if is_html_file(rel) and (discovery.parse_canonical or want_anchors):
                try:
                    links = self.parser.parse(fs_path, want_anchors=want_anchors)
                except DiscoveryError as e:
                    logger.debug(f"Using path URL for {rel}: {e}")
                else:
                    if discovery.parse_canonical and links.canonical:
                        url = self.parser.resolve_canonical(links.canonical, fs_path)
                        result.canonical_urls += 1
                    if want_anchors:
                        capped = self._discover(links.hrefs, discovered, result)

            items.append(self._entry(url, self.resolver.resolve(fs_path)))

        return items

    def _discover(self, hrefs: list[str], discovered: DiscoverySet, result: CollectionResult) -> bool:
        """Add anchor targets to the discovery set; returns True once the cap is hit."""
        for href in hrefs:
            candidate = self.parser.resolve_anchor(href)
            if candidate is None:
                continue
            try:
                if discovered.add(self.parser.candidate_url(candidate)):
                    result.links_discovered += 1
            except LimitExceeded as e:
                logger.warning(f"{e.message}; some links may not be included")
                result.limits_reached.append(e.limit_name)
                return True
        return False

    def _apply_guard(self, items: list[SiteItem], result: CollectionResult) -> list[SiteItem]:
        kept = []
        for item in items:
            reason = self.guard.reason(item.url)
            if reason is None:
                kept.append(item)
            else:
                result.guarded.append((item.url, reason))

        if result.guarded:
            logger.warning(f"Removed {len(result.guarded)} URL(s) that should have been excluded:")
            for url, reason in result.guarded[:GUARD_REPORT_LIMIT]:
                logger.warning(f"  - {url} ({reason})")
            if len(result.guarded) > GUARD_REPORT_LIMIT:
                logger.warning(f"  ... and {len(result.guarded) - GUARD_REPORT_LIMIT} more")
        return kept

    def collect(self) -> CollectionResult:
        """
        Build the final collection.

        Returns:
            CollectionResult with items sorted ascending by URL
        """
        discovery = self.config.discovery
        result = CollectionResult()
        discovered = DiscoverySet(discovery.max_discovered_links)

        merged: dict[str, SiteItem] = {}
        for item in self._walk_pages(result, discovered):
            merged.setdefault(item.url, item)

        for url in discovery.additional_urls:
            result.manual_urls += 1
            merged.setdefault(url, self._entry(url))

        for url in discovered:
            if url in merged:
                continue
            if len(merged) >= discovery.max_total_urls:
                logger.warning(f"max_total_urls limit reached ({discovery.max_total_urls}); stopping URL collection")
                result.limits_reached.append("max_total_urls")
                break
            merged[url] = self._entry(url)

        items = [item for item in merged.values() if self.exclude_filter.should_include(item.url)]
        result.urls_excluded = len(merged) - len(items)
        if result.urls_excluded:
            logger.info(f"Excluded {result.urls_excluded} URL(s) via exclude_urls")

        items = self._apply_guard(items, result)
        items.sort(key=lambda item: item.url)
        result.items = items

        logger.info(f"Collected {len(items)} URL(s) from {result.files_walked} file(s)")
        return result
