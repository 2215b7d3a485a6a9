"""URL discovery for sitemapgen (file walking, canonical parsing, link discovery)."""

from .collector import CollectionResult, DiscoverySet, UrlCollector
from .filters import ArtifactGuard, UrlExcludeFilter, UrlFilter, wildcard_to_regex
from .html import HtmlLinkParser, PageLinks
from .lastmod import LastmodResolver, file_mtime
from .urls import is_http_url, normalize_url, path_to_url
from .walker import FileWalker, WalkResult, compile_glob, matches_any

__all__ = [
    # Collection
    "CollectionResult",
    "DiscoverySet",
    "UrlCollector",
    # Filters
    "ArtifactGuard",
    "UrlExcludeFilter",
    "UrlFilter",
    "wildcard_to_regex",
    # HTML
    "HtmlLinkParser",
    "PageLinks",
    # Lastmod
    "LastmodResolver",
    "file_mtime",
    # URLs
    "is_http_url",
    "normalize_url",
    "path_to_url",
    # Walking
    "FileWalker",
    "WalkResult",
    "compile_glob",
    "matches_any",
]
