"""URL filtering utilities for collection."""

import logging
import posixpath
import re
from typing import Optional, Protocol
from urllib.parse import unquote, urlparse

logger = logging.getLogger(__name__)

# Generated artifact names that must never be listed as pages
SITEMAP_ARTIFACT_NAMES = ("sitemap.xml", "sitemap.txt", "sitemap-index.xml")


class UrlFilter(Protocol):
    """Anything that can approve or reject a URL."""

    def should_include(self, url: str) -> bool: ...


def wildcard_to_regex(pattern: str) -> "re.Pattern[str]":
    """
    Translate an exclude-URL wildcard into a regex anchored to the whole URL.

    '*' matches any run of characters, '?' exactly one; every other
    character is literal.

    Example:
        >>> bool(wildcard_to_regex("*/sitemap*.xml").match("https://a.io/sitemap-2.xml"))
        True
    """
    body = "".join(".*" if c == "*" else "." if c == "?" else re.escape(c) for c in pattern)
    return re.compile(f"^{body}$")


def url_filename(url: str) -> str:
    """Last path segment of a URL, percent-decoded."""
    return posixpath.basename(unquote(urlparse(url).path))


class UrlExcludeFilter:
    """
    Drop URLs listed in exclude_urls.

    An entry removes a URL when it is equal to it, or, for entries holding
    '*' or '?', when the URL matches the wildcard.

    Example:
        filter = UrlExcludeFilter(["https://example.com/404.html", "*/drafts/*"])
        filter.should_include("https://example.com/drafts/a.html")  # False
    """

    def __init__(self, patterns: Optional[list[str]] = None):
        """
        Initialize the exclude filter.

        Args:
            patterns: Exact URLs or wildcard patterns
        """
        self.patterns = patterns or []
        self._exact = set(self.patterns)
        self._wildcards = [wildcard_to_regex(p) for p in self.patterns if "*" in p or "?" in p]

    def should_include(self, url: str) -> bool:
        """
        Check if URL survives the exclude list.

        Args:
            url: The URL to check

        Returns:
            True if no entry excludes it
        """
        if url in self._exact:
            return False
        return not any(regex.match(url) for regex in self._wildcards)


class ArtifactGuard:
    """
    Final safety net run just before writing.

    Rejects URLs naming a sitemap artifact or carrying an excluded
    extension, with a reason the caller can report.
    """

    def __init__(
        self,
        exclude_extensions: Optional[list[str]] = None,
        artifact_names: Optional[list[str]] = None,
    ):
        """
        Initialize the guard.

        Args:
            exclude_extensions: Lowercase extensions with leading dot
            artifact_names: Sitemap filenames to keep out (defaults included)
        """
        self.exclude_extensions = tuple(exclude_extensions or [])
        self.artifact_names = tuple(dict.fromkeys([*SITEMAP_ARTIFACT_NAMES, *(artifact_names or [])]))

    def reason(self, url: str) -> Optional[str]:
        """
        Explain why a URL must not be written.

        Returns:
            A short reason, or None if the URL is acceptable
        """
        filename = url_filename(url)
        if any(name in filename for name in self.artifact_names):
            return "sitemap file"
        lowered = filename.lower()
        for ext in self.exclude_extensions:
            if lowered.endswith(ext):
                return f"has excluded extension: {ext}"
        return None

