"""Canonical URL and internal link extraction from built HTML pages."""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from bs4 import BeautifulSoup

from ..exceptions import DiscoveryError
from ..models.items import DiscoveryCandidate
from .urls import is_http_url, path_to_url

logger = logging.getLogger(__name__)

HTML_EXTENSIONS = (".html", ".htm")


def is_html_file(rel_path: str) -> bool:
    """Check if a path names an HTML-like file."""
    return rel_path.lower().endswith(HTML_EXTENSIONS)


@dataclass
class PageLinks:
    """
    Link data extracted from one page in a single parse pass.

    Attributes:
        canonical: href of the first <link rel="canonical">, if any
        hrefs: Internal anchor hrefs in document order
    """

    canonical: Optional[str] = None
    hrefs: list[str] = field(default_factory=list)


class HtmlLinkParser:
    """
    Parse a local HTML file for its canonical link and internal anchors.

    Only hrefs that can point at a file of the site are kept: absolute
    http(s) links are external and fragment-only links point into the
    same page.

    Example:
        parser = HtmlLinkParser(root=Path("dist"), base_url="https://example.com/")
        links = parser.parse(Path("dist/index.html"))
        url = parser.resolve_canonical(links.canonical, Path("dist/index.html"))
    """

    # Patterns to skip when extracting anchors
    SKIP_PREFIXES = ("#",)

    def __init__(self, root: Path, base_url: str):
        """
        Initialize the parser.

        Args:
            root: Content root directory
            base_url: Validated site base URL
        """
        self.root = Path(root)
        self.base_url = base_url
        self._root_abs = os.path.abspath(self.root)

    def parse(self, path: Path, *, want_anchors: bool = True) -> PageLinks:
        """
        Read and parse an HTML file.

        Args:
            path: File to parse
            want_anchors: Collect anchor hrefs as well as the canonical link

        Returns:
            PageLinks for the file

        Raises:
            DiscoveryError: If the file cannot be read or parsed
        """
        try:
            html = Path(path).read_bytes()
        except OSError as e:
            raise DiscoveryError(f"Failed to read {path}: {e}", path=Path(path)) from e

        try:
            soup = BeautifulSoup(html, "html.parser")
        except Exception as e:
            raise DiscoveryError(f"Failed to parse {path}: {e}", path=Path(path)) from e

        links = PageLinks()

        canonical = soup.find("link", rel="canonical", href=True)
        if canonical is not None:
            href = str(canonical.get("href", "")).strip()
            links.canonical = href or None

        if want_anchors:
            for anchor in soup.find_all("a", href=True):
                href = str(anchor["href"]).strip()
                if self._is_internal_href(href):
                    links.hrefs.append(href)

        return links

    def _is_internal_href(self, href: str) -> bool:
        if not href or is_http_url(href):
            return False
        return all(not href.startswith(prefix) for prefix in self.SKIP_PREFIXES)

    def _inside_root(self, fs_path: str) -> bool:
        return os.path.commonpath([self._root_abs, os.path.abspath(fs_path)]) == self._root_abs

    def resolve_canonical(self, href: str, page_path: Path) -> str:
        """
        Turn a canonical href into an absolute URL.

        Absolute http(s) hrefs are used as-is. A root-relative href
        resolves against the site root; any other relative href resolves
        against the directory containing the page.

        Args:
            href: The canonical href
            page_path: Path of the page that declared it

        Returns:
            Absolute canonical URL
        """
        if is_http_url(href):
            return href
        if href.startswith("/"):
            target = os.path.join(str(self.root), href.lstrip("/"))
        else:
            target = os.path.join(str(Path(page_path).parent), href)
        return path_to_url(self.base_url, self.root, os.path.normpath(target))

    def resolve_anchor(self, href: str) -> Optional[DiscoveryCandidate]:
        """
        Resolve an anchor href as a root-relative path under the site root.

        Returns:
            DiscoveryCandidate if the target is an existing regular file
            inside the root, None otherwise (broken links are dropped)
        """
        target = os.path.normpath(os.path.join(str(self.root), href.lstrip("/")))
        if not self._inside_root(target) or not os.path.isfile(target):
            return None
        return DiscoveryCandidate(href=href, resolved_path=Path(target))

    def candidate_url(self, candidate: DiscoveryCandidate) -> str:
        """Absolute URL for a resolved discovery candidate."""
        return path_to_url(self.base_url, self.root, candidate.resolved_path)
