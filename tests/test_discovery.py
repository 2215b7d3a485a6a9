"""Tests for file walking, HTML link parsing, URL filters and lastmod resolution."""

from datetime import datetime, timezone
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from sitemapgen.discovery import (
    ArtifactGuard,
    FileWalker,
    HtmlLinkParser,
    LastmodResolver,
    UrlExcludeFilter,
    compile_glob,
    normalize_url,
    path_to_url,
)
from sitemapgen.discovery.lastmod import file_mtime
from sitemapgen.exceptions import DiscoveryError
from sitemapgen.models.config import LastmodStrategy

BASE = "https://example.com/"


def write(path: Path, text: str = "") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    return path


class TestNormalizeUrl:
    """Tests for normalize_url and path_to_url."""

    def test_root_relative_and_dot_relative_match(self):
        """Test that '/a.html', './a.html' and 'a.html' resolve the same."""
        expected = "https://example.com/a.html"
        assert normalize_url("https://example.com", "/a.html") == expected
        assert normalize_url("https://example.com", "./a.html") == expected
        assert normalize_url("https://example.com/", "a.html") == expected

    def test_nested_path(self):
        """Test nested paths keep their directories."""
        assert normalize_url(BASE, "/blog/post.html") == "https://example.com/blog/post.html"

    def test_dot_prefixed_name_is_kept(self):
        """Test that only a './' prefix loses its dot."""
        assert normalize_url(BASE, ".well-known/security.txt") == "https://example.com/.well-known/security.txt"

    def test_spaces_are_encoded(self):
        """Test unsafe characters are percent-encoded."""
        assert normalize_url(BASE, "/my page.html") == "https://example.com/my%20page.html"

    def test_path_to_url(self, tmp_path):
        """Test converting a filesystem path under the root."""
        url = path_to_url(BASE, tmp_path, tmp_path / "docs" / "guide.html")
        assert url == "https://example.com/docs/guide.html"

    def test_path_to_url_root(self, tmp_path):
        """Test that the root itself maps to the base URL."""
        assert path_to_url(BASE, tmp_path, tmp_path) == "https://example.com/"

    def test_path_to_url_windows_paths(self):
        """Test Windows-style inputs on any host."""
        url = path_to_url(BASE, "C:\\site\\public", "C:\\site\\public\\blog\\post.html")
        assert url == "https://example.com/blog/post.html"

    def test_path_to_url_keeps_base_path(self, tmp_path):
        """Test a project-site base URL keeps its path."""
        url = path_to_url("https://octo.github.io/docs/", tmp_path, tmp_path / "index.html")
        assert url == "https://octo.github.io/docs/index.html"


class TestFileWalker:
    """Tests for FileWalker."""

    @pytest.fixture
    def site(self, tmp_path):
        """Create a small built site."""
        write(tmp_path / "index.html")
        write(tmp_path / "about.html")
        write(tmp_path / "blog" / "post.html")
        write(tmp_path / "app.js")
        write(tmp_path / "app.js.map")
        write(tmp_path / ".hidden" / "secret.html")
        write(tmp_path / ".draft.html")
        return tmp_path

    def test_include_patterns(self, site):
        """Test that only matching files are returned, sorted."""
        result = FileWalker(site, include_patterns=["**/*.html"]).walk()
        assert result.files == ["about.html", "blog/post.html", "index.html"]

    def test_hidden_entries_ignored(self, site):
        """Test hidden files and directories are never matched."""
        result = FileWalker(site).walk()
        assert not any(".hidden" in f or ".draft" in f for f in result.files)

    def test_skip_list_counts_map_files(self, site):
        """Test .map files are skipped and counted."""
        result = FileWalker(site, include_patterns=["**/*"]).walk()
        assert "app.js.map" not in result.files
        assert "app.js" in result.files
        assert result.skipped == ["app.js.map"]
        assert result.skipped_count == 1

    def test_exclude_patterns(self, site):
        """Test exclude globs drop files."""
        result = FileWalker(site, ["**/*.html"], ["blog/**"]).walk()
        assert result.files == ["about.html", "index.html"]

    def test_empty_include_defaults_to_everything(self, site):
        """Test that an empty include list matches all files."""
        result = FileWalker(site, include_patterns=[]).walk()
        assert "app.js" in result.files

    def test_directories_not_returned(self, tmp_path):
        """Test that a directory matching the pattern is not a result."""
        (tmp_path / "folder.html").mkdir()
        write(tmp_path / "folder.html" / "inner.html")
        result = FileWalker(tmp_path, ["**/*.html"]).walk()
        assert result.files == ["folder.html/inner.html"]


class TestCompileGlob:
    """Tests for glob translation."""

    @pytest.mark.parametrize(
        "pattern,path,expected",
        [
            ("**/*.html", "index.html", True),
            ("**/*.html", "a/b/c.html", True),
            ("*.html", "blog/post.html", False),
            ("blog/*.html", "blog/post.html", True),
            ("{a,b}.html", "b.html", True),
            ("page?.html", "page1.html", True),
            ("page[!0-9].html", "page1.html", False),
            ("./docs/**", "docs/x/y.html", True),
        ],
    )
    def test_matches(self, pattern, path, expected):
        """Test glob semantics over POSIX relative paths."""
        assert bool(compile_glob(pattern).match(path)) is expected


class TestHtmlLinkParser:
    """Tests for canonical and anchor extraction."""

    @pytest.fixture
    def parser(self, tmp_path):
        return HtmlLinkParser(tmp_path, BASE)

    def test_parse_canonical_and_anchors(self, tmp_path, parser):
        """Test one parse pass yields the canonical href and internal anchors."""
        page = write(
            tmp_path / "index.html",
            """<html><head>
            <link rel="canonical" href="https://example.com/home">
            <link rel="canonical" href="https://example.com/second">
            </head><body>
            <a href="/about.html">About</a>
            <a href="https://other.example.org/">External</a>
            <a href="#top">Top</a>
            <a href="">Empty</a>
            <a href="docs/guide.html">Guide</a>
            </body></html>""",
        )
        links = parser.parse(page)

        assert links.canonical == "https://example.com/home"
        assert links.hrefs == ["/about.html", "docs/guide.html"]

    def test_parse_without_anchors(self, tmp_path, parser):
        """Test anchors are not collected when not wanted."""
        page = write(tmp_path / "a.html", '<a href="/b.html">b</a>')
        links = parser.parse(page, want_anchors=False)
        assert links.canonical is None
        assert links.hrefs == []

    def test_parse_missing_file_raises(self, tmp_path, parser):
        """Test read failures raise DiscoveryError."""
        with pytest.raises(DiscoveryError):
            parser.parse(tmp_path / "missing.html")

    def test_resolve_canonical_absolute(self, tmp_path, parser):
        """Test absolute canonical hrefs are used as-is."""
        assert parser.resolve_canonical("https://cdn.example.com/x", tmp_path / "a.html") == "https://cdn.example.com/x"

    def test_resolve_canonical_relative_to_page_directory(self, tmp_path, parser):
        """Test relative canonical hrefs resolve against the page's directory."""
        page = tmp_path / "blog" / "post.html"
        assert parser.resolve_canonical("../home.html", page) == "https://example.com/home.html"
        assert parser.resolve_canonical("other.html", page) == "https://example.com/blog/other.html"

    def test_resolve_canonical_root_relative(self, tmp_path, parser):
        """Test root-relative canonical hrefs resolve against the site root."""
        page = tmp_path / "blog" / "post.html"
        assert parser.resolve_canonical("/home.html", page) == "https://example.com/home.html"

    def test_resolve_anchor_existing_file(self, tmp_path, parser):
        """Test anchors to existing files become candidates."""
        target = write(tmp_path / "docs" / "guide.pdf")
        candidate = parser.resolve_anchor("/docs/guide.pdf")

        assert candidate is not None
        assert candidate.resolved_path == target
        assert parser.candidate_url(candidate) == "https://example.com/docs/guide.pdf"

    def test_resolve_anchor_broken_link(self, parser):
        """Test anchors to missing files are dropped."""
        assert parser.resolve_anchor("/nope.html") is None

    def test_resolve_anchor_directory(self, tmp_path, parser):
        """Test anchors to directories are dropped."""
        (tmp_path / "section").mkdir()
        assert parser.resolve_anchor("/section") is None

    def test_resolve_anchor_outside_root(self, tmp_path):
        """Test anchors escaping the root are dropped."""
        root = tmp_path / "public"
        root.mkdir()
        write(tmp_path / "secret.html")
        parser = HtmlLinkParser(root, BASE)
        assert parser.resolve_anchor("../secret.html") is None


class TestUrlExcludeFilter:
    """Tests for exclude_urls matching."""

    def test_exact_match(self):
        """Test exact URLs are excluded."""
        url_filter = UrlExcludeFilter(["https://example.com/404.html"])
        assert url_filter.should_include("https://example.com/404.html") is False
        assert url_filter.should_include("https://example.com/404.html?x") is True

    def test_wildcard_star(self):
        """Test '*' matches any run of characters."""
        url_filter = UrlExcludeFilter(["*/drafts/*"])
        assert url_filter.should_include("https://example.com/drafts/a.html") is False
        assert url_filter.should_include("https://example.com/posts/a.html") is True

    def test_wildcard_question_mark_and_literal_dot(self):
        """Test '?' matches one character and other characters are literal."""
        url_filter = UrlExcludeFilter(["https://example.com/a.?"])
        assert url_filter.should_include("https://example.com/a.b") is False
        assert url_filter.should_include("https://example.com/aXb") is True

    def test_regex_characters_are_literal(self):
        """Test regex metacharacters in patterns are escaped."""
        url_filter = UrlExcludeFilter(["https://example.com/(a+b)*"])
        assert url_filter.should_include("https://example.com/(a+b)/x") is False
        assert url_filter.should_include("https://example.com/aab/x") is True

    def test_default_sitemap_patterns(self):
        """Test the default patterns keep sitemap artifacts out."""
        url_filter = UrlExcludeFilter(["*/sitemap*.xml", "*/sitemap*.txt", "*/sitemap*.xml.gz"])
        assert url_filter.should_include("https://example.com/sitemap-2.xml") is False
        assert url_filter.should_include("https://example.com/sitemap.xml.gz") is False
        assert url_filter.should_include("https://example.com/index.html") is True


class TestArtifactGuard:
    """Tests for the pre-write guard."""

    def test_sitemap_file(self):
        """Test sitemap artifacts are rejected."""
        guard = ArtifactGuard([".zip"])
        assert guard.reason("https://example.com/sitemap.xml") == "sitemap file"
        assert guard.reason("https://example.com/sitemap-index.xml") == "sitemap file"

    def test_custom_artifact_name(self):
        """Test configured artifact filenames are rejected too."""
        guard = ArtifactGuard([], ["pages.xml"])
        assert guard.reason("https://example.com/pages.xml") == "sitemap file"

    def test_excluded_extension(self):
        """Test excluded extensions are rejected case-insensitively."""
        guard = ArtifactGuard([".zip", ".exe"])
        assert guard.reason("https://example.com/files/App.ZIP") == "has excluded extension: .zip"

    def test_regular_page(self):
        """Test regular pages pass."""
        guard = ArtifactGuard([".zip"])
        assert guard.reason("https://example.com/about.html") is None


class TestLastmodResolver:
    """Tests for lastmod strategies."""

    @pytest.fixture
    def page(self, tmp_path):
        return write(tmp_path / "index.html", "<html></html>")

    def test_git_uses_commit_time(self, page):
        """Test the git strategy returns the last commit time."""
        committed = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
        lookup = MagicMock(return_value=committed)
        resolver = LastmodResolver(LastmodStrategy.GIT, commit_time=lookup)

        assert resolver.resolve(page) == committed
        lookup.assert_called_once_with(page)

    def test_git_falls_back_to_mtime(self, page):
        """Test untracked files fall back to their mtime."""
        resolver = LastmodResolver("git", commit_time=MagicMock(return_value=None))
        expected = datetime.fromtimestamp(page.stat().st_mtime, tz=timezone.utc)
        assert resolver.resolve(page) == expected

    def test_filemtime(self, page):
        """Test filemtime never consults git."""
        lookup = MagicMock()
        resolver = LastmodResolver(LastmodStrategy.FILEMTIME, commit_time=lookup)

        assert resolver.resolve(page) == file_mtime(page)
        lookup.assert_not_called()

    def test_current_is_computed_once(self, page, tmp_path):
        """Test current returns the same generation time for every file."""
        now = datetime(2025, 6, 1, tzinfo=timezone.utc)
        resolver = LastmodResolver(LastmodStrategy.CURRENT, now=now)
        other = write(tmp_path / "other.html")

        assert resolver.resolve(page) == now
        assert resolver.resolve(other) == now

    def test_none(self, page):
        """Test none yields no lastmod."""
        assert LastmodResolver(LastmodStrategy.NONE).resolve(page) is None

    def test_unknown_strategy(self, page):
        """Test an unrecognized strategy yields no lastmod."""
        resolver = LastmodResolver("weekly")
        assert resolver.strategy is None
        assert resolver.resolve(page) is None

    def test_file_mtime_missing_file(self, tmp_path):
        """Test a missing file has no mtime."""
        assert file_mtime(tmp_path / "missing.html") is None
