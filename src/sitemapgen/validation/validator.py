"""
Heuristic sitemap validation against the sitemaps.org protocol.

Documents are inspected as raw text with regexes and substring checks.
Input may be semi-trusted or malformed, so nothing here parses XML and
nothing raises on bad content; every problem becomes a finding.
"""

import gzip
import logging
import re
import zlib
from collections.abc import Iterable
from pathlib import Path
from typing import Optional, Union
from xml.sax.saxutils import unescape

from ..models.config import MAX_URLS_PER_SITEMAP, SITEMAP_NAMESPACE, ChangeFreq
from ..models.items import DocumentKind
from .report import BatchReport, FileReport, Severity, format_file_size

logger = logging.getLogger(__name__)

MAX_URL_LENGTH = 2048
DEFAULT_MAX_SIZE = 50 * 1024 * 1024
GZIP_MAGIC = b"\x1f\x8b"

VALID_CHANGEFREQ = tuple(freq.value for freq in ChangeFreq)
NAMESPACE_ATTR = f'xmlns="{SITEMAP_NAMESPACE}"'

_HTTP = re.compile(r"^https?://", re.IGNORECASE)
_URLSET_OPEN = re.compile(r"<urlset[\s>]", re.IGNORECASE)
_URLSET_CLOSE = re.compile(r"</urlset>", re.IGNORECASE)
_INDEX_OPEN = re.compile(r"<sitemapindex[\s>]", re.IGNORECASE)
_INDEX_CLOSE = re.compile(r"</sitemapindex>", re.IGNORECASE)
_URL_OPEN = re.compile(r"<url>", re.IGNORECASE)
_URL_CLOSE = re.compile(r"</url>", re.IGNORECASE)
_URL_ENTRY = re.compile(r"<url>(.*?)</url>", re.IGNORECASE | re.DOTALL)
_SITEMAP_ENTRY = re.compile(r"<sitemap>(.*?)</sitemap>", re.IGNORECASE | re.DOTALL)
_LOC = re.compile(r"<loc>(.*?)</loc>", re.IGNORECASE | re.DOTALL)
_CHANGEFREQ = re.compile(r"<changefreq>(.*?)</changefreq>", re.IGNORECASE | re.DOTALL)
_PRIORITY = re.compile(r"<priority>(.*?)</priority>", re.IGNORECASE | re.DOTALL)


def _is_valid_loc(url: str) -> bool:
    return bool(_HTTP.match(url)) and len(url) < MAX_URL_LENGTH


def _is_valid_priority(text: str) -> bool:
    try:
        value = float(text)
    except ValueError:
        return False
    return 0.0 <= value <= 1.0


def _txt_lines(content: str) -> list[str]:
    return [line for line in content.splitlines() if line.strip()]


def detect_kind(filename: str, content: str) -> Optional[DocumentKind]:
    """
    Classify a sitemap by filename, falling back to content sniffing.

    Args:
        filename: File name (any case)
        content: Decoded document text

    Returns:
        The detected kind, or None when it cannot be determined

    Example:
        >>> detect_kind("sitemap-index.xml", "")
        <DocumentKind.INDEX: 'index'>
    """
    name = filename.lower()
    if name.endswith(".txt"):
        return DocumentKind.TXT
    if "sitemap" in name and name.endswith((".xml", ".gz")):
        if "sitemap-index" in name or "sitemapindex" in name:
            return DocumentKind.INDEX
        return DocumentKind.XML

    if _INDEX_OPEN.search(content):
        return DocumentKind.INDEX
    if "<?xml" in content or "<urlset" in content:
        return DocumentKind.XML
    lines = _txt_lines(content)
    if lines and all(_HTTP.match(line) for line in lines):
        return DocumentKind.TXT
    return None


def read_sitemap_bytes(data: bytes) -> str:
    """
    Decode stored sitemap bytes, decompressing gzip transparently.

    Raises:
        OSError: If gzip data is corrupt
        UnicodeDecodeError: If the text is not UTF-8
    """
    if data.startswith(GZIP_MAGIC):
        data = gzip.decompress(data)
    return data.decode("utf-8")


class SitemapValidator:
    """
    Validate sitemap documents with strict or lenient severity.

    Protocol violations are errors in strict mode and warnings otherwise;
    sections whose checks all pass produce an info finding.

    Example:
        validator = SitemapValidator(strict=True)
        report = validator.validate_file(Path("dist/sitemap.xml"))
        for message in report.errors:
            print(message)
    """

    def __init__(
        self,
        strict: bool = False,
        max_urls: int = MAX_URLS_PER_SITEMAP,
        max_size: int = DEFAULT_MAX_SIZE,
    ):
        """
        Initialize the validator.

        Args:
            strict: Escalate protocol violations to errors
            max_urls: Maximum entries per document
            max_size: Maximum stored file size in bytes
        """
        self.strict = strict
        self.max_urls = max_urls
        self.max_size = max_size

    @property
    def violation(self) -> Severity:
        """Severity used for protocol violations."""
        return Severity.ERROR if self.strict else Severity.WARNING

    # Content checks

    def _check_root(self, report: FileReport, content: str, tag: str, opener: re.Pattern, closer: re.Pattern) -> None:
        has_declaration = content.lstrip().startswith("<?xml")
        if has_declaration and opener.search(content) and closer.search(content):
            report.add(Severity.INFO, "Valid XML format")
        else:
            report.add(self.violation, f"Invalid XML structure (missing <?xml>, <{tag}>, or </{tag}>)")

    def _check_namespace(self, report: FileReport, content: str) -> None:
        if NAMESPACE_ATTR in content:
            report.add(Severity.INFO, "Sitemap namespace present")
        else:
            report.add(self.violation, f"Missing required namespace: {NAMESPACE_ATTR}")

    def _check_count(self, report: FileReport, count: int, noun: str) -> None:
        if count == 0:
            report.add(Severity.WARNING, f"No {noun} found in sitemap")
        elif count > self.max_urls:
            report.add(self.violation, f"Exceeds {noun} limit: {count} (max: {self.max_urls})")
        else:
            report.add(Severity.INFO, f"Contains {count} {noun}")

    def _check_locs(self, report: FileReport, locs: list[str]) -> None:
        if not locs:
            return
        invalid = sum(1 for loc in locs if not _is_valid_loc(loc))
        if invalid:
            report.add(
                self.violation,
                f"Contains {invalid} invalid URL(s) (must start with http/https and be < 2,048 chars)",
            )
        else:
            report.add(Severity.INFO, "All URLs are valid")

    def _check_optional_elements(self, report: FileReport, content: str) -> None:
        freqs = [m.strip() for m in _CHANGEFREQ.findall(content)]
        if freqs:
            invalid = sum(1 for freq in freqs if freq not in VALID_CHANGEFREQ)
            if invalid:
                report.add(
                    self.violation,
                    f"Contains {invalid} invalid <changefreq> value(s) (valid: {', '.join(VALID_CHANGEFREQ)})",
                )
            else:
                report.add(Severity.INFO, "Valid <changefreq> values")

        priorities = [m.strip() for m in _PRIORITY.findall(content)]
        if priorities:
            invalid = sum(1 for pr in priorities if not _is_valid_priority(pr))
            if invalid:
                report.add(self.violation, f"Contains {invalid} invalid <priority> value(s) (must be 0.0-1.0)")
            else:
                report.add(Severity.INFO, "Valid <priority> values")

    def _validate_urlset(self, report: FileReport, content: str) -> None:
        self._check_root(report, content, "urlset", _URLSET_OPEN, _URLSET_CLOSE)
        self._check_namespace(report, content)

        entries = _URL_ENTRY.findall(content)
        opened = len(_URL_OPEN.findall(content))
        if opened != len(_URL_CLOSE.findall(content)):
            report.add(self.violation, "Unbalanced <url> tags")
        elif any(not _LOC.search(entry) for entry in entries):
            report.add(self.violation, "Missing required <loc> tags")
        elif entries:
            report.add(Severity.INFO, "Every <url> has a <loc>")

        self._check_count(report, opened, "URLs")
        self._check_locs(report, [unescape(m.strip()) for m in _LOC.findall(content)])
        self._check_optional_elements(report, content)

    def _validate_index(self, report: FileReport, content: str) -> None:
        self._check_root(report, content, "sitemapindex", _INDEX_OPEN, _INDEX_CLOSE)
        self._check_namespace(report, content)

        entries = _SITEMAP_ENTRY.findall(content)
        locs = []
        missing = 0
        for entry in entries:
            match = _LOC.search(entry)
            if match:
                locs.append(unescape(match.group(1).strip()))
            else:
                missing += 1
        if missing:
            report.add(self.violation, f"{missing} <sitemap> entr{'y' if missing == 1 else 'ies'} without <loc>")
        elif entries:
            report.add(Severity.INFO, "Every <sitemap> has a <loc>")

        self._check_count(report, len(entries), "sitemaps")
        self._check_locs(report, locs)

    def _validate_txt(self, report: FileReport, content: str) -> None:
        lines = _txt_lines(content)
        self._check_count(report, len(lines), "URLs")
        self._check_locs(report, lines)

    def validate_content(self, content: str, kind: DocumentKind, path: Optional[Path] = None) -> FileReport:
        """
        Validate a decoded document of a known kind.

        Args:
            content: Document text
            kind: How to interpret it
            path: Where it came from (for reporting)

        Returns:
            FileReport with one finding per check; a compliance summary
            info is appended when no violation was found
        """
        report = FileReport(path=Path(path or "<memory>"), kind=kind, size=len(content.encode("utf-8")))
        self._validate(report, content)
        return report

    def _validate(self, report: FileReport, content: str) -> None:
        if report.kind == DocumentKind.XML:
            self._validate_urlset(report, content)
        elif report.kind == DocumentKind.INDEX:
            self._validate_index(report, content)
        elif report.kind == DocumentKind.TXT:
            self._validate_txt(report, content)
        else:
            report.add(Severity.WARNING, "Unknown sitemap type (expected sitemap.xml, sitemap.txt, or sitemap-index.xml)")
            return

        if not report.errors and not report.warnings:
            report.add(Severity.INFO, "Valid sitemap format (sitemaps.org compliant)")

    def check_size(self, report: FileReport, size: int) -> None:
        """Record a size finding for a stored file."""
        report.size = size
        if size > self.max_size:
            report.add(
                self.violation,
                f"File exceeds {format_file_size(self.max_size)} limit ({format_file_size(size)})",
            )

    def validate_size(self, path: Union[str, Path]) -> FileReport:
        """Check only existence and stored size of a file (used for compressed copies)."""
        path = Path(path)
        report = FileReport(path=path)
        try:
            size = path.stat().st_size
        except OSError as e:
            report.exists = False
            report.add(Severity.ERROR, f"Failed to read file stats: {e}")
            return report
        self.check_size(report, size)
        return report

    def validate_file(self, path: Union[str, Path], kind: Optional[DocumentKind] = None) -> FileReport:
        """
        Validate an existing sitemap file.

        Missing files and read failures become error findings. Gzip
        content is decompressed by magic bytes before inspection.

        Args:
            path: File to validate
            kind: Known document kind (detected from name and content if omitted)

        Returns:
            FileReport for the file
        """
        path = Path(path)
        report = FileReport(path=path)

        if not path.is_file():
            report.exists = False
            report.add(Severity.ERROR, f"File not found: {path}")
            return report

        try:
            data = path.read_bytes()
        except OSError as e:
            report.add(Severity.ERROR, f"Failed to read file: {e}")
            return report

        self.check_size(report, len(data))

        try:
            content = read_sitemap_bytes(data)
        except (OSError, EOFError, zlib.error) as e:
            report.add(Severity.ERROR, f"Failed to decompress file: {e}")
            return report
        except UnicodeDecodeError as e:
            report.add(Severity.ERROR, f"File is not valid UTF-8: {e}")
            return report

        report.kind = kind or detect_kind(path.name, content)
        self._validate(report, content)
        logger.debug(f"Validated {path}: {len(report.errors)} error(s), {len(report.warnings)} warning(s)")
        return report

    def validate_files(self, paths: Iterable[Union[str, Path]]) -> BatchReport:
        """
        Validate several files and aggregate the results.

        Returns:
            BatchReport; valid only if no file has errors
        """
        return BatchReport(files=[self.validate_file(p) for p in paths])
