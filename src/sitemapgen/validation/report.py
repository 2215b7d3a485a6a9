"""Validation findings and per-file / batch reports."""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Optional

from ..exceptions import ProtocolViolation
from ..models.items import DocumentKind


class Severity(str, Enum):
    """Severity of a validation finding."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


@dataclass(frozen=True)
class ValidationFinding:
    """A single validation result line."""

    severity: Severity
    message: str


def format_file_size(size: int) -> str:
    """
    Format a byte count for humans.

    Example:
        >>> format_file_size(1536)
        '1.50 KB'
    """
    if size < 1024:
        return f"{size} B"
    if size < 1024 * 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size / (1024 * 1024):.2f} MB"


@dataclass
class FileReport:
    """
    Validation outcome for one sitemap file or in-memory document.

    Attributes:
        path: File that was validated
        exists: Whether the file was found
        kind: Detected document kind (None when unknown)
        size: Size in bytes as stored on disk
        findings: Ordered findings of every severity
    """

    path: Path
    exists: bool = True
    kind: Optional[DocumentKind] = None
    size: int = 0
    findings: list[ValidationFinding] = field(default_factory=list)

    def add(self, severity: Severity, message: str) -> None:
        self.findings.append(ValidationFinding(severity, message))

    def _messages(self, severity: Severity) -> list[str]:
        return [f.message for f in self.findings if f.severity == severity]

    @property
    def errors(self) -> list[str]:
        return self._messages(Severity.ERROR)

    @property
    def warnings(self) -> list[str]:
        return self._messages(Severity.WARNING)

    @property
    def infos(self) -> list[str]:
        return self._messages(Severity.INFO)

    @property
    def is_valid(self) -> bool:
        """A file is valid when no finding is an error."""
        return not self.errors

    @property
    def size_formatted(self) -> str:
        return format_file_size(self.size)


@dataclass
class BatchReport:
    """Aggregate of several FileReports."""

    files: list[FileReport] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return all(report.is_valid for report in self.files)

    @property
    def error_count(self) -> int:
        return sum(len(report.errors) for report in self.files)

    @property
    def warning_count(self) -> int:
        return sum(len(report.warnings) for report in self.files)

    @property
    def errors(self) -> list[str]:
        """Every error message, prefixed with its file path."""
        return [f"{report.path}: {message}" for report in self.files for message in report.errors]

    def raise_for_errors(self) -> None:
        """
        Raise if any file has errors.

        Raises:
            ProtocolViolation: Carrying every error message
        """
        if not self.valid:
            raise ProtocolViolation(self.errors)
