"""Exception hierarchy for sitemapgen."""

from pathlib import Path
from typing import Any, Optional, Union


class SitemapError(Exception):
    """Base exception for sitemapgen with optional debugging context."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        """
        Initialize exception with message and context.

        Args:
            message: Error message
            context: Optional context dictionary for debugging
        """
        self.message = message
        self.context = context or {}
        super().__init__(message)


class ConfigurationError(SitemapError):
    """
    Raised when a required setting is missing or invalid.

    Carries every problem found during the validation pass so that a
    user sees all of them at once instead of fixing one per run.
    """

    def __init__(self, problems: Union[str, list[str]]) -> None:
        if isinstance(problems, str):
            problems = [problems]
        self.problems = list(problems)
        message = "Invalid configuration: " + "; ".join(self.problems)
        super().__init__(message, context={"problems": self.problems})


class DiscoveryError(SitemapError):
    """Raised when a single candidate file cannot be read or parsed."""

    def __init__(self, message: str, path: Optional[Path] = None) -> None:
        context: dict[str, Any] = {}
        if path is not None:
            context["path"] = str(path)
        self.path = path
        super().__init__(message, context=context)


class LimitExceeded(SitemapError):
    """Raised when a hard cap (discovered links, total URLs, file size) is reached."""

    def __init__(self, limit_name: str, limit: int) -> None:
        self.limit_name = limit_name
        self.limit = limit
        super().__init__(
            f"{limit_name} limit reached ({limit})",
            context={"limit_name": limit_name, "limit": limit},
        )


class ProtocolViolation(SitemapError):
    """Raised when strict validation found protocol errors."""

    def __init__(self, errors: list[str]) -> None:
        self.errors = list(errors)
        super().__init__(
            f"Sitemap validation failed with {len(self.errors)} error(s)",
            context={"errors": self.errors},
        )


class ArtifactWriteError(SitemapError):
    """Raised when an output artifact cannot be written."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to write {path}: {reason}", context={"path": str(path)})
