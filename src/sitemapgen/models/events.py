"""Event types for the streaming generation API."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from pathlib import Path
from typing import Optional


class EventType(str, Enum):
    """Types of events emitted during a sitemap run."""

    # Lifecycle events
    STARTED = "started"
    COMPLETED = "completed"
    FAILED = "failed"
    CONFIG_PROBLEM = "config_problem"

    # Collection phase
    COLLECTION_STARTED = "collection_started"
    LIMIT_REACHED = "limit_reached"
    URLS_EXCLUDED = "urls_excluded"
    COLLECTION_COMPLETE = "collection_complete"

    # Output phase
    CHUNKS_PLANNED = "chunks_planned"
    ARTIFACT_WRITTEN = "artifact_written"
    ARTIFACT_COMPRESSED = "artifact_compressed"
    ARTIFACT_FAILED = "artifact_failed"

    # Validation phase
    VALIDATION_FINDING = "validation_finding"
    VALIDATION_COMPLETE = "validation_complete"


@dataclass
class SitemapEvent:
    """
    Event emitted during a sitemap run.

    Example:
        async for event in generator.run():
            if event.type == EventType.ARTIFACT_WRITTEN:
                print(f"Wrote {event.path} ({event.total} URLs)")
            elif event.type == EventType.VALIDATION_FINDING:
                print(f"{event.severity}: {event.message}")
    """

    type: EventType

    # Timestamp (always UTC)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    message: Optional[str] = None
    error: Optional[str] = None

    # Typed payload fields
    path: Optional[Path] = None
    total: Optional[int] = None
    size: Optional[int] = None
    severity: Optional[str] = None  # info | warning | error for validation findings

    @property
    def is_error(self) -> bool:
        """Check if this event signals a failure."""
        if self.type in (EventType.FAILED, EventType.ARTIFACT_FAILED):
            return True
        return self.type == EventType.VALIDATION_FINDING and self.severity == "error"


@dataclass
class RunStats:
    """Cumulative statistics for a sitemap run, available on completion."""

    files_walked: int = 0
    files_skipped: int = 0
    canonical_urls: int = 0
    links_discovered: int = 0
    manual_urls: int = 0
    urls_excluded: int = 0
    urls_total: int = 0
    chunks: int = 0
    artifacts_written: int = 0
    artifacts_failed: int = 0
    validation_errors: int = 0
    validation_warnings: int = 0
    duration_seconds: float = 0.0

    @property
    def failed(self) -> bool:
        """A run fails on any artifact write failure or validation error."""
        return self.artifacts_failed > 0 or self.validation_errors > 0

    def to_dict(self) -> dict:
        """Convert stats to dictionary for serialization."""
        return {
            "files_walked": self.files_walked,
            "files_skipped": self.files_skipped,
            "canonical_urls": self.canonical_urls,
            "links_discovered": self.links_discovered,
            "manual_urls": self.manual_urls,
            "urls_excluded": self.urls_excluded,
            "urls_total": self.urls_total,
            "chunks": self.chunks,
            "artifacts_written": self.artifacts_written,
            "artifacts_failed": self.artifacts_failed,
            "validation_errors": self.validation_errors,
            "validation_warnings": self.validation_warnings,
            "duration_seconds": round(self.duration_seconds, 2),
        }
