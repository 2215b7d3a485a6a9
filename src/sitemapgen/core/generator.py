"""Main SitemapGenerator class with streaming event API."""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import AsyncIterator
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

from ..discovery import CollectionResult, LastmodResolver, UrlCollector, is_http_url, path_to_url
from ..exceptions import ConfigurationError, ProtocolViolation
from ..models.config import MAX_URLS_PER_SITEMAP, LastmodStrategy, SitemapConfig
from ..models.events import EventType, RunStats, SitemapEvent
from ..models.items import DocumentKind, IndexEntry, SitemapChunk, SitemapDocument
from ..output import chunk_items, generation_header, numbered_filename, render_index, render_txt, render_urlset
from ..pipeline.base import ArtifactContext, ArtifactPipeline, ArtifactStep
from ..pipeline.steps import GzipStep, ValidateStep, WriteStep
from ..validation import BatchReport, FileReport, Severity, SitemapValidator
from ..vcs import git_last_commit_time

logger = logging.getLogger(__name__)

VALID_STRATEGIES = ", ".join(s.value for s in LastmodStrategy)


class SitemapGenerator:
    """
    Primary API for sitemapgen - streaming events.

    The generator walks the content root, assembles the URL collection,
    writes every sitemap artifact and validates what was written,
    yielding events as it goes.

    Example:
        config = build_config(site_url="https://example.com/", public_dir="dist")

        generator = SitemapGenerator(config)
        async for event in generator.run():
            if event.type == EventType.ARTIFACT_WRITTEN:
                print(f"Wrote {event.path}")
            elif event.is_error:
                print(f"Error: {event.message or event.error}")

        print(f"Stats: {generator.stats.to_dict()}")
    """

    def __init__(
        self,
        config: SitemapConfig,
        commit_time: Callable[[Path], datetime | None] = git_last_commit_time,
        now: datetime | None = None,
    ):
        """
        Initialize the generator.

        Args:
            config: Validated configuration
            commit_time: Lookup used by the git lastmod strategy
            now: Generation time (defaults to the current UTC time)
        """
        self.config = config
        self._now = now or datetime.now(timezone.utc)
        self._commit_time = commit_time
        self._stats = RunStats()
        self._reports: list[FileReport] = []
        self._collection: CollectionResult | None = None
        self._start_time: float | None = None

    @property
    def stats(self) -> RunStats:
        """Get current run statistics."""
        return self._stats

    @property
    def reports(self) -> list[FileReport]:
        """Validation reports of every written and external file."""
        return self._reports

    @property
    def collection(self) -> CollectionResult | None:
        """The collected URLs, available once collection finished."""
        return self._collection

    @property
    def generated_at(self) -> datetime:
        return self._now

    def _config_events(self) -> list[SitemapEvent]:
        """Advisories and non-fatal problems found in the configuration."""
        entries = self.config.entries
        events = []

        strategy = entries.strategy
        if strategy is None:
            message = f'Invalid lastmod_strategy: "{entries.lastmod_strategy}". Valid values: {VALID_STRATEGIES}'
            logger.error(message)
            events.append(SitemapEvent(type=EventType.CONFIG_PROBLEM, severity="error", message=message))
        elif strategy == LastmodStrategy.CURRENT:
            message = (
                'lastmod_strategy "current" sets every page to the build time, which does not help '
                'search engines find updated content; consider "git" or "filemtime"'
            )
            logger.warning(message)
            events.append(SitemapEvent(type=EventType.CONFIG_PROBLEM, severity="warning", message=message))
        elif strategy == LastmodStrategy.NONE:
            message = 'lastmod_strategy "none" omits <lastmod> entirely; consider "git" or "filemtime"'
            logger.warning(message)
            events.append(SitemapEvent(type=EventType.CONFIG_PROBLEM, severity="warning", message=message))

        if entries.priority is not None:
            message = "Priority specified; Google ignores <priority> values"
            logger.warning(message)
            events.append(SitemapEvent(type=EventType.CONFIG_PROBLEM, severity="warning", message=message))

        return events

    def _check_additional_urls(self) -> SitemapEvent | None:
        """In strict mode, reject manual URLs that are not http(s) before anything is merged."""
        if not self.config.validation.strict:
            return None
        invalid = [url for url in self.config.discovery.additional_urls if not is_http_url(url)]
        if not invalid:
            return None
        message = f"Contains {len(invalid)} invalid URL(s) in additional_urls (must start with http/https)"
        logger.error(message)
        self._stats.validation_errors += 1
        return SitemapEvent(type=EventType.VALIDATION_FINDING, severity=Severity.ERROR.value, message=message)

    def _collect(self) -> CollectionResult:
        resolver = LastmodResolver(self.config.entries.strategy, commit_time=self._commit_time, now=self._now)
        result = UrlCollector(self.config, resolver).collect()

        self._stats.files_walked = result.files_walked
        self._stats.files_skipped = result.files_skipped
        self._stats.canonical_urls = result.canonical_urls
        self._stats.links_discovered = result.links_discovered
        self._stats.manual_urls = result.manual_urls
        self._stats.urls_excluded = result.urls_excluded + len(result.guarded)
        self._stats.urls_total = len(result.items)
        return result

    def _xml_documents(self, chunks: list[SitemapChunk], header: str) -> list[SitemapDocument]:
        out_dir = self.config.output_dir
        filename = self.config.output.filename
        if len(chunks) == 1:
            chunk = chunks[0]
            return [SitemapDocument(DocumentKind.XML, out_dir / filename, render_urlset(chunk.items, header), len(chunk))]
        return [
            SitemapDocument(
                DocumentKind.XML,
                out_dir / numbered_filename(filename, chunk.number),
                render_urlset(chunk.items, header),
                len(chunk),
            )
            for chunk in chunks
        ]

    def _txt_documents(self, chunks: list[SitemapChunk]) -> list[SitemapDocument]:
        out_dir = self.config.output_dir
        filename = self.config.output.txt_filename
        if len(chunks) == 1:
            chunk = chunks[0]
            return [SitemapDocument(DocumentKind.TXT, out_dir / filename, render_txt(chunk.items), len(chunk))]
        return [
            SitemapDocument(
                DocumentKind.TXT,
                out_dir / numbered_filename(filename, chunk.number),
                render_txt(chunk.items),
                len(chunk),
            )
            for chunk in chunks
        ]

    def _index_document(self, xml_documents: list[SitemapDocument], header: str) -> SitemapDocument:
        public_dir = self.config.public_dir.resolve()
        if not self.config.output_dir.resolve().is_relative_to(public_dir):
            raise ConfigurationError(
                f"output.directory: must be inside public_dir ({public_dir}) when sitemaps are split into an index"
            )
        entries = [
            IndexEntry(loc=path_to_url(self.config.site_url, self.config.public_dir, doc.path), lastmod=self._now)
            for doc in xml_documents
        ]
        path = self.config.output_dir / self.config.output.index_filename
        return SitemapDocument(DocumentKind.INDEX, path, render_index(entries, header), len(entries))

    def plan_documents(self, chunks: list[SitemapChunk]) -> dict[DocumentKind, list[SitemapDocument]]:
        """
        Render every document for the given chunks, grouped by artifact type.

        An index is produced only for XML output split over several chunks.
        """
        output = self.config.output
        header = generation_header(self._now)
        plan: dict[DocumentKind, list[SitemapDocument]] = {}

        if output.generate_xml:
            plan[DocumentKind.XML] = self._xml_documents(chunks, header)
            if len(chunks) > 1:
                plan[DocumentKind.INDEX] = [self._index_document(plan[DocumentKind.XML], header)]
        if output.generate_txt:
            plan[DocumentKind.TXT] = self._txt_documents(chunks)
        return plan

    def _build_pipeline(self, kind: DocumentKind) -> ArtifactPipeline:
        output = self.config.output
        strict = self.config.validation.strict

        if kind == DocumentKind.TXT:
            validator = SitemapValidator(strict, max_urls=output.max_urls_per_file, max_size=output.txt_max_size)
        elif kind == DocumentKind.INDEX:
            validator = SitemapValidator(strict, max_urls=MAX_URLS_PER_SITEMAP, max_size=output.xml_max_size)
        else:
            validator = SitemapValidator(strict, max_urls=output.max_urls_per_file, max_size=output.xml_max_size)

        steps: list[ArtifactStep] = [WriteStep(base_output_dir=self.config.output_dir)]
        if output.generate_gzip and kind != DocumentKind.TXT:
            steps.append(GzipStep())
        steps.append(ValidateStep(validator))
        return ArtifactPipeline(steps=steps)

    async def _write_artifact_type(
        self,
        kind: DocumentKind,
        documents: list[SitemapDocument],
        events: list[SitemapEvent],
    ) -> list[ArtifactContext]:
        """Run one artifact type's documents through its pipeline in order."""
        pipeline = self._build_pipeline(kind)
        return [await pipeline.execute(document, emit=events.append) for document in documents]

    def _record(self, contexts: list[ArtifactContext]) -> None:
        for ctx in contexts:
            self._stats.artifacts_written += len(ctx.written)
            if ctx.error:
                self._stats.artifacts_failed += 1
            self._record_reports(ctx.reports)

    def _record_reports(self, reports: list[FileReport]) -> None:
        for report in reports:
            self._reports.append(report)
            self._stats.validation_errors += len(report.errors)
            self._stats.validation_warnings += len(report.warnings)

    def validate_external(self) -> BatchReport:
        """
        Validate the configured external sitemap files.

        Returns:
            BatchReport for validation.external_paths (empty if none)
        """
        validator = SitemapValidator(
            self.config.validation.strict,
            max_urls=MAX_URLS_PER_SITEMAP,
            max_size=self.config.output.xml_max_size,
        )
        return validator.validate_files(self.config.validation.external_paths)

    def _collection_events(self, result: CollectionResult) -> list[SitemapEvent]:
        events = []
        for limit in result.limits_reached:
            events.append(SitemapEvent(type=EventType.LIMIT_REACHED, message=f"{limit} limit reached"))
        excluded = result.urls_excluded + len(result.guarded)
        if excluded:
            events.append(
                SitemapEvent(type=EventType.URLS_EXCLUDED, total=excluded, message=f"Excluded {excluded} URL(s)")
            )
        if not result.items:
            logger.warning("No URLs discovered for sitemap")
        events.append(
            SitemapEvent(
                type=EventType.COLLECTION_COMPLETE,
                total=len(result.items),
                message=f"Collected {len(result.items)} URL(s)",
            )
        )
        return events

    async def run(self) -> AsyncIterator[SitemapEvent]:
        """
        Execute the run, yielding events.

        Events are yielded as they occur during:
        - configuration checks
        - URL collection
        - artifact writing, compression and validation
        - external file validation

        Yields:
            SitemapEvent objects for each significant operation

        Raises:
            ProtocolViolation: In strict mode, after every file has been
                validated, if any validation error was found
        """
        self._start_time = time.monotonic()

        yield SitemapEvent(
            type=EventType.STARTED,
            message=f"Generating sitemap for {self.config.site_url} from {self.config.public_dir}",
        )

        try:
            for event in self._config_events():
                yield event
            early = self._check_additional_urls()
            if early is not None:
                yield early

            # Phase 1: Collection
            yield SitemapEvent(type=EventType.COLLECTION_STARTED, message=f"Scanning {self.config.public_dir}")
            result = self._collect()
            self._collection = result
            for event in self._collection_events(result):
                yield event

            # Phase 2: Chunk, render and write
            chunks = chunk_items(result.items, self.config.output.max_urls_per_file)
            self._stats.chunks = len(chunks)
            yield SitemapEvent(
                type=EventType.CHUNKS_PLANNED,
                total=len(chunks),
                message=f"Writing {len(chunks)} chunk(s) of at most {self.config.output.max_urls_per_file} URLs",
            )

            plan = self.plan_documents(chunks)
            collected: dict[DocumentKind, list[SitemapEvent]] = {kind: [] for kind in plan}
            outcomes = await asyncio.gather(
                *(self._write_artifact_type(kind, docs, collected[kind]) for kind, docs in plan.items())
            )
            for kind, contexts in zip(plan, outcomes):
                self._record(contexts)
                for event in collected[kind]:
                    yield event

            # Phase 3: External validation
            if self.config.validation.external_paths:
                batch = await asyncio.to_thread(self.validate_external)
                self._record_reports(batch.files)
                for report in batch.files:
                    for finding in report.findings:
                        yield SitemapEvent(
                            type=EventType.VALIDATION_FINDING,
                            path=report.path,
                            severity=finding.severity.value,
                            message=finding.message,
                        )

            yield SitemapEvent(
                type=EventType.VALIDATION_COMPLETE,
                total=len(self._reports),
                message=(
                    f"Validated {len(self._reports)} file(s): {self._stats.validation_errors} error(s), "
                    f"{self._stats.validation_warnings} warning(s)"
                ),
            )

            if self.config.validation.strict and self._stats.validation_errors:
                errors = [f"{report.path}: {message}" for report in self._reports for message in report.errors]
                raise ProtocolViolation(errors or ["additional_urls contains invalid URLs"])

            self._stats.duration_seconds = time.monotonic() - self._start_time

            yield SitemapEvent(
                type=EventType.COMPLETED,
                message=(
                    f"Sitemap generation completed: {self._stats.urls_total} URL(s), "
                    f"{self._stats.artifacts_written} file(s) written, "
                    f"{self._stats.artifacts_failed} failed"
                ),
            )

        except Exception as e:
            self._stats.duration_seconds = time.monotonic() - self._start_time
            yield SitemapEvent(
                type=EventType.FAILED,
                error=str(e),
                message=f"Sitemap generation failed: {e}",
            )
            raise


def generate_blocking(
    config: SitemapConfig,
    on_event: Callable[[SitemapEvent], None] | None = None,
) -> RunStats:
    """
    Blocking generation with optional event callback.

    This is a convenience wrapper for sync code that can't use async/await.
    For async code, use the SitemapGenerator class directly.

    WARNING: Do not call from within an existing event loop. Use the async
    SitemapGenerator API instead.

    Args:
        config: Validated configuration
        on_event: Optional callback for events (for progress tracking)

    Returns:
        RunStats of the finished run

    Raises:
        ProtocolViolation: In strict mode, if validation found errors
    """
    # Detect if we're already in an async context
    try:
        asyncio.get_running_loop()
        raise RuntimeError("generate_blocking() called from async context. Use SitemapGenerator.run() instead.")
    except RuntimeError as e:
        if "no running event loop" not in str(e).lower():
            raise

    generator = SitemapGenerator(config)

    async def _run() -> RunStats:
        async for event in generator.run():
            if on_event:
                on_event(event)
        return generator.stats

    return asyncio.run(_run())
