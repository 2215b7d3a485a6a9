"""Base classes for the artifact write pipeline."""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Protocol, runtime_checkable

from ..models.events import EventType, SitemapEvent
from ..models.items import SitemapDocument
from ..validation.report import FileReport

# Type alias for event emitter function
EventEmitter = Callable[[SitemapEvent], None]

logger = logging.getLogger(__name__)


@dataclass
class ArtifactContext:
    """
    Context object passed through pipeline steps.

    Holds all state for one rendered document as it is written,
    compressed and validated.

    Attributes:
        document: The rendered document and its target path
        written: Paths written so far (primary file first)
        gzip_path: Path of the compressed copy, if one was written
        reports: Validation reports for the written files
        should_skip: If True, remaining steps will be skipped
        error: Error message if an exception occurred
    """

    document: SitemapDocument

    written: list[Path] = field(default_factory=list)
    gzip_path: Optional[Path] = None
    reports: list[FileReport] = field(default_factory=list)

    # Status
    should_skip: bool = False
    skip_reason: Optional[str] = None
    error: Optional[str] = None

    @property
    def path(self) -> Path:
        return self.document.path


@runtime_checkable
class ArtifactStep(Protocol):
    """
    Protocol for pipeline steps.

    Error Handling Contract:
    - For expected skips: set ctx.should_skip = True and ctx.skip_reason
    - For unexpected failures: raise an exception
    - The pipeline will catch exceptions and set ctx.error
    - A step with always_run = True still runs after an earlier step failed
    """

    name: str

    async def execute(
        self,
        ctx: ArtifactContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArtifactContext:
        """
        Execute this pipeline step.

        Args:
            ctx: The artifact context with accumulated state
            emit: Optional callback to emit events

        Returns:
            The (possibly modified) artifact context
        """
        ...


@dataclass
class ArtifactPipeline:
    """
    Pipeline for processing one document through an ordered list of steps.

    Steps are executed in order. If a step sets ctx.should_skip = True,
    remaining steps are skipped. If a step raises an exception, the
    error is captured in ctx.error and only steps marked always_run
    still execute, so files written before the failure are validated.

    Example:
        pipeline = ArtifactPipeline(steps=[
            WriteStep(output_dir),
            GzipStep(),
            ValidateStep(validator),
        ])

        ctx = await pipeline.execute(document, emit=log_event)
        if ctx.error:
            logger.error(f"Failed: {ctx.error}")
    """

    steps: list[ArtifactStep]

    async def execute(
        self,
        document: SitemapDocument,
        emit: Optional[EventEmitter] = None,
    ) -> ArtifactContext:
        """
        Execute the pipeline for a document.

        Args:
            document: The rendered document to write
            emit: Optional callback for emitting events

        Returns:
            ArtifactContext with final state (check error for status)
        """
        ctx = ArtifactContext(document=document)

        for step in self.steps:
            if ctx.should_skip and not (ctx.error and getattr(step, "always_run", False)):
                continue

            try:
                ctx = await step.execute(ctx, emit)
            except Exception as e:
                if ctx.error:
                    logger.error(f"{step.name} failed after {ctx.error}: {e}")
                    continue
                ctx.error = f"{step.name}: {e}"
                ctx.should_skip = True

                if emit:
                    emit(
                        SitemapEvent(
                            type=EventType.ARTIFACT_FAILED,
                            path=document.path,
                            error=ctx.error,
                        )
                    )

        return ctx

    def add_step(self, step: ArtifactStep) -> "ArtifactPipeline":
        """
        Add a step to the pipeline (fluent API).

        Returns:
            Self for chaining
        """
        self.steps.append(step)
        return self
