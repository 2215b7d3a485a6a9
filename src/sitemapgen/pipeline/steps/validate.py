"""ValidateStep - protocol validation of written artifacts."""

import asyncio
import logging
from typing import Optional

from ...models.events import EventType, SitemapEvent
from ...validation.validator import SitemapValidator
from ..base import ArtifactContext, EventEmitter

logger = logging.getLogger(__name__)


class ValidateStep:
    """
    Pipeline step that validates every file written for the document.

    The primary file is read back from disk so the size limit applies to
    what was actually stored; a gzip copy only has its size checked.
    Findings are recorded on the context and emitted as events; they
    never raise.

    Example:
        validate_step = ValidateStep(SitemapValidator(strict=True))

        ctx = await validate_step.execute(ctx)
        for report in ctx.reports:
            print(report.path, report.errors)
    """

    name = "validate"
    always_run = True

    def __init__(self, validator: SitemapValidator) -> None:
        """
        Initialize the validation step.

        Args:
            validator: Validator configured with limits for this artifact type
        """
        self._validator = validator

    async def execute(
        self,
        ctx: ArtifactContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArtifactContext:
        """Execute the validation step."""
        for i, path in enumerate(ctx.written):
            if i == 0:
                report = await asyncio.to_thread(self._validator.validate_file, path, ctx.document.kind)
            else:
                report = await asyncio.to_thread(self._validator.validate_size, path)
            ctx.reports.append(report)
            logger.debug(f"Validated {path}: {len(report.errors)} error(s), {len(report.warnings)} warning(s)")

            if emit:
                for finding in report.findings:
                    emit(
                        SitemapEvent(
                            type=EventType.VALIDATION_FINDING,
                            path=path,
                            severity=finding.severity.value,
                            message=finding.message,
                        )
                    )

        return ctx
