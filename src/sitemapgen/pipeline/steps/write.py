"""WriteStep - artifact writing pipeline step."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ...exceptions import ArtifactWriteError
from ...models.events import EventType, SitemapEvent
from ..base import ArtifactContext, EventEmitter

logger = logging.getLogger(__name__)


def validate_output_path(output_path: Path, base_output_dir: Optional[Path]) -> Path:
    """
    Validate that an output path is inside the base directory.

    Returns:
        Resolved absolute path

    Raises:
        ValueError: If path is outside base directory (if configured)
    """
    resolved = output_path.resolve()

    if base_output_dir is not None:
        base_resolved = base_output_dir.resolve()
        try:
            resolved.relative_to(base_resolved)
        except ValueError as err:
            raise ValueError(f"Output path {resolved} is outside base directory {base_resolved}") from err

    return resolved


class WriteStep:
    """
    Pipeline step that writes the rendered document to disk.

    Creates parent directories as needed.

    Example:
        write_step = WriteStep(base_output_dir=Path("dist"))

        ctx = await write_step.execute(ctx)
        print(f"Wrote {ctx.written[0]}")
    """

    name = "write"

    def __init__(self, base_output_dir: Optional[Path] = None) -> None:
        """
        Initialize the write step.

        Args:
            base_output_dir: Optional base directory for output path validation.
                            If set, output paths must be within this directory.
        """
        self._base_output_dir = base_output_dir

    async def execute(
        self,
        ctx: ArtifactContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArtifactContext:
        """
        Execute the write step.

        Raises:
            ArtifactWriteError: If the path is rejected or the write fails
        """
        document = ctx.document
        data = document.data

        try:
            validated_path = validate_output_path(document.path, self._base_output_dir)
            validated_path.parent.mkdir(parents=True, exist_ok=True)
            await asyncio.to_thread(validated_path.write_bytes, data)
        except (ValueError, OSError) as e:
            logger.error(f"Failed to write {document.path}: {e}")
            raise ArtifactWriteError(document.path, str(e)) from e

        ctx.written.append(validated_path)
        logger.info(f"Wrote {document.kind.value} sitemap: {validated_path} ({document.url_count} URLs)")

        if emit:
            emit(
                SitemapEvent(
                    type=EventType.ARTIFACT_WRITTEN,
                    path=validated_path,
                    total=document.url_count,
                    size=len(data),
                    message=f"Wrote {validated_path.name}",
                )
            )

        return ctx
