"""GzipStep - compressed copy pipeline step."""

import asyncio
import logging
from pathlib import Path
from typing import Optional

from ...exceptions import ArtifactWriteError
from ...models.events import EventType, SitemapEvent
from ...output.renderers import gzip_bytes
from ..base import ArtifactContext, EventEmitter

logger = logging.getLogger(__name__)


class GzipStep:
    """
    Pipeline step that writes a gzip copy next to the written document.

    The copy is named after the document with '.gz' appended
    (sitemap.xml -> sitemap.xml.gz) and is skipped when the write
    step produced nothing.
    """

    name = "gzip"

    async def execute(
        self,
        ctx: ArtifactContext,
        emit: Optional[EventEmitter] = None,
    ) -> ArtifactContext:
        """
        Execute the gzip step.

        Raises:
            ArtifactWriteError: If the compressed file cannot be written
        """
        if not ctx.written:
            return ctx

        source = ctx.written[0]
        gz_path = Path(f"{source}.gz")
        data = gzip_bytes(ctx.document.data)

        try:
            await asyncio.to_thread(gz_path.write_bytes, data)
        except OSError as e:
            logger.error(f"Failed to write {gz_path}: {e}")
            raise ArtifactWriteError(gz_path, str(e)) from e

        ctx.gzip_path = gz_path
        ctx.written.append(gz_path)
        logger.info(f"Compressed: {gz_path}")

        if emit:
            emit(
                SitemapEvent(
                    type=EventType.ARTIFACT_COMPRESSED,
                    path=gz_path,
                    total=ctx.document.url_count,
                    size=len(data),
                    message=f"Wrote {gz_path.name}",
                )
            )

        return ctx
