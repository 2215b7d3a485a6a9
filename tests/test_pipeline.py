"""Tests for the artifact pipeline and its steps."""

import gzip
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from sitemapgen.exceptions import ArtifactWriteError
from sitemapgen.models import DocumentKind, EventType, SiteItem, SitemapDocument
from sitemapgen.output import render_urlset
from sitemapgen.pipeline import ArtifactContext, ArtifactPipeline, ArtifactStep
from sitemapgen.pipeline.steps import GzipStep, ValidateStep, WriteStep
from sitemapgen.pipeline.steps.write import validate_output_path
from sitemapgen.validation import SitemapValidator


def make_document(path: Path, kind: DocumentKind = DocumentKind.XML) -> SitemapDocument:
    items = [SiteItem(url="https://example.com/"), SiteItem(url="https://example.com/about.html")]
    return SitemapDocument(kind=kind, path=path, content=render_urlset(items), url_count=len(items))


class TestArtifactContext:
    """Tests for ArtifactContext dataclass."""

    def test_create_context(self, tmp_path):
        """Test creating an artifact context."""
        ctx = ArtifactContext(document=make_document(tmp_path / "sitemap.xml"))
        assert ctx.path == tmp_path / "sitemap.xml"
        assert ctx.written == []
        assert ctx.gzip_path is None
        assert ctx.should_skip is False
        assert ctx.error is None


class TestValidateOutputPath:
    """Tests for output path containment."""

    def test_inside_base(self, tmp_path):
        """Test paths inside the base directory are accepted."""
        assert validate_output_path(tmp_path / "sitemap.xml", tmp_path) == (tmp_path / "sitemap.xml").resolve()

    def test_outside_base(self, tmp_path):
        """Test paths escaping the base directory are rejected."""
        with pytest.raises(ValueError, match="outside base directory"):
            validate_output_path(tmp_path / ".." / "sitemap.xml", tmp_path)

    def test_no_base(self, tmp_path):
        """Test any path is accepted without a base directory."""
        assert validate_output_path(tmp_path / "x.xml", None) == (tmp_path / "x.xml").resolve()


class TestWriteStep:
    """Tests for WriteStep."""

    @pytest.mark.asyncio
    async def test_writes_file(self, tmp_path):
        """Test the document is written and an event emitted."""
        document = make_document(tmp_path / "out" / "sitemap.xml")
        ctx = ArtifactContext(document=document)
        emit = MagicMock()

        result = await WriteStep(tmp_path).execute(ctx, emit)

        written = (tmp_path / "out" / "sitemap.xml").resolve()
        assert result.written == [written]
        assert written.read_text(encoding="utf-8") == document.content
        event = emit.call_args[0][0]
        assert event.type == EventType.ARTIFACT_WRITTEN
        assert event.total == 2
        assert event.size == len(document.data)

    @pytest.mark.asyncio
    async def test_rejects_path_outside_base(self, tmp_path):
        """Test writes outside the output directory fail."""
        base = tmp_path / "public"
        base.mkdir()
        ctx = ArtifactContext(document=make_document(tmp_path / "sitemap.xml"))

        with pytest.raises(ArtifactWriteError):
            await WriteStep(base).execute(ctx)

        assert not (tmp_path / "sitemap.xml").exists()

    @pytest.mark.asyncio
    async def test_write_failure(self, tmp_path):
        """Test OS errors become ArtifactWriteError."""
        (tmp_path / "blocked").write_text("not a directory")
        ctx = ArtifactContext(document=make_document(tmp_path / "blocked" / "sitemap.xml"))

        with pytest.raises(ArtifactWriteError):
            await WriteStep(tmp_path).execute(ctx)


class TestGzipStep:
    """Tests for GzipStep."""

    @pytest.mark.asyncio
    async def test_compresses_written_file(self, tmp_path):
        """Test a .gz copy of the document is written."""
        document = make_document(tmp_path / "sitemap.xml")
        ctx = ArtifactContext(document=document, written=[tmp_path / "sitemap.xml"])
        emit = MagicMock()

        result = await GzipStep().execute(ctx, emit)

        gz_path = tmp_path / "sitemap.xml.gz"
        assert result.gzip_path == gz_path
        assert result.written == [tmp_path / "sitemap.xml", gz_path]
        assert gzip.decompress(gz_path.read_bytes()) == document.data
        assert emit.call_args[0][0].type == EventType.ARTIFACT_COMPRESSED

    @pytest.mark.asyncio
    async def test_nothing_written(self, tmp_path):
        """Test the step is a no-op without a written file."""
        ctx = ArtifactContext(document=make_document(tmp_path / "sitemap.xml"))
        result = await GzipStep().execute(ctx)
        assert result.gzip_path is None
        assert not (tmp_path / "sitemap.xml.gz").exists()


class TestValidateStep:
    """Tests for ValidateStep."""

    @pytest.mark.asyncio
    async def test_validates_written_files(self, tmp_path):
        """Test the primary file is fully validated and the copy size-checked."""
        document = make_document(tmp_path / "sitemap.xml")
        (tmp_path / "sitemap.xml").write_bytes(document.data)
        (tmp_path / "sitemap.xml.gz").write_bytes(gzip.compress(document.data))
        ctx = ArtifactContext(document=document, written=[tmp_path / "sitemap.xml", tmp_path / "sitemap.xml.gz"])
        events = []

        result = await ValidateStep(SitemapValidator(strict=True)).execute(ctx, events.append)

        primary, compressed = result.reports
        assert primary.kind == DocumentKind.XML
        assert primary.is_valid
        assert compressed.findings == []
        assert all(e.type == EventType.VALIDATION_FINDING for e in events)
        assert {e.severity for e in events} == {"info"}

    @pytest.mark.asyncio
    async def test_findings_emitted_with_severity(self, tmp_path):
        """Test violations surface as error events in strict mode."""
        path = tmp_path / "sitemap.txt"
        path.write_text("ftp://bad.example.com\n", encoding="utf-8")
        document = SitemapDocument(kind=DocumentKind.TXT, path=path, content="ftp://bad.example.com\n", url_count=1)
        ctx = ArtifactContext(document=document, written=[path])
        events = []

        await ValidateStep(SitemapValidator(strict=True)).execute(ctx, events.append)

        errors = [e for e in events if e.is_error]
        assert len(errors) == 1
        assert errors[0].path == path


class TestArtifactPipeline:
    """Tests for ArtifactPipeline."""

    def test_steps_satisfy_protocol(self):
        """Test the concrete steps implement ArtifactStep."""
        assert isinstance(WriteStep(), ArtifactStep)
        assert isinstance(GzipStep(), ArtifactStep)
        assert isinstance(ValidateStep(SitemapValidator()), ArtifactStep)

    @pytest.mark.asyncio
    async def test_full_pipeline(self, tmp_path):
        """Test write, gzip and validate run in order."""
        pipeline = ArtifactPipeline(steps=[WriteStep(tmp_path), GzipStep(), ValidateStep(SitemapValidator())])
        events = []

        ctx = await pipeline.execute(make_document(tmp_path / "sitemap.xml"), events.append)

        assert ctx.error is None
        assert [p.name for p in ctx.written] == ["sitemap.xml", "sitemap.xml.gz"]
        assert len(ctx.reports) == 2
        assert events[0].type == EventType.ARTIFACT_WRITTEN
        assert events[1].type == EventType.ARTIFACT_COMPRESSED

    @pytest.mark.asyncio
    async def test_step_failure_captured(self, tmp_path):
        """Test a failing step sets ctx.error and emits ARTIFACT_FAILED."""
        later = MagicMock()
        later.name = "later"
        later.always_run = False
        later.execute = AsyncMock()
        pipeline = ArtifactPipeline(steps=[WriteStep(tmp_path / "elsewhere"), later])
        events = []

        ctx = await pipeline.execute(make_document(tmp_path / "sitemap.xml"), events.append)

        assert ctx.error.startswith("write: ")
        assert ctx.should_skip is True
        later.execute.assert_not_called()
        assert events[-1].type == EventType.ARTIFACT_FAILED
        assert events[-1].path == tmp_path / "sitemap.xml"

    @pytest.mark.asyncio
    async def test_validation_runs_after_gzip_failure(self, tmp_path):
        """Test the written file is still validated when its gzip copy fails."""
        (tmp_path / "sitemap.xml.gz").mkdir()
        pipeline = ArtifactPipeline(steps=[WriteStep(tmp_path), GzipStep(), ValidateStep(SitemapValidator())])
        events = []

        ctx = await pipeline.execute(make_document(tmp_path / "sitemap.xml"), events.append)

        assert ctx.error.startswith("gzip: ")
        assert ctx.gzip_path is None
        assert [p.name for p in ctx.written] == ["sitemap.xml"]
        assert [r.path.name for r in ctx.reports] == ["sitemap.xml"]
        assert [e.type for e in events].count(EventType.ARTIFACT_FAILED) == 1

    @pytest.mark.asyncio
    async def test_always_run_step_skipped_without_error(self, tmp_path):
        """Test an always_run step does not override a deliberate skip."""

        class SkipStep:
            name = "skip"

            async def execute(self, ctx, emit=None):
                ctx.should_skip = True
                return ctx

        validate = ValidateStep(SitemapValidator())
        validate.execute = AsyncMock()
        pipeline = ArtifactPipeline(steps=[SkipStep(), validate])

        await pipeline.execute(make_document(tmp_path / "sitemap.xml"))

        validate.execute.assert_not_called()

    @pytest.mark.asyncio
    async def test_skip_stops_remaining_steps(self, tmp_path):
        """Test should_skip short-circuits the pipeline."""

        class SkipStep:
            name = "skip"

            async def execute(self, ctx, emit=None):
                ctx.should_skip = True
                ctx.skip_reason = "nothing to do"
                return ctx

        pipeline = ArtifactPipeline(steps=[]).add_step(SkipStep()).add_step(WriteStep(tmp_path))

        ctx = await pipeline.execute(make_document(tmp_path / "sitemap.xml"))

        assert ctx.skip_reason == "nothing to do"
        assert not (tmp_path / "sitemap.xml").exists()
