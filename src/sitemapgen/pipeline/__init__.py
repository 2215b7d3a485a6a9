"""Pipeline architecture for writing sitemap artifacts."""

from .base import ArtifactContext, ArtifactPipeline, ArtifactStep, EventEmitter

__all__ = ["ArtifactContext", "ArtifactPipeline", "ArtifactStep", "EventEmitter"]
