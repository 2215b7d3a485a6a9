"""Run orchestration."""

from .generator import SitemapGenerator, generate_blocking

__all__ = ["SitemapGenerator", "generate_blocking"]
