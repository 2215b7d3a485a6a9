"""Sitemap chunking and serialization."""

from .chunker import chunk_items, numbered_filename
from .renderers import generation_header, gzip_bytes, render_index, render_txt, render_urlset

__all__ = [
    "chunk_items",
    "generation_header",
    "gzip_bytes",
    "numbered_filename",
    "render_index",
    "render_txt",
    "render_urlset",
]
