"""Pipeline steps for writing sitemap artifacts."""

from .compress import GzipStep
from .validate import ValidateStep
from .write import WriteStep

__all__ = [
    "GzipStep",
    "ValidateStep",
    "WriteStep",
]
