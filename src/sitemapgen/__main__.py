"""Allow running sitemapgen as a module: python -m sitemapgen."""

import sys

from .cli import main

sys.exit(main())
