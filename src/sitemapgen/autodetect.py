"""Auto-detection of the content directory and the published site URL."""

import logging
from pathlib import Path
from typing import Optional

from .discovery.walker import FileWalker

logger = logging.getLogger(__name__)

# Common build output directories, in tie-break order
PUBLIC_DIR_CANDIDATES = ("dist", "build", "out", "public", "website", "static")

PLACEHOLDER_SITE_URL = "https://example.com/"


def _score(directory: Path) -> int:
    html_count = len(FileWalker(directory, include_patterns=["**/*.html"]).walk().files)
    has_index = (directory / "index.html").is_file()
    return (1000 if has_index else 0) + html_count


def find_public_dir(hint: Optional[Path] = None, cwd: Optional[Path] = None) -> Optional[Path]:
    """
    Pick the most likely built-site directory.

    Existing candidates are scored by a root index.html (+1000) plus
    their HTML file count; the first candidate wins ties.

    Args:
        hint: User-provided directory, considered before the defaults
        cwd: Directory the candidates are relative to (default: current)

    Returns:
        The best candidate, or None if none exists
    """
    base = Path(cwd) if cwd is not None else Path.cwd()
    candidates = [Path(hint)] if hint is not None else []
    candidates.extend(base / name for name in PUBLIC_DIR_CANDIDATES)

    existing = [c for c in candidates if c.is_dir()]
    if not existing:
        return None

    scored = [(_score(directory), -i, directory) for i, directory in enumerate(existing)]
    best = max(scored)[2]
    logger.debug(f"Detected public directory: {best}")
    return best


def infer_site_url(public_dir: Optional[Path], repository: Optional[str] = None) -> Optional[str]:
    """
    Infer the published site URL.

    A CNAME file in the public directory wins; otherwise GitHub Pages
    conventions are applied to an "owner/repo" repository name.

    Args:
        public_dir: Built-site directory that may hold a CNAME file
        repository: "owner/repo", e.g. from $GITHUB_REPOSITORY

    Returns:
        Site URL, or None if nothing could be inferred

    Example:
        >>> infer_site_url(None, "octo/octo.github.io")
        'https://octo.github.io/'
        >>> infer_site_url(None, "octo/docs")
        'https://octo.github.io/docs/'
    """
    if public_dir is not None:
        cname = Path(public_dir) / "CNAME"
        try:
            domain = "".join(cname.read_text(encoding="utf-8").split()) if cname.is_file() else ""
        except OSError as e:
            logger.debug(f"Cannot read {cname}: {e}")
            domain = ""
        if domain:
            return f"https://{domain}/"

    owner, _, repo_name = (repository or "").partition("/")
    if not owner or not repo_name:
        return None
    if repo_name.lower() == f"{owner.lower()}.github.io":
        return f"https://{owner}.github.io/"
    return f"https://{owner}.github.io/{repo_name}/"
