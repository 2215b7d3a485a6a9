"""URL normalization: relative paths and filesystem paths to absolute URLs."""

import ntpath
import posixpath
import re
from pathlib import Path
from typing import Union
from urllib.parse import quote, urljoin

# Characters left untouched when percent-encoding a path (already-encoded
# sequences survive because '%' is safe).
_PATH_SAFE = "/:@!$&'()*+,;=-._~%?#"
# Filesystem names never carry a query or fragment
_FS_PATH_SAFE = "/:@!$&'()*+,;=-._~%"

_WINDOWS_DRIVE = re.compile(r"^[a-zA-Z]:\\")

HTTP_URL = re.compile(r"^https?://", re.IGNORECASE)


def is_http_url(value: str) -> bool:
    """Check if a string is an absolute http:// or https:// URL."""
    return bool(HTTP_URL.match(value))


def normalize_url(base_url: str, rel_path: str) -> str:
    """
    Resolve a site-relative path against the base URL.

    The base is treated as a directory (a trailing slash is added), and a
    leading './' loses its dot, so '/a.html', './a.html'
    and 'a.html' behave like resolving directly against the base.

    Args:
        base_url: Validated http(s) base URL
        rel_path: Relative or root-relative path

    Returns:
        Absolute URL

    Example:
        >>> normalize_url("https://example.com", "./blog/post.html")
        'https://example.com/blog/post.html'
    """
    if not base_url.endswith("/"):
        base_url += "/"
    if rel_path == "." or rel_path.startswith("./"):
        rel_path = rel_path[1:]
    return urljoin(base_url, quote(rel_path, safe=_PATH_SAFE))


def _is_windows_like(*paths: str) -> bool:
    return any("\\" in p or _WINDOWS_DRIVE.match(p) for p in paths)


def path_to_url(base_url: str, root_dir: Union[str, Path], fs_path: Union[str, Path]) -> str:
    """
    Convert a filesystem path under the site root into an absolute URL.

    The path is resolved relative to the base URL, so a base with a path
    (https://owner.github.io/repo/) keeps it. Windows-style inputs are
    handled regardless of the host OS.

    Args:
        base_url: Validated http(s) base URL
        root_dir: Site content root
        fs_path: File path inside root_dir

    Returns:
        Absolute URL for the file
    """
    root_str, path_str = str(root_dir), str(fs_path)
    if _is_windows_like(root_str, path_str):
        rel = ntpath.relpath(path_str, root_str).replace("\\", "/")
    else:
        rel = posixpath.relpath(path_str, root_str)
    if rel == ".":
        rel = ""
    if not base_url.endswith("/"):
        base_url += "/"
    return urljoin(base_url, "./" + quote(rel, safe=_FS_PATH_SAFE))
