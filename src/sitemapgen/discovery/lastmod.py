"""Last-modification timestamp resolution."""

import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, Optional, Union

from ..models.config import LastmodStrategy
from ..vcs import git_last_commit_time

logger = logging.getLogger(__name__)

CommitTimeLookup = Callable[[Path], Optional[datetime]]


def file_mtime(path: Path) -> Optional[datetime]:
    """Modification time of a file as an aware UTC datetime, or None if unreadable."""
    try:
        return datetime.fromtimestamp(Path(path).stat().st_mtime, tz=timezone.utc)
    except OSError as e:
        logger.debug(f"Cannot stat {path}: {e}")
        return None


class LastmodResolver:
    """
    Resolve <lastmod> timestamps for site files.

    Strategies:
        git: last commit time of the file, falling back to its mtime
        filemtime: file modification time
        current: the generation time, computed once per resolver
        none: no lastmod

    An unrecognized strategy (None) yields no lastmod for any file.

    Example:
        resolver = LastmodResolver(LastmodStrategy.FILEMTIME)
        lastmod = resolver.resolve(Path("dist/index.html"))
    """

    def __init__(
        self,
        strategy: Optional[Union[LastmodStrategy, str]],
        commit_time: CommitTimeLookup = git_last_commit_time,
        now: Optional[datetime] = None,
    ):
        """
        Initialize the resolver.

        Args:
            strategy: Lastmod strategy, or None when unrecognized
            commit_time: Lookup used by the git strategy
            now: Generation time used by the current strategy
        """
        if isinstance(strategy, str) and not isinstance(strategy, LastmodStrategy):
            try:
                strategy = LastmodStrategy(strategy)
            except ValueError:
                strategy = None
        self.strategy: Optional[LastmodStrategy] = strategy
        self._commit_time = commit_time
        self._now = now or datetime.now(timezone.utc)

    @property
    def now(self) -> datetime:
        """The generation time shared by every item of the run."""
        return self._now

    def resolve(self, path: Path) -> Optional[datetime]:
        """
        Resolve the lastmod for one walked file.

        Args:
            path: Source file

        Returns:
            Timestamp or None
        """
        if self.strategy is None or self.strategy == LastmodStrategy.NONE:
            return None
        if self.strategy == LastmodStrategy.CURRENT:
            return self._now
        if self.strategy == LastmodStrategy.GIT:
            committed = self._commit_time(path)
            if committed is not None:
                return committed
        return file_mtime(path)
