"""Modification time checks against a build's time window."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from testbundler.core.errors import ArtifactDiscoveryError
from testbundler.core.log import logger as default_logger
from testbundler.core.result import CandidateArtifact, TimeInterval


def modification_time(path: Path) -> datetime:
    try:
        return datetime.fromtimestamp(path.stat().st_mtime)
    except OSError as e:
        raise ArtifactDiscoveryError(
            f"failed to check {path} modtime: {e}"
        ) from e


class ModificationTimeWindowFilter:
    """Keeps files last modified inside [start, end]."""

    def __init__(self, logger=default_logger):
        self.logger = logger

    def in_window(self, path: Path, interval: TimeInterval) -> bool:
        """True when mtime is inside the interval, both ends included.

        Raises:
            ArtifactDiscoveryError: If the file cannot be stat'ed
        """
        return self._check(path, modification_time(path), interval)

    def accepts(
        self, candidate: CandidateArtifact, interval: TimeInterval
    ) -> bool:
        """Same check using the mtime recorded at enumeration."""
        return self._check(candidate.path, candidate.modified, interval)

    def _check(
        self, path: Path, modified: datetime, interval: TimeInterval
    ) -> bool:
        if interval.contains(modified):
            return True

        self.logger.info(
            "{path} was modified at {modified}, outside of the build "
            "window {start} - {end}",
            path=str(path),
            modified=modified.isoformat(),
            start=interval.start.isoformat(),
            end=interval.end.isoformat(),
        )
        return False
