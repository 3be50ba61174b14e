"""Build execution with a single retry on dependency cache corruption."""

from __future__ import annotations

import shutil
from collections.abc import Callable
from datetime import datetime
from pathlib import Path

from testbundler.build.process import ProcessRunner
from testbundler.core.errors import BuildFailedError
from testbundler.core.log import logger as default_logger
from testbundler.core.result import BuildRun, ProcessOutput, TimeInterval
from testbundler.xcode.command import XcodebuildCommand

# Printed by xcodebuild when the Swift package checkout is unusable
SWIFT_PACKAGES_STATE_INVALID = "Could not resolve package dependencies:"


class RetryingBuildExecutor:
    """Runs a build and retries once when the dependency cache is corrupt.

    A failure counts as transient only when a cache path is configured
    and the failed attempt's log contains the marker verbatim. The
    cache directory is then deleted and the build is run exactly once
    more. The returned log and interval belong to the last attempt.
    """

    def __init__(
        self,
        process: ProcessRunner,
        cache_path: Path | None = None,
        marker: str = SWIFT_PACKAGES_STATE_INVALID,
        clock: Callable[[], datetime] = datetime.now,
        logger=default_logger,
    ):
        self.process = process
        self.cache_path = cache_path
        self.marker = marker
        self.clock = clock
        self.logger = logger

    def _attempt(
        self, command: XcodebuildCommand
    ) -> tuple[ProcessOutput, TimeInterval]:
        start = self.clock()
        try:
            output = self.process.run(command)
        finally:
            end = self.clock()
        return output, TimeInterval(start=start, end=end)

    def is_transient(self, output: ProcessOutput) -> bool:
        return (
            not output.success
            and self.cache_path is not None
            and bool(self.marker)
            and self.marker in output.log_text
        )

    def _clear_cache(self, output: ProcessOutput, interval: TimeInterval):
        self.logger.warn(
            "Build failed, dependency cache is in an invalid state, "
            "removing {cache_path}",
            cache_path=str(self.cache_path),
        )
        if not self.cache_path.exists():
            return
        try:
            shutil.rmtree(self.cache_path)
        except OSError as e:
            raise BuildFailedError(
                f"failed to remove invalid dependency cache "
                f"{self.cache_path}: {e}",
                log_text=output.log_text,
                exit_code=output.exit_code,
                interval=interval,
            ) from e

    def run(self, command: XcodebuildCommand) -> BuildRun:
        """Run the build.

        Returns:
            BuildRun with the log and time window of the successful
            attempt

        Raises:
            BuildFailedError: If the build fails and is not recovered
        """
        output, interval = self._attempt(command)
        attempts = 1

        if self.is_transient(output):
            self._clear_cache(output, interval)
            self.logger.info("Retrying build with a clean dependency cache")
            output, interval = self._attempt(command)
            attempts = 2

        if not output.success:
            raise BuildFailedError(
                f"xcodebuild {command.action} failed with exit code "
                f"{output.exit_code}",
                log_text=output.log_text,
                exit_code=output.exit_code,
                interval=interval,
            )

        return BuildRun(
            log_text=output.log_text, interval=interval, attempts=attempts
        )
