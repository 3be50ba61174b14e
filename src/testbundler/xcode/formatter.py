"""xcpretty log formatter support."""

from __future__ import annotations

import shutil

from testbundler.core.log import logger as default_logger
from testbundler.core.runner import Runner


class FormatterUnavailable(Exception):
    """The formatter is missing and could not be installed."""


class XcprettyFormatter:
    """Reformats xcodebuild output when placed at the end of a pipe."""

    name = "xcpretty"

    def __init__(self, runner: Runner | None = None, logger=default_logger):
        self.runner = runner or Runner()
        self.logger = logger

    def is_installed(self) -> bool:
        return shutil.which(self.name) is not None

    def install(self) -> None:
        result = self.runner.execute(
            "gem install xcpretty", check=False, stream=True
        )
        if result.exited != 0:
            raise FormatterUnavailable(
                f"gem install xcpretty exited with {result.exited}"
            )

    def version(self) -> str:
        result = self.runner.execute("xcpretty --version", check=False)
        if result.exited != 0:
            raise FormatterUnavailable(
                f"xcpretty --version exited with {result.exited}"
            )
        return result.stdout.strip()

    def pipe_command(self) -> str:
        return self.name


def ensure_formatter(
    formatter: XcprettyFormatter, logger=default_logger
) -> XcprettyFormatter | None:
    """Install the formatter if needed.

    Returns None when it cannot be made available; the build then
    runs with raw xcodebuild output.
    """
    logger.info("Checking if output tool (xcpretty) is installed")
    try:
        if not formatter.is_installed():
            logger.warn("xcpretty is not installed, installing")
            formatter.install()
        logger.info("xcpretty version: {version}", version=formatter.version())
    except (FormatterUnavailable, OSError) as e:
        logger.warn(
            "Failed to set up xcpretty, using raw xcodebuild output: {error}",
            error=str(e),
        )
        return None
    return formatter
