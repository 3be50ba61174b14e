"""Running the xcodebuild process, optionally through a formatter."""

from __future__ import annotations

import shlex
import tempfile
from pathlib import Path

from testbundler.core.log import logger as default_logger
from testbundler.core.result import ProcessOutput
from testbundler.core.runner import Runner
from testbundler.xcode.command import XcodebuildCommand
from testbundler.xcode.formatter import XcprettyFormatter


class ProcessRunner:
    """Executes one xcodebuild command and captures its output.

    Output is streamed to the terminal while it is captured. With a
    formatter the terminal shows the formatted output, but the
    returned log text is still the raw combined xcodebuild output,
    teed to a temporary file in front of the formatter.
    """

    def __init__(
        self,
        runner: Runner | None = None,
        formatter: XcprettyFormatter | None = None,
        logger=default_logger,
    ):
        self.runner = runner or Runner()
        self.formatter = formatter
        self.logger = logger

    def run(self, command: XcodebuildCommand) -> ProcessOutput:
        xcodebuild = command.printable()
        if self.formatter is None:
            self.logger.info("$ {command}", command=xcodebuild)
            result = self.runner.execute(
                f"{xcodebuild} 2>&1", check=False, stream=True
            )
            return ProcessOutput(exit_code=result.exited, log_text=result.stdout)

        with tempfile.TemporaryDirectory(prefix="xcodebuild-output") as tmp:
            raw_log = Path(tmp) / "raw.log"
            pipeline = (
                f"set -o pipefail && {xcodebuild} 2>&1 "
                f"| tee {shlex.quote(str(raw_log))} "
                f"| {self.formatter.pipe_command()}"
            )
            self.logger.info("$ {command}", command=pipeline)
            result = self.runner.execute(pipeline, check=False, stream=True)
            log_text = (
                raw_log.read_text(errors="replace")
                if raw_log.exists() else result.stdout
            )
        return ProcessOutput(exit_code=result.exited, log_text=log_text)
