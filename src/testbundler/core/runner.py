"""Command execution using invoke library with custom extensions."""

import io
from pathlib import Path

from invoke import Context, Result
from invoke.exceptions import CommandTimedOut

from testbundler.core.log import logger


class Runner(Context):
    """invoke.Context with a single execute() entry point.

    execute() never collides with invoke's own run()/sudo(), and
    folds timeouts into a Result instead of an exception.
    """

    def execute(
        self,
        command: str,
        cwd: Path | None = None,
        timeout: int | None = None,
        stdin: str | None = None,
        log_file: Path | None = None,
        log_level: str | None = None,
        check: bool = True,
        env: dict[str, str] | None = None,
        stream: bool = False,
    ) -> Result:
        """Execute a command.

        Args:
            command: Shell command line to execute
            cwd: Working directory for command execution
            timeout: Maximum execution time in seconds
            stdin: String to send to command's stdin
            log_file: Path to write combined stdout/stderr output
            log_level: Log each output line at this level afterwards
            check: If True, raise on non-zero exit code
            env: Environment variables to add to os.environ
            stream: Echo output to the terminal while capturing it

        Returns:
            invoke.Result with stdout, stderr, exited (-1 on timeout)

        Raises:
            invoke.UnexpectedExit: If check=True and command
                returns non-zero
        """
        kwargs = {
            "hide": not stream,
            "warn": not check,
            "in_stream": False,
        }

        if timeout:
            kwargs["timeout"] = timeout

        if stdin:
            kwargs["in_stream"] = io.StringIO(stdin)

        if env:
            kwargs["env"] = env

        logger.spew("Executing command", command=command)

        try:
            if cwd:
                with self.cd(str(cwd)):
                    result = self.run(command, **kwargs)
            else:
                result = self.run(command, **kwargs)
        except CommandTimedOut as e:
            result = e.result
            result.exited = -1

        if log_file:
            log_file.parent.mkdir(parents=True, exist_ok=True)
            log_file.write_text(result.stdout + result.stderr)

        if log_level:
            for line in result.stdout.splitlines():
                logger.log(log_level, "{line}", line=line.rstrip())
            for line in result.stderr.splitlines():
                logger.log(log_level, "{line}", line=line.rstrip())

        return result
