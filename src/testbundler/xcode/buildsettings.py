"""Reading build settings through `xcodebuild -showBuildSettings`."""

from __future__ import annotations

import shlex
from pathlib import Path

from testbundler.core.errors import MetadataReadError
from testbundler.core.log import logger as default_logger
from testbundler.core.runner import Runner


class BuildSettings(dict):
    """Build setting name to value."""

    def string(self, key: str) -> str:
        value = self.get(key)
        if not value:
            raise MetadataReadError(f"build setting {key} not found")
        return value


def parse_build_settings(output: str) -> BuildSettings:
    """Parse `KEY = value` lines. The first value seen for a key wins.

    xcodebuild prints one block per target; the first block belongs
    to the scheme's first buildable target.
    """
    settings = BuildSettings()
    for line in output.splitlines():
        stripped = line.strip()
        if not stripped or stripped.startswith("Build settings for"):
            continue
        key, sep, value = stripped.partition(" = ")
        if not sep or " " in key:
            continue
        settings.setdefault(key, value.strip())
    return settings


class BuildSettingsReader:
    """Runs xcodebuild to list the effective build settings."""

    def __init__(self, runner: Runner | None = None, logger=default_logger):
        self.runner = runner or Runner()
        self.logger = logger

    def show(
        self,
        project_path: Path,
        scheme: str,
        configuration: str = "",
        action: str = "build-for-testing",
        options: list[str] | None = None,
    ) -> BuildSettings:
        """Return the build settings of a scheme.

        Raises:
            MetadataReadError: If xcodebuild fails
        """
        project_flag = (
            "-workspace" if project_path.suffix == ".xcworkspace"
            else "-project"
        )
        args = ["xcodebuild", project_flag, str(project_path)]
        args += ["-scheme", scheme]
        if configuration:
            args += ["-configuration", configuration]
        args.append(action)
        args += list(options or [])
        args.append("-showBuildSettings")

        command = shlex.join(args)
        self.logger.info("$ {command}", command=command)

        result = self.runner.execute(command, check=False)
        if result.exited != 0:
            raise MetadataReadError(
                f"failed to read build settings (exit code "
                f"{result.exited}): {result.stderr.strip()}"
            )
        return parse_build_settings(result.stdout)
