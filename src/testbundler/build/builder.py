"""Preparing, running and locating one build-for-testing."""

from __future__ import annotations

import tempfile
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from testbundler.build.discovery import create_enumerator
from testbundler.build.executor import RetryingBuildExecutor
from testbundler.build.locator import BuildOutputLocator
from testbundler.build.process import ProcessRunner
from testbundler.core.errors import ConfigurationError, MetadataReadError
from testbundler.core.log import logger as default_logger
from testbundler.core.result import ArtifactSet, BuildRun, TimeInterval
from testbundler.core.runner import Runner
from testbundler.testplan.skip_testing import SkipTestingEditor
from testbundler.xcode.buildsettings import BuildSettingsReader
from testbundler.xcode.command import (
    XcodebuildCommand,
    find_build_setting,
    split_options,
)
from testbundler.xcode.formatter import XcprettyFormatter, ensure_formatter
from testbundler.xcode.scheme import SchemeReader
from testbundler.xcode.signing import SigningProvider, create_signing_provider

if TYPE_CHECKING:
    from testbundler.core.config import Config

ACTION = "build-for-testing"


def swift_packages_path(objroot: str) -> Path:
    """`<DerivedData>/<project>/SourcePackages` for an OBJROOT of
    `<DerivedData>/<project>/Build/Intermediates.noindex`.
    """
    return Path(objroot).parents[1] / "SourcePackages"


class BundleBuilder:
    """Turns the loaded config into an xcodebuild run and its outputs.

    Collaborators are created from the config unless given, so tests
    can swap the process runner or the metadata readers.
    """

    def __init__(
        self,
        config: Config,
        runner: Runner | None = None,
        process: ProcessRunner | None = None,
        settings_reader: BuildSettingsReader | None = None,
        scheme_reader: SchemeReader | None = None,
        signing: SigningProvider | None = None,
        clock=datetime.now,
        logger=default_logger,
    ):
        self.config = config
        self.runner = runner or Runner()
        self.process = process
        self.settings_reader = settings_reader or BuildSettingsReader(
            runner=self.runner, logger=logger
        )
        self.scheme_reader = scheme_reader or SchemeReader(logger=logger)
        self.signing = signing
        self.clock = clock
        self.logger = logger

        self.options: list[str] = []
        self.cache_path: Path | None = None

    def validate(self) -> None:
        """Check inputs that contradict each other.

        Raises:
            ConfigurationError: On missing or conflicting inputs
        """
        project = self.config.project
        if project.path is None:
            raise ConfigurationError("project path is required")
        if not project.scheme:
            raise ConfigurationError("scheme is required")
        if project.skip_testing and not project.test_plan:
            raise ConfigurationError(
                "skip testing requires a test plan to be set"
            )

        self.options = split_options(self.config.build.xcodebuild_options)
        xcconfig_content = self.config.build.xcconfig_content.strip()
        if "-xcconfig" in self.options and xcconfig_content:
            raise ConfigurationError(
                "`-xcconfig` option found in the additional xcodebuild "
                "options, clear the xcconfig content as only one can be set"
            )

    def _work_dir(self) -> Path:
        # Kept after the run: the exported bundle path points into it
        return Path(tempfile.mkdtemp(prefix="test_bundle"))

    def prepare(self) -> XcodebuildCommand:
        """Validate inputs and assemble the xcodebuild command."""
        self.validate()
        project = self.config.project
        project_path = Path(project.path).expanduser().resolve()

        work_dir = None
        options = list(self.options)
        if not find_build_setting(options, "SYMROOT"):
            work_dir = self._work_dir()
            options.append(f"SYMROOT={work_dir / 'symroot'}")
        self.options = options

        xcconfig_path = None
        content = self.config.build.xcconfig_content
        if content.strip():
            work_dir = work_dir or self._work_dir()
            xcconfig_path = work_dir / "temp.xcconfig"
            xcconfig_path.write_text(content, encoding="utf-8")
            self.logger.info(
                "Wrote build settings to {path}", path=str(xcconfig_path)
            )

        if project.skip_testing:
            SkipTestingEditor(logger=self.logger).apply(
                project.test_plan, project_path, project.skip_testing
            )

        if self.signing is None:
            self.signing = create_signing_provider(
                self.config.signing, logger=self.logger
            )
        authentication = self.signing.prepare()

        if self.process is None:
            formatter = None
            if self.config.build.log_formatter == "xcpretty":
                formatter = ensure_formatter(
                    XcprettyFormatter(runner=self.runner, logger=self.logger),
                    logger=self.logger,
                )
            self.process = ProcessRunner(
                runner=self.runner, formatter=formatter, logger=self.logger
            )

        self.cache_path = self.cache_location(project_path)

        return XcodebuildCommand(
            project_path=project_path,
            action=ACTION,
            scheme=project.scheme,
            configuration=project.configuration,
            destination=project.destination,
            test_plan=project.test_plan,
            options=tuple(self.options),
            xcconfig_path=xcconfig_path,
            authentication=authentication,
        )

    def cache_location(self, project_path: Path | None) -> Path | None:
        cache = self.config.cache
        if cache.path is not None:
            return Path(cache.path).expanduser()
        try:
            settings = self.settings_reader.show(
                project_path,
                self.config.project.scheme,
                self.config.project.configuration,
                ACTION,
                self.options,
            )
            path = swift_packages_path(settings.string("OBJROOT"))
        except (MetadataReadError, IndexError) as e:
            self.logger.warn(
                "Failed to detect the Swift packages path, cache "
                "recovery is disabled: {error}",
                error=str(e),
            )
            return None
        self.logger.info("Swift packages path: {path}", path=str(path))
        return path

    def build(self, command: XcodebuildCommand) -> BuildRun:
        executor = RetryingBuildExecutor(
            self.process,
            cache_path=self.cache_path,
            marker=self.config.cache.marker,
            clock=self.clock,
            logger=self.logger,
        )
        return executor.run(command)

    def locate(
        self, command: XcodebuildCommand, interval: TimeInterval
    ) -> ArtifactSet:
        locator = BuildOutputLocator(
            self.settings_reader,
            self.scheme_reader,
            enumerator=create_enumerator(self.config.build.discovery),
            logger=self.logger,
        )
        return locator.locate(
            command.project_path,
            command.scheme,
            command.configuration,
            list(command.options),
            interval,
        )

    def cleanup(self) -> None:
        if self.signing is not None:
            self.signing.cleanup()
