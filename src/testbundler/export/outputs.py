"""Exporting the build log and test bundle for downstream steps."""

from __future__ import annotations

import os
import shlex
import zipfile
from pathlib import Path

from testbundler.core.errors import ExportError
from testbundler.core.log import logger as default_logger
from testbundler.core.result import ArtifactSet
from testbundler.core.runner import Runner

RAW_LOG_NAME = "raw-xcodebuild-output.log"
BUNDLE_ZIP_NAME = "testbundle.zip"

RAW_LOG_PATH_KEY = "BITRISE_XCODE_RAW_RESULT_TEXT_PATH"
TEST_BUNDLE_PATH_KEY = "BITRISE_TEST_BUNDLE_PATH"
TEST_BUNDLE_ZIP_PATH_KEY = "BITRISE_TEST_BUNDLE_ZIP_PATH"
XCTESTRUN_PATH_KEY = "BITRISE_XCTESTRUN_FILE_PATH"
CACHE_INCLUDE_PATHS_KEY = "BITRISE_CACHE_INCLUDE_PATHS"

DEFAULT_ENV_COMMAND = "envman add --key {key} --value {value}"


class EnvExporter:
    """Publishes key/value pairs through an external command.

    The command template receives shell-quoted `{key}` and `{value}`.
    An empty template only logs the pair, which is how the tool runs
    outside CI.
    """

    def __init__(
        self,
        command_template: str = DEFAULT_ENV_COMMAND,
        runner: Runner | None = None,
        logger=default_logger,
    ):
        self.command_template = command_template
        self.runner = runner or Runner()
        self.logger = logger
        self.exported: dict[str, str] = {}

    def export(self, key: str, value: str) -> None:
        """Raises ExportError when the command fails."""
        self.exported[key] = value
        if not self.command_template:
            self.logger.info("{key}={value}", key=key, value=value)
            return

        try:
            command = self.command_template.format(
                key=shlex.quote(key), value=shlex.quote(value)
            )
        except (KeyError, IndexError, ValueError) as e:
            raise ExportError(
                f"invalid env command template {self.command_template!r}: "
                f"{e!r}"
            ) from e
        result = self.runner.execute(command, check=False)
        if result.exited != 0:
            output = result.stderr.strip() or result.stdout.strip()
            raise ExportError(f"failed to export {key}: {output}")


def mark_for_caching(
    env: EnvExporter, path: Path, current: str | None = None
) -> str | None:
    """Add a directory to the newline separated CI cache include list.

    `current` defaults to the list already in the environment. Returns
    the exported list, or None when the directory does not exist.
    """
    if not Path(path).is_dir():
        env.logger.info(
            "{path} does not exist, nothing to cache", path=str(path)
        )
        return None

    if current is None:
        current = os.environ.get(CACHE_INCLUDE_PATHS_KEY, "")
    entries = [line for line in current.splitlines() if line.strip()]
    if str(path) not in entries:
        entries.append(str(path))
    value = "\n".join(entries)
    env.export(CACHE_INCLUDE_PATHS_KEY, value)
    return value


def zip_test_bundle(
    zip_path: Path, products_root: Path, members: list[Path]
) -> None:
    """Zip directories and files with paths relative to the products root."""
    with zipfile.ZipFile(zip_path, "w", zipfile.ZIP_DEFLATED) as archive:
        for member in members:
            if member.is_dir():
                for path in sorted(member.rglob("*")):
                    archive.write(path, path.relative_to(products_root))
            else:
                archive.write(member, member.relative_to(products_root))


class OutputExporter:
    """Writes outputs into the output directory and exports their paths.

    Export failures are reported as warnings; the build outcome alone
    decides whether the step fails.
    """

    def __init__(
        self,
        output_dir: Path,
        env: EnvExporter | None = None,
        logger=default_logger,
    ):
        self.output_dir = Path(output_dir)
        self.env = env or EnvExporter(logger=logger)
        self.logger = logger

    def export(self, log_text: str, artifacts: ArtifactSet | None) -> None:
        self.logger.info("Export outputs")
        if log_text:
            try:
                self.export_log(log_text)
            except ExportError as e:
                self.logger.warn("{error}", error=str(e))

        if artifacts is None or not artifacts.descriptors:
            return

        try:
            self.export_bundle(artifacts)
        except ExportError as e:
            self.logger.warn("{error}", error=str(e))

    def export_log(self, log_text: str) -> Path:
        path = self.output_dir / RAW_LOG_NAME
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            path.write_text(log_text, encoding="utf-8")
        except OSError as e:
            raise ExportError(
                f"failed to export {RAW_LOG_PATH_KEY}, error: {e}"
            ) from e
        self.env.export(RAW_LOG_PATH_KEY, str(path))
        self.logger.info(
            "The xcodebuild command log file path is available in "
            "{key} env: {path}",
            key=RAW_LOG_PATH_KEY,
            path=str(path),
        )
        return path

    def export_bundle(self, artifacts: ArtifactSet) -> Path:
        root = artifacts.products_root
        self.env.export(TEST_BUNDLE_PATH_KEY, str(root))
        self.logger.info(
            "The test bundle directory is available in {key} env: {path}",
            key=TEST_BUNDLE_PATH_KEY,
            path=str(root),
        )

        zip_path = self.output_dir / BUNDLE_ZIP_NAME
        try:
            self.output_dir.mkdir(parents=True, exist_ok=True)
            zip_test_bundle(
                zip_path,
                root,
                [artifacts.products_dir, *artifacts.descriptors],
            )
        except (OSError, ValueError) as e:
            raise ExportError(f"failed to zip test bundle: {e}") from e
        self.env.export(TEST_BUNDLE_ZIP_PATH_KEY, str(zip_path))
        self.logger.info(
            "The zipped test bundle is available in {key} env: {path}",
            key=TEST_BUNDLE_ZIP_PATH_KEY,
            path=str(zip_path),
        )

        default = artifacts.default_descriptor
        if len(artifacts.descriptors) > 1:
            self.logger.warn(
                "Multiple xctestrun files generated, exporting {path} "
                "under {key}",
                path=str(default),
                key=XCTESTRUN_PATH_KEY,
            )
        self.env.export(XCTESTRUN_PATH_KEY, str(default))
        self.logger.info(
            "The built xctestrun file is available in {key} env: {path}",
            key=XCTESTRUN_PATH_KEY,
            path=str(default),
        )
        return zip_path
