"""xcodebuild command model."""

from __future__ import annotations

import shlex
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from testbundler.core.errors import ConfigurationError


class AuthenticationParams(BaseModel):
    """App Store Connect API key credentials handed to xcodebuild."""

    model_config = ConfigDict(frozen=True)

    key_id: str
    issuer_id: str
    key_path: Path

    def args(self) -> list[str]:
        return [
            "-allowProvisioningUpdates",
            "-authenticationKeyPath", str(self.key_path),
            "-authenticationKeyID", self.key_id,
            "-authenticationKeyIssuerID", self.issuer_id,
        ]


class XcodebuildCommand(BaseModel):
    """One xcodebuild invocation. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    project_path: Path
    action: str = "build-for-testing"
    scheme: str
    configuration: str = ""
    destination: str = ""
    test_plan: str = ""
    options: tuple[str, ...] = ()
    xcconfig_path: Path | None = None
    authentication: AuthenticationParams | None = None

    @property
    def is_workspace(self) -> bool:
        return self.project_path.suffix == ".xcworkspace"

    def args(self) -> list[str]:
        """Argument vector, starting with the tool name."""
        project_flag = "-workspace" if self.is_workspace else "-project"
        cmd = ["xcodebuild", project_flag, str(self.project_path)]
        cmd += ["-scheme", self.scheme]
        if self.configuration:
            cmd += ["-configuration", self.configuration]
        if self.destination:
            cmd += ["-destination", self.destination]
        if self.test_plan:
            cmd += ["-testPlan", self.test_plan]
        cmd.append(self.action)
        if self.xcconfig_path:
            cmd += ["-xcconfig", str(self.xcconfig_path)]
        cmd += list(self.options)
        if self.authentication:
            cmd += self.authentication.args()
        return cmd

    def printable(self) -> str:
        return shlex.join(self.args())


def split_options(raw: str) -> list[str]:
    """Split the user's extra xcodebuild options like a shell would."""
    if not raw.strip():
        return []
    try:
        return shlex.split(raw)
    except ValueError as e:
        raise ConfigurationError(
            f"provided additional options ({raw}) are not valid "
            f"CLI arguments: {e}"
        ) from e


def find_build_setting(options: list[str] | None, key: str) -> str:
    """Value of a KEY=value build setting among options, or ''."""
    for option in options or []:
        name, sep, value = option.partition("=")
        if sep and name == key:
            return value
    return ""
