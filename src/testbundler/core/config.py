"""Application state and configuration."""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import Any, Literal

import platformdirs
from pydantic import BaseModel, ConfigDict, Field, SecretStr, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
)

from testbundler.build.executor import SWIFT_PACKAGES_STATE_INVALID
from testbundler.core.base import BaseConfig, BaseState
from testbundler.core.log import Logger
from testbundler.core.yaml_settings import (
    APP_NAME,
    PROJECT_CONFIG,
    YamlWithIncludesSettingsSource,
)
from testbundler.export.outputs import DEFAULT_ENV_COMMAND

# ============================================================
# TEMPLATE SUBSTITUTION NAMESPACE
# ============================================================

# Modules available for template substitution in YAML files
# Usage: {platformdirs.user_cache_dir}, {os.getcwd}, {Path.cwd}
TEMPLATE_NAMESPACE = {
    'os': os,
    'platformdirs': platformdirs,
    'Path': Path,
}

# ============================================================
# CONFIG MODELS (loaded from YAML/env/CLI)
# ============================================================


class ProjectConfig(BaseConfig):
    """Xcode project and scheme to build."""

    path: Path | None = Field(
        default=None,
        description="Path to the .xcodeproj or .xcworkspace",
    )
    scheme: str = Field(
        default="",
        description="Scheme to build for testing",
    )
    configuration: str = Field(
        default="",
        description=(
            "Build configuration (e.g. Debug). Empty uses the "
            "scheme's test action configuration"
        ),
    )
    destination: str = Field(
        default="generic/platform=iOS Simulator",
        description="Value passed to xcodebuild -destination",
    )
    test_plan: str = Field(
        default="",
        description="Test plan to build. Empty builds the scheme's plans",
    )
    skip_testing: list[str] = Field(
        default_factory=list,
        description=(
            "Tests to skip, as Target/Class or Target/Class/method. "
            "Requires test_plan"
        ),
    )


class BuildConfig(BaseConfig):
    """How xcodebuild is invoked and its outputs discovered."""

    xcodebuild_options: str = Field(
        default="",
        description="Additional xcodebuild arguments, shell quoted",
    )
    xcconfig_content: str = Field(
        default="",
        description=(
            "Build settings written to a temporary .xcconfig file "
            "and passed with -xcconfig"
        ),
    )
    log_formatter: Literal["xcpretty", "xcodebuild"] = Field(
        default="xcpretty",
        description="Formatter for the live log; xcodebuild prints raw",
    )
    discovery: Literal["directory", "glob"] = Field(
        default="directory",
        description=(
            "How descriptors are enumerated: every .xctestrun in the "
            "products root, or only <scheme>*.xctestrun"
        ),
    )
    last_lines: int = Field(
        default=20,
        description=(
            "Lines of the build log printed when the step fails, or "
            "after any build with raw xcodebuild output"
        ),
    )


class CacheConfig(BaseConfig):
    """Swift package cache: cleared when a build hits corrupted state,
    and marked for CI caching after a successful build.
    """

    level: Literal["none", "swift_packages"] = Field(
        default="swift_packages",
        description=(
            "swift_packages marks the package cache for CI caching "
            "after a successful build; none skips that"
        ),
    )
    path: Path | None = Field(
        default=None,
        description=(
            "Swift package cache directory. Empty detects "
            "<DerivedData>/<project>/SourcePackages"
        ),
    )
    marker: str = Field(
        default=SWIFT_PACKAGES_STATE_INVALID,
        description="Build log text that identifies corrupted cache state",
    )


class SigningConfig(BaseConfig):
    """Automatic code signing credentials."""

    mode: Literal["off", "api-key"] = Field(
        default="off",
        description="off, or api-key for App Store Connect API keys",
    )
    key_id: str | None = Field(default=None, description="API key ID")
    issuer_id: str | None = Field(default=None, description="Issuer ID")
    private_key: SecretStr | None = Field(
        default=None,
        description="Private key contents (.p8)",
    )
    key_path: Path | None = Field(
        default=None,
        description="Path of an existing .p8 file",
    )


class OutputConfig(BaseConfig):
    """Where outputs are written and how their paths are published."""

    dir: Path = Field(
        default=Path("output"),
        description="Output directory (supports {config.*} templates)",
    )
    env_command: str = Field(
        default=DEFAULT_ENV_COMMAND,
        description=(
            "Command exporting an output, with {key} and {value} "
            "placeholders. Empty only logs the values"
        ),
    )


class Config(BaseConfig):
    """Application configuration loaded from YAML/env/CLI."""

    logger: Logger = Field(
        default=None,
        description="Logger configuration and runtime instance"
    )
    project: ProjectConfig = Field(
        default_factory=ProjectConfig,
        description="Project and scheme settings",
    )
    build: BuildConfig = Field(
        default_factory=BuildConfig,
        description="xcodebuild invocation settings",
    )
    cache: CacheConfig = Field(
        default_factory=CacheConfig,
        description="Dependency cache recovery settings",
    )
    signing: SigningConfig = Field(
        default_factory=SigningConfig,
        description="Code signing settings",
    )
    output: OutputConfig = Field(
        default_factory=OutputConfig,
        description="Output export settings",
    )

    log_level: str = Field(
        default="info",
        alias="log-level",
        description=(
            "Console log level: 'trace', 'debug', 'info', "
            "'warn', 'error', 'fatal'"
        ),
    )
    run_name: str = Field(
        default="build",
        description="Name of this run, used in log file paths",
    )
    log_root: Path = Field(
        default_factory=(
            lambda: Path(platformdirs.user_state_dir()) / APP_NAME
        ),
        description=(
            "Root directory for all log files "
            "(supports {platformdirs.*} templates)"
        ),
    )

    model_config = ConfigDict(populate_by_name=True)

    @model_validator(mode='after')
    def _setup_logger(self) -> 'Config':
        """Configure the global logger from the loaded config."""
        from testbundler.core.log import setup_logger
        from testbundler.core.yaml_settings import _cleanup_bootstrap_logger

        if self.logger is None:
            self.logger = Logger(level=self.log_level)

        setup_logger(
            log_root=self.log_root,
            run_name=self.run_name,
            console=self.logger.console,
            file=self.logger.file,
            level=self.logger.level,
        )

        _cleanup_bootstrap_logger()

        return self

    def close(self):
        """Also closes the global logger."""
        from testbundler.core.log import logger
        if logger is not None:
            logger.close()

        super().close()


# ============================================================
# RUNTIME STATE MODELS (mutable during workflow execution)
# ============================================================


class BuildState(BaseState):
    """Build workflow runtime state (mutates during execution)."""

    builder: Any = Field(
        default=None,
        description="BundleBuilder driving the build",
    )
    command: Any = Field(
        default=None,
        description="XcodebuildCommand being run",
    )
    build_run: Any = Field(
        default=None,
        description="BuildRun of the successful build",
    )
    log_text: str = Field(
        default="",
        description="Raw xcodebuild output of the last attempt",
    )
    artifacts: Any = Field(
        default=None,
        description="ArtifactSet located after the build",
    )
    failure: Any = Field(
        default=None,
        description="Error that failed the build, raised after export",
    )
    status: str = Field(
        default="pending",
        description="Workflow status: pending, running, complete, failed",
    )

    model_config = ConfigDict(arbitrary_types_allowed=True)


class ResetState(BaseState):
    """Cache reset runtime state."""

    removed: Path | None = Field(
        default=None,
        description="Cache directory that was removed",
    )
    status: str = Field(
        default="pending",
        description="Reset status: pending, complete",
    )


class Runtime(BaseModel):
    """All runtime state organized by workflow."""

    build: BuildState = Field(
        default_factory=BuildState,
        description="Build workflow runtime state"
    )
    reset: ResetState = Field(
        default_factory=ResetState,
        description="Cache reset runtime state"
    )


# ============================================================
# STATE (config + runtime combined)
# ============================================================


class State(BaseSettings):
    """Complete application state - configuration and runtime.

    This is the state object every workflow node receives:
    - config: loaded from YAML/env/CLI
    - runtime: mutated while the workflow runs
    """

    config: Config = Field(
        default_factory=Config,
        description="Application configuration (from YAML/env/CLI)",
    )
    runtime: Runtime = Field(
        default_factory=Runtime,
        description="Runtime state (mutates during workflow execution)",
    )
    include: list[str] | None = Field(
        default=None,
        description=(
            "Additional YAML files to include and merge. "
            "Use --include on CLI or include: in YAML files."
        ),
    )

    model_config = SettingsConfigDict(
        yaml_file=PROJECT_CONFIG,
        env_file=".env",
        env_prefix="TESTBUNDLER_",
        env_nested_delimiter="__",
        cli_implicit_flags=True,
        cli_use_class_docs_for_groups=True,
        arbitrary_types_allowed=True,
        # Disregard .env variables that don't match config
        extra='ignore'
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Priority, highest first: init arguments, environment,
        .env, YAML files, file secrets.
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlWithIncludesSettingsSource(settings_cls),
            file_secret_settings,
        )

    @model_validator(mode="after")
    def substitute_templates(self) -> "State":
        """Replace {config.x.y} and {platformdirs.*} templates in
        every string and Path field.
        """
        self._substitute_recursive(self)
        return self

    def _substitute_recursive(self, obj: Any) -> None:
        if isinstance(obj, BaseModel):
            for field_name in obj.__class__.model_fields:
                value = getattr(obj, field_name)
                new_value = self._substitute_value(value)
                if new_value is not value:
                    setattr(obj, field_name, new_value)
        elif isinstance(obj, dict):
            for key in obj:
                obj[key] = self._substitute_value(obj[key])
        elif isinstance(obj, list):
            for i in range(len(obj)):
                obj[i] = self._substitute_value(obj[i])

    def _substitute_value(self, value: Any) -> Any:
        if isinstance(value, str):
            return self._substitute_string(value)
        elif isinstance(value, Path):
            substituted = self._substitute_string(str(value))
            return value if substituted == str(value) else Path(substituted)
        elif isinstance(value, (BaseModel, dict, list)):
            self._substitute_recursive(value)
            return value
        else:
            return value

    def _substitute_string(self, value: str) -> str:
        """Replace {field.path} templates with actual field values.

        Examples:
            "{config.log_root}/output" → "/home/user/.local/state/testbundler/output"
            "{platformdirs.user_cache_dir}" → "~/.cache/testbundler"

        Unknown references are left as they are, so `{key}` style
        placeholders in command templates survive.
        """
        def replace_template(match):
            parts = match.group(1).split(".")

            if parts[0] in TEMPLATE_NAMESPACE:
                obj = TEMPLATE_NAMESPACE[parts[0]]
                parts = parts[1:]
            else:
                obj = self

            try:
                for part in parts:
                    obj = getattr(obj, part)

                if callable(obj):
                    if obj.__module__.startswith("platformdirs"):
                        obj = obj(APP_NAME, appauthor=False)
                    else:
                        obj = obj()

                return str(obj)
            except (AttributeError, TypeError):
                return match.group(0)

        # A referenced field may itself still hold a template
        for _ in range(5):
            substituted = re.sub(r'\{([a-z._]+)\}', replace_template, value)
            if substituted == value:
                break
            value = substituted
        return value


__all__ = ["State", "Config", "BaseConfig", "BaseState"]
