"""Tests for BundleBuilder preparation."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from testbundler.build.builder import BundleBuilder, swift_packages_path
from testbundler.core.config import Config
from testbundler.core.errors import ConfigurationError, MetadataReadError
from testbundler.xcode.buildsettings import BuildSettings
from testbundler.xcode.signing import DisabledSigning

DERIVED = "/Users/vagrant/Library/Developer/Xcode/DerivedData/BullsEye-abc"


def make_config(tmp_path, project=None, **sections):
    project_dir = tmp_path / "BullsEye"
    project_dir.mkdir(exist_ok=True)
    project_settings = {
        "path": str(project_dir / "BullsEye.xcodeproj"),
        "scheme": "BullsEye",
    }
    project_settings.update(project or {})
    return Config(log_root=tmp_path, project=project_settings, **sections)


def make_builder(config, objroot=f"{DERIVED}/Build/Intermediates.noindex"):
    settings_reader = Mock()
    settings_reader.show.return_value = BuildSettings(OBJROOT=objroot)
    return BundleBuilder(
        config,
        process=Mock(),
        settings_reader=settings_reader,
        scheme_reader=Mock(),
        signing=DisabledSigning(),
    )


def test_swift_packages_path():
    assert swift_packages_path(
        f"{DERIVED}/Build/Intermediates.noindex"
    ) == Path(DERIVED) / "SourcePackages"


def test_command_assembled(tmp_path):
    config = make_config(
        tmp_path,
        project={"configuration": "Debug", "test_plan": "FullTests"},
        build={"xcodebuild_options": "-quiet 'OTHER_FLAGS=-DA -DB'"},
    )

    command = make_builder(config).prepare()

    assert command.action == "build-for-testing"
    assert command.scheme == "BullsEye"
    assert command.test_plan == "FullTests"
    assert command.options[:2] == ("-quiet", "OTHER_FLAGS=-DA -DB")
    assert command.options[2].startswith("SYMROOT=")
    assert command.project_path.is_absolute()
    args = command.args()
    assert args[args.index("-testPlan") + 1] == "FullTests"


def test_user_symroot_kept(tmp_path):
    config = make_config(
        tmp_path, build={"xcodebuild_options": "SYMROOT=/tmp/mine"}
    )

    command = make_builder(config).prepare()

    assert command.options == ("SYMROOT=/tmp/mine",)


def test_xcconfig_written(tmp_path):
    config = make_config(
        tmp_path, build={"xcconfig_content": "CODE_SIGNING_ALLOWED=NO"}
    )

    command = make_builder(config).prepare()

    assert command.xcconfig_path.read_text() == "CODE_SIGNING_ALLOWED=NO"
    assert "-xcconfig" in command.args()


def test_xcconfig_conflicts_with_option(tmp_path):
    config = make_config(
        tmp_path,
        build={
            "xcodebuild_options": "-xcconfig Custom.xcconfig",
            "xcconfig_content": "CODE_SIGNING_ALLOWED=NO",
        },
    )

    with pytest.raises(ConfigurationError, match="-xcconfig"):
        make_builder(config).prepare()


def test_invalid_options(tmp_path):
    config = make_config(tmp_path, build={"xcodebuild_options": "-quiet 'open"})

    with pytest.raises(ConfigurationError, match="not valid CLI arguments"):
        make_builder(config).prepare()


def test_skip_testing_requires_plan(tmp_path):
    config = make_config(
        tmp_path, project={"skip_testing": ["BullsEyeUITests/SlowTests"]}
    )

    with pytest.raises(ConfigurationError, match="test plan"):
        make_builder(config).prepare()


def test_missing_project(tmp_path):
    config = Config(log_root=tmp_path, project={"scheme": "BullsEye"})

    with pytest.raises(ConfigurationError, match="project path"):
        make_builder(config).prepare()


def test_skip_testing_edits_plan(tmp_path):
    config = make_config(
        tmp_path,
        project={
            "test_plan": "FullTests",
            "skip_testing": ["BullsEyeUITests/SlowTests/testExample"],
        },
    )
    plan = tmp_path / "BullsEye" / "FullTests.xctestplan"
    plan.write_text(
        '{"testTargets": [{"target": {"name": "BullsEyeUITests"}}]}'
    )

    make_builder(config).prepare()

    assert '"SlowTests\\/testExample"' in plan.read_text()


def test_cache_path_detected_from_objroot(tmp_path):
    builder = make_builder(make_config(tmp_path))

    builder.prepare()

    assert builder.cache_path == Path(DERIVED) / "SourcePackages"


def test_explicit_cache_path(tmp_path):
    config = make_config(tmp_path, cache={"path": str(tmp_path / "pkgs")})
    builder = make_builder(config)

    builder.prepare()

    assert builder.cache_path == tmp_path / "pkgs"
    builder.settings_reader.show.assert_not_called()


def test_recovery_kept_without_cache_collection(tmp_path):
    builder = make_builder(make_config(tmp_path, cache={"level": "none"}))

    builder.prepare()

    assert builder.cache_path == Path(DERIVED) / "SourcePackages"


def test_cache_detection_failure_disables_recovery(tmp_path):
    builder = make_builder(make_config(tmp_path))
    builder.settings_reader.show.side_effect = MetadataReadError("boom")

    builder.prepare()

    assert builder.cache_path is None
