"""Tests for build settings parsing and reading."""

from pathlib import Path
from unittest.mock import Mock

import pytest

from testbundler.core.errors import MetadataReadError
from testbundler.xcode.buildsettings import (
    BuildSettingsReader,
    parse_build_settings,
)

OUTPUT = """Command line invocation:
    /Applications/Xcode.app/Contents/Developer/usr/bin/xcodebuild -showBuildSettings

Build settings for action build-for-testing and target BullsEye:
    CONFIGURATION = Debug
    OBJROOT = /DerivedData/BullsEye-abc/Build/Intermediates.noindex
    SYMROOT = /tmp/test_bundle
    OTHER_LDFLAGS = -ObjC -lz

Build settings for action build-for-testing and target BullsEyeTests:
    CONFIGURATION = Release
    SYMROOT = /tmp/other
"""


def test_first_value_wins():
    settings = parse_build_settings(OUTPUT)

    assert settings["SYMROOT"] == "/tmp/test_bundle"
    assert settings["CONFIGURATION"] == "Debug"
    assert settings["OTHER_LDFLAGS"] == "-ObjC -lz"


def test_non_setting_lines_skipped():
    settings = parse_build_settings(OUTPUT)

    assert "Command line invocation:" not in settings
    assert all(" " not in key for key in settings)


def test_missing_setting():
    settings = parse_build_settings(OUTPUT)

    with pytest.raises(MetadataReadError, match="DSTROOT"):
        settings.string("DSTROOT")


def _result(exited=0, stdout="", stderr=""):
    return Mock(exited=exited, stdout=stdout, stderr=stderr)


def test_reader_runs_xcodebuild():
    runner = Mock()
    runner.execute.return_value = _result(stdout=OUTPUT)

    settings = BuildSettingsReader(runner=runner).show(
        Path("/src/BullsEye.xcworkspace"),
        "BullsEye",
        "Debug",
        options=["SYMROOT=/tmp/test_bundle"],
    )

    assert settings.string("SYMROOT") == "/tmp/test_bundle"
    command = runner.execute.call_args.args[0]
    assert command == (
        "xcodebuild -workspace /src/BullsEye.xcworkspace -scheme BullsEye "
        "-configuration Debug build-for-testing SYMROOT=/tmp/test_bundle "
        "-showBuildSettings"
    )


def test_reader_failure():
    runner = Mock()
    runner.execute.return_value = _result(
        exited=65, stderr="xcodebuild: error: scheme not found"
    )

    with pytest.raises(MetadataReadError, match="scheme not found"):
        BuildSettingsReader(runner=runner).show(
            Path("/src/BullsEye.xcodeproj"), "Missing"
        )
