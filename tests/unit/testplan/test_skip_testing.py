"""Tests for adding skipped tests to a test plan."""

import json

import pytest

from testbundler.core.errors import ConfigurationError, DocumentError
from testbundler.testplan import document
from testbundler.testplan.skip_testing import (
    SkipTestingEditor,
    add_skipped_tests,
    find_test_plan,
    parse_skip_testing,
)

PLAN = {
    "configurations": [{"id": "1", "name": "Configuration 1", "options": {}}],
    "testTargets": [
        {
            "skippedTests": ["BullsEyeFlakyTests"],
            "target": {
                "containerPath": "container:BullsEye.xcodeproj",
                "name": "BullsEyeUITests",
            },
        },
        {
            "target": {
                "containerPath": "container:BullsEye.xcodeproj",
                "name": "BullsEyeUnitTests",
            }
        },
    ],
    "version": 1,
}


def test_parse_empty():
    assert parse_skip_testing(None) == {}
    assert parse_skip_testing([]) == {}


def test_parse_classes_and_methods():
    assert parse_skip_testing(
        [
            "BullsEyeUITests/BullsEyeSlowTests/testExample1",
            "BullsEyeUITests/BullsEyeSlowTests/testExample2",
            "BullsEyeUITests/BullsEyeFlakyTests/testExample",
            "BullsEyeUnitTests/BullsEyeFailingTests",
        ]
    ) == {
        "BullsEyeUITests": [
            "BullsEyeSlowTests/testExample1",
            "BullsEyeSlowTests/testExample2",
            "BullsEyeFlakyTests/testExample",
        ],
        "BullsEyeUnitTests": ["BullsEyeFailingTests"],
    }


def test_whole_target_not_supported():
    with pytest.raises(
        ConfigurationError,
        match="not yet supported skip testing format: BullsEyeUITests",
    ):
        parse_skip_testing(["BullsEyeUITests"])


def test_too_many_segments():
    with pytest.raises(ConfigurationError, match="invalid skip testing format"):
        parse_skip_testing(["A/B/C/D"])


def test_add_skipped_tests_appends_per_target():
    plan = document.wrap(json.loads(json.dumps(PLAN)))

    add_skipped_tests(
        plan,
        {
            "BullsEyeUITests": ["BullsEyeSlowTests/testExample"],
            "BullsEyeUnitTests": ["BullsEyeFailingTests"],
            "MissingTarget": ["Anything"],
        },
    )

    targets = plan.to_python()["testTargets"]
    assert targets[0]["skippedTests"] == [
        "BullsEyeFlakyTests",
        "BullsEyeSlowTests/testExample",
    ]
    assert targets[1]["skippedTests"] == ["BullsEyeFailingTests"]


def test_plan_without_targets():
    with pytest.raises(DocumentError, match="testTargets"):
        add_skipped_tests(document.wrap({"version": 1}), {"A": ["B"]})


def test_find_test_plan(tmp_path):
    project = tmp_path / "BullsEye.xcodeproj"
    nested = tmp_path / "TestPlans"
    nested.mkdir()
    plan = nested / "FullTests.xctestplan"
    plan.write_text("{}")

    assert find_test_plan("FullTests", project) == plan
    assert find_test_plan("Missing", project) is None


def test_editor_rewrites_plan(tmp_path):
    project = tmp_path / "BullsEye.xcodeproj"
    plan = tmp_path / "FullTests.xctestplan"
    plan.write_text(json.dumps(PLAN, indent=2))

    SkipTestingEditor().apply(
        "FullTests", project, ["BullsEyeUITests/BullsEyeSlowTests/testExample"]
    )

    text = plan.read_text()
    assert '"BullsEyeSlowTests\\/testExample"' in text
    updated = json.loads(text)
    assert updated["testTargets"][0]["skippedTests"][-1] == (
        "BullsEyeSlowTests/testExample"
    )
    assert list(updated) == ["configurations", "testTargets", "version"]


def test_editor_missing_plan(tmp_path):
    with pytest.raises(ConfigurationError, match="FullTests not found"):
        SkipTestingEditor().apply(
            "FullTests", tmp_path / "BullsEye.xcodeproj", ["A/B"]
        )
