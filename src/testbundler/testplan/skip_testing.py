"""Adding skipped tests to an .xctestplan before building."""

from __future__ import annotations

import os
from pathlib import Path

from testbundler.core.errors import ConfigurationError, DocumentError
from testbundler.core.log import logger as default_logger
from testbundler.testplan import document
from testbundler.testplan.document import Array, Object

TESTPLAN_EXT = ".xctestplan"


def parse_skip_testing(identifiers: list[str] | None) -> dict[str, list[str]]:
    """Group `Target/Class[/method]` identifiers by target.

    Skipping a whole target is not supported by test plans, so a bare
    target name is rejected.

    Raises:
        ConfigurationError: On an identifier of the wrong shape
    """
    grouped: dict[str, list[str]] = {}
    for identifier in identifiers or []:
        parts = identifier.split("/")
        if len(parts) == 1:
            raise ConfigurationError(
                f"not yet supported skip testing format: {identifier}"
            )
        if len(parts) > 3:
            raise ConfigurationError(
                f"invalid skip testing format: {identifier}"
            )
        grouped.setdefault(parts[0], []).append("/".join(parts[1:]))
    return grouped


def find_test_plan(plan_name: str, project_path: Path) -> Path | None:
    """First `<plan_name>.xctestplan` under the project's directory."""
    file_name = plan_name + TESTPLAN_EXT
    for root, dirs, files in os.walk(Path(project_path).parent):
        dirs.sort()
        if file_name in files:
            return Path(root) / file_name
    return None


def add_skipped_tests(plan: Object, skipped: dict[str, list[str]]) -> Object:
    """Append skipped tests to the matching test targets of a plan."""
    targets: Array = plan.get_array("testTargets")
    for item in targets:
        test_target = item._expect(Object)
        name = test_target.get_object("target").get_string("name")
        to_add = skipped.get(name)
        if not to_add:
            continue

        existing: list[str] = []
        if "skippedTests" in test_target:
            existing_node = test_target.get_array("skippedTests")
            existing = [entry.to_python() for entry in existing_node]
        test_target.set("skippedTests", existing + to_add)
    return plan


class SkipTestingEditor:
    """Edits the test plan in the project tree so xcodebuild skips tests."""

    def __init__(self, logger=default_logger):
        self.logger = logger

    def apply(
        self, plan_name: str, project_path: Path, identifiers: list[str]
    ) -> Path:
        """Add `identifiers` to the skipped tests of `plan_name`.

        Raises:
            ConfigurationError: If an identifier is malformed or the
                plan cannot be found
            DocumentError: If the plan is not a valid test plan
        """
        skipped = parse_skip_testing(identifiers)

        plan_path = find_test_plan(plan_name, project_path)
        if plan_path is None:
            raise ConfigurationError(
                f"test plan {plan_name} not found in project directory"
            )
        self.logger.info("Found test plan at: {path}", path=str(plan_path))

        try:
            plan = document.loads(plan_path.read_text(encoding="utf-8"))
        except OSError as e:
            raise DocumentError(
                f"failed to read test plan file: {e}"
            ) from e

        add_skipped_tests(plan, skipped)

        try:
            plan_path.write_text(document.dumps(plan), encoding="utf-8")
        except OSError as e:
            raise DocumentError(
                f"failed to write updated test plan: {e}"
            ) from e
        self.logger.info(
            "Updated test plan written to: {path}", path=str(plan_path)
        )
        return plan_path
