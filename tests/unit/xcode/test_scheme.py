"""Tests for scheme lookup and test plan parsing."""

import pytest

from testbundler.core.errors import MetadataReadError
from testbundler.xcode.scheme import (
    SchemeReader,
    parse_scheme,
    plan_name_from_reference,
)

SCHEME = """<?xml version="1.0" encoding="UTF-8"?>
<Scheme LastUpgradeVersion = "1500" version = "1.7">
   <BuildAction parallelizeBuildables = "YES"/>
   <TestAction buildConfiguration = "Debug">
      <TestPlans>
         <TestPlanReference reference = "container:BullsEye/UnitTests.xctestplan">
         </TestPlanReference>
         <TestPlanReference
            reference = "container:BullsEye/FullTests.xctestplan"
            default = "YES">
         </TestPlanReference>
      </TestPlans>
   </TestAction>
</Scheme>
"""

NO_PLANS = """<?xml version="1.0" encoding="UTF-8"?>
<Scheme><TestAction buildConfiguration = "Debug"/></Scheme>
"""


def write_scheme(container, name, content=SCHEME, user=None):
    if user:
        schemes = container / "xcuserdata" / f"{user}.xcuserdatad" / "xcschemes"
    else:
        schemes = container / "xcshareddata" / "xcschemes"
    schemes.mkdir(parents=True)
    path = schemes / f"{name}.xcscheme"
    path.write_text(content)
    return path


def test_plan_name_from_reference():
    assert plan_name_from_reference(
        "container:BullsEye/FullTests.xctestplan"
    ) == "FullTests"
    assert plan_name_from_reference("Plain.xctestplan") == "Plain"


def test_parse_default_plan():
    metadata = parse_scheme(SCHEME, "BullsEye")

    assert metadata.scheme_name == "BullsEye"
    assert metadata.test_plans == ["UnitTests", "FullTests"]
    assert metadata.default_test_plan == "FullTests"


def test_parse_scheme_without_plans():
    metadata = parse_scheme(NO_PLANS, "BullsEye")

    assert metadata.test_plans == []
    assert metadata.default_test_plan is None


def test_parse_invalid_xml():
    with pytest.raises(MetadataReadError, match="BullsEye"):
        parse_scheme("<Scheme>", "BullsEye")


def test_shared_scheme_in_project(tmp_path):
    project = tmp_path / "BullsEye.xcodeproj"
    expected = write_scheme(project, "BullsEye")

    reader = SchemeReader()
    assert reader.find(project, "BullsEye") == expected
    assert reader.scheme(project, "BullsEye").default_test_plan == "FullTests"


def test_user_scheme_in_project(tmp_path):
    project = tmp_path / "BullsEye.xcodeproj"
    expected = write_scheme(project, "BullsEye", user="vagrant")

    assert SchemeReader().find(project, "BullsEye") == expected


def test_scheme_in_workspace_project(tmp_path):
    workspace = tmp_path / "BullsEye.xcworkspace"
    workspace.mkdir()
    (workspace / "contents.xcworkspacedata").write_text(
        """<?xml version="1.0" encoding="UTF-8"?>
<Workspace version = "1.0">
   <Group location = "container:Apps" name = "Apps">
      <FileRef location = "group:BullsEye.xcodeproj"/>
   </Group>
   <FileRef location = "container:Pods/Pods.xcodeproj"/>
</Workspace>
"""
    )
    project = tmp_path / "Apps" / "BullsEye.xcodeproj"
    expected = write_scheme(project, "BullsEye")

    assert SchemeReader().find(workspace, "BullsEye") == expected


def test_missing_scheme(tmp_path):
    project = tmp_path / "BullsEye.xcodeproj"
    project.mkdir()

    with pytest.raises(MetadataReadError, match="not found"):
        SchemeReader().scheme(project, "BullsEye")
