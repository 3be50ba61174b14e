"""Tests for the typed test plan document."""

import pytest

from testbundler.core.errors import DocumentError
from testbundler.testplan import document
from testbundler.testplan.document import Array, Bool, Null, Number, Object, String

PLAN = """{
  "configurations" : [
    {
      "id" : "4F3A",
      "name" : "Configuration 1",
      "options" : {

      }
    }
  ],
  "defaultOptions" : {
    "codeCoverage" : false,
    "testTimeoutsEnabled" : true,
    "maximumTestExecutionTimeAllowance" : 60
  },
  "testTargets" : [
    {
      "skippedTests" : [
        "BullsEyeSlowTests\\/testExample"
      ],
      "target" : {
        "containerPath" : "container:BullsEye.xcodeproj",
        "identifier" : "E1C3",
        "name" : "BullsEyeUITests"
      }
    }
  ],
  "version" : 1,
  "note" : null
}
"""


def test_variants():
    plan = document.loads(PLAN)

    assert isinstance(plan, Object)
    assert isinstance(plan.get("configurations"), Array)
    options = plan.get_object("defaultOptions")
    assert isinstance(options.get("codeCoverage"), Bool)
    assert isinstance(options.get("maximumTestExecutionTimeAllowance"), Number)
    assert isinstance(plan.get("note"), Null)
    target = plan.get_array("testTargets").items[0].get_object("target")
    assert isinstance(target.get("name"), String)
    assert target.get_string("name") == "BullsEyeUITests"


def test_escaped_slash_read_as_slash():
    plan = document.loads(PLAN)
    skipped = plan.get_array("testTargets").items[0].get_array("skippedTests")

    assert skipped.to_python() == ["BullsEyeSlowTests/testExample"]


def test_round_trip_keeps_key_order_and_escaping():
    plan = document.loads(PLAN)

    text = document.dumps(plan)

    assert list(document.loads(text).members) == [
        "configurations",
        "defaultOptions",
        "testTargets",
        "version",
        "note",
    ]
    assert '"BullsEyeSlowTests\\/testExample"' in text
    assert '"containerPath" : "container:BullsEye.xcodeproj"' in text
    assert text.endswith("}\n")


def test_missing_key_names_path():
    plan = document.loads(PLAN)

    with pytest.raises(DocumentError, match=r"\$\.defaultOptions: language"):
        plan.get_object("defaultOptions").get("language")


def test_wrong_shape_names_path():
    plan = document.loads(PLAN)

    with pytest.raises(DocumentError, match="expected array, found number"):
        plan.get_array("version")
    with pytest.raises(DocumentError, match=r"testTargets\[0\]"):
        plan.get_array("testTargets").items[0].get_string("target")


def test_root_must_be_object():
    with pytest.raises(DocumentError, match="expected object"):
        document.loads("[1, 2]")


def test_invalid_json():
    with pytest.raises(DocumentError, match="invalid JSON"):
        document.loads("{")


def test_set_and_append():
    plan = document.loads('{"a" : []}')

    plan.get_array("a").append("x/y")
    plan.set("b", {"c": True})

    assert plan.to_python() == {"a": ["x/y"], "b": {"c": True}}
    assert plan.get_object("b").path == "$.b"
