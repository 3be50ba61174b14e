"""Workflow nodes for graph state machine."""

from testbundler.workflow.nodes.build import Build
from testbundler.workflow.nodes.export import Export
from testbundler.workflow.nodes.initialize import Initialize
from testbundler.workflow.nodes.locate import Locate
from testbundler.workflow.nodes.reset import ResetCache

__all__ = [
    "Initialize",
    "Build",
    "Locate",
    "Export",
    "ResetCache",
]
