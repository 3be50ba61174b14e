"""Graph workflow definitions."""

from pydantic_graph import Graph

from testbundler.core.config import State
from testbundler.core.log import logger


def create_workflow():
    """Create the build workflow graph.

    Initialize → Build → Locate → Export, with a failed build going
    straight from Build to Export so its log is still exported.

    Returns:
        Graph workflow with State as state_type
    """
    logger.debug("Building workflow graph")

    # Node modules import State, so they are imported here
    from testbundler.workflow.nodes.build import Build
    from testbundler.workflow.nodes.export import Export
    from testbundler.workflow.nodes.initialize import Initialize
    from testbundler.workflow.nodes.locate import Locate

    return Graph(
        nodes=(Initialize, Build, Locate, Export),
        state_type=State,
    )


def create_reset_workflow():
    """Single-node graph removing the dependency cache."""
    from testbundler.workflow.nodes.reset import ResetCache

    return Graph(nodes=(ResetCache,), state_type=State)
