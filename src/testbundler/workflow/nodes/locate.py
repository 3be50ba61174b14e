"""Locate node - find the descriptors and products of the build."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from testbundler.core.config import State
from testbundler.core.errors import BundleError
from testbundler.core.log import logger


@dataclass
class Locate(BaseNode[State]):
    """Resolve the ArtifactSet inside the build's time window."""

    async def run(self, ctx: GraphRunContext[State]) -> "Export":
        from testbundler.workflow.nodes.export import Export

        runtime = ctx.state.runtime.build
        logger.info("Searching for outputs")
        try:
            runtime.artifacts = runtime.builder.locate(
                runtime.command, runtime.build_run.interval
            )
        except BundleError as e:
            # Raised again by Export once the log is saved
            runtime.failure = e
            runtime.status = "failed"
            logger.error("{error}", error=str(e))
        return Export()
