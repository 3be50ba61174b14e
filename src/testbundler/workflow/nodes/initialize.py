"""Initialize node - validate inputs and assemble the xcodebuild command."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from testbundler.build.builder import BundleBuilder
from testbundler.core.config import State
from testbundler.core.log import logger


@dataclass
class Initialize(BaseNode[State]):
    """Prepare the build: options, SYMROOT, test plan, signing."""

    async def run(self, ctx: GraphRunContext[State]) -> "Build":
        runtime = ctx.state.runtime.build
        if runtime.builder is None:
            runtime.builder = BundleBuilder(ctx.state.config)

        runtime.status = "running"
        logger.info(
            "Preparing build-for-testing of {scheme}",
            scheme=ctx.state.config.project.scheme,
        )
        runtime.command = runtime.builder.prepare()

        from testbundler.workflow.nodes.build import Build
        return Build()
