"""Build node - run xcodebuild build-for-testing."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, GraphRunContext

from testbundler.core.config import State
from testbundler.core.errors import BuildFailedError, ExportError
from testbundler.core.log import logger
from testbundler.export.outputs import EnvExporter, mark_for_caching


@dataclass
class Build(BaseNode[State]):
    """Run the build, retrying once on a corrupted dependency cache."""

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> "Locate | Export":
        runtime = ctx.state.runtime.build
        failure = None
        try:
            build_run = runtime.builder.build(runtime.command)
        except BuildFailedError as e:
            failure = e
        except OSError as e:
            failure = BuildFailedError(f"failed to run xcodebuild: {e}")

        if failure is not None:
            runtime.failure = failure
            runtime.log_text = failure.log_text
            runtime.status = "failed"
            logger.error("{error}", error=str(failure))

            # The log is still exported, with its last lines
            from testbundler.workflow.nodes.export import Export
            return Export()

        runtime.build_run = build_run
        runtime.log_text = build_run.log_text
        if build_run.attempts > 1:
            logger.info("Build succeeded after clearing the cache")

        cache_path = runtime.builder.cache_path
        if (
            ctx.state.config.cache.level == "swift_packages"
            and cache_path is not None
        ):
            env = EnvExporter(
                command_template=ctx.state.config.output.env_command,
                logger=logger,
            )
            try:
                mark_for_caching(env, cache_path)
            except ExportError as e:
                logger.warn(
                    "Failed to mark swift packages for caching: {error}",
                    error=str(e),
                )

        from testbundler.workflow.nodes.locate import Locate
        return Locate()
