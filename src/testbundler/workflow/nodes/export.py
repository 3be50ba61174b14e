"""Export node - publish outputs, then report the build outcome."""

from __future__ import annotations

from dataclasses import dataclass

from pydantic_graph import BaseNode, End, GraphRunContext

from testbundler.core.config import State
from testbundler.core.log import logger
from testbundler.core.result import ArtifactSet
from testbundler.export.outputs import EnvExporter, OutputExporter


def last_lines(text: str, count: int) -> str:
    lines = text.rstrip("\n").splitlines()
    return "\n".join(lines[-count:]) if count > 0 else ""


def print_log_tail(log_text: str, count: int) -> None:
    if not log_text or count <= 0:
        return
    logger.info(
        "Last {count} lines of the build log:\n{lines}",
        count=count,
        lines=last_lines(log_text, count),
    )


@dataclass
class Export(BaseNode[State, None, ArtifactSet]):
    """Export the raw log and test bundle.

    Runs after a failed build too. A stored failure is raised once
    the outputs are written.
    """

    async def run(
        self, ctx: GraphRunContext[State]
    ) -> End[ArtifactSet]:
        config = ctx.state.config
        runtime = ctx.state.runtime.build

        # Failed builds and raw xcodebuild output get the log tail
        if (
            runtime.failure is not None
            or config.build.log_formatter == "xcodebuild"
        ):
            print_log_tail(runtime.log_text, config.build.last_lines)

        exporter = OutputExporter(
            config.output.dir,
            env=EnvExporter(
                command_template=config.output.env_command,
                logger=logger,
            ),
            logger=logger,
        )
        exporter.export(runtime.log_text, runtime.artifacts)

        if runtime.failure is not None:
            raise runtime.failure

        runtime.status = "complete"
        logger.info("Test bundle built")
        return End(runtime.artifacts)
