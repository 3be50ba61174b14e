"""Build command - runs the build-for-testing workflow."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from testbundler.core.errors import BundleError
from testbundler.core.log import logger

if TYPE_CHECKING:
    from testbundler.core.config import State


class BuildCommand(BaseModel):
    """Build an Xcode scheme for testing and export the test bundle.

    Runs xcodebuild build-for-testing, finds the .xctestrun files the
    build produced and exports the bundle, the zipped bundle, the
    default .xctestrun and the raw build log for later steps.

    All configuration comes from testbundler.yaml, .env, TESTBUNDLER_
    environment variables or CLI flags.
    """

    async def run_workflow(self, state: State) -> int:
        """Run build workflow.

        Returns:
            Exit code (0=success, 1=failure)
        """
        from testbundler.workflow.graph import create_workflow
        from testbundler.workflow.nodes.initialize import Initialize

        workflow = create_workflow()

        try:
            async with workflow.iter(Initialize(), state=state) as run:
                async for _node in run:
                    pass
        except BundleError as e:
            logger.error("Build failed: {error}", error=str(e))
            return 1
        finally:
            # Removes the temporary API key however the workflow ended
            builder = state.runtime.build.builder
            if builder is not None:
                builder.cleanup()

        if run.result is None:
            logger.error("Build failed - workflow ended unexpectedly")
            return 1
        return 0
