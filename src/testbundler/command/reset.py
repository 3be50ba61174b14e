"""Reset cache command - removes the Swift package cache."""

from __future__ import annotations

from typing import TYPE_CHECKING

from pydantic import BaseModel

from testbundler.core.errors import BundleError
from testbundler.core.log import logger

if TYPE_CHECKING:
    from testbundler.core.config import State


class ResetCacheCommand(BaseModel):
    """Remove the Swift package dependency cache.

    Uses config.cache.path, or the SourcePackages directory next to
    the project's derived data when no path is set.
    """

    async def run_workflow(self, state: State) -> int:
        from testbundler.workflow.graph import create_reset_workflow
        from testbundler.workflow.nodes.reset import ResetCache

        workflow = create_reset_workflow()
        try:
            async with workflow.iter(ResetCache(), state=state) as run:
                async for _node in run:
                    pass
        except (BundleError, OSError) as e:
            logger.error("Reset failed: {error}", error=str(e))
            return 1

        logger.info("Reset complete")
        return 0
