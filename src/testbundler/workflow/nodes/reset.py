"""Reset node - remove the dependency cache."""

from __future__ import annotations

import shutil
from dataclasses import dataclass
from pathlib import Path

from pydantic_graph import BaseNode, End, GraphRunContext

from testbundler.build.builder import BundleBuilder
from testbundler.core.config import State
from testbundler.core.errors import ConfigurationError
from testbundler.core.log import logger


@dataclass
class ResetCache(BaseNode[State]):
    """Delete the Swift package cache so the next build starts clean."""

    async def run(self, ctx: GraphRunContext[State]) -> End[Path | None]:
        config = ctx.state.config
        reset = ctx.state.runtime.reset

        if config.cache.path is None and config.project.path is None:
            raise ConfigurationError(
                "either the cache path or the project path is required"
            )

        builder = ctx.state.runtime.build.builder or BundleBuilder(config)
        project_path = (
            Path(config.project.path).expanduser().resolve()
            if config.project.path else None
        )
        cache_path = builder.cache_location(project_path)
        if cache_path is None:
            logger.warn("No dependency cache configured, nothing to reset")
            reset.status = "complete"
            return End(None)

        if not cache_path.exists():
            logger.info(
                "Dependency cache {path} does not exist",
                path=str(cache_path),
            )
            reset.status = "complete"
            return End(None)

        logger.info("Removing dependency cache {path}", path=str(cache_path))
        shutil.rmtree(cache_path)

        reset.removed = cache_path
        reset.status = "complete"
        return End(cache_path)
