"""CLI subcommands."""

from testbundler.command.build import BuildCommand
from testbundler.command.reset import ResetCacheCommand

__all__ = ["BuildCommand", "ResetCacheCommand"]
