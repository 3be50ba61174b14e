#!/usr/bin/env python3
"""testbundler CLI - build Xcode test bundles for later test runs."""

import asyncio
import contextlib
import sys

from pydantic_settings import (
    CliApp,
    CliSubCommand,
    SettingsConfigDict,
    get_subcommand,
)

from testbundler.command.build import BuildCommand
from testbundler.command.reset import ResetCacheCommand
from testbundler.core.config import State
from testbundler.core.log import logger


class CliState(State):
    """Build an Xcode scheme for testing and export the test bundle.

    Configuration sources (in priority order):
    1. Command-line arguments (--config.project.scheme value)
    2. TESTBUNDLER_ environment variables
       (TESTBUNDLER_CONFIG__PROJECT__SCHEME=value)
    3. .env file
    4. testbundler.yaml in the current directory, the user config
       directory and --include files

    The [JSON] options allow setting multiple values at once:
      --config.project '{"path": "App.xcworkspace", "scheme": "App"}'
    """

    model_config = SettingsConfigDict(cli_kebab_case=True)

    build: CliSubCommand[BuildCommand]
    reset_cache: CliSubCommand[ResetCacheCommand]

    def cli_cmd(self):
        """Dispatch to active subcommand, or show help if none
        provided."""
        subcommand = get_subcommand(self, is_required=False)

        if subcommand is None:
            # argparse exits 0 after printing help
            with contextlib.suppress(SystemExit):
                CliApp.run(CliState, cli_args=['--help'])
            sys.exit(1)

        # Closing the logger flushes file sinks
        with logger:
            exit_code = asyncio.run(subcommand.run_workflow(self))
            raise SystemExit(exit_code)


def main():
    """Main entry point for CLI."""
    CliApp.run(CliState)


if __name__ == "__main__":
    main()
