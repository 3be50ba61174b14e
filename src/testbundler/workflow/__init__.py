"""Workflow graphs driven by the CLI commands."""
