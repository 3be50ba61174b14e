"""Exporting build outputs."""
