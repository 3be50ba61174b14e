"""Build Xcode test bundles and export them for later test runs."""

__version__ = "0.1.0"
