"""Exception types raised by the build and discovery layers."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from testbundler.core.result import TimeInterval


class BundleError(Exception):
    """Base class for every error the CLI reports as a failed step."""


class ConfigurationError(BundleError):
    """Inputs are invalid or contradict each other."""


class BuildFailedError(BundleError):
    """xcodebuild exited non-zero and was not recovered by a retry.

    Carries the captured log so the caller can print its tail and
    export it even though the build failed.
    """

    def __init__(
        self,
        message: str,
        log_text: str = "",
        exit_code: int | None = None,
        interval: TimeInterval | None = None,
    ):
        super().__init__(message)
        self.log_text = log_text
        self.exit_code = exit_code
        self.interval = interval


class MetadataReadError(BundleError):
    """Build settings or scheme metadata could not be read."""


class ArtifactDiscoveryError(BundleError):
    """The products root could not be listed, stat'ed or rewritten."""


class NoArtifactsFoundError(BundleError):
    """No test descriptor was produced inside the build window."""


class MissingBuildOutputError(BundleError):
    """The built products directory next to the descriptors is missing."""


class AmbiguousDestinationError(BundleError):
    """Descriptors were built for conflicting destination classes."""


class DocumentError(BundleError):
    """A test plan document does not have the expected shape."""


class ExportError(BundleError):
    """An output could not be packaged or exported."""
