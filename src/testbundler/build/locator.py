"""Locating the test bundle a build produced."""

from __future__ import annotations

from collections.abc import Callable, Sequence
from pathlib import Path

from testbundler.build.descriptor import fix_test_root
from testbundler.build.discovery import (
    CandidateEnumerator,
    DirectoryListingEnumerator,
)
from testbundler.build.resolver import (
    products_dir_name,
    resolve_default,
    resolve_destination,
)
from testbundler.build.window import ModificationTimeWindowFilter
from testbundler.core.errors import MissingBuildOutputError, NoArtifactsFoundError
from testbundler.core.log import logger as default_logger
from testbundler.core.result import ArtifactSet, TimeInterval
from testbundler.xcode.buildsettings import BuildSettingsReader
from testbundler.xcode.scheme import SchemeReader

DefaultResolver = Callable[[Sequence[Path], str | None], Path]


class BuildOutputLocator:
    """Finds the descriptors and products directory of one build.

    xcodebuild does not report what build-for-testing produced, so
    the products root is listed and only descriptors modified during
    the build's time window are kept. Leftovers from earlier builds
    into the same root fall outside the window.

    Enumeration and default resolution are pluggable; the defaults
    list the products root by extension and match the scheme's
    default test plan name.
    """

    def __init__(
        self,
        settings_reader: BuildSettingsReader,
        scheme_reader: SchemeReader,
        enumerator: CandidateEnumerator | None = None,
        window_filter: ModificationTimeWindowFilter | None = None,
        resolver: DefaultResolver = resolve_default,
        logger=default_logger,
    ):
        self.settings_reader = settings_reader
        self.scheme_reader = scheme_reader
        self.enumerator = enumerator or DirectoryListingEnumerator()
        self.window_filter = window_filter or ModificationTimeWindowFilter(
            logger=logger
        )
        self.resolver = resolver
        self.logger = logger

    def locate(
        self,
        project_path: Path,
        scheme: str,
        configuration: str,
        options: list[str],
        interval: TimeInterval,
    ) -> ArtifactSet:
        """Resolve the artifact set of a build.

        Raises:
            MetadataReadError: If build settings or the scheme
                cannot be read
            NoArtifactsFoundError: If no descriptor is in the window
            AmbiguousDestinationError: If descriptors disagree on the
                destination
            MissingBuildOutputError: If the products directory is
                missing
        """
        settings = self.settings_reader.show(
            project_path, scheme, configuration, "build-for-testing", options
        )
        # Where all products are placed when performing a build
        products_root = Path(settings.string("SYMROOT"))
        effective_configuration = settings.string("CONFIGURATION")
        self.logger.info(
            "SYMROOT: {symroot}, CONFIGURATION: {configuration}",
            symroot=str(products_root),
            configuration=effective_configuration,
        )

        candidates = self.enumerator.candidates(products_root, scheme)
        # mtimes were recorded at enumeration, so rewriting is safe here
        for candidate in candidates:
            fix_test_root(candidate.path)

        descriptors = [
            candidate.path
            for candidate in candidates
            if self.window_filter.accepts(candidate, interval)
        ]
        if not descriptors:
            raise NoArtifactsFoundError(
                f"no xctestrun file generated during the build in "
                f"{products_root}"
            )

        self.logger.info(
            "xctestrun file(s) generated during the build:\n- {paths}",
            paths="\n- ".join(str(d) for d in descriptors),
        )

        default = descriptors[0]
        if len(descriptors) > 1:
            metadata = self.scheme_reader.scheme(project_path, scheme)
            default = self.resolver(descriptors, metadata.default_test_plan)
            self.logger.info(
                "Default xctestrun based on {scheme} scheme's default "
                "test plan ({plan}): {path}",
                scheme=scheme,
                plan=metadata.default_test_plan or "none",
                path=str(default),
            )

        sdk = resolve_destination(descriptors)
        products_dir = products_root / products_dir_name(
            effective_configuration, sdk
        )
        if not products_dir.is_dir():
            raise MissingBuildOutputError(
                f"built test directory does not exist at: {products_dir}"
            )
        self.logger.info(
            "Built test directory: {path}", path=str(products_dir)
        )

        return ArtifactSet(
            descriptors=descriptors,
            default_descriptor=default,
            products_root=products_root,
            products_dir=products_dir,
        )
