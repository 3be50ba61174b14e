"""Strategies for enumerating candidate test descriptors."""

from __future__ import annotations

import glob
from pathlib import Path
from typing import Protocol

from testbundler.build.window import modification_time
from testbundler.core.errors import ArtifactDiscoveryError
from testbundler.core.result import ArtifactKind, CandidateArtifact

XCTESTRUN_EXT = ".xctestrun"


def _candidate(path: Path) -> CandidateArtifact:
    return CandidateArtifact(
        path=path,
        kind=ArtifactKind.TEST_DESCRIPTOR,
        modified=modification_time(path),
    )


class CandidateEnumerator(Protocol):
    def candidates(
        self, products_root: Path, scheme: str
    ) -> list[CandidateArtifact]:
        ...


class DirectoryListingEnumerator:
    """Every file directly under the products root with the extension.

    Makes no assumption about how descriptors are named. Entries are
    sorted by name, so discovery order does not depend on the
    filesystem.
    """

    def __init__(self, extension: str = XCTESTRUN_EXT):
        self.extension = extension

    def candidates(
        self, products_root: Path, scheme: str
    ) -> list[CandidateArtifact]:
        try:
            entries = sorted(products_root.iterdir(), key=lambda p: p.name)
        except OSError as e:
            raise ArtifactDiscoveryError(
                f"failed to list {products_root} entries: {e}"
            ) from e
        return [
            _candidate(entry)
            for entry in entries
            if entry.suffix == self.extension and entry.is_file()
        ]


class GlobPatternEnumerator:
    """Descriptors matching `<scheme>*<ext>` under the products root."""

    def __init__(self, extension: str = XCTESTRUN_EXT):
        self.extension = extension

    def pattern(self, products_root: Path, scheme: str) -> str:
        return str(
            products_root / f"{glob.escape(scheme)}*{self.extension}"
        )

    def candidates(
        self, products_root: Path, scheme: str
    ) -> list[CandidateArtifact]:
        matches = sorted(glob.glob(self.pattern(products_root, scheme)))
        return [_candidate(Path(match)) for match in matches]


ENUMERATORS = {
    "directory": DirectoryListingEnumerator,
    "glob": GlobPatternEnumerator,
}


def create_enumerator(name: str) -> CandidateEnumerator:
    try:
        return ENUMERATORS[name]()
    except KeyError:
        raise ValueError(
            f"unknown discovery strategy {name!r}, "
            f"expected one of {', '.join(ENUMERATORS)}"
        ) from None
