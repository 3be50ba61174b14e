"""Choosing the default descriptor and the destination it was built for.

Descriptor names follow `<scheme>[_<test plan>]_<sdk><version>-<arch>.xctestrun`,
for example `BullsEye_FullTests_iphonesimulator15.5-arm64.xctestrun`.
"""

from __future__ import annotations

from collections.abc import Sequence
from pathlib import Path

from testbundler.core.errors import AmbiguousDestinationError

SIMULATOR_SDKS = (
    "iphonesimulator",
    "appletvsimulator",
    "watchsimulator",
    "xrsimulator",
)
DEVICE_SDKS = ("iphoneos", "appletvos", "watchos", "xros", "macosx")

# Used when no known SDK appears in a descriptor name
FALLBACK_SDK = "iphoneos"


def resolve_default(
    candidates: Sequence[Path], default_plan_name: str | None
) -> Path:
    """Pick the descriptor generated for the default test plan.

    The first candidate whose file name contains `_<plan>_` wins.
    Without a default plan, or without a match, the first candidate
    in discovery order is returned.
    """
    if not candidates:
        raise ValueError("no candidates to choose from")

    if default_plan_name:
        token = f"_{default_plan_name}_"
        for candidate in candidates:
            if token in Path(candidate).name:
                return candidate
    return candidates[0]


def destination_sdk(descriptor: Path) -> str:
    """SDK name a descriptor was built for, from its file name."""
    name = Path(descriptor).name
    last_part = Path(name).stem.rsplit("_", 1)[-1]
    for sdk in SIMULATOR_SDKS + DEVICE_SDKS:
        if last_part.startswith(sdk):
            return sdk
    for sdk in SIMULATOR_SDKS + DEVICE_SDKS:
        if f"_{sdk}" in name:
            return sdk
    return FALLBACK_SDK


def resolve_destination(descriptors: Sequence[Path]) -> str:
    """Single SDK shared by all descriptors.

    Raises:
        AmbiguousDestinationError: If descriptors disagree
    """
    sdks = {destination_sdk(d) for d in descriptors}
    if len(sdks) != 1:
        listing = "\n- ".join(str(d) for d in descriptors)
        raise AmbiguousDestinationError(
            f"descriptors were built for different destinations "
            f"({', '.join(sorted(sdks))}):\n- {listing}"
        )
    return sdks.pop()


def products_dir_name(configuration: str, sdk: str) -> str:
    """`Debug-iphonesimulator`; macOS products have no SDK suffix."""
    if sdk == "macosx":
        return configuration
    return f"{configuration}-{sdk}"
