"""Post-build fixes applied to .xctestrun descriptors."""

from __future__ import annotations

from pathlib import Path

from testbundler.core.errors import ArtifactDiscoveryError

PRIVATE_TESTROOT = b"/private__TESTROOT__"
TESTROOT = b"__TESTROOT__"


def fix_test_root_content(content: bytes) -> bytes:
    """Replace `/private__TESTROOT__` with `__TESTROOT__`.

    A custom SYMROOT makes xcodebuild prefix `/private` to
    DependentProductPaths, TestHostPath and UITargetAppPath, which
    breaks running the bundle on another machine.
    """
    return content.replace(PRIVATE_TESTROOT, TESTROOT)


def fix_test_root(path: Path) -> bool:
    """Apply the fix in place. Returns True when the file changed."""
    try:
        content = path.read_bytes()
        fixed = fix_test_root_content(content)
        if fixed == content:
            return False
        path.write_bytes(fixed)
    except OSError as e:
        raise ArtifactDiscoveryError(
            f"failed to apply TESTROOT fix on {path}: {e}"
        ) from e
    return True
