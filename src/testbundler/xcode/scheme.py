"""Scheme lookup and test plan metadata."""

from __future__ import annotations

import xml.etree.ElementTree as ET
from pathlib import Path

from testbundler.core.errors import MetadataReadError
from testbundler.core.log import logger as default_logger
from testbundler.core.result import SchemeTestPlanMetadata


def plan_name_from_reference(reference: str) -> str:
    """`container:Dir/FullTests.xctestplan` -> `FullTests`."""
    location = reference.split(":", 1)[-1]
    name = Path(location).name
    return name.removesuffix(".xctestplan")


def parse_scheme(content: str | bytes, scheme_name: str) -> SchemeTestPlanMetadata:
    """Extract test plan references from .xcscheme XML."""
    try:
        root = ET.fromstring(content)
    except ET.ParseError as e:
        raise MetadataReadError(
            f"failed to parse scheme {scheme_name}: {e}"
        ) from e

    plans = []
    default_plan = None
    for ref in root.iterfind("./TestAction/TestPlans/TestPlanReference"):
        reference = ref.get("reference", "")
        if not reference:
            continue
        name = plan_name_from_reference(reference)
        plans.append(name)
        if ref.get("default", "").upper() == "YES" and default_plan is None:
            default_plan = name

    return SchemeTestPlanMetadata(
        scheme_name=scheme_name,
        test_plans=plans,
        default_test_plan=default_plan,
    )


def _workspace_projects(workspace: Path) -> list[Path]:
    """Projects referenced by a workspace, in file order."""
    data = workspace / "contents.xcworkspacedata"
    if not data.is_file():
        return []
    try:
        root = ET.parse(data).getroot()
    except ET.ParseError as e:
        raise MetadataReadError(
            f"failed to parse {data}: {e}"
        ) from e

    projects = []

    def walk(element, base: Path):
        for child in element:
            location = child.get("location", "")
            kind, _, rel = location.partition(":")
            if kind == "absolute":
                path = Path(rel)
            elif kind == "group":
                path = base / rel
            else:
                path = workspace.parent / rel
            if child.tag == "Group":
                walk(child, path)
            elif child.tag == "FileRef" and path.suffix == ".xcodeproj":
                projects.append(path)

    walk(root, workspace.parent)
    return projects


def _scheme_file(container: Path, scheme_name: str) -> Path | None:
    shared = container / "xcshareddata" / "xcschemes" / f"{scheme_name}.xcscheme"
    if shared.is_file():
        return shared
    for user_dir in sorted(container.glob("xcuserdata/*.xcuserdatad")):
        candidate = user_dir / "xcschemes" / f"{scheme_name}.xcscheme"
        if candidate.is_file():
            return candidate
    return None


class SchemeReader:
    """Finds a scheme in a project or workspace and reads its test plans."""

    def __init__(self, logger=default_logger):
        self.logger = logger

    def find(self, project_path: Path, scheme_name: str) -> Path:
        containers = [project_path]
        if project_path.suffix == ".xcworkspace":
            containers += _workspace_projects(project_path)

        for container in containers:
            found = _scheme_file(container, scheme_name)
            if found:
                self.logger.debug(
                    "Scheme file found", scheme=scheme_name, path=str(found)
                )
                return found

        raise MetadataReadError(
            f"scheme {scheme_name} not found in {project_path}"
        )

    def scheme(
        self, project_path: Path, scheme_name: str
    ) -> SchemeTestPlanMetadata:
        path = self.find(project_path, scheme_name)
        try:
            content = path.read_bytes()
        except OSError as e:
            raise MetadataReadError(f"failed to read {path}: {e}") from e
        return parse_scheme(content, scheme_name)
