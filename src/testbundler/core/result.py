"""Value objects passed between build execution and output discovery."""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict, model_validator


class TimeInterval(BaseModel):
    """Wall-clock window bracketing one build process."""

    model_config = ConfigDict(frozen=True)

    start: datetime
    end: datetime

    @model_validator(mode="after")
    def _check_order(self) -> TimeInterval:
        if self.start > self.end:
            raise ValueError(
                f"interval start {self.start} is after end {self.end}"
            )
        return self

    def contains(self, moment: datetime) -> bool:
        """Inclusive at both ends."""
        return self.start <= moment <= self.end


class ProcessOutput(BaseModel):
    """Outcome of a single build process execution."""

    exit_code: int
    log_text: str

    @property
    def success(self) -> bool:
        return self.exit_code == 0


class BuildRun(BaseModel):
    """A build that exited successfully."""

    log_text: str
    interval: TimeInterval
    attempts: int = 1


class ArtifactKind(str, Enum):
    TEST_DESCRIPTOR = "test-descriptor"
    PRODUCTS_DIRECTORY = "products-directory"


class CandidateArtifact(BaseModel):
    """A file found under the products root, before filtering."""

    path: Path
    kind: ArtifactKind
    modified: datetime


class SchemeTestPlanMetadata(BaseModel):
    """Test plans attached to a scheme's test action."""

    scheme_name: str
    test_plans: list[str] = []
    default_test_plan: str | None = None


class ArtifactSet(BaseModel):
    """Descriptors and products produced by one build."""

    descriptors: list[Path]
    default_descriptor: Path
    products_root: Path
    products_dir: Path
