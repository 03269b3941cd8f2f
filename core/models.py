"""Core data models for GemUpdater."""

from dataclasses import dataclass, field
from enum import Enum


DEFAULT_UPDATE_LIMIT = 2


class Severity(str, Enum):
    """How disruptive an available update is expected to be."""

    PATCH = "patch"
    MINOR = "minor"
    MAJOR = "major"


# Order in which outdated reports are scanned. Earlier tiers win on duplicates.
SEVERITY_ORDER = (Severity.PATCH, Severity.MINOR, Severity.MAJOR)


class MergeOutcome(str, Enum):
    """Result of integrating another branch into the working branch."""

    MERGED = "merged"
    CONFLICTED = "conflicted"


@dataclass(frozen=True)
class Project:
    """A configured repository (optionally a sub-directory of it) to keep up to date."""

    repository: str  # owner/name
    update_limit: int = DEFAULT_UPDATE_LIMIT
    path: str | None = None
    groups: tuple[str, ...] = ()

    @property
    def directory(self) -> str:
        """Name of the local checkout directory."""
        return self.repository.split("/")[-1]

    @property
    def branch_name(self) -> str:
        if self.path:
            return "update_gems_" + self.path.strip("/").replace("/", "_")
        return "update_gems"

    @property
    def title(self) -> str:
        if self.path:
            return f"[GemUpdater][{self.path}] update gems"
        return "[GemUpdater] update gems"


@dataclass(frozen=True)
class UpdateCandidate:
    """A gem that can be updated, ranked by severity and magnitude."""

    package_name: str
    severity: Severity
    magnitude: int


@dataclass
class ChangeProposal:
    """Pull request content produced for a project's update branch."""

    branch: str
    title: str
    body: str
    candidates: list[UpdateCandidate] = field(default_factory=list)
    url: str | None = None


@dataclass
class ProjectResult:
    """Outcome of processing one project in a run."""

    project: Project
    candidates: list[UpdateCandidate] = field(default_factory=list)
    proposal: ChangeProposal | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None
