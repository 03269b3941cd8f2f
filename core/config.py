"""Run configuration and project list parsing."""

import re
from dataclasses import dataclass, field
from pathlib import Path

from .errors import ConfigurationError
from .models import DEFAULT_UPDATE_LIMIT, Project

REPOSITORY_PATTERN = re.compile(r"^[\w.-]+/[\w.-]+$")


@dataclass(frozen=True)
class Config:
    """Settings for one GemUpdater run."""

    github_token: str
    projects: list[Project]
    workspace: Path = field(default_factory=Path.cwd)
    default_branch: str = "master"
    lockfile: str = "Gemfile.lock"
    push_delay: float = 2.0


def parse_project(entry: str, default_limit: int = DEFAULT_UPDATE_LIMIT) -> Project:
    """Parse ``repository[:update_limit[:sub-path[:group,group]]]``.

    Empty fields fall back to their defaults, so ``owner/app::api`` keeps the
    default update limit and works on the ``api`` sub-directory.
    """
    fields = entry.strip().split(":")
    if len(fields) > 4:
        raise ConfigurationError(f"Too many fields in project {entry!r}")
    fields += [""] * (4 - len(fields))
    repository, limit, path, groups = (value.strip() for value in fields)

    if not REPOSITORY_PATTERN.match(repository):
        raise ConfigurationError(f"Not an owner/name repository: {repository!r}")

    if limit:
        try:
            update_limit = int(limit)
        except ValueError:
            raise ConfigurationError(f"Invalid update limit {limit!r} for {repository}")
        if update_limit < 0:
            raise ConfigurationError(f"Update limit must not be negative for {repository}")
    else:
        update_limit = default_limit

    return Project(
        repository=repository,
        update_limit=update_limit,
        path=path.strip("/") or None,
        groups=tuple(group.strip() for group in groups.split(",") if group.strip()),
    )


def parse_projects(value: str, default_limit: int = DEFAULT_UPDATE_LIMIT) -> list[Project]:
    """Parse a whitespace separated list of project entries."""
    return [parse_project(entry, default_limit) for entry in value.split()]


def load_config(
    github_token: str | None,
    projects: str | None,
    update_limit: int | None = None,
    workspace: Path | None = None,
    default_branch: str = "master",
) -> Config:
    """Build a Config, failing before any work starts if settings are missing."""
    missing = []
    if not github_token:
        missing.append("GITHUB_TOKEN")
    if not projects or not projects.strip():
        missing.append("PROJECTS")
    if missing:
        raise ConfigurationError(f"Missing configuration: {', '.join(missing)}")

    default_limit = DEFAULT_UPDATE_LIMIT if update_limit is None else update_limit
    if default_limit < 0:
        raise ConfigurationError("Update limit must not be negative")

    return Config(
        github_token=github_token,
        projects=parse_projects(projects, default_limit),
        workspace=workspace or Path.cwd(),
        default_branch=default_branch,
    )
