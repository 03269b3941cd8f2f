"""Per-project update workflow: rank outdated gems, commit updates, open a pull request."""

import logging
import time
from collections.abc import Callable
from pathlib import Path

from .changelog import ChangelogResolver, RubyGemsRegistry
from .command import CommandRunner
from .config import Config
from .errors import CommandError, GemUpdaterError, MergeConflictError
from .git import Git, RepoFetcher
from .models import ChangeProposal, MergeOutcome, Project, ProjectResult, UpdateCandidate
from .outdated import OutdatedScorer, select


class GemUpdater:
    """Update the outdated gems of one project on a single branch.

    The run goes through preparation (fetch, check out and sync the base
    branch), candidate selection, one commit per selected gem on the update
    branch, and finally push and pull request. The working copy is always
    left on the branch it was on before the update branch was created.
    """

    def __init__(
        self,
        project: Project,
        runner: CommandRunner,
        registry: RubyGemsRegistry,
        workspace: Path,
        logger: logging.Logger | None = None,
        github_token: str | None = None,
        base_branch: str = "master",
        lockfile: str = "Gemfile.lock",
        push_delay: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.project = project
        self.runner = runner
        self.logger = logger or logging.getLogger(__name__)
        self.base_branch = base_branch
        self.lockfile = lockfile
        self.push_delay = push_delay
        self.sleep = sleep

        self.fetcher = RepoFetcher(runner, workspace, self.logger)
        self.repo_dir = Path(workspace) / project.directory
        self.project_dir = self.repo_dir / project.path if project.path else self.repo_dir
        self.git = Git(runner, self.project_dir, self.logger, github_token, base_branch)
        self.scorer = OutdatedScorer(runner, self.project_dir)
        self.changelog = ChangelogResolver(self.git, registry, base_branch, lockfile)
        self._outdated: list[UpdateCandidate] | None = None

    @property
    def outdated_gems(self) -> list[UpdateCandidate]:
        """Ranked candidates, computed on first access."""
        if self._outdated is None:
            self._outdated = self.scorer.rank(self.project.groups)
        return self._outdated

    def prepare(self) -> None:
        self.fetcher.fetch(self.project)
        self.git.switch(self.base_branch)
        self.git.pull()

    def select_candidates(self) -> list[UpdateCandidate]:
        self.runner.run(["bundle", "install"], cwd=self.project_dir)
        return select(self.outdated_gems, self.project.update_limit)

    def robust_merge(self) -> bool:
        """Merge the base branch, resolving lockfile-only conflicts with the base version.

        Returns:
            True if a recovery commit was made
        """
        if self.git.merge(self.base_branch) == MergeOutcome.MERGED:
            return False

        conflicts = self.git.conflicted_paths()
        unexpected = [path for path in conflicts if not self._is_lockfile(path)]
        if unexpected:
            self.git.abort_merge()
            raise MergeConflictError(unexpected)

        self.logger.info("Lockfile conflict, taking %s from origin/%s", self.lockfile, self.base_branch)
        self.git.checkout(f"origin/{self.base_branch}", self.lockfile)
        self.git.commit(f"merge {self.base_branch}", allow_empty=True)
        return True

    def _is_lockfile(self, path: str) -> bool:
        # conflict paths are relative to the repository root
        expected = f"{self.project.path}/{self.lockfile}" if self.project.path else self.lockfile
        return path == expected

    def update_gem(self, candidate: UpdateCandidate) -> None:
        self.logger.info(
            "Updating %s (%s, %d)", candidate.package_name, candidate.severity.value, candidate.magnitude
        )
        self.runner.run(
            ["bundle", "update", "--strict", f"--{candidate.severity.value}", candidate.package_name],
            cwd=self.project_dir,
        )
        self.git.commit(f"update {candidate.package_name}")

    def describe(self, candidates: list[UpdateCandidate]) -> str:
        sections = []
        for candidate in candidates:
            lines = [f"{candidate.package_name} ({candidate.severity.value})"]
            uri = self.changelog.registry_uri(candidate.package_name)
            if uri:
                lines.append(uri)
            change_log = self.changelog.change_log(candidate.package_name)
            if change_log:
                lines.append(change_log)
            sections.append("\n".join(lines))
        return "\n\n".join(sections)

    def finalize(self, branch: str, candidates: list[UpdateCandidate]) -> ChangeProposal:
        self.git.push()
        self.sleep(self.push_delay)  # let GitHub register the branch
        proposal = ChangeProposal(
            branch=branch,
            title=self.project.title,
            body=self.describe(candidates),
            candidates=list(candidates),
        )
        proposal.url = self.git.propose_change(proposal.title, proposal.body)
        return proposal

    def update_gems(self) -> ProjectResult:
        """Run the whole workflow for the project."""
        self.prepare()
        candidates = self.select_candidates()
        result = ProjectResult(project=self.project, candidates=candidates)
        if not candidates:
            self.logger.info("%s: everything up to date", self.project.repository)
            return result

        with self.git.change_branch(self.project.branch_name) as branch:
            self.robust_merge()
            for candidate in candidates:
                self.update_gem(candidate)
            result.proposal = self.finalize(branch, candidates)
        return result


def update_projects(
    config: Config,
    runner: CommandRunner,
    registry: RubyGemsRegistry,
    logger: logging.Logger | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> list[ProjectResult]:
    """Process every configured project in order.

    A failing project is logged and recorded; the remaining projects still run.
    """
    logger = logger or logging.getLogger(__name__)
    results = []
    for project in config.projects:
        label = f"{project.repository}:{project.path}" if project.path else project.repository
        logger.info("Processing %s", label)
        updater = GemUpdater(
            project,
            runner,
            registry,
            config.workspace,
            logger=logger,
            github_token=config.github_token,
            base_branch=config.default_branch,
            lockfile=config.lockfile,
            push_delay=config.push_delay,
            sleep=sleep,
        )
        try:
            results.append(updater.update_gems())
        except CommandError as e:
            logger.error("%s failed: %s\n%s", label, e, e.output.strip())
            results.append(ProjectResult(project=project, error=str(e)))
        except GemUpdaterError as e:
            logger.error("%s failed: %s", label, e)
            results.append(ProjectResult(project=project, error=str(e)))
    return results
