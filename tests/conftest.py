"""Pytest configuration and fixtures."""

import logging

import pytest

from core.command import CommandRunner
from core.errors import CommandError


class FakeRunner(CommandRunner):
    """CommandRunner that records commands instead of running them.

    Responses are registered per command prefix; the most recently registered
    match wins. Branch creation, checkout and lookup are simulated so that
    the current branch can be observed.
    """

    def __init__(self, branch: str = "master"):
        super().__init__(logging.getLogger("tests"))
        self.calls: list[list[str]] = []
        self.cwds: list = []
        self.envs: list = []
        self.responses: list[tuple[tuple[str, ...], object]] = []
        self.branch = branch
        self.branches = {branch}

    def on(self, *prefix: str, output="", fail: bool = False, returncode: int = 1) -> None:
        """Register the output (str or callable) for commands starting with prefix."""
        self.responses.append((prefix, (output, fail, returncode)))

    def commands(self, *prefix: str) -> list[list[str]]:
        return [call for call in self.calls if tuple(call[: len(prefix)]) == prefix]

    def _simulate_git(self, command: list[str]) -> str | None:
        args = command[1:]
        if args == ["rev-parse", "--abbrev-ref", "HEAD"]:
            return self.branch + "\n"
        if args[:3] == ["rev-parse", "--verify", "--quiet"]:
            name = args[3].removeprefix("refs/heads/")
            if name not in self.branches:
                raise CommandError(command, "", 1)
            return ""
        if args[:2] == ["checkout", "-b"]:
            self.branch = args[2]
            self.branches.add(args[2])
            return ""
        if args[:2] == ["branch", "-D"]:
            self.branches.discard(args[2])
            return ""
        if args[:2] == ["checkout", "--force"]:
            self.branch = args[2]
            return ""
        if len(args) == 2 and args[0] == "checkout":
            self.branch = args[1]
            self.branches.add(args[1])
            return ""
        return None

    def run(self, command, cwd=None, check=True, env=None):
        self.calls.append(list(command))
        self.cwds.append(cwd)
        self.envs.append(env)

        for prefix, (output, fail, returncode) in reversed(self.responses):
            if tuple(command[: len(prefix)]) == prefix:
                text = output(command) if callable(output) else output
                if fail and check:
                    raise CommandError(list(command), text, returncode)
                return text

        if command and command[0] == "git":
            simulated = self._simulate_git(list(command))
            if simulated is not None:
                return simulated
        return ""


@pytest.fixture
def runner():
    """Fake command runner starting on master."""
    return FakeRunner()


@pytest.fixture
def logger():
    return logging.getLogger("tests")


PATCH_REPORT = """Fetching gem metadata from https://rubygems.org/............
Fetching version metadata from https://rubygems.org/.
Resolving dependencies...

Outdated gems included in the bundle:
  * domain_name (newest 0.5.20170404, installed 0.5.20161129)
  * dotenv (newest 2.1.2, installed 2.1.1) in groups "default"
  * puma (newest 3.7.1, installed 3.7.0) in groups "default"
  * rest-client (newest 2.0.2, installed 2.0.0)
  * tilt (newest 2.0.7, installed 2.0.6)
  * unf_ext (newest 0.0.7.4, installed 0.0.7.2)
"""

MINOR_REPORT = """Fetching gem metadata from https://rubygems.org/............
Fetching version metadata from https://rubygems.org/.
Resolving dependencies...

Outdated gems included in the bundle:
  * bugsnag (newest 5.3.1, installed 5.2.0) in groups "default"
  * diff-lcs (newest 1.3, installed 1.2.5)
  * docker_registry2 (newest 0.6.0, installed 0.3.0) in groups "default"
  * domain_name (newest 0.5.20170404, installed 0.5.20161129)
  * dotenv (newest 2.2.0, installed 2.1.1) in groups "default"
  * puma (newest 3.8.2, installed 3.7.0) in groups "default"
  * rest-client (newest 2.0.2, installed 2.0.0)
  * tilt (newest 2.0.7, installed 2.0.6)
  * unf_ext (newest 0.0.7.4, installed 0.0.7.2)
"""

MAJOR_REPORT = MINOR_REPORT


@pytest.fixture
def bundle_reports():
    """Outdated reports keyed by severity flag."""
    return {"--patch": PATCH_REPORT, "--minor": MINOR_REPORT, "--major": MAJOR_REPORT}
