"""Parsing and ranking of ``bundle outdated`` reports."""

import re
from collections.abc import Iterable
from pathlib import Path

from .command import CommandRunner
from .models import SEVERITY_ORDER, Severity, UpdateCandidate

# "  * bugsnag (newest 5.3.1, installed 5.2.0) in groups "default""
REPORT_LINE = re.compile(
    r"^\s*\*\s+(?P<name>\S+)\s+\(newest\s+(?P<newest>[^,\s)]+),\s*installed\s+(?P<installed>[^,\s)]+)"
)


def magnitude(newest: str, installed: str) -> int:
    """Heuristic distance between two versions.

    Dots are dropped and the remaining digits compared as integers, so
    ``2.1.1`` vs ``2.0.0`` gives 11. This is only an ordering key and can be
    negative (``1.3`` vs ``1.2.5`` gives -112).
    """
    return _digits(newest) - _digits(installed)


def _digits(version: str) -> int:
    digits = re.sub(r"\D", "", version)
    return int(digits) if digits else 0


def parse_report(output: str, severity: Severity) -> list[UpdateCandidate]:
    """Turn report text into candidates, in report order.

    Headers, progress output and blank lines do not match and are skipped.
    """
    candidates = []
    for line in output.splitlines():
        match = REPORT_LINE.match(line)
        if not match:
            continue
        candidates.append(
            UpdateCandidate(
                package_name=match.group("name"),
                severity=severity,
                magnitude=magnitude(match.group("newest"), match.group("installed")),
            )
        )
    return candidates


def sort_tier(candidates: list[UpdateCandidate]) -> list[UpdateCandidate]:
    """Largest magnitude first; ties keep report order."""
    return sorted(candidates, key=lambda candidate: -candidate.magnitude)


def deduplicate(candidates: Iterable[UpdateCandidate]) -> list[UpdateCandidate]:
    """Keep the first occurrence of each package without reordering."""
    seen: set[str] = set()
    unique = []
    for candidate in candidates:
        if candidate.package_name in seen:
            continue
        seen.add(candidate.package_name)
        unique.append(candidate)
    return unique


def select(candidates: list[UpdateCandidate], limit: int) -> list[UpdateCandidate]:
    return candidates[: max(limit, 0)]


class OutdatedScorer:
    """Rank outdated gems of a Bundler project.

    Every severity tier is queried separately; the result holds all patch
    updates before any minor one and all minor updates before any major one.
    """

    def __init__(self, runner: CommandRunner, cwd: Path | str):
        self.runner = runner
        self.cwd = cwd

    def report(self, severity: Severity, groups: Iterable[str] = ()) -> str:
        """Raw report text for one tier.

        ``bundle outdated`` exits non-zero whenever something is outdated, so
        the exit status is ignored.
        """
        base = ["bundle", "outdated", "--strict", f"--{severity.value}"]
        groups = list(groups)
        if not groups:
            return self.runner.run(base, cwd=self.cwd, check=False)
        return "\n".join(
            self.runner.run([*base, "--group", group], cwd=self.cwd, check=False)
            for group in groups
        )

    def rank(self, groups: Iterable[str] = ()) -> list[UpdateCandidate]:
        groups = tuple(groups)
        ranked: list[UpdateCandidate] = []
        for severity in SEVERITY_ORDER:
            ranked.extend(sort_tier(parse_report(self.report(severity, groups), severity)))
        return deduplicate(ranked)
