"""Exceptions raised by GemUpdater components."""


class GemUpdaterError(Exception):
    """Base class for all GemUpdater failures."""


class ConfigurationError(GemUpdaterError):
    """Required settings are missing or malformed."""


class CommandError(GemUpdaterError):
    """An external command exited non-zero when success was required."""

    def __init__(self, command: list[str], output: str, returncode: int):
        self.command = command
        self.output = output
        self.returncode = returncode
        super().__init__(f"Command failed ({returncode}): {' '.join(command)}")


class MergeConflictError(GemUpdaterError):
    """A merge conflicted on paths other than the dependency lockfile."""

    def __init__(self, paths: list[str]):
        self.paths = paths
        super().__init__(f"Unresolvable merge conflict in: {', '.join(paths)}")


class RegistryError(GemUpdaterError):
    """The package registry could not be reached."""


class WorkspaceError(GemUpdaterError):
    """The local checkout directory could not be prepared."""
