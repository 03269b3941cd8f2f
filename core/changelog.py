"""Registry lookups and changelog links for updated gems."""

import re

import httpx

from .errors import RegistryError
from .git import Git


class RubyGemsRegistry:
    """Client for the rubygems.org gem metadata API."""

    def __init__(
        self,
        client: httpx.Client | None = None,
        base_url: str = "https://rubygems.org",
        timeout: float = 30.0,
    ):
        """Initialize the registry client.

        Args:
            client: Optional preconfigured httpx client
            base_url: Registry root URL
            timeout: Request timeout in seconds
        """
        self.base_url = base_url.rstrip("/")
        self.client = client or httpx.Client(timeout=timeout)
        self._cache: dict[str, dict | None] = {}

    def metadata(self, name: str) -> dict | None:
        """Fetch gem metadata.

        Returns:
            Metadata dict, or None when the gem is unknown or the response is
            not a JSON object
        """
        if name in self._cache:
            return self._cache[name]

        url = f"{self.base_url}/api/v1/gems/{name}.json"
        try:
            response = self.client.get(url)
            if response.status_code == 404:
                metadata = None
            else:
                response.raise_for_status()
                metadata = response.json()
        except ValueError:
            metadata = None
        except httpx.TimeoutException:
            raise RegistryError(f"Timeout fetching metadata for {name}")
        except httpx.HTTPError as e:
            raise RegistryError(f"HTTP error fetching {name}: {e}")

        if not isinstance(metadata, dict):
            metadata = None
        self._cache[name] = metadata
        return metadata

    def source_uri(self, name: str) -> str:
        """Source code URI of a gem, falling back to its homepage, else ''."""
        metadata = self.metadata(name) or {}
        uri = metadata.get("source_code_uri") or metadata.get("homepage_uri") or ""
        return uri.rstrip("/") if isinstance(uri, str) else ""


class ChangelogResolver:
    """Build comparison links from the lockfile diff against the base branch."""

    def __init__(
        self,
        git: Git,
        registry: RubyGemsRegistry,
        base_branch: str = "master",
        lockfile: str = "Gemfile.lock",
    ):
        self.git = git
        self.registry = registry
        self.base_branch = base_branch
        self.lockfile = lockfile

    def registry_uri(self, name: str) -> str:
        return self.registry.source_uri(name)

    def versions(self, name: str) -> tuple[str, str] | None:
        """Old and new version of ``name`` from the word diff of the lockfile."""
        pattern = re.compile(
            rf"^\s*{re.escape(name)} \[-\((?P<old>.+?)\)-\]\{{\+\((?P<new>.+?)\)\+\}}\s*$",
            re.MULTILINE,
        )
        match = pattern.search(self.git.diff(self.base_branch, self.lockfile))
        if not match:
            return None
        return match.group("old"), match.group("new")

    def change_log(self, name: str) -> str:
        """Comparison links for both common tag conventions (``v1.2.3`` and ``1.2.3``).

        Neither link is checked; an empty string is returned when the source
        URI or the version change is unknown.
        """
        uri = self.registry_uri(name)
        versions = self.versions(name)
        if not uri or not versions:
            return ""
        old, new = versions
        return f"{uri}/compare/v{old}...v{new} or {uri}/compare/{old}...{new}"
