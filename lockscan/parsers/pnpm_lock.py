"""Parser for pnpm-lock.yaml files (pnpm)."""

import yaml

from ..exceptions import ParseError
from ..models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)
from .utils import extract_commit, split_name_version


class PnpmLockParser:
    """Parser for pnpm-lock.yaml files.

    pnpm-lock.yaml v5 structure:
    packages:
      /@scope/name/1.2.3_peer@2.0.0:
        resolution: {integrity: sha512-...}

    v6-v8:
    packages:
      /@scope/name@1.2.3(peer@2.0.0):
        resolution: {integrity: sha512-...}

    v9+ drops the leading slash and moves peer variants to "snapshots":
    packages:
      '@scope/name@1.2.3':
        resolution: {integrity: sha512-...}
    """

    name = "pnpm-lock"
    formats = (LockfileFormat.PNPM_LOCK,)
    ecosystem = Ecosystem.NPM

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse pnpm-lock.yaml content.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per package@version.

        Raises:
            ParseError: If the file is not valid YAML.
        """
        try:
            data = yaml.safe_load(content)
        except yaml.YAMLError as e:
            raise ParseError(f"Could not parse {path} as YAML: {e}") from e

        result = ParseResult()
        if not isinstance(data, dict):
            return result

        major = self._major_version(data.get("lockfileVersion"))
        packages = data.get("packages") or {}
        if not isinstance(packages, dict):
            raise ParseError(f"Unexpected 'packages' section in {path}")

        seen: set[tuple[str, str]] = set()

        for pkg_key, pkg_data in packages.items():
            if not isinstance(pkg_data, dict):
                pkg_data = {}

            name, version = self._parse_package_key(str(pkg_key), major)
            # Git and tarball dependencies spell out their name and version
            name = pkg_data.get("name") or name
            version = str(pkg_data.get("version") or version)

            if not name or not version:
                result.diagnostics.append(
                    Diagnostic.warning(
                        DiagnosticKind.MALFORMED_RECORD,
                        f"Could not determine name and version from package key {pkg_key!r}",
                        path,
                    )
                )
                continue
            if version.startswith(("file:", "link:")):
                continue

            key = (name, version)
            if key in seen:
                continue
            seen.add(key)

            resolution = pkg_data.get("resolution")
            commit = None
            if isinstance(resolution, dict):
                commit = resolution.get("commit") or extract_commit(resolution.get("tarball"))

            result.entries.append(
                RawDependencyEntry(
                    name=name,
                    version=version,
                    groups=("dev",) if pkg_data.get("dev") is True else (),
                    locked=True,
                    commit=commit,
                )
            )

        return result

    @staticmethod
    def _major_version(lockfile_version: object) -> int:
        try:
            return int(str(lockfile_version).split(".")[0])
        except ValueError:
            # Missing or unknown version, assume the current layout
            return 9

    @staticmethod
    def _parse_package_key(key: str, major: int) -> tuple[str, str]:
        """Parse package name and version from a pnpm key.

        Formats:
        - "/@scope/name/1.2.3_peer@2.0.0"     (v5)
        - "/@scope/name@1.2.3(peer@2.0.0)"    (v6-v8)
        - "@scope/name@1.2.3"                 (v9)
        """
        key = key.removeprefix("/")

        # Remove peer dependency suffix if present
        key = key.split("(", 1)[0]

        if major < 6:
            name, _, version = key.rpartition("/")
            return name, version.split("_", 1)[0]

        return split_name_version(key)
