"""Parser for package-lock.json and npm-shrinkwrap.json files (npm)."""

import json

from ..exceptions import ParseError
from ..models import (
    UNRESOLVED_VERSION,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)
from .positions import json_member_spans
from .utils import extract_commit

_NODE_MODULES = "node_modules/"


class PackageLockParser:
    """Parser for package-lock.json files.

    package-lock.json v2/v3 is a JSON file with structure:
    {
        "packages": {
            "": {"name": "root", ...},
            "node_modules/package-name": {
                "version": "1.2.3",
                "resolved": "https://registry.npmjs.org/...",
                "dev": true
            }
        }
    }

    v1 uses a nested "dependencies" tree instead of "packages".
    """

    name = "npm-package-lock"
    formats = (LockfileFormat.NPM_PACKAGE_LOCK,)
    ecosystem = Ecosystem.NPM

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse package-lock.json content.

        Returns one entry per unique (name, version) combination, in file
        order.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with locked entries.

        Raises:
            ParseError: If the file is not a JSON object.
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(f"Could not decode JSON from {path}: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(f"Unexpected top-level JSON type in {path}")

        result = ParseResult()
        seen: set[tuple[str, str]] = set()

        # Try v2/v3 format first (packages)
        packages = data.get("packages")
        if isinstance(packages, dict) and packages:
            spans = {key: (start, end) for key, start, end in json_member_spans(content, "packages")}
            result.entries.extend(self._parse_packages(packages, seen, spans))
        else:
            # Fall back to v1 format (dependencies)
            dependencies = data.get("dependencies")
            if isinstance(dependencies, dict):
                result.entries.extend(self._parse_dependencies(dependencies, seen))

        return result

    def _parse_packages(
        self, packages: dict, seen: set[tuple[str, str]], spans: dict[str | None, tuple[int, int]]
    ) -> list[RawDependencyEntry]:
        entries: list[RawDependencyEntry] = []

        for pkg_path, pkg_data in packages.items():
            # Skip the root package and workspace sources outside node_modules
            if not pkg_path or _NODE_MODULES not in pkg_path or not isinstance(pkg_data, dict):
                continue
            # Links point at a workspace folder that is listed separately
            if pkg_data.get("link"):
                continue

            # Aliased packages carry their real name in "name"
            name = pkg_data.get("name") or self._extract_package_name(pkg_path)
            version = pkg_data.get("version") or ""
            commit = extract_commit(pkg_data.get("resolved"))

            if not name or not (version or commit):
                continue

            key = (name, commit or version)
            if key in seen:
                continue
            seen.add(key)

            line, end_line = spans.get(pkg_path, (None, None))
            entries.append(
                RawDependencyEntry(
                    name=name,
                    version=version or UNRESOLVED_VERSION,
                    groups=self._groups(pkg_data),
                    locked=True,
                    line=line,
                    end_line=end_line,
                    commit=commit,
                )
            )

        return entries

    def _parse_dependencies(self, dependencies: dict, seen: set[tuple[str, str]]) -> list[RawDependencyEntry]:
        """Parse the v1 dependency tree depth-first."""
        entries: list[RawDependencyEntry] = []

        for name, pkg_data in dependencies.items():
            if not isinstance(pkg_data, dict):
                continue

            declared = pkg_data.get("version") or ""
            version = declared
            commit = None

            # Aliased package, e.g. "npm:string-width@4.2.3"
            if declared.startswith("npm:"):
                alias = declared[len("npm:") :]
                at_pos = alias.rfind("@")
                if at_pos > 0:
                    name, version = alias[:at_pos], alias[at_pos + 1 :]

            if declared.startswith("file:"):
                # Local directory, nothing to look up
                version = ""
            else:
                commit = extract_commit(declared)
                if commit:
                    # The "version" is the git URL; the commit identifies it
                    version = UNRESOLVED_VERSION

            if version:
                key = (name, commit or version)
                if key not in seen:
                    seen.add(key)
                    entries.append(
                        RawDependencyEntry(
                            name=name,
                            version=version,
                            groups=self._groups(pkg_data),
                            locked=True,
                            commit=commit,
                        )
                    )

            nested = pkg_data.get("dependencies")
            if isinstance(nested, dict) and nested:
                entries.extend(self._parse_dependencies(nested, seen))

        return entries

    @staticmethod
    def _extract_package_name(pkg_path: str) -> str | None:
        """Extract package name from node_modules path."""
        # Handle nested node_modules (take the last one)
        name_part = pkg_path.rsplit(_NODE_MODULES, 1)[-1]
        return name_part or None

    @staticmethod
    def _groups(pkg_data: dict) -> tuple[str, ...]:
        if pkg_data.get("devOptional"):
            return ("dev", "optional")
        groups = []
        if pkg_data.get("dev"):
            groups.append("dev")
        if pkg_data.get("optional"):
            groups.append("optional")
        return tuple(groups)
