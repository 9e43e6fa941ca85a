"""Parser for pubspec.lock files (Dart/Flutter)."""

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


class PubspecLockParser:
    """Parser for pubspec.lock files.

    pubspec.lock is a YAML file with structure:
    packages:
      package_name:
        dependency: "direct main"
        description:
          name: package_name
          sha256: abc123...
          url: "https://pub.dev"
        source: hosted
        version: "1.2.3"

    Git dependencies carry "resolved-ref" in their description.
    """

    name = "pubspec-lock"
    formats = (LockfileFormat.PUBSPEC_LOCK,)
    ecosystem = Ecosystem.PUB

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse pubspec.lock content.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per package.

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

        packages = data.get("packages") or {}

        for name, pkg_data in packages.items():
            if not isinstance(pkg_data, dict):
                continue

            version = str(pkg_data.get("version") or "")
            if version.startswith('"') and version.endswith('"'):
                version = version[1:-1]

            if not version:
                result.diagnostics.append(
                    Diagnostic.warning(
                        DiagnosticKind.MALFORMED_RECORD,
                        f"Package {name} has no version",
                        path,
                    )
                )
                continue

            commit = None
            description = pkg_data.get("description", {})
            if isinstance(description, dict):
                commit = description.get("resolved-ref")

            dependency = str(pkg_data.get("dependency", ""))
            result.entries.append(
                RawDependencyEntry(
                    name=str(name),
                    version=version,
                    groups=("dev",) if dependency.endswith("dev") else (),
                    locked=True,
                    commit=commit,
                )
            )

        return result
