"""Parser for packages.lock.json files (NuGet)."""

import json

from ..exceptions import ParseError
from ..models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)

SUPPORTED_VERSIONS = (1, 2)

# Project-to-project references, built from source in the same solution
_PROJECT_TYPE = "project"


class NuGetLockParser:
    """Parser for NuGet packages.lock.json files.

    packages.lock.json groups resolved packages by target framework:
    {
        "version": 1,
        "dependencies": {
            "net6.0": {
                "Newtonsoft.Json": {
                    "type": "Direct",
                    "requested": "[13.0.1, )",
                    "resolved": "13.0.1"
                }
            }
        }
    }
    """

    name = "nuget-lock"
    formats = (LockfileFormat.NUGET_LOCK,)
    ecosystem = Ecosystem.NUGET

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse packages.lock.json content.

        Frameworks often resolve the same package; each (name, version) is
        reported once.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per (name, version).

        Raises:
            ParseError: If the file is not JSON or uses an unsupported
                lockfile version.
        """
        try:
            data = json.loads(content)
        except json.JSONDecodeError as e:
            raise ParseError(f"Could not decode JSON from {path}: {e}") from e

        if not isinstance(data, dict):
            raise ParseError(f"Unexpected top-level JSON type in {path}")

        version = data.get("version")
        if version not in SUPPORTED_VERSIONS:
            raise ParseError(f"Unsupported packages.lock.json version {version!r} in {path}")

        result = ParseResult()
        seen: set[tuple[str, str]] = set()

        for framework, dependencies in (data.get("dependencies") or {}).items():
            if not isinstance(dependencies, dict):
                continue

            for name, dependency in dependencies.items():
                if not isinstance(dependency, dict):
                    continue
                dependency_type = str(dependency.get("type", ""))
                if dependency_type.lower() == _PROJECT_TYPE:
                    continue

                resolved = dependency.get("resolved")
                if not resolved:
                    result.diagnostics.append(
                        Diagnostic.warning(
                            DiagnosticKind.MALFORMED_RECORD,
                            f"{name} for {framework} has no resolved version",
                            path,
                        )
                    )
                    continue

                key = (name.lower(), resolved)
                if key in seen:
                    continue
                seen.add(key)

                result.entries.append(
                    RawDependencyEntry(
                        name=name,
                        version=resolved,
                        groups=(dependency_type.lower(),) if dependency_type else (),
                        locked=True,
                    )
                )

        return result
