"""Parser for Pipfile.lock files (Python Pipenv)."""

import json

from ..exceptions import ParseError
from ..models import (
    UNRESOLVED_VERSION,
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)
from .positions import json_member_spans


class PipfileLockParser:
    """Parser for Pipfile.lock files.

    Pipfile.lock is a JSON file with structure:
    {
        "default": {
            "package-name": {
                "hashes": ["sha256:...", "sha256:..."],
                "version": "==1.2.3"
            }
        },
        "develop": { ... }
    }

    VCS dependencies carry "git" and "ref" instead of "version".
    """

    name = "pipfile-lock"
    formats = (LockfileFormat.PIPFILE_LOCK,)
    ecosystem = Ecosystem.PYPI

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse Pipfile.lock content.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per (name, version).

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
        seen_packages: set[tuple[str, str]] = set()  # (name, version)

        # Process both default and develop sections
        for section, groups in (("default", ()), ("develop", ("dev",))):
            packages = data.get(section) or {}
            if not isinstance(packages, dict):
                result.diagnostics.append(
                    Diagnostic.warning(DiagnosticKind.MALFORMED_RECORD, f"{section!r} is not an object", path)
                )
                continue

            spans = {key: (start, end) for key, start, end in json_member_spans(content, section)}
            for name, pkg_data in packages.items():
                if not isinstance(pkg_data, dict):
                    continue
                line, end_line = spans.get(name, (None, None))

                # Version has == prefix, e.g., "==5.1.1"
                version = str(pkg_data.get("version") or "")
                if version.startswith("=="):
                    version = version[2:]
                elif version.startswith("="):
                    version = version[1:]

                ref = pkg_data.get("ref") if pkg_data.get("git") else None
                commit = str(ref) if ref else None

                if not version and not commit:
                    result.diagnostics.append(
                        Diagnostic.warning(
                            DiagnosticKind.MALFORMED_RECORD,
                            f"Locked package {name} in {section!r} has no version",
                            path,
                            line,
                        )
                    )
                    continue

                # Skip if we've already processed this package
                pkg_key = (name.lower(), version or commit)
                if pkg_key in seen_packages:
                    continue
                seen_packages.add(pkg_key)

                result.entries.append(
                    RawDependencyEntry(
                        name=name,
                        version=version or UNRESOLVED_VERSION,
                        groups=groups,
                        locked=True,
                        line=line,
                        end_line=end_line,
                        commit=commit,
                    )
                )

        return result
