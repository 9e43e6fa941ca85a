"""Parser for composer.lock files (PHP Composer)."""

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
from .positions import json_member_spans


class ComposerLockParser:
    """Parser for composer.lock files.

    composer.lock is a JSON file with structure:
    {
        "packages": [
            {
                "name": "guzzlehttp/guzzle",
                "version": "7.8.1",
                "source": {"type": "git", "reference": "41042bc..."}
            }
        ],
        "packages-dev": [ ... ]
    }
    """

    name = "composer-lock"
    formats = (LockfileFormat.COMPOSER_LOCK,)
    ecosystem = Ecosystem.PACKAGIST

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse composer.lock content.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per package.

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

        for section, groups in (("packages", ()), ("packages-dev", ("dev",))):
            packages = data.get(section) or []
            if not isinstance(packages, list):
                result.diagnostics.append(
                    Diagnostic.warning(DiagnosticKind.MALFORMED_RECORD, f"{section!r} is not an array", path)
                )
                continue

            spans = [(start, end) for _, start, end in json_member_spans(content, section)]
            if len(spans) != sum(1 for pkg in packages if isinstance(pkg, dict)):
                spans = []
            positions = iter(spans)

            for pkg in packages:
                if not isinstance(pkg, dict):
                    continue
                line, end_line = next(positions, (None, None))

                name = pkg.get("name")
                version = pkg.get("version")
                if not name or not version:
                    result.diagnostics.append(
                        Diagnostic.warning(
                            DiagnosticKind.MALFORMED_RECORD,
                            f"Entry in {section!r} without name or version: {name or '?'}",
                            path,
                            line,
                        )
                    )
                    continue

                source = pkg.get("source")
                commit = source.get("reference") if isinstance(source, dict) else None

                result.entries.append(
                    RawDependencyEntry(
                        name=name,
                        version=version,
                        groups=groups,
                        locked=True,
                        line=line,
                        end_line=end_line,
                        commit=commit or None,
                    )
                )

        return result
