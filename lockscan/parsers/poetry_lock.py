"""Parser for poetry.lock files (Python Poetry)."""

import tomllib

from ..exceptions import ParseError
from ..models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)
from .utils import package_tables


class PoetryLockParser:
    """Parser for poetry.lock files.

    poetry.lock is a TOML file with [[package]] sections:
    [[package]]
    name = "django"
    version = "5.1.1"
    optional = false

    [package.source]
    type = "git"
    url = "https://github.com/django/django.git"
    resolved_reference = "0a1b2c3d..."
    """

    name = "poetry-lock"
    formats = (LockfileFormat.POETRY_LOCK,)
    ecosystem = Ecosystem.PYPI

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse poetry.lock content.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per package.

        Raises:
            ParseError: If the file is not valid TOML.
        """
        try:
            data = tomllib.loads(content)
        except tomllib.TOMLDecodeError as e:
            raise ParseError(f"Could not parse {path} as TOML: {e}") from e

        result = ParseResult()

        for pkg, line, end_line in package_tables(data, content, path, result):
            name = pkg.get("name")
            version = pkg.get("version")

            if not isinstance(name, str) or not name or not isinstance(version, str) or not version:
                result.diagnostics.append(
                    Diagnostic.warning(
                        DiagnosticKind.MALFORMED_RECORD,
                        f"[[package]] entry without name or version: {name or '?'}",
                        path,
                        line,
                    )
                )
                continue

            source = pkg.get("source")
            source = source if isinstance(source, dict) else {}
            result.entries.append(
                RawDependencyEntry(
                    name=name,
                    version=version,
                    groups=("optional",) if pkg.get("optional") else (),
                    locked=True,
                    line=line,
                    end_line=end_line,
                    commit=source.get("resolved_reference") or None,
                )
            )

        return result
