"""Parser for uv.lock files (Python uv package manager)."""

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

# Sources that point at the project itself or a local checkout
_LOCAL_SOURCES = ("editable", "virtual", "directory", "path")


class UvLockParser:
    """Parser for uv.lock files.

    uv.lock is a TOML file with [[package]] sections containing:
    - name, version
    - source = { registry = "https://pypi.org/simple" }
      or { git = "https://github.com/org/repo?rev=main#<sha>" }
      or { editable = "." } for the workspace members
    """

    name = "uv-lock"
    formats = (LockfileFormat.UV_LOCK,)
    ecosystem = Ecosystem.PYPI

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse uv.lock content.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per third-party package.

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
            source = pkg.get("source")
            source = source if isinstance(source, dict) else {}

            if any(key in source for key in _LOCAL_SOURCES):
                continue

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

            commit = None
            git_url = source.get("git")
            if isinstance(git_url, str) and "#" in git_url:
                commit = git_url.rsplit("#", 1)[1] or None

            result.entries.append(
                RawDependencyEntry(
                    name=name, version=version, locked=True, line=line, end_line=end_line, commit=commit
                )
            )

        return result
