"""Parser for Cargo.lock files (Rust)."""

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


class CargoLockParser:
    """Parser for Cargo.lock files.

    Cargo.lock is a TOML file with [[package]] sections:
    [[package]]
    name = "serde"
    version = "1.0.193"
    source = "registry+https://github.com/rust-lang/crates.io-index"
    checksum = "abc123..."

    Workspace members have no "source" and are listed too; they are kept,
    like every other package the lockfile pins.
    """

    name = "cargo-lock"
    formats = (LockfileFormat.CARGO_LOCK,)
    ecosystem = Ecosystem.CARGO

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse Cargo.lock content.

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

            # git sources end in "#<commit>"
            source = pkg.get("source")
            source = source if isinstance(source, str) else ""
            commit = source.rsplit("#", 1)[1] if source.startswith("git+") and "#" in source else None

            result.entries.append(
                RawDependencyEntry(
                    name=name, version=version, locked=True, line=line, end_line=end_line, commit=commit
                )
            )

        return result
