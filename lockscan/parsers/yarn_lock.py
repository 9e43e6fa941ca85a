"""Parser for yarn.lock files (Yarn classic and Berry)."""

import re
from dataclasses import dataclass, field

from ..models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)
from .utils import extract_commit, split_name_version

_VERSION = re.compile(r'^ {2}"?version"?:? "?([\w.+-]+)"?$')
_RESOLUTION = re.compile(r'^ {2}"?(?:resolution:|resolved)"? "([^ \'"]+)"$')

# Protocols that point at the local checkout rather than a registry
_LOCAL_PROTOCOLS = ("workspace:", "link:", "portal:")


@dataclass
class _Block:
    header: str
    line: int
    end_line: int
    body: list[str] = field(default_factory=list)


class YarnLockParser:
    """Parser for yarn.lock files.

    Yarn classic (v1):
    "@babel/code-frame@^7.0.0", "@babel/code-frame@^7.10.4":
      version "7.12.13"
      resolved "https://registry.yarnpkg.com/@babel/code-frame/-/code-frame-7.12.13.tgz#sha1"

    Yarn Berry (v2+) is YAML-like:
    "@babel/code-frame@npm:^7.0.0":
      version: 7.12.13
      resolution: "@babel/code-frame@npm:7.12.13"
    """

    name = "yarn-lock"
    formats = (LockfileFormat.YARN_LOCK,)
    ecosystem = Ecosystem.NPM

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse yarn.lock content.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per package block.
        """
        result = ParseResult()
        seen: set[tuple[str, str]] = set()

        for block in self._group_blocks(content):
            if block.header.startswith("__metadata"):
                continue

            name, specifiers = self._parse_header(block.header)
            if not name:
                result.diagnostics.append(
                    Diagnostic.warning(
                        DiagnosticKind.MALFORMED_RECORD,
                        f"Could not determine package name from {block.header!r}",
                        path,
                        block.line,
                    )
                )
                continue
            if any(spec.startswith(_LOCAL_PROTOCOLS) for spec in specifiers):
                continue

            version = self._find(block.body, _VERSION)
            if not version:
                result.diagnostics.append(
                    Diagnostic.warning(
                        DiagnosticKind.MALFORMED_RECORD,
                        f"Could not determine version of {name}",
                        path,
                        block.line,
                    )
                )
                continue
            if version == "0.0.0-use.local":
                continue

            key = (name, version)
            if key in seen:
                continue
            seen.add(key)

            result.entries.append(
                RawDependencyEntry(
                    name=name,
                    version=version,
                    locked=True,
                    line=block.line,
                    end_line=block.end_line,
                    commit=extract_commit(self._find(block.body, _RESOLUTION)),
                )
            )

        return result

    @staticmethod
    def _group_blocks(content: str) -> list[_Block]:
        """Group lines into blocks that start at an unindented header."""
        blocks: list[_Block] = []
        current: _Block | None = None

        for line_number, line in enumerate(content.splitlines(), start=1):
            if not line.strip() or line.startswith("#"):
                continue
            if not line.startswith(" "):
                current = _Block(header=line, line=line_number, end_line=line_number)
                blocks.append(current)
            elif current is not None:
                current.body.append(line)
                current.end_line = line_number

        return blocks

    @staticmethod
    def _parse_header(header: str) -> tuple[str, list[str]]:
        """Return the package name and the version specifiers of a block header."""
        header = header.replace('"', "").rstrip().removesuffix(":")
        name = ""
        specifiers: list[str] = []

        for part in header.split(","):
            part = part.strip()
            if not part:
                continue
            part_name, specifier = split_name_version(part)

            # Aliased package, e.g. "string-width-cjs@npm:string-width@^4.2.0"
            if specifier.startswith("npm:") and "@" in specifier[len("npm:") + 1 :]:
                part_name, specifier = split_name_version(specifier[len("npm:") :])
            elif specifier.startswith("npm:"):
                specifier = specifier[len("npm:") :]

            if not name:
                name = part_name
            specifiers.append(specifier)

        return name, specifiers

    @staticmethod
    def _find(lines: list[str], pattern: re.Pattern) -> str | None:
        for line in lines:
            match = pattern.match(line)
            if match:
                return match.group(1)
        return None
