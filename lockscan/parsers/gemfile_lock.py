"""Parser for Gemfile.lock files (Ruby Bundler)."""

import re

from ..models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)

# Sections whose "specs:" list installed gems
_SOURCE_SECTIONS = ("GEM", "GIT", "PATH")

# Exactly four spaces: deeper lines are the gem's own requirements
_SPEC_LINE = re.compile(r"^ {4}(?P<name>[^\s(]+)(?: \((?P<version>[^)]+)\))?$")
_REVISION_LINE = re.compile(r"^ {2}revision: (?P<revision>\S+)$")


class GemfileLockParser:
    """Parser for Gemfile.lock and gems.locked files.

    GIT
      remote: https://github.com/rails/rails.git
      revision: 5c0c8f1b...
      specs:
        rails (7.1.0)
          actionpack (= 7.1.0)

    GEM
      remote: https://rubygems.org/
      specs:
        nokogiri (1.15.4-x86_64-linux)
          racc (~> 1.4)
    """

    name = "gemfile-lock"
    formats = (LockfileFormat.GEMFILE_LOCK,)
    ecosystem = Ecosystem.RUBYGEMS

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse Gemfile.lock content.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per spec.
        """
        result = ParseResult()
        section: str | None = None
        revision: str | None = None

        for line_number, line in enumerate(content.splitlines(), start=1):
            line = line.rstrip()
            if not line:
                continue

            if not line.startswith(" "):
                section = line.strip()
                revision = None
                continue

            if section not in _SOURCE_SECTIONS:
                continue

            revision_match = _REVISION_LINE.match(line)
            if revision_match:
                revision = revision_match.group("revision")
                continue

            if not line.startswith("    ") or line.startswith("     "):
                continue

            match = _SPEC_LINE.match(line)
            if not match or not match.group("version"):
                result.diagnostics.append(
                    Diagnostic.warning(
                        DiagnosticKind.MALFORMED_RECORD,
                        f"Could not parse gem spec {line.strip()!r}",
                        path,
                        line_number,
                    )
                )
                continue

            # Platform-specific gems carry the platform after the version
            version = match.group("version").split("-", 1)[0]

            result.entries.append(
                RawDependencyEntry(
                    name=match.group("name"),
                    version=version,
                    groups=(section.lower(),) if section != "GEM" else (),
                    locked=True,
                    line=line_number,
                    end_line=line_number,
                    commit=revision if section == "GIT" else None,
                )
            )

        return result
