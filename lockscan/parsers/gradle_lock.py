"""Parser for gradle.lockfile files (Gradle dependency locking)."""

import re

from ..models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)

# group:artifact:version=configuration1,configuration2
LOCK_LINE_PATTERN = re.compile(r"^([^:\s]+):([^:\s]+):([^=\s]+)=([\w,-]+)$")

_COMMENT_PREFIX = "#"
# Lists configurations that resolved to nothing, e.g. "empty=annotationProcessor"
_EMPTY_PREFIX = "empty="


def format_lock_line(entry: RawDependencyEntry) -> str:
    """Serialize an entry back into gradle.lockfile syntax."""
    return f"{entry.name}:{entry.version}={','.join(entry.groups)}"


class GradleLockParser:
    """Parser for gradle.lockfile files.

    gradle.lockfile is generated by `gradle dependencies --write-locks`
    and lists one resolved module per line:

    # This is a Gradle generated file for dependency locking.
    org.springframework.security:spring-security-crypto:5.7.3=compileClasspath,runtimeClasspath
    empty=annotationProcessor
    """

    name = "gradle-lockfile"
    formats = (LockfileFormat.GRADLE_LOCKFILE,)
    ecosystem = Ecosystem.GRADLE

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse gradle.lockfile content line by line.

        Malformed lines are reported and skipped; they never abort the file.

        Args:
            content: Decoded lockfile content
            path: Path of the lockfile

        Returns:
            ParseResult with one locked entry per dependency line.
        """
        result = ParseResult()

        for line_number, raw_line in enumerate(content.splitlines(), start=1):
            line = raw_line.strip()
            if not line or line.startswith(_COMMENT_PREFIX) or line.startswith(_EMPTY_PREFIX):
                continue

            match = LOCK_LINE_PATTERN.match(line)
            if match is None:
                result.diagnostics.append(
                    Diagnostic.warning(
                        DiagnosticKind.MALFORMED_RECORD,
                        f"Invalid line in gradle lockfile: {line!r}",
                        path,
                        line_number,
                    )
                )
                continue

            group, artifact, version, configurations = match.groups()
            result.entries.append(
                RawDependencyEntry(
                    name=f"{group}:{artifact}",
                    version=version,
                    groups=tuple(c for c in configurations.split(",") if c),
                    locked=True,
                    line=line_number,
                )
            )

        return result
