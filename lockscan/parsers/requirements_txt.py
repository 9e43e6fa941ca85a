"""Parser for pip requirements files."""

import re
from pathlib import PurePath

from ..models import (
    UNRESOLVED_VERSION,
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)

_COMMENT = re.compile(r"\s*#.*")
_WHITESPACE = re.compile(r"\s+")
# Odd number of trailing backslashes, so the last one is not escaped
_CONTINUATION = re.compile(r"([^\\]|^)(\\{2})*\\$")

_REQUIREMENT = re.compile(
    r"\s*(?P<pkgname>[a-zA-Z0-9._-]+)\s*(\[(?P<optnames>[a-zA-Z0-9._,\s-]+)])?\s*"
    r"(\(?\s*(?P<requirement>(,?(?P<constraint>~=|==|!=|<=|>=|<|>|===)\s*(?P<version>[a-zA-Z0-9._!*+-]+))+"
    r"|(@\s*(?P<wheel>[^;]+)))\s*\)?)?\s*(;\s*(?P<envmarkers>.*))?\s*"
)

# https://packaging.python.org/en/latest/specifications/binary-distribution-format/#file-name-convention
_WHEEL_URL = re.compile(
    r"^.*?/(?P<distribution>[^-/]+)-(?P<version>[^-/]+)(-(?P<buildtag>[^-/]+))?"
    r"-(?P<pythontag>[^-/]+)-(?P<abitag>[^-/]+)-(?P<platformtag>[^-/]+)\.whl\s*$"
)

_REFERENCE_OPTIONS = ("-r", "--requirement", "-c", "--constraint")


class RequirementsTxtParser:
    """Parser for requirements.txt files.

    Each requirement line names a distribution and an optional specifier:

    django==5.1.1 \\
        --hash=sha256:abc123...
    requests[socks]>=2.31,<3  # comment
    wheel-pkg @ https://example.com/wheel_pkg-1.0.0-py3-none-any.whl

    Referenced files (-r/-c) are reported but not followed; the caller
    decides which files get scanned.
    """

    name = "requirements-txt"
    formats = (LockfileFormat.PIP_REQUIREMENTS,)
    ecosystem = Ecosystem.PYPI

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse requirements.txt content.

        Args:
            content: Decoded file content
            path: Path of the file; its stem becomes the entries' group

        Returns:
            ParseResult with one entry per distinct requirement.
        """
        result = ParseResult()
        group = PurePath(path).stem
        seen: set[tuple[str, str]] = set()

        for line, start, end in self._logical_lines(content):
            clean = _COMMENT.sub("", line.strip())

            reference = self._reference_target(clean)
            if reference is not None:
                result.diagnostics.append(
                    Diagnostic.info(
                        DiagnosticKind.SKIPPED_REFERENCE,
                        f"Referenced requirements file {reference!r} is not followed",
                        path,
                        start,
                    )
                )
                continue

            if self._is_not_requirement(clean):
                continue

            entry, diagnostics = parse_requirement(clean, path, group, start, end)
            result.diagnostics.extend(diagnostics)
            if entry is None:
                continue

            key = (entry.name.lower(), entry.version)
            if key in seen:
                continue
            seen.add(key)
            result.entries.append(entry)

        return result

    @staticmethod
    def _logical_lines(content: str) -> list[tuple[str, int, int]]:
        """Join backslash continuations into (line, first line, last line)."""
        logical: list[tuple[str, int, int]] = []
        pending: list[str] = []
        start = 0

        for line_number, line in enumerate(content.splitlines(), start=1):
            if not pending:
                start = line_number
            if _CONTINUATION.search(line):
                pending.append(line[:-1])
                continue
            pending.append(line)
            logical.append((" ".join(pending), start, line_number))
            pending = []

        if pending:
            logical.append((" ".join(pending), start, start + len(pending) - 1))

        return logical

    @staticmethod
    def _reference_target(line: str) -> str | None:
        for option in _REFERENCE_OPTIONS:
            for separator in (" ", "="):
                prefix = option + separator
                if line.startswith(prefix):
                    return line[len(prefix) :].strip()
        return None

    @staticmethod
    def _is_not_requirement(line: str) -> bool:
        return (
            not line
            # flags are not supported
            or line.startswith("-")
            # direct file URLs and local paths have no name to report
            or line.startswith(("https://", "http://"))
            or line.startswith((".", "/"))
        )


def parse_requirement(
    requirement: str, path: str, group: str, line: int | None, end_line: int | None = None
) -> tuple[RawDependencyEntry | None, list[Diagnostic]]:
    """Parse one PEP 508 style requirement such as ``requests[socks]>=2.31``.

    Shared by every pip-style manifest. The version is the whole specifier
    with whitespace removed, or the version of a pinned wheel URL.

    Args:
        requirement: Requirement text without comments
        path: File the requirement came from
        group: Dependency group recorded on the entry
        line: First line of the requirement
        end_line: Last line when the requirement spans several

    Returns:
        (entry, diagnostics); the entry is None when the text is not a
        requirement.
    """
    match = _REQUIREMENT.match(requirement)
    if not match:
        message = f"Could not parse requirement {requirement!r}"
        return None, [Diagnostic.warning(DiagnosticKind.MALFORMED_RECORD, message, path, line)]

    name = match.group("pkgname")
    version = _WHITESPACE.sub("", match.group("requirement") or "")
    diagnostics = []

    wheel = match.group("wheel")
    if wheel:
        version = _wheel_version(wheel)

    if not version:
        version = UNRESOLVED_VERSION
        reason = f"points at {wheel.strip()!r}" if wheel else "has no version constraint"
        diagnostics.append(
            Diagnostic.warning(DiagnosticKind.UNRESOLVED_COORDINATE, f"Requirement {name} {reason}", path, line)
        )

    entry = RawDependencyEntry(name=name, version=version, groups=(group,), line=line, end_line=end_line)
    return entry, diagnostics


def _wheel_version(wheel: str) -> str:
    if not wheel.strip().endswith(".whl"):
        return ""
    match = _WHEEL_URL.match(wheel)
    if not match:
        return ""
    return f"=={match.group('version')}"
