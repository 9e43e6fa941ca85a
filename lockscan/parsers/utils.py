"""Helpers shared by lockfile parsers."""

import re
from typing import Any
from urllib.parse import parse_qs, urlparse

from ..models import Diagnostic, DiagnosticKind, ParseResult
from .positions import toml_table_spans

_COMMIT_PATTERNS = [
    # ssh://, git://, git+ssh://, git+https://
    re.compile(r"(?:^|.+@)(?:git(?:\+(?:ssh|https))?|ssh)://.+#(\w+)$"),
    # https://....git#commit
    re.compile(r"(?:^|.+@)https://.+\.git#(\w+)$"),
    re.compile(r"https://codeload\.github\.com(?:/[\w.-]+){2}/tar\.gz/(\w+)$"),
    re.compile(r".+#commit[:=](\w+)$"),
    # github:owner/repo#commit, gitlab:..., bitbucket:...
    re.compile(r"^(?:github|gitlab|bitbucket):.+#(\w+)$"),
]

_GIT_HOSTS = ("github.com", "gitlab.com", "bitbucket.org")


def extract_commit(resolution: str | None) -> str | None:
    """Extract the git commit a resolved dependency URL points at.

    Args:
        resolution: "resolved"/"resolution" value from a lockfile

    Returns:
        Commit hash or ref if the URL pins one, None otherwise.
    """
    if not resolution:
        return None

    for pattern in _COMMIT_PATTERNS:
        match = pattern.match(resolution)
        if match:
            return match.group(1)

    parsed = urlparse(resolution)
    if parsed.hostname in _GIT_HOSTS:
        ref = parse_qs(parsed.query).get("ref")
        if ref:
            return ref[0]
        return parsed.fragment or None

    return None


def split_name_version(key: str) -> tuple[str, str]:
    """Split "name@version" or "@scope/name@version" at the version separator.

    Returns (key, "") when there is no version part.
    """
    at_pos = key.find("@", 1) if key.startswith("@") else key.find("@")
    if at_pos == -1:
        return key, ""
    return key[:at_pos], key[at_pos + 1 :]


def package_tables(
    data: dict[str, Any], content: str, path: str, result: ParseResult
) -> list[tuple[dict, int | None, int | None]]:
    """Return the ``[[package]]`` tables of a TOML lockfile with their lines.

    Values that are not tables are reported as malformed and skipped so the
    remaining packages still parse.

    Args:
        data: Decoded TOML document
        content: Raw lockfile text, used to locate each table
        path: Path of the lockfile
        result: Result that receives MALFORMED_RECORD diagnostics

    Returns:
        (table, first line, last line) for each package, in file order.
        Lines are None when the tables cannot be located.
    """
    packages = data.get("package", [])
    if not isinstance(packages, list):
        result.diagnostics.append(
            Diagnostic.warning(DiagnosticKind.MALFORMED_RECORD, "'package' is not an array of tables", path)
        )
        return []

    spans: list[tuple[int | None, int | None]] = list(toml_table_spans(content, "package"))
    if len(spans) != len(packages):
        # Inline arrays have no headers to anchor on
        spans = [(None, None)] * len(packages)

    tables = []
    for pkg, (line, end_line) in zip(packages, spans):
        if not isinstance(pkg, dict):
            result.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.MALFORMED_RECORD, f"[[package]] entry is not a table: {pkg!r}", path, line
                )
            )
            continue
        tables.append((pkg, line, end_line))
    return tables
