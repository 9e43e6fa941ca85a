"""Lockfile format detection.

Detection runs a prioritised chain and stops at the first hit:

1. exact filename match
2. filename pattern, most specific pattern first
3. content sniffing on the first meaningful lines

An optional hint either forces a format or limits detection to one
ecosystem.
"""

import json
import re
from fnmatch import fnmatchcase
from pathlib import PurePath

from .logging_config import logger
from .models import Ecosystem, LockfileDescriptor, LockfileFormat
from .parsers.gradle_lock import LOCK_LINE_PATTERN

EXACT_FILENAMES: dict[str, LockfileFormat] = {
    "gradle.lockfile": LockfileFormat.GRADLE_LOCKFILE,
    "buildscript-gradle.lockfile": LockfileFormat.GRADLE_LOCKFILE,
    "build.gradle": LockfileFormat.GRADLE_GROOVY_DSL,
    "build.gradle.kts": LockfileFormat.GRADLE_KOTLIN_DSL,
    "pom.xml": LockfileFormat.MAVEN_POM,
    "package-lock.json": LockfileFormat.NPM_PACKAGE_LOCK,
    "npm-shrinkwrap.json": LockfileFormat.NPM_PACKAGE_LOCK,
    "yarn.lock": LockfileFormat.YARN_LOCK,
    "pnpm-lock.yaml": LockfileFormat.PNPM_LOCK,
    "requirements.txt": LockfileFormat.PIP_REQUIREMENTS,
    "setup.cfg": LockfileFormat.SETUP_CFG,
    "setup.py": LockfileFormat.SETUP_PY,
    "Pipfile.lock": LockfileFormat.PIPFILE_LOCK,
    "poetry.lock": LockfileFormat.POETRY_LOCK,
    "uv.lock": LockfileFormat.UV_LOCK,
    "Cargo.lock": LockfileFormat.CARGO_LOCK,
    "go.mod": LockfileFormat.GO_MOD,
    "packages.lock.json": LockfileFormat.NUGET_LOCK,
    "composer.lock": LockfileFormat.COMPOSER_LOCK,
    "Gemfile.lock": LockfileFormat.GEMFILE_LOCK,
    "gems.locked": LockfileFormat.GEMFILE_LOCK,
    "pubspec.lock": LockfileFormat.PUBSPEC_LOCK,
}

# Ordered most specific first: "*.gradle.kts" must win over "*.gradle"
FILENAME_PATTERNS: tuple[tuple[str, LockfileFormat], ...] = (
    ("*.gradle.kts", LockfileFormat.GRADLE_KOTLIN_DSL),
    ("*.gradle", LockfileFormat.GRADLE_GROOVY_DSL),
    ("*gradle.lockfile", LockfileFormat.GRADLE_LOCKFILE),
    ("*requirements*.txt", LockfileFormat.PIP_REQUIREMENTS),
    ("*.pom", LockfileFormat.MAVEN_POM),
)

_SNIFF_LINES = 50

_GRADLE_LOCK_HEADER = "# This is a Gradle generated file for dependency locking."
_GRADLE_BLOCK = re.compile(r"^\s*(?:plugins|dependencies|dependencyLocking|buildscript|allprojects)\s*\{", re.MULTILINE)
# Calls with parenthesised string arguments only parse as Kotlin in practice
_KOTLIN_HINT = re.compile(r'^\s*(?:val|var)\s+\w+|\b(?:id|implementation|api)\("', re.MULTILINE)
_GO_MODULE = re.compile(r"^module\s+\S+", re.MULTILINE)
_POM_ROOT = re.compile(r"<project[\s>]")
_YAML_LOCKFILE_VERSION = re.compile(r"^lockfileVersion:", re.MULTILINE)
_GEMFILE_SECTION = re.compile(r"^(?:GEM|GIT|PATH|BUNDLED WITH)$", re.MULTILINE)


def detect_format(
    path: str,
    content: str = "",
    hint: LockfileFormat | Ecosystem | None = None,
) -> LockfileDescriptor | None:
    """Detect the format of a lock or manifest file.

    Args:
        path: Path of the file; only the name is inspected
        content: Decoded content, used when the name is not conclusive
        hint: A LockfileFormat to parse the file as, or an Ecosystem that
            restricts detection to that ecosystem's formats

    Returns:
        LockfileDescriptor, or None if the file is not recognised.
    """
    if isinstance(hint, LockfileFormat):
        return LockfileDescriptor(path, hint)

    ecosystem = hint if isinstance(hint, Ecosystem) else None
    filename = PurePath(path).name

    for candidate in (_match_filename(filename), _sniff_content(content)):
        if candidate is not None and (ecosystem is None or candidate.ecosystem is ecosystem):
            logger.debug(f"Detected {candidate.value} for {path}")
            return LockfileDescriptor(path, candidate)

    logger.debug(f"Could not detect a lockfile format for {path}")
    return None


def _match_filename(filename: str) -> LockfileFormat | None:
    exact = EXACT_FILENAMES.get(filename)
    if exact is not None:
        return exact

    for pattern, fmt in FILENAME_PATTERNS:
        if fnmatchcase(filename, pattern):
            return fmt
    return None


def _sniff_content(content: str) -> LockfileFormat | None:
    """Guess the format from the first meaningful lines of content."""
    if not content or not content.strip():
        return None

    head = "\n".join(content.lstrip().splitlines()[:_SNIFF_LINES])
    stripped = head.lstrip()

    if stripped.startswith(_GRADLE_LOCK_HEADER):
        return LockfileFormat.GRADLE_LOCKFILE
    if stripped.startswith("# yarn lockfile") or "\n__metadata:" in f"\n{head}":
        return LockfileFormat.YARN_LOCK
    if stripped.startswith("{"):
        return _sniff_json(content)
    if stripped.startswith("<"):
        return LockfileFormat.MAVEN_POM if _POM_ROOT.search(head) else None
    if "[[package]]" in content:
        return _sniff_toml(content)
    if _YAML_LOCKFILE_VERSION.search(head):
        return LockfileFormat.PNPM_LOCK
    if head.startswith("packages:") or "\nsdks:" in content:
        return LockfileFormat.PUBSPEC_LOCK
    if _GEMFILE_SECTION.search(head):
        return LockfileFormat.GEMFILE_LOCK

    meaningful = [
        line.strip() for line in head.splitlines() if line.strip() and not line.strip().startswith(("#", "//"))
    ]
    if not meaningful:
        return None
    if all(LOCK_LINE_PATTERN.match(line) or line.startswith("empty=") for line in meaningful):
        return LockfileFormat.GRADLE_LOCKFILE
    if _GO_MODULE.match(meaningful[0]):
        return LockfileFormat.GO_MOD
    if _GRADLE_BLOCK.search(head):
        return LockfileFormat.GRADLE_KOTLIN_DSL if _KOTLIN_HINT.search(head) else LockfileFormat.GRADLE_GROOVY_DSL

    return None


def _sniff_json(content: str) -> LockfileFormat | None:
    try:
        data = json.loads(content)
    except (ValueError, RecursionError):
        return None
    if not isinstance(data, dict):
        return None

    if "lockfileVersion" in data:
        return LockfileFormat.NPM_PACKAGE_LOCK
    if "_meta" in data and ("default" in data or "develop" in data):
        return LockfileFormat.PIPFILE_LOCK
    if "content-hash" in data and "packages" in data:
        return LockfileFormat.COMPOSER_LOCK
    if isinstance(data.get("version"), int) and isinstance(data.get("dependencies"), dict):
        return LockfileFormat.NUGET_LOCK
    return None


def _sniff_toml(content: str) -> LockfileFormat | None:
    if "@generated by Cargo" in content or "crates.io-index" in content:
        return LockfileFormat.CARGO_LOCK
    if "[metadata]" in content and "content-hash" in content:
        return LockfileFormat.POETRY_LOCK
    if "requires-python" in content or "source = { registry" in content:
        return LockfileFormat.UV_LOCK
    return None
