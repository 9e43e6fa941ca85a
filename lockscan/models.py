"""Data models for lockfile parsing and package inventories."""

import re
from dataclasses import dataclass, field
from enum import Enum, IntEnum
from typing import Any

from packageurl import PackageURL

# Version placeholder for coordinates that cannot be statically resolved
UNRESOLVED_VERSION = "unresolved"


class Ecosystem(Enum):
    """Package ecosystems a record can belong to.

    Gradle is kept apart from Maven so callers can tell which build tool a
    record came from; both are matched against Maven advisories.
    """

    GRADLE = "Gradle"
    MAVEN = "Maven"
    NPM = "npm"
    PYPI = "PyPI"
    CARGO = "crates.io"
    GO = "Go"
    NUGET = "NuGet"
    PACKAGIST = "Packagist"
    RUBYGEMS = "RubyGems"
    PUB = "Pub"

    @property
    def advisory_ecosystem(self) -> str:
        """Return the ecosystem name used by advisory databases."""
        if self is Ecosystem.GRADLE:
            return Ecosystem.MAVEN.value
        return self.value

    @property
    def purl_type(self) -> str:
        """Return the Package URL type for this ecosystem."""
        mapping = {
            Ecosystem.GRADLE: "maven",
            Ecosystem.MAVEN: "maven",
            Ecosystem.NPM: "npm",
            Ecosystem.PYPI: "pypi",
            Ecosystem.CARGO: "cargo",
            Ecosystem.GO: "golang",
            Ecosystem.NUGET: "nuget",
            Ecosystem.PACKAGIST: "composer",
            Ecosystem.RUBYGEMS: "gem",
            Ecosystem.PUB: "pub",
        }
        return mapping[self]


class LockfileFormat(Enum):
    """Closed set of file formats lockscan can parse.

    Every member maps to exactly one ecosystem. Adding a format means adding
    a member here and a parser that declares it.
    """

    GRADLE_LOCKFILE = "gradle.lockfile"
    GRADLE_GROOVY_DSL = "Gradle Groovy DSL"
    GRADLE_KOTLIN_DSL = "Gradle Kotlin DSL"
    MAVEN_POM = "pom.xml"
    NPM_PACKAGE_LOCK = "package-lock.json"
    YARN_LOCK = "yarn.lock"
    PNPM_LOCK = "pnpm-lock.yaml"
    PIP_REQUIREMENTS = "requirements.txt"
    SETUP_CFG = "setup.cfg"
    SETUP_PY = "setup.py"
    PIPFILE_LOCK = "Pipfile.lock"
    POETRY_LOCK = "poetry.lock"
    UV_LOCK = "uv.lock"
    CARGO_LOCK = "Cargo.lock"
    GO_MOD = "go.mod"
    NUGET_LOCK = "packages.lock.json"
    COMPOSER_LOCK = "composer.lock"
    GEMFILE_LOCK = "Gemfile.lock"
    PUBSPEC_LOCK = "pubspec.lock"

    @property
    def ecosystem(self) -> Ecosystem:
        """Return the ecosystem whose packages this format lists."""
        return _FORMAT_ECOSYSTEMS[self]

    @property
    def is_lockfile(self) -> bool:
        """True for machine-generated formats that record resolved versions."""
        return self not in _MANIFEST_FORMATS


_FORMAT_ECOSYSTEMS = {
    LockfileFormat.GRADLE_LOCKFILE: Ecosystem.GRADLE,
    LockfileFormat.GRADLE_GROOVY_DSL: Ecosystem.GRADLE,
    LockfileFormat.GRADLE_KOTLIN_DSL: Ecosystem.GRADLE,
    LockfileFormat.MAVEN_POM: Ecosystem.MAVEN,
    LockfileFormat.NPM_PACKAGE_LOCK: Ecosystem.NPM,
    LockfileFormat.YARN_LOCK: Ecosystem.NPM,
    LockfileFormat.PNPM_LOCK: Ecosystem.NPM,
    LockfileFormat.PIP_REQUIREMENTS: Ecosystem.PYPI,
    LockfileFormat.SETUP_CFG: Ecosystem.PYPI,
    LockfileFormat.SETUP_PY: Ecosystem.PYPI,
    LockfileFormat.PIPFILE_LOCK: Ecosystem.PYPI,
    LockfileFormat.POETRY_LOCK: Ecosystem.PYPI,
    LockfileFormat.UV_LOCK: Ecosystem.PYPI,
    LockfileFormat.CARGO_LOCK: Ecosystem.CARGO,
    LockfileFormat.GO_MOD: Ecosystem.GO,
    LockfileFormat.NUGET_LOCK: Ecosystem.NUGET,
    LockfileFormat.COMPOSER_LOCK: Ecosystem.PACKAGIST,
    LockfileFormat.GEMFILE_LOCK: Ecosystem.RUBYGEMS,
    LockfileFormat.PUBSPEC_LOCK: Ecosystem.PUB,
}

# Hand-written files that declare intent rather than resolved versions
_MANIFEST_FORMATS = frozenset(
    {
        LockfileFormat.GRADLE_GROOVY_DSL,
        LockfileFormat.GRADLE_KOTLIN_DSL,
        LockfileFormat.MAVEN_POM,
        LockfileFormat.PIP_REQUIREMENTS,
        LockfileFormat.SETUP_CFG,
        LockfileFormat.SETUP_PY,
        LockfileFormat.GO_MOD,
    }
)


class VersionPrecision(IntEnum):
    """How precisely a record's version identifies what gets installed.

    Ordered so that a higher value always wins during merging.
    """

    UNRESOLVED = 0
    RANGE = 1
    PINNED = 2
    LOCKED = 3


class Severity(Enum):
    """Diagnostic severity."""

    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class DiagnosticKind(Enum):
    """What a diagnostic is about."""

    UNRECOGNIZED_FORMAT = "unrecognized-format"
    MALFORMED_RECORD = "malformed-record"
    UNRESOLVED_COORDINATE = "unresolved-coordinate"
    UNSUPPORTED_NOTATION = "unsupported-notation"
    IO_FAILURE = "io-failure"
    PARSE_FAILURE = "parse-failure"
    CONFLICTING_DECLARATIONS = "conflicting-declarations"
    IMPRECISE_VERSION = "imprecise-version"
    MISSING_LOCKFILE = "missing-lockfile"
    SKIPPED_REFERENCE = "skipped-reference"


@dataclass(frozen=True)
class Origin:
    """Where a record was declared."""

    path: str
    line: int | None = None
    end_line: int | None = None

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {"path": self.path}
        if self.line is not None:
            result["line"] = self.line
            result["end_line"] = self.end_line if self.end_line is not None else self.line
        return result


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal, reportable issue found while scanning.

    Diagnostics are attached to the inventory instead of being raised, so a
    problem in one file or record never stops the rest of the scan.
    """

    severity: Severity
    kind: DiagnosticKind
    message: str
    path: str
    line: int | None = None

    @classmethod
    def info(cls, kind: DiagnosticKind, message: str, path: str, line: int | None = None) -> "Diagnostic":
        return cls(Severity.INFO, kind, message, path, line)

    @classmethod
    def warning(cls, kind: DiagnosticKind, message: str, path: str, line: int | None = None) -> "Diagnostic":
        return cls(Severity.WARNING, kind, message, path, line)

    @classmethod
    def error(cls, kind: DiagnosticKind, message: str, path: str, line: int | None = None) -> "Diagnostic":
        return cls(Severity.ERROR, kind, message, path, line)

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "severity": self.severity.value,
            "kind": self.kind.value,
            "message": self.message,
            "path": self.path,
        }
        if self.line is not None:
            result["line"] = self.line
        return result

    def __str__(self) -> str:
        location = f"{self.path}:{self.line}" if self.line is not None else self.path
        return f"{self.severity.value}: {location}: {self.message}"


@dataclass(frozen=True)
class LockfileDescriptor:
    """A file selected for parsing, with its detected format."""

    path: str
    format: LockfileFormat

    @property
    def ecosystem(self) -> Ecosystem:
        return self.format.ecosystem


@dataclass(frozen=True)
class RawDependencyEntry:
    """Dependency as read by a parser, before normalization.

    Attributes:
        name: Ecosystem-scoped name as written in the file
        version: Version or requirement as written, UNRESOLVED_VERSION if
            it could not be determined statically
        groups: Configuration names or dependency groups (e.g. Gradle
            "implementation", npm "dev"); informational only
        locked: True when the version comes from machine-generated lock data
        line: First line of the declaration, 1-based, when known
        end_line: Last line of the declaration, when known
        commit: VCS commit the dependency is pinned to, if any
    """

    name: str
    version: str
    groups: tuple[str, ...] = ()
    locked: bool = False
    line: int | None = None
    end_line: int | None = None
    commit: str | None = None


@dataclass
class ParseResult:
    """Output of a single parser invocation."""

    entries: list[RawDependencyEntry] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    # Set by Gradle build scripts that declare a dependencyLocking block
    locking_enabled: bool = False


@dataclass(frozen=True)
class PackageRecord:
    """A normalized package in the final inventory.

    Records are immutable. Identity for merging is the normalized name plus
    the ecosystem; name + ecosystem + version identifies a dependency edge.

    ``declared_at`` points at the manifest declaration (build script,
    requirements file) of a package whose version came from a lockfile.
    """

    name: str
    version: str
    ecosystem: Ecosystem
    origin: Origin
    precision: VersionPrecision = VersionPrecision.PINNED
    commit: str | None = None
    declared_at: Origin | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("PackageRecord name cannot be empty")

    @property
    def identity(self) -> tuple[str, Ecosystem]:
        """Return the (normalized name, ecosystem) identity key."""
        return normalize_package_name(self.name, self.ecosystem), self.ecosystem

    @property
    def purl(self) -> str:
        """Return a Package URL for this record."""
        namespace, name = _split_purl_name(self.name, self.ecosystem)
        version = None if self.version == UNRESOLVED_VERSION else self.version
        return PackageURL(type=self.ecosystem.purl_type, namespace=namespace, name=name, version=version).to_string()

    def to_dict(self) -> dict[str, Any]:
        result: dict[str, Any] = {
            "name": self.name,
            "version": self.version,
            "ecosystem": self.ecosystem.value,
            "precision": self.precision.name.lower(),
            "origin": self.origin.to_dict(),
        }
        if self.commit:
            result["commit"] = self.commit
        if self.declared_at is not None:
            result["declared_at"] = self.declared_at.to_dict()
        return result


def _split_purl_name(name: str, ecosystem: Ecosystem) -> tuple[str | None, str]:
    """Split an ecosystem-scoped name into Package URL namespace and name."""
    if ecosystem in (Ecosystem.GRADLE, Ecosystem.MAVEN) and ":" in name:
        group, artifact = name.split(":", 1)
        return group, artifact
    if ecosystem in (Ecosystem.NPM, Ecosystem.PACKAGIST, Ecosystem.GO) and "/" in name:
        namespace, short_name = name.rsplit("/", 1)
        return namespace, short_name
    return None, name


def normalize_package_name(name: str, ecosystem: Ecosystem) -> str:
    """Normalize package name for identity comparison.

    Different ecosystems have different normalization rules:
    - PyPI: case-insensitive, runs of underscores/hyphens/dots are equivalent
    - Cargo: case-insensitive, hyphens and underscores equivalent
    - Go: module paths are case-sensitive
    - everything else: case-insensitive

    Args:
        name: Package name to normalize
        ecosystem: Ecosystem the name belongs to

    Returns:
        Normalized package name for comparison.
    """
    if ecosystem is Ecosystem.PYPI:
        # PEP 503
        return re.sub(r"[-_.]+", "-", name).lower()
    elif ecosystem is Ecosystem.CARGO:
        return name.lower().replace("-", "_")
    elif ecosystem is Ecosystem.GO:
        return name
    else:
        return name.lower()
