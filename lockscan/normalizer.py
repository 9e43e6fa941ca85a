"""Normalization of raw parser entries into package records."""

import re

from .models import (
    UNRESOLVED_VERSION,
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileDescriptor,
    Origin,
    PackageRecord,
    RawDependencyEntry,
    VersionPrecision,
)

# Runs of separators that PEP 503 treats as equivalent
_PEP503_SEPARATORS = re.compile(r"[-_.]+")

# Maven/Gradle version ranges: [1.0,2.0), (,1.0], [1.0,)
_MAVEN_RANGE = re.compile(r"^[\[(].*[\])]$")
_PYPI_OPERATORS = ("~=", "!=", "<=", ">=", "<", ">")
_PYPI_EXACT = ("===", "==")


def canonical_name(name: str, ecosystem: Ecosystem) -> str:
    """Canonicalize a package name as it appears in the inventory.

    PyPI names follow PEP 503 with any "[extras]" removed; Maven and Gradle
    coordinates drop whitespace around the ":" separator.
    """
    name = name.strip()
    if ecosystem is Ecosystem.PYPI:
        name = name.split("[", 1)[0]
        return _PEP503_SEPARATORS.sub("-", name).lower()
    if ecosystem in (Ecosystem.GRADLE, Ecosystem.MAVEN):
        return ":".join(part.strip() for part in name.split(":"))
    return name


def canonical_version(version: str, ecosystem: Ecosystem) -> str:
    """Canonicalize a version string.

    - empty versions become UNRESOLVED_VERSION
    - a single PyPI "==" / "===" pin becomes the bare version
    - a Gradle strict version "1.0!!" or "[1.0,2.0[!!1.5" keeps the
      preferred version
    """
    version = version.strip()
    if not version:
        return UNRESOLVED_VERSION

    if ecosystem is Ecosystem.PYPI and "," not in version:
        for operator in _PYPI_EXACT:
            if version.startswith(operator):
                return version[len(operator) :].strip() or UNRESOLVED_VERSION

    if ecosystem is Ecosystem.GRADLE and "!!" in version:
        strict, _, preferred = version.partition("!!")
        return preferred or strict or UNRESOLVED_VERSION

    return version


def classify_precision(version: str, ecosystem: Ecosystem, locked: bool) -> VersionPrecision:
    """Classify how precisely a version identifies an artifact.

    Args:
        version: Canonical version
        ecosystem: Ecosystem of the record
        locked: Whether the version comes from machine-generated lock data

    Returns:
        LOCKED for lock data, otherwise UNRESOLVED, RANGE or PINNED.
    """
    if locked:
        return VersionPrecision.LOCKED
    if version == UNRESOLVED_VERSION:
        return VersionPrecision.UNRESOLVED
    if is_version_range(version, ecosystem):
        return VersionPrecision.RANGE
    return VersionPrecision.PINNED


def is_version_range(version: str, ecosystem: Ecosystem) -> bool:
    """Check whether a version is range or dynamic syntax for its ecosystem."""
    if "*" in version:
        return True

    if ecosystem in (Ecosystem.GRADLE, Ecosystem.MAVEN):
        return (
            version.endswith("+")
            or version.startswith("latest.")
            or bool(_MAVEN_RANGE.match(version))
            or "," in version
        )

    if ecosystem is Ecosystem.PYPI:
        return version.startswith(_PYPI_OPERATORS + _PYPI_EXACT) or "," in version

    if ecosystem in (Ecosystem.NPM, Ecosystem.PACKAGIST, Ecosystem.CARGO, Ecosystem.RUBYGEMS, Ecosystem.PUB):
        return version.startswith(("^", "~", ">", "<", "=")) or " " in version

    if ecosystem is Ecosystem.NUGET:
        return bool(_MAVEN_RANGE.match(version))

    return False


class Normalizer:
    """Turns raw parser entries into immutable package records.

    Build-tool metadata (configurations, dependency groups) is dropped here;
    only the coordinate, its origin and its precision survive.
    """

    def normalize(
        self, entry: RawDependencyEntry, descriptor: LockfileDescriptor
    ) -> tuple[PackageRecord | None, list[Diagnostic]]:
        """Normalize one raw entry.

        Args:
            entry: Entry produced by a parser
            descriptor: File the entry was read from

        Returns:
            Tuple of (record, diagnostics). The record is None when the entry
            has to be dropped; the diagnostics then say why.
        """
        ecosystem = descriptor.ecosystem
        name = canonical_name(entry.name, ecosystem)

        if not name:
            return None, [
                Diagnostic.warning(
                    DiagnosticKind.MALFORMED_RECORD,
                    "Dropped a dependency without a name",
                    descriptor.path,
                    entry.line,
                )
            ]

        version = canonical_version(entry.version, ecosystem)
        record = PackageRecord(
            name=name,
            version=version,
            ecosystem=ecosystem,
            origin=Origin(descriptor.path, entry.line, entry.end_line),
            precision=classify_precision(version, ecosystem, entry.locked),
            commit=entry.commit,
        )
        return record, []
