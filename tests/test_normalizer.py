"""Tests for entry normalization."""

import pytest

from lockscan.models import (
    UNRESOLVED_VERSION,
    DiagnosticKind,
    Ecosystem,
    LockfileDescriptor,
    LockfileFormat,
    Origin,
    RawDependencyEntry,
    VersionPrecision,
)
from lockscan.normalizer import Normalizer, canonical_name, canonical_version, classify_precision, is_version_range

GRADLE_LOCK = LockfileDescriptor("app/gradle.lockfile", LockfileFormat.GRADLE_LOCKFILE)
GRADLE_SCRIPT = LockfileDescriptor("app/build.gradle.kts", LockfileFormat.GRADLE_KOTLIN_DSL)
REQUIREMENTS = LockfileDescriptor("requirements.txt", LockfileFormat.PIP_REQUIREMENTS)


class TestCanonicalName:
    """Tests for canonical_name."""

    def test_pypi_pep503_and_extras(self):
        assert canonical_name("Zope.Interface", Ecosystem.PYPI) == "zope-interface"
        assert canonical_name("requests[socks]", Ecosystem.PYPI) == "requests"
        assert canonical_name("my__weird--name", Ecosystem.PYPI) == "my-weird-name"

    def test_maven_coordinates_are_trimmed(self):
        assert canonical_name(" com.foo : bar ", Ecosystem.GRADLE) == "com.foo:bar"

    def test_other_ecosystems_keep_case(self):
        assert canonical_name("Newtonsoft.Json", Ecosystem.NUGET) == "Newtonsoft.Json"
        assert canonical_name("@types/node", Ecosystem.NPM) == "@types/node"


class TestCanonicalVersion:
    """Tests for canonical_version."""

    def test_pypi_pins(self):
        assert canonical_version("==5.1.1", Ecosystem.PYPI) == "5.1.1"
        assert canonical_version("===5.1.1", Ecosystem.PYPI) == "5.1.1"
        assert canonical_version(">=5.1", Ecosystem.PYPI) == ">=5.1"
        assert canonical_version("==5.1,!=5.1.2", Ecosystem.PYPI) == "==5.1,!=5.1.2"

    def test_empty_is_unresolved(self):
        assert canonical_version("", Ecosystem.NPM) == UNRESOLVED_VERSION
        assert canonical_version("   ", Ecosystem.GRADLE) == UNRESOLVED_VERSION

    def test_gradle_strict_versions(self):
        assert canonical_version("1.7.30!!", Ecosystem.GRADLE) == "1.7.30"
        assert canonical_version("[1.7,1.8[!!1.7.25", Ecosystem.GRADLE) == "1.7.25"

    def test_other_versions_unchanged(self):
        assert canonical_version("5.7.3", Ecosystem.GRADLE) == "5.7.3"
        assert canonical_version("==1.0", Ecosystem.NPM) == "==1.0"


class TestClassifyPrecision:
    """Tests for precision classification."""

    @pytest.mark.parametrize(
        "version,ecosystem",
        [
            ("+", Ecosystem.GRADLE),
            ("1.+", Ecosystem.GRADLE),
            ("latest.release", Ecosystem.GRADLE),
            ("[1.0,2.0)", Ecosystem.MAVEN),
            ("(,1.0]", Ecosystem.MAVEN),
            (">=2.31,<3", Ecosystem.PYPI),
            ("~=6.0", Ecosystem.PYPI),
            ("==1.*", Ecosystem.PYPI),
            ("^1.2.3", Ecosystem.NPM),
            ("[13.0.1, )", Ecosystem.NUGET),
        ],
    )
    def test_ranges(self, version, ecosystem):
        assert is_version_range(version, ecosystem)
        assert classify_precision(version, ecosystem, locked=False) == VersionPrecision.RANGE

    @pytest.mark.parametrize(
        "version,ecosystem",
        [
            ("5.7.3", Ecosystem.GRADLE),
            ("31.1-jre", Ecosystem.GRADLE),
            ("2.31.0", Ecosystem.PYPI),
            ("0.9.1", Ecosystem.GO),
        ],
    )
    def test_pinned(self, version, ecosystem):
        assert classify_precision(version, ecosystem, locked=False) == VersionPrecision.PINNED

    def test_unresolved(self):
        assert classify_precision(UNRESOLVED_VERSION, Ecosystem.GRADLE, locked=False) == VersionPrecision.UNRESOLVED

    def test_lock_data_is_locked(self):
        assert classify_precision("1.0.3", Ecosystem.GRADLE, locked=True) == VersionPrecision.LOCKED

    def test_precision_order(self):
        assert (
            VersionPrecision.UNRESOLVED < VersionPrecision.RANGE < VersionPrecision.PINNED < VersionPrecision.LOCKED
        )


class TestNormalizer:
    """Tests for Normalizer.normalize."""

    @pytest.fixture
    def normalizer(self):
        return Normalizer()

    def test_lockfile_entry(self, normalizer):
        entry = RawDependencyEntry(
            name="com.foo:bar", version="1.0.3", groups=("compileClasspath",), locked=True, line=4
        )

        record, diagnostics = normalizer.normalize(entry, GRADLE_LOCK)

        assert diagnostics == []
        assert record.name == "com.foo:bar"
        assert record.version == "1.0.3"
        assert record.ecosystem == Ecosystem.GRADLE
        assert record.precision == VersionPrecision.LOCKED
        assert record.origin == Origin("app/gradle.lockfile", 4, None)

    def test_build_script_entry(self, normalizer):
        entry = RawDependencyEntry(name="com.foo:bar", version="1.0", groups=("implementation",), line=3, end_line=5)

        record, _ = normalizer.normalize(entry, GRADLE_SCRIPT)

        assert record.precision == VersionPrecision.PINNED
        assert record.origin == Origin("app/build.gradle.kts", 3, 5)

    def test_requirement_pin(self, normalizer):
        record, _ = normalizer.normalize(RawDependencyEntry(name="Django", version="==5.1.1"), REQUIREMENTS)

        assert (record.name, record.version, record.precision) == ("django", "5.1.1", VersionPrecision.PINNED)

    def test_empty_name_is_dropped(self, normalizer):
        record, diagnostics = normalizer.normalize(RawDependencyEntry(name="  ", version="1.0", line=7), GRADLE_SCRIPT)

        assert record is None
        assert [d.kind for d in diagnostics] == [DiagnosticKind.MALFORMED_RECORD]
        assert diagnostics[0].line == 7

    def test_normalization_is_idempotent(self, normalizer):
        """Normalizing an already normalized record gives the same record."""
        entries = [
            (RawDependencyEntry(name="Zope.Interface[x]", version="==6.0"), REQUIREMENTS),
            (RawDependencyEntry(name="com.foo:bar", version="1.0!!"), GRADLE_SCRIPT),
            (RawDependencyEntry(name="com.foo:bar", version="+"), GRADLE_SCRIPT),
            (RawDependencyEntry(name="com.foo:bar", version="1.0.3", locked=True), GRADLE_LOCK),
        ]

        for entry, descriptor in entries:
            first, _ = normalizer.normalize(entry, descriptor)
            again = RawDependencyEntry(name=first.name, version=first.version, locked=entry.locked)
            second, _ = normalizer.normalize(again, descriptor)
            assert (second.name, second.version, second.precision) == (first.name, first.version, first.precision)
