"""Tests for the lockscan data models."""

import pytest

from lockscan.models import (
    UNRESOLVED_VERSION,
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileDescriptor,
    LockfileFormat,
    Origin,
    PackageRecord,
    Severity,
    VersionPrecision,
    normalize_package_name,
)


class TestEcosystem:
    """Tests for Ecosystem."""

    def test_gradle_matches_maven_advisories(self):
        assert Ecosystem.GRADLE.advisory_ecosystem == "Maven"
        assert Ecosystem.MAVEN.advisory_ecosystem == "Maven"
        assert Ecosystem.CARGO.advisory_ecosystem == "crates.io"

    def test_every_ecosystem_has_a_purl_type(self):
        for ecosystem in Ecosystem:
            assert ecosystem.purl_type


class TestLockfileFormat:
    """Tests for LockfileFormat."""

    def test_every_format_has_an_ecosystem(self):
        for fmt in LockfileFormat:
            assert isinstance(fmt.ecosystem, Ecosystem)

    def test_gradle_formats(self):
        assert LockfileFormat.GRADLE_LOCKFILE.ecosystem is Ecosystem.GRADLE
        assert LockfileFormat.GRADLE_KOTLIN_DSL.ecosystem is Ecosystem.GRADLE
        assert LockfileFormat.GRADLE_LOCKFILE.is_lockfile
        assert not LockfileFormat.GRADLE_GROOVY_DSL.is_lockfile
        assert not LockfileFormat.GO_MOD.is_lockfile

    def test_descriptor_ecosystem(self):
        assert LockfileDescriptor("yarn.lock", LockfileFormat.YARN_LOCK).ecosystem is Ecosystem.NPM


class TestPackageRecord:
    """Tests for PackageRecord."""

    def test_empty_name_is_rejected(self):
        with pytest.raises(ValueError):
            PackageRecord(name="", version="1.0", ecosystem=Ecosystem.NPM, origin=Origin("package-lock.json"))

    def test_records_are_immutable(self):
        record = PackageRecord(name="a", version="1.0", ecosystem=Ecosystem.NPM, origin=Origin("package-lock.json"))

        with pytest.raises(AttributeError):
            record.version = "2.0"

    def test_identity(self):
        record = PackageRecord(
            name="Zope.Interface", version="6.0", ecosystem=Ecosystem.PYPI, origin=Origin("requirements.txt")
        )

        assert record.identity == ("zope-interface", Ecosystem.PYPI)

    @pytest.mark.parametrize(
        "name,version,ecosystem,expected",
        [
            ("com.foo:bar", "1.0.3", Ecosystem.GRADLE, "pkg:maven/com.foo/bar@1.0.3"),
            ("junit:junit", "4.13.2", Ecosystem.MAVEN, "pkg:maven/junit/junit@4.13.2"),
            ("@babel/core", "7.23.0", Ecosystem.NPM, "pkg:npm/%40babel/core@7.23.0"),
            ("github.com/pkg/errors", "0.9.1", Ecosystem.GO, "pkg:golang/github.com/pkg/errors@0.9.1"),
            ("serde", "1.0.193", Ecosystem.CARGO, "pkg:cargo/serde@1.0.193"),
            ("com.foo:bar", UNRESOLVED_VERSION, Ecosystem.GRADLE, "pkg:maven/com.foo/bar"),
        ],
    )
    def test_purl(self, name, version, ecosystem, expected):
        record = PackageRecord(name=name, version=version, ecosystem=ecosystem, origin=Origin("x"))

        assert record.purl == expected

    def test_to_dict(self):
        record = PackageRecord(
            name="com.foo:bar",
            version="1.0.3",
            ecosystem=Ecosystem.GRADLE,
            origin=Origin("app/gradle.lockfile", 4),
            precision=VersionPrecision.LOCKED,
        )

        assert record.to_dict() == {
            "name": "com.foo:bar",
            "version": "1.0.3",
            "ecosystem": "Gradle",
            "precision": "locked",
            "origin": {"path": "app/gradle.lockfile", "line": 4, "end_line": 4},
        }

    def test_to_dict_with_commit(self):
        record = PackageRecord(
            name="from-git", version="1.0.0", ecosystem=Ecosystem.NPM, origin=Origin("yarn.lock"), commit="0a1b2c3d"
        )

        data = record.to_dict()

        assert data["commit"] == "0a1b2c3d"
        assert data["origin"] == {"path": "yarn.lock"}

    def test_to_dict_with_declaration(self):
        record = PackageRecord(
            name="com.foo:bar",
            version="1.0.3",
            ecosystem=Ecosystem.GRADLE,
            origin=Origin("app/gradle.lockfile", 4),
            precision=VersionPrecision.LOCKED,
            declared_at=Origin("app/build.gradle", 10),
        )

        assert record.to_dict()["declared_at"] == {"path": "app/build.gradle", "line": 10, "end_line": 10}


class TestDiagnostic:
    """Tests for Diagnostic."""

    def test_constructors(self):
        assert Diagnostic.info(DiagnosticKind.MISSING_LOCKFILE, "m", "p").severity is Severity.INFO
        assert Diagnostic.warning(DiagnosticKind.MALFORMED_RECORD, "m", "p").severity is Severity.WARNING
        assert Diagnostic.error(DiagnosticKind.IO_FAILURE, "m", "p").severity is Severity.ERROR

    def test_str(self):
        diagnostic = Diagnostic.warning(DiagnosticKind.MALFORMED_RECORD, "Skipping line", "gradle.lockfile", 7)

        assert str(diagnostic) == "warning: gradle.lockfile:7: Skipping line"
        assert str(Diagnostic.error(DiagnosticKind.IO_FAILURE, "Cannot read", "x")) == "error: x: Cannot read"

    def test_to_dict(self):
        diagnostic = Diagnostic.warning(DiagnosticKind.MALFORMED_RECORD, "Skipping line", "gradle.lockfile", 7)

        assert diagnostic.to_dict() == {
            "severity": "warning",
            "kind": "malformed-record",
            "message": "Skipping line",
            "path": "gradle.lockfile",
            "line": 7,
        }


class TestNormalizePackageName:
    """Tests for identity name normalization."""

    @pytest.mark.parametrize(
        "name,ecosystem,expected",
        [
            ("Django", Ecosystem.PYPI, "django"),
            ("zope.interface", Ecosystem.PYPI, "zope-interface"),
            ("Serde-JSON", Ecosystem.CARGO, "serde_json"),
            ("github.com/BurntSushi/toml", Ecosystem.GO, "github.com/BurntSushi/toml"),
            ("Newtonsoft.Json", Ecosystem.NUGET, "newtonsoft.json"),
            ("com.foo:Bar", Ecosystem.GRADLE, "com.foo:bar"),
        ],
    )
    def test_normalize(self, name, ecosystem, expected):
        assert normalize_package_name(name, ecosystem) == expected
