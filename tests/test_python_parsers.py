"""Tests for the Python lockfile and requirements parsers."""

import json

import pytest

from lockscan.exceptions import ParseError
from lockscan.models import UNRESOLVED_VERSION, DiagnosticKind, LockfileFormat, Severity
from lockscan.parsers import (
    PipfileLockParser,
    PoetryLockParser,
    RequirementsTxtParser,
    SetupCfgParser,
    SetupPyParser,
    UvLockParser,
)


class TestRequirementsTxtParser:
    """Tests for requirements.txt parser."""

    @pytest.fixture
    def parser(self):
        return RequirementsTxtParser()

    def test_supports(self, parser):
        assert parser.supports(LockfileFormat.PIP_REQUIREMENTS)
        assert not parser.supports(LockfileFormat.PIPFILE_LOCK)

    def test_parse_requirements(self, parser):
        content = """# production dependencies
Django==5.1.1
requests[socks]>=2.31,<3  # keep below 3
zope.interface ~= 6.0
urllib3 == 2.0.7 ; python_version >= "3.8"
"""

        result = parser.parse(content, "requirements.txt")

        assert [(e.name, e.version) for e in result.entries] == [
            ("Django", "==5.1.1"),
            ("requests", ">=2.31,<3"),
            ("zope.interface", "~=6.0"),
            ("urllib3", "==2.0.7"),
        ]
        assert [e.line for e in result.entries] == [2, 3, 4, 5]
        assert all(e.groups == ("requirements",) for e in result.entries)
        assert not any(e.locked for e in result.entries)

    def test_line_continuations_and_hashes(self, parser):
        content = """django==5.1.1 \\
    --hash=sha256:abc \\
    --hash=sha256:def
requests==2.31.0
"""

        result = parser.parse(content, "requirements.txt")

        assert [(e.name, e.version, e.line, e.end_line) for e in result.entries] == [
            ("django", "==5.1.1", 1, 3),
            ("requests", "==2.31.0", 4, 4),
        ]

    def test_references_are_reported_not_followed(self, parser):
        content = "-r base.txt\n--constraint constraints.txt\nflask==3.0.0\n"

        result = parser.parse(content, "requirements-dev.txt")

        assert [e.name for e in result.entries] == ["flask"]
        assert result.entries[0].groups == ("requirements-dev",)
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.SKIPPED_REFERENCE] * 2
        assert all(d.severity == Severity.INFO for d in result.diagnostics)
        assert "base.txt" in result.diagnostics[0].message

    def test_flags_urls_and_paths_are_skipped(self, parser):
        content = """--index-url https://pypi.org/simple
-e .
./local/package
/abs/path/package
https://example.com/archive.tar.gz
"""

        result = parser.parse(content, "requirements.txt")

        assert result.entries == []
        assert result.diagnostics == []

    def test_wheel_url_version(self, parser):
        content = "mypkg @ https://example.com/wheels/mypkg-1.2.3-py3-none-any.whl\n"

        result = parser.parse(content, "requirements.txt")

        assert [(e.name, e.version) for e in result.entries] == [("mypkg", "==1.2.3")]

    def test_unconstrained_requirement_is_unresolved(self, parser):
        result = parser.parse("flask\n", "requirements.txt")

        assert [(e.name, e.version) for e in result.entries] == [("flask", UNRESOLVED_VERSION)]
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNRESOLVED_COORDINATE]
        assert result.diagnostics[0].line == 1

    def test_vcs_reference_is_unresolved(self, parser):
        result = parser.parse("mypkg @ git+https://github.com/owner/mypkg.git@v1.0\n", "requirements.txt")

        assert [(e.name, e.version) for e in result.entries] == [("mypkg", UNRESOLVED_VERSION)]
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNRESOLVED_COORDINATE]

    def test_duplicates_are_reported_once(self, parser):
        result = parser.parse("flask==3.0.0\nFlask==3.0.0\n", "requirements.txt")

        assert len(result.entries) == 1


class TestPipfileLockParser:
    """Tests for Pipfile.lock parser."""

    @pytest.fixture
    def parser(self):
        return PipfileLockParser()

    def test_parse(self, parser):
        content = json.dumps(
            {
                "_meta": {"hash": {"sha256": "abc"}},
                "default": {
                    "django": {"hashes": ["sha256:abc"], "version": "==5.1.1"},
                    "from-git": {"git": "https://github.com/owner/from-git.git", "ref": "0a1b2c3d"},
                },
                "develop": {
                    "pytest": {"version": "==8.0.0"},
                    "django": {"version": "==5.1.1"},
                },
            }
        )

        result = parser.parse(content, "Pipfile.lock")

        assert [(e.name, e.version, e.groups, e.commit) for e in result.entries] == [
            ("django", "5.1.1", (), None),
            ("from-git", UNRESOLVED_VERSION, (), "0a1b2c3d"),
            ("pytest", "8.0.0", ("dev",), None),
        ]
        assert all(e.locked for e in result.entries)

    def test_package_without_version(self, parser):
        result = parser.parse(json.dumps({"default": {"broken": {}}}), "Pipfile.lock")

        assert result.entries == []
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.MALFORMED_RECORD]

    def test_invalid_json(self, parser):
        with pytest.raises(ParseError):
            parser.parse("[", "Pipfile.lock")

    def test_null_version_keeps_siblings(self, parser):
        content = json.dumps(
            {
                "default": {
                    "from-git": {"version": None, "git": "https://github.com/owner/from-git.git", "ref": "abc123"},
                    "broken": {"version": None},
                    "django": {"version": "==5.1.1"},
                }
            }
        )

        result = parser.parse(content, "Pipfile.lock")

        assert [(e.name, e.version, e.commit) for e in result.entries] == [
            ("from-git", UNRESOLVED_VERSION, "abc123"),
            ("django", "5.1.1", None),
        ]
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.MALFORMED_RECORD]

    def test_section_that_is_not_an_object(self, parser):
        content = json.dumps({"default": ["django"], "develop": {"pytest": {"version": "==8.0.0"}}})

        result = parser.parse(content, "Pipfile.lock")

        assert [e.name for e in result.entries] == ["pytest"]
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.MALFORMED_RECORD]

    def test_line_positions(self, parser):
        content = json.dumps(
            {
                "_meta": {"hash": {"sha256": "abc"}},
                "default": {"django": {"hashes": ["sha256:abc"], "version": "==5.1.1"}},
                "develop": {"pytest": {"version": "==8.0.0"}},
            },
            indent=4,
        )

        result = parser.parse(content, "Pipfile.lock")

        assert [(e.name, e.line, e.end_line) for e in result.entries] == [
            ("django", 8, 13),
            ("pytest", 16, 18),
        ]


class TestPoetryLockParser:
    """Tests for poetry.lock parser."""

    def test_parse(self):
        content = """
[[package]]
name = "django"
version = "5.1.1"
optional = false

[[package]]
name = "redis"
version = "5.0.1"
optional = true

[[package]]
name = "from-git"
version = "1.0.0"

[package.source]
type = "git"
url = "https://github.com/owner/from-git.git"
reference = "main"
resolved_reference = "0a1b2c3d"

[metadata]
lock-version = "2.0"
content-hash = "abc"
"""

        result = PoetryLockParser().parse(content, "poetry.lock")

        assert [(e.name, e.version, e.groups, e.commit) for e in result.entries] == [
            ("django", "5.1.1", (), None),
            ("redis", "5.0.1", ("optional",), None),
            ("from-git", "1.0.0", (), "0a1b2c3d"),
        ]

    def test_invalid_toml(self):
        with pytest.raises(ParseError):
            PoetryLockParser().parse("[[package]\nname =", "poetry.lock")

    def test_line_positions(self):
        content = """
[[package]]
name = "django"
version = "5.1.1"

[[package]]
name = "from-git"
version = "1.0.0"

[package.source]
type = "git"
resolved_reference = "0a1b2c3d"

[metadata]
lock-version = "2.0"
"""

        result = PoetryLockParser().parse(content, "poetry.lock")

        assert [(e.name, e.line, e.end_line) for e in result.entries] == [("django", 2, 4), ("from-git", 6, 12)]

    def test_package_is_not_an_array_of_tables(self):
        result = PoetryLockParser().parse('package = "django"\n', "poetry.lock")

        assert result.entries == []
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.MALFORMED_RECORD]


class TestUvLockParser:
    """Tests for uv.lock parser."""

    def test_parse(self):
        content = """
version = 1
requires-python = ">=3.11"

[[package]]
name = "myproject"
version = "0.1.0"
source = { editable = "." }

[[package]]
name = "django"
version = "5.1.1"
source = { registry = "https://pypi.org/simple" }

[[package]]
name = "from-git"
version = "1.0.0"
source = { git = "https://github.com/owner/from-git?rev=main#0a1b2c3d" }
"""

        result = UvLockParser().parse(content, "uv.lock")

        assert [(e.name, e.version, e.commit) for e in result.entries] == [
            ("django", "5.1.1", None),
            ("from-git", "1.0.0", "0a1b2c3d"),
        ]
        assert all(e.locked for e in result.entries)

    def test_entries_that_are_not_tables_are_skipped(self):
        content = 'package = [1, { name = "django", version = "5.1.1" }, { name = "no-version" }]\n'

        result = UvLockParser().parse(content, "uv.lock")

        assert [(e.name, e.version, e.line) for e in result.entries] == [("django", "5.1.1", None)]
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.MALFORMED_RECORD] * 2


class TestSetupCfgParser:
    """Tests for setup.cfg parser."""

    @pytest.fixture
    def parser(self):
        return SetupCfgParser()

    def test_parse(self, parser):
        content = """[metadata]
name = app

[options]
packages = find:
install_requires =
    requests>=2.31  # http client
    click==8.1.7
    urllib3 == 2.0.7 ; python_version >= "3.8"
python_requires = >=3.11

[options.extras_require]
test = pytest>=8.0; coverage
"""

        result = parser.parse(content, "setup.cfg")

        assert [(e.name, e.version, e.groups, e.line) for e in result.entries] == [
            ("requests", ">=2.31", ("setup",), 7),
            ("click", "==8.1.7", ("setup",), 8),
            ("urllib3", "==2.0.7", ("setup",), 9),
            ("pytest", ">=8.0", ("test",), 13),
            ("coverage", UNRESOLVED_VERSION, ("test",), 13),
        ]
        assert not any(e.locked for e in result.entries)
        assert [(d.kind, d.line) for d in result.diagnostics] == [(DiagnosticKind.UNRESOLVED_COORDINATE, 13)]

    def test_file_directive_is_not_followed(self, parser):
        result = parser.parse("[options]\ninstall_requires = file: requirements.in\n", "setup.cfg")

        assert result.entries == []
        assert [(d.kind, d.severity, d.line) for d in result.diagnostics] == [
            (DiagnosticKind.SKIPPED_REFERENCE, Severity.INFO, 2)
        ]

    def test_without_requirements(self, parser):
        result = parser.parse("[metadata]\nname = app\n", "setup.cfg")

        assert result.entries == []
        assert result.diagnostics == []

    def test_invalid_ini(self, parser):
        with pytest.raises(ParseError):
            parser.parse("install_requires = requests\n", "setup.cfg")


class TestSetupPyParser:
    """Tests for setup.py parser."""

    @pytest.fixture
    def parser(self):
        return SetupPyParser()

    def test_parse(self, parser):
        content = """from setuptools import setup

BASE = ["requests>=2.31", "click==8.1.7"]

setup(
    name="app",
    install_requires=BASE + [
        "urllib3==2.0.7",
        get_extra(),
    ],
)
"""

        result = parser.parse(content, "setup.py")

        assert [(e.name, e.version, e.groups, e.line) for e in result.entries] == [
            ("requests", ">=2.31", ("setup",), 3),
            ("click", "==8.1.7", ("setup",), 3),
            ("urllib3", "==2.0.7", ("setup",), 8),
        ]
        assert [(d.kind, d.line) for d in result.diagnostics] == [(DiagnosticKind.UNSUPPORTED_NOTATION, 9)]
        assert "get_extra()" in result.diagnostics[0].message

    def test_computed_requirements_are_reported(self, parser):
        result = parser.parse("setup(install_requires=read_requirements())\n", "setup.py")

        assert result.entries == []
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNSUPPORTED_NOTATION]

    def test_reassigned_name_is_not_resolved(self, parser):
        content = 'REQS = ["a==1.0"]\nREQS = ["b==2.0"]\nsetup(install_requires=REQS)\n'

        result = parser.parse(content, "setup.py")

        assert result.entries == []
        assert [d.kind for d in result.diagnostics] == [DiagnosticKind.UNSUPPORTED_NOTATION]

    def test_script_is_not_executed(self, parser, tmp_path):
        marker = tmp_path / "ran"
        content = f'open({str(marker)!r}, "w").close()\nsetup(install_requires=["click==8.1.7"])\n'

        result = parser.parse(content, "setup.py")

        assert [e.name for e in result.entries] == ["click"]
        assert not marker.exists()

    def test_invalid_python(self, parser):
        with pytest.raises(ParseError):
            parser.parse("setup(install_requires=[\n", "setup.py")
