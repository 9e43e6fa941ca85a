"""Tests for lockfile format detection."""

import json

import pytest

from lockscan.detector import detect_format
from lockscan.models import Ecosystem, LockfileDescriptor, LockfileFormat

GRADLE_LOCK_CONTENT = """# This is a Gradle generated file for dependency locking.
# Manual edits can break the build and are not advised.
# This file is expected to be part of source control.
com.foo:bar:1.0.3=compileClasspath,runtimeClasspath
empty=annotationProcessor
"""


class TestFilenameDetection:
    """Detection from the file name alone."""

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("gradle.lockfile", LockfileFormat.GRADLE_LOCKFILE),
            ("app/buildscript-gradle.lockfile", LockfileFormat.GRADLE_LOCKFILE),
            ("app/build.gradle", LockfileFormat.GRADLE_GROOVY_DSL),
            ("app/build.gradle.kts", LockfileFormat.GRADLE_KOTLIN_DSL),
            ("pom.xml", LockfileFormat.MAVEN_POM),
            ("package-lock.json", LockfileFormat.NPM_PACKAGE_LOCK),
            ("npm-shrinkwrap.json", LockfileFormat.NPM_PACKAGE_LOCK),
            ("web/yarn.lock", LockfileFormat.YARN_LOCK),
            ("pnpm-lock.yaml", LockfileFormat.PNPM_LOCK),
            ("requirements.txt", LockfileFormat.PIP_REQUIREMENTS),
            ("setup.cfg", LockfileFormat.SETUP_CFG),
            ("setup.py", LockfileFormat.SETUP_PY),
            ("Pipfile.lock", LockfileFormat.PIPFILE_LOCK),
            ("poetry.lock", LockfileFormat.POETRY_LOCK),
            ("uv.lock", LockfileFormat.UV_LOCK),
            ("Cargo.lock", LockfileFormat.CARGO_LOCK),
            ("go.mod", LockfileFormat.GO_MOD),
            ("packages.lock.json", LockfileFormat.NUGET_LOCK),
            ("composer.lock", LockfileFormat.COMPOSER_LOCK),
            ("Gemfile.lock", LockfileFormat.GEMFILE_LOCK),
            ("gems.locked", LockfileFormat.GEMFILE_LOCK),
            ("pubspec.lock", LockfileFormat.PUBSPEC_LOCK),
        ],
    )
    def test_exact_filenames(self, path, expected):
        assert detect_format(path) == LockfileDescriptor(path, expected)

    @pytest.mark.parametrize(
        "path,expected",
        [
            ("settings.gradle.kts", LockfileFormat.GRADLE_KOTLIN_DSL),
            ("dependencies.gradle", LockfileFormat.GRADLE_GROOVY_DSL),
            ("app/custom-gradle.lockfile", LockfileFormat.GRADLE_LOCKFILE),
            ("requirements-dev.txt", LockfileFormat.PIP_REQUIREMENTS),
            ("dev-requirements.txt", LockfileFormat.PIP_REQUIREMENTS),
            ("lib-1.0.pom", LockfileFormat.MAVEN_POM),
        ],
    )
    def test_filename_patterns(self, path, expected):
        assert detect_format(path).format == expected

    def test_kotlin_pattern_wins_over_groovy(self):
        """A .gradle.kts file also matches *.gradle* patterns; the more specific one wins."""
        assert detect_format("module.gradle.kts").format == LockfileFormat.GRADLE_KOTLIN_DSL

    def test_filename_wins_over_content(self):
        assert detect_format("go.mod", GRADLE_LOCK_CONTENT).format == LockfileFormat.GO_MOD

    def test_filename_matching_is_case_sensitive(self):
        assert detect_format("CARGO.LOCK") is None


class TestContentSniffing:
    """Detection from content when the name is not conclusive."""

    @pytest.mark.parametrize(
        "content,expected",
        [
            (GRADLE_LOCK_CONTENT, LockfileFormat.GRADLE_LOCKFILE),
            ("com.foo:bar:1.0.3=compileClasspath\nempty=\n", LockfileFormat.GRADLE_LOCKFILE),
            ('# yarn lockfile v1\n\nlodash@^4.0.0:\n  version "4.17.21"\n', LockfileFormat.YARN_LOCK),
            ("__metadata:\n  version: 6\n", LockfileFormat.YARN_LOCK),
            (json.dumps({"lockfileVersion": 3, "packages": {}}), LockfileFormat.NPM_PACKAGE_LOCK),
            (json.dumps({"_meta": {}, "default": {}}), LockfileFormat.PIPFILE_LOCK),
            (json.dumps({"content-hash": "abc", "packages": []}), LockfileFormat.COMPOSER_LOCK),
            (json.dumps({"version": 1, "dependencies": {}}), LockfileFormat.NUGET_LOCK),
            (
                '<?xml version="1.0"?>\n<project xmlns="http://maven.apache.org/POM/4.0.0">\n</project>\n',
                LockfileFormat.MAVEN_POM,
            ),
            (
                '# This file is automatically @generated by Cargo.\nversion = 3\n\n[[package]]\nname = "a"\n',
                LockfileFormat.CARGO_LOCK,
            ),
            (
                '[[package]]\nname = "a"\nversion = "1.0"\n\n[metadata]\ncontent-hash = "abc"\n',
                LockfileFormat.POETRY_LOCK,
            ),
            ('version = 1\nrequires-python = ">=3.11"\n\n[[package]]\nname = "a"\n', LockfileFormat.UV_LOCK),
            ("lockfileVersion: '9.0'\n\npackages: {}\n", LockfileFormat.PNPM_LOCK),
            (
                '# Generated by pub\npackages:\n  http:\n    version: "1.1.0"\nsdks:\n  dart: ">=3.0.0"\n',
                LockfileFormat.PUBSPEC_LOCK,
            ),
            ("GEM\n  remote: https://rubygems.org/\n  specs:\n    rack (3.0.8)\n", LockfileFormat.GEMFILE_LOCK),
            ("module example.com/app\n\ngo 1.21\n", LockfileFormat.GO_MOD),
            ('plugins {\n    id("java")\n}\n', LockfileFormat.GRADLE_KOTLIN_DSL),
            ("plugins {\n    id 'java'\n}\n", LockfileFormat.GRADLE_GROOVY_DSL),
        ],
    )
    def test_sniffed_formats(self, content, expected):
        assert detect_format("dependencies.lock", content) == LockfileDescriptor("dependencies.lock", expected)

    @pytest.mark.parametrize(
        "content",
        [
            "",
            "   \n\n",
            "hello world\n",
            "[1, 2, 3]",
            "{not json",
            json.dumps({"name": "something"}),
            "<settings/>",
            "# only a comment\n",
        ],
    )
    def test_unrecognised_content(self, content):
        assert detect_format("notes.lock", content) is None

    def test_deeply_nested_json(self):
        assert detect_format("weird/data.json", '{"a":' * 200000) is None


class TestHints:
    """Detection with a format or ecosystem hint."""

    def test_format_hint_is_used_as_is(self):
        descriptor = detect_format("deps.txt", "", LockfileFormat.CARGO_LOCK)

        assert descriptor == LockfileDescriptor("deps.txt", LockfileFormat.CARGO_LOCK)

    def test_ecosystem_hint_accepts_matching_filename(self):
        assert detect_format("build.gradle", "", Ecosystem.GRADLE).format == LockfileFormat.GRADLE_GROOVY_DSL

    def test_ecosystem_hint_falls_back_to_content(self):
        """A filename match from another ecosystem is ignored; the content decides."""
        descriptor = detect_format("requirements.txt", GRADLE_LOCK_CONTENT, Ecosystem.GRADLE)

        assert descriptor.format == LockfileFormat.GRADLE_LOCKFILE

    def test_ecosystem_hint_rejects_other_ecosystems(self):
        assert detect_format("requirements.txt", "flask==3.0.0\n", Ecosystem.NPM) is None
