"""Tests for locating records in JSON and TOML lockfiles."""

from lockscan.parsers.positions import json_member_spans, toml_table_spans


class TestTomlTableSpans:
    def test_sub_tables_belong_to_their_package(self):
        content = '[[package]]\nname = "a"\n\n[package.dependencies]\nb = "*"\n\n[[package]]\nname = "b"\n'

        assert toml_table_spans(content, "package") == [(1, 5), (7, 8)]

    def test_other_tables_end_the_package(self):
        content = 'version = 1\n[[package]]\nname = "a"\n[metadata]\nhash = "x"\n'

        assert toml_table_spans(content, "package") == [(2, 3)]

    def test_no_tables(self):
        assert toml_table_spans('package = [{ name = "a" }]\n', "package") == []


class TestJsonMemberSpans:
    def test_object_group(self):
        content = (
            '{\n  "default": {\n    "a": {"version": "==1.0"},\n'
            '    "b": {\n      "version": "==2.0"\n    }\n  }\n}\n'
        )

        assert json_member_spans(content, "default") == [("a", 3, 3), ("b", 4, 6)]

    def test_braces_and_quotes_inside_strings(self):
        content = '{"default": {\n"a": {"markers": "x == \\"{\\""},\n"b": {}\n}}'

        assert json_member_spans(content, "default") == [("a", 2, 2), ("b", 3, 3)]

    def test_nested_key_with_same_name_is_ignored(self):
        content = '{"meta": {"default": {"x": {}}},\n"default": {\n"y": {}\n}}'

        assert json_member_spans(content, "default") == [("y", 3, 3)]

    def test_missing_group(self):
        assert json_member_spans('{"other": {"a": {}}}', "default") == []
