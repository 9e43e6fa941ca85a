"""Parser for setup.cfg files (Python setuptools declarative config)."""

import configparser

from ..exceptions import ParseError
from ..models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
)
from .requirements_txt import parse_requirement

_OPTIONS = "options"
_EXTRAS = "options.extras_require"


class SetupCfgParser:
    """Parser for setup.cfg requirement lists.

    Reads ``install_requires`` from the [options] section and every list in
    [options.extras_require]:

    [options]
    install_requires =
        requests>=2.31
        click==8.1.7

    [options.extras_require]
    test = pytest>=8.0

    A single-line value is a semicolon separated list. ``file:`` directives
    are reported but not followed.
    """

    name = "setup-cfg"
    formats = (LockfileFormat.SETUP_CFG,)
    ecosystem = Ecosystem.PYPI

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse setup.cfg content.

        Args:
            content: Decoded file content
            path: Path of the file

        Returns:
            ParseResult with one entry per distinct requirement. Runtime
            requirements are in the "setup" group, extras in a group named
            after the extra.

        Raises:
            ParseError: If the file is not valid INI syntax.
        """
        config = configparser.ConfigParser(interpolation=None, strict=False, inline_comment_prefixes=("#",))
        try:
            config.read_string(content, source=path)
        except configparser.Error as e:
            raise ParseError(f"Could not parse {path}: {e}") from e

        result = ParseResult()
        locator = _LineLocator(content)
        seen: set[tuple[str, str, str]] = set()

        lists: list[tuple[str, str, str, str]] = []
        if config.has_option(_OPTIONS, "install_requires"):
            lists.append(("setup", _OPTIONS, "install_requires", config.get(_OPTIONS, "install_requires")))
        if config.has_section(_EXTRAS):
            lists.extend((extra, _EXTRAS, extra, value) for extra, value in config.items(_EXTRAS))

        for group, section, key, value in lists:
            line = locator.find_key(section, key)
            if value.strip().startswith("file:"):
                result.diagnostics.append(
                    Diagnostic.info(
                        DiagnosticKind.SKIPPED_REFERENCE,
                        f"{key} is read from {value.strip()[len('file:') :].strip()!r}, which is not followed",
                        path,
                        line,
                    )
                )
                continue

            cursor = line
            for requirement in _split_list(value):
                cursor = locator.find_value(requirement, cursor)
                entry, diagnostics = parse_requirement(requirement, path, group, cursor)
                result.diagnostics.extend(diagnostics)
                if entry is None:
                    continue
                seen_key = (group, entry.name.lower(), entry.version)
                if seen_key in seen:
                    continue
                seen.add(seen_key)
                result.entries.append(entry)

        return result


def _split_list(value: str) -> list[str]:
    lines = [line.strip() for line in value.splitlines() if line.strip()]
    if len(lines) == 1:
        return [part.strip() for part in lines[0].split(";") if part.strip()]
    return lines


class _LineLocator:
    """Find the lines configparser read a value from."""

    def __init__(self, content: str) -> None:
        self.lines = [line.split(" #", 1)[0].strip() for line in content.splitlines()]

    def find_key(self, section: str, key: str) -> int | None:
        in_section = False
        for number, line in enumerate(self.lines, start=1):
            if line.startswith("["):
                in_section = line.strip("[]").strip() == section
                continue
            name = line.split("=", 1)[0].split(":", 1)[0].strip().lower()
            if in_section and name == key:
                return number
        return None

    def find_value(self, requirement: str, after: int | None) -> int | None:
        start = after or 1
        for number in range(start, len(self.lines) + 1):
            if requirement in self.lines[number - 1]:
                return number
        return after
