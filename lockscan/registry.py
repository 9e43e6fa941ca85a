"""Registry for lockfile parsers."""

from .exceptions import ParseError, UnsupportedFormatError
from .logging_config import logger
from .models import Diagnostic, DiagnosticKind, LockfileDescriptor, LockfileFormat, ParseResult
from .parsers import (
    BuildGradleParser,
    CargoLockParser,
    ComposerLockParser,
    GemfileLockParser,
    GoModParser,
    GradleLockParser,
    MavenPomParser,
    NuGetLockParser,
    PackageLockParser,
    PipfileLockParser,
    PnpmLockParser,
    PoetryLockParser,
    PubspecLockParser,
    RequirementsTxtParser,
    SetupCfgParser,
    SetupPyParser,
    UvLockParser,
    YarnLockParser,
)
from .protocol import LockfileParser


def default_parsers() -> tuple[LockfileParser, ...]:
    """Create one instance of every built-in parser."""
    return (
        # JVM
        GradleLockParser(),
        BuildGradleParser(),
        MavenPomParser(),
        # JavaScript/Node.js
        PackageLockParser(),
        YarnLockParser(),
        PnpmLockParser(),
        # Python
        RequirementsTxtParser(),
        SetupCfgParser(),
        SetupPyParser(),
        PipfileLockParser(),
        PoetryLockParser(),
        UvLockParser(),
        # Rust
        CargoLockParser(),
        # Go
        GoModParser(),
        # .NET
        NuGetLockParser(),
        # PHP
        ComposerLockParser(),
        # Ruby
        GemfileLockParser(),
        # Dart
        PubspecLockParser(),
    )


class ParserRegistry:
    """Registry for lockfile parsers.

    Dispatches parsing to the parser that handles a descriptor's format.
    The set of parsers is fixed when the registry is built; there is no
    runtime plugin loading.

    Example:
        registry = ParserRegistry()
        result = registry.parse(LockfileDescriptor("gradle.lockfile", LockfileFormat.GRADLE_LOCKFILE), content)
    """

    def __init__(self, parsers: tuple[LockfileParser, ...] | None = None) -> None:
        self._parsers = parsers if parsers is not None else default_parsers()

    def get_parser_for(self, fmt: LockfileFormat) -> LockfileParser:
        """Get the parser that supports this format.

        Args:
            fmt: Format chosen by the detector

        Returns:
            Parser instance handling the format.

        Raises:
            UnsupportedFormatError: If no registered parser handles it.
        """
        for parser in self._parsers:
            if parser.supports(fmt):
                return parser
        raise UnsupportedFormatError(f"No parser registered for {fmt.value}")

    def parse(self, descriptor: LockfileDescriptor, content: str) -> ParseResult:
        """Parse a file using the appropriate parser.

        Failures are turned into an error diagnostic for this file so the
        rest of the scan can continue.

        Args:
            descriptor: Detected file and format
            content: Decoded file content

        Returns:
            ParseResult from the parser, or an empty result carrying a
            parse-failure diagnostic.
        """
        try:
            parser = self.get_parser_for(descriptor.format)
        except UnsupportedFormatError as e:
            logger.warning(str(e), extra={"scan_path": descriptor.path})
            return ParseResult(diagnostics=[Diagnostic.error(DiagnosticKind.PARSE_FAILURE, str(e), descriptor.path)])

        logger.debug(f"Using {parser.name} to parse {descriptor.path}")
        try:
            result = parser.parse(content, descriptor.path)
        except ParseError as e:
            logger.warning(f"Failed to parse {descriptor.path}: {e}", extra={"scan_path": descriptor.path})
            return ParseResult(diagnostics=[Diagnostic.error(DiagnosticKind.PARSE_FAILURE, str(e), descriptor.path)])
        except Exception as e:
            logger.warning(
                f"Unexpected error while parsing {descriptor.path} with {parser.name}: {e}",
                extra={"scan_path": descriptor.path},
            )
            return ParseResult(
                diagnostics=[
                    Diagnostic.error(
                        DiagnosticKind.PARSE_FAILURE,
                        f"{parser.name} failed: {type(e).__name__}: {e}",
                        descriptor.path,
                    )
                ]
            )

        logger.debug(
            f"Extracted {len(result.entries)} entr{'y' if len(result.entries) == 1 else 'ies'} "
            f"and {len(result.diagnostics)} diagnostic(s) from {descriptor.path}"
        )
        return result

    @property
    def registered_parsers(self) -> list[str]:
        """Get names of all registered parsers."""
        return [p.name for p in self._parsers]

    @property
    def supported_formats(self) -> set[LockfileFormat]:
        """Get all formats some registered parser handles."""
        result: set[LockfileFormat] = set()
        for parser in self._parsers:
            result.update(parser.formats)
        return result
