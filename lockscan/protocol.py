"""Protocol definition for lockfile parsers."""

from typing import Protocol

from .models import Ecosystem, LockfileFormat, ParseResult


class LockfileParser(Protocol):
    """Protocol for lockfile and manifest parsers.

    Each parser handles one or more members of the closed LockfileFormat
    enum. The registry picks the parser from the format the detector chose,
    never from runtime registration.

    Example:
        class CargoLockParser:
            name = "cargo-lock"
            formats = (LockfileFormat.CARGO_LOCK,)
            ecosystem = Ecosystem.CARGO

            def supports(self, fmt: LockfileFormat) -> bool:
                return fmt in self.formats

            def parse(self, content: str, path: str) -> ParseResult:
                ...
    """

    @property
    def name(self) -> str:
        """Human-readable name of this parser.

        Used for logging and diagnostics.
        Examples: "gradle-lockfile", "cargo-lock", "npm-package-lock"
        """
        ...

    @property
    def formats(self) -> tuple[LockfileFormat, ...]:
        """Formats this parser handles."""
        ...

    @property
    def ecosystem(self) -> Ecosystem:
        """Ecosystem the parsed packages belong to."""
        ...

    def supports(self, fmt: LockfileFormat) -> bool:
        """Check if this parser can handle the given format.

        Args:
            fmt: Format chosen by the detector

        Returns:
            True if this parser can parse the file.
        """
        ...

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse decoded file content into raw dependency entries.

        Implementations should:
        1. Read only the declared coordinates, never evaluate code
        2. Emit one RawDependencyEntry per dependency, in file order
        3. Report per-record problems as diagnostics and keep going

        Args:
            content: Decoded file content
            path: Path of the file, used for diagnostics

        Returns:
            ParseResult with entries and diagnostics.

        Raises:
            ParseError: If the document as a whole cannot be parsed.
        """
        ...
