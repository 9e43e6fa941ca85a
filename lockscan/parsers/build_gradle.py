"""Parser for Gradle build scripts (build.gradle and build.gradle.kts).

Build scripts are programs, so this parser deliberately recognises only a
narrow set of declaration shapes inside ``dependencies { }`` blocks and
reports everything else instead of trying to evaluate it.
"""

import bisect
import re
from dataclasses import dataclass

from ..models import (
    UNRESOLVED_VERSION,
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)

_DEPENDENCIES_BLOCK = re.compile(r"(?<![\w.$])dependencies\s*\{")
_LOCKING = re.compile(r"(?<![\w.$])dependencyLocking\s*\{|\bactivateDependencyLocking\s*\(")
_DECLARATION = re.compile(r"([A-Za-z_]\w*|([\"'])[^\"'\n]*\2)(.*)", re.DOTALL)
_CALL = re.compile(r"([A-Za-z_][\w.]*)\s*\(", re.DOTALL)
_STRING = re.compile(r"([\"'])[^\"'\n]*\1")
_MAP_ENTRY = re.compile(r"([A-Za-z_]\w*)\s*(?::|=(?!=))\s*(.+)", re.DOTALL)
_CHAINED_CALL = re.compile(r"\s*\.(?!\.)")
_ACCESSOR = re.compile(r"[A-Za-z_]\w*(?:\.[A-Za-z_]\w*)*(?:\.get\(\s*\))?")

# Wrappers whose single argument is itself a dependency notation
_WRAPPERS = frozenset({"platform", "enforcedPlatform", "testFixtures"})
# Notations that point at local files or Gradle itself, never at a module
_LOCAL_NOTATIONS = frozenset({"project", "files", "fileTree", "gradleApi", "localGroovy", "gradleTestKit"})
_CONTROL_KEYWORDS = frozenset({"if", "else", "for", "while", "when", "try", "catch", "finally"})
_LOCAL_VARIABLES = frozenset({"val", "var", "def"})


@dataclass(frozen=True)
class _Segment:
    """A slice of the script seen two ways at once.

    ``code`` has comments and string contents blanked so structure can be
    scanned safely; ``text`` has only comments blanked so literals can be
    read back. Both always have the same length.
    """

    code: str
    text: str

    def strip(self) -> "_Segment":
        lead = len(self.code) - len(self.code.lstrip())
        end = len(self.code.rstrip())
        return _Segment(self.code[lead:end], self.text[lead:end])

    def split_args(self) -> list["_Segment"]:
        """Split on top-level commas."""
        parts: list[_Segment] = []
        depth = 0
        last = 0
        for i, ch in enumerate(self.code):
            if ch in "([{":
                depth += 1
            elif ch in ")]}":
                depth -= 1
            elif ch == "," and depth == 0:
                parts.append(_Segment(self.code[last:i], self.text[last:i]).strip())
                last = i + 1
        parts.append(_Segment(self.code[last:], self.text[last:]).strip())
        return [p for p in parts if p.code]

    def as_call(self) -> tuple[str, "_Segment"] | None:
        """Return (callee, arguments) if the whole segment is one call."""
        match = _CALL.match(self.code)
        if match is None:
            return None
        open_index = match.end() - 1
        if _matching_close(self.code, open_index) != len(self.code) - 1:
            return None
        inner = slice(open_index + 1, len(self.code) - 1)
        return match.group(1), _Segment(self.code[inner], self.text[inner])

    def as_string(self) -> str | None:
        """Return the literal value if the segment is a plain string literal."""
        if _STRING.fullmatch(self.code):
            return self.text[1:-1]
        return None


def _mask_source(content: str) -> tuple[str, str]:
    """Blank comments, and additionally string contents for the code view.

    Newlines are always preserved so offsets map to the same lines.
    """
    text = list(content)
    code = list(content)
    n = len(content)
    i = 0

    while i < n:
        ch = content[i]
        if content.startswith("//", i):
            end = content.find("\n", i)
            end = n if end == -1 else end
            for k in range(i, end):
                text[k] = code[k] = " "
            i = end
        elif content.startswith("/*", i):
            end = content.find("*/", i + 2)
            end = n if end == -1 else end + 2
            for k in range(i, end):
                if content[k] != "\n":
                    text[k] = code[k] = " "
            i = end
        elif ch in "\"'":
            quote = ch * 3 if content.startswith(ch * 3, i) else ch
            j = i + len(quote)
            while j < n:
                if content[j] == "\\":
                    j += 2
                    continue
                if content.startswith(quote, j):
                    break
                if len(quote) == 1 and content[j] == "\n":
                    # Unterminated literal, stop at end of line
                    break
                j += 1
            j = min(j, n)
            for k in range(i + len(quote), j):
                if content[k] != "\n":
                    code[k] = " "
            i = j + len(quote) if content.startswith(quote, j) else j
        else:
            i += 1

    return "".join(text), "".join(code)


def _matching_close(code: str, open_index: int) -> int:
    """Return the index of the bracket closing the one at open_index, or -1."""
    pairs = {"(": ")", "[": "]", "{": "}"}
    stack = [pairs[code[open_index]]]
    for i in range(open_index + 1, len(code)):
        ch = code[i]
        if ch in pairs:
            stack.append(pairs[ch])
        elif ch in ")]}":
            if ch != stack[-1]:
                return -1
            stack.pop()
            if not stack:
                return i
    return -1


def _split_statements(code: str, start: int, end: int) -> list[tuple[int, int]]:
    """Split a block body into top-level statements.

    A newline ends a statement unless brackets are open, the line ends with
    a comma or operator, or the next line continues a method chain.
    """
    statements: list[tuple[int, int]] = []
    depth = 0
    stmt_start = start

    for i in range(start, end):
        ch = code[i]
        if ch in "([{":
            depth += 1
        elif ch in ")]}":
            depth = max(depth - 1, 0)
        elif depth == 0 and ch in "\n;":
            segment = code[stmt_start:i]
            if ch == "\n" and segment.strip() and _continues(segment, code, i + 1, end):
                continue
            if segment.strip():
                statements.append((stmt_start, i))
            stmt_start = i + 1

    if code[stmt_start:end].strip():
        statements.append((stmt_start, end))

    return statements


def _continues(segment: str, code: str, pos: int, end: int) -> bool:
    if segment.rstrip().endswith((",", "+", "=", ".", ":")):
        return True
    return _CHAINED_CALL.match(code, pos, end) is not None


def _head_end(code: str, start: int, end: int) -> int:
    """Return where the trailing configuration closure of a statement starts."""
    depth = 0
    for i in range(start, end):
        ch = code[i]
        if ch in "([":
            depth += 1
        elif ch in ")]":
            depth -= 1
        elif ch == "{" and depth == 0:
            return i
    return end


class BuildGradleParser:
    """Parser for Gradle build scripts in Groovy or Kotlin DSL.

    Only `dependencies { }` blocks are read. Supported declarations:

    implementation("org.springframework.security:spring-security-crypto:5.7.3")
    testImplementation 'junit:junit:4.13.2'
    implementation group: 'com.google.guava', name: 'guava', version: '31.1-jre'
    implementation(platform("org.springframework.boot:spring-boot-dependencies:3.1.0"))
    add("implementation", "com.foo:bar:1.0")
    implementation(kotlin("stdlib"))
    implementation("com.google.guava", "guava", "31.1-jre")
    "kapt"("com.google.dagger:dagger-compiler:2.48")
    implementation 'com.foo:one:1.0', 'com.foo:two:2.0'

    Version catalogs (libs.foo.bar) and interpolated coordinates are emitted
    with an unresolved version so they are never dropped.
    """

    name = "build-gradle"
    formats = (LockfileFormat.GRADLE_GROOVY_DSL, LockfileFormat.GRADLE_KOTLIN_DSL)
    ecosystem = Ecosystem.GRADLE

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Scan build script content for dependency declarations.

        Args:
            content: Decoded build script
            path: Path of the build script

        Returns:
            ParseResult with one entry per recognised declaration. All
            configurations are reported; the configuration name is kept in
            the entry groups.
        """
        text, code = _mask_source(content)
        line_starts = [0] + [m.end() for m in re.finditer("\n", content)]

        def line_of(offset: int) -> int:
            return bisect.bisect_right(line_starts, offset)

        result = ParseResult(locking_enabled=_LOCKING.search(code) is not None)
        scanned_until = 0

        for block in _DEPENDENCIES_BLOCK.finditer(code):
            if block.start() < scanned_until:
                # Nested dependencies block, already covered by its parent
                continue

            open_index = block.end() - 1
            close_index = _matching_close(code, open_index)
            if close_index == -1:
                result.diagnostics.append(
                    Diagnostic.warning(
                        DiagnosticKind.MALFORMED_RECORD,
                        "Unterminated dependencies block",
                        path,
                        line_of(block.start()),
                    )
                )
                close_index = len(code)
            scanned_until = close_index

            for start, end in _split_statements(code, open_index + 1, close_index):
                head_end = _head_end(code, start, end)
                statement = _Segment(code[start:head_end], text[start:head_end])
                lead = len(statement.code) - len(statement.code.lstrip())
                first_line = line_of(start + lead)
                last_line = line_of(start + len(statement.code.rstrip()) - 1)
                self._parse_statement(statement.strip(), path, first_line, last_line, result)

        return result

    def _parse_statement(
        self, statement: _Segment, path: str, line: int, end_line: int, result: ParseResult
    ) -> None:
        match = _DECLARATION.match(statement.code)
        if match is None:
            result.diagnostics.append(self._unsupported(statement.text, path, line))
            return

        quoted = match.group(2) is not None
        if quoted:
            # Kotlin DSL string invocation, e.g. "kapt"("group:name:1.0")
            configuration = statement.text[match.start(1) + 1 : match.end(1) - 1].strip()
        else:
            configuration = match.group(1)
        rest = _Segment(statement.code[match.start(3) :], statement.text[match.start(3) :]).strip()

        if quoted and (not configuration or not rest.code.startswith("(")):
            result.diagnostics.append(self._unsupported(statement.text, path, line))
            return
        if configuration in _LOCAL_VARIABLES:
            return
        if configuration in _CONTROL_KEYWORDS:
            result.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.UNSUPPORTED_NOTATION,
                    f"Conditional declarations are not evaluated: {statement.text.splitlines()[0].strip()!r}",
                    path,
                    line,
                )
            )
            return
        if not rest.code:
            # Nested block such as constraints { } or a bare identifier
            return
        if rest.code.startswith("=") and not rest.code.startswith("=="):
            return

        if rest.code.startswith("("):
            close_index = _matching_close(rest.code, 0)
            if close_index == -1:
                result.diagnostics.append(self._unsupported(statement.text, path, line))
                return
            args = _Segment(rest.code[1:close_index], rest.text[1:close_index]).split_args()
        elif rest.code.startswith((".", "[")):
            result.diagnostics.append(self._unsupported(statement.text, path, line))
            return
        else:
            args = rest.split_args()

        self._interpret(configuration, args, path, line, end_line, result)

    def _interpret(
        self, configuration: str, args: list[_Segment], path: str, line: int, end_line: int, result: ParseResult
    ) -> None:
        """Turn the arguments of one declaration into entries.

        Map and positional notations describe a single module across all
        arguments. Otherwise every argument is a notation of its own, as in
        ``implementation 'a:b:1.0', 'c:d:2.0'``.
        """
        if not args:
            result.diagnostics.append(self._unsupported(f"{configuration}()", path, line))
            return

        if configuration == "add" and len(args) >= 2 and args[0].as_string():
            self._interpret(args[0].as_string() or "", args[1:], path, line, end_line, result)
            return

        notation = self._map_notation(args)
        if notation is not None:
            self._collect(result, self._from_map(configuration, notation, path, line, end_line))
            return

        positional = self._positional_notation(args)
        if positional is not None:
            group, artifact, version = positional
            name = f"{group}:{artifact}"
            self._collect(result, self._resolve(configuration, name, version, name, path, line, end_line))
            return

        for arg in args:
            self._interpret_argument(configuration, arg, path, line, end_line, result)

    def _interpret_argument(
        self, configuration: str, arg: _Segment, path: str, line: int, end_line: int, result: ParseResult
    ) -> None:
        call = arg.as_call()
        if call is not None:
            callee, inner = call
            if callee in _WRAPPERS:
                self._interpret(configuration, inner.split_args(), path, line, end_line, result)
                return
            if callee in _LOCAL_NOTATIONS:
                return
            if callee == "kotlin":
                self._collect(result, self._kotlin_module(configuration, inner.split_args(), path, line, end_line))
                return

        literal = arg.as_string()
        if literal is not None:
            self._collect(result, self._from_coordinate(configuration, literal, path, line, end_line))
            return

        if _ACCESSOR.fullmatch(arg.code):
            accessor = re.sub(r"\.get\(\s*\)$", "", arg.code)
            result.entries.append(self._entry(configuration, accessor, UNRESOLVED_VERSION, line, end_line))
            result.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.UNRESOLVED_COORDINATE,
                    f"Dependency {accessor!r} comes from a version catalog or variable"
                    " and cannot be resolved statically",
                    path,
                    line,
                )
            )
            return

        result.diagnostics.append(self._unsupported(f"{configuration} {arg.text}", path, line))

    def _from_coordinate(
        self, configuration: str, coordinate: str, path: str, line: int, end_line: int
    ) -> tuple[RawDependencyEntry | None, Diagnostic | None]:
        # Artifact-only notation, e.g. "group:name:1.0@zip"
        module = coordinate.strip().split("@", 1)[0]
        parts = module.split(":")
        if len(parts) < 2 or not parts[0] or not parts[1]:
            return None, Diagnostic.warning(
                DiagnosticKind.UNSUPPORTED_NOTATION,
                f"Not a module coordinate: {coordinate!r}",
                path,
                line,
            )

        name = f"{parts[0]}:{parts[1]}"
        version = parts[2] if len(parts) > 2 else ""
        return self._resolve(configuration, name, version, coordinate, path, line, end_line)

    def _from_map(
        self, configuration: str, notation: dict[str, _Segment], path: str, line: int, end_line: int
    ) -> tuple[RawDependencyEntry | None, Diagnostic | None]:
        group = notation["group"].as_string() if "group" in notation else None
        artifact = notation["name"].as_string() if "name" in notation else None
        if not group or not artifact:
            return None, Diagnostic.warning(
                DiagnosticKind.UNSUPPORTED_NOTATION,
                "Map notation without literal group and name cannot be resolved",
                path,
                line,
            )

        name = f"{group}:{artifact}"
        version_segment = notation.get("version")
        if version_segment is None:
            version = ""
        else:
            literal = version_segment.as_string()
            # A variable reference is reported like string interpolation
            version = literal if literal is not None else f"${version_segment.text}"
        return self._resolve(configuration, name, version, name, path, line, end_line)

    def _kotlin_module(
        self, configuration: str, args: list[_Segment], path: str, line: int, end_line: int
    ) -> tuple[RawDependencyEntry | None, Diagnostic | None]:
        module = args[0].as_string() if args else None
        if not module:
            return None, self._unsupported(f"{configuration}(kotlin(...))", path, line)
        name = f"org.jetbrains.kotlin:kotlin-{module}"
        version = (args[1].as_string() or "") if len(args) > 1 else ""
        if not version:
            return self._entry(configuration, name, UNRESOLVED_VERSION, line, end_line), Diagnostic.warning(
                DiagnosticKind.UNRESOLVED_COORDINATE,
                f"Version of {name} is supplied by the Kotlin plugin and cannot be resolved statically",
                path,
                line,
            )
        return self._resolve(configuration, name, version, name, path, line, end_line)

    def _resolve(
        self,
        configuration: str,
        name: str,
        version: str,
        written: str,
        path: str,
        line: int,
        end_line: int,
    ) -> tuple[RawDependencyEntry | None, Diagnostic | None]:
        if "$" in name:
            message = f"Coordinate {written!r} is interpolated and cannot be resolved statically"
        elif not version:
            message = f"No version declared for {name}; it is expected from a platform, BOM or plugin"
        elif "$" in version:
            message = f"Version of {name} is interpolated from {version!r} and cannot be resolved statically"
        else:
            return self._entry(configuration, name, version, line, end_line), None

        entry = self._entry(configuration, name, UNRESOLVED_VERSION, line, end_line)
        return entry, Diagnostic.warning(DiagnosticKind.UNRESOLVED_COORDINATE, message, path, line)

    @staticmethod
    def _entry(configuration: str, name: str, version: str, line: int, end_line: int) -> RawDependencyEntry:
        return RawDependencyEntry(
            name=name,
            version=version,
            groups=(configuration,),
            locked=False,
            line=line,
            end_line=end_line,
        )

    @staticmethod
    def _map_notation(args: list[_Segment]) -> dict[str, _Segment] | None:
        notation: dict[str, _Segment] = {}
        for arg in args:
            match = _MAP_ENTRY.fullmatch(arg.code)
            if match is None:
                return None
            value_start = match.start(2)
            notation[match.group(1)] = _Segment(arg.code[value_start:], arg.text[value_start:]).strip()
        return notation if "name" in notation else None

    @staticmethod
    def _positional_notation(args: list[_Segment]) -> tuple[str, str, str] | None:
        """Recognise Kotlin's implementation("group", "name", "version") form."""
        if len(args) not in (2, 3):
            return None
        values = [arg.as_string() for arg in args]
        if any(value is None or ":" in value for value in values):
            return None
        group, artifact = values[0] or "", values[1] or ""
        if not group or not artifact:
            return None
        return group, artifact, (values[2] or "") if len(values) == 3 else ""

    @staticmethod
    def _collect(result: ParseResult, outcome: tuple[RawDependencyEntry | None, Diagnostic | None]) -> None:
        entry, diagnostic = outcome
        if entry is not None:
            result.entries.append(entry)
        if diagnostic is not None:
            result.diagnostics.append(diagnostic)

    @staticmethod
    def _unsupported(text: str, path: str, line: int) -> Diagnostic:
        snippet = text.strip().splitlines()[0] if text.strip() else text
        return Diagnostic.warning(
            DiagnosticKind.UNSUPPORTED_NOTATION,
            f"Unrecognised dependency declaration: {snippet!r}",
            path,
            line,
        )
