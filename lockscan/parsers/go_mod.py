"""Parser for go.mod files (Go modules)."""

from dataclasses import dataclass

from ..models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)

# Name under which the toolchain version from the "go" directive is reported
STDLIB_NAME = "stdlib"


@dataclass
class _Directive:
    verb: str
    args: list[str]
    line: int
    comment: str


class GoModParser:
    """Parser for go.mod files.

    go.mod lists the minimum version of each required module; Go's minimal
    version selection builds exactly those versions, so they are reported
    as pinned:

    module example.com/app

    go 1.21

    require (
        github.com/pkg/errors v0.9.1
        golang.org/x/text v0.14.0 // indirect
    )

    replace github.com/pkg/errors => github.com/fork/errors v0.9.2
    """

    name = "go-mod"
    formats = (LockfileFormat.GO_MOD,)
    ecosystem = Ecosystem.GO

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse go.mod content.

        Replace directives are applied after all requirements are read:
        - without a version on the left, every required version is replaced
        - with a version, only that exact requirement is replaced
        - a replacement without a version is a local directory and drops
          the module

        Args:
            content: Decoded go.mod content
            path: Path of the file

        Returns:
            ParseResult with one entry per required module, plus stdlib.
        """
        result = ParseResult()
        required: dict[tuple[str, str], RawDependencyEntry] = {}
        replaces: list[_Directive] = []
        go_directive: _Directive | None = None

        for directive in self._directives(content):
            if directive.verb == "require":
                entry = self._require(directive, path, result)
                if entry is not None:
                    required.setdefault((entry.name, entry.version), entry)
            elif directive.verb == "replace":
                replaces.append(directive)
            elif directive.verb == "go" and directive.args:
                go_directive = directive

        for directive in replaces:
            self._apply_replace(directive, required, path, result)

        result.entries.extend(required.values())

        if go_directive is not None:
            result.entries.append(
                RawDependencyEntry(
                    name=STDLIB_NAME,
                    version=self._go_version(go_directive.args[0]),
                    line=go_directive.line,
                    end_line=go_directive.line,
                )
            )

        return result

    @staticmethod
    def _directives(content: str) -> list[_Directive]:
        """Split go.mod into directives, expanding "verb ( ... )" blocks."""
        directives: list[_Directive] = []
        block_verb: str | None = None

        for line_number, raw_line in enumerate(content.splitlines(), start=1):
            code, _, comment = raw_line.partition("//")
            tokens = [token.strip('"`') for token in code.split()]
            if not tokens:
                continue

            if block_verb is not None:
                if tokens == [")"]:
                    block_verb = None
                    continue
                directives.append(_Directive(block_verb, tokens, line_number, comment.strip()))
                continue

            if tokens[1:] == ["("]:
                block_verb = tokens[0]
                continue

            directives.append(_Directive(tokens[0], tokens[1:], line_number, comment.strip()))

        return directives

    @staticmethod
    def _require(directive: _Directive, path: str, result: ParseResult) -> RawDependencyEntry | None:
        if len(directive.args) < 2:
            result.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"require directive without module version: {' '.join(directive.args)!r}",
                    path,
                    directive.line,
                )
            )
            return None

        module, version = directive.args[0], directive.args[1]
        return RawDependencyEntry(
            name=module,
            version=version.removeprefix("v"),
            groups=("indirect",) if directive.comment == "indirect" else (),
            line=directive.line,
            end_line=directive.line,
        )

    @staticmethod
    def _apply_replace(
        directive: _Directive,
        required: dict[tuple[str, str], RawDependencyEntry],
        path: str,
        result: ParseResult,
    ) -> None:
        if "=>" not in directive.args:
            result.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"replace directive without '=>': {' '.join(directive.args)!r}",
                    path,
                    directive.line,
                )
            )
            return

        arrow = directive.args.index("=>")
        old, new = directive.args[:arrow], directive.args[arrow + 1 :]
        if not old or not new:
            result.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"Incomplete replace directive: {' '.join(directive.args)!r}",
                    path,
                    directive.line,
                )
            )
            return

        old_path = old[0]
        if len(old) > 1:
            # A replace has no effect if that module version is not required
            targets = [key for key in required if key == (old_path, old[1].removeprefix("v"))]
        else:
            targets = [key for key in required if key[0] == old_path]

        for key in targets:
            if len(new) < 2:
                # Local directory replacement, the code lives in this checkout
                del required[key]
                continue
            required[key] = RawDependencyEntry(
                name=new[0],
                version=new[1].removeprefix("v"),
                groups=required[key].groups,
                line=directive.line,
                end_line=directive.line,
            )

    @staticmethod
    def _go_version(version: str) -> str:
        """Expand a go directive version such as "1.21" to "1.21.0"."""
        components = version.removeprefix("go").split(".")
        while len(components) < 3:
            components.append("0")
        return ".".join(components)
