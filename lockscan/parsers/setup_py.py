"""Parser for setup.py files (Python setuptools scripts)."""

import ast
from pathlib import PurePath

from ..exceptions import ParseError
from ..models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
)
from .requirements_txt import parse_requirement

_REQUIRES_KEYWORD = "install_requires"


class SetupPyParser:
    """Parser for the ``install_requires`` argument of setup() calls.

    The script is parsed, never executed. Supported values are a literal
    list or tuple of strings, or a module-level name bound once to one:

    REQUIREMENTS = ["requests>=2.31"]
    setup(name="app", install_requires=REQUIREMENTS + ["click==8.1.7"])

    Anything computed at run time is reported as unsupported notation.
    """

    name = "setup-py"
    formats = (LockfileFormat.SETUP_PY,)
    ecosystem = Ecosystem.PYPI

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse setup.py content.

        Args:
            content: Decoded script
            path: Path of the script; its stem becomes the entries' group

        Returns:
            ParseResult with one entry per distinct requirement.

        Raises:
            ParseError: If the script is not valid Python.
        """
        try:
            tree = ast.parse(content, filename=path)
        except SyntaxError as e:
            raise ParseError(f"Could not parse {path} as Python: {e}") from e

        result = ParseResult()
        group = PurePath(path).stem
        constants = self._module_constants(tree)
        seen: set[tuple[str, str]] = set()

        for node in ast.walk(tree):
            if not isinstance(node, ast.Call):
                continue
            for keyword in node.keywords:
                if keyword.arg != _REQUIRES_KEYWORD:
                    continue
                for item in self._requirement_nodes(keyword.value, constants, path, result):
                    requirement = item.value.strip()
                    entry, diagnostics = parse_requirement(requirement, path, group, item.lineno, item.end_lineno)
                    result.diagnostics.extend(diagnostics)
                    if entry is None:
                        continue
                    key = (entry.name.lower(), entry.version)
                    if key in seen:
                        continue
                    seen.add(key)
                    result.entries.append(entry)

        return result

    def _requirement_nodes(
        self,
        value: ast.expr,
        constants: dict[str, ast.expr],
        path: str,
        result: ParseResult,
        resolving: frozenset[str] = frozenset(),
    ) -> list[ast.Constant]:
        """Flatten a requirements expression into its string literals."""
        if isinstance(value, ast.Name) and value.id in constants and value.id not in resolving:
            return self._requirement_nodes(constants[value.id], constants, path, result, resolving | {value.id})
        if isinstance(value, ast.BinOp) and isinstance(value.op, ast.Add):
            left = self._requirement_nodes(value.left, constants, path, result, resolving)
            return left + self._requirement_nodes(value.right, constants, path, result, resolving)
        if not isinstance(value, (ast.List, ast.Tuple)):
            result.diagnostics.append(self._unsupported(value, path))
            return []

        nodes = []
        for element in value.elts:
            if isinstance(element, ast.Constant) and isinstance(element.value, str):
                nodes.append(element)
            else:
                result.diagnostics.append(self._unsupported(element, path))
        return nodes

    @staticmethod
    def _module_constants(tree: ast.Module) -> dict[str, ast.expr]:
        """Map module-level names assigned exactly once to their value."""
        constants: dict[str, ast.expr] = {}
        assigned: set[str] = set()
        for statement in tree.body:
            if not isinstance(statement, ast.Assign):
                continue
            for target in statement.targets:
                if not isinstance(target, ast.Name):
                    continue
                if target.id in assigned:
                    constants.pop(target.id, None)
                else:
                    constants[target.id] = statement.value
                assigned.add(target.id)
        return constants

    @staticmethod
    def _unsupported(node: ast.expr, path: str) -> Diagnostic:
        return Diagnostic.warning(
            DiagnosticKind.UNSUPPORTED_NOTATION,
            f"{_REQUIRES_KEYWORD} value {ast.unparse(node)!r} cannot be resolved without running setup.py",
            path,
            node.lineno,
        )
