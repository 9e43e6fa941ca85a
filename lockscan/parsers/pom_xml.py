"""Parser for pom.xml files (Maven)."""

import re
import xml.etree.ElementTree as ET

from ..exceptions import ParseError
from ..models import (
    UNRESOLVED_VERSION,
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileFormat,
    ParseResult,
    RawDependencyEntry,
)

_PROPERTY_REFERENCE = re.compile(r"\$\{([^}]+)\}")


def _local_name(tag: str) -> str:
    """Strip the XML namespace from a tag."""
    return tag.rsplit("}", 1)[-1]


def _child(element: ET.Element, name: str) -> ET.Element | None:
    for child in element:
        if _local_name(child.tag) == name:
            return child
    return None


def _child_text(element: ET.Element, name: str) -> str:
    child = _child(element, name)
    if child is None or child.text is None:
        return ""
    return child.text.strip()


class MavenPomParser:
    """Parser for pom.xml files.

    Reads <dependencies> and <dependencyManagement><dependencies>:
    <project>
      <properties><spring.version>5.3.20</spring.version></properties>
      <dependencies>
        <dependency>
          <groupId>org.springframework</groupId>
          <artifactId>spring-core</artifactId>
          <version>${spring.version}</version>
        </dependency>
      </dependencies>
    </project>

    Properties are interpolated from the same file only; parents and imported
    BOMs are not fetched, so their versions come out unresolved.
    """

    name = "maven-pom"
    formats = (LockfileFormat.MAVEN_POM,)
    ecosystem = Ecosystem.MAVEN

    def supports(self, fmt: LockfileFormat) -> bool:
        return fmt in self.formats

    def parse(self, content: str, path: str) -> ParseResult:
        """Parse pom.xml content.

        Args:
            content: Decoded pom.xml
            path: Path of the file

        Returns:
            ParseResult with one entry per declared dependency.

        Raises:
            ParseError: If the document is not well-formed XML.
        """
        try:
            root = ET.fromstring(content)
        except ET.ParseError as e:
            raise ParseError(f"Could not parse {path} as XML: {e}") from e

        if _local_name(root.tag) != "project":
            raise ParseError(f"{path} is not a Maven project file (root element <{_local_name(root.tag)}>)")

        properties = self._collect_properties(root)
        result = ParseResult()

        holders: list[tuple[ET.Element, str]] = []
        dependencies = _child(root, "dependencies")
        if dependencies is not None:
            holders.append((dependencies, "dependencies"))
        management = _child(root, "dependencyManagement")
        if management is not None:
            managed = _child(management, "dependencies")
            if managed is not None:
                holders.append((managed, "dependencyManagement"))

        for holder, section in holders:
            for dependency in holder:
                if _local_name(dependency.tag) != "dependency":
                    continue
                self._parse_dependency(dependency, section, properties, path, result)

        return result

    def _parse_dependency(
        self,
        dependency: ET.Element,
        section: str,
        properties: dict[str, str],
        path: str,
        result: ParseResult,
    ) -> None:
        group_id = self._interpolate(_child_text(dependency, "groupId"), properties)
        artifact_id = self._interpolate(_child_text(dependency, "artifactId"), properties)
        if not group_id or not artifact_id or "${" in group_id or "${" in artifact_id:
            result.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.MALFORMED_RECORD,
                    f"Dependency without a resolvable groupId/artifactId in {section}",
                    path,
                )
            )
            return

        name = f"{group_id}:{artifact_id}"
        declared = _child_text(dependency, "version")
        version = self._interpolate(declared, properties)
        scope = _child_text(dependency, "scope") or "compile"

        if not declared:
            version = UNRESOLVED_VERSION
            result.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.UNRESOLVED_COORDINATE,
                    f"No version declared for {name}; it is expected from a parent or imported BOM",
                    path,
                )
            )
        elif "${" in version:
            result.diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.UNRESOLVED_COORDINATE,
                    f"Version of {name} references an undefined property: {declared!r}",
                    path,
                )
            )
            version = UNRESOLVED_VERSION

        result.entries.append(RawDependencyEntry(name=name, version=version, groups=(scope,)))

    @staticmethod
    def _collect_properties(root: ET.Element) -> dict[str, str]:
        properties: dict[str, str] = {}

        for key in ("groupId", "artifactId", "version"):
            value = _child_text(root, key)
            if value:
                properties[f"project.{key}"] = value

        # Children inherit the parent's coordinates when they omit their own
        parent = _child(root, "parent")
        if parent is not None:
            for key in ("groupId", "version"):
                value = _child_text(parent, key)
                if value:
                    properties[f"project.parent.{key}"] = value
                    properties.setdefault(f"project.{key}", value)

        section = _child(root, "properties")
        if section is not None:
            for prop in section:
                properties[_local_name(prop.tag)] = (prop.text or "").strip()

        return properties

    @staticmethod
    def _interpolate(value: str, properties: dict[str, str], depth: int = 0) -> str:
        """Replace ${name} references; unknown references are left in place."""
        if "${" not in value or depth > 10:
            return value

        replaced = _PROPERTY_REFERENCE.sub(lambda m: properties.get(m.group(1), m.group(0)), value)
        if replaced == value:
            return value
        return MavenPomParser._interpolate(replaced, properties, depth + 1)
