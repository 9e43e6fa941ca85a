"""Deduplication and merging of package records."""

from collections.abc import Iterable
from dataclasses import replace
from pathlib import PurePath

from .config import ModuleScope
from .models import Diagnostic, DiagnosticKind, Ecosystem, PackageRecord, VersionPrecision

MergeKey = tuple[str, Ecosystem, str]


class MergeEngine:
    """Collapses records that describe the same package.

    Records are grouped by (normalized name, ecosystem), plus the directory
    of the declaring file when the scope is ModuleScope.MODULE. Within a
    group only the most precise records survive:

    - lock data beats pinned manifest versions, which beat ranges, which
      beat unresolved coordinates; the losers are dropped silently, but a
      locked winner remembers the first manifest declaration it replaced
      in ``declared_at``
    - winners with the same version collapse into the first one seen
    - several locked versions are all kept, lockfiles may resolve more
      than one version of a package
    - several non-locked versions are all kept and reported as conflicting
    - a surviving range is reported as imprecise

    Example:
        engine = MergeEngine(ModuleScope.MODULE)
        records, diagnostics = engine.merge(normalized_records)
    """

    def __init__(self, scope: ModuleScope = ModuleScope.MODULE) -> None:
        self.scope = scope

    def key_for(self, record: PackageRecord) -> MergeKey:
        """Get the identity key used to group a record."""
        name, ecosystem = record.identity
        module = str(PurePath(record.origin.path).parent) if self.scope is ModuleScope.MODULE else ""
        return name, ecosystem, module

    def merge(self, records: Iterable[PackageRecord]) -> tuple[list[PackageRecord], list[Diagnostic]]:
        """Merge records given in discovery order.

        Args:
            records: Normalized records, ordered by file and then by
                declaration within the file

        Returns:
            Tuple of (surviving records in discovery order, diagnostics).
        """
        groups: dict[MergeKey, list[tuple[int, PackageRecord]]] = {}
        for index, record in enumerate(records):
            groups.setdefault(self.key_for(record), []).append((index, record))

        survivors: list[tuple[int, PackageRecord]] = []
        diagnostics: list[Diagnostic] = []

        for members in groups.values():
            winners = self._winners(members)
            survivors.extend(winners)
            diagnostics.extend(self._diagnose([record for _, record in winners]))

        survivors.sort(key=lambda item: item[0])
        return [record for _, record in survivors], diagnostics

    @staticmethod
    def _winners(members: list[tuple[int, PackageRecord]]) -> list[tuple[int, PackageRecord]]:
        best = max(record.precision for _, record in members)
        declared = None
        if best == VersionPrecision.LOCKED:
            declared = next((record.origin for _, record in members if record.precision != best), None)

        winners: list[tuple[int, PackageRecord]] = []
        seen: set[tuple[str, str | None]] = set()
        for index, record in members:
            if record.precision != best:
                continue
            version_key = (record.version, record.commit)
            if version_key in seen:
                continue
            seen.add(version_key)
            if declared is not None:
                record = replace(record, declared_at=declared)
            winners.append((index, record))

        return winners

    @staticmethod
    def _diagnose(winners: list[PackageRecord]) -> list[Diagnostic]:
        first = winners[0]
        diagnostics: list[Diagnostic] = []

        if first.precision != VersionPrecision.LOCKED and len(winners) > 1:
            versions = ", ".join(f"{r.version} ({r.origin.path}:{r.origin.line or '?'})" for r in winners)
            diagnostics.append(
                Diagnostic.warning(
                    DiagnosticKind.CONFLICTING_DECLARATIONS,
                    f"{first.name} is declared with different versions: {versions}",
                    first.origin.path,
                    first.origin.line,
                )
            )

        if first.precision == VersionPrecision.RANGE:
            for record in winners:
                diagnostics.append(
                    Diagnostic.warning(
                        DiagnosticKind.IMPRECISE_VERSION,
                        f"{record.name} {record.version} is a version range or dynamic version; "
                        "the installed version cannot be determined without a lockfile",
                        record.origin.path,
                        record.origin.line,
                    )
                )

        return diagnostics
