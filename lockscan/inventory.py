"""Inventory building: the scan pipeline over many files."""

import threading
from collections.abc import Iterable, Sequence
from concurrent.futures import ThreadPoolExecutor, as_completed
from dataclasses import dataclass, field
from pathlib import Path, PurePath
from typing import Any

from .config import ScanConfig
from .detector import detect_format
from .exceptions import FileProcessingError
from .filereader import decode_content, read_file
from .logging_config import logger
from .merge import MergeEngine
from .models import (
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileDescriptor,
    LockfileFormat,
    PackageRecord,
    Severity,
)
from .normalizer import Normalizer
from .registry import ParserRegistry

_GRADLE_BUILD_SCRIPTS = (LockfileFormat.GRADLE_GROOVY_DSL, LockfileFormat.GRADLE_KOTLIN_DSL)


@dataclass(frozen=True)
class ScanInput:
    """A file handed to the inventory builder.

    Attributes:
        path: Path of the file; used for detection, origins and diagnostics
        content: Raw bytes, or None to read the file from disk
        hint: Format to parse the file as, or ecosystem to restrict
            detection to
    """

    path: str
    content: bytes | None = None
    hint: LockfileFormat | Ecosystem | None = None


@dataclass(frozen=True)
class Inventory:
    """Result of a scan: the resolved packages and everything worth reporting."""

    records: tuple[PackageRecord, ...] = ()
    diagnostics: tuple[Diagnostic, ...] = ()
    lockfiles: tuple[LockfileDescriptor, ...] = ()
    cancelled: bool = False

    @property
    def has_errors(self) -> bool:
        """True if any file could not be read or parsed."""
        return any(d.severity is Severity.ERROR for d in self.diagnostics)

    def records_for(self, ecosystem: Ecosystem) -> list[PackageRecord]:
        """Get the records of one ecosystem, in inventory order."""
        return [r for r in self.records if r.ecosystem is ecosystem]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable dict."""
        return {
            "records": [r.to_dict() for r in self.records],
            "diagnostics": [d.to_dict() for d in self.diagnostics],
            "lockfiles": [
                {"path": lf.path, "format": lf.format.value, "ecosystem": lf.ecosystem.value} for lf in self.lockfiles
            ],
            "cancelled": self.cancelled,
        }


@dataclass
class _FileOutcome:
    """Everything one worker produced for one file."""

    descriptor: LockfileDescriptor | None = None
    records: list[PackageRecord] = field(default_factory=list)
    diagnostics: list[Diagnostic] = field(default_factory=list)
    locking_enabled: bool = False
    skipped: bool = False


class InventoryBuilder:
    """Runs detection, parsing, normalization and merging over a set of files.

    Files are processed concurrently, one file per task. Each task fills
    its own outcome and outcomes are combined in input order, so the
    inventory does not depend on scheduling.

    Example:
        builder = InventoryBuilder(ScanConfig(max_workers=8))
        inventory = builder.build([ScanInput("app/gradle.lockfile"), ScanInput("app/build.gradle")])
    """

    def __init__(self, config: ScanConfig | None = None, registry: ParserRegistry | None = None) -> None:
        self.config = config or ScanConfig()
        self.config.validate()
        self.registry = registry or ParserRegistry()
        self.normalizer = Normalizer()

    def build(self, inputs: Sequence[ScanInput], cancel_event: threading.Event | None = None) -> Inventory:
        """Scan the given files into an inventory.

        No per-file failure aborts the scan; it becomes a diagnostic.

        Args:
            inputs: Files to scan, in discovery order
            cancel_event: When set, files that have not started yet are
                skipped and the inventory is flagged as cancelled

        Returns:
            Inventory with merged records in discovery order.
        """
        outcomes: list[_FileOutcome | None] = [None] * len(inputs)
        logger.debug(f"Scanning {len(inputs)} file(s) with {self.config.max_workers} worker(s)")

        with ThreadPoolExecutor(max_workers=self.config.max_workers) as executor:
            futures = {executor.submit(self._process, item, cancel_event): index for index, item in enumerate(inputs)}

            for future in as_completed(futures):
                outcomes[futures[future]] = future.result()

        completed = [outcome for outcome in outcomes if outcome is not None]
        cancelled = any(outcome.skipped for outcome in completed)

        diagnostics: list[Diagnostic] = []
        records: list[PackageRecord] = []
        for outcome in completed:
            diagnostics.extend(outcome.diagnostics)
            records.extend(outcome.records)

        diagnostics.extend(self._missing_lockfiles(completed))

        merged, merge_diagnostics = MergeEngine(self.config.module_scope).merge(records)
        diagnostics.extend(merge_diagnostics)

        lockfiles = tuple(o.descriptor for o in completed if o.descriptor is not None and not o.skipped)

        if cancelled:
            skipped = sum(1 for o in completed if o.skipped)
            logger.info(f"Scan cancelled, {skipped} file(s) skipped")
        logger.info(
            f"Found {len(merged)} package(s) in {len(lockfiles)} file(s) ({len(diagnostics)} diagnostic(s))"
        )

        return Inventory(
            records=tuple(merged),
            diagnostics=tuple(diagnostics),
            lockfiles=lockfiles,
            cancelled=cancelled,
        )

    def _process(self, item: ScanInput, cancel_event: threading.Event | None) -> _FileOutcome:
        """Run one file through detection, parsing and normalization."""
        if cancel_event is not None and cancel_event.is_set():
            return _FileOutcome(skipped=True)

        try:
            return self._process_file(item)
        except Exception as e:
            logger.warning(f"Unexpected error while scanning {item.path}: {e}", extra={"scan_path": item.path})
            outcome = _FileOutcome()
            outcome.diagnostics.append(
                Diagnostic.error(DiagnosticKind.PARSE_FAILURE, f"{type(e).__name__}: {e}", item.path)
            )
            return outcome

    def _process_file(self, item: ScanInput) -> _FileOutcome:
        outcome = _FileOutcome()

        try:
            data = item.content if item.content is not None else read_file(item.path)
            content = decode_content(data, item.path)
        except FileProcessingError as e:
            logger.warning(str(e), extra={"scan_path": item.path})
            outcome.diagnostics.append(Diagnostic.error(DiagnosticKind.IO_FAILURE, str(e), item.path))
            return outcome

        descriptor = detect_format(item.path, content, item.hint)
        if descriptor is None:
            outcome.diagnostics.append(
                Diagnostic.info(DiagnosticKind.UNRECOGNIZED_FORMAT, "Not a recognised lockfile format", item.path)
            )
            return outcome

        if not self.config.is_enabled(descriptor.format):
            logger.debug(f"Skipping {item.path}: {descriptor.format.value} is not enabled")
            outcome.diagnostics.append(
                Diagnostic.info(
                    DiagnosticKind.UNRECOGNIZED_FORMAT,
                    f"{descriptor.format.value} is not enabled for this scan",
                    item.path,
                )
            )
            return outcome

        outcome.descriptor = descriptor
        result = self.registry.parse(descriptor, content)
        outcome.diagnostics.extend(result.diagnostics)
        outcome.locking_enabled = result.locking_enabled

        for entry in result.entries:
            record, diagnostics = self.normalizer.normalize(entry, descriptor)
            outcome.diagnostics.extend(diagnostics)
            if record is not None:
                outcome.records.append(record)

        return outcome

    @staticmethod
    def _missing_lockfiles(outcomes: Iterable[_FileOutcome]) -> list[Diagnostic]:
        """Report build scripts that enable locking without a scanned lockfile."""
        outcomes = list(outcomes)
        locked_dirs = {
            PurePath(o.descriptor.path).parent
            for o in outcomes
            if o.descriptor is not None and o.descriptor.format is LockfileFormat.GRADLE_LOCKFILE
        }

        diagnostics = []
        for outcome in outcomes:
            descriptor = outcome.descriptor
            if descriptor is None or descriptor.format not in _GRADLE_BUILD_SCRIPTS or not outcome.locking_enabled:
                continue
            if PurePath(descriptor.path).parent in locked_dirs:
                continue
            diagnostics.append(
                Diagnostic.info(
                    DiagnosticKind.MISSING_LOCKFILE,
                    "Dependency locking is enabled but no gradle.lockfile was scanned next to this build script; "
                    "reported versions are the declared ones",
                    descriptor.path,
                )
            )
        return diagnostics


def scan_files(paths: Iterable[str | Path], config: ScanConfig | None = None) -> Inventory:
    """Scan files from disk.

    Args:
        paths: Files to scan, in discovery order
        config: Scan configuration, defaults to ScanConfig()

    Returns:
        Inventory of the files.
    """
    return InventoryBuilder(config).build([ScanInput(str(path)) for path in paths])


def scan_content(
    path: str,
    content: str | bytes,
    hint: LockfileFormat | Ecosystem | None = None,
    config: ScanConfig | None = None,
) -> Inventory:
    """Scan a single in-memory file.

    Args:
        path: Path the content came from; its name drives detection
        content: File content
        hint: Format to parse as, or ecosystem to restrict detection to
        config: Scan configuration, defaults to ScanConfig()

    Returns:
        Inventory of the file.
    """
    data = content.encode("utf-8") if isinstance(content, str) else content
    return InventoryBuilder(config).build([ScanInput(path, data, hint)])
