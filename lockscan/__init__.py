"""Multi-format lockfile parsing and normalization.

lockscan reads lock and manifest files from many ecosystems and turns them
into one ordered inventory of resolved packages, ready to be matched
against an advisory database.

Supported formats:
- JVM: gradle.lockfile, build.gradle, build.gradle.kts, pom.xml
- JavaScript: package-lock.json, npm-shrinkwrap.json, yarn.lock, pnpm-lock.yaml
- Python: requirements.txt, Pipfile.lock, poetry.lock, uv.lock
- Rust: Cargo.lock
- Go: go.mod
- .NET: packages.lock.json
- PHP: composer.lock
- Ruby: Gemfile.lock, gems.locked
- Dart: pubspec.lock

Example usage:
    from lockscan import scan_files

    inventory = scan_files(["app/gradle.lockfile", "app/build.gradle.kts"])
    for record in inventory.records:
        print(record.purl)
"""

from .config import ModuleScope, ScanConfig
from .detector import detect_format
from .exceptions import (
    ConfigurationError,
    FileProcessingError,
    LockscanError,
    ParseError,
    UnsupportedFormatError,
)
from .inventory import Inventory, InventoryBuilder, ScanInput, scan_content, scan_files
from .merge import MergeEngine
from .models import (
    UNRESOLVED_VERSION,
    Diagnostic,
    DiagnosticKind,
    Ecosystem,
    LockfileDescriptor,
    LockfileFormat,
    Origin,
    PackageRecord,
    ParseResult,
    RawDependencyEntry,
    Severity,
    VersionPrecision,
    normalize_package_name,
)
from .normalizer import Normalizer
from .protocol import LockfileParser
from .registry import ParserRegistry


def _get_version() -> str:
    """Get package version with fallback mechanisms."""
    from importlib.metadata import PackageNotFoundError, version
    from pathlib import Path

    import tomllib

    # Method 1: Try importlib.metadata (preferred for installed packages)
    try:
        return version("lockscan")
    except PackageNotFoundError:
        pass

    # Method 2: Try reading from pyproject.toml directly
    try:
        pyproject_path = Path(__file__).parent.parent / "pyproject.toml"
        if pyproject_path.exists():
            with open(pyproject_path, "rb") as f:
                pyproject_data = tomllib.load(f)
            return pyproject_data.get("project", {}).get("version", "unknown")
    except (OSError, tomllib.TOMLDecodeError):
        pass

    return "unknown"


__version__ = _get_version()

__all__ = [
    # Main API
    "scan_files",
    "scan_content",
    "detect_format",
    # Pipeline
    "InventoryBuilder",
    "Inventory",
    "ScanInput",
    "ParserRegistry",
    "LockfileParser",
    "Normalizer",
    "MergeEngine",
    # Configuration
    "ScanConfig",
    "ModuleScope",
    # Models
    "UNRESOLVED_VERSION",
    "Diagnostic",
    "DiagnosticKind",
    "Ecosystem",
    "LockfileDescriptor",
    "LockfileFormat",
    "Origin",
    "PackageRecord",
    "ParseResult",
    "RawDependencyEntry",
    "Severity",
    "VersionPrecision",
    "normalize_package_name",
    # Exceptions
    "LockscanError",
    "ConfigurationError",
    "FileProcessingError",
    "ParseError",
    "UnsupportedFormatError",
]
