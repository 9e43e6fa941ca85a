"""Scan configuration."""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional

from .exceptions import ConfigurationError
from .models import LockfileFormat


class ModuleScope(Enum):
    """How far the merge engine looks for records of the same package.

    MODULE keeps each directory (Gradle module, npm workspace, ...) separate,
    so a lockfile only overrides the manifest sitting next to it. PROJECT
    merges every scanned file into one namespace.
    """

    MODULE = "module"
    PROJECT = "project"


@dataclass(frozen=True)
class ScanConfig:
    """Configuration settings for a scan."""

    module_scope: ModuleScope = ModuleScope.MODULE
    max_workers: int = 4
    enabled_formats: Optional[frozenset[LockfileFormat]] = None

    def validate(self) -> None:
        """
        Validate configuration settings.

        Raises:
            ConfigurationError: If configuration is invalid
        """
        if not isinstance(self.module_scope, ModuleScope):
            raise ConfigurationError(f"Invalid module scope: {self.module_scope!r}")
        if not isinstance(self.max_workers, int) or isinstance(self.max_workers, bool) or self.max_workers < 1:
            raise ConfigurationError(f"max_workers must be a positive integer, got {self.max_workers!r}")
        if self.enabled_formats is not None:
            if not self.enabled_formats:
                raise ConfigurationError("enabled_formats cannot be empty; use None to enable all formats")
            for fmt in self.enabled_formats:
                if not isinstance(fmt, LockfileFormat):
                    raise ConfigurationError(f"Unknown lockfile format: {fmt!r}")

    def is_enabled(self, fmt: LockfileFormat) -> bool:
        """Check whether a format may be parsed under this configuration."""
        return self.enabled_formats is None or fmt in self.enabled_formats

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "ScanConfig":
        """
        Build a validated configuration from plain values.

        Accepts the string forms a CLI wrapper or config file would carry:
        ``{"module_scope": "project", "max_workers": 8,
        "enabled_formats": ["gradle.lockfile", "Cargo.lock"]}``.

        Raises:
            ConfigurationError: If a value is not recognised
        """
        unknown = set(data) - {"module_scope", "max_workers", "enabled_formats"}
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

        try:
            module_scope = ModuleScope(data.get("module_scope", ModuleScope.MODULE.value))
        except ValueError:
            choices = ", ".join(s.value for s in ModuleScope)
            raise ConfigurationError(
                f"Invalid module_scope: {data['module_scope']!r} (expected one of: {choices})"
            ) from None

        enabled_formats = None
        raw_formats = data.get("enabled_formats")
        if raw_formats is not None:
            try:
                enabled_formats = frozenset(LockfileFormat(f) for f in raw_formats)
            except ValueError as e:
                raise ConfigurationError(f"Invalid enabled_formats: {e}") from e

        config = cls(
            module_scope=module_scope,
            max_workers=data.get("max_workers", 4),
            enabled_formats=enabled_formats,
        )
        config.validate()
        return config
