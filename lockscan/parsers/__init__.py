"""Lockfile and manifest parsers for various ecosystems."""

from .build_gradle import BuildGradleParser
from .cargo_lock import CargoLockParser
from .composer_lock import ComposerLockParser
from .gemfile_lock import GemfileLockParser
from .go_mod import GoModParser
from .gradle_lock import GradleLockParser
from .nuget_lock import NuGetLockParser
from .package_lock import PackageLockParser
from .pipfile_lock import PipfileLockParser
from .pnpm_lock import PnpmLockParser
from .poetry_lock import PoetryLockParser
from .pom_xml import MavenPomParser
from .pubspec_lock import PubspecLockParser
from .requirements_txt import RequirementsTxtParser
from .setup_cfg import SetupCfgParser
from .setup_py import SetupPyParser
from .uv_lock import UvLockParser
from .yarn_lock import YarnLockParser

__all__ = [
    "BuildGradleParser",
    "CargoLockParser",
    "ComposerLockParser",
    "GemfileLockParser",
    "GoModParser",
    "GradleLockParser",
    "MavenPomParser",
    "NuGetLockParser",
    "PackageLockParser",
    "PipfileLockParser",
    "PnpmLockParser",
    "PoetryLockParser",
    "PubspecLockParser",
    "RequirementsTxtParser",
    "SetupCfgParser",
    "SetupPyParser",
    "UvLockParser",
    "YarnLockParser",
]
