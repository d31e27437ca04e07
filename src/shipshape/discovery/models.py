"""Discovery result types.

Every type here is a frozen dataclass: a discovery run builds them once and
nothing downstream mutates them. ``to_dict()`` produces the stable JSON shape
consumed by reporting tools.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any

from shipshape.core.languages import UNKNOWN_LANGUAGE


@dataclass(frozen=True, slots=True)
class FileDescriptor:
    """One regular file visited by the walker."""

    path: str  # absolute
    rel_path: str  # POSIX, relative to the repository root
    name: str
    ext: str  # lower-cased with leading dot, or ""
    is_dir: bool = False
    size: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "path": self.path,
            "rel_path": self.rel_path,
            "name": self.name,
            "ext": self.ext,
            "is_dir": self.is_dir,
            "size": self.size,
        }


@dataclass(frozen=True, slots=True)
class LanguageInfo:
    """Share of one language among classified files, plus tool hints."""

    name: str
    percentage: float
    file_count: int
    is_primary: bool = False
    test_frameworks: tuple[str, ...] = ()
    coverage_tools: tuple[str, ...] = ()
    linters: tuple[str, ...] = ()
    formatters: tuple[str, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "percentage": self.percentage,
            "file_count": self.file_count,
            "is_primary": self.is_primary,
            "test_frameworks": list(self.test_frameworks),
            "coverage_tools": list(self.coverage_tools),
            "linters": list(self.linters),
            "formatters": list(self.formatters),
        }


class FrameworkType(StrEnum):
    """Kinds of tooling. Declaration order is the rendering order."""

    TEST = "test"
    COVERAGE = "coverage"
    LINT = "lint"
    FORMAT = "format"
    BUILD = "build"
    OTHER = "other"

    @property
    def heading(self) -> str:
        return _TYPE_HEADINGS[self]

    @property
    def order(self) -> int:
        return list(FrameworkType).index(self)


_TYPE_HEADINGS: dict[FrameworkType, str] = {
    FrameworkType.TEST: "Testing",
    FrameworkType.COVERAGE: "Coverage",
    FrameworkType.LINT: "Linting",
    FrameworkType.FORMAT: "Formatting",
    FrameworkType.BUILD: "Build",
    FrameworkType.OTHER: "Other",
}


@dataclass(frozen=True, slots=True)
class Framework:
    """A detected tool and the files that evidenced it."""

    name: str
    language: str
    type: FrameworkType
    config_files: tuple[str, ...] = ()
    version: str | None = None

    @property
    def key(self) -> tuple[str, str, FrameworkType]:
        return (self.name, self.language, self.type)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "language": self.language,
            "type": self.type.value,
            "config_files": list(self.config_files),
            "version": self.version,
        }


class WorkspaceFormat(StrEnum):
    """Recognised workspace conventions, in detection priority order."""

    PNPM = "pnpm"
    YARN = "yarn"
    NPM = "npm"
    LERNA = "lerna"
    GO = "go"
    CARGO = "cargo"
    MAVEN = "maven"
    GRADLE = "gradle"
    DOTNET = "dotnet"


@dataclass(frozen=True, slots=True)
class PackageInfo:
    """One workspace member."""

    name: str
    path: str  # POSIX, relative to the repository root
    language: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "path": self.path, "language": self.language}


@dataclass(frozen=True, slots=True)
class WorkspaceInfo:
    """A recognised workspace and its resolved members."""

    format: WorkspaceFormat
    config_file: str
    packages: tuple[PackageInfo, ...] = ()

    def to_dict(self) -> dict[str, Any]:
        return {
            "format": self.format.value,
            "config_file": self.config_file,
            "packages": [p.to_dict() for p in self.packages],
        }


@dataclass(frozen=True, slots=True)
class DiscoveryWarning:
    """A recoverable problem: the item was skipped and the run went on."""

    component: str  # walker, classifier, frameworks, workspaces
    message: str
    path: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"component": self.component, "message": self.message, "path": self.path}

    def __str__(self) -> str:
        if self.path:
            return f"[{self.component}] {self.path}: {self.message}"
        return f"[{self.component}] {self.message}"


@dataclass(frozen=True, slots=True)
class Repository:
    """Aggregate result of one discovery run."""

    root: str
    total_files: int
    excluded_paths: tuple[str, ...] = ()
    languages: tuple[LanguageInfo, ...] = ()
    frameworks: tuple[Framework, ...] = ()
    workspace: WorkspaceInfo | None = None
    warnings: tuple[DiscoveryWarning, ...] = ()

    @property
    def is_monorepo(self) -> bool:
        return self.workspace is not None

    def primary_language(self) -> str:
        """Name of the highest-share language, or "Unknown" when none."""
        if not self.languages:
            return UNKNOWN_LANGUAGE
        return self.languages[0].name

    def has_language(self, name: str) -> bool:
        return any(lang.name == name for lang in self.languages)

    def get_language(self, name: str) -> LanguageInfo | None:
        return next((lang for lang in self.languages if lang.name == name), None)

    def get_framework(self, name: str) -> Framework | None:
        return next((fw for fw in self.frameworks if fw.name == name), None)

    def has_framework(self, name: str) -> bool:
        return self.get_framework(name) is not None

    def frameworks_by_type(self, framework_type: FrameworkType | str) -> list[Framework]:
        wanted = FrameworkType(framework_type)
        return [fw for fw in self.frameworks if fw.type is wanted]

    def to_dict(self) -> dict[str, Any]:
        return {
            "root": self.root,
            "total_files": self.total_files,
            "excluded_paths": list(self.excluded_paths),
            "languages": [lang.to_dict() for lang in self.languages],
            "frameworks": [fw.to_dict() for fw in self.frameworks],
            "workspace": self.workspace.to_dict() if self.workspace else None,
            "is_monorepo": self.is_monorepo,
            "warnings": [w.to_dict() for w in self.warnings],
        }
