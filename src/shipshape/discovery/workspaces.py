"""Workspace (monorepo) detection.

Recognizers are tried in priority order against the repository root; the
first one that matches wins. Each recognizer only parses its config file and
returns a WorkspaceSpec: the format, the config file and the declared member
patterns in one canonical list. Member resolution, naming and language
inference are shared by all formats.

A malformed config file, or one declaring a member pattern that cannot be
globbed, means "not this format": ManifestError is raised, the detector
records a warning and moves on.
"""

from __future__ import annotations

import re
import threading
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from fnmatch import fnmatchcase
from pathlib import Path
from typing import Any

import structlog

from shipshape.core.errors import DiscoveryError
from shipshape.core.excludes import DEFAULT_EXCLUDE_PATTERNS, is_glob_pattern, path_is_excluded
from shipshape.discovery import manifests
from shipshape.discovery.classifier import LanguageTally
from shipshape.discovery.manifests import ManifestError
from shipshape.discovery.models import (
    DiscoveryWarning,
    PackageInfo,
    WorkspaceFormat,
    WorkspaceInfo,
)
from shipshape.discovery.walker import TreeWalker

log = structlog.get_logger(__name__)

COMPONENT = "workspaces"

DEFAULT_MEMBER_DEPTH = 4
LERNA_DEFAULT_PACKAGES = ("packages/*",)


@dataclass(frozen=True, slots=True)
class WorkspaceSpec:
    """A matched workspace config, before members are resolved.

    Attributes:
        format: Workspace convention.
        config_file: Controlling file, relative to the root.
        members: Declared member patterns; "!" prefixes negate.
        marker: File a glob-matched directory must contain to count as a
            member (e.g. package.json). Explicit paths are not checked.
    """

    format: WorkspaceFormat
    config_file: str
    members: tuple[str, ...]
    marker: str | None = None


Recognizer = Callable[[Path], WorkspaceSpec | None]


def normalize_members(value: Any, source: str, field: str) -> tuple[str, ...]:
    """Canonical member list from a field that must be a list of strings."""
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ManifestError(source, f"'{field}' must be a list of strings")
    return tuple(value)


def normalize_workspaces_field(value: Any, source: str) -> tuple[str, ...]:
    """package.json ``workspaces``: an array, or an object with ``packages``."""
    if isinstance(value, dict):
        return normalize_members(value.get("packages", []), source, "workspaces.packages")
    return normalize_members(value, source, "workspaces")


# =============================================================================
# Recognizers
# =============================================================================


def _recognize_pnpm(root: Path) -> WorkspaceSpec | None:
    path = root / "pnpm-workspace.yaml"
    if not path.is_file():
        return None
    data = manifests.load_yaml(path)
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ManifestError(path.name, "top-level value must be a mapping")
    members = normalize_members(data.get("packages", []), path.name, "packages")
    return WorkspaceSpec(WorkspaceFormat.PNPM, path.name, members, marker="package.json")


def _recognize_package_json(root: Path) -> WorkspaceSpec | None:
    path = root / "package.json"
    if not path.is_file():
        return None
    data = manifests.load_json(path)
    if not isinstance(data, dict) or "workspaces" not in data:
        return None
    members = normalize_workspaces_field(data["workspaces"], path.name)
    fmt = WorkspaceFormat.YARN if (root / "yarn.lock").is_file() else WorkspaceFormat.NPM
    return WorkspaceSpec(fmt, path.name, members, marker="package.json")


def _recognize_lerna(root: Path) -> WorkspaceSpec | None:
    path = root / "lerna.json"
    if not path.is_file():
        return None
    data = manifests.load_json(path)
    if not isinstance(data, dict):
        raise ManifestError(path.name, "top-level value must be an object")
    if "packages" in data:
        members = normalize_members(data["packages"], path.name, "packages")
    else:
        members = LERNA_DEFAULT_PACKAGES
    return WorkspaceSpec(WorkspaceFormat.LERNA, path.name, members, marker="package.json")


def parse_go_work(text: str) -> list[str]:
    """Directories named by ``use`` directives, block or single-line form."""
    modules: list[str] = []
    in_use_block = False
    for raw in text.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if in_use_block:
            if line == ")":
                in_use_block = False
            else:
                modules.append(line.strip('"'))
        elif line.startswith("use ("):
            in_use_block = True
        elif line.startswith("use "):
            modules.append(line[len("use ") :].strip().strip('"'))
    return modules


def _recognize_go_work(root: Path) -> WorkspaceSpec | None:
    path = root / "go.work"
    if not path.is_file():
        return None
    modules = parse_go_work(manifests.read_text(path))
    return WorkspaceSpec(WorkspaceFormat.GO, path.name, tuple(modules))


def _recognize_cargo(root: Path) -> WorkspaceSpec | None:
    path = root / "Cargo.toml"
    if not path.is_file():
        return None
    data = manifests.load_toml(path)
    workspace = data.get("workspace")
    if workspace is None:
        return None
    if not isinstance(workspace, dict):
        raise ManifestError(path.name, "'workspace' must be a table")
    members = normalize_members(workspace.get("members", []), path.name, "workspace.members")
    excluded = normalize_members(workspace.get("exclude", []), path.name, "workspace.exclude")
    patterns = members + tuple(f"!{item}" for item in excluded)
    return WorkspaceSpec(WorkspaceFormat.CARGO, path.name, patterns, marker="Cargo.toml")


def _recognize_maven(root: Path) -> WorkspaceSpec | None:
    path = root / "pom.xml"
    if not path.is_file():
        return None
    project = manifests.load_xml(path)
    modules_el = project.find("modules")
    if modules_el is None:
        return None
    modules = tuple(
        (el.text or "").strip() for el in modules_el.findall("module") if (el.text or "").strip()
    )
    if not modules:
        return None
    return WorkspaceSpec(WorkspaceFormat.MAVEN, path.name, modules)


_GRADLE_INCLUDE_RE = re.compile(r"^\s*include\b(.*)$", re.MULTILINE)
_QUOTED_RE = re.compile(r"""['"]([^'"]+)['"]""")


def parse_gradle_includes(text: str) -> list[str]:
    """Project paths from ``include`` statements, as directory paths.

    Both ``include 'a', ':b:c'`` and ``include("a")`` forms are read; Gradle's
    colon separators become slashes.
    """
    includes: list[str] = []
    for statement in _GRADLE_INCLUDE_RE.finditer(text):
        for quoted in _QUOTED_RE.findall(statement.group(1)):
            project = quoted.strip(":").replace(":", "/")
            if project:
                includes.append(project)
    return includes


def _recognize_gradle(root: Path) -> WorkspaceSpec | None:
    for name in ("settings.gradle", "settings.gradle.kts"):
        path = root / name
        if not path.is_file():
            continue
        includes = parse_gradle_includes(manifests.read_text(path))
        if includes:
            return WorkspaceSpec(WorkspaceFormat.GRADLE, name, tuple(includes))
    return None


_SLN_PROJECT_RE = re.compile(r'Project\("[^"]+"\)\s*=\s*"[^"]+",\s*"([^"]+)"')
_PROJECT_EXTENSIONS = (".csproj", ".fsproj", ".vbproj")


def parse_sln_projects(text: str) -> list[str]:
    """Directories of project files listed in a .sln; solution folders skipped."""
    dirs: list[str] = []
    for match in _SLN_PROJECT_RE.finditer(text):
        project = match.group(1).replace("\\", "/")
        if project.endswith(_PROJECT_EXTENSIONS):
            parent = project.rpartition("/")[0] or "."
            if parent not in dirs:
                dirs.append(parent)
    return dirs


def _recognize_dotnet(root: Path) -> WorkspaceSpec | None:
    solutions = sorted(p for p in root.glob("*.sln") if p.is_file())
    if not solutions:
        return None
    path = solutions[0]
    projects = parse_sln_projects(manifests.read_text(path))
    if not projects:
        return None
    return WorkspaceSpec(WorkspaceFormat.DOTNET, path.name, tuple(projects))


RECOGNIZERS: tuple[tuple[str, Recognizer], ...] = (
    ("pnpm", _recognize_pnpm),
    ("package_json", _recognize_package_json),
    ("lerna", _recognize_lerna),
    ("go_work", _recognize_go_work),
    ("cargo", _recognize_cargo),
    ("maven", _recognize_maven),
    ("gradle", _recognize_gradle),
    ("dotnet", _recognize_dotnet),
)


# =============================================================================
# Member resolution
# =============================================================================


def _clean_pattern(pattern: str) -> str:
    pattern = pattern.strip()
    while pattern.startswith("./"):
        pattern = pattern[2:]
    return pattern.rstrip("/") or "."


def resolve_members(
    root: Path,
    patterns: Sequence[str],
    *,
    exclude_patterns: Sequence[str] = DEFAULT_EXCLUDE_PATTERNS,
    marker: str | None = None,
    source: str | None = None,
) -> tuple[list[str], list[str]]:
    """Expand member patterns into existing directories inside ``root``.

    Returns:
        (member paths relative to root, missing explicit paths). Members keep
        declaration order; each glob's matches are sorted. "!" patterns
        remove earlier and later matches alike. Paths that resolve outside
        the root (``..`` anywhere, absolute paths, symlinks) are never
        members; explicit ones are reported missing.

    Raises:
        ManifestError: A pattern pathlib cannot glob (e.g. ``packages/**a``),
            attributed to ``source``.
    """
    base = root.resolve()
    negations = [_clean_pattern(p[1:]) for p in patterns if p.strip().startswith("!")]
    members: list[str] = []
    missing: list[str] = []

    def inside(path: Path) -> str | None:
        resolved = path.resolve()
        if not resolved.is_relative_to(base):
            return None
        return resolved.relative_to(base).as_posix()

    def keep(rel: str) -> bool:
        if rel in members or path_is_excluded(rel, exclude_patterns):
            return False
        return not any(fnmatchcase(rel, neg) for neg in negations)

    for raw in patterns:
        if raw.strip().startswith("!"):
            continue
        pattern = _clean_pattern(raw)
        if Path(pattern).is_absolute():
            missing.append(pattern)
            continue
        if not is_glob_pattern(pattern):
            rel = inside(base / pattern)
            if rel is None or not (base / rel).is_dir():
                missing.append(pattern)
            elif keep(rel):
                members.append(rel)
            continue
        try:
            found = [p for p in base.glob(pattern) if p.is_dir()]
        except (ValueError, NotImplementedError) as e:
            raise ManifestError(source or pattern, f"invalid member pattern {raw!r}: {e}") from e
        matches = sorted(
            rel
            for p in found
            if (rel := inside(p)) not in (None, ".")
            and (marker is None or (p / marker).is_file())
        )
        members.extend(rel for rel in matches if keep(rel))
    return members, missing


def _package_name(member_dir: Path) -> str:
    """Name declared by the member's manifest, falling back to the directory name."""
    readers: tuple[tuple[str, Callable[[Path], str | None]], ...] = (
        ("package.json", lambda p: manifests.package_json_name(manifests.load_json(p))),
        ("Cargo.toml", lambda p: manifests.cargo_package_name(manifests.load_toml(p))),
        ("go.mod", lambda p: manifests.go_mod_module(manifests.read_text(p))),
        ("pom.xml", lambda p: manifests.pom_artifact_id(manifests.load_xml(p))),
    )
    for filename, read in readers:
        path = member_dir / filename
        if not path.is_file():
            continue
        try:
            if name := read(path):
                return name
        except ManifestError as e:
            log.debug("member_manifest_unreadable", path=str(path), reason=e.reason)
    return member_dir.name


# =============================================================================
# Detector
# =============================================================================


@dataclass(frozen=True, slots=True)
class WorkspaceMatch:
    """The winning convention with its members already expanded."""

    spec: WorkspaceSpec
    members: list[str]
    missing: list[str]


@dataclass(frozen=True, slots=True)
class WorkspaceDetectionResult:
    workspace: WorkspaceInfo | None = None
    warnings: tuple[DiscoveryWarning, ...] = ()


class WorkspaceDetector:
    """Find the first matching workspace convention and resolve its members.

    Args:
        root: Repository root.
        exclude_patterns: Segments never treated as members and never walked
            when inferring a member's language.
        max_depth: Directory levels walked per member for its language.
        recognizers: Ordered (name, recognizer) pairs. Defaults to RECOGNIZERS.
        cancel_event: Checked before every recognizer and member.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        exclude_patterns: Sequence[str] | None = None,
        max_depth: int = DEFAULT_MEMBER_DEPTH,
        recognizers: Sequence[tuple[str, Recognizer]] = RECOGNIZERS,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.exclude_patterns: tuple[str, ...] = (
            DEFAULT_EXCLUDE_PATTERNS if exclude_patterns is None else tuple(exclude_patterns)
        )
        self.max_depth = max_depth
        self.recognizers = tuple(recognizers)
        self.cancel_event = cancel_event

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise DiscoveryError.cancelled(str(self.root))

    def _relative(self, path: str) -> str:
        try:
            return Path(path).relative_to(self.root).as_posix()
        except ValueError:
            return path

    def match(self) -> tuple[WorkspaceMatch | None, list[DiscoveryWarning]]:
        """Try recognizers in order; first match wins.

        Member patterns are expanded here, so a config whose patterns cannot
        be globbed counts as malformed and falls through like a parse error.
        """
        warnings: list[DiscoveryWarning] = []
        for name, recognizer in self.recognizers:
            self._check_cancelled()
            try:
                spec = recognizer(self.root)
                if spec is None:
                    continue
                members, missing = resolve_members(
                    self.root,
                    spec.members,
                    exclude_patterns=self.exclude_patterns,
                    marker=spec.marker,
                    source=str(self.root / spec.config_file),
                )
            except ManifestError as e:
                log.warning("workspace_config_malformed", recognizer=name, path=e.path, reason=e.reason)
                rel = self._relative(e.path)
                warnings.append(DiscoveryWarning(component=COMPONENT, message=e.reason, path=rel))
                continue
            except Exception as e:  # noqa: BLE001
                log.warning("workspace_recognizer_failed", recognizer=name, error=str(e))
                warnings.append(
                    DiscoveryWarning(component=COMPONENT, message=f"recognizer {name} failed: {e}")
                )
                continue
            log.debug("workspace_matched", format=spec.format.value, config=spec.config_file)
            return WorkspaceMatch(spec, members, missing), warnings
        return None, warnings

    def member_language(self, member_dir: Path) -> str | None:
        """Dominant language of a member, from a bounded-depth walk."""
        tally = LanguageTally()
        walker = TreeWalker(
            member_dir,
            self.exclude_patterns,
            max_depth=self.max_depth,
            cancel_event=self.cancel_event,
        )
        for fd in walker.walk():
            tally.add(fd)
        return tally.top_language()

    def detect(self) -> WorkspaceDetectionResult:
        matched, warnings = self.match()
        if matched is None:
            return WorkspaceDetectionResult(warnings=tuple(warnings))

        spec = matched.spec
        for path in matched.missing:
            log.warning("workspace_member_missing", path=path, config=spec.config_file)
            warnings.append(
                DiscoveryWarning(
                    component=COMPONENT,
                    message=f"member listed in {spec.config_file} does not exist",
                    path=path,
                )
            )

        packages = []
        for rel in matched.members:
            self._check_cancelled()
            member_dir = self.root / rel
            packages.append(
                PackageInfo(
                    name=_package_name(member_dir),
                    path=rel,
                    language=self.member_language(member_dir),
                )
            )

        workspace = WorkspaceInfo(
            format=spec.format,
            config_file=spec.config_file,
            packages=tuple(packages),
        )
        return WorkspaceDetectionResult(workspace=workspace, warnings=tuple(warnings))
