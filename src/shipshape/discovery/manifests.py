"""Readers for configuration files and dependency manifests.

Loading and extraction are separate: ``load_*`` turns a file into parsed data
(raising ManifestError for unreadable or malformed content) and the
``*_dependencies`` helpers pull ``{package: version_spec}`` out of it. Every
extractor tolerates wrong field types by ignoring them.
"""

from __future__ import annotations

import json
import re
import tomllib
import xml.etree.ElementTree as ET
from pathlib import Path
from typing import Any

import yaml

# Content reads never exceed this; manifests are small and test files are only
# scanned for imports near the top.
MAX_READ_BYTES = 64 * 1024

Dependencies = dict[str, str | None]


class ManifestError(ValueError):
    """A manifest could not be read or parsed."""

    def __init__(self, path: Path | str, reason: str) -> None:
        self.path = str(path)
        self.reason = reason
        super().__init__(f"{path}: {reason}")


# =============================================================================
# Loading
# =============================================================================


def read_text(path: Path, limit: int | None = None) -> str:
    """Read a text file, decoding leniently. ``limit`` caps the bytes read."""
    try:
        with path.open("rb") as f:
            data = f.read(limit) if limit is not None else f.read()
    except OSError as e:
        raise ManifestError(path, e.strerror or str(e)) from e
    return data.decode("utf-8", errors="replace")


def load_json(path: Path) -> Any:
    try:
        return json.loads(read_text(path))
    except json.JSONDecodeError as e:
        raise ManifestError(path, f"invalid JSON: {e}") from e


def load_toml(path: Path) -> dict[str, Any]:
    try:
        return tomllib.loads(read_text(path))
    except tomllib.TOMLDecodeError as e:
        raise ManifestError(path, f"invalid TOML: {e}") from e


def load_yaml(path: Path) -> Any:
    try:
        return yaml.safe_load(read_text(path))
    except yaml.YAMLError as e:
        raise ManifestError(path, f"invalid YAML: {e}") from e


def load_xml(path: Path) -> ET.Element:
    """Parse XML and strip namespaces so lookups can use bare tag names."""
    try:
        root = ET.fromstring(read_text(path))
    except ET.ParseError as e:
        raise ManifestError(path, f"invalid XML: {e}") from e
    for el in root.iter():
        if isinstance(el.tag, str) and "}" in el.tag:
            el.tag = el.tag.split("}", 1)[1]
    return root


# =============================================================================
# Requirement strings (PEP 508 subset)
# =============================================================================

_REQUIREMENT_RE = re.compile(r"^\s*([A-Za-z0-9][A-Za-z0-9._-]*)\s*(\[[^\]]*\])?\s*(.*)$")


def normalize_python_name(name: str) -> str:
    """PEP 503 normalisation: lowercase, runs of -_. become a single dash."""
    return re.sub(r"[-_.]+", "-", name).lower()


def parse_requirement(line: str) -> tuple[str, str | None] | None:
    """Split "pytest>=8.0; python_version>'3'" into ("pytest", ">=8.0")."""
    match = _REQUIREMENT_RE.match(line)
    if not match:
        return None
    spec = match.group(3).split(";", 1)[0].strip() or None
    return normalize_python_name(match.group(1)), spec


def _add_requirements(deps: Dependencies, items: Any) -> None:
    if not isinstance(items, list):
        return
    for item in items:
        if isinstance(item, str) and (parsed := parse_requirement(item)):
            deps.setdefault(parsed[0], parsed[1])


def _add_table(deps: Dependencies, table: Any, *, python: bool = False) -> None:
    """Add a ``{name: version | {version = ...}}`` table (Poetry, Cargo)."""
    if not isinstance(table, dict):
        return
    for name, value in table.items():
        if not isinstance(name, str):
            continue
        version: str | None = None
        if isinstance(value, str):
            version = value
        elif isinstance(value, dict) and isinstance(value.get("version"), str):
            version = value["version"]
        key = normalize_python_name(name) if python else name
        deps.setdefault(key, version)


# =============================================================================
# Extraction
# =============================================================================

PACKAGE_JSON_TABLES = (
    "dependencies",
    "devDependencies",
    "peerDependencies",
    "optionalDependencies",
)


def package_json_dependencies(data: Any) -> Dependencies:
    deps: Dependencies = {}
    if not isinstance(data, dict):
        return deps
    for table in PACKAGE_JSON_TABLES:
        section = data.get(table)
        if not isinstance(section, dict):
            continue
        for name, version in section.items():
            deps.setdefault(name, version if isinstance(version, str) else None)
    return deps


def pyproject_dependencies(data: dict[str, Any]) -> Dependencies:
    """PEP 621 project tables, PEP 735 dependency groups and Poetry tables."""
    deps: Dependencies = {}
    project = data.get("project")
    if isinstance(project, dict):
        _add_requirements(deps, project.get("dependencies"))
        optional = project.get("optional-dependencies")
        if isinstance(optional, dict):
            for items in optional.values():
                _add_requirements(deps, items)

    groups = data.get("dependency-groups")
    if isinstance(groups, dict):
        for items in groups.values():
            # {include-group = "..."} entries are skipped by _add_requirements
            _add_requirements(deps, items)

    tool = data.get("tool")
    poetry = tool.get("poetry") if isinstance(tool, dict) else None
    if isinstance(poetry, dict):
        _add_table(deps, poetry.get("dependencies"), python=True)
        _add_table(deps, poetry.get("dev-dependencies"), python=True)
        poetry_groups = poetry.get("group")
        if isinstance(poetry_groups, dict):
            for group in poetry_groups.values():
                if isinstance(group, dict):
                    _add_table(deps, group.get("dependencies"), python=True)
    deps.pop("python", None)
    return deps


def requirements_dependencies(text: str) -> Dependencies:
    deps: Dependencies = {}
    for raw in text.splitlines():
        line = raw.split("#", 1)[0].strip()
        # Options, includes and editable/URL installs name no package directly
        if not line or line.startswith(("-", "git+", "http://", "https://")):
            continue
        if parsed := parse_requirement(line):
            deps.setdefault(parsed[0], parsed[1])
    return deps


_GO_REQUIRE_LINE = re.compile(r"^(\S+)\s+(v\S+)")


def go_mod_module(text: str) -> str | None:
    for raw in text.splitlines():
        line = raw.strip()
        if line.startswith("module "):
            return line[len("module ") :].strip().strip('"') or None
    return None


def go_mod_dependencies(text: str) -> Dependencies:
    deps: Dependencies = {}
    in_block = False
    for raw in text.splitlines():
        line = raw.split("//", 1)[0].strip()
        if not line:
            continue
        if in_block:
            if line == ")":
                in_block = False
                continue
            target = line
        elif line.startswith("require ("):
            in_block = True
            continue
        elif line.startswith("require "):
            target = line[len("require ") :].strip()
        else:
            continue
        if match := _GO_REQUIRE_LINE.match(target):
            deps.setdefault(match.group(1), match.group(2))
    return deps


def cargo_dependencies(data: dict[str, Any]) -> Dependencies:
    deps: Dependencies = {}
    for table in ("dependencies", "dev-dependencies", "build-dependencies"):
        _add_table(deps, data.get(table))
    workspace = data.get("workspace")
    if isinstance(workspace, dict):
        _add_table(deps, workspace.get("dependencies"))
    return deps


def cargo_package_name(data: dict[str, Any]) -> str | None:
    package = data.get("package")
    if isinstance(package, dict) and isinstance(package.get("name"), str):
        return package["name"]
    return None


_GEM_RE = re.compile(r"""^\s*gem\s+['"]([^'"]+)['"](?:\s*,\s*['"]([^'"]+)['"])?""")


def gemfile_dependencies(text: str) -> Dependencies:
    deps: Dependencies = {}
    for line in text.splitlines():
        if match := _GEM_RE.match(line):
            deps.setdefault(match.group(1), match.group(2))
    return deps


def pom_dependencies(root: ET.Element) -> Dependencies:
    """Artifact ids of every <dependency> and <plugin> in a POM."""
    deps: Dependencies = {}
    for el in root.iter():
        if el.tag not in ("dependency", "plugin"):
            continue
        artifact = el.findtext("artifactId")
        if artifact:
            deps.setdefault(artifact.strip(), (el.findtext("version") or "").strip() or None)
    return deps


def pom_artifact_id(root: ET.Element) -> str | None:
    artifact = root.findtext("artifactId")
    return artifact.strip() if artifact else None


_GRADLE_COORD_RE = re.compile(r"""['"]([\w.\-]+):([\w.\-]+)(?::([^'"@]+))?['"]""")
_GRADLE_PLUGIN_ID_RE = re.compile(r"""\bid\s*\(?\s*['"]([\w.\-]+)['"]""")
_GRADLE_APPLY_RE = re.compile(r"""apply\s+plugin\s*:\s*['"]([\w.\-]+)['"]""")
_GRADLE_PLUGINS_BLOCK_RE = re.compile(r"plugins\s*\{([^}]*)\}", re.DOTALL)
_GRADLE_BARE_PLUGIN_RE = re.compile(r"^\s*`?([A-Za-z][\w\-]*)`?\s*$", re.MULTILINE)


def gradle_dependencies(text: str) -> Dependencies:
    """Artifact names and plugin ids declared in a Gradle build script."""
    deps: Dependencies = {}
    for match in _GRADLE_COORD_RE.finditer(text):
        deps.setdefault(match.group(2), match.group(3))
    for regex in (_GRADLE_PLUGIN_ID_RE, _GRADLE_APPLY_RE):
        for match in regex.finditer(text):
            deps.setdefault(match.group(1), None)
    for block in _GRADLE_PLUGINS_BLOCK_RE.finditer(text):
        for match in _GRADLE_BARE_PLUGIN_RE.finditer(block.group(1)):
            deps.setdefault(match.group(1), None)
    return deps


def package_json_name(data: Any) -> str | None:
    if isinstance(data, dict) and isinstance(data.get("name"), str):
        return data["name"]
    return None


def toml_section_paths(data: dict[str, Any], prefix: str = "") -> set[str]:
    """Dotted paths of every table in parsed TOML ("tool", "tool.ruff", ...)."""
    paths: set[str] = set()
    for key, value in data.items():
        if isinstance(value, dict):
            path = f"{prefix}{key}"
            paths.add(path)
            paths |= toml_section_paths(value, prefix=f"{path}.")
    return paths
