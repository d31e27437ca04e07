"""Framework and tool detection.

Recognizers are plain functions over a RecognizerContext (the evidence
candidates the walker found, plus the languages in play). They run in a fixed
order; each returns its own Findings so one failing recognizer never affects
another. Results from every recognizer are merged by (name, language, type).

Usage::

    detector = FrameworkDetector(repo_root)
    result = detector.detect(languages=["Go"])
    for fw in result.frameworks:
        print(fw.name, fw.type, fw.config_files)
"""

from __future__ import annotations

import configparser
import re
import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from pathlib import Path

import structlog

from shipshape.core.errors import DiscoveryError
from shipshape.core.languages import is_test_file
from shipshape.discovery import catalog, manifests
from shipshape.discovery.catalog import JS_FAMILY, JVM_FAMILY, ToolRule
from shipshape.discovery.manifests import Dependencies, ManifestError
from shipshape.discovery.models import (
    DiscoveryWarning,
    FileDescriptor,
    Framework,
    FrameworkType,
    LanguageInfo,
)
from shipshape.discovery.walker import TreeWalker

log = structlog.get_logger(__name__)

COMPONENT = "frameworks"

_UNITTEST_IMPORT_RE = re.compile(r"^\s*(?:import\s+unittest\b|from\s+unittest\b)", re.MULTILINE)


def is_evidence_candidate(fd: FileDescriptor) -> bool:
    """Whether a walked file can evidence a tool: configs, manifests, tests."""
    name = fd.name
    return (
        catalog.is_manifest(name)
        or name == catalog.TSCONFIG
        or bool(catalog.config_rules_for(name))
        or (fd.ext == ".go" and is_test_file(name, "Go"))
        or (fd.ext == ".py" and is_test_file(name, "Python"))
    )


# =============================================================================
# Recognizer plumbing
# =============================================================================


@dataclass(frozen=True, slots=True)
class RecognizerContext:
    """Read-only input shared by all recognizers of one detection run."""

    root: Path
    files: tuple[FileDescriptor, ...]
    languages: frozenset[str] | None = None

    def named(self, name: str) -> list[FileDescriptor]:
        return [fd for fd in self.files if fd.name == name]

    def has_sibling(self, fd: FileDescriptor, name: str) -> bool:
        parent = fd.rel_path.rpartition("/")[0]
        sibling = f"{parent}/{name}" if parent else name
        return any(other.rel_path == sibling for other in self.files)

    def in_scope(self, language: str) -> bool:
        """Whether tools owned by ``language`` (or its family) should be reported."""
        if self.languages is None:
            return True
        return bool(_family(language) & self.languages)

    def attribute(self, rule: ToolRule, fd: FileDescriptor) -> str:
        """Owning language for a tool evidenced by ``fd``."""
        langs = self.languages or frozenset()
        if rule.language == "JavaScript":
            if self.has_sibling(fd, catalog.TSCONFIG):
                return "TypeScript"
            if "TypeScript" in langs and "JavaScript" not in langs:
                return "TypeScript"
        elif rule.language == "Java" and "Java" not in langs:
            for alt in ("Kotlin", "Scala"):
                if alt in langs:
                    return alt
        return rule.language


def _family(language: str) -> frozenset[str]:
    if language in JS_FAMILY:
        return JS_FAMILY
    if language in JVM_FAMILY:
        return JVM_FAMILY
    return frozenset({language})


@dataclass
class Findings:
    """Output of one recognizer."""

    frameworks: list[Framework] = field(default_factory=list)
    warnings: list[DiscoveryWarning] = field(default_factory=list)

    def add(
        self,
        ctx: RecognizerContext,
        rule: ToolRule,
        fd: FileDescriptor,
        version: str | None = None,
    ) -> None:
        self.frameworks.append(
            Framework(
                name=rule.name,
                language=ctx.attribute(rule, fd),
                type=rule.type,
                config_files=(fd.rel_path,),
                version=version,
            )
        )

    def warn(self, fd: FileDescriptor, message: str) -> None:
        self.warnings.append(DiscoveryWarning(component=COMPONENT, message=message, path=fd.rel_path))
        log.warning("framework_evidence_skipped", path=fd.rel_path, reason=message)


@dataclass(frozen=True, slots=True)
class Recognizer:
    """A named recognizer scoped to a set of languages."""

    name: str
    languages: frozenset[str]
    run: Callable[[RecognizerContext], Findings]

    def applies_to(self, languages: frozenset[str] | None) -> bool:
        return languages is None or bool(self.languages & languages)


def _add_dependencies(
    findings: Findings,
    ctx: RecognizerContext,
    fd: FileDescriptor,
    deps: Dependencies,
    table: dict[str, ToolRule],
) -> None:
    for dep, version in deps.items():
        rule = table.get(dep)
        if rule is not None:
            findings.add(ctx, rule, fd, version)


# =============================================================================
# Mode (a): config files
# =============================================================================


def _load_sections(fd: FileDescriptor) -> set[str]:
    """Section names of a TOML (dotted, every level) or INI config file."""
    path = Path(fd.path)
    if fd.name.endswith(".toml"):
        return manifests.toml_section_paths(manifests.load_toml(path))
    parser = configparser.ConfigParser(interpolation=None, strict=False, allow_no_value=True)
    try:
        parser.read_string(manifests.read_text(path), source=fd.rel_path)
    except configparser.Error as e:
        raise ManifestError(path, f"invalid INI: {e}") from e
    return set(parser.sections())


def _recognize_config_files(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.files:
        rules = [r for r in catalog.config_rules_for(fd.name) if ctx.in_scope(r.tool.language)]
        sections: set[str] | None = None
        if any(r.section is not None for r in rules):
            try:
                sections = _load_sections(fd)
            except ManifestError as e:
                findings.warn(fd, e.reason)
        for rule in rules:
            if rule.section is not None and (sections is None or rule.section not in sections):
                continue
            findings.add(ctx, rule.tool, fd)
    return findings


# =============================================================================
# Mode (b): manifests
# =============================================================================


def _recognize_package_json(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.named(catalog.PACKAGE_JSON):
        try:
            data = manifests.load_json(Path(fd.path))
        except ManifestError as e:
            findings.warn(fd, e.reason)
            continue
        deps = manifests.package_json_dependencies(data)
        _add_dependencies(findings, ctx, fd, deps, catalog.NPM_TOOLS)
    return findings


def _recognize_python_manifests(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.files:
        try:
            if fd.name == catalog.PYPROJECT:
                deps = manifests.pyproject_dependencies(manifests.load_toml(Path(fd.path)))
            elif catalog.is_requirements_file(fd.name):
                deps = manifests.requirements_dependencies(manifests.read_text(Path(fd.path)))
            else:
                continue
        except ManifestError as e:
            findings.warn(fd, e.reason)
            continue
        _add_dependencies(findings, ctx, fd, deps, catalog.PYTHON_TOOLS)
    return findings


def _recognize_go_mod(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.named(catalog.GO_MOD):
        try:
            text = manifests.read_text(Path(fd.path))
        except ManifestError as e:
            findings.warn(fd, e.reason)
            continue
        for module, version in manifests.go_mod_dependencies(text).items():
            if (rule := catalog.lookup_go_module(module)) is not None:
                findings.add(ctx, rule, fd, version)
    return findings


def _recognize_cargo(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.named(catalog.CARGO_TOML):
        try:
            data = manifests.load_toml(Path(fd.path))
        except ManifestError as e:
            findings.warn(fd, e.reason)
            continue
        findings.add(ctx, catalog.CARGO_BUILD, fd)
        _add_dependencies(findings, ctx, fd, manifests.cargo_dependencies(data), catalog.CARGO_TOOLS)
    return findings


def _recognize_gemfile(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.named(catalog.GEMFILE):
        try:
            text = manifests.read_text(Path(fd.path))
        except ManifestError as e:
            findings.warn(fd, e.reason)
            continue
        _add_dependencies(findings, ctx, fd, manifests.gemfile_dependencies(text), catalog.GEM_TOOLS)
    return findings


def _recognize_maven(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.named(catalog.POM_XML):
        try:
            root = manifests.load_xml(Path(fd.path))
        except ManifestError as e:
            findings.warn(fd, e.reason)
            continue
        findings.add(ctx, catalog.MAVEN_BUILD, fd)
        _add_dependencies(findings, ctx, fd, manifests.pom_dependencies(root), catalog.JVM_TOOLS)
    return findings


def _recognize_gradle(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.files:
        if fd.name not in catalog.GRADLE_BUILD_FILES:
            continue
        try:
            text = manifests.read_text(Path(fd.path))
        except ManifestError as e:
            findings.warn(fd, e.reason)
            continue
        findings.add(ctx, catalog.GRADLE_BUILD, fd)
        _add_dependencies(findings, ctx, fd, manifests.gradle_dependencies(text), catalog.JVM_TOOLS)
    return findings


# =============================================================================
# Built-in test frameworks
# =============================================================================

GO_TESTING = ToolRule("testing", FrameworkType.TEST, "Go")
PYTHON_UNITTEST = ToolRule("unittest", FrameworkType.TEST, "Python")


def _recognize_go_testing(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.files:
        if fd.ext == ".go" and is_test_file(fd.name, "Go"):
            findings.add(ctx, GO_TESTING, fd)
            break
    return findings


def _recognize_python_unittest(ctx: RecognizerContext) -> Findings:
    findings = Findings()
    for fd in ctx.files:
        if fd.ext != ".py" or not is_test_file(fd.name, "Python"):
            continue
        try:
            head = manifests.read_text(Path(fd.path), limit=manifests.MAX_READ_BYTES)
        except ManifestError as e:
            findings.warn(fd, e.reason)
            continue
        if _UNITTEST_IMPORT_RE.search(head):
            findings.add(ctx, PYTHON_UNITTEST, fd)
            break
    return findings


_CATALOG_LANGUAGES = frozenset(
    {"Python", "Go", "Rust", "Ruby"} | JS_FAMILY | JVM_FAMILY
)

RECOGNIZERS: tuple[Recognizer, ...] = (
    Recognizer("config_files", _CATALOG_LANGUAGES, _recognize_config_files),
    Recognizer("package_json", JS_FAMILY, _recognize_package_json),
    Recognizer("python_manifests", frozenset({"Python"}), _recognize_python_manifests),
    Recognizer("go_mod", frozenset({"Go"}), _recognize_go_mod),
    Recognizer("cargo", frozenset({"Rust"}), _recognize_cargo),
    Recognizer("gemfile", frozenset({"Ruby"}), _recognize_gemfile),
    Recognizer("maven", JVM_FAMILY, _recognize_maven),
    Recognizer("gradle", JVM_FAMILY, _recognize_gradle),
    Recognizer("go_testing", frozenset({"Go"}), _recognize_go_testing),
    Recognizer("python_unittest", frozenset({"Python"}), _recognize_python_unittest),
)


# =============================================================================
# Merging and detection
# =============================================================================


class FrameworkCatalog:
    """Accumulates detections keyed by (name, language, type).

    Evidence paths from repeated detections are appended to the first entry;
    the first known version wins.
    """

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str, FrameworkType], tuple[list[str], str | None]] = {}

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, framework: Framework) -> None:
        key = framework.key
        if key not in self._entries:
            self._entries[key] = (list(dict.fromkeys(framework.config_files)), framework.version)
            return
        paths, version = self._entries[key]
        for path in framework.config_files:
            if path not in paths:
                paths.append(path)
        if version is None and framework.version is not None:
            self._entries[key] = (paths, framework.version)

    def extend(self, frameworks: Iterable[Framework]) -> None:
        for fw in frameworks:
            self.add(fw)

    def frameworks(self) -> list[Framework]:
        """Merged entries ordered by type, then language, then name."""
        result = [
            Framework(
                name=name,
                language=language,
                type=type_,
                config_files=tuple(paths),
                version=version,
            )
            for (name, language, type_), (paths, version) in self._entries.items()
        ]
        result.sort(key=lambda fw: (fw.type.order, fw.language, fw.name))
        return result


@dataclass(frozen=True, slots=True)
class FrameworkDetectionResult:
    frameworks: tuple[Framework, ...] = ()
    warnings: tuple[DiscoveryWarning, ...] = ()


def _language_names(languages: Iterable[str | LanguageInfo] | None) -> frozenset[str] | None:
    if languages is None:
        return None
    return frozenset(lang.name if isinstance(lang, LanguageInfo) else lang for lang in languages)


class FrameworkDetector:
    """Detect tools from config files and manifests anywhere in the tree.

    Args:
        root: Repository root.
        exclude_patterns: Passed to the walker when ``detect`` has to gather
            evidence itself.
        include_hidden: Passed to the walker, as above.
        recognizers: Ordered recognizers to run. Defaults to RECOGNIZERS.
        cancel_event: Checked before every recognizer.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        exclude_patterns: Sequence[str] | None = None,
        include_hidden: bool = False,
        recognizers: Sequence[Recognizer] = RECOGNIZERS,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.exclude_patterns = exclude_patterns
        self.include_hidden = include_hidden
        self.recognizers = tuple(recognizers)
        self.cancel_event = cancel_event

    def detect(
        self,
        languages: Iterable[str | LanguageInfo] | None = None,
        files: Iterable[FileDescriptor] | None = None,
    ) -> FrameworkDetectionResult:
        """Run every applicable recognizer and merge their findings.

        Args:
            languages: Languages present in the repository. Recognizers for
                absent languages are skipped. ``None`` runs all of them.
            files: Walked files. Only evidence candidates are kept. When
                omitted the root is walked again.
        """
        if files is None:
            walker = TreeWalker(
                self.root,
                self.exclude_patterns,
                include_hidden=self.include_hidden,
                cancel_event=self.cancel_event,
            )
            files = walker.walk()
        ctx = RecognizerContext(
            root=self.root,
            files=tuple(fd for fd in files if is_evidence_candidate(fd)),
            languages=_language_names(languages),
        )

        merged = FrameworkCatalog()
        warnings: list[DiscoveryWarning] = []
        for recognizer in self.recognizers:
            if self.cancel_event is not None and self.cancel_event.is_set():
                raise DiscoveryError.cancelled(str(self.root))
            if not recognizer.applies_to(ctx.languages):
                continue
            try:
                findings = recognizer.run(ctx)
            except Exception as e:  # noqa: BLE001
                log.warning("framework_recognizer_failed", recognizer=recognizer.name, error=str(e))
                warnings.append(
                    DiscoveryWarning(
                        component=COMPONENT,
                        message=f"recognizer {recognizer.name} failed: {e}",
                    )
                )
                continue
            merged.extend(findings.frameworks)
            warnings.extend(findings.warnings)

        log.debug("frameworks_detected", count=len(merged), candidates=len(ctx.files))
        return FrameworkDetectionResult(frameworks=tuple(merged.frameworks()), warnings=tuple(warnings))
