"""Static lookup tables mapping evidence to tools.

Two kinds of evidence are catalogued:
- Config files recognised by base name (fnmatch, case-sensitive), optionally
  requiring a section inside the file ("pyproject.toml" + "tool.ruff").
- Dependency names found in a manifest, per ecosystem.

New tools are added by extending these tables; nothing is registered at
runtime. Language values name the owning language; JavaScript entries are
re-attributed to TypeScript by the detector when the evidence calls for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from fnmatch import fnmatchcase

from shipshape.discovery.models import FrameworkType

T = FrameworkType

JS_FAMILY = frozenset({"JavaScript", "TypeScript"})
JVM_FAMILY = frozenset({"Java", "Kotlin", "Scala"})


@dataclass(frozen=True, slots=True)
class ToolRule:
    """A tool a piece of evidence points at."""

    name: str
    type: FrameworkType
    language: str


@dataclass(frozen=True, slots=True)
class ConfigRule:
    """A config file pattern, optionally requiring a section inside it.

    ``section`` is a dotted TOML path for .toml files or an INI section name
    for .cfg/.ini files.
    """

    pattern: str
    tool: ToolRule
    section: str | None = None

    def matches(self, name: str) -> bool:
        return fnmatchcase(name, self.pattern)


def _js(name: str, type_: FrameworkType) -> ToolRule:
    return ToolRule(name, type_, "JavaScript")


def _py(name: str, type_: FrameworkType) -> ToolRule:
    return ToolRule(name, type_, "Python")


def _go(name: str, type_: FrameworkType) -> ToolRule:
    return ToolRule(name, type_, "Go")


def _rs(name: str, type_: FrameworkType) -> ToolRule:
    return ToolRule(name, type_, "Rust")


def _rb(name: str, type_: FrameworkType) -> ToolRule:
    return ToolRule(name, type_, "Ruby")


def _jvm(name: str, type_: FrameworkType) -> ToolRule:
    return ToolRule(name, type_, "Java")


# =============================================================================
# Config files
# =============================================================================

CONFIG_RULES: tuple[ConfigRule, ...] = (
    # -------------------------------------------------------------------------
    # JavaScript / TypeScript
    # -------------------------------------------------------------------------
    ConfigRule("jest.config.*", _js("jest", T.TEST)),
    ConfigRule("vitest.config.*", _js("vitest", T.TEST)),
    ConfigRule(".mocharc*", _js("mocha", T.TEST)),
    ConfigRule("karma.conf.js", _js("karma", T.TEST)),
    ConfigRule("playwright.config.*", _js("playwright", T.TEST)),
    ConfigRule("cypress.config.*", _js("cypress", T.TEST)),
    ConfigRule(".nycrc*", _js("nyc", T.COVERAGE)),
    ConfigRule(".c8rc*", _js("c8", T.COVERAGE)),
    ConfigRule(".eslintrc*", _js("eslint", T.LINT)),
    ConfigRule("eslint.config.*", _js("eslint", T.LINT)),
    ConfigRule(".prettierrc*", _js("prettier", T.FORMAT)),
    ConfigRule("prettier.config.*", _js("prettier", T.FORMAT)),
    ConfigRule("biome.json", _js("biome", T.LINT)),
    ConfigRule("biome.json", _js("biome", T.FORMAT)),
    # -------------------------------------------------------------------------
    # Python
    # -------------------------------------------------------------------------
    ConfigRule("pytest.ini", _py("pytest", T.TEST)),
    ConfigRule("conftest.py", _py("pytest", T.TEST)),
    ConfigRule("tox.ini", _py("tox", T.OTHER)),
    ConfigRule("tox.ini", _py("pytest", T.TEST), section="pytest"),
    ConfigRule("tox.ini", _py("flake8", T.LINT), section="flake8"),
    ConfigRule(".coveragerc", _py("coverage.py", T.COVERAGE)),
    ConfigRule(".pylintrc", _py("pylint", T.LINT)),
    ConfigRule("pylintrc", _py("pylint", T.LINT)),
    ConfigRule(".flake8", _py("flake8", T.LINT)),
    ConfigRule("ruff.toml", _py("ruff", T.LINT)),
    ConfigRule(".ruff.toml", _py("ruff", T.LINT)),
    ConfigRule("mypy.ini", _py("mypy", T.LINT)),
    ConfigRule(".isort.cfg", _py("isort", T.FORMAT)),
    ConfigRule("setup.cfg", _py("pytest", T.TEST), section="tool:pytest"),
    ConfigRule("setup.cfg", _py("coverage.py", T.COVERAGE), section="coverage:run"),
    ConfigRule("setup.cfg", _py("flake8", T.LINT), section="flake8"),
    ConfigRule("setup.cfg", _py("mypy", T.LINT), section="mypy"),
    ConfigRule("setup.cfg", _py("isort", T.FORMAT), section="isort"),
    ConfigRule("pyproject.toml", _py("pytest", T.TEST), section="tool.pytest"),
    ConfigRule("pyproject.toml", _py("coverage.py", T.COVERAGE), section="tool.coverage"),
    ConfigRule("pyproject.toml", _py("ruff", T.LINT), section="tool.ruff"),
    ConfigRule("pyproject.toml", _py("mypy", T.LINT), section="tool.mypy"),
    ConfigRule("pyproject.toml", _py("pylint", T.LINT), section="tool.pylint"),
    ConfigRule("pyproject.toml", _py("black", T.FORMAT), section="tool.black"),
    ConfigRule("pyproject.toml", _py("isort", T.FORMAT), section="tool.isort"),
    # -------------------------------------------------------------------------
    # Go
    # -------------------------------------------------------------------------
    ConfigRule(".golangci.yml", _go("golangci-lint", T.LINT)),
    ConfigRule(".golangci.yaml", _go("golangci-lint", T.LINT)),
    ConfigRule(".golangci.toml", _go("golangci-lint", T.LINT)),
    ConfigRule(".golangci.json", _go("golangci-lint", T.LINT)),
    # -------------------------------------------------------------------------
    # Ruby
    # -------------------------------------------------------------------------
    ConfigRule(".rubocop.yml", _rb("rubocop", T.LINT)),
    ConfigRule(".rspec", _rb("rspec", T.TEST)),
    # -------------------------------------------------------------------------
    # Rust
    # -------------------------------------------------------------------------
    ConfigRule("rustfmt.toml", _rs("rustfmt", T.FORMAT)),
    ConfigRule(".rustfmt.toml", _rs("rustfmt", T.FORMAT)),
    ConfigRule("clippy.toml", _rs("clippy", T.LINT)),
    ConfigRule(".clippy.toml", _rs("clippy", T.LINT)),
)

# =============================================================================
# Manifest dependencies, per ecosystem
# =============================================================================

NPM_TOOLS: dict[str, ToolRule] = {
    # Test
    "jest": _js("jest", T.TEST),
    "@jest/core": _js("jest", T.TEST),
    "mocha": _js("mocha", T.TEST),
    "vitest": _js("vitest", T.TEST),
    "jasmine": _js("jasmine", T.TEST),
    "karma": _js("karma", T.TEST),
    "ava": _js("ava", T.TEST),
    "@playwright/test": _js("playwright", T.TEST),
    "cypress": _js("cypress", T.TEST),
    # Coverage
    "nyc": _js("nyc", T.COVERAGE),
    "c8": _js("c8", T.COVERAGE),
    "istanbul": _js("istanbul", T.COVERAGE),
    "@vitest/coverage-v8": _js("c8", T.COVERAGE),
    "@vitest/coverage-istanbul": _js("istanbul", T.COVERAGE),
    # Lint
    "eslint": _js("eslint", T.LINT),
    "tslint": _js("tslint", T.LINT),
    "@typescript-eslint/parser": _js("eslint", T.LINT),
    "@biomejs/biome": _js("biome", T.LINT),
    "stylelint": _js("stylelint", T.LINT),
    # Format
    "prettier": _js("prettier", T.FORMAT),
    # Build
    "webpack": _js("webpack", T.BUILD),
    "vite": _js("vite", T.BUILD),
    "rollup": _js("rollup", T.BUILD),
    "esbuild": _js("esbuild", T.BUILD),
}

PYTHON_TOOLS: dict[str, ToolRule] = {
    "pytest": _py("pytest", T.TEST),
    "nose2": _py("nose2", T.TEST),
    "hypothesis": _py("hypothesis", T.TEST),
    "coverage": _py("coverage.py", T.COVERAGE),
    "pytest-cov": _py("coverage.py", T.COVERAGE),
    "black": _py("black", T.FORMAT),
    "isort": _py("isort", T.FORMAT),
    "yapf": _py("yapf", T.FORMAT),
    "autopep8": _py("autopep8", T.FORMAT),
    "ruff": _py("ruff", T.LINT),
    "pylint": _py("pylint", T.LINT),
    "flake8": _py("flake8", T.LINT),
    "mypy": _py("mypy", T.LINT),
    "tox": _py("tox", T.OTHER),
    "nox": _py("nox", T.OTHER),
}

# Matched as module path prefixes
GO_TOOLS: dict[str, ToolRule] = {
    "github.com/stretchr/testify": _go("testify", T.TEST),
    "github.com/golang/mock": _go("gomock", T.TEST),
    "go.uber.org/mock": _go("gomock", T.TEST),
    "github.com/onsi/ginkgo": _go("ginkgo", T.TEST),
    "github.com/onsi/gomega": _go("gomega", T.TEST),
    "github.com/golangci/golangci-lint": _go("golangci-lint", T.LINT),
}

CARGO_TOOLS: dict[str, ToolRule] = {
    "proptest": _rs("proptest", T.TEST),
    "rstest": _rs("rstest", T.TEST),
    "mockall": _rs("mockall", T.TEST),
    "criterion": _rs("criterion", T.OTHER),
}

GEM_TOOLS: dict[str, ToolRule] = {
    "rspec": _rb("rspec", T.TEST),
    "rspec-core": _rb("rspec", T.TEST),
    "rspec-rails": _rb("rspec", T.TEST),
    "minitest": _rb("minitest", T.TEST),
    "cucumber": _rb("cucumber", T.TEST),
    "simplecov": _rb("simplecov", T.COVERAGE),
    "rubocop": _rb("rubocop", T.LINT),
    "standard": _rb("standard", T.LINT),
}

# Maven artifact ids and Gradle artifact names / plugin ids
JVM_TOOLS: dict[str, ToolRule] = {
    "junit": _jvm("junit", T.TEST),
    "junit-jupiter": _jvm("junit", T.TEST),
    "junit-jupiter-api": _jvm("junit", T.TEST),
    "testng": _jvm("testng", T.TEST),
    "mockito-core": _jvm("mockito", T.TEST),
    "jacoco": _jvm("jacoco", T.COVERAGE),
    "jacoco-maven-plugin": _jvm("jacoco", T.COVERAGE),
    "checkstyle": _jvm("checkstyle", T.LINT),
    "maven-checkstyle-plugin": _jvm("checkstyle", T.LINT),
    "spotbugs": _jvm("spotbugs", T.LINT),
    "spotbugs-maven-plugin": _jvm("spotbugs", T.LINT),
    "com.github.spotbugs": _jvm("spotbugs", T.LINT),
    "spotless-maven-plugin": _jvm("spotless", T.FORMAT),
    "com.diffplug.spotless": _jvm("spotless", T.FORMAT),
}

CARGO_BUILD = _rs("cargo", T.BUILD)
MAVEN_BUILD = _jvm("maven", T.BUILD)
GRADLE_BUILD = _jvm("gradle", T.BUILD)

# =============================================================================
# Manifest file names
# =============================================================================

PACKAGE_JSON = "package.json"
PYPROJECT = "pyproject.toml"
REQUIREMENTS_PATTERN = "requirements*.txt"
GO_MOD = "go.mod"
CARGO_TOML = "Cargo.toml"
GEMFILE = "Gemfile"
POM_XML = "pom.xml"
GRADLE_BUILD_FILES = ("build.gradle", "build.gradle.kts")
TSCONFIG = "tsconfig.json"

MANIFEST_NAMES: frozenset[str] = frozenset(
    {PACKAGE_JSON, PYPROJECT, GO_MOD, CARGO_TOML, GEMFILE, POM_XML, *GRADLE_BUILD_FILES}
)


def config_rules_for(name: str) -> list[ConfigRule]:
    """Config rules whose pattern matches a base name."""
    return [rule for rule in CONFIG_RULES if rule.matches(name)]


def is_requirements_file(name: str) -> bool:
    return fnmatchcase(name, REQUIREMENTS_PATTERN)


def is_manifest(name: str) -> bool:
    return name in MANIFEST_NAMES or is_requirements_file(name)


def lookup_go_module(module: str) -> ToolRule | None:
    for prefix, rule in GO_TOOLS.items():
        if module == prefix or module.startswith(prefix + "/"):
            return rule
    return None
