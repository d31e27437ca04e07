"""Tests for discovery/frameworks.py module.

Covers:
- Config-file and manifest evidence
- Merging of repeated evidence into one entry
- Language attribution (JavaScript/TypeScript, JVM)
- Built-in test frameworks (Go testing, unittest)
- Warnings for malformed files and failing recognizers
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

from shipshape.discovery.frameworks import (
    RECOGNIZERS,
    Findings,
    FrameworkCatalog,
    FrameworkDetector,
    Recognizer,
    RecognizerContext,
)
from shipshape.discovery.models import Framework, FrameworkType

MakeRepo = Callable[[dict[str, str]], Path]


def detect(root: Path, languages: list[str] | None = None) -> dict[tuple[str, str], Framework]:
    result = FrameworkDetector(root).detect(languages=languages)
    return {(fw.name, fw.language): fw for fw in result.frameworks}


class TestGoRepository:
    """A minimal Go module."""

    def test_only_go_testing_detected(self, go_repo: Path) -> None:
        """An empty go.mod evidences no tool; the test file evidences testing."""
        result = FrameworkDetector(go_repo).detect(languages=["Go"])
        assert result.warnings == ()
        (fw,) = result.frameworks
        assert fw.name == "testing"
        assert fw.language == "Go"
        assert fw.type is FrameworkType.TEST
        assert fw.config_files == ("main_test.go",)

    def test_go_mod_requirements(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {
                "go.mod": (
                    "module example.com/app\n\ngo 1.22\n\n"
                    "require (\n"
                    "\tgithub.com/stretchr/testify v1.9.0\n"
                    "\tgithub.com/onsi/ginkgo/v2 v2.17.1 // indirect\n"
                    ")\n"
                ),
                "main.go": "",
                ".golangci.yml": "linters: {}\n",
            }
        )
        found = detect(root, ["Go"])
        assert found[("testify", "Go")].version == "v1.9.0"
        assert found[("ginkgo", "Go")].version == "v2.17.1"
        assert found[("golangci-lint", "Go")].type is FrameworkType.LINT


class TestJavaScript:
    """npm manifests and JS tool configs."""

    def test_config_and_manifest_merge_into_one_entry(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {
                "package.json": '{"devDependencies": {"jest": "^29.7.0", "eslint": "^9.0.0"}}',
                "jest.config.js": "module.exports = {};\n",
                "index.js": "",
            }
        )
        found = detect(root, ["JavaScript"])
        jest = found[("jest", "JavaScript")]
        assert jest.type is FrameworkType.TEST
        assert jest.version == "^29.7.0"
        assert set(jest.config_files) == {"jest.config.js", "package.json"}
        assert found[("eslint", "JavaScript")].type is FrameworkType.LINT

    def test_tsconfig_sibling_attributes_to_typescript(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {
                "package.json": '{"devDependencies": {"vitest": "1.6.0"}}',
                "tsconfig.json": "{}",
                "src/index.ts": "",
                "src/legacy.js": "",
            }
        )
        found = detect(root, ["JavaScript", "TypeScript"])
        assert ("vitest", "TypeScript") in found
        assert ("vitest", "JavaScript") not in found

    def test_typescript_only_repo_attributes_to_typescript(self, make_repo: MakeRepo) -> None:
        root = make_repo({"package.json": '{"devDependencies": {"prettier": "3"}}', "a.ts": ""})
        found = detect(root, ["TypeScript"])
        assert found[("prettier", "TypeScript")].type is FrameworkType.FORMAT

    def test_build_tools(self, make_repo: MakeRepo) -> None:
        root = make_repo({"package.json": '{"devDependencies": {"vite": "5.0.0"}}'})
        found = detect(root, ["JavaScript"])
        assert found[("vite", "JavaScript")].type is FrameworkType.BUILD

    def test_biome_is_linter_and_formatter(self, make_repo: MakeRepo) -> None:
        root = make_repo({"biome.json": "{}"})
        result = FrameworkDetector(root).detect(languages=["JavaScript"])
        assert {(fw.name, fw.type) for fw in result.frameworks} == {
            ("biome", FrameworkType.LINT),
            ("biome", FrameworkType.FORMAT),
        }

    def test_malformed_package_json_warns(self, make_repo: MakeRepo) -> None:
        root = make_repo({"package.json": "{not json", ".eslintrc.json": "{}"})
        result = FrameworkDetector(root).detect(languages=["JavaScript"])
        assert [fw.name for fw in result.frameworks] == ["eslint"]
        (warning,) = result.warnings
        assert warning.component == "frameworks"
        assert warning.path == "package.json"
        assert "invalid JSON" in warning.message


class TestPython:
    """Python configs and manifests."""

    def test_requirements_and_setup_cfg(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {
                "requirements-dev.txt": "pytest==8.2.0\n# comment\n-r requirements.txt\nMyPy>=1.0\n",
                "setup.cfg": "[metadata]\nname = demo\n\n[flake8]\nmax-line-length = 100\n",
                "app.py": "",
            }
        )
        found = detect(root, ["Python"])
        assert found[("pytest", "Python")].version == "==8.2.0"
        assert found[("mypy", "Python")].type is FrameworkType.LINT
        assert found[("flake8", "Python")].config_files == ("setup.cfg",)
        assert ("isort", "Python") not in found

    def test_tox_ini_sections(self, make_repo: MakeRepo) -> None:
        root = make_repo({"tox.ini": "[tox]\nenvlist = py312\n\n[pytest]\naddopts = -q\n"})
        found = detect(root, ["Python"])
        assert found[("tox", "Python")].type is FrameworkType.OTHER
        assert ("pytest", "Python") in found
        assert ("flake8", "Python") not in found

    def test_malformed_pyproject_warns_and_continues(self, make_repo: MakeRepo) -> None:
        root = make_repo({"pyproject.toml": "[tool.ruff\n", "pytest.ini": "[pytest]\n"})
        result = FrameworkDetector(root).detect(languages=["Python"])
        assert [fw.name for fw in result.frameworks] == ["pytest"]
        assert result.warnings
        assert all(w.path == "pyproject.toml" for w in result.warnings)

    def test_unittest_detected_from_imports(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {
                "tests/test_core.py": "import unittest\n\nclass T(unittest.TestCase):\n    pass\n",
                "core.py": "",
            }
        )
        found = detect(root, ["Python"])
        assert found[("unittest", "Python")].config_files == ("tests/test_core.py",)

    def test_plain_pytest_file_is_not_unittest(self, make_repo: MakeRepo) -> None:
        root = make_repo({"test_core.py": "def test_x():\n    assert True\n"})
        assert ("unittest", "Python") not in detect(root, ["Python"])


class TestOtherEcosystems:
    """Rust, Ruby and JVM manifests."""

    def test_cargo(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {
                "Cargo.toml": (
                    '[package]\nname = "app"\n\n[dev-dependencies]\n'
                    'proptest = "1.4"\ncriterion = { version = "0.5" }\n'
                ),
                "rustfmt.toml": "",
            }
        )
        found = detect(root, ["Rust"])
        assert found[("cargo", "Rust")].type is FrameworkType.BUILD
        assert found[("proptest", "Rust")].version == "1.4"
        assert found[("criterion", "Rust")].version == "0.5"
        assert found[("rustfmt", "Rust")].type is FrameworkType.FORMAT

    def test_gemfile(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {"Gemfile": "source 'https://rubygems.org'\ngem 'rspec', '~> 3.13'\ngem \"rubocop\"\n"}
        )
        found = detect(root, ["Ruby"])
        assert found[("rspec", "Ruby")].version == "~> 3.13"
        assert found[("rubocop", "Ruby")].type is FrameworkType.LINT

    def test_maven(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {
                "pom.xml": (
                    '<project xmlns="http://maven.apache.org/POM/4.0.0">'
                    "<artifactId>app</artifactId><dependencies><dependency>"
                    "<groupId>org.junit.jupiter</groupId><artifactId>junit-jupiter</artifactId>"
                    "<version>5.10.0</version></dependency></dependencies>"
                    "<build><plugins><plugin><artifactId>jacoco-maven-plugin</artifactId>"
                    "</plugin></plugins></build></project>"
                ),
            }
        )
        found = detect(root, ["Java"])
        assert found[("maven", "Java")].type is FrameworkType.BUILD
        assert found[("junit", "Java")].version == "5.10.0"
        assert found[("jacoco", "Java")].type is FrameworkType.COVERAGE

    def test_gradle_kotlin_attribution(self, make_repo: MakeRepo) -> None:
        """JVM tools are owned by Kotlin when no Java is present."""
        root = make_repo(
            {
                "build.gradle.kts": (
                    'plugins {\n    jacoco\n    id("com.diffplug.spotless") version "6.25.0"\n}\n'
                    'dependencies {\n    testImplementation("org.junit.jupiter:junit-jupiter:5.10.0")\n}\n'
                ),
                "src/Main.kt": "",
            }
        )
        found = detect(root, ["Kotlin"])
        assert found[("gradle", "Kotlin")].type is FrameworkType.BUILD
        assert found[("junit", "Kotlin")].version == "5.10.0"
        assert ("jacoco", "Kotlin") in found
        assert found[("spotless", "Kotlin")].type is FrameworkType.FORMAT


class TestScopeAndExclusion:
    """Languages and exclusion limit what is reported."""

    def test_absent_language_tools_not_reported(self, make_repo: MakeRepo) -> None:
        root = make_repo({"pytest.ini": "[pytest]\n", "main.go": ""})
        assert detect(root, ["Go"]) == {}

    def test_excluded_directories_contribute_nothing(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {
                "node_modules/dep/package.json": '{"devDependencies": {"mocha": "10"}}',
                "node_modules/dep/jest.config.js": "",
                "index.js": "",
            }
        )
        assert detect(root, ["JavaScript"]) == {}

    def test_nested_evidence_is_found(self, make_repo: MakeRepo) -> None:
        root = make_repo({"services/api/pytest.ini": "[pytest]\n"})
        found = detect(root, ["Python"])
        assert found[("pytest", "Python")].config_files == ("services/api/pytest.ini",)


class TestOrderingAndMerging:
    """FrameworkCatalog behaviour."""

    def test_sorted_by_type_language_name(self, make_repo: MakeRepo) -> None:
        root = make_repo(
            {
                "pyproject.toml": "[tool.black]\n[tool.ruff]\n[tool.pytest.ini_options]\n",
                ".golangci.yml": "",
                "main_test.go": "",
            }
        )
        result = FrameworkDetector(root).detect(languages=["Go", "Python"])
        assert [(fw.type, fw.language, fw.name) for fw in result.frameworks] == [
            (FrameworkType.TEST, "Go", "testing"),
            (FrameworkType.TEST, "Python", "pytest"),
            (FrameworkType.LINT, "Go", "golangci-lint"),
            (FrameworkType.LINT, "Python", "ruff"),
            (FrameworkType.FORMAT, "Python", "black"),
        ]

    def test_first_version_wins_and_paths_deduplicate(self) -> None:
        catalog = FrameworkCatalog()
        catalog.add(Framework("jest", "JavaScript", FrameworkType.TEST, ("jest.config.js",)))
        catalog.add(Framework("jest", "JavaScript", FrameworkType.TEST, ("a/package.json",), "29"))
        catalog.add(Framework("jest", "JavaScript", FrameworkType.TEST, ("b/package.json",), "28"))
        catalog.add(Framework("jest", "JavaScript", FrameworkType.TEST, ("jest.config.js",)))
        (jest,) = catalog.frameworks()
        assert jest.version == "29"
        assert jest.config_files == ("jest.config.js", "a/package.json", "b/package.json")


class TestRecognizerIsolation:
    """A failing recognizer does not affect the others."""

    def test_failure_becomes_warning(self, make_repo: MakeRepo) -> None:
        root = make_repo({"pytest.ini": "[pytest]\n"})

        def explode(ctx: RecognizerContext) -> Findings:
            raise RuntimeError("kaboom")

        broken = Recognizer("broken", frozenset({"Python"}), explode)
        detector = FrameworkDetector(root, recognizers=(broken, *RECOGNIZERS))
        result = detector.detect(languages=["Python"])
        assert [fw.name for fw in result.frameworks] == ["pytest"]
        (warning,) = result.warnings
        assert warning.message == "recognizer broken failed: kaboom"
