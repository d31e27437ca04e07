"""Tests for discovery/engine.py module.

Covers:
- End-to-end discovery of representative repositories
- DiscoveryOptions.from_config overrides
- Deadline, cancellation and root errors
- Isolation of failing tasks
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from shipshape.config.models import DiscoveryConfig
from shipshape.core.errors import DiscoveryError, ErrorCode, InternalError
from shipshape.discovery import frameworks
from shipshape.discovery.engine import DiscoveryEngine, DiscoveryOptions, discover
from shipshape.discovery.frameworks import Findings, Recognizer, RecognizerContext
from shipshape.discovery.models import FileDescriptor, FrameworkType, WorkspaceFormat
from shipshape.discovery.walker import TreeWalker
from shipshape.discovery.workspaces import WorkspaceDetector

MakeRepo = Callable[[dict[str, str]], Path]


class TestDiscoverRepositories:
    """Representative repositories end to end."""

    def test_single_language_go_module(self, go_repo: Path) -> None:
        repo = discover(go_repo)

        assert repo.root == str(go_repo.resolve())
        assert repo.total_files == 3
        (go,) = repo.languages
        assert (go.name, go.percentage, go.file_count, go.is_primary) == ("Go", 100.0, 2, True)
        assert go.test_frameworks == ("testing",)
        (fw,) = repo.frameworks
        assert (fw.name, fw.language, fw.type) == ("testing", "Go", FrameworkType.TEST)
        assert repo.workspace is None
        assert not repo.is_monorepo
        assert repo.warnings == ()
        assert repo.primary_language() == "Go"

    def test_npm_monorepo(self, npm_monorepo: Path) -> None:
        repo = discover(npm_monorepo)

        assert repo.is_monorepo
        assert repo.workspace is not None
        assert repo.workspace.format is WorkspaceFormat.NPM
        assert [p.name for p in repo.workspace.packages] == ["@acme/a", "@acme/b"]
        assert {lang.name for lang in repo.languages} == {"JavaScript", "TypeScript"}

    def test_no_source_files(self, make_repo: MakeRepo) -> None:
        root = make_repo({"README.md": "# docs\n", "LICENSE": "MIT\n"})
        repo = discover(root)

        assert repo.total_files == 2
        assert repo.languages == ()
        assert repo.frameworks == ()
        assert repo.primary_language() == "Unknown"

    def test_excluded_tree_is_not_counted(self, make_repo: MakeRepo) -> None:
        files = {f"node_modules/a/b/c/f{i}.js": "" for i in range(300)}
        files.update({f"src/f{i}.py": "" for i in range(5)})
        files["node_modules/a/package.json"] = '{"devDependencies": {"jest": "29"}}'
        repo = discover(make_repo(files))

        assert repo.total_files == 5
        assert [lang.name for lang in repo.languages] == ["Python"]
        assert repo.frameworks == ()
        assert "node_modules" in repo.excluded_paths

    def test_results_are_deterministic(self, npm_monorepo: Path) -> None:
        first = discover(npm_monorepo)
        second = discover(npm_monorepo)
        assert first.to_dict() == second.to_dict()


class TestDiscoveryOptions:
    """Options built from configuration."""

    def test_from_config_copies_fields(self) -> None:
        config = DiscoveryConfig(exclude_patterns=["gen"], timeout_sec=5, primary_threshold=20)
        options = DiscoveryOptions.from_config(config)
        assert options.exclude_patterns == ("gen",)
        assert options.timeout_sec == 5.0
        assert options.primary_threshold == 20.0

    def test_none_overrides_are_ignored(self) -> None:
        options = DiscoveryOptions.from_config(
            DiscoveryConfig(include_hidden=True),
            include_hidden=None,
            exclude_patterns=None,
            timeout_sec=2.0,
        )
        assert options.include_hidden is True
        assert options.timeout_sec == 2.0

    def test_exclude_override_becomes_tuple(self) -> None:
        options = DiscoveryOptions.from_config(DiscoveryConfig(), exclude_patterns=["a", "b"])
        assert options.exclude_patterns == ("a", "b")

    def test_custom_excludes_apply(self, make_repo: MakeRepo) -> None:
        root = make_repo({"generated/a.py": "", "b.go": ""})
        repo = DiscoveryEngine(DiscoveryOptions(exclude_patterns=("generated",))).discover(root)
        assert [lang.name for lang in repo.languages] == ["Go"]
        assert repo.excluded_paths == ("generated",)


class TestFailures:
    """Fatal errors and isolated failures."""

    def test_missing_root_raises(self, tmp_path: Path) -> None:
        with pytest.raises(DiscoveryError) as exc_info:
            discover(tmp_path / "nope")
        assert exc_info.value.code == ErrorCode.DISCOVERY_ROOT_NOT_FOUND
        assert "Directory does not exist" in exc_info.value.message

    def test_cancelled_before_start(self, go_repo: Path) -> None:
        cancel = threading.Event()
        cancel.set()
        with pytest.raises(DiscoveryError) as exc_info:
            discover(go_repo, cancel_event=cancel)
        assert exc_info.value.code == ErrorCode.DISCOVERY_CANCELLED

    def test_deadline_exceeded_raises_timeout(self, go_repo: Path) -> None:
        """A run past its deadline fails as a whole and signals workers to stop."""
        cancel = threading.Event()

        def stall(ctx: RecognizerContext) -> Findings:
            cancel.wait(5)
            return Findings()

        slow = Recognizer("slow", frozenset({"Go"}), stall)
        engine = DiscoveryEngine(
            DiscoveryOptions(timeout_sec=0.2),
            framework_recognizers=(slow, *frameworks.RECOGNIZERS),
        )

        with pytest.raises(DiscoveryError) as exc_info:
            engine.discover(go_repo, cancel_event=cancel)

        assert exc_info.value.code == ErrorCode.DISCOVERY_TIMEOUT
        assert exc_info.value.retryable
        assert cancel.is_set()

    def test_failing_task_becomes_warning(
        self, npm_monorepo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        def boom(self: WorkspaceDetector) -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr(WorkspaceDetector, "detect", boom)
        repo = discover(npm_monorepo)

        assert repo.workspace is None
        assert repo.languages
        (warning,) = repo.warnings
        assert warning.component == "workspaces"
        assert warning.message == "workspaces failed: boom"

    def test_warnings_ordered_by_component(
        self, make_repo: MakeRepo, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        root = make_repo({"package.json": "{broken", "index.js": ""})

        def boom(self: WorkspaceDetector) -> None:
            raise RuntimeError("boom")

        monkeypatch.setattr(WorkspaceDetector, "detect", boom)
        repo = discover(root)
        assert [w.component for w in repo.warnings] == ["frameworks", "workspaces"]

    def test_walk_failure_is_internal_error(
        self, go_repo: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        """A broken walk leaves nothing to report, so the run fails."""

        def broken(self: TreeWalker) -> Iterator[FileDescriptor]:
            raise RuntimeError("disk on fire")
            yield  # pragma: no cover

        monkeypatch.setattr(TreeWalker, "walk", broken)

        with pytest.raises(InternalError) as exc_info:
            discover(go_repo)

        assert exc_info.value.code == ErrorCode.INTERNAL_ERROR
        assert "disk on fire" in exc_info.value.message

    def test_injected_recognizers_drive_language_hints(self, make_repo: MakeRepo) -> None:
        """Hints come from the same recognizers as the framework list."""
        root = make_repo({"app.py": "", "pytest.ini": "[pytest]\n"})
        without_config_files = tuple(
            r for r in frameworks.RECOGNIZERS if r.name != "config_files"
        )

        default = discover(root)
        narrowed = DiscoveryEngine(
            DiscoveryOptions(), framework_recognizers=without_config_files
        ).discover(root)

        assert default.languages[0].test_frameworks == ("pytest",)
        (python,) = narrowed.languages
        assert "pytest" not in python.test_frameworks
        assert "pytest" not in {fw.name for fw in narrowed.frameworks}


class TestAsync:
    """discover_async runs inside an existing event loop."""

    @pytest.mark.asyncio
    async def test_discover_async(self, go_repo: Path) -> None:
        repo = await DiscoveryEngine().discover_async(go_repo)
        assert repo.primary_language() == "Go"
        assert repo.total_files == 3
