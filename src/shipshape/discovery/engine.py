"""Discovery orchestration.

One pass walks the tree exactly once, folding every file into the language
tally and keeping the framework evidence candidates. Language summarisation,
framework detection and workspace detection then run as concurrent tasks in
worker threads and are merged into a single Repository.

Failure policy:
- Root errors, cancellation and the overall deadline abort the run, as does
  an unexpected failure of the walk itself (InternalError).
- Any other failure inside one of the three tasks becomes a warning and that
  part of the result is left empty.
"""

from __future__ import annotations

import asyncio
import threading
import time
from collections.abc import Sequence
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

import structlog

from shipshape.config.models import (
    DEFAULT_PRIMARY_THRESHOLD,
    DEFAULT_TIMEOUT_SEC,
    DiscoveryConfig,
)
from shipshape.core.errors import DiscoveryError, InternalError
from shipshape.core.excludes import DEFAULT_EXCLUDE_PATTERNS
from shipshape.core.logging import bind_run_id, unbind_run_id
from shipshape.discovery import frameworks, workspaces
from shipshape.discovery.classifier import LanguageClassifier, LanguageTally
from shipshape.discovery.frameworks import (
    FrameworkDetectionResult,
    FrameworkDetector,
    is_evidence_candidate,
)
from shipshape.discovery.models import (
    DiscoveryWarning,
    FileDescriptor,
    LanguageInfo,
    Repository,
)
from shipshape.discovery.walker import TreeWalker
from shipshape.discovery.workspaces import WorkspaceDetectionResult, WorkspaceDetector

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class DiscoveryOptions:
    """Tunables for one discovery run."""

    exclude_patterns: tuple[str, ...] = DEFAULT_EXCLUDE_PATTERNS
    include_hidden: bool = False
    primary_threshold: float = DEFAULT_PRIMARY_THRESHOLD
    min_presence: float = 1.0
    timeout_sec: float = DEFAULT_TIMEOUT_SEC
    workspace_max_depth: int = workspaces.DEFAULT_MEMBER_DEPTH

    @classmethod
    def from_config(cls, config: DiscoveryConfig, **overrides: Any) -> DiscoveryOptions:
        """Build options from the ``discovery`` config section.

        ``None`` overrides are ignored so CLI flags left unset fall through.
        """
        options = cls(
            exclude_patterns=tuple(config.exclude_patterns),
            include_hidden=config.include_hidden,
            primary_threshold=config.primary_threshold,
            min_presence=config.min_presence,
            timeout_sec=config.timeout_sec,
            workspace_max_depth=config.workspace_max_depth,
        )
        applied = {key: value for key, value in overrides.items() if value is not None}
        if "exclude_patterns" in applied:
            applied["exclude_patterns"] = tuple(applied["exclude_patterns"])
        return replace(options, **applied) if applied else options


class DiscoveryEngine:
    """Runs the walker, classifier and detectors and merges their results.

    Recognizer registries are injected rather than read from module state, so
    callers (and tests) can run with a narrower or extended catalog.

    Usage::

        engine = DiscoveryEngine(DiscoveryOptions(timeout_sec=10))
        repo = engine.discover("path/to/repo")
        print(repo.primary_language(), repo.is_monorepo)
    """

    def __init__(
        self,
        options: DiscoveryOptions | None = None,
        *,
        framework_recognizers: Sequence[frameworks.Recognizer] = frameworks.RECOGNIZERS,
        workspace_recognizers: Sequence[tuple[str, workspaces.Recognizer]] = workspaces.RECOGNIZERS,
    ) -> None:
        self.options = options or DiscoveryOptions()
        self.framework_recognizers = tuple(framework_recognizers)
        self.workspace_recognizers = tuple(workspace_recognizers)

    def discover(
        self, root: Path | str, *, cancel_event: threading.Event | None = None
    ) -> Repository:
        """Synchronous wrapper around ``discover_async``."""
        return asyncio.run(self.discover_async(root, cancel_event=cancel_event))

    async def discover_async(
        self, root: Path | str, *, cancel_event: threading.Event | None = None
    ) -> Repository:
        """Discover a repository within the configured deadline.

        Args:
            root: Directory to inspect. Must exist.
            cancel_event: Set by the caller to abort. One is created when
                omitted; it is also set when the deadline passes so worker
                threads stop at their next check.

        Raises:
            DiscoveryError: Root missing or unreadable, cancelled, or timed out.
            InternalError: The walk failed unexpectedly.
        """
        root_path = Path(root).expanduser().resolve()
        cancel = cancel_event if cancel_event is not None else threading.Event()
        bind_run_id()
        start = time.perf_counter()
        try:
            repo = await asyncio.wait_for(
                self._run(root_path, cancel), timeout=self.options.timeout_sec
            )
        except TimeoutError as e:
            cancel.set()
            log.warning("discovery_timeout", root=str(root_path), timeout_sec=self.options.timeout_sec)
            raise DiscoveryError.timeout(str(root_path), self.options.timeout_sec) from e
        finally:
            unbind_run_id()
        log.info(
            "discovery_complete",
            root=str(root_path),
            files=repo.total_files,
            languages=len(repo.languages),
            frameworks=len(repo.frameworks),
            monorepo=repo.is_monorepo,
            warnings=len(repo.warnings),
            duration_ms=round((time.perf_counter() - start) * 1000, 1),
        )
        return repo

    # =========================================================================
    # Internals
    # =========================================================================

    @staticmethod
    def _walk(walker: TreeWalker) -> tuple[LanguageTally, list[FileDescriptor]]:
        tally = LanguageTally()
        candidates: list[FileDescriptor] = []
        for fd in walker.walk():
            tally.add(fd)
            if is_evidence_candidate(fd):
                candidates.append(fd)
        return tally, candidates

    async def _run(self, root: Path, cancel: threading.Event) -> Repository:
        opts = self.options
        log.info("discovery_started", root=str(root))

        walker = TreeWalker(
            root,
            opts.exclude_patterns,
            include_hidden=opts.include_hidden,
            cancel_event=cancel,
        )
        try:
            tally, candidates = await asyncio.to_thread(self._walk, walker)
        except DiscoveryError:
            raise
        except Exception as e:
            # Without a walk there is nothing to report
            raise InternalError.unexpected(f"walk of {root} failed: {e}", root=str(root)) from e
        log.debug(
            "walk_complete",
            files=tally.total_files,
            classified=tally.classified,
            candidates=len(candidates),
        )

        classifier = LanguageClassifier(
            root,
            primary_threshold=opts.primary_threshold,
            min_presence=opts.min_presence,
            exclude_patterns=opts.exclude_patterns,
            recognizers=self.framework_recognizers,
            cancel_event=cancel,
        )
        framework_detector = FrameworkDetector(
            root,
            exclude_patterns=opts.exclude_patterns,
            include_hidden=opts.include_hidden,
            recognizers=self.framework_recognizers,
            cancel_event=cancel,
        )
        workspace_detector = WorkspaceDetector(
            root,
            exclude_patterns=opts.exclude_patterns,
            max_depth=opts.workspace_max_depth,
            recognizers=self.workspace_recognizers,
            cancel_event=cancel,
        )

        language_res, framework_res, workspace_res = await asyncio.gather(
            asyncio.to_thread(classifier.summarize, tally),
            asyncio.to_thread(framework_detector.detect, tally.names(), candidates),
            asyncio.to_thread(workspace_detector.detect),
            return_exceptions=True,
        )

        warnings: list[DiscoveryWarning] = list(walker.errors)

        languages: list[LanguageInfo] = []
        if isinstance(language_res, BaseException):
            warnings.append(self._task_failed("classifier", language_res))
        else:
            languages = language_res

        framework_result = FrameworkDetectionResult()
        if isinstance(framework_res, BaseException):
            warnings.append(self._task_failed("frameworks", framework_res))
        else:
            framework_result = framework_res
            warnings.extend(framework_result.warnings)

        workspace_result = WorkspaceDetectionResult()
        if isinstance(workspace_res, BaseException):
            warnings.append(self._task_failed("workspaces", workspace_res))
        else:
            workspace_result = workspace_res
            warnings.extend(workspace_result.warnings)

        return Repository(
            root=str(root),
            total_files=tally.total_files,
            excluded_paths=tuple(opts.exclude_patterns),
            languages=tuple(languages),
            frameworks=framework_result.frameworks,
            workspace=workspace_result.workspace,
            warnings=tuple(warnings),
        )

    @staticmethod
    def _task_failed(component: str, exc: BaseException) -> DiscoveryWarning:
        """Convert a task failure to a warning; cancellation still aborts."""
        if isinstance(exc, DiscoveryError) and exc.is_cancellation:
            raise exc
        if not isinstance(exc, Exception):
            raise exc
        log.warning("discovery_task_failed", component=component, error=str(exc))
        return DiscoveryWarning(component=component, message=f"{component} failed: {exc}")


def discover(
    root: Path | str,
    options: DiscoveryOptions | None = None,
    *,
    cancel_event: threading.Event | None = None,
) -> Repository:
    """Discover ``root`` with default recognizers."""
    return DiscoveryEngine(options).discover(root, cancel_event=cancel_event)
