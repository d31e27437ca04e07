"""Language distribution and per-language tool hints.

The classifier only needs counts, so the walker's stream is folded into a
LanguageTally and never buffered. Hints come from a second, root-only look at
conventional config files and manifests, reusing the framework recognizers.
"""

from __future__ import annotations

import threading
from collections import Counter
from collections.abc import Iterable, Sequence
from pathlib import Path

import structlog

from shipshape.config.models import DEFAULT_PRIMARY_THRESHOLD
from shipshape.core.errors import DiscoveryError
from shipshape.core.excludes import DEFAULT_EXCLUDE_PATTERNS
from shipshape.core.languages import detect_language, is_test_file
from shipshape.discovery.frameworks import RECOGNIZERS, FrameworkDetector, Recognizer
from shipshape.discovery.models import FileDescriptor, FrameworkType, LanguageInfo
from shipshape.discovery.walker import TreeWalker

log = structlog.get_logger(__name__)

PERCENT_PRECISION = 2

_HINT_FIELDS: dict[FrameworkType, str] = {
    FrameworkType.TEST: "test_frameworks",
    FrameworkType.COVERAGE: "coverage_tools",
    FrameworkType.LINT: "linters",
    FrameworkType.FORMAT: "formatters",
}


class LanguageTally:
    """Running per-language file counts."""

    def __init__(self) -> None:
        self.counts: Counter[str] = Counter()
        self.test_counts: Counter[str] = Counter()
        self.total_files = 0

    def add(self, fd: FileDescriptor) -> str | None:
        """Count one file. Returns its language, or None if unclassified."""
        self.total_files += 1
        language = detect_language(fd.name, fd.ext)
        if language is None:
            return None
        self.counts[language] += 1
        if is_test_file(fd.name, language):
            self.test_counts[language] += 1
        return language

    @property
    def classified(self) -> int:
        return sum(self.counts.values())

    def names(self) -> list[str]:
        return sorted(self.counts)

    def top_language(self) -> str | None:
        """Most frequent language, ties broken by name."""
        if not self.counts:
            return None
        return min(self.counts.items(), key=lambda item: (-item[1], item[0]))[0]

    def summarize(self, primary_threshold: float = DEFAULT_PRIMARY_THRESHOLD) -> list[LanguageInfo]:
        """Percentages over classified files, highest first, ties by name."""
        classified = self.classified
        if classified == 0:
            return []
        result = []
        for name, count in self.counts.items():
            percentage = round(count / classified * 100, PERCENT_PRECISION)
            result.append(
                LanguageInfo(
                    name=name,
                    percentage=percentage,
                    file_count=count,
                    is_primary=percentage >= primary_threshold,
                )
            )
        result.sort(key=lambda info: (-info.percentage, info.name))
        return result


class LanguageClassifier:
    """Classify files by language and attach tool hints.

    Args:
        root: Repository root, used for hinting. Without a root no hints are
            attached.
        primary_threshold: Percentage at or above which a language is primary.
        min_presence: Languages below this percentage get no hints.
        exclude_patterns: Applied to root entries considered for hints.
        recognizers: Framework recognizers that supply hints.
        cancel_event: Checked before hinting starts.
    """

    def __init__(
        self,
        root: Path | str | None = None,
        *,
        primary_threshold: float = DEFAULT_PRIMARY_THRESHOLD,
        min_presence: float = 1.0,
        exclude_patterns: Iterable[str] | None = None,
        recognizers: Sequence[Recognizer] = RECOGNIZERS,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.root = Path(root).expanduser().resolve() if root is not None else None
        self.recognizers = tuple(recognizers)
        self.primary_threshold = primary_threshold
        self.min_presence = min_presence
        self.exclude_patterns = (
            tuple(exclude_patterns) if exclude_patterns is not None else DEFAULT_EXCLUDE_PATTERNS
        )
        self.cancel_event = cancel_event

    def classify(self, files: Iterable[FileDescriptor]) -> list[LanguageInfo]:
        """Consume a descriptor stream and return the language breakdown."""
        tally = LanguageTally()
        for fd in files:
            tally.add(fd)
        return self.summarize(tally)

    def summarize(self, tally: LanguageTally) -> list[LanguageInfo]:
        """Turn a finished tally into LanguageInfo entries with hints."""
        languages = tally.summarize(self.primary_threshold)
        if self.root is None or not languages:
            return languages

        hinted = [info for info in languages if info.percentage >= self.min_presence]
        if not hinted:
            return languages
        hints = self._collect_hints(self.root, tally, frozenset(info.name for info in hinted))
        result = []
        for info in languages:
            fields = hints.get(info.name)
            if not fields:
                result.append(info)
                continue
            result.append(
                LanguageInfo(
                    name=info.name,
                    percentage=info.percentage,
                    file_count=info.file_count,
                    is_primary=info.is_primary,
                    **{key: tuple(sorted(values)) for key, values in fields.items()},
                )
            )
        return result

    def _root_files(self, root: Path) -> list[FileDescriptor]:
        """Files directly under the root, with walker exclusion rules."""
        walker = TreeWalker(root, self.exclude_patterns, max_depth=1)
        return list(walker.walk())

    def _collect_hints(
        self, root: Path, tally: LanguageTally, names: frozenset[str]
    ) -> dict[str, dict[str, set[str]]]:
        hints: dict[str, dict[str, set[str]]] = {}

        def add(language: str, type_: FrameworkType, tool: str) -> None:
            field_name = _HINT_FIELDS.get(type_)
            if field_name is None or language not in names:
                return
            hints.setdefault(language, {}).setdefault(field_name, set()).add(tool)

        if self.cancel_event is not None and self.cancel_event.is_set():
            raise DiscoveryError.cancelled(str(root))

        detector = FrameworkDetector(
            root, recognizers=self.recognizers, cancel_event=self.cancel_event
        )
        result = detector.detect(languages=names, files=self._root_files(root))
        for fw in result.frameworks:
            add(fw.language, fw.type, fw.name)
        for warning in result.warnings:
            log.debug("language_hint_skipped", path=warning.path, reason=warning.message)

        # Go's stdlib runner needs no config; any test file is the signal
        if tally.test_counts.get("Go"):
            add("Go", FrameworkType.TEST, "testing")
        return hints
