"""Filesystem traversal with segment-based exclusion.

The walker is the only component that lists directories for a discovery run.
Excluded subtrees are pruned when their directory entry is seen, so a
vendored ``node_modules`` with 100k files costs one comparison.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterator, Sequence
from pathlib import Path

import structlog

from shipshape.core.errors import DiscoveryError
from shipshape.core.excludes import (
    DEFAULT_EXCLUDE_PATTERNS,
    is_allowed_dotfile,
    segment_matches,
)
from shipshape.discovery.models import DiscoveryWarning, FileDescriptor

log = structlog.get_logger(__name__)


class TreeWalker:
    """Deterministic depth-first walk over the regular files under a root.

    Entries are visited in name order; a directory's files are yielded before
    any of its subdirectories are entered.

    Args:
        root: Directory to walk. Must exist.
        exclude_patterns: Segment patterns that prune a subtree. ``None`` uses
            DEFAULT_EXCLUDE_PATTERNS; an empty list disables exclusion.
        include_hidden: Walk every hidden entry instead of only the
            allow-listed configuration dotfiles.
        max_depth: Number of directory levels to walk. 1 means only the root's
            own files. ``None`` is unbounded.
        cancel_event: Checked once per directory; when set the walk raises
            DiscoveryError.cancelled.
    """

    def __init__(
        self,
        root: Path | str,
        exclude_patterns: Sequence[str] | None = None,
        *,
        include_hidden: bool = False,
        max_depth: int | None = None,
        cancel_event: threading.Event | None = None,
    ) -> None:
        self.root = Path(root).expanduser().resolve()
        self.exclude_patterns: tuple[str, ...] = (
            DEFAULT_EXCLUDE_PATTERNS if exclude_patterns is None else tuple(exclude_patterns)
        )
        self.include_hidden = include_hidden
        self.max_depth = max_depth
        self.cancel_event = cancel_event
        self._errors: list[DiscoveryWarning] = []

    @property
    def errors(self) -> list[DiscoveryWarning]:
        """Per-entry problems recorded by the most recent walk."""
        return list(self._errors)

    def check_root(self) -> None:
        """Raise DiscoveryError unless the root is a readable directory."""
        if not self.root.exists():
            raise DiscoveryError.root_not_found(str(self.root))
        if not self.root.is_dir():
            raise DiscoveryError.root_unreadable(str(self.root), "not a directory")
        try:
            with os.scandir(self.root):
                pass
        except OSError as e:
            raise DiscoveryError.root_unreadable(str(self.root), e.strerror or str(e)) from e

    def walk(self) -> Iterator[FileDescriptor]:
        """Yield a descriptor for every regular file that survives exclusion."""
        for entry, rel_path in self._iter_files():
            try:
                size = entry.stat().st_size
            except OSError as e:
                self._record(rel_path, f"stat failed: {e.strerror or e}")
                continue
            name = entry.name
            yield FileDescriptor(
                path=entry.path,
                rel_path=rel_path,
                name=name,
                ext=os.path.splitext(name)[1].lower(),
                is_dir=False,
                size=size,
            )

    def count(self) -> int:
        """Number of files ``walk()`` would yield, without building descriptors."""
        return sum(1 for _ in self._iter_files())

    def is_excluded(self, name: str) -> bool:
        """Whether a single entry name is pruned by patterns or hidden-file rules."""
        if segment_matches(name, self.exclude_patterns):
            return True
        return name.startswith(".") and not self.include_hidden and not is_allowed_dotfile(name)

    # =========================================================================
    # Internals
    # =========================================================================

    def _record(self, rel_path: str, message: str) -> None:
        self._errors.append(DiscoveryWarning(component="walker", message=message, path=rel_path))
        log.warning("walk_entry_skipped", path=rel_path, reason=message)

    def _check_cancelled(self) -> None:
        if self.cancel_event is not None and self.cancel_event.is_set():
            raise DiscoveryError.cancelled(str(self.root))

    def _iter_files(self) -> Iterator[tuple[os.DirEntry[str], str]]:
        self._errors = []
        self.check_root()

        # (absolute dir, relative POSIX dir, depth); popped LIFO, pushed reversed
        stack: list[tuple[str, str, int]] = [(str(self.root), "", 0)]
        while stack:
            self._check_cancelled()
            dir_path, rel_dir, depth = stack.pop()
            try:
                with os.scandir(dir_path) as it:
                    entries = sorted(it, key=lambda e: e.name)
            except OSError as e:
                if not rel_dir:
                    raise DiscoveryError.root_unreadable(dir_path, e.strerror or str(e)) from e
                self._record(rel_dir, f"cannot list directory: {e.strerror or e}")
                continue

            subdirs: list[tuple[str, str, int]] = []
            for entry in entries:
                if self.is_excluded(entry.name):
                    continue
                rel_path = f"{rel_dir}/{entry.name}" if rel_dir else entry.name
                try:
                    if entry.is_dir(follow_symlinks=False):
                        if self.max_depth is None or depth + 1 < self.max_depth:
                            subdirs.append((entry.path, rel_path, depth + 1))
                        continue
                    if not entry.is_file():
                        continue
                except OSError as e:
                    self._record(rel_path, f"cannot inspect entry: {e.strerror or e}")
                    continue
                yield entry, rel_path

            stack.extend(reversed(subdirs))
