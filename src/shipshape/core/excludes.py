"""Canonical exclusion patterns for repository traversal.

DEFAULT_EXCLUDE_PATTERNS: directory (or file) names skipped during the walk.
    - Matched against single path SEGMENTS, never substrings of a name
    - Patterns containing glob metacharacters are matched with fnmatch
    - Ordered, because the applied list is reported back to callers

ALLOWED_DOTFILES: hidden names kept even when hidden entries are skipped.
    - These are configuration signals (ignore files, linter configs)
    - A name is allowed if it equals an entry or starts with "<entry>."
"""

from __future__ import annotations

from fnmatch import fnmatchcase

# =============================================================================
# Default exclusions, organized by purpose
# =============================================================================

DEFAULT_EXCLUDE_PATTERNS: tuple[str, ...] = (
    # -------------------------------------------------------------------------
    # Version control
    # -------------------------------------------------------------------------
    ".git",
    ".svn",
    ".hg",
    # -------------------------------------------------------------------------
    # Dependencies
    # -------------------------------------------------------------------------
    "node_modules",
    "vendor",
    "venv",
    ".venv",
    "env",
    ".env",
    "__pycache__",
    ".tox",
    # -------------------------------------------------------------------------
    # Build outputs
    # -------------------------------------------------------------------------
    "dist",
    "build",
    "target",
    "out",
    "bin",
    ".next",
    ".nuxt",
    # -------------------------------------------------------------------------
    # IDE/Editor
    # -------------------------------------------------------------------------
    ".idea",
    ".vscode",
    ".vs",
    "*.swp",
    "*.swo",
    ".DS_Store",
    # -------------------------------------------------------------------------
    # Test coverage
    # -------------------------------------------------------------------------
    "coverage",
    ".coverage",
    "htmlcov",
    ".nyc_output",
    # -------------------------------------------------------------------------
    # Language caches
    # -------------------------------------------------------------------------
    ".pytest_cache",
    ".mypy_cache",
    ".ruff_cache",
    ".gradle",
    # -------------------------------------------------------------------------
    # Misc
    # -------------------------------------------------------------------------
    "tmp",
    "temp",
    ".cache",
)

# =============================================================================
# Dotfiles that are configuration signals
# =============================================================================

ALLOWED_DOTFILES: tuple[str, ...] = (
    ".gitignore",
    ".gitattributes",
    ".editorconfig",
    ".prettierrc",
    ".eslintrc",
    ".pylintrc",
    ".go-version",
    ".python-version",
    ".ruby-version",
    ".nvmrc",
    # Tool configs consumed by framework detection
    ".golangci",
    ".rubocop",
    ".rspec",
    ".flake8",
    ".coveragerc",
    ".nycrc",
    ".c8rc",
    ".mocharc",
    ".stylelintrc",
    ".jshintrc",
    ".ruff",
    ".isort",
    ".rustfmt",
    ".clang-format",
    ".clang-tidy",
)

_GLOB_CHARS = frozenset("*?[")


def is_glob_pattern(pattern: str) -> bool:
    """True when a pattern needs fnmatch rather than equality."""
    return any(ch in _GLOB_CHARS for ch in pattern)


def is_allowed_dotfile(name: str) -> bool:
    """Check if a hidden name is on the configuration allow-list."""
    return any(name == allowed or name.startswith(allowed + ".") for allowed in ALLOWED_DOTFILES)


def segment_matches(segment: str, patterns: tuple[str, ...] | list[str]) -> bool:
    """Check a single path segment against exclusion patterns.

    Equality for plain names; fnmatch (case-sensitive) for glob patterns.
    "node_modules_backup" does NOT match "node_modules".
    """
    for pattern in patterns:
        if segment == pattern:
            return True
        if is_glob_pattern(pattern) and fnmatchcase(segment, pattern):
            return True
    return False


def path_is_excluded(rel_path: str, patterns: tuple[str, ...] | list[str]) -> bool:
    """Check whether any segment of a POSIX relative path is excluded."""
    if rel_path in ("", "."):
        return False
    return any(segment_matches(part, patterns) for part in rel_path.split("/") if part)


__all__ = [
    "ALLOWED_DOTFILES",
    "DEFAULT_EXCLUDE_PATTERNS",
    "is_allowed_dotfile",
    "is_glob_pattern",
    "path_is_excluded",
    "segment_matches",
]
