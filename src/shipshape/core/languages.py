"""Canonical language definitions.

This module defines the authoritative mapping of:
- File extensions → language names
- Extension-less filenames → language names
- Test file patterns per language

Design decisions:
1. Every extension maps to exactly ONE language. The classifier needs a
   total function for percentages that sum to 100.
2. Names are display names ("Go", "C#") and double as the stable identifiers
   in discovery output.
3. Extensions are lowercase with a leading dot; lookups lowercase their input.
4. Filenames are matched case-insensitively against the full base name.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from fnmatch import fnmatch
from pathlib import Path

UNKNOWN_LANGUAGE = "Unknown"


@dataclass(frozen=True, slots=True)
class Language:
    """Canonical definition for a language.

    Attributes:
        name: Display name and identifier (e.g., "Python", "C#")
        extensions: File extensions including dot (e.g., ".py")
        filenames: Extension-less filenames owned by the language (lowercase)
        test_patterns: fnmatch patterns for test files, matched on the base name
    """

    name: str
    extensions: frozenset[str]
    filenames: frozenset[str] = field(default_factory=frozenset)
    test_patterns: tuple[str, ...] = ()


# =============================================================================
# Language Definitions
# =============================================================================
# RULES:
# 1. An extension may appear in only one definition
# 2. Extensions and filenames are lowercase

ALL_LANGUAGES: tuple[Language, ...] = (
    Language(
        name="Go",
        extensions=frozenset({".go"}),
        test_patterns=("*_test.go",),
    ),
    Language(
        name="Python",
        extensions=frozenset({".py", ".pyw", ".pyx", ".pyi", ".ipynb"}),
        test_patterns=("test_*.py", "*_test.py"),
    ),
    Language(
        name="JavaScript",
        extensions=frozenset({".js", ".jsx", ".mjs", ".cjs"}),
        test_patterns=("*.test.js", "*.spec.js", "*.test.jsx", "*.spec.jsx"),
    ),
    Language(
        name="TypeScript",
        extensions=frozenset({".ts", ".tsx", ".mts", ".cts"}),
        test_patterns=("*.test.ts", "*.spec.ts", "*.test.tsx", "*.spec.tsx"),
    ),
    Language(
        name="Java",
        extensions=frozenset({".java"}),
        test_patterns=("*Test.java", "Test*.java", "*Tests.java"),
    ),
    Language(
        name="Rust",
        extensions=frozenset({".rs"}),
        test_patterns=("*_test.rs",),
    ),
    Language(
        name="C#",
        extensions=frozenset({".cs", ".cshtml", ".csx"}),
        test_patterns=("*Tests.cs", "*Test.cs"),
    ),
    Language(
        name="Ruby",
        extensions=frozenset({".rb", ".rake"}),
        filenames=frozenset({"gemfile", "rakefile"}),
        test_patterns=("*_spec.rb", "*_test.rb", "test_*.rb"),
    ),
    # =========================================================================
    # Recognised for distribution only; no tool catalog yet
    # =========================================================================
    Language(
        name="Kotlin",
        extensions=frozenset({".kt", ".kts"}),
        test_patterns=("*Test.kt",),
    ),
    Language(
        name="Scala",
        extensions=frozenset({".scala", ".sc"}),
        test_patterns=("*Spec.scala", "*Test.scala"),
    ),
    Language(
        name="PHP",
        extensions=frozenset({".php"}),
        test_patterns=("*Test.php",),
    ),
    Language(
        name="Swift",
        extensions=frozenset({".swift"}),
        test_patterns=("*Tests.swift",),
    ),
    Language(
        name="C",
        extensions=frozenset({".c", ".h"}),
    ),
    Language(
        name="C++",
        extensions=frozenset({".cpp", ".cc", ".cxx", ".hpp", ".hxx", ".hh"}),
    ),
)

LANGUAGES_BY_NAME: dict[str, Language] = {lang.name: lang for lang in ALL_LANGUAGES}


def _build_extension_map() -> dict[str, str]:
    result: dict[str, str] = {}
    for lang in ALL_LANGUAGES:
        for ext in lang.extensions:
            result.setdefault(ext, lang.name)
    return result


def _build_filename_map() -> dict[str, str]:
    result: dict[str, str] = {}
    for lang in ALL_LANGUAGES:
        for name in lang.filenames:
            result.setdefault(name, lang.name)
    return result


EXTENSION_TO_LANGUAGE: dict[str, str] = _build_extension_map()
FILENAME_TO_LANGUAGE: dict[str, str] = _build_filename_map()


def detect_language(name: str, ext: str | None = None) -> str | None:
    """Detect the language of a file from its base name and extension.

    Args:
        name: File base name (e.g., "main.go", "Gemfile")
        ext: Pre-computed extension; derived from ``name`` when omitted

    Returns:
        Language name, or None when the file is not classified.
    """
    if ext is None:
        ext = Path(name).suffix
    if lang := EXTENSION_TO_LANGUAGE.get(ext.lower()):
        return lang
    return FILENAME_TO_LANGUAGE.get(name.lower())


def get_test_patterns(name: str) -> tuple[str, ...]:
    """Get test file patterns for a language name."""
    return LANGUAGES_BY_NAME[name].test_patterns if name in LANGUAGES_BY_NAME else ()


def is_test_file(name: str, language: str | None = None) -> bool:
    """Check if a base name matches a test pattern.

    Args:
        name: File base name
        language: Restrict matching to one language's patterns
    """
    languages = (
        (LANGUAGES_BY_NAME[language],)
        if language is not None and language in LANGUAGES_BY_NAME
        else ALL_LANGUAGES
    )
    return any(fnmatch(name, pattern) for lang in languages for pattern in lang.test_patterns)


def get_all_extensions() -> set[str]:
    """Get all classified file extensions."""
    return set(EXTENSION_TO_LANGUAGE.keys())


# =============================================================================
# Validation (for tests only - NOT run at import time)
# =============================================================================


def validate_unique_extensions() -> list[str]:
    """Report extensions claimed by more than one language.

    Returns list of error messages (empty if valid).
    """
    errors: list[str] = []
    owners: dict[str, str] = {}
    for lang in ALL_LANGUAGES:
        for ext in sorted(lang.extensions):
            if ext != ext.lower() or not ext.startswith("."):
                errors.append(f"{lang.name}: extension '{ext}' must be lowercase with a dot")
            if ext in owners:
                errors.append(f"{ext} claimed by both {owners[ext]} and {lang.name}")
            owners.setdefault(ext, lang.name)
    return errors
