"""Shared fixtures for discovery tests."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import pytest

RepoFactory = Callable[[dict[str, str]], Path]


def write_tree(root: Path, files: dict[str, str]) -> Path:
    """Create ``files`` (POSIX relative path -> content) under ``root``."""
    for rel_path, content in files.items():
        path = root / rel_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(content)
    return root


@pytest.fixture
def make_repo(tmp_path: Path) -> RepoFactory:
    """Build a repository from a mapping of relative paths to contents."""
    counter = iter(range(1000))

    def _make(files: dict[str, str]) -> Path:
        root = tmp_path / f"repo{next(counter)}"
        root.mkdir()
        return write_tree(root, files)

    return _make


@pytest.fixture
def go_repo(make_repo: RepoFactory) -> Path:
    """main.go, main_test.go and an empty go.mod."""
    return make_repo(
        {
            "main.go": "package main\n\nfunc main() {}\n",
            "main_test.go": 'package main\n\nimport "testing"\n\nfunc TestMain(t *testing.T) {}\n',
            "go.mod": "",
        }
    )


@pytest.fixture
def npm_monorepo(make_repo: RepoFactory) -> Path:
    """package.json workspaces over packages/*, with two packages and a stray dir."""
    return make_repo(
        {
            "package.json": '{"name": "root", "private": true, "workspaces": ["packages/*"]}',
            "packages/a/package.json": '{"name": "@acme/a"}',
            "packages/a/index.js": "module.exports = 1;\n",
            "packages/b/package.json": '{"name": "@acme/b"}',
            "packages/b/src/index.ts": "export const b = 2;\n",
            "packages/b/tsconfig.json": "{}",
            "packages/notes/README.md": "not a package\n",
        }
    )
