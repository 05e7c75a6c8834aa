"""Shared fixtures for projclean tests."""

from __future__ import annotations

from pathlib import Path

import pytest

# Trailing slash marks a directory, anything else is an empty file
PROJECT_PATHS = (
    "nodejs/node_modules/",
    "nodejs/package.json",
    "cargo/target/",
    "cargo/src/",
    "cargo/Cargo.toml",
    "cargo-not/target/",
    "gradle/.gradle/",
    "gradle/build/",
    "gradle/build.gradle",
    "gradle-kts/.gradle/",
    "gradle-kts/build/",
    "gradle-kts/build.gradle.kts",
    "dotnet-cs/bin/",
    "dotnet-cs/obj/",
    "dotnet-cs/App.csproj",
    "dotnet-fs/bin/",
    "dotnet-fs/obj/",
    "dotnet-fs/App.fsproj",
    "mixed/_build/",
    "mixed/rebar.config",
    "mixed/dune-project",
)


def make_tree(root: Path, paths: tuple[str, ...] | list[str]) -> Path:
    """Create directories (trailing slash) and empty files below ``root``."""
    for path in paths:
        target = root / path
        if path.endswith("/"):
            target.mkdir(parents=True, exist_ok=True)
        else:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text("")
    return root


def relative_paths(root: Path, paths) -> list[str]:
    """Sorted POSIX paths relative to ``root``."""
    return sorted(Path(p).relative_to(root).as_posix() for p in paths)


@pytest.fixture
def project_tree(tmp_path: Path) -> Path:
    """A directory holding one small project per build ecosystem."""
    root = tmp_path / "projects"
    root.mkdir()
    return make_tree(root, PROJECT_PATHS)
