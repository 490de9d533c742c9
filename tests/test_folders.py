"""Tests for resolving and preparing the folders of a publishing run."""

from __future__ import annotations

from pathlib import Path

import pytest

from publishkit.errors import SetupError
from publishkit.folders import copy_location, empty_folder, set_up_folders


def test_set_up_folders_creates_layout(site_root: Path) -> None:
    folders = set_up_folders(explicit_root=site_root)

    assert folders.root == site_root.resolve()
    assert folders.output == folders.root / "Output"
    assert folders.internal == folders.root / ".publish"
    assert folders.caches == folders.root / ".publish" / "Caches"
    for folder in (folders.output, folders.internal, folders.caches):
        assert folder.is_dir()


def test_explicit_output_parent_is_used(site_root: Path, tmp_path: Path) -> None:
    build = tmp_path / "build"
    build.mkdir()

    folders = set_up_folders(explicit_root=site_root, output=build)

    assert folders.output == build.resolve() / "Output"
    assert not (site_root / "Output").exists()


def test_generation_empties_output_including_hidden_entries(site_root: Path) -> None:
    output = site_root / "Output"
    (output / "old").mkdir(parents=True)
    (output / "old" / "page.html").write_text("stale", encoding="utf-8")
    (output / ".hidden").write_text("stale", encoding="utf-8")

    set_up_folders(explicit_root=site_root, should_empty_output=True)

    assert list(output.iterdir()) == []


def test_output_is_kept_when_not_emptying(site_root: Path) -> None:
    output = site_root / "Output"
    output.mkdir()
    (output / "index.html").write_text("kept", encoding="utf-8")

    set_up_folders(explicit_root=site_root)

    assert (output / "index.html").read_text(encoding="utf-8") == "kept"


def test_missing_explicit_root_raises_setup_error(tmp_path: Path) -> None:
    missing = tmp_path / "missing"

    with pytest.raises(SetupError) as excinfo:
        set_up_folders(explicit_root=missing)

    assert excinfo.value.info_message == "Could not find the requested root folder"
    assert excinfo.value.path == missing


def test_root_discovered_from_origin_file(tmp_path: Path) -> None:
    project = tmp_path / "project"
    (project / "src" / "site").mkdir(parents=True)
    (project / "pyproject.toml").write_text("[project]\n", encoding="utf-8")
    origin = project / "src" / "site" / "main.py"
    origin.write_text("", encoding="utf-8")

    folders = set_up_folders(origin_file=origin)

    assert folders.root == project.resolve()


def test_no_root_and_no_origin_raises_setup_error() -> None:
    with pytest.raises(SetupError):
        set_up_folders()


def test_blocked_internal_folder_raises_setup_error(site_root: Path) -> None:
    (site_root / ".publish").write_text("not a folder", encoding="utf-8")

    with pytest.raises(SetupError) as excinfo:
        set_up_folders(explicit_root=site_root)

    assert excinfo.value.info_message == "Failed to set up root folder structure"
    assert excinfo.value.path == site_root.resolve() / ".publish"


def test_empty_folder_keeps_hidden_entries_when_asked(tmp_path: Path) -> None:
    (tmp_path / ".git").mkdir()
    (tmp_path / "index.html").write_text("x", encoding="utf-8")
    (tmp_path / "assets").mkdir()

    empty_folder(tmp_path, include_hidden=False)

    assert [entry.name for entry in tmp_path.iterdir()] == [".git"]


def test_copy_location_merges_folders(tmp_path: Path) -> None:
    source = tmp_path / "assets"
    source.mkdir()
    (source / "new.css").write_text("new", encoding="utf-8")
    target = tmp_path / "out"
    (target / "assets").mkdir(parents=True)
    (target / "assets" / "old.css").write_text("old", encoding="utf-8")

    copied = copy_location(source, target)

    assert copied == target / "assets"
    assert sorted(entry.name for entry in copied.iterdir()) == ["new.css", "old.css"]
