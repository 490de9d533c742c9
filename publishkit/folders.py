"""Resolve and prepare the folders a publishing run works in.

A run always works against four folders: the project root, the ``Output``
folder that generation steps write into, the internal ``.publish`` folder and
its ``Caches`` subfolder. :func:`set_up_folders` resolves or creates all of
them before any step runs and reports failures as :class:`SetupError`.

The remaining helpers are thin wrappers around :mod:`pathlib` and
:mod:`shutil` shared by the folder setup and the publishing context.

Examples
--------
>>> from pathlib import Path
>>> from publishkit.folders import set_up_folders
>>> folders = set_up_folders(explicit_root=Path("site"))  # doctest: +SKIP
>>> folders.caches.relative_to(folders.root)  # doctest: +SKIP
PosixPath('.publish/Caches')
"""

from __future__ import annotations

import contextlib
import dataclasses as dc
import shutil
from pathlib import Path

from ._constants import (
    CACHES_FOLDER_NAME,
    INTERNAL_FOLDER_NAME,
    OUTPUT_FOLDER_NAME,
    PROJECT_MARKERS,
)
from .errors import SetupError


@dc.dataclass(frozen=True, slots=True)
class FolderGroup:
    """The four folders a publishing run reads from and writes to."""

    root: Path
    output: Path
    internal: Path
    caches: Path


def set_up_folders(
    *,
    explicit_root: Path | None = None,
    origin_file: Path | None = None,
    output: Path | None = None,
    should_empty_output: bool = False,
) -> FolderGroup:
    """Resolve the root folder and create the output, internal and cache folders.

    Parameters
    ----------
    explicit_root : Path, optional
        Root folder to use; it must already exist.
    origin_file : Path, optional
        Anchor file used to discover the root when ``explicit_root`` is not
        given. The nearest enclosing folder holding a project marker
        (``pyproject.toml``, ``setup.cfg`` or ``setup.py``) becomes the root.
    output : Path, optional
        Existing folder in which ``Output`` is created instead of the root.
    should_empty_output : bool, optional
        Empty the output folder, hidden entries included. Failures while
        emptying are ignored.

    Returns
    -------
    FolderGroup
        The resolved folders.

    Raises
    ------
    SetupError
        If the root cannot be found or a folder cannot be created.
    """
    root = resolve_root_folder(explicit_root=explicit_root, origin_file=origin_file)
    attempted = output or root
    try:
        output_parent = _existing_folder(output) if output else root
        attempted = output_parent / OUTPUT_FOLDER_NAME
        output_folder = create_subfolder_if_needed(output_parent, OUTPUT_FOLDER_NAME)

        if should_empty_output:
            with contextlib.suppress(OSError):
                empty_folder(output_folder, include_hidden=True)

        attempted = root / INTERNAL_FOLDER_NAME
        internal = create_subfolder_if_needed(root, INTERNAL_FOLDER_NAME)
        attempted = internal / CACHES_FOLDER_NAME
        caches = create_subfolder_if_needed(internal, CACHES_FOLDER_NAME)
    except OSError as exc:
        raise SetupError(
            path=attempted,
            info_message="Failed to set up root folder structure",
            underlying_error=exc,
        ) from exc

    return FolderGroup(root=root, output=output_folder, internal=internal, caches=caches)


def resolve_root_folder(
    *, explicit_root: Path | None = None, origin_file: Path | None = None
) -> Path:
    """Return the explicit root folder or the project folder enclosing ``origin_file``."""
    if explicit_root is not None:
        try:
            return _existing_folder(explicit_root)
        except OSError as exc:
            raise SetupError(
                path=explicit_root,
                info_message="Could not find the requested root folder",
                underlying_error=exc,
            ) from exc

    if origin_file is None:
        raise SetupError(info_message="No root folder or origin file was provided")
    return find_project_folder(origin_file)


def find_project_folder(origin_file: Path) -> Path:
    """Walk up from ``origin_file`` to the first folder containing a project marker."""
    start = origin_file.resolve()
    candidates = [start] if start.is_dir() else []
    candidates.extend(start.parents)
    for candidate in candidates:
        if any((candidate / marker).is_file() for marker in PROJECT_MARKERS):
            return candidate
    raise SetupError(
        path=origin_file,
        info_message="Could not resolve the project folder enclosing the origin file",
    )


def _existing_folder(path: Path) -> Path:
    resolved = path.expanduser().resolve()
    if not resolved.is_dir():
        msg = f"Folder not found: {path}"
        raise FileNotFoundError(msg)
    return resolved


def empty_folder(folder: Path, *, include_hidden: bool) -> None:
    """Delete the contents of ``folder``, keeping hidden entries unless asked not to."""
    for entry in folder.iterdir():
        if entry.name.startswith(".") and not include_hidden:
            continue
        if entry.is_dir() and not entry.is_symlink():
            shutil.rmtree(entry)
        else:
            entry.unlink()


def create_subfolder_if_needed(parent: Path, relative: str) -> Path:
    """Create ``parent / relative`` (and any intermediate folders) if missing."""
    folder = parent / relative.strip("/")
    folder.mkdir(parents=True, exist_ok=True)
    return folder


def create_file_if_needed(parent: Path, relative: str) -> Path:
    """Create an empty file at ``parent / relative`` unless one already exists."""
    file = parent / relative.strip("/")
    file.parent.mkdir(parents=True, exist_ok=True)
    if not file.exists():
        file.touch()
    elif not file.is_file():
        msg = f"Not a file: {file}"
        raise IsADirectoryError(msg)
    return file


def copy_location(source: Path, target_folder: Path) -> Path:
    """Copy a file or folder into ``target_folder``, keeping its name.

    Existing files at the destination are overwritten and existing folders are
    merged.
    """
    if not target_folder.is_dir():
        msg = f"Target folder not found: {target_folder}"
        raise FileNotFoundError(msg)
    destination = target_folder / source.name
    if source.is_dir():
        shutil.copytree(source, destination, dirs_exist_ok=True)
    else:
        shutil.copy2(source, destination)
    return destination


__all__ = [
    "FolderGroup",
    "copy_location",
    "create_file_if_needed",
    "create_subfolder_if_needed",
    "empty_folder",
    "find_project_folder",
    "resolve_root_folder",
    "set_up_folders",
]
