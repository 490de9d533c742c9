"""Deployment methods that publish a website's output.

A :class:`DeploymentMethod` is a named callable run by a deployment step (see
:func:`publishkit.library.deploy`). This module ships a git-based method that:

* prepares ``.publish/gitDeploy`` through
  :meth:`~publishkit.context.PublishingContext.create_deployment_folder`,
  initialising a repository pointing at the remote on first use;
* copies the current ``Output`` folder into it;
* commits everything and force-pushes the branch to the remote.

The ``git`` executable is invoked with :func:`subprocess.run`; failures are
raised as :class:`~publishkit.errors.DeploymentError` carrying the command's
output.
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt
import shutil
import subprocess
import typing as typ
from pathlib import Path, PurePosixPath

from .errors import DeploymentError

if typ.TYPE_CHECKING:
    from .context import PublishingContext

GIT_PREFIX = "git"


@dc.dataclass(frozen=True, slots=True)
class DeploymentMethod:
    """A named way of deploying the output folder."""

    name: str
    body: cabc.Callable[[PublishingContext[typ.Any]], cabc.Awaitable[None] | None]


def run_git(
    args: list[str], *, cwd: Path, git_exe: str | None = None
) -> subprocess.CompletedProcess[str]:
    """Invoke git with ``args`` inside ``cwd``.

    Raises
    ------
    DeploymentError
        If git is missing or the command exits with a non-zero status.
    """
    cmd = git_exe or shutil.which("git")
    if not cmd:
        msg = "git is required to deploy the website"
        raise DeploymentError(None, msg)
    try:
        return subprocess.run(  # noqa: S603
            [cmd, *args],
            check=True,
            cwd=cwd,
            text=True,
            capture_output=True,
        )
    except subprocess.CalledProcessError as exc:
        raise DeploymentError(
            PurePosixPath(cwd.name),
            f"git {' '.join(args)} failed with exit status {exc.returncode}",
            output_message=(exc.stderr or exc.stdout or ""),
        ) from exc


def git_deployment(
    remote: str,
    *,
    branch: str = "master",
    output_subpath: str | None = None,
    git_exe: str | None = None,
) -> DeploymentMethod:
    """Return a method that force-pushes the output to ``branch`` of ``remote``."""

    def _configure(folder: Path) -> None:
        if (folder / ".git").is_dir():
            return
        run_git(["init"], cwd=folder, git_exe=git_exe)
        run_git(["remote", "add", "origin", remote], cwd=folder, git_exe=git_exe)

    def _deploy(context: PublishingContext[typ.Any]) -> None:
        folder = context.create_deployment_folder(
            GIT_PREFIX, _configure, output_folder_path=output_subpath
        )
        timestamp = dt.datetime.now(dt.UTC).strftime("%Y-%m-%d %H:%M")
        run_git(["checkout", "-B", branch], cwd=folder, git_exe=git_exe)
        run_git(["add", "--all", "."], cwd=folder, git_exe=git_exe)
        run_git(
            ["commit", "--allow-empty", "-m", f"Publish deploy {timestamp}"],
            cwd=folder,
            git_exe=git_exe,
        )
        run_git(["push", "--force", "origin", branch], cwd=folder, git_exe=git_exe)

    return DeploymentMethod(name=f"git ({remote})", body=_deploy)


def github_deployment(
    repository: str, *, branch: str = "master", use_ssh: bool = True
) -> DeploymentMethod:
    """Return a git method targeting ``owner/name`` on GitHub."""
    if use_ssh:
        remote = f"git@github.com:{repository}.git"
    else:
        remote = f"https://github.com/{repository}.git"
    method = git_deployment(remote, branch=branch)
    return dc.replace(method, name=f"GitHub ({repository})")


__all__ = [
    "DeploymentMethod",
    "git_deployment",
    "github_deployment",
    "run_git",
]
