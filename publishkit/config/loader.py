"""Load site configuration YAML into typed dataclasses."""

from __future__ import annotations

import typing as typ
from pathlib import Path

from ruamel.yaml import YAML

from .._constants import DEFAULT_DATE_FORMAT
from .models import GitDeployConfig, SiteConfig, SiteConfigError, Website


def load_site_config(path: Path) -> SiteConfig:
    """Load the YAML configuration describing a website and its build folders.

    Parameters
    ----------
    path : Path
        Filesystem path to the YAML configuration file (for example,
        ``site.yaml``). Relative folders inside it are resolved against the
        file's directory.

    Returns
    -------
    SiteConfig
        Parsed configuration with defaults applied.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist at ``path``.
    TypeError
        If the top-level YAML structure is not a mapping.
    SiteConfigError
        If required sections or fields are missing or invalid.
    YAMLError
        If the YAML content cannot be parsed by the underlying loader.

    Examples
    --------
    >>> from pathlib import Path
    >>> from publishkit.config import load_site_config
    >>> config = load_site_config(Path("site.yaml"))  # doctest: +SKIP
    >>> config.site.section_ids  # doctest: +SKIP
    ('posts',)
    """
    if not path.exists():
        msg = f"Configuration file '{path}' not found."
        raise FileNotFoundError(msg)

    loader = YAML(typ="safe")
    loader.version = (1, 2)
    with path.open("r", encoding="utf-8") as handle:
        loaded = loader.load(handle) or {}
    if not isinstance(loaded, dict):  # pragma: no cover - config error guard
        msg = "Top-level YAML structure must be a mapping."
        raise TypeError(msg)
    raw: dict[str, typ.Any] = dict(loaded)

    base_dir = path.resolve().parent
    site = _build_website(raw.get("site"))
    build = _as_mapping(raw.get("build"), "build")
    deploy = _as_mapping(raw.get("deploy"), "deploy")

    output = build.get("output")
    templates = build.get("templates")
    return SiteConfig(
        site=site,
        root=_resolve(base_dir, build.get("root", ".")),
        output=_resolve(base_dir, output) if output else None,
        content_folder=str(build.get("content", "Content")),
        resources_folder=str(build.get("resources", "Resources")),
        templates_folder=_resolve(base_dir, templates) if templates else None,
        date_format=str(build.get("date_format", DEFAULT_DATE_FORMAT)),
        git=_build_git_config(deploy.get("git")),
    )


def _as_mapping(value: object, key: str) -> dict[str, typ.Any]:
    """Return ``value`` as a dict, treating a missing block as empty."""
    if value is None:
        return {}
    if not isinstance(value, dict):
        msg = f"'{key}' must be a mapping."
        raise SiteConfigError(msg)
    return dict(value)


def _build_website(payload: object) -> Website[str]:
    """Build the Website from the ``site`` block."""
    data = _as_mapping(payload, "site")
    name = data.get("name")
    if not name:
        msg = "Site configuration is missing 'site.name'."
        raise SiteConfigError(msg)

    sections = data.get("sections") or []
    if not isinstance(sections, list):
        msg = "'site.sections' must be a list of section ids."
        raise SiteConfigError(msg)

    return Website(
        name=str(name),
        url=str(data.get("url", "")),
        section_ids=tuple(str(section) for section in sections),
        description=str(data.get("description", "")),
        language=str(data.get("language", "en")),
        image_path=data.get("image"),
    )


def _build_git_config(payload: object) -> GitDeployConfig | None:
    if payload is None:
        return None
    data = _as_mapping(payload, "deploy.git")
    remote = data.get("remote")
    if not remote:
        msg = "'deploy.git' requires a 'remote'."
        raise SiteConfigError(msg)
    subpath = data.get("output_subpath")
    return GitDeployConfig(
        remote=str(remote),
        branch=str(data.get("branch", "master")),
        output_subpath=str(subpath) if subpath else None,
    )


def _resolve(base_dir: Path, value: object) -> Path:
    candidate = Path(str(value)).expanduser()
    return candidate if candidate.is_absolute() else base_dir / candidate


__all__ = ["load_site_config"]
