"""Typed dataclasses describing a website and how it is built."""

from __future__ import annotations

import dataclasses as dc
import typing as typ
from pathlib import Path

from .._constants import DEFAULT_DATE_FORMAT
from ..content import SectionIDT


class SiteConfigError(ValueError):
    """Raised when the site configuration is invalid or incomplete."""


@dc.dataclass(slots=True)
class Website(typ.Generic[SectionIDT]):
    """Description of a website, supplied by the caller and read-only to steps.

    Attributes
    ----------
    name : str
        Display name used in console output and templates.
    url : str
        Absolute base URL the website is served from.
    section_ids : tuple[SectionIDT, ...]
        Identifiers of the website's sections, in display order. Plain
        strings or members of a ``StrEnum``.
    description : str
        Short description used in templates.
    language : str
        Language code of the content.
    image_path : str or None
        Optional default social image.
    """

    name: str
    url: str = ""
    section_ids: tuple[SectionIDT, ...] = ()
    description: str = ""
    language: str = "en"
    image_path: str | None = None

    def __post_init__(self) -> None:
        self.section_ids = tuple(self.section_ids)
        if len(set(self.section_ids)) != len(self.section_ids):
            msg = f"Website '{self.name}' declares duplicate section ids."
            raise SiteConfigError(msg)


@dc.dataclass(slots=True)
class GitDeployConfig:
    """Remote repository the ``deploy`` command pushes the output to."""

    remote: str
    branch: str = "master"
    output_subpath: str | None = None


@dc.dataclass(slots=True)
class SiteConfig:
    """A website together with the folders and options used to build it."""

    site: Website[str]
    root: Path
    output: Path | None = None
    content_folder: str = "Content"
    resources_folder: str = "Resources"
    templates_folder: Path | None = None
    date_format: str = DEFAULT_DATE_FORMAT
    git: GitDeployConfig | None = None


__all__ = ["GitDeployConfig", "SiteConfig", "SiteConfigError", "Website"]
