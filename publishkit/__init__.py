"""Build static websites from a tree of publishing steps.

A website is described by a :class:`Website` and a list of
:class:`PublishingStep` values. :func:`publish` (or
:class:`PublishingPipeline`) sets up the project folders, creates a
:class:`PublishingContext` and runs every step of the requested kind in
order. Ready-made steps live in :mod:`publishkit.library`; the ``publish``
console script drives the same pipeline from a ``site.yaml`` file.

Examples
--------
>>> from pathlib import Path
>>> from publishkit import PublishingStep, Website, library, publish
>>> site = Website(name="Example", section_ids=("posts",))
>>> publish(
...     site,
...     [library.add_markdown_files(), library.generate_html()],
...     root=Path("."),
... )  # doctest: +SKIP
"""

from __future__ import annotations

from . import library
from .cli import app, main
from .config import SiteConfig, Website, load_site_config
from .content import Content, Index, Item, Page, Section, SortOrder, Tag
from .context import PublishingContext
from .errors import PublishingError
from .pipeline import PublishingPipeline, publish
from .steps import PublishingStep, StepKind

__all__ = [
    "Content",
    "Index",
    "Item",
    "Page",
    "PublishingContext",
    "PublishingError",
    "PublishingPipeline",
    "PublishingStep",
    "Section",
    "SiteConfig",
    "SortOrder",
    "StepKind",
    "Tag",
    "Website",
    "app",
    "library",
    "load_site_config",
    "main",
    "publish",
]
