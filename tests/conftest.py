"""Shared fixtures for publishkit tests."""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import typing as typ
from pathlib import Path

import pytest

from publishkit.config import Website
from publishkit.content import Content, Item
from publishkit.context import PublishingContext
from publishkit.folders import set_up_folders

ContextFactory = cabc.Callable[..., PublishingContext[str]]


@pytest.fixture
def site() -> Website[str]:
    """Return a website with two sections."""
    return Website(
        name="Example",
        url="https://example.com",
        section_ids=("posts", "notes"),
        description="An example website",
    )


@pytest.fixture
def site_root(tmp_path: Path) -> Path:
    """Return an existing root folder for a publishing run."""
    root = tmp_path / "site"
    root.mkdir()
    return root


@pytest.fixture
def make_context(site: Website[str], site_root: Path) -> ContextFactory:
    """Return a factory building a context over freshly set up folders."""

    def _make(first_step_name: str = "First", **kwargs: typ.Any) -> PublishingContext[str]:
        folders = set_up_folders(explicit_root=site_root)
        return PublishingContext(site, folders, first_step_name, **kwargs)

    return _make


@pytest.fixture
def make_item() -> cabc.Callable[..., Item[str]]:
    """Return a builder for items dated ``2024-01-<day>``."""
    return build_item


def build_item(
    section_id: str,
    path: str,
    *,
    tags: cabc.Iterable[str] = (),
    day: int = 1,
    title: str | None = None,
) -> Item[str]:
    """Build an item dated ``2024-01-<day>`` for tests."""
    date = dt.datetime(2024, 1, day, tzinfo=dt.UTC)
    return Item(
        section_id=section_id,
        path=path,
        tags=list(tags),
        content=Content(title=title or path, date=date, last_modified=date),
    )
