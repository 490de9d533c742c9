"""Content model shared by the publishing context and the step library.

A website is made of an :class:`Index`, one :class:`Section` per section id
declared by the site (held in a :class:`SectionMap`), the :class:`Item`
objects each section owns, and free-form :class:`Page` objects addressed by
their output path.

Examples
--------
>>> from publishkit.content import Item, Section, Tag
>>> section = Section("posts")
>>> section.add_item(Item("posts", "hello", tags=[Tag("intro")]))
>>> sorted(section.all_tags)
['intro']
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import datetime as dt
import enum
import hashlib
import operator
import re
import typing as typ
from pathlib import PurePosixPath

SectionIDT = typ.TypeVar("SectionIDT", bound=str)
T = typ.TypeVar("T")

SitePath = str | PurePosixPath
SortKey = str | cabc.Callable[[typ.Any], typ.Any]
Predicate = cabc.Callable[[T], bool]
Mutation = cabc.Callable[[T], None]


def as_site_path(value: SitePath) -> PurePosixPath:
    """Return ``value`` as a :class:`PurePosixPath`."""
    return value if isinstance(value, PurePosixPath) else PurePosixPath(value)


def normalize_name(text: str) -> str:
    """Lowercase ``text``, turn whitespace into hyphens and drop other symbols.

    >>> normalize_name("Generate HTML")
    'generate-html'
    """
    hyphenated = re.sub(r"\s", "-", text.lower())
    return re.sub(r"[^\w-]", "", hyphenated)


def path_component(text: str, prefix: str) -> str:
    """Return the normalized ``text``, or ``<prefix>-<digest>`` when nothing is left.

    >>> path_component("Release Notes", "tag")
    'release-notes'
    >>> path_component("!!!", "tag").startswith("tag-")
    True
    """
    normalized = normalize_name(text)
    if normalized:
        return normalized
    digest = hashlib.sha1(text.encode("utf-8")).hexdigest()[:8]  # noqa: S324
    return f"{prefix}-{digest}"


def _utc_now() -> dt.datetime:
    return dt.datetime.now(dt.UTC)


class Tag(str):
    """A label attached to items, compared by its raw string."""

    __slots__ = ()

    def normalized(self) -> str:
        """Return the URL-safe form of the tag."""
        return path_component(self, "tag")


class SortOrder(enum.Enum):
    """Order used when sorting items."""

    ASCENDING = "ascending"
    DESCENDING = "descending"

    def sort(self, values: cabc.Iterable[T], key: SortKey) -> list[T]:
        """Return ``values`` sorted by ``key``; equal keys keep their relative order."""
        key_func = operator.attrgetter(key) if isinstance(key, str) else key
        return sorted(values, key=key_func, reverse=self is SortOrder.DESCENDING)


@dc.dataclass(slots=True)
class Content:
    """Title, description and rendered body of a piece of content."""

    title: str = ""
    description: str = ""
    body: str = ""
    date: dt.datetime = dc.field(default_factory=_utc_now)
    last_modified: dt.datetime = dc.field(default_factory=_utc_now)
    image_path: str | None = None


@dc.dataclass(slots=True)
class Item(typ.Generic[SectionIDT]):
    """One content unit belonging to a section.

    Attributes
    ----------
    section_id : SectionIDT
        Identifier of the owning section.
    path : PurePosixPath
        Path of the item relative to its section.
    tags : list[Tag]
        Tags attached to the item.
    metadata : dict[str, Any]
        Site-defined metadata decoded alongside the content.
    content : Content
        Title, description and body.
    """

    section_id: SectionIDT
    path: PurePosixPath
    tags: list[Tag] = dc.field(default_factory=list)
    metadata: dict[str, typ.Any] = dc.field(default_factory=dict)
    content: Content = dc.field(default_factory=Content)

    def __post_init__(self) -> None:
        self.path = as_site_path(self.path)
        self.tags = [Tag(tag) for tag in self.tags]

    @property
    def title(self) -> str:
        return self.content.title

    @property
    def description(self) -> str:
        return self.content.description

    @property
    def body(self) -> str:
        return self.content.body

    @property
    def date(self) -> dt.datetime:
        return self.content.date

    @property
    def last_modified(self) -> dt.datetime:
        return self.content.last_modified

    @property
    def output_path(self) -> PurePosixPath:
        """Path of the item relative to the site root."""
        return PurePosixPath(str(self.section_id)) / self.path


@dc.dataclass(slots=True)
class Page:
    """Free-form content addressed directly by its output path."""

    path: PurePosixPath
    content: Content = dc.field(default_factory=Content)

    def __post_init__(self) -> None:
        self.path = as_site_path(self.path)


@dc.dataclass(slots=True)
class Index:
    """The website's root page."""

    content: Content = dc.field(default_factory=Content)


@dc.dataclass(slots=True)
class Section(typ.Generic[SectionIDT]):
    """A named grouping of items that share a section id."""

    id: SectionIDT
    title: str = ""
    content: Content = dc.field(default_factory=Content)
    items: list[Item[SectionIDT]] = dc.field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.title:
            self.title = str(self.id).replace("-", " ").title()

    @property
    def path(self) -> PurePosixPath:
        return PurePosixPath(str(self.id))

    @property
    def all_tags(self) -> set[Tag]:
        """Union of the tags of every item in the section."""
        tags: set[Tag] = set()
        for item in self.items:
            tags.update(item.tags)
        return tags

    @property
    def last_item_modification_date(self) -> dt.datetime | None:
        return max((item.last_modified for item in self.items), default=None)

    def add_item(self, item: Item[SectionIDT]) -> None:
        self.items.append(item)

    def item(self, at: SitePath) -> Item[SectionIDT] | None:
        """Return the item at path ``at`` within the section, if any."""
        path = as_site_path(at)
        return next((item for item in self.items if item.path == path), None)

    def items_tagged_with(self, tag: str) -> list[Item[SectionIDT]]:
        return [item for item in self.items if tag in item.tags]

    def remove_items(self, matching: Predicate[Item[SectionIDT]] | None = None) -> None:
        """Remove every item matching ``matching`` (all items when ``None``)."""
        if matching is None:
            self.items.clear()
            return
        self.items[:] = [item for item in self.items if not matching(item)]

    def sort_items(self, by: SortKey, order: SortOrder = SortOrder.ASCENDING) -> None:
        self.items[:] = order.sort(self.items, by)

    def mutate_items(
        self,
        mutation: Mutation[Item[SectionIDT]],
        matching: Predicate[Item[SectionIDT]] | None = None,
    ) -> None:
        """Apply ``mutation`` in place to every item matching ``matching``."""
        for item in self.items:
            if matching is None or matching(item):
                mutation(item)


class SectionMap(typ.Generic[SectionIDT]):
    """One :class:`Section` per section id, iterated in the site's id order.

    Replacing a section calls ``on_change`` when one is registered.
    """

    def __init__(self, ids: cabc.Iterable[SectionIDT]) -> None:
        self._sections: dict[SectionIDT, Section[SectionIDT]] = {
            section_id: Section(section_id) for section_id in ids
        }
        self.on_change: cabc.Callable[[], None] | None = None

    @property
    def ids(self) -> tuple[SectionIDT, ...]:
        return tuple(self._sections)

    def __getitem__(self, section_id: SectionIDT) -> Section[SectionIDT]:
        try:
            return self._sections[section_id]
        except KeyError as exc:
            known = ", ".join(str(known_id) for known_id in self._sections)
            msg = f"Unknown section '{section_id}'. Known sections: {known}"
            raise KeyError(msg) from exc

    def __setitem__(self, section_id: SectionIDT, section: Section[SectionIDT]) -> None:
        if section_id not in self._sections:
            msg = f"Unknown section '{section_id}'"
            raise KeyError(msg)
        self._sections[section_id] = section
        if self.on_change is not None:
            self.on_change()

    def __contains__(self, section_id: object) -> bool:
        return section_id in self._sections

    def __iter__(self) -> cabc.Iterator[Section[SectionIDT]]:
        return iter(list(self._sections.values()))

    def __len__(self) -> int:
        return len(self._sections)


@dc.dataclass(frozen=True, slots=True)
class PublishedWebsite(typ.Generic[SectionIDT]):
    """Snapshot of a website's content at the end of a successful run."""

    index: Index
    sections: SectionMap[SectionIDT]
    pages: cabc.Mapping[PurePosixPath, Page]


__all__ = [
    "Content",
    "Index",
    "Item",
    "Mutation",
    "Page",
    "Predicate",
    "PublishedWebsite",
    "Section",
    "SectionIDT",
    "SectionMap",
    "SitePath",
    "SortKey",
    "SortOrder",
    "Tag",
    "as_site_path",
    "normalize_name",
    "path_component",
]
