"""Shared state that publishing steps read and mutate.

:class:`PublishingContext` is created once per run by the pipeline and handed
to every step in turn. It holds the website's content (index, sections,
items, pages), gives steps scoped access to the root, output, internal and
cache folders, and remembers when the website was last generated.

Path arguments are resolved against the root folder unless the method name
says otherwise (``output_*`` methods use the output folder). Failures are
reported as :class:`~publishkit.errors.FileIOError` and
:class:`~publishkit.errors.ContentError`.

Example
-------
>>> from publishkit.content import Page
>>> context.add_page(Page("/about"))  # doctest: +SKIP
>>> context.mutate_page("/about", lambda page: setattr(page.content, "title", "About"))  # doctest: +SKIP
"""

from __future__ import annotations

import collections.abc as cabc
import contextlib
import copy
import datetime as dt
import time
import types
import typing as typ
from pathlib import Path, PurePosixPath

from ._constants import DEFAULT_DATE_FORMAT, DEPLOY_FOLDER_TEMPLATE, LAST_GENERATION_FILE_NAME
from .content import (
    Index,
    Item,
    Mutation,
    Page,
    Predicate,
    Section,
    SectionIDT,
    SectionMap,
    SitePath,
    SortKey,
    SortOrder,
    Tag,
    as_site_path,
    path_component,
)
from .errors import ContentError, ContentReason, FileIOError, FileIOReason
from .folders import (
    copy_location,
    create_file_if_needed,
    create_subfolder_if_needed,
    empty_folder,
)
from .markdown import MarkdownContentFactory, MarkdownParser

if typ.TYPE_CHECKING:
    from .config import Website
    from .folders import FolderGroup


class PublishingContext(typ.Generic[SectionIDT]):
    """Mutable state of one publishing run, passed to every step.

    Attributes
    ----------
    site : Website
        The website being published.
    markdown_parser : MarkdownParser
        Parser used by Markdown steps; extensions can be added to it.
    date_format : str
        ``strptime`` format used when decoding Markdown dates.
    index : Index
        The website's root page.
    last_generation_date : datetime or None
        When the website was generated before this run, if known.
    """

    def __init__(
        self,
        site: Website[SectionIDT],
        folders: FolderGroup,
        first_step_name: str,
        *,
        date_format: str = DEFAULT_DATE_FORMAT,
    ) -> None:
        self.site = site
        self.markdown_parser = MarkdownParser()
        self.date_format = date_format
        self.index = Index()
        self.last_generation_date: dt.datetime | None = None
        self._folders = folders
        self._sections: SectionMap[SectionIDT] = SectionMap(site.section_ids)
        self._sections.on_change = self._invalidate_tags
        self._pages: dict[PurePosixPath, Page] = {}
        self._tag_cache: frozenset[Tag] | None = None
        self._step_name = first_step_name

    @property
    def sections(self) -> SectionMap[SectionIDT]:
        """The website's sections, in the site's declared id order."""
        return self._sections

    @sections.setter
    def sections(self, sections: SectionMap[SectionIDT]) -> None:
        self._sections = sections
        sections.on_change = self._invalidate_tags
        self._invalidate_tags()

    @property
    def pages(self) -> cabc.Mapping[PurePosixPath, Page]:
        """Read-only view of the free-form pages keyed by path."""
        return types.MappingProxyType(self._pages)

    @property
    def all_tags(self) -> frozenset[Tag]:
        """Every tag used by an item of any section."""
        if self._tag_cache is None:
            tags: set[Tag] = set()
            for section in self._sections:
                tags.update(section.all_tags)
            self._tag_cache = frozenset(tags)
        return self._tag_cache

    def folder(self, at: SitePath) -> Path:
        """Return the existing folder at ``at`` under the root folder."""
        return self._lookup(self._folders.root, at, FileIOReason.FOLDER_NOT_FOUND)

    def file(self, at: SitePath) -> Path:
        """Return the existing file at ``at`` under the root folder."""
        return self._lookup(self._folders.root, at, FileIOReason.FILE_NOT_FOUND)

    def output_folder(self, at: SitePath) -> Path:
        return self._lookup(self._folders.output, at, FileIOReason.FOLDER_NOT_FOUND)

    def output_file(self, at: SitePath) -> Path:
        return self._lookup(self._folders.output, at, FileIOReason.FILE_NOT_FOUND)

    def create_folder(self, at: SitePath) -> Path:
        """Create (or reuse) a folder at ``at`` under the root folder."""
        return self._create_folder(self._folders.root, at)

    def create_file(self, at: SitePath) -> Path:
        """Create (or reuse) a file at ``at`` under the root folder."""
        return self._create_file(self._folders.root, at)

    def create_output_folder(self, at: SitePath) -> Path:
        return self._create_folder(self._folders.output, at)

    def create_output_file(self, at: SitePath) -> Path:
        return self._create_file(self._folders.output, at)

    def copy_folder_to_output(self, origin: SitePath, target: SitePath | None = None) -> None:
        """Copy the folder at ``origin`` into the output folder or its ``target`` subfolder."""
        folder = self.folder(origin)
        self._copy_to_output(folder, target, FileIOReason.FOLDER_COPYING_FAILED)

    def copy_file_to_output(self, origin: SitePath, target: SitePath | None = None) -> None:
        """Copy the file at ``origin`` into the output folder or its ``target`` subfolder."""
        file = self.file(origin)
        self._copy_to_output(file, target, FileIOReason.FILE_COPYING_FAILED)

    def create_deployment_folder(
        self,
        prefix: str,
        configure: cabc.Callable[[Path], None],
        *,
        output_folder_path: SitePath | None = None,
    ) -> Path:
        """Prepare ``.publish/<prefix>Deploy`` with a copy of the output folder.

        Any existing deployment folder is emptied, apart from hidden entries,
        before ``configure`` is called with it. Every file and folder in the
        output folder is then copied into the deployment folder, or into its
        ``output_folder_path`` subfolder.

        Parameters
        ----------
        prefix : str
            Prefix for the folder name, typically the deployment method.
        configure : Callable[[Path], None]
            Called with the emptied folder, for example to initialise a
            repository in it.
        output_folder_path : SitePath, optional
            Subfolder of the deployment folder that receives the output.

        Returns
        -------
        Path
            The deployment folder.

        Raises
        ------
        FileIOError
            ``DEPLOYMENT_FOLDER_SETUP_FAILED`` if ``configure`` raises,
            ``FOLDER_CREATION_FAILED`` if the folder cannot be prepared or the
            output cannot be copied.
        """
        path = PurePosixPath(DEPLOY_FOLDER_TEMPLATE.format(prefix=prefix))
        folder = self._create_folder(self._folders.internal, path)
        try:
            empty_folder(folder, include_hidden=False)
        except OSError as exc:
            raise FileIOError(
                path, FileIOReason.FOLDER_CREATION_FAILED, underlying_error=exc
            ) from exc

        try:
            configure(folder)
        except Exception as exc:
            raise FileIOError(
                path, FileIOReason.DEPLOYMENT_FOLDER_SETUP_FAILED, underlying_error=exc
            ) from exc

        try:
            target = folder
            if output_folder_path is not None:
                target = create_subfolder_if_needed(folder, str(output_folder_path))
            for entry in sorted(self._folders.output.iterdir()):
                copy_location(entry, target)
        except OSError as exc:
            raise FileIOError(
                path, FileIOReason.FOLDER_CREATION_FAILED, underlying_error=exc
            ) from exc
        return folder

    def cache_file(self, name: str) -> Path:
        """Return the cache file ``name`` of the current step, creating it if needed.

        Cache files are scoped to the step that asks for them and survive
        between runs.
        """
        folder_name = path_component(self._step_name, "step")
        file_name = path_component(name, "file")
        try:
            folder = create_subfolder_if_needed(self._folders.caches, folder_name)
            return create_file_if_needed(folder, file_name)
        except OSError as exc:
            raise FileIOError(
                PurePosixPath(folder_name, file_name),
                FileIOReason.FILE_CREATION_FAILED,
                underlying_error=exc,
            ) from exc

    def all_items(
        self, sorted_by: SortKey, order: SortOrder = SortOrder.ASCENDING
    ) -> list[Item[SectionIDT]]:
        """Return the items of every section sorted by ``sorted_by``.

        ``sorted_by`` is either a key function or an item attribute name.
        Items with equal keys keep their section and insertion order.
        """
        items = [item for section in self._sections for item in section.items]
        return order.sort(items, sorted_by)

    def items(
        self,
        tagged_with: str,
        sorted_by: SortKey | None = None,
        order: SortOrder = SortOrder.ASCENDING,
    ) -> list[Item[SectionIDT]]:
        """Return every item tagged with ``tagged_with``, optionally sorted."""
        items = [
            item
            for section in self._sections
            for item in section.items_tagged_with(tagged_with)
        ]
        if sorted_by is None:
            return items
        return order.sort(items, sorted_by)

    def add_item(self, item: Item[SectionIDT]) -> None:
        """Add ``item`` to the section named by its ``section_id``."""
        self._sections[item.section_id].add_item(item)
        self._invalidate_tags()

    def add_page(self, page: Page) -> None:
        """Add ``page``, replacing any page already stored at its path."""
        self._pages[page.path] = page

    def mutate_all_sections(self, mutation: Mutation[Section[SectionIDT]]) -> None:
        """Apply ``mutation`` in place to every section, in id order.

        A failing mutation stops the iteration and its error propagates
        unchanged.
        """
        try:
            for section_id in self._sections.ids:
                mutation(self._sections[section_id])
        finally:
            self._invalidate_tags()

    def mutate_page(
        self,
        path: SitePath,
        mutation: Mutation[Page],
        matching: Predicate[Page] | None = None,
    ) -> None:
        """Mutate the page stored at ``path``.

        Pages rejected by ``matching`` are left alone. When the mutation
        changes the page's path the page is stored under its new path only.

        Raises
        ------
        ContentError
            ``PAGE_NOT_FOUND`` when no page exists at ``path``,
            ``PAGE_MUTATION_FAILED`` when ``mutation`` raises.
        """
        site_path = as_site_path(path)
        stored = self._pages.get(site_path)
        if stored is None:
            raise ContentError(site_path, ContentReason.PAGE_NOT_FOUND)

        if matching is not None and not matching(stored):
            return

        page = copy.deepcopy(stored)
        try:
            mutation(page)
        except Exception as exc:
            raise ContentError(
                as_site_path(page.path),
                ContentReason.PAGE_MUTATION_FAILED,
                underlying_error=exc,
            ) from exc

        page.path = as_site_path(page.path)
        self._pages[page.path] = page
        if page.path != site_path:
            del self._pages[site_path]

    def make_markdown_content_factory(self) -> MarkdownContentFactory[SectionIDT]:
        return MarkdownContentFactory(self.markdown_parser, self.date_format)

    def generation_will_begin(self) -> None:
        """Record this run's start time; failures here never stop the run."""
        with contextlib.suppress(OSError, UnicodeError):
            self._update_last_generation_date()

    def prepare_for_step(self, name: str) -> None:
        """Scope cache files to the step called ``name``."""
        self._step_name = name

    def _update_last_generation_date(self) -> None:
        file = self._folders.internal / LAST_GENERATION_FILE_NAME
        new_value = str(time.time())
        if file.is_file():
            self.last_generation_date = _parse_epoch(file.read_text(encoding="utf-8"))
        file.write_text(new_value, encoding="utf-8")

    def _invalidate_tags(self) -> None:
        self._tag_cache = None

    @staticmethod
    def _lookup(base: Path, at: SitePath, reason: FileIOReason) -> Path:
        site_path = as_site_path(at)
        candidate = base / str(site_path).lstrip("/")
        expected_dir = reason is FileIOReason.FOLDER_NOT_FOUND
        exists = candidate.is_dir() if expected_dir else candidate.is_file()
        if not exists:
            raise FileIOError(site_path, reason)
        return candidate

    @staticmethod
    def _create_folder(base: Path, at: SitePath) -> Path:
        try:
            return create_subfolder_if_needed(base, str(at))
        except OSError as exc:
            raise FileIOError(
                PurePosixPath(base, str(at).lstrip("/")),
                FileIOReason.FOLDER_CREATION_FAILED,
                underlying_error=exc,
            ) from exc

    @staticmethod
    def _create_file(base: Path, at: SitePath) -> Path:
        try:
            return create_file_if_needed(base, str(at))
        except OSError as exc:
            raise FileIOError(
                PurePosixPath(base, str(at).lstrip("/")),
                FileIOReason.FILE_CREATION_FAILED,
                underlying_error=exc,
            ) from exc

    def _copy_to_output(
        self, location: Path, target: SitePath | None, reason: FileIOReason
    ) -> None:
        target_folder = self._folders.output
        if target is not None:
            target_folder = self.create_output_folder(target)
        try:
            copy_location(location, target_folder)
        except OSError as exc:
            relative = PurePosixPath(location.relative_to(self._folders.root).as_posix())
            raise FileIOError(relative, reason, underlying_error=exc) from exc


def _parse_epoch(text: str) -> dt.datetime | None:
    try:
        return dt.datetime.fromtimestamp(float(text.strip()), tz=dt.UTC)
    except (ValueError, OverflowError, OSError):
        return None


__all__ = ["PublishingContext"]
