"""Ready-made publishing steps.

Each function here returns a :class:`~publishkit.steps.PublishingStep` that can
be placed in a website's step tree. Generation steps add or reshape content
and write files into the output folder; :func:`deploy` wraps a
:class:`~publishkit.deploy.DeploymentMethod` into a deployment step;
:func:`install_plugin` runs in every kind of run.

Example
-------
>>> from publishkit import library
>>> steps = [
...     library.copy_resources(),
...     library.add_markdown_files(),
...     library.sort_items(by="date", order=SortOrder.DESCENDING),
...     library.generate_html(),
... ]  # doctest: +SKIP
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import typing as typ
from pathlib import Path, PurePosixPath

from .content import (
    Item,
    Mutation,
    Page,
    Predicate,
    Section,
    SitePath,
    SortKey,
    SortOrder,
    as_site_path,
)
from .deploy import DeploymentMethod, git_deployment
from .rendering import HtmlGenerator, SiteMapGenerator
from .steps import PublishingStep, StepCallback, StepKind

if typ.TYPE_CHECKING:
    from .config import SiteConfig
    from .context import PublishingContext
    from .markdown import MarkdownContentFactory


@dc.dataclass(frozen=True, slots=True)
class Plugin:
    """A named bundle of setup work, such as Markdown extensions."""

    name: str
    installer: StepCallback


def step(
    name: str, callback: StepCallback, *, kind: StepKind = StepKind.GENERATION
) -> PublishingStep:
    return PublishingStep.step(name, callback, kind=kind)


def group(steps: cabc.Iterable[PublishingStep]) -> PublishingStep:
    return PublishingStep.group(steps)


def copy_resources(
    at: SitePath = "Resources",
    to: SitePath | None = None,
    *,
    include_folder: bool = False,
) -> PublishingStep:
    """Copy the contents of the ``at`` folder (or the folder itself) into the output."""

    def _copy(context: PublishingContext[typ.Any]) -> None:
        if include_folder:
            context.copy_folder_to_output(at, to)
            return
        folder = context.folder(at)
        origin = as_site_path(at)
        for entry in sorted(folder.iterdir()):
            if entry.is_dir():
                context.copy_folder_to_output(origin / entry.name, to)
            else:
                context.copy_file_to_output(origin / entry.name, to)

    return step(f"Copy '{at}' folder", _copy)


def copy_file(at: SitePath, to: SitePath | None = None) -> PublishingStep:
    def _copy(context: PublishingContext[typ.Any]) -> None:
        context.copy_file_to_output(at, to)

    return step(f"Copy file '{at}'", _copy)


def add_markdown_files(at: SitePath = "Content") -> PublishingStep:
    """Parse every Markdown file under ``at`` into the index, sections and pages.

    ``index.md`` in ``at`` becomes the website's index. Inside a folder named
    like a section id, ``index.md`` provides the section's own content and
    every other Markdown file (searched recursively) becomes an item. Any
    other Markdown file becomes a page at its path without extension.
    """

    def _add(context: PublishingContext[typ.Any]) -> None:
        folder = context.folder(at)
        factory = context.make_markdown_content_factory()

        for file in sorted(folder.glob("*.md")):
            if file.stem == "index":
                context.index = factory.make_index(file)
            else:
                context.add_page(factory.make_page(file, PurePosixPath(file.stem)))

        for subfolder in sorted(entry for entry in folder.iterdir() if entry.is_dir()):
            if subfolder.name.startswith("."):
                continue
            if subfolder.name in context.sections:
                _add_section_files(context, factory, subfolder)
                continue
            for file in sorted(subfolder.rglob("*.md")):
                context.add_page(factory.make_page(file, _markdown_path(file, folder)))

    return step(f"Add Markdown files from '{at}' folder", _add)


def _add_section_files(
    context: PublishingContext[typ.Any],
    factory: MarkdownContentFactory[typ.Any],
    folder: Path,
) -> None:
    section = context.sections[folder.name]
    for file in sorted(folder.rglob("*.md")):
        path = _markdown_path(file, folder)
        if path == PurePosixPath("."):
            section.content = factory.make_index(file).content
            continue
        context.add_item(factory.make_item(file, section.id, path))


def _markdown_path(file: Path, base: Path) -> PurePosixPath:
    """Return the site path of ``file``: relative to ``base``, without ``.md`` or ``index``."""
    relative = PurePosixPath(file.relative_to(base).with_suffix("").as_posix())
    if relative.name == "index":
        return relative.parent
    return relative


def add_item(item: Item[typ.Any]) -> PublishingStep:
    def _add(context: PublishingContext[typ.Any]) -> None:
        context.add_item(item)

    return step(f"Add item '{item.path}'", _add)


def add_items(items: cabc.Iterable[Item[typ.Any]]) -> PublishingStep:
    pending = tuple(items)

    def _add(context: PublishingContext[typ.Any]) -> None:
        for item in pending:
            context.add_item(item)

    return step("Add items", _add)


def add_page(page: Page) -> PublishingStep:
    def _add(context: PublishingContext[typ.Any]) -> None:
        context.add_page(page)

    return step(f"Add page '{page.path}'", _add)


def mutate_all_sections(mutation: Mutation[Section[typ.Any]]) -> PublishingStep:
    def _mutate(context: PublishingContext[typ.Any]) -> None:
        context.mutate_all_sections(mutation)

    return step("Mutate all sections", _mutate)


def mutate_all_items(
    mutation: Mutation[Item[typ.Any]],
    *,
    in_section: str | None = None,
    matching: Predicate[Item[typ.Any]] | None = None,
) -> PublishingStep:
    """Mutate every item, optionally limited to one section and a predicate."""

    def _mutate(context: PublishingContext[typ.Any]) -> None:
        def _mutate_section(section: Section[typ.Any]) -> None:
            if in_section is None or section.id == in_section:
                section.mutate_items(mutation, matching)

        context.mutate_all_sections(_mutate_section)

    label = f"Mutate items in '{in_section}'" if in_section else "Mutate all items"
    return step(label, _mutate)


def mutate_page(
    path: SitePath,
    mutation: Mutation[Page],
    *,
    matching: Predicate[Page] | None = None,
) -> PublishingStep:
    def _mutate(context: PublishingContext[typ.Any]) -> None:
        context.mutate_page(path, mutation, matching)

    return step(f"Mutate page at '{path}'", _mutate)


def mutate_all_pages(
    mutation: Mutation[Page], *, matching: Predicate[Page] | None = None
) -> PublishingStep:
    def _mutate(context: PublishingContext[typ.Any]) -> None:
        for path in list(context.pages):
            context.mutate_page(path, mutation, matching)

    return step("Mutate all pages", _mutate)


def remove_all_items(
    *,
    in_section: str | None = None,
    matching: Predicate[Item[typ.Any]] | None = None,
) -> PublishingStep:
    """Remove items matching ``matching`` (every item when ``None``)."""

    def _remove(context: PublishingContext[typ.Any]) -> None:
        def _remove_from(section: Section[typ.Any]) -> None:
            if in_section is None or section.id == in_section:
                section.remove_items(matching)

        context.mutate_all_sections(_remove_from)

    label = f"Remove items from '{in_section}'" if in_section else "Remove all items"
    return step(label, _remove)


def sort_items(
    by: SortKey,
    order: SortOrder = SortOrder.ASCENDING,
    *,
    in_section: str | None = None,
) -> PublishingStep:
    def _sort(context: PublishingContext[typ.Any]) -> None:
        def _sort_section(section: Section[typ.Any]) -> None:
            if in_section is None or section.id == in_section:
                section.sort_items(by, order)

        context.mutate_all_sections(_sort_section)

    label = f"Sort items in '{in_section}'" if in_section else "Sort items"
    return step(label, _sort)


def install_plugin(plugin: Plugin) -> PublishingStep:
    """Run ``plugin``'s installer in every kind of run."""
    return step(f"Plugin: {plugin.name}", plugin.installer, kind=StepKind.SYSTEM)


def generate_html(templates_dir: Path | None = None) -> PublishingStep:
    """Render the index, sections, items, pages and tag listings to HTML."""

    def _generate(context: PublishingContext[typ.Any]) -> None:
        HtmlGenerator(context, templates_dir=templates_dir).run()

    return step("Generate HTML", _generate)


def generate_site_map(
    excluded_paths: cabc.Iterable[str] = (), *, templates_dir: Path | None = None
) -> PublishingStep:
    excluded = tuple(excluded_paths)

    def _generate(context: PublishingContext[typ.Any]) -> None:
        SiteMapGenerator(
            context, excluded_paths=excluded, templates_dir=templates_dir
        ).run()

    return step("Generate site map", _generate)


def deploy(method: DeploymentMethod) -> PublishingStep:
    """Run ``method`` in deployment runs only."""
    return step(f"Deploy using {method.name}", method.body, kind=StepKind.DEPLOYMENT)


def default_steps(config: SiteConfig) -> list[PublishingStep]:
    """Return the standard step tree for a website described by ``config``."""
    has_resources = (config.root / config.resources_folder).is_dir()
    has_content = (config.root / config.content_folder).is_dir()
    return [
        PublishingStep.when(has_resources, copy_resources(config.resources_folder)),
        PublishingStep.when(has_content, add_markdown_files(config.content_folder)),
        sort_items(by="date", order=SortOrder.DESCENDING),
        generate_html(config.templates_folder),
        generate_site_map(),
        PublishingStep.unwrap(
            config.git,
            lambda git: deploy(
                git_deployment(
                    git.remote, branch=git.branch, output_subpath=git.output_subpath
                )
            ),
        ),
    ]


__all__ = [
    "Plugin",
    "add_item",
    "add_items",
    "add_markdown_files",
    "add_page",
    "copy_file",
    "copy_resources",
    "default_steps",
    "deploy",
    "generate_html",
    "generate_site_map",
    "group",
    "install_plugin",
    "mutate_all_items",
    "mutate_all_pages",
    "mutate_all_sections",
    "mutate_page",
    "remove_all_items",
    "sort_items",
    "step",
]
