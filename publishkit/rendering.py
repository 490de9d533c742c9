"""Render a publishing context's content into HTML files and a sitemap.

:class:`HtmlGenerator` wires a Jinja2 environment to the content held by a
:class:`~publishkit.context.PublishingContext` and writes one ``index.html``
per location into the output folder:

* ``index.html`` for the website's index (``index.jinja``);
* ``<section>/index.html`` per section (``section.jinja``);
* ``<section>/<item>/index.html`` per item (``item.jinja``);
* ``<page>/index.html`` per free-form page (``page.jinja``);
* ``tags/index.html`` and ``tags/<slug>/index.html`` when any tag is in use
  (``tags.jinja`` and ``tag.jinja``); tags sharing a slug share a page.

:class:`SiteMapGenerator` writes ``sitemap.xml`` listing the same locations.
Templates default to the ones bundled under ``publishkit/templates``.
"""

from __future__ import annotations

import collections.abc as cabc
import datetime as dt
import typing as typ
from pathlib import Path, PurePosixPath

from jinja2 import Environment, FileSystemLoader

from .content import SortOrder, Tag

if typ.TYPE_CHECKING:
    from .context import PublishingContext

DEFAULT_TEMPLATES_DIR = Path(__file__).parent / "templates"
INDEX_FILE_NAME = "index.html"


def _build_environment(templates_dir: Path) -> Environment:
    return Environment(
        loader=FileSystemLoader(templates_dir),
        autoescape=True,
        trim_blocks=True,
        lstrip_blocks=True,
    )


class HtmlGenerator:
    """Write the HTML files of every location held by the context."""

    def __init__(
        self, context: PublishingContext[typ.Any], *, templates_dir: Path | None = None
    ) -> None:
        """Initialize the generator and its Jinja environment.

        Parameters
        ----------
        context : PublishingContext
            Context whose index, sections, items and pages are rendered.
        templates_dir : Path, optional
            Directory containing the Jinja templates. Defaults to the templates
            bundled with publishkit.
        """
        self.context = context
        self.templates_dir = templates_dir or DEFAULT_TEMPLATES_DIR
        self.env = _build_environment(self.templates_dir)
        self.generated_at = dt.datetime.now(dt.UTC)

    def run(self) -> list[Path]:
        """Render every location and return the written files, in write order."""
        context = self.context
        latest = context.all_items("date", SortOrder.DESCENDING)
        written = [
            self._write(PurePosixPath(), "index.jinja", index=context.index, items=latest)
        ]

        for section in context.sections:
            written.append(self._write(section.path, "section.jinja", section=section))
            for item in section.items:
                written.append(
                    self._write(item.output_path, "item.jinja", section=section, item=item)
                )

        for page in context.pages.values():
            written.append(self._write(page.path, "page.jinja", page=page))

        tag_groups = _group_tags_by_slug(context.all_tags)
        if tag_groups:
            written.append(
                self._write(PurePosixPath("tags"), "tags.jinja", tag_groups=tag_groups)
            )
            for slug, tags in tag_groups.items():
                names = set(tags)
                items = [
                    item
                    for section in context.sections
                    for item in section.items
                    if names.intersection(item.tags)
                ]
                written.append(
                    self._write(
                        PurePosixPath("tags", slug),
                        "tag.jinja",
                        tag=", ".join(tags),
                        items=items,
                    )
                )
        return written

    def _write(self, location: PurePosixPath, template_name: str, **values: typ.Any) -> Path:
        relative = str(location).strip("/")
        if relative in ("", "."):
            target = PurePosixPath(INDEX_FILE_NAME)
        else:
            target = PurePosixPath(relative, INDEX_FILE_NAME)
        html = self.env.get_template(template_name).render(
            site=self.context.site,
            publishing_context=self.context,
            generated_at=self.generated_at,
            **values,
        )
        if not html.endswith("\n"):
            html += "\n"
        output_file = self.context.create_output_file(target)
        output_file.write_text(html, encoding="utf-8")
        return output_file


class SiteMapGenerator:
    """Write ``sitemap.xml`` listing the index, sections, items and pages."""

    def __init__(
        self,
        context: PublishingContext[typ.Any],
        *,
        excluded_paths: cabc.Iterable[str] = (),
        templates_dir: Path | None = None,
    ) -> None:
        self.context = context
        self.excluded_paths = tuple(path.strip("/") for path in excluded_paths)
        self.env = _build_environment(templates_dir or DEFAULT_TEMPLATES_DIR)

    def run(self) -> Path:
        entries = [
            entry for entry in self._entries() if not self._is_excluded(entry["path"])
        ]
        xml = self.env.get_template("sitemap.jinja").render(
            base_url=self.context.site.url.rstrip("/"), entries=entries
        )
        output_file = self.context.create_output_file("sitemap.xml")
        output_file.write_text(xml, encoding="utf-8")
        return output_file

    def _entries(self) -> cabc.Iterator[dict[str, str]]:
        yield {"path": "", "lastmod": _format_date(self.context.index.content.last_modified)}
        for section in self.context.sections:
            modified = section.last_item_modification_date or section.content.last_modified
            yield {"path": str(section.path), "lastmod": _format_date(modified)}
            for item in section.items:
                yield {
                    "path": str(item.output_path),
                    "lastmod": _format_date(item.last_modified),
                }
        for page in self.context.pages.values():
            yield {
                "path": str(page.path).strip("/"),
                "lastmod": _format_date(page.content.last_modified),
            }

    def _is_excluded(self, path: str) -> bool:
        return any(
            path == excluded or path.startswith(f"{excluded}/")
            for excluded in self.excluded_paths
        )


def _group_tags_by_slug(tags: cabc.Iterable[Tag]) -> dict[str, list[Tag]]:
    """Group ``tags`` sharing a URL slug so they render to one page."""
    groups: dict[str, list[Tag]] = {}
    for tag in sorted(tags):
        groups.setdefault(tag.normalized(), []).append(tag)
    return dict(sorted(groups.items()))


def _format_date(value: dt.datetime) -> str:
    return value.strftime("%Y-%m-%d")


__all__ = ["DEFAULT_TEMPLATES_DIR", "HtmlGenerator", "SiteMapGenerator"]
