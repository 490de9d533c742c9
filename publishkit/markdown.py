"""Parse Markdown files into website content.

:class:`MarkdownParser` splits an optional YAML front matter block from the
Markdown body, renders the body to HTML with the ``markdown`` package
(fenced code highlighted through Pygments) and picks the first level-one
heading as the title. :class:`MarkdownContentFactory` turns parsed files into
the :class:`~publishkit.content.Item`, :class:`~publishkit.content.Page` and
:class:`~publishkit.content.Index` objects the publishing context holds.

Example
-------
>>> from publishkit.markdown import MarkdownParser
>>> parsed = MarkdownParser().parse("---\\ntags: a, b\\n---\\n# Hello\\nWorld")
>>> parsed.title, parsed.metadata["tags"]
('Hello', 'a, b')
"""

from __future__ import annotations

import dataclasses as dc
import datetime as dt
import re
import typing as typ
from html import escape
from pathlib import Path, PurePosixPath

from markdown import Markdown as MarkdownRenderer
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ._constants import DEFAULT_DATE_FORMAT
from .content import Content, Index, Item, Page, SectionIDT, SitePath, Tag, as_site_path
from .errors import ContentError, ContentReason

if typ.TYPE_CHECKING:
    from markdown.extensions import Extension
else:  # pragma: no cover - type-checking fallback
    Extension = typ.Any

FRONT_MATTER_PATTERN = re.compile(r"\A---[ \t]*\n(.*?)\n---[ \t]*(?:\n|\Z)", re.DOTALL)
TITLE_PATTERN = re.compile(r"^#[ \t]+(.+?)[ \t]*#*[ \t]*$", re.MULTILINE)
CODE_BLOCK_PATTERN = re.compile(r"```([A-Za-z0-9_+#.-]+)?[^\n]*\n(.*?)```", re.DOTALL)
CODEHILITE_OPEN_TAG = re.compile(r'<div class="codehilite">')
_RESERVED_KEYS = frozenset({"title", "description", "date", "tags", "image"})


@dc.dataclass(slots=True)
class Markdown:
    """Result of parsing one Markdown document.

    Attributes
    ----------
    html : str
        Rendered HTML for the body.
    metadata : dict[str, Any]
        Values decoded from the front matter block.
    title : str or None
        Text of the first level-one heading, if any.
    """

    html: str
    metadata: dict[str, typ.Any]
    title: str | None = None


class MarkdownParser:
    """Render Markdown with front matter using consistent extensions."""

    def __init__(
        self,
        pygments_style: str = "monokai",
        extensions: list[Extension | str] | None = None,
    ) -> None:
        """Initialize a parser with an optional pygments style and extra extensions.

        Parameters
        ----------
        pygments_style : str, optional
            Name of the Pygments style used for syntax highlighting. Defaults to
            ``"monokai"``.
        extensions : list, optional
            Additional ``markdown`` extensions appended to the defaults.
        """
        self.pygments_style = pygments_style
        self.extensions: list[Extension | str] = list(extensions or [])
        self._yaml = YAML(typ="safe")
        self._yaml.version = (1, 2)

    def add_extension(self, extension: Extension | str) -> None:
        """Register an extra ``markdown`` extension for subsequent parses."""
        self.extensions.append(extension)

    def parse(self, text: str) -> Markdown:
        """Split front matter from ``text`` and render the remaining body.

        Raises
        ------
        ValueError
            If the front matter is not a YAML mapping.
        """
        metadata: dict[str, typ.Any] = {}
        body = text
        match = FRONT_MATTER_PATTERN.match(text)
        if match:
            loaded = self._yaml.load(match.group(1)) or {}
            if not isinstance(loaded, dict):
                msg = "Front matter must be a mapping."
                raise ValueError(msg)
            metadata = dict(loaded)
            body = text[match.end() :]

        title_match = TITLE_PATTERN.search(body)
        title = title_match.group(1).strip() if title_match else None
        return Markdown(html=self.render(body), metadata=metadata, title=title)

    def render(self, text: str) -> str:
        """Render Markdown ``text`` into HTML."""
        if not text.strip():
            return ""
        md = MarkdownRenderer(
            extensions=["fenced_code", "codehilite", "tables", "sane_lists", *self.extensions],
            extension_configs={
                "codehilite": {
                    "linenums": False,
                    "guess_lang": False,
                    "css_class": "codehilite",
                    "pygments_style": self.pygments_style,
                }
            },
        )
        html = md.convert(text)
        return self._annotate_codehilite(html, text)

    @staticmethod
    def _annotate_codehilite(html: str, source_markdown: str) -> str:
        """Attach language metadata to each highlighted block in converted markdown."""
        languages = [
            match.group(1) or "text"
            for match in CODE_BLOCK_PATTERN.finditer(source_markdown)
        ]
        if not languages:
            return html
        lang_iter = iter(languages)

        def _repl(match: re.Match[str]) -> str:
            lang = next(lang_iter, "text")
            return (
                f'<div class="codehilite" data-language="{escape(lang, quote=True)}">'
            )

        return CODEHILITE_OPEN_TAG.sub(_repl, html, len(languages))


class MarkdownContentFactory(typ.Generic[SectionIDT]):
    """Build items, pages and the index from Markdown files."""

    def __init__(
        self, parser: MarkdownParser, date_format: str = DEFAULT_DATE_FORMAT
    ) -> None:
        self.parser = parser
        self.date_format = date_format

    def make_item(
        self, file: Path, section_id: SectionIDT, path: SitePath
    ) -> Item[SectionIDT]:
        """Parse ``file`` into an item of ``section_id`` located at ``path``."""
        site_path = as_site_path(path)
        markdown = self._parse_file(file, site_path)
        metadata = {
            key: value
            for key, value in markdown.metadata.items()
            if key not in _RESERVED_KEYS
        }
        return Item(
            section_id=section_id,
            path=site_path,
            tags=self._decode_tags(markdown.metadata.get("tags")),
            metadata=metadata,
            content=self.make_content(markdown, site_path, file),
        )

    def make_page(self, file: Path, path: SitePath) -> Page:
        """Parse ``file`` into a page at ``path``."""
        site_path = as_site_path(path)
        markdown = self._parse_file(file, site_path)
        return Page(path=site_path, content=self.make_content(markdown, site_path, file))

    def make_index(self, file: Path) -> Index:
        site_path = PurePosixPath("index")
        markdown = self._parse_file(file, site_path)
        return Index(content=self.make_content(markdown, site_path, file))

    def make_content(
        self, markdown: Markdown, path: PurePosixPath, file: Path | None = None
    ) -> Content:
        """Decode the standard front matter keys of ``markdown`` into :class:`Content`.

        Raises
        ------
        ContentError
            If the ``date`` value cannot be decoded.
        """
        last_modified = dt.datetime.now(dt.UTC)
        if file is not None:
            last_modified = dt.datetime.fromtimestamp(file.stat().st_mtime, tz=dt.UTC)

        meta = markdown.metadata
        title = str(meta.get("title") or markdown.title or path.name)
        date = self._decode_date(meta.get("date"), path) or last_modified
        image = meta.get("image")
        return Content(
            title=title,
            description=str(meta.get("description") or ""),
            body=markdown.html,
            date=date,
            last_modified=last_modified,
            image_path=str(image) if image else None,
        )

    def _parse_file(self, file: Path, path: PurePosixPath) -> Markdown:
        try:
            return self.parser.parse(file.read_text(encoding="utf-8"))
        except (ValueError, YAMLError) as exc:
            raise ContentError(
                path,
                ContentReason.MARKDOWN_METADATA_DECODING_FAILED,
                underlying_error=exc,
            ) from exc

    def _decode_date(self, value: object, path: PurePosixPath) -> dt.datetime | None:
        match value:
            case None:
                return None
            case dt.datetime():
                parsed = value
            case dt.date():
                parsed = dt.datetime(value.year, value.month, value.day)
            case str() as text:
                parsed = self._parse_date_string(text.strip(), path)
            case _:
                raise ContentError(path, ContentReason.MARKDOWN_METADATA_DECODING_FAILED)
        if parsed.tzinfo is None:
            return parsed.replace(tzinfo=dt.UTC)
        return parsed.astimezone(dt.UTC)

    def _parse_date_string(self, text: str, path: PurePosixPath) -> dt.datetime:
        try:
            return dt.datetime.strptime(text, self.date_format)
        except ValueError:
            pass
        try:
            return dt.datetime.fromisoformat(text.replace("Z", "+00:00"))
        except ValueError as exc:
            raise ContentError(
                path,
                ContentReason.MARKDOWN_METADATA_DECODING_FAILED,
                underlying_error=exc,
            ) from exc

    @staticmethod
    def _decode_tags(value: object) -> list[Tag]:
        if value is None:
            return []
        if isinstance(value, str):
            raw = value.split(",")
        elif isinstance(value, list):
            raw = [str(entry) for entry in value]
        else:
            raw = [str(value)]
        return [Tag(tag.strip()) for tag in raw if tag.strip()]


__all__ = ["Markdown", "MarkdownContentFactory", "MarkdownParser"]
