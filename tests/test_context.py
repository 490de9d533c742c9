"""Tests for the publishing context shared by every step of a run."""

from __future__ import annotations

import collections.abc as cabc
import time
from pathlib import Path, PurePosixPath

import pytest

from publishkit.content import Item, Page, Section, SectionMap, SortOrder
from publishkit.context import PublishingContext
from publishkit.errors import ContentError, ContentReason, FileIOError, FileIOReason

ContextFactory = cabc.Callable[..., PublishingContext[str]]
ItemFactory = cabc.Callable[..., Item[str]]


def _raise(error: Exception) -> cabc.Callable[[object], None]:
    def _mutation(_: object) -> None:
        raise error

    return _mutation


class TestFolderAccess:
    """Lookups, creation and copying relative to the run's folders."""

    def test_missing_folder_raises_file_io_error(self, make_context: ContextFactory) -> None:
        context = make_context()

        with pytest.raises(FileIOError) as excinfo:
            context.folder("Resources")

        assert excinfo.value.reason is FileIOReason.FOLDER_NOT_FOUND
        assert excinfo.value.path == PurePosixPath("Resources")

    def test_file_lookup_distinguishes_files_from_folders(
        self, make_context: ContextFactory, site_root: Path
    ) -> None:
        (site_root / "Resources").mkdir()
        context = make_context()

        assert context.folder("Resources").is_dir()
        with pytest.raises(FileIOError) as excinfo:
            context.file("Resources")
        assert excinfo.value.reason is FileIOReason.FILE_NOT_FOUND

    def test_create_output_file_creates_parents(self, make_context: ContextFactory) -> None:
        context = make_context()

        created = context.create_output_file("posts/first/index.html")

        assert created.is_file()
        assert context.output_file("posts/first/index.html") == created
        assert context.output_folder("posts").is_dir()

    def test_create_folder_under_root(self, make_context: ContextFactory, site_root: Path) -> None:
        context = make_context()

        created = context.create_folder("/drafts/")

        assert created == site_root.resolve() / "drafts"
        assert created.is_dir()

    def test_copy_file_and_folder_to_output(
        self, make_context: ContextFactory, site_root: Path
    ) -> None:
        (site_root / "Resources" / "css").mkdir(parents=True)
        (site_root / "Resources" / "css" / "site.css").write_text("body{}", encoding="utf-8")
        (site_root / "CNAME").write_text("example.com", encoding="utf-8")
        context = make_context()

        context.copy_folder_to_output("Resources/css")
        context.copy_file_to_output("CNAME", "meta")

        assert context.output_file("css/site.css").read_text(encoding="utf-8") == "body{}"
        assert context.output_file("meta/CNAME").read_text(encoding="utf-8") == "example.com"

    def test_copying_missing_origin_raises(self, make_context: ContextFactory) -> None:
        context = make_context()

        with pytest.raises(FileIOError) as excinfo:
            context.copy_file_to_output("missing.txt")

        assert excinfo.value.reason is FileIOReason.FILE_NOT_FOUND


class TestCacheFiles:
    """Cache files are scoped to the step that requests them."""

    def test_same_name_in_different_steps_gives_distinct_files(
        self, make_context: ContextFactory
    ) -> None:
        context = make_context("Build")
        build_file = context.cache_file("data")
        context.prepare_for_step("Deploy")
        deploy_file = context.cache_file("data")

        assert build_file != deploy_file
        assert build_file.is_file()
        assert deploy_file.is_file()

    def test_same_name_in_same_step_gives_same_file(self, make_context: ContextFactory) -> None:
        context = make_context("Build")
        first = context.cache_file("data")
        first.write_text("cached", encoding="utf-8")

        second = context.cache_file("data")

        assert second == first
        assert second.read_text(encoding="utf-8") == "cached"

    def test_cache_path_uses_normalized_names(self, make_context: ContextFactory) -> None:
        context = make_context("Generate HTML")

        cache = context.cache_file("Feed Data!")

        assert cache.parent.name == "generate-html"
        assert cache.name == "feed-data"

    def test_symbol_only_step_names_get_distinct_folders(
        self, make_context: ContextFactory
    ) -> None:
        context = make_context("!!")
        first = context.cache_file("data")
        context.prepare_for_step("??")
        second = context.cache_file("data")

        assert first != second
        assert first.parent.name.startswith("step-")
        assert second.parent.name.startswith("step-")
        assert first.parent.parent == second.parent.parent


class TestDeploymentFolder:
    """Staging folders mirror the output folder for deployment methods."""

    def test_hidden_configuration_survives_truncation(
        self, make_context: ContextFactory
    ) -> None:
        context = make_context()
        context.create_output_file("index.html").write_text("v1", encoding="utf-8")

        def configure(folder: Path) -> None:
            marker = folder / ".configured"
            if not marker.exists():
                marker.write_text("once", encoding="utf-8")

        folder = context.create_deployment_folder("git", configure)
        (folder / "leftover.txt").write_text("stale", encoding="utf-8")
        context.output_file("index.html").write_text("v2", encoding="utf-8")
        context.create_output_folder("posts")

        folder = context.create_deployment_folder("git", configure)

        assert folder.name == "gitDeploy"
        assert folder.parent.name == ".publish"
        assert (folder / ".configured").read_text(encoding="utf-8") == "once"
        assert not (folder / "leftover.txt").exists()
        assert (folder / "index.html").read_text(encoding="utf-8") == "v2"
        assert (folder / "posts").is_dir()

    def test_output_copied_into_subpath(self, make_context: ContextFactory) -> None:
        context = make_context()
        context.create_output_file("index.html")

        folder = context.create_deployment_folder(
            "git", lambda folder: None, output_folder_path="docs"
        )

        assert (folder / "docs" / "index.html").is_file()
        assert not (folder / "index.html").exists()

    def test_failing_configure_raises_setup_failure(self, make_context: ContextFactory) -> None:
        context = make_context()

        with pytest.raises(FileIOError) as excinfo:
            context.create_deployment_folder("git", _raise(RuntimeError("boom")))

        assert excinfo.value.reason is FileIOReason.DEPLOYMENT_FOLDER_SETUP_FAILED
        assert isinstance(excinfo.value.underlying_error, RuntimeError)


class TestItemQueries:
    """Aggregation and filtering of items across sections."""

    def test_all_items_sorted_by_date_is_stable(
        self, make_context: ContextFactory, make_item: ItemFactory
    ) -> None:
        context = make_context()
        context.add_item(make_item("posts", "p-late", day=3))
        context.add_item(make_item("posts", "p-tie", day=2))
        context.add_item(make_item("notes", "n-early", day=1))
        context.add_item(make_item("notes", "n-tie", day=2))

        ascending = context.all_items("date", SortOrder.ASCENDING)
        descending = context.all_items(lambda item: item.date, SortOrder.DESCENDING)

        assert [item.path.name for item in ascending] == ["n-early", "p-tie", "n-tie", "p-late"]
        dates = [item.date for item in ascending]
        assert dates == sorted(dates)
        assert [item.path.name for item in descending] == ["p-late", "p-tie", "n-tie", "n-early"]

    def test_items_tagged_with(self, make_context: ContextFactory, make_item: ItemFactory) -> None:
        context = make_context()
        context.add_item(make_item("posts", "a", tags=["python"], day=2))
        context.add_item(make_item("posts", "b", tags=["rust"]))
        context.add_item(make_item("notes", "c", tags=["python", "rust"], day=1))

        unsorted = context.items(tagged_with="python")
        by_date = context.items(tagged_with="python", sorted_by="date")

        assert [item.path.name for item in unsorted] == ["a", "c"]
        assert [item.path.name for item in by_date] == ["c", "a"]

    def test_add_item_to_unknown_section_raises(
        self, make_context: ContextFactory, make_item: ItemFactory
    ) -> None:
        context = make_context()

        with pytest.raises(KeyError, match="Unknown section"):
            context.add_item(make_item("drafts", "x"))


class TestTagCache:
    """Every mutation entry point refreshes the tag cache."""

    def test_tags_after_sections_assignment(
        self, make_context: ContextFactory, make_item: ItemFactory
    ) -> None:
        context = make_context()
        sections: SectionMap[str] = SectionMap(("posts", "notes"))
        sections["posts"].add_item(make_item("posts", "one", tags=["a"]))
        sections["notes"].add_item(make_item("notes", "two", tags=["b"]))

        context.sections = sections

        assert context.all_tags == {"a", "b"}

    def test_tag_added_via_mutate_all_sections_is_visible(
        self, make_context: ContextFactory, make_item: ItemFactory
    ) -> None:
        context = make_context()
        sections: SectionMap[str] = SectionMap(("posts", "notes"))
        sections["posts"].add_item(make_item("posts", "one", tags=["a", "b"]))
        context.sections = sections
        assert context.all_tags == {"a", "b"}

        def add_tagged(section: Section[str]) -> None:
            if section.id == "notes":
                section.add_item(make_item("notes", "three", tags=["c"]))

        context.mutate_all_sections(add_tagged)

        assert context.all_tags == {"a", "b", "c"}

    def test_tag_added_via_add_item_is_visible(
        self, make_context: ContextFactory, make_item: ItemFactory
    ) -> None:
        context = make_context()
        assert context.all_tags == frozenset()

        context.add_item(make_item("posts", "one", tags=["new"]))

        assert context.all_tags == {"new"}

    def test_replacing_a_section_refreshes_tags(
        self, make_context: ContextFactory, make_item: ItemFactory
    ) -> None:
        context = make_context()
        context.add_item(make_item("posts", "one", tags=["old"]))
        assert context.all_tags == {"old"}

        context.sections["posts"] = Section(
            "posts", items=[make_item("posts", "two", tags=["new"])]
        )

        assert context.all_tags == {"new"}

    def test_failed_mutation_still_refreshes_tags(
        self, make_context: ContextFactory, make_item: ItemFactory
    ) -> None:
        context = make_context()
        assert context.all_tags == frozenset()

        def add_then_fail(section: Section[str]) -> None:
            section.add_item(make_item(section.id, "partial", tags=["partial"]))
            msg = "stop"
            raise RuntimeError(msg)

        with pytest.raises(RuntimeError, match="stop"):
            context.mutate_all_sections(add_then_fail)

        assert context.all_tags == {"partial"}
        assert len(context.sections["notes"].items) == 0


class TestPages:
    """Upserting and mutating free-form pages."""

    def test_add_page_replaces_existing_path(self, make_context: ContextFactory) -> None:
        context = make_context()
        context.add_page(Page("/about"))
        replacement = Page("/about")
        replacement.content.title = "About"

        context.add_page(replacement)

        assert list(context.pages) == [PurePosixPath("/about")]
        assert context.pages[PurePosixPath("/about")].content.title == "About"

    def test_mutating_path_rekeys_page(self, make_context: ContextFactory) -> None:
        context = make_context()
        context.add_page(Page("/x"))

        def move(page: Page) -> None:
            page.path = PurePosixPath("/y")

        context.mutate_page("/x", move, lambda page: True)

        assert list(context.pages) == [PurePosixPath("/y")]
        assert context.pages[PurePosixPath("/y")].path == PurePosixPath("/y")

    def test_missing_page_raises_page_not_found(self, make_context: ContextFactory) -> None:
        context = make_context()
        context.add_page(Page("/x"))

        with pytest.raises(ContentError) as excinfo:
            context.mutate_page("/missing", _raise(AssertionError("must not run")))

        assert excinfo.value.reason is ContentReason.PAGE_NOT_FOUND
        assert list(context.pages) == [PurePosixPath("/x")]

    def test_rejected_predicate_leaves_page_alone(self, make_context: ContextFactory) -> None:
        context = make_context()
        context.add_page(Page("/x"))

        context.mutate_page("/x", _raise(AssertionError("must not run")), lambda page: False)

        assert list(context.pages) == [PurePosixPath("/x")]

    def test_failed_mutation_keeps_stored_page(self, make_context: ContextFactory) -> None:
        context = make_context()
        context.add_page(Page("/x"))

        def rename_then_fail(page: Page) -> None:
            page.content.title = "Changed"
            msg = "bad mutation"
            raise ValueError(msg)

        with pytest.raises(ContentError) as excinfo:
            context.mutate_page("/x", rename_then_fail)

        assert excinfo.value.reason is ContentReason.PAGE_MUTATION_FAILED
        assert context.pages[PurePosixPath("/x")].content.title == ""

    def test_pages_view_is_read_only(self, make_context: ContextFactory) -> None:
        context = make_context()

        with pytest.raises(TypeError):
            context.pages[PurePosixPath("/x")] = Page("/x")  # type: ignore[index]


class TestLastGenerationDate:
    """The context records when each run started."""

    def test_first_run_writes_timestamp(self, make_context: ContextFactory, site_root: Path) -> None:
        context = make_context()
        before = time.time()

        context.generation_will_begin()

        stored = float((site_root / ".publish" / "lastGenerationDate").read_text(encoding="utf-8"))
        assert context.last_generation_date is None
        assert stored >= before

    def test_second_run_reads_previous_timestamp(
        self, make_context: ContextFactory, site_root: Path
    ) -> None:
        marker = site_root / ".publish" / "lastGenerationDate"
        make_context().generation_will_begin()
        first_value = float(marker.read_text(encoding="utf-8"))

        context = make_context()
        context.generation_will_begin()

        assert context.last_generation_date is not None
        assert context.last_generation_date.timestamp() == pytest.approx(first_value)
        assert float(marker.read_text(encoding="utf-8")) >= first_value

    def test_unreadable_marker_is_ignored(
        self, make_context: ContextFactory, site_root: Path
    ) -> None:
        context = make_context()
        (site_root / ".publish" / "lastGenerationDate").mkdir()

        context.generation_will_begin()

        assert context.last_generation_date is None
