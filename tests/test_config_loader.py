"""Tests for loading ``site.yaml`` into typed configuration."""

from __future__ import annotations

from pathlib import Path
from textwrap import dedent

import pytest

from publishkit.config import SiteConfigError, Website, load_site_config


def _write_config(tmp_path: Path, text: str) -> Path:
    path = tmp_path / "site.yaml"
    path.write_text(dedent(text).strip() + "\n", encoding="utf-8")
    return path


def test_full_config_is_loaded(tmp_path: Path) -> None:
    path = _write_config(
        tmp_path,
        """
        site:
          name: Example
          url: https://example.com
          description: An example website
          language: fr
          sections: [posts, notes]
        build:
          root: site
          output: public
          content: Pages
          templates: theme
          date_format: "%d/%m/%Y"
        deploy:
          git:
            remote: git@example.com:site.git
            branch: gh-pages
            output_subpath: docs
        """,
    )

    config = load_site_config(path)

    assert config.site.name == "Example"
    assert config.site.section_ids == ("posts", "notes")
    assert config.site.language == "fr"
    assert config.root == tmp_path.resolve() / "site"
    assert config.output == tmp_path.resolve() / "public"
    assert config.content_folder == "Pages"
    assert config.resources_folder == "Resources"
    assert config.templates_folder == tmp_path.resolve() / "theme"
    assert config.date_format == "%d/%m/%Y"
    assert config.git is not None
    assert config.git.branch == "gh-pages"
    assert config.git.output_subpath == "docs"


def test_defaults_are_applied(tmp_path: Path) -> None:
    path = _write_config(tmp_path, "site:\n  name: Minimal\n")

    config = load_site_config(path)

    assert config.root == tmp_path.resolve()
    assert config.output is None
    assert config.content_folder == "Content"
    assert config.templates_folder is None
    assert config.date_format == "%Y-%m-%d %H:%M"
    assert config.git is None
    assert config.site.section_ids == ()


def test_missing_file_raises(tmp_path: Path) -> None:
    with pytest.raises(FileNotFoundError):
        load_site_config(tmp_path / "missing.yaml")


@pytest.mark.parametrize(
    ("text", "message"),
    [
        ("site:\n  url: https://example.com\n", "site.name"),
        ("site:\n  name: X\n  sections: posts\n", "list of section ids"),
        ("site:\n  name: X\nbuild: nope\n", "'build' must be a mapping"),
        ("site:\n  name: X\ndeploy:\n  git:\n    branch: main\n", "remote"),
        ("site:\n  name: X\n  sections: [posts, posts]\n", "duplicate"),
    ],
)
def test_invalid_configs_raise(tmp_path: Path, text: str, message: str) -> None:
    path = _write_config(tmp_path, text)

    with pytest.raises(SiteConfigError, match=message):
        load_site_config(path)


def test_website_rejects_duplicate_ids() -> None:
    with pytest.raises(SiteConfigError):
        Website(name="Dup", section_ids=("a", "a"))
