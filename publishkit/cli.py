"""Cyclopts CLI entrypoint for building and deploying a website.

The ``publish`` console script loads a ``site.yaml`` configuration, builds the
standard step tree for it (:func:`publishkit.library.default_steps`) and runs
the publishing pipeline. ``publish generate`` writes the website into the
``Output`` folder; ``publish deploy`` runs the deployment steps, pushing the
previously generated output to the configured git remote.

Examples
--------
Generate the website described by ``site.yaml`` in the current folder:

>>> from publishkit.cli import main
>>> main()  # doctest: +SKIP

Write the output somewhere else:

>>> from publishkit.cli import app
>>> app(["generate", "--output", "build"])  # doctest: +SKIP
"""

from __future__ import annotations

import typing as typ
from pathlib import Path

import cyclopts
from cyclopts import App, Parameter

from .config import load_site_config
from .console import OutputKind, output
from .errors import PublishingError
from .library import default_steps
from .pipeline import PublishingPipeline

if typ.TYPE_CHECKING:
    from .content import PublishedWebsite

DEFAULT_CONFIG = Path("site.yaml")
DEPLOY_ARGUMENTS = ("--deploy",)
GENERATE_ARGUMENTS: tuple[str, ...] = ()

app = App(name="publish", config=cyclopts.config.Env("INPUT_", command=False))  # type: ignore[unknown-argument]


def _run(
    config: Path,
    *,
    root: Path | None,
    output_path: Path | None,
    arguments: tuple[str, ...],
) -> PublishedWebsite[str]:
    site_config = load_site_config(config)
    pipeline = PublishingPipeline(default_steps(site_config))
    try:
        return pipeline.run(
            site_config.site,
            root=root or site_config.root,
            output_path=output_path or site_config.output,
            arguments=arguments,
            date_format=site_config.date_format,
        )
    except PublishingError as exc:
        output(str(exc), OutputKind.ERROR)
        raise SystemExit(1) from exc


@app.command(help="Generate the website into its Output folder.")
def generate(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    root: typ.Annotated[
        Path | None,
        Parameter(help="Override the root folder", env_var="INPUT_ROOT"),
    ] = None,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(
            name="--output",
            help="Folder in which Output is created",
            env_var="INPUT_OUTPUT",
        ),
    ] = None,
) -> None:
    """Run the generation steps for the configured website.

    Parameters
    ----------
    config : Path, optional
        Path to the ``site.yaml`` configuration file (overridable via
        ``INPUT_CONFIG``).
    root : Path or None, optional
        Root folder overriding ``build.root`` from the configuration.
    output_dir : Path or None, optional
        Folder in which ``Output`` is created, overriding ``build.output``.

    Raises
    ------
    SystemExit
        With status ``1`` when the run fails; the error is printed to stderr.
    """
    website = _run(
        config, root=root, output_path=output_dir, arguments=GENERATE_ARGUMENTS
    )
    item_count = sum(len(section.items) for section in website.sections)
    print(f"generated {item_count} items and {len(website.pages)} pages")


@app.command(help="Deploy the previously generated website.")
def deploy(
    *,
    config: typ.Annotated[
        Path, Parameter(help="Path to site config", env_var="INPUT_CONFIG")
    ] = DEFAULT_CONFIG,
    root: typ.Annotated[
        Path | None,
        Parameter(help="Override the root folder", env_var="INPUT_ROOT"),
    ] = None,
    output_dir: typ.Annotated[
        Path | None,
        Parameter(
            name="--output",
            help="Folder holding the Output folder",
            env_var="INPUT_OUTPUT",
        ),
    ] = None,
) -> None:
    """Run the deployment steps for the configured website.

    The output folder is left untouched; run ``publish generate`` first.
    """
    _run(config, root=root, output_path=output_dir, arguments=DEPLOY_ARGUMENTS)


def main() -> None:
    """Invoke the Cyclopts application that powers the ``publish`` console command.

    Examples
    --------
    >>> main()  # doctest: +SKIP
    """
    app()


if __name__ == "__main__":  # pragma: no cover - manual invocation helper
    main()
