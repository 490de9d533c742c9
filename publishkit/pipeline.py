"""Run a website's publishing steps in order against one context.

:class:`PublishingPipeline` resolves which steps take part in the current run,
sets up the folder layout, creates the :class:`PublishingContext` and runs
each step strictly after the previous one has finished. Errors raised by a
step stop the run and are reported as a
:class:`~publishkit.errors.PublishingError` naming that step.

Example
-------
>>> from publishkit import PublishingStep, Website, publish
>>> site = Website(name="Example", section_ids=("posts",))
>>> publish(site, [PublishingStep.step("Noop", lambda context: None)], root=Path("."))  # doctest: +SKIP
"""

from __future__ import annotations

import asyncio
import collections.abc as cabc
import inspect
import typing as typ

from .console import OutputKind, output
from .content import PublishedWebsite, SectionIDT
from .context import PublishingContext
from .errors import ConfigurationError, PublishingError, PublishingErrorConvertible
from .folders import set_up_folders
from .steps import PublishingStep, RunnableStep, StepKind, flatten_steps, resolve_step_kind

if typ.TYPE_CHECKING:
    from pathlib import Path

    from .config import Website


class Notifier(typ.Protocol):
    """Receives lifecycle events (``WillStart``, ``DidFinish``) of a run."""

    def post(self, name: str) -> None: ...


class NullNotifier:
    """Notifier that ignores every event."""

    def post(self, name: str) -> None:
        return None


class PublishingPipeline:
    """Execute the steps of a website build."""

    def __init__(
        self,
        steps: cabc.Iterable[PublishingStep],
        *,
        origin_file_path: Path | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        """Initialize the pipeline.

        Parameters
        ----------
        steps : Iterable[PublishingStep]
            The website's step tree, in declaration order.
        origin_file_path : Path, optional
            File used to discover the project root when no explicit root is
            passed to :meth:`execute`.
        notifier : Notifier, optional
            Receiver for lifecycle events; defaults to :class:`NullNotifier`.
        """
        self.steps = tuple(steps)
        self.origin_file_path = origin_file_path
        self.notifier = notifier or NullNotifier()

    async def execute(
        self,
        site: Website[SectionIDT],
        *,
        root: Path | None = None,
        output_path: Path | None = None,
        arguments: cabc.Sequence[str] | None = None,
        date_format: str | None = None,
    ) -> PublishedWebsite[SectionIDT]:
        """Run the steps matching the requested kind of run and return the content.

        Parameters
        ----------
        site : Website
            The website being published.
        root : Path, optional
            Explicit root folder; discovered from ``origin_file_path`` otherwise.
        output_path : Path, optional
            Folder in which ``Output`` is created instead of the root.
        arguments : Sequence[str], optional
            Process arguments used to detect a deployment run; defaults to
            :data:`sys.argv`.
        date_format : str, optional
            Format used when decoding Markdown dates.

        Returns
        -------
        PublishedWebsite
            The index, sections and pages after the last step.

        Raises
        ------
        ConfigurationError
            If no step runs for the requested kind.
        SetupError
            If the folder layout cannot be prepared.
        PublishingError
            If a step fails.
        """
        kind = resolve_step_kind(arguments)
        steps = flatten_steps(kind, self.steps)
        if not steps:
            raise ConfigurationError(info_message=f"{site.name} has no {kind.value} steps.")

        folders = set_up_folders(
            explicit_root=root,
            origin_file=self.origin_file_path,
            output=output_path,
            should_empty_output=kind is StepKind.GENERATION,
        )
        context_options = {"date_format": date_format} if date_format else {}
        context: PublishingContext[SectionIDT] = PublishingContext(
            site, folders, steps[0].name, **context_options
        )
        context.generation_will_begin()

        self._notify("WillStart")
        output(f"Publishing {site.name} ({len(steps)} steps)")

        for index, step in enumerate(steps, start=1):
            output(f"[{index}/{len(steps)}] {step.name}")
            context.prepare_for_step(step.name)
            await _run_step(step, context)

        output(f"Successfully published {site.name}", OutputKind.SUCCESS)
        self._notify("DidFinish")

        return PublishedWebsite(
            index=context.index, sections=context.sections, pages=context.pages
        )

    def _notify(self, name: str) -> None:
        """Post ``name`` to the notifier; a failing notifier only warns."""
        try:
            self.notifier.post(name)
        except Exception as exc:  # noqa: BLE001
            output(f"Notifier failed to handle {name}: {exc}", OutputKind.WARNING)

    def run(
        self,
        site: Website[SectionIDT],
        *,
        root: Path | None = None,
        output_path: Path | None = None,
        arguments: cabc.Sequence[str] | None = None,
        date_format: str | None = None,
    ) -> PublishedWebsite[SectionIDT]:
        """Synchronous wrapper around :meth:`execute`."""
        return asyncio.run(
            self.execute(
                site,
                root=root,
                output_path=output_path,
                arguments=arguments,
                date_format=date_format,
            )
        )


async def _run_step(step: RunnableStep, context: PublishingContext[typ.Any]) -> None:
    """Run one step, classifying whatever it raises."""
    try:
        result = step.callback(context)
        if inspect.isawaitable(result):
            await result
    except PublishingError as exc:
        if exc.step_name is None:
            exc.step_name = step.name
        raise
    except PublishingErrorConvertible as exc:
        raise exc.publishing_error(step_name=step.name) from exc
    except Exception as exc:
        raise PublishingError(
            step_name=step.name,
            info_message=f"An unknown error occurred: {exc}",
            underlying_error=exc,
        ) from exc


def publish(
    site: Website[SectionIDT],
    steps: cabc.Iterable[PublishingStep],
    *,
    root: Path | None = None,
    output_path: Path | None = None,
    origin_file_path: Path | None = None,
    arguments: cabc.Sequence[str] | None = None,
    notifier: Notifier | None = None,
    date_format: str | None = None,
) -> PublishedWebsite[SectionIDT]:
    """Build ``site`` with ``steps`` and return the published content."""
    pipeline = PublishingPipeline(
        steps, origin_file_path=origin_file_path, notifier=notifier
    )
    return pipeline.run(
        site,
        root=root,
        output_path=output_path,
        arguments=arguments,
        date_format=date_format,
    )


__all__ = ["Notifier", "NullNotifier", "PublishingPipeline", "publish"]
