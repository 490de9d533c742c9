"""Publishing steps and the rules that decide which of them run.

A website's build is described as a tree of :class:`PublishingStep` values.
Each step has a :class:`StepKind` and a body that is either empty, a group of
child steps, or a named operation. :func:`resolve_step_kind` picks the kind
of run from the process arguments and :func:`runnable_steps` flattens the tree
into the ordered operations that run for that kind.

Examples
--------
>>> from publishkit.steps import PublishingStep, StepKind, flatten_steps
>>> tree = [
...     PublishingStep.step("Build", lambda context: None),
...     PublishingStep.step("Deploy", lambda context: None, kind=StepKind.DEPLOYMENT),
... ]
>>> [step.name for step in flatten_steps(StepKind.GENERATION, tree)]
['Build']
"""

from __future__ import annotations

import collections.abc as cabc
import dataclasses as dc
import enum
import sys
import typing as typ

from ._constants import DEPLOYMENT_FLAGS

if typ.TYPE_CHECKING:
    from .context import PublishingContext

T = typ.TypeVar("T")

StepCallback = cabc.Callable[
    ["PublishingContext[typ.Any]"], cabc.Awaitable[None] | None
]


class StepKind(enum.Enum):
    """Kind of run a step takes part in; ``SYSTEM`` steps run in every run."""

    SYSTEM = "system"
    GENERATION = "generation"
    DEPLOYMENT = "deployment"


@dc.dataclass(frozen=True, slots=True)
class EmptyBody:
    """Body of a step that does nothing."""


@dc.dataclass(frozen=True, slots=True)
class GroupBody:
    """Body of a step made of ordered child steps."""

    steps: tuple[PublishingStep, ...]


@dc.dataclass(frozen=True, slots=True)
class OperationBody:
    """Body of a named step that runs a callback against the context."""

    name: str
    callback: StepCallback


StepBody = EmptyBody | GroupBody | OperationBody


@dc.dataclass(frozen=True, slots=True)
class PublishingStep:
    """One node of a website's step tree."""

    kind: StepKind
    body: StepBody

    @classmethod
    def empty(cls) -> PublishingStep:
        """Return a step that contributes nothing to any run."""
        return cls(kind=StepKind.SYSTEM, body=EmptyBody())

    @classmethod
    def group(cls, steps: cabc.Iterable[PublishingStep]) -> PublishingStep:
        """Return a step running ``steps`` in order, in every kind of run."""
        return cls(kind=StepKind.SYSTEM, body=GroupBody(tuple(steps)))

    @classmethod
    def step(
        cls,
        name: str,
        callback: StepCallback,
        *,
        kind: StepKind = StepKind.GENERATION,
    ) -> PublishingStep:
        """Return a named operation step of the given kind."""
        return cls(kind=kind, body=OperationBody(name=name, callback=callback))

    @classmethod
    def when(cls, condition: bool, step: PublishingStep) -> PublishingStep:
        """Return ``step`` when ``condition`` holds, otherwise an empty step."""
        return step if condition else cls.empty()

    @classmethod
    def unwrap(
        cls, value: T | None, transform: cabc.Callable[[T], PublishingStep]
    ) -> PublishingStep:
        """Build a step from ``value`` or return an empty step when it is ``None``."""
        return cls.empty() if value is None else transform(value)


@dc.dataclass(frozen=True, slots=True)
class RunnableStep:
    """A resolved operation ready to run against the context."""

    name: str
    callback: StepCallback


def resolve_step_kind(arguments: cabc.Sequence[str] | None = None) -> StepKind:
    """Return ``DEPLOYMENT`` when a deployment flag is among ``arguments``.

    Parameters
    ----------
    arguments : Sequence[str], optional
        Process arguments; defaults to :data:`sys.argv`.
    """
    args = sys.argv if arguments is None else arguments
    if any(argument in DEPLOYMENT_FLAGS for argument in args):
        return StepKind.DEPLOYMENT
    return StepKind.GENERATION


def runnable_steps(kind: StepKind, step: PublishingStep) -> list[RunnableStep]:
    """Flatten ``step`` into the operations that run for ``kind``, in pre-order."""
    if step.kind not in (StepKind.SYSTEM, kind):
        return []

    match step.body:
        case EmptyBody():
            return []
        case GroupBody(steps=children):
            return flatten_steps(kind, children)
        case OperationBody(name=name, callback=callback):
            return [RunnableStep(name=name, callback=callback)]
    msg = f"Unsupported step body: {step.body!r}"
    raise TypeError(msg)


def flatten_steps(
    kind: StepKind, steps: cabc.Iterable[PublishingStep]
) -> list[RunnableStep]:
    """Concatenate :func:`runnable_steps` over ``steps``."""
    return [runnable for step in steps for runnable in runnable_steps(kind, step)]


__all__ = [
    "EmptyBody",
    "GroupBody",
    "OperationBody",
    "PublishingStep",
    "RunnableStep",
    "StepBody",
    "StepCallback",
    "StepKind",
    "flatten_steps",
    "resolve_step_kind",
    "runnable_steps",
]
