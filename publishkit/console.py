"""Print progress and lifecycle lines for publishing runs.

The pipeline reports what it is doing with plain ``print`` calls routed
through :func:`output`, so every line carries a recognisable prefix and error
output ends up on stderr.

Examples
--------
>>> from publishkit.console import OutputKind, output
>>> output("Publishing Example (2 steps)")
Publishing Example (2 steps)
>>> output("Successfully published Example", OutputKind.SUCCESS)
✅ Successfully published Example
"""

from __future__ import annotations

import enum
import sys


class OutputKind(enum.Enum):
    """Category of a console line."""

    INFO = ""
    SUCCESS = "✅ "
    WARNING = "⚠️ "
    ERROR = "❌ "


def output(message: str, kind: OutputKind = OutputKind.INFO) -> None:
    """Print ``message`` with the prefix for ``kind``.

    Parameters
    ----------
    message : str
        Text to print.
    kind : OutputKind, optional
        Line category; ``WARNING`` and ``ERROR`` lines go to stderr.
    """
    stream = sys.stderr if kind in (OutputKind.WARNING, OutputKind.ERROR) else sys.stdout
    print(f"{kind.value}{message}", file=stream)


__all__ = ["OutputKind", "output"]
