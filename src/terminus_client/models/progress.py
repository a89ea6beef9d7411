"""Progress listeners notified while a workflow is being waited on."""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING, Protocol, TextIO

if TYPE_CHECKING:
    from terminus_client.models.workflow import Workflow


class WorkflowProgress(Protocol):
    """Protocol for consuming polling progress."""

    def on_poll(self, workflow: Workflow) -> None: ...

    def on_finish(self, workflow: Workflow) -> None: ...


class DotProgress:
    """Writes one dot per poll and a closing newline to the diagnostic stream.

    The stream defaults to stderr, resolved at write time, so progress never
    mixes with structured output on stdout.
    """

    def __init__(self, stream: TextIO | None = None) -> None:
        self._stream = stream

    @property
    def stream(self) -> TextIO:
        return self._stream if self._stream is not None else sys.stderr

    def on_poll(self, workflow: Workflow) -> None:
        self.stream.write(".")
        self.stream.flush()

    def on_finish(self, workflow: Workflow) -> None:
        self.stream.write("\n")
        self.stream.flush()

