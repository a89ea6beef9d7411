"""Workflow handle: polls a server-side task until it reaches a terminal result."""

from __future__ import annotations

import json
import logging
import threading
import time
from collections.abc import Callable
from enum import Enum
from typing import TYPE_CHECKING, Any, Protocol

from pydantic import BaseModel, ConfigDict, ValidationError

from terminus_client.api.client import ApiResponse, is_transient
from terminus_client.api.errors import (
    TerminusError,
    WorkflowBusyError,
    WorkflowCancelledError,
    WorkflowFailedError,
    WorkflowOwnerError,
    WorkflowTimeoutError,
)
from terminus_client.config.models import WorkflowPollConfig
from terminus_client.models.operation import WorkflowOperation
from terminus_client.models.owners import WorkflowOwner, resolve_owner, workflow_path
from terminus_client.models.progress import DotProgress, WorkflowProgress

if TYPE_CHECKING:
    from terminus_client.models.collections import Workflows

logger = logging.getLogger(__name__)

SUCCEEDED = "succeeded"
DEFAULT_USER_LABEL = "Pantheon"
HYDRATE_LOGS = {"hydrate": "operations_with_logs"}


class WorkflowStatus(str, Enum):
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class WorkflowFetcher(Protocol):
    """The request capability a workflow needs to re-fetch itself."""

    def request(
        self,
        path: str,
        method: str = "GET",
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> ApiResponse: ...


class WorkflowSnapshot(BaseModel):
    """Immutable copy of the attributes last returned by the server."""

    model_config = ConfigDict(frozen=True, extra="allow")

    id: str
    result: str | None = None
    total_time: float | None = None
    created_at: float | None = None
    environment: Any = None
    description: str | None = None
    user: Any = None
    final_task: Any = None
    operations: Any = None


def _stringify(message: Any) -> str:
    if isinstance(message, str):
        return message
    return json.dumps(message, indent=2, sort_keys=True, default=str)


def _final_task_messages(final_task: Any) -> list[str]:
    """Pull readable text out of ``final_task.messages``, whatever its shape."""
    if not isinstance(final_task, dict):
        return []
    messages = final_task.get("messages")
    if isinstance(messages, dict):
        messages = list(messages.values())
    if not isinstance(messages, list):
        return []
    texts: list[str] = []
    for entry in messages:
        payload = entry.get("message") if isinstance(entry, dict) else entry
        if payload is None or payload == "":
            continue
        texts.append(_stringify(payload))
    return texts


class Workflow:
    """Client-side handle on an asynchronous server-side task.

    A workflow is ``running`` until a fetch returns a ``result``; it is then
    ``succeeded`` when that result is exactly ``"succeeded"`` and ``failed``
    otherwise. Attributes are only changed by replacing the whole snapshot
    after a successful fetch.

    Instances are guarded by a non-reentrant lock: a second thread calling
    ``fetch()`` or ``wait()`` while one is in progress gets WorkflowBusyError.
    """

    def __init__(
        self,
        attributes: dict[str, Any] | WorkflowSnapshot,
        owner: WorkflowOwner | None,
        client: WorkflowFetcher,
        *,
        current_user_id: str | None = None,
        poll: WorkflowPollConfig | None = None,
        progress: WorkflowProgress | None = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        monotonic: Callable[[], float] = time.monotonic,
    ) -> None:
        if owner is None:
            raise WorkflowOwnerError("A workflow cannot be constructed without an owner")
        if isinstance(attributes, WorkflowSnapshot):
            self._snapshot = attributes
        else:
            try:
                self._snapshot = WorkflowSnapshot.model_validate(attributes)
            except ValidationError as exc:
                raise TerminusError(f"Unexpected workflow payload {attributes!r}: {exc}") from exc
        if current_user_id is None:
            current_user_id = getattr(client, "current_user_id", None)
        self._owner = owner
        self._url = workflow_path(owner, self._snapshot.id, current_user_id)
        self._client = client
        self._poll = poll or WorkflowPollConfig()
        self._progress: WorkflowProgress = progress or DotProgress()
        self._sleep = sleep
        self._clock = clock
        self._monotonic = monotonic
        self._lock = threading.Lock()

    @classmethod
    def from_context(
        cls,
        attributes: dict[str, Any],
        client: WorkflowFetcher,
        *,
        collection: Workflows | None = None,
        environment: Any = None,
        organization: Any = None,
        site: Any = None,
        user: Any = None,
        **kwargs: Any,
    ) -> Workflow:
        """Build a workflow from an owner context bundle; see resolve_owner."""
        owner = resolve_owner(
            collection=collection,
            environment=environment,
            organization=organization,
            site=site,
            user=user,
        )
        return cls(attributes, owner, client, **kwargs)

    def __repr__(self) -> str:
        return f"Workflow(id={self.id!r}, status={self.get_status().value!r})"

    # ─── Attributes ───

    @property
    def id(self) -> str:
        return self._snapshot.id

    @property
    def url(self) -> str:
        """Poll path, fixed when the workflow was constructed."""
        return self._url

    @property
    def owner(self) -> WorkflowOwner:
        return self._owner

    @property
    def snapshot(self) -> WorkflowSnapshot:
        return self._snapshot

    @property
    def description(self) -> str | None:
        return self._snapshot.description

    def get(self, name: str, default: Any = None) -> Any:
        """Return a fetched attribute, including fields outside the known set."""
        if name in WorkflowSnapshot.model_fields:
            value = getattr(self._snapshot, name)
        else:
            value = (self._snapshot.model_extra or {}).get(name)
        return default if value is None else value

    # ─── State ───

    def is_finished(self) -> bool:
        return bool(self._snapshot.result)

    def is_successful(self) -> bool:
        return self._snapshot.result == SUCCEEDED

    def get_status(self) -> WorkflowStatus:
        if not self.is_finished():
            return WorkflowStatus.RUNNING
        if self.is_successful():
            return WorkflowStatus.SUCCEEDED
        return WorkflowStatus.FAILED

    def failure_detail(self) -> str | None:
        """Server-supplied failure text from ``final_task``, if there is any."""
        final_task = self._snapshot.final_task
        messages = _final_task_messages(final_task)
        if messages:
            return "\n".join(messages)
        if isinstance(final_task, dict) and final_task.get("reason"):
            return _stringify(final_task["reason"])
        return None

    def failure_message(self) -> str:
        """Human-readable reason for a failed workflow."""
        detail = self.failure_detail()
        if detail:
            return detail
        label = self.description or self.id
        return f"Workflow '{label}' failed with no further detail."

    # ─── Fetching ───

    def _fetch(self, params: dict[str, Any] | None = None) -> None:
        response = self._client.request(self._url, params=params)
        if not isinstance(response.data, dict):
            raise TerminusError(f"Unexpected payload for workflow {self.id}: {response.data!r}")
        try:
            self._snapshot = WorkflowSnapshot.model_validate({**response.data, "id": self.id})
        except ValidationError as exc:
            raise TerminusError(f"Unexpected payload for workflow {self.id}: {exc}") from exc

    def fetch(self, params: dict[str, Any] | None = None) -> Workflow:
        """Re-fetch the workflow resource and replace every attribute."""
        if not self._lock.acquire(blocking=False):
            raise WorkflowBusyError(self)
        try:
            self._fetch(params)
        finally:
            self._lock.release()
        return self

    def fetch_with_logs(self) -> Workflow:
        return self.fetch(dict(HYDRATE_LOGS))

    def _pause(self, seconds: float, cancel: threading.Event | None) -> None:
        if cancel is None:
            self._sleep(seconds)
        elif cancel.wait(seconds):
            raise WorkflowCancelledError(self)

    def _fetch_with_retry(self, cancel: threading.Event | None) -> None:
        retries = self._poll.fetch_retries
        attempt = 0
        while True:
            try:
                self._fetch()
                return
            except TerminusError as exc:
                if not is_transient(exc) or attempt >= retries:
                    raise
                delay = (2**attempt) * self._poll.retry_delay
                logger.info(
                    "Fetching workflow %s failed (attempt %d/%d), retrying in %.1fs: %s",
                    self.id,
                    attempt + 1,
                    retries + 1,
                    delay,
                    exc,
                )
                self._pause(delay, cancel)
                attempt += 1

    def wait(
        self,
        max_wait: float | None = None,
        cancel: threading.Event | None = None,
    ) -> Workflow:
        """Block until the workflow finishes; return self when it succeeded.

        Each iteration fetches, sleeps ``poll_interval`` and reports one poll
        to the progress listener. Raises WorkflowFailedError for any other
        terminal result, WorkflowTimeoutError once ``max_wait`` (argument or
        config) has elapsed and WorkflowCancelledError when *cancel* is set.
        """
        if not self._lock.acquire(blocking=False):
            raise WorkflowBusyError(self)
        try:
            limit = max_wait if max_wait is not None else self._poll.max_wait
            started = self._monotonic()
            polls = 0
            try:
                while not self.is_finished():
                    if cancel is not None and cancel.is_set():
                        raise WorkflowCancelledError(self)
                    self._fetch_with_retry(cancel)
                    self._pause(self._poll.poll_interval, cancel)
                    polls += 1
                    self._progress.on_poll(self)
                    logger.debug("Workflow %s poll %d: %s", self.id, polls, self.get_status().value)
                    waited = self._monotonic() - started
                    if not self.is_finished() and limit is not None and waited >= limit:
                        raise WorkflowTimeoutError(self, waited)
            finally:
                self._progress.on_finish(self)
        finally:
            self._lock.release()

        if self.is_successful():
            return self
        raise WorkflowFailedError(self.failure_message(), self)

    # ─── Output ───

    def operations(self) -> list[WorkflowOperation]:
        raw = self._snapshot.operations
        if not isinstance(raw, (list, tuple)):
            return []
        return [WorkflowOperation.from_payload(entry) for entry in raw]

    def serialize(self) -> dict[str, Any]:
        """Display-ready record for tables and JSON output."""
        user = self._snapshot.user
        email = user.get("email") if isinstance(user, dict) else None

        if self._snapshot.total_time:
            elapsed = self._snapshot.total_time
        elif self._snapshot.created_at is not None:
            elapsed = self._clock() - self._snapshot.created_at
        else:
            elapsed = 0

        return {
            "id": self.id,
            "env": self._snapshot.environment,
            "workflow": self._snapshot.description,
            "user": email or DEFAULT_USER_LABEL,
            "status": self.get_status().value,
            "time": f"{int(elapsed)}s",
            "operations": [op.serialize() for op in self.operations()],
        }
