"""Workflows collection: lists, fetches and triggers workflows for one owner."""

from __future__ import annotations

import logging
from typing import Any

from terminus_client.api.errors import TerminusError
from terminus_client.config.models import WorkflowPollConfig
from terminus_client.models.owners import HasOwnerRef, WorkflowOwner, resolve_owner, workflows_path
from terminus_client.models.progress import WorkflowProgress
from terminus_client.models.workflow import Workflow, WorkflowFetcher

logger = logging.getLogger(__name__)


class Workflows:
    """Workflows belonging to a single site, environment, organization or user."""

    def __init__(
        self,
        owner: HasOwnerRef | WorkflowOwner,
        client: WorkflowFetcher,
        poll: WorkflowPollConfig | None = None,
        progress: WorkflowProgress | None = None,
    ) -> None:
        self._owner = owner
        self._client = client
        self._poll = poll
        self._progress = progress

    @property
    def owner(self) -> HasOwnerRef | WorkflowOwner:
        """The object this collection was configured with."""
        return self._owner

    @property
    def ref(self) -> WorkflowOwner:
        return resolve_owner(collection=self)

    @property
    def path(self) -> str:
        return workflows_path(self.ref, getattr(self._client, "current_user_id", None))

    def _wrap(self, payload: Any) -> Workflow:
        if not isinstance(payload, dict) or not payload.get("id"):
            raise TerminusError(f"Expected a workflow payload with an id, got {payload!r}")
        return Workflow.from_context(
            payload,
            self._client,
            collection=self,
            poll=self._poll,
            progress=self._progress,
        )

    def create(self, workflow_type: str, params: dict[str, Any] | None = None) -> Workflow:
        """Trigger a new workflow and return its handle without waiting."""
        body = {"type": workflow_type, "params": params or {}}
        logger.info("Starting %s workflow on %s", workflow_type, self.path)
        response = self._client.request(self.path, method="POST", json=body)
        return self._wrap(response.data)

    def all(self) -> list[Workflow]:
        response = self._client.request(self.path)
        data = response.data or []
        if isinstance(data, dict):
            data = list(data.values())
        return [self._wrap(entry) for entry in data]

    def get(self, workflow_id: str, with_logs: bool = False) -> Workflow:
        workflow = self._wrap({"id": workflow_id})
        return workflow.fetch_with_logs() if with_logs else workflow.fetch()
