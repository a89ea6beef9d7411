"""Workflow owner variants and the resource paths derived from them."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol, Union

from terminus_client.api.errors import WorkflowOwnerError


@dataclass(frozen=True)
class SiteRef:
    id: str


@dataclass(frozen=True)
class EnvironmentRef:
    """An environment of a site (``dev``, ``test``, ``live`` or a multidev)."""

    id: str
    site: SiteRef


@dataclass(frozen=True)
class OrganizationRef:
    id: str


@dataclass(frozen=True)
class UserRef:
    id: str


WorkflowOwner = Union[EnvironmentRef, OrganizationRef, SiteRef, UserRef]


class HasOwnerRef(Protocol):
    """Anything that can stand in for an owner: resources and collections."""

    @property
    def ref(self) -> WorkflowOwner: ...


def _as_ref(candidate: Any) -> WorkflowOwner:
    if isinstance(candidate, (EnvironmentRef, OrganizationRef, SiteRef, UserRef)):
        return candidate
    ref = getattr(candidate, "ref", None)
    if isinstance(ref, (EnvironmentRef, OrganizationRef, SiteRef, UserRef)):
        return ref
    raise WorkflowOwnerError(f"Not a workflow owner: {candidate!r}")


def resolve_owner(
    *,
    collection: Any = None,
    environment: Any = None,
    organization: Any = None,
    site: Any = None,
    user: Any = None,
) -> WorkflowOwner:
    """Pick the single owner from a construction-time context bundle.

    Candidates are checked in the order collection, environment,
    organization, site, user and the first one supplied wins. A collection
    contributes its configured owner object.
    """
    if collection is not None:
        return _as_ref(collection.owner)
    for candidate in (environment, organization, site, user):
        if candidate is not None:
            return _as_ref(candidate)
    raise WorkflowOwnerError(
        "A workflow needs an owner: pass a collection, environment, organization, site or user"
    )


def _user_id_for(owner: OrganizationRef, current_user_id: str | None) -> str:
    if not current_user_id:
        raise WorkflowOwnerError(
            f"Organization {owner.id} workflows are addressed through the current user; no user id is set"
        )
    return current_user_id


def workflows_path(owner: WorkflowOwner, current_user_id: str | None = None) -> str:
    """Collection endpoint used to list and create workflows for *owner*."""
    if isinstance(owner, EnvironmentRef):
        return f"sites/{owner.site.id}/environments/{owner.id}/workflows"
    if isinstance(owner, OrganizationRef):
        return f"users/{_user_id_for(owner, current_user_id)}/organizations/{owner.id}/workflows"
    if isinstance(owner, SiteRef):
        return f"sites/{owner.id}/workflows"
    if isinstance(owner, UserRef):
        return f"users/{owner.id}/workflows"
    raise WorkflowOwnerError(f"Unsupported workflow owner: {owner!r}")


def workflow_path(owner: WorkflowOwner, workflow_id: str, current_user_id: str | None = None) -> str:
    """Resource path polled to re-fetch a single workflow.

    Environment workflows are read back through their site.
    """
    if isinstance(owner, EnvironmentRef):
        return f"sites/{owner.site.id}/workflows/{workflow_id}"
    if isinstance(owner, OrganizationRef):
        return f"users/{_user_id_for(owner, current_user_id)}/organizations/{owner.id}/workflows/{workflow_id}"
    if isinstance(owner, SiteRef):
        return f"sites/{owner.id}/workflows/{workflow_id}"
    if isinstance(owner, UserRef):
        return f"users/{owner.id}/workflows/{workflow_id}"
    raise WorkflowOwnerError(f"Unsupported workflow owner: {owner!r}")
