"""Tests for owner resolution and workflow addressing."""

from __future__ import annotations

import pytest

from conftest import FakeClient
from terminus_client.api.errors import WorkflowOwnerError
from terminus_client.models.collections import Workflows
from terminus_client.models.owners import (
    EnvironmentRef,
    OrganizationRef,
    SiteRef,
    UserRef,
    resolve_owner,
    workflow_path,
    workflows_path,
)
from terminus_client.models.resources import Organization, Site


class TestWorkflowPath:
    def test_environment_is_addressed_through_site(self):
        owner = EnvironmentRef("live", SiteRef("S123"))
        assert workflow_path(owner, "W1") == "sites/S123/workflows/W1"

    def test_organization_uses_current_user(self):
        assert workflow_path(OrganizationRef("O1"), "W2", "U1") == "users/U1/organizations/O1/workflows/W2"

    def test_organization_without_user_fails(self):
        with pytest.raises(WorkflowOwnerError, match="no user id"):
            workflow_path(OrganizationRef("O1"), "W2")

    def test_site(self):
        assert workflow_path(SiteRef("S9"), "W3") == "sites/S9/workflows/W3"

    def test_user(self):
        assert workflow_path(UserRef("U7"), "W4") == "users/U7/workflows/W4"

    def test_unknown_owner(self):
        with pytest.raises(WorkflowOwnerError):
            workflow_path("not-an-owner", "W5")  # type: ignore[arg-type]


class TestWorkflowsPath:
    def test_environment_collection_is_environment_scoped(self):
        owner = EnvironmentRef("dev", SiteRef("S1"))
        assert workflows_path(owner) == "sites/S1/environments/dev/workflows"

    def test_organization(self):
        assert workflows_path(OrganizationRef("O1"), "U1") == "users/U1/organizations/O1/workflows"

    def test_site_and_user(self):
        assert workflows_path(SiteRef("S1")) == "sites/S1/workflows"
        assert workflows_path(UserRef("U1")) == "users/U1/workflows"


class TestResolveOwner:
    def test_no_owner_is_an_error(self):
        with pytest.raises(WorkflowOwnerError, match="needs an owner"):
            resolve_owner()

    def test_single_ref(self):
        assert resolve_owner(user=UserRef("U1")) == UserRef("U1")

    def test_first_match_wins(self):
        env = EnvironmentRef("dev", SiteRef("S1"))
        assert resolve_owner(site=SiteRef("S2"), environment=env) == env
        assert resolve_owner(organization=OrganizationRef("O1"), site=SiteRef("S2")) == OrganizationRef("O1")

    def test_collection_contributes_its_owner(self):
        client = FakeClient()
        site = Site(client, {"id": "S1"})
        collection = Workflows(site, client)
        assert resolve_owner(collection=collection, user=UserRef("U1")) == SiteRef("S1")

    def test_resource_objects_are_accepted(self):
        client = FakeClient()
        assert resolve_owner(organization=Organization(client, {"id": "O1"})) == OrganizationRef("O1")

    def test_rejects_non_owner(self):
        with pytest.raises(WorkflowOwnerError, match="Not a workflow owner"):
            resolve_owner(site=object())
