"""Platform resources that own and trigger workflows."""

from __future__ import annotations

import abc
import re
from typing import Any

from terminus_client.api.errors import TerminusError
from terminus_client.config.models import WorkflowPollConfig
from terminus_client.models.collections import Workflows
from terminus_client.models.owners import EnvironmentRef, OrganizationRef, SiteRef, UserRef
from terminus_client.models.progress import WorkflowProgress
from terminus_client.models.workflow import Workflow, WorkflowFetcher

_UUID_PATTERN = re.compile(r"^[0-9a-f]{8}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{4}-[0-9a-f]{12}$", re.IGNORECASE)

BACKUP_ELEMENTS = ("all", "code", "database", "files")
DEPLOY_TARGETS = ("test", "live")


class Resource(abc.ABC):
    """Shared plumbing: an id, raw attributes and a workflows collection."""

    def __init__(
        self,
        client: WorkflowFetcher,
        attributes: dict[str, Any],
        poll: WorkflowPollConfig | None = None,
        progress: WorkflowProgress | None = None,
    ) -> None:
        if not attributes.get("id"):
            raise TerminusError(f"{type(self).__name__} payload has no id: {attributes!r}")
        self._client = client
        self.attributes = dict(attributes)
        self._poll = poll
        self._progress = progress

    @property
    def id(self) -> str:
        return str(self.attributes["id"])

    @property
    @abc.abstractmethod
    def ref(self) -> Any:
        """The owner variant this resource stands for."""

    @property
    def workflows(self) -> Workflows:
        return Workflows(self, self._client, poll=self._poll, progress=self._progress)


class Site(Resource):
    @property
    def ref(self) -> SiteRef:
        return SiteRef(self.id)

    @property
    def name(self) -> str:
        return str(self.attributes.get("name") or self.id)

    def environment(self, env_id: str) -> Environment:
        return Environment(self, env_id)


class Environment(Resource):
    """One environment of a site; most site-changing workflows start here."""

    def __init__(self, site: Site, env_id: str) -> None:
        super().__init__(site._client, {"id": env_id}, poll=site._poll, progress=site._progress)
        self.site = site

    @property
    def ref(self) -> EnvironmentRef:
        return EnvironmentRef(self.id, self.site.ref)

    def deploy(
        self,
        annotation: str,
        updatedb: bool = False,
        clear_cache: bool = False,
        sync_content: bool = False,
    ) -> Workflow:
        if self.id not in DEPLOY_TARGETS:
            raise TerminusError("You can only deploy to the test or live environment.")
        params: dict[str, Any] = {
            "updatedb": int(updatedb),
            "clear_cache": int(clear_cache),
            "annotation": annotation,
        }
        # Content can only be pulled down from live into test
        if sync_content:
            if self.id != "test":
                raise TerminusError("Content can only be synced when deploying to the test environment")
            params["clone_database"] = {"from_environment": "live"}
            params["clone_files"] = {"from_environment": "live"}
        return self.workflows.create("deploy", params)

    def clear_cache(self) -> Workflow:
        return self.workflows.create("clear_cache")

    def import_site(self, url: str) -> Workflow:
        return self.workflows.create("do_migration", {"url": url})

    def create_backup(self, element: str = "all", keep_for: int = 365) -> Workflow:
        """Start a backup of code, database, files or all three, kept *keep_for* days."""
        if element not in BACKUP_ELEMENTS:
            raise TerminusError(f"Unknown backup element {element!r}; choose from {', '.join(BACKUP_ELEMENTS)}")
        params: dict[str, Any] = {
            "entry_type": "backup",
            "code": element in ("all", "code"),
            "database": element in ("all", "database"),
            "files": element in ("all", "files"),
            "ttl": keep_for * 86400,
        }
        return self.workflows.create("do_export", params)


class Organization(Resource):
    @property
    def ref(self) -> OrganizationRef:
        return OrganizationRef(self.id)


class User(Resource):
    @property
    def ref(self) -> UserRef:
        return UserRef(self.id)


class Sites:
    """Looks sites up by name or UUID."""

    def __init__(
        self,
        client: WorkflowFetcher,
        poll: WorkflowPollConfig | None = None,
        progress: WorkflowProgress | None = None,
    ) -> None:
        self._client = client
        self._poll = poll
        self._progress = progress

    def resolve_id(self, name_or_id: str) -> str:
        if _UUID_PATTERN.match(name_or_id):
            return name_or_id
        response = self._client.request(f"site-names/{name_or_id}")
        data = response.data if isinstance(response.data, dict) else {}
        site_id = data.get("id")
        if not site_id:
            raise TerminusError(f"Could not find a site named {name_or_id}")
        return str(site_id)

    def get(self, name_or_id: str) -> Site:
        site_id = self.resolve_id(name_or_id)
        response = self._client.request(f"sites/{site_id}")
        data = response.data if isinstance(response.data, dict) else {}
        return Site(self._client, {"id": site_id, **data}, poll=self._poll, progress=self._progress)
