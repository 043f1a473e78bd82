"""
Active-organization resolution.

`ActiveOrgResolver` owns the one `ActiveOrgContext` snapshot for a session
and is the only writer of it. Readers get whole snapshots: every update
replaces the object in a single assignment, so an organization id is never
seen next to the role of a different organization.
"""
from dataclasses import dataclass, replace
from typing import Protocol

from app.features.organizations.permissions import Capabilities, Role, capabilities_for
from app.utils import get_logger


log = get_logger(__name__)


@dataclass(frozen=True)
class MembershipRecord:
    """One organization the user belongs to, with the role held there."""
    organization_id: str
    organization_name: str | None
    role: Role | None


@dataclass(frozen=True)
class ActiveOrgContext:
    """Which organization the user is acting in, and as what."""
    organization_id: str | None = None
    organization_name: str | None = None
    role: Role | None = None
    loading: bool = False

    def __post_init__(self):
        if self.role is not None and self.organization_id is None:
            raise ValueError("A role is only meaningful within an organization")

    @classmethod
    def initial(cls) -> "ActiveOrgContext":
        return cls(loading=True)

    @classmethod
    def empty(cls) -> "ActiveOrgContext":
        return cls()

    @classmethod
    def from_record(cls, record: MembershipRecord | None) -> "ActiveOrgContext":
        if record is None:
            return cls.empty()
        return cls(
            organization_id=record.organization_id,
            organization_name=record.organization_name,
            role=Role.parse(record.role),
        )

    @property
    def has_organization(self) -> bool:
        return self.organization_id is not None

    @property
    def capabilities(self) -> Capabilities:
        return capabilities_for(self.role)


class ActiveOrgBackend(Protocol):
    """The remote procedures the resolver depends on."""

    async def get_or_init_active_org(self) -> MembershipRecord | None:
        ...

    async def set_active_org(self, organization_id: str) -> None:
        ...

    async def list_memberships(self) -> list[MembershipRecord]:
        ...


class ActiveOrgResolver:
    """
    Resolves the active organization through a backend and exposes it.

    Each `reload()` takes a new request token; a completion is published
    only if its token is still the latest one and the resolver has not been
    closed. Failures publish the empty context instead of raising, and are
    not retried: callers reload again when they know something changed.
    """

    def __init__(self, backend: ActiveOrgBackend):
        self._backend = backend
        self._snapshot = ActiveOrgContext.initial()
        self._latest_token = 0
        self._closed = False

    @property
    def snapshot(self) -> ActiveOrgContext:
        return self._snapshot

    @property
    def closed(self) -> bool:
        return self._closed

    async def reload(self) -> ActiveOrgContext:
        """Re-run resolution and return the snapshot current afterwards."""
        self._latest_token += 1
        token = self._latest_token
        if not self._snapshot.loading:
            self._publish(token, replace(self._snapshot, loading=True))

        try:
            record = await self._backend.get_or_init_active_org()
        except Exception as e:
            log.warning("Active organization resolution failed: %s", e)
            record = None

        try:
            context = ActiveOrgContext.from_record(record)
        except ValueError as e:
            log.warning("Discarding malformed active organization %r: %s", record, e)
            context = ActiveOrgContext.empty()

        if not self._publish(token, context):
            log.debug("Discarded superseded resolution (token %s, latest %s)", token, self._latest_token)
        return self._snapshot

    async def switch(self, organization_id: str) -> bool:
        """
        Persist a new active organization and reload.

        Returns False (keeping the current snapshot) if the backend rejects
        the switch.
        """
        try:
            await self._backend.set_active_org(organization_id)
        except Exception as e:
            log.warning("Failed to set active organization %s: %s", organization_id, e)
            return False
        await self.reload()
        return True

    def close(self) -> None:
        """Stop publishing; completions still in flight are dropped."""
        self._closed = True

    def _publish(self, token: int, context: ActiveOrgContext) -> bool:
        if self._closed or token != self._latest_token:
            return False
        self._snapshot = context
        return True
