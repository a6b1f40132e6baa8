"""Value objects shared by the notification services."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Union


@dataclass(frozen=True, slots=True)
class Recipient:
    """Projection of a user row that is enough to localize and address one email."""

    id: int
    username: str
    name: str | None = None
    email: str | None = None
    language: str | None = None

    @property
    def display_name(self) -> str:
        return self.name or self.username


@dataclass(frozen=True, slots=True)
class AllProjects:
    """The user never narrowed their subscription: every permitted project notifies."""

    def includes(self, project_id: int) -> bool:
        return True


@dataclass(frozen=True, slots=True)
class RestrictedTo:
    """The user opted into an explicit subset of projects."""

    project_ids: FrozenSet[int] = field(default_factory=frozenset)

    def includes(self, project_id: int) -> bool:
        return project_id in self.project_ids


Subscription = Union[AllProjects, RestrictedTo]


def subscription_from_rows(project_ids: Iterable[int]) -> Subscription:
    """Build a Subscription from stored opt-in rows; no rows means AllProjects."""
    ids = frozenset(int(pid) for pid in project_ids)
    if not ids:
        return AllProjects()
    return RestrictedTo(ids)
