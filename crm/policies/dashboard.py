"""The landing page is open to every signed-in role."""
from __future__ import annotations

from .base import INDEX, ResourcePolicy, everything, nothing


class DashboardPolicy(ResourcePolicy):
    resource = 'dashboard'
    actions = frozenset({INDEX})

    def index(self, actor, record=None) -> bool:
        return actor.is_admin or actor.is_patient


def dashboard_scope(actor, collection):
    if actor.is_admin or actor.is_patient:
        return everything(collection)
    return nothing(collection)
