"""
Task authorization.

Patients may reach the task listing and act on a task they are handed
directly (show, update, complete, reopen), but the listing scope is
empty for them: tasks are never discoverable through a patient's
listing.  There is no ownership check on individual tasks.
"""
from __future__ import annotations

from .base import COMPLETE, CRUD_ACTIONS, REOPEN, ResourcePolicy, everything, nothing


class TaskPolicy(ResourcePolicy):
    resource = 'task'
    actions = CRUD_ACTIONS | {COMPLETE, REOPEN}

    def index(self, actor, record=None) -> bool:
        return actor.is_admin or actor.is_patient

    def show(self, actor, record=None) -> bool:
        if actor.is_admin:
            return True
        return actor.is_patient and actor.has_patient_record

    def create(self, actor, record=None) -> bool:
        return actor.is_admin

    def update(self, actor, record=None) -> bool:
        return actor.is_admin or actor.is_patient

    def destroy(self, actor, record=None) -> bool:
        return actor.is_admin

    def complete(self, actor, record=None) -> bool:
        return actor.is_admin or actor.is_patient

    def reopen(self, actor, record=None) -> bool:
        return actor.is_admin or actor.is_patient


def task_scope(actor, collection):
    if actor.is_admin:
        return everything(collection)
    # TODO: scope patients to tasks of their own record once patient-facing task lists ship
    return nothing(collection)
