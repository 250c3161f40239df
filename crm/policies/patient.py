"""Patient records are administrator-only, including a patient's own record."""
from __future__ import annotations

from .base import ResourcePolicy, everything, nothing


class PatientPolicy(ResourcePolicy):
    resource = 'patient'

    def index(self, actor, record=None) -> bool:
        return actor.is_admin

    def show(self, actor, record=None) -> bool:
        return actor.is_admin

    def create(self, actor, record=None) -> bool:
        return actor.is_admin

    def update(self, actor, record=None) -> bool:
        return actor.is_admin

    def destroy(self, actor, record=None) -> bool:
        return actor.is_admin


def patient_scope(actor, collection):
    if actor.is_admin:
        return everything(collection)
    return nothing(collection)
