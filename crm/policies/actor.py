"""
The authenticated principal as seen by the policy layer.

An :class:`Actor` is a frozen snapshot of the requesting user: its id,
its role and, for patient-role users, the id of the linked patient
record.  Policies only ever read these fields, so a decision never
issues a query of its own.  A role that is missing or not one of the
known roles is carried as ``None``; every policy treats that as deny.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from crm.models import Role


@dataclass(frozen=True)
class Actor:
    user_id: int | None
    role: Role | None
    patient_id: int | None = None

    @classmethod
    def from_user(cls, user: Any) -> 'Actor':
        try:
            role = Role(getattr(user, 'role', None))
        except ValueError:
            role = None
        patient_id = None
        if role is Role.PATIENT:
            patient = getattr(user, 'linked_patient', None)
            patient_id = getattr(patient, 'pk', None)
        return cls(user_id=getattr(user, 'pk', None), role=role, patient_id=patient_id)

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN

    @property
    def is_patient(self) -> bool:
        return self.role is Role.PATIENT

    @property
    def has_patient_record(self) -> bool:
        return self.patient_id is not None


def actor_for_request(request) -> Actor | None:
    """Return the actor for an authenticated request, built once per request."""
    user = getattr(request, 'user', None)
    if not (user and user.is_authenticated):
        return None
    actor = getattr(request, '_crm_actor', None)
    if actor is None or actor.user_id != user.pk:
        actor = Actor.from_user(user)
        request._crm_actor = actor
    return actor
