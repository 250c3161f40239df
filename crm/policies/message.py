"""Message authorization: patients write messages and edit only their own."""
from __future__ import annotations

from .base import ResourcePolicy, everything, nothing


class MessagePolicy(ResourcePolicy):
    resource = 'message'

    def index(self, actor, record=None) -> bool:
        return actor.is_admin or actor.is_patient

    def show(self, actor, record=None) -> bool:
        return actor.is_admin or actor.is_patient

    def create(self, actor, record=None) -> bool:
        return actor.is_admin or actor.is_patient

    def update(self, actor, record=None) -> bool:
        if actor.is_admin:
            return True
        if not actor.is_patient or record is None:
            return False
        return record.user_id is not None and record.user_id == actor.user_id

    def destroy(self, actor, record=None) -> bool:
        return actor.is_admin


def message_scope(actor, collection):
    if actor.is_admin:
        return everything(collection)
    return nothing(collection)
