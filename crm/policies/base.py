"""
Shared pieces of the resource policies.

A resource policy answers one boolean per action.  Predicates receive
the :class:`~crm.policies.actor.Actor` and the target record, which is
``None`` for class-level checks (listing, creating).  ``permits`` is the
single entry point: it denies unknown actions and actors without a
valid role before any predicate runs.

Scope functions are kept apart from the predicates.  Each takes
``(actor, collection)`` and returns the subset of the collection the
actor may see; :func:`everything` and :func:`nothing` work on both
querysets and plain iterables.
"""
from __future__ import annotations

from typing import Any, Iterable

from django.db.models import QuerySet

from .actor import Actor

INDEX = 'index'
SHOW = 'show'
CREATE = 'create'
UPDATE = 'update'
DESTROY = 'destroy'
COMPLETE = 'complete'
REOPEN = 'reopen'

CRUD_ACTIONS = frozenset({INDEX, SHOW, CREATE, UPDATE, DESTROY})


class ResourcePolicy:
    resource: str = ''
    actions: frozenset[str] = CRUD_ACTIONS

    def permits(self, actor: Actor, action: str, record: Any = None) -> bool:
        if action not in self.actions or actor is None or actor.role is None:
            return False
        predicate = getattr(self, action, None)
        if predicate is None:
            return False
        return bool(predicate(actor, record))

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.resource}>"


def everything(collection: Iterable) -> Any:
    if isinstance(collection, QuerySet):
        return collection.all()
    return list(collection)


def nothing(collection: Iterable) -> Any:
    if isinstance(collection, QuerySet):
        return collection.none()
    return []
