"""
Policy registry and dispatcher.

Every view goes through this module to decide whether an actor may
perform an action and to narrow a collection down to what the actor may
list.  Targets may be given as a resource tag (``"task"``), a model
class (``Task``) or a record instance; instances are passed on to the
per-record predicates.

Adding a resource type means writing one policy plus one scope function
and calling :func:`register`; call sites do not change.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Iterable

from django.db import models

from crm.exceptions import NotAuthorizedError, PolicyNotFoundError
from crm.models import Message, Patient, Task

from .actor import Actor
from .base import ResourcePolicy, nothing
from .dashboard import DashboardPolicy, dashboard_scope
from .message import MessagePolicy, message_scope
from .patient import PatientPolicy, patient_scope
from .task import TaskPolicy, task_scope

logger = logging.getLogger(__name__)

ScopeFn = Callable[[Actor, Iterable], Any]


@dataclass(frozen=True)
class PolicyEntry:
    tag: str
    policy: ResourcePolicy
    scope: ScopeFn
    model: type[models.Model] | None = None


_BY_TAG: dict[str, PolicyEntry] = {}
_BY_MODEL: dict[type[models.Model], PolicyEntry] = {}


def register(tag: str, policy: ResourcePolicy, scope: ScopeFn, model: type[models.Model] | None = None) -> PolicyEntry:
    entry = PolicyEntry(tag=tag, policy=policy, scope=scope, model=model)
    _BY_TAG[tag] = entry
    if model is not None:
        _BY_MODEL[model] = entry
    return entry


def policy_for(target: Any) -> PolicyEntry:
    """Resolve the registry entry for a tag, model class or record."""
    entry = None
    if isinstance(target, str):
        entry = _BY_TAG.get(target.lower())
    elif isinstance(target, type) and issubclass(target, models.Model):
        entry = _BY_MODEL.get(target)
    elif isinstance(target, models.Model):
        entry = _BY_MODEL.get(type(target))
    if entry is None:
        raise PolicyNotFoundError(f"no policy registered for {target!r}")
    return entry


def _record_of(target: Any) -> Any:
    return target if isinstance(target, models.Model) else None


def permitted(actor: Actor | None, action: str, target: Any) -> bool:
    entry = policy_for(target)
    if actor is None:
        return False
    return entry.policy.permits(actor, action, _record_of(target))


@dataclass(frozen=True)
class Authorized:
    """Proof that ``actor`` passed the ``action`` check on ``record``.

    Views receive the record they mutate from here, so a record is only
    in hand once the check has succeeded.
    """
    actor: Actor
    action: str
    resource: str
    record: Any = None


def authorize(actor: Actor | None, action: str, target: Any) -> Authorized:
    entry = policy_for(target)
    record = _record_of(target)
    if actor is None or not entry.policy.permits(actor, action, record):
        logger.warning(
            'denied %s on %s#%s for user=%s role=%s',
            action, entry.tag, getattr(record, 'pk', '-'),
            getattr(actor, 'user_id', None), getattr(getattr(actor, 'role', None), 'value', None),
        )
        raise NotAuthorizedError()
    return Authorized(actor=actor, action=action, resource=entry.tag, record=record)


def policy_scope(actor: Actor | None, target: Any, base: Iterable | None = None) -> Any:
    """Return the part of ``base`` the actor may list.

    ``base`` defaults to every row of the registered model.  The result of
    a queryset base is still a lazy queryset, so callers keep filtering,
    ordering and paginating on top of it.
    """
    entry = policy_for(target)
    if base is None:
        if entry.model is None:
            raise PolicyNotFoundError(f"resource {entry.tag!r} has no model to scope")
        base = entry.model._default_manager.all()
    if actor is None or actor.role is None:
        return nothing(base)
    return entry.scope(actor, base)


register('patient', PatientPolicy(), patient_scope, model=Patient)
register('task', TaskPolicy(), task_scope, model=Task)
register('message', MessagePolicy(), message_scope, model=Message)
register('dashboard', DashboardPolicy(), dashboard_scope)
