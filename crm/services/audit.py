"""
Audit trail of account and patient-record changes.

Entries reference records by type and id only; names and contact
details stay out of ``detail``.
"""
from __future__ import annotations

from typing import Any

from crm.models import AuditEvent, User


def client_ip(request) -> str | None:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR')
    if forwarded:
        return forwarded.split(',')[0].strip()
    return request.META.get('REMOTE_ADDR')


def log_action(*, user: User | None, action: str, object_type: str | None = None,
               object_id: int | None = None, detail: dict[str, Any] | None = None,
               request=None) -> AuditEvent:
    detail = dict(detail or {})
    if request is not None:
        detail.setdefault('ip', client_ip(request))
    return AuditEvent.objects.create(
        user=user if user is not None and user.pk else None,
        action=action,
        object_type=object_type,
        object_id=object_id,
        detail=detail,
    )


def trail_for(object_type: str, object_id: int):
    """Audit entries of one record, newest first."""
    return AuditEvent.objects.filter(object_type=object_type, object_id=object_id).order_by('-created_at', '-pk')
