"""
Landing page endpoint.

Every signed-in role may open the dashboard.  Its figures come from the
policy scopes, so they are computed over exactly the rows the requester
could list elsewhere.
"""
from __future__ import annotations

from datetime import timedelta

from django.utils import timezone
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from crm.models import Message, Patient, Task
from crm.permissions import policy_permission
from crm.policies.actor import actor_for_request
from crm.policies.base import INDEX
from crm.policies.registry import policy_scope
from crm.services.tasks import task_stats

from .tasks import serialize_task


@api_view(['GET'])
@permission_classes([IsAuthenticated, policy_permission('dashboard', GET=INDEX)])
def dashboard(request):
    actor = actor_for_request(request)
    patients = policy_scope(actor, Patient)
    tasks = policy_scope(actor, Task)
    messages = policy_scope(actor, Message)
    return Response({
        'ok': True,
        'role': actor.role.value,
        'patients': {
            'total': patients.count(),
            'active': patients.active().count(),
            'inactive': patients.inactive().count(),
        },
        'tasks': task_stats(tasks),
        'upcomingTasks': [serialize_task(t) for t in tasks.pending().by_due_date()[:5]],
        'recentMessages': messages.filter(created_at__gt=timezone.now() - timedelta(days=7)).count(),
    })
