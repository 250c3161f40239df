"""
Task management views.

Listings apply the task policy scope before the status filter, sort
order and pagination, and the stats block is computed from the same
scope.  Patient-role users may open the listing, but its scope is
empty for them; a task they are given by id is still subject to the
per-record checks (show, update, complete, reopen).
"""
from __future__ import annotations

from django.shortcuts import get_object_or_404
from rest_framework import status
from rest_framework.decorators import api_view, permission_classes
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from crm.models import Task
from crm.permissions import policy_permission
from crm.policies.actor import actor_for_request
from crm.policies.base import COMPLETE, CREATE, DESTROY, INDEX, REOPEN, SHOW, UPDATE
from crm.policies.registry import authorize, policy_scope
from crm.serializers.task import TaskListQuerySerializer, TaskSerializer
from crm.services.pagination import paginate
from crm.services.tasks import complete_task, filter_tasks, reopen_task, task_stats


def serialize_task(task: Task) -> dict:
    return {
        'id': task.id,
        'title': task.title,
        'description': task.description,
        'status': task.status,
        'dueDate': task.due_date.isoformat() if task.due_date else None,
        'completedAt': task.completed_at.isoformat() if task.completed_at else None,
        'overdue': task.is_overdue,
        'patientId': task.patient_id,
        'userId': task.user_id,
        'createdAt': task.created_at.isoformat() if task.created_at else None,
        'updatedAt': task.updated_at.isoformat() if task.updated_at else None,
    }


@api_view(['GET', 'POST'])
@permission_classes([IsAuthenticated, policy_permission('task', GET=INDEX, POST=CREATE)])
def tasks_list(request):
    actor = actor_for_request(request)
    if request.method == 'GET':
        q = TaskListQuerySerializer(data=request.query_params)
        q.is_valid(raise_exception=True)
        scoped = policy_scope(actor, Task)
        qs = filter_tasks(scoped, q.validated_data.get('status'), q.validated_data.get('sort'))
        items, pagination = paginate(qs, q.validated_data.get('page'), q.validated_data.get('pageSize'))
        return Response({
            'ok': True,
            'data': [serialize_task(t) for t in items],
            'pagination': pagination,
            'stats': task_stats(scoped),
        })
    # POST
    s = TaskSerializer(data=request.data)
    s.is_valid(raise_exception=True)
    task = s.save(user=s.validated_data.get('user') or request.user)
    return Response(
        {'ok': True, 'data': serialize_task(task), 'stats': task_stats(policy_scope(actor, Task))},
        status=status.HTTP_201_CREATED,
    )


@api_view(['GET', 'PUT', 'PATCH', 'DELETE'])
@permission_classes([IsAuthenticated])
def task_detail(request, pk: int):
    actor = actor_for_request(request)
    task = get_object_or_404(Task, pk=pk)
    if request.method == 'GET':
        grant = authorize(actor, SHOW, task)
        return Response({'ok': True, 'data': serialize_task(grant.record)})
    if request.method in ('PUT', 'PATCH'):
        grant = authorize(actor, UPDATE, task)
        s = TaskSerializer(grant.record, data=request.data, partial=request.method == 'PATCH')
        s.is_valid(raise_exception=True)
        task = s.save()
        return Response({'ok': True, 'data': serialize_task(task), 'stats': task_stats(policy_scope(actor, Task))})
    # DELETE
    grant = authorize(actor, DESTROY, task)
    grant.record.delete()
    return Response(status=status.HTTP_204_NO_CONTENT)


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_complete(request, pk: int):
    actor = actor_for_request(request)
    grant = authorize(actor, COMPLETE, get_object_or_404(Task, pk=pk))
    task = complete_task(grant.record)
    return Response({
        'ok': True,
        'detail': 'Task marked as completed.',
        'data': serialize_task(task),
        'stats': task_stats(policy_scope(actor, Task)),
    })


@api_view(['POST'])
@permission_classes([IsAuthenticated])
def task_reopen(request, pk: int):
    actor = actor_for_request(request)
    grant = authorize(actor, REOPEN, get_object_or_404(Task, pk=pk))
    task = reopen_task(grant.record)
    return Response({
        'ok': True,
        'detail': 'Task reopened.',
        'data': serialize_task(task),
        'stats': task_stats(policy_scope(actor, Task)),
    })
