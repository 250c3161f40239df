"""
Task listing helpers and status transitions.

Listing helpers always take an already scoped queryset: callers apply
the policy scope first, then these filters, then paginate.
"""
from __future__ import annotations

from crm.models import Task

STATUS_FILTERS = {
    'pending': lambda qs: qs.pending(),
    'completed': lambda qs: qs.completed(),
    'overdue': lambda qs: qs.overdue(),
    'due_today': lambda qs: qs.due_today(),
}

SORTS = {
    'due_date': ('due_date',),
    'recent': ('-created_at',),
}

DEFAULT_ORDER = ('-updated_at', '-pk')


def filter_tasks(queryset, status: str | None = None, sort: str | None = None):
    if status in STATUS_FILTERS:
        queryset = STATUS_FILTERS[status](queryset)
    return queryset.order_by(*SORTS.get(sort, ()), *DEFAULT_ORDER)


def task_stats(queryset) -> dict:
    return {
        'totalTasks': queryset.count(),
        'pendingTasks': queryset.pending().count(),
        'completedTasks': queryset.completed().count(),
        'overdueTasks': queryset.overdue().count(),
        'dueTodayTasks': queryset.due_today().count(),
    }


def set_status(task: Task, status: str) -> Task:
    """Move a task to ``status``; repeating the same transition is a no-op."""
    if task.status != status:
        task.status = status
        task.save(update_fields=['status', 'updated_at'])
    return task


def complete_task(task: Task) -> Task:
    return set_status(task, Task.Status.COMPLETED)


def reopen_task(task: Task) -> Task:
    return set_status(task, Task.Status.PENDING)
