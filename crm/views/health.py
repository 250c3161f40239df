"""Liveness probe used by the load balancer; touches the database only."""
import logging

from django.db import DatabaseError, connections
from django.http import JsonResponse

logger = logging.getLogger(__name__)


def _database_ok(alias: str = 'default') -> bool:
    with connections[alias].cursor() as cursor:
        cursor.execute('SELECT 1')
        row = cursor.fetchone()
    return bool(row and row[0] == 1)


def healthz(request):
    try:
        db_ok = _database_ok()
    except DatabaseError as e:
        logger.error('health check failed: %s', type(e).__name__)
        return JsonResponse({'ok': False, 'db': False, 'error': type(e).__name__}, status=503)
    return JsonResponse({'ok': db_ok, 'db': db_ok}, status=200 if db_ok else 503)
