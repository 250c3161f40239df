import logging

from rest_framework import status
from rest_framework.exceptions import PermissionDenied
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class NotAuthorizedError(PermissionDenied):
    """The single denial signal of the policy layer."""
    default_detail = 'You are not authorized to perform this action.'
    default_code = 'not_authorized'


class PolicyNotFoundError(LookupError):
    """No policy is registered for the requested resource type."""


def _error_code(exc) -> str:
    codes = exc.get_codes() if hasattr(exc, 'get_codes') else None
    if isinstance(codes, str):
        return codes
    return getattr(exc, 'default_code', None) or 'api_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        view = context.get('view')
        logger.error('unhandled error in %s', type(view).__name__, exc_info=exc)
        return Response(
            {'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    # normalize response
    if isinstance(resp.data, dict):
        detail = resp.data.get('detail') or resp.data
    else:
        detail = resp.data
    return Response(
        {'ok': False, 'error': {'code': _error_code(exc), 'message': detail}},
        status=resp.status_code,
        headers={h: resp[h] for h in ('WWW-Authenticate', 'Retry-After') if h in resp},
    )
