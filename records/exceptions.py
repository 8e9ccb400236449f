import logging

from rest_framework import status
from rest_framework.exceptions import (
    APIException,
    AuthenticationFailed,
    NotAuthenticated,
    NotFound,
    ValidationError,
)
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

logger = logging.getLogger(__name__)


class RecordHasEntries(APIException):
    """Deleting a record that still owns treatment entries."""
    status_code = status.HTTP_409_CONFLICT
    default_detail = 'record still has treatment entries; delete them first'
    default_code = 'record_has_entries'


def _error_code(exc):
    if isinstance(exc, ValidationError):
        return 'validation_error'
    if isinstance(exc, NotFound):
        return 'not_found'
    if isinstance(exc, (NotAuthenticated, AuthenticationFailed)):
        return 'not_authenticated'
    return getattr(exc, 'default_code', None) or 'api_error'


def api_exception_handler(exc, context):
    resp = drf_exception_handler(exc, context)
    if resp is None:
        request = context.get('request')
        logger.exception('unhandled error on %s', getattr(request, 'path', '?'))
        return Response(
            {'ok': False, 'error': {'code': 'server_error', 'message': 'Internal server error'}},
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        )
    code = _error_code(exc)
    error = {'code': code}
    if code == 'validation_error':
        error['message'] = 'Invalid input'
        error['fields'] = resp.data if isinstance(resp.data, dict) else {'non_field_errors': resp.data}
    elif isinstance(resp.data, dict):
        error['message'] = resp.data.get('detail') or resp.data
    else:
        error['message'] = str(resp.data)
    return Response({'ok': False, 'error': error}, status=resp.status_code, headers=_passthrough_headers(resp))


def _passthrough_headers(resp):
    return {k: v for k, v in resp.items() if k in ('WWW-Authenticate', 'Retry-After')}
