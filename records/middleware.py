import logging
import time

logger = logging.getLogger('records.requests')


class ProcedureLogMiddleware:
    """Log one line per API procedure call with its status and duration.

    Only the path is logged, never the query string: search terms are
    patient names.
    """
    PREFIX = '/api/'

    def __init__(self, get_response):
        self.get_response = get_response

    def __call__(self, request):
        path = request.path or ''
        if not path.startswith(self.PREFIX):
            return self.get_response(request)
        started = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = round((time.monotonic() - started) * 1000, 1)
        user = getattr(request, 'user', None)
        logger.info(
            '%s %s -> %s (%sms)', request.method, path, response.status_code, elapsed_ms,
            extra={
                'procedure': path[len(self.PREFIX):].replace('/', '.'),
                'status': response.status_code,
                'duration_ms': elapsed_ms,
                'user_id': getattr(user, 'id', None),
            },
        )
        return response
