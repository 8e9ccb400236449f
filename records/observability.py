"""
Structured logging that keeps patient data out of the logs.

``RedactingJSONFormatter`` is wired in through ``settings.LOGGING``.
Values passed with ``extra={...}`` whose key names patient information
are replaced before the line is written.
"""
import json
import logging
from datetime import datetime, timezone

from django.http import HttpRequest

# Record fields that identify a patient
SENSITIVE_FIELDS = {
    'name',
    'address',
    'telephone',
    'complaint',
    'birthday',
    'occupation',
    'password',
    'token',
    'refresh',
    'searchterm',
}

# Attributes every LogRecord has; anything else came from ``extra``
_STANDARD_ATTRS = set(vars(logging.makeLogRecord({}))) | {'message', 'asctime', 'taskName'}


def redact(value):
    if isinstance(value, dict):
        return {
            k: '[REDACTED]' if str(k).lower() in SENSITIVE_FIELDS else redact(v)
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(v) for v in value]
    return value


class RedactingJSONFormatter(logging.Formatter):
    """One JSON object per line, with patient fields redacted."""

    def format(self, record):
        log_data = {
            'timestamp': datetime.now(timezone.utc).isoformat(),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }
        for key, value in record.__dict__.items():
            if key in _STANDARD_ATTRS or key.startswith('_') or key in log_data:
                continue
            if key.lower() in SENSITIVE_FIELDS:
                log_data[key] = '[REDACTED]'
            elif isinstance(value, HttpRequest):
                # django.request attaches the request; its repr carries the query string
                log_data[key] = f'{value.method} {value.path}'
            else:
                log_data[key] = redact(value)
        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)
        return json.dumps(log_data, default=str)
