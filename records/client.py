"""
Typed Python client for the record procedures, with a query cache.

Query results are cached per procedure and arguments. After a mutation
succeeds, every cached result it could have changed is dropped (see
:mod:`records.invalidation`) and is refetched on its next read. At most
``max_entries`` results are kept; the oldest goes first.

Results that arrive out of order never overwrite a newer one for the
same key, and a result fetched while its key was being invalidated is
not cached. Each mutation may have one call in flight; a
second submission while the first is running raises
:class:`MutationInFlight`.

Usage::

    client = RecordsClient('https://clinic.example.com', token='...')
    page = client.records(1, search_term='jane')
    record = client.add_record(name='Jane Doe', ...)
"""
from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Callable, Optional

import requests

from records import notifications
from records.invalidation import (
    RECORD_ALL,
    RECORD_SPECIFIC,
    affected_record_id,
    scoped,
    stale_prefixes,
)
from records.notifications import Notification

logger = logging.getLogger(__name__)

DATE_FIELDS = {'birthday', 'date'}
DECIMAL_FIELDS = {'fees'}


class ClientError(Exception):
    """A procedure call failed.

    ``code`` is the server's error code (``validation_error``,
    ``not_found``, ``server_error`` ...) or ``network_error`` when the
    server could not be reached. ``fields`` holds per-field messages for
    validation errors.
    """

    def __init__(self, procedure: str, status: Optional[int], code: str,
                 fields: Optional[dict] = None, notification: Optional[Notification] = None):
        super().__init__(f'{procedure} failed: {code} ({status})')
        self.procedure = procedure
        self.status = status
        self.code = code
        self.fields = fields or {}
        self.notification = notification


class MutationInFlight(Exception):
    def __init__(self, procedure: str):
        super().__init__(f'{procedure} is already in progress')
        self.procedure = procedure


@dataclass
class CacheEntry:
    data: Any
    seq: int


def encode(value):
    if isinstance(value, dict):
        return {k: encode(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [encode(v) for v in value]
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, Decimal):
        return str(value)
    return value


def decode(value, key=None):
    if isinstance(value, dict):
        return {k: decode(v, k) for k, v in value.items()}
    if isinstance(value, list):
        return [decode(v) for v in value]
    if value is None:
        return None
    if key in DATE_FIELDS:
        return date.fromisoformat(value)
    if key in DECIMAL_FIELDS:
        return Decimal(str(value))
    return value


def _freeze(args: dict) -> tuple:
    return tuple(sorted(args.items()))


def _log_notification(n: Notification) -> None:
    level = logging.INFO if n.status == notifications.SUCCESS else logging.WARNING
    logger.log(level, '%s: %s', n.title, n.message)


class RecordsClient:
    def __init__(self, base_url: str = '', *, token: Optional[str] = None,
                 session=None, timeout: float = 10,
                 notify: Optional[Callable[[Notification], None]] = None,
                 max_entries: int = 256):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.timeout = timeout
        self.headers = {'Accept': 'application/json'}
        if token:
            self.headers['Authorization'] = f'Token {token}'
        self.notify = notify or _log_notification
        self.max_entries = max_entries
        self._cache: dict[tuple, CacheEntry] = {}
        self._epochs: dict[str, int] = {}
        self._seq = itertools.count(1)
        self._in_flight: set[str] = set()
        self._lock = threading.Lock()

    # ------------------------------------------------------------------
    # queries
    # ------------------------------------------------------------------
    def records(self, page_number: int, search_term: Optional[str] = None,
                sort_type: str = 'asc') -> dict:
        """``record.all``: ``{'pageCount': int, 'records': [{'id', 'name'}]}``."""
        args = {
            'pageNumber': page_number,
            'searchTerm': (search_term or '').strip(),
            'sortType': sort_type,
        }
        return self._query('record.all', RECORD_ALL, args)

    def record(self, record_id: str) -> Optional[dict]:
        """``record.specific``: the record with its ``entries``, or ``None``."""
        return self._query('record.specific', scoped(RECORD_SPECIFIC, record_id), {'id': record_id})

    # ------------------------------------------------------------------
    # mutations
    # ------------------------------------------------------------------
    def add_record(self, **fields) -> dict:
        return self._mutate('record.add', fields)

    def edit_record(self, record_id: str, **fields) -> dict:
        return self._mutate('record.edit', {'id': record_id, **fields})

    def delete_record(self, record_id: str) -> dict:
        return self._mutate('record.delete', {'id': record_id})

    def add_transaction(self, record_id: str, **fields) -> dict:
        return self._mutate('transaction.add', {'recordId': record_id, **fields})

    def edit_transaction(self, transaction_id: str, **fields) -> dict:
        return self._mutate('transaction.edit', {'id': transaction_id, **fields})

    def delete_transaction(self, transaction_id: str) -> dict:
        return self._mutate('transaction.delete', {'id': transaction_id})

    def is_mutating(self, procedure: Optional[str] = None) -> bool:
        with self._lock:
            if procedure is None:
                return bool(self._in_flight)
            return procedure in self._in_flight

    # ------------------------------------------------------------------
    # cache
    # ------------------------------------------------------------------
    def invalidate(self, prefixes) -> None:
        """Drop every cached result under ``prefixes``.

        Requests already in flight for those prefixes will not be cached
        when they land.
        """
        prefixes = set(prefixes)
        with self._lock:
            for p in prefixes:
                self._epochs[p] = self._epochs.get(p, 0) + 1
            for key in [k for k in self._cache if k[0] in prefixes]:
                del self._cache[key]

    def is_cached(self, procedure: str, **args) -> bool:
        """True when a fresh cached result exists for the given call."""
        if procedure == 'record.all':
            prefix = RECORD_ALL
            args.setdefault('searchTerm', '')
            args['searchTerm'] = (args['searchTerm'] or '').strip()
        else:
            prefix = scoped(RECORD_SPECIFIC, args['id'])
        with self._lock:
            return (prefix, _freeze(args)) in self._cache

    def _query(self, procedure: str, prefix: str, args: dict):
        key = (prefix, _freeze(args))
        with self._lock:
            entry = self._cache.get(key)
            if entry:
                return entry.data
            seq = next(self._seq)
            epoch = self._epochs.get(prefix, 0)
        try:
            data = self._call('GET', procedure, params=args)
        except ClientError as e:
            self.notify(e.notification)
            raise
        self._store(key, seq, epoch, data)
        return data

    def _store(self, key: tuple, seq: int, epoch: int, data) -> None:
        prefix = key[0]
        with self._lock:
            current = self._cache.get(key)
            if current and current.seq > seq:
                # a newer request for this key already landed
                return
            if self._epochs.get(prefix, 0) != epoch:
                # invalidated while in flight
                return
            if current is None and len(self._cache) >= self.max_entries:
                # evict the oldest insertion
                del self._cache[next(iter(self._cache))]
            self._cache[key] = CacheEntry(data=data, seq=seq)

    def _mutate(self, procedure: str, payload: dict) -> dict:
        with self._lock:
            if procedure in self._in_flight:
                raise MutationInFlight(procedure)
            self._in_flight.add(procedure)
        try:
            data = self._call('POST', procedure, json=encode(payload))
        except ClientError as e:
            self.notify(e.notification)
            raise
        finally:
            with self._lock:
                self._in_flight.discard(procedure)
        self.invalidate(stale_prefixes(procedure, affected_record_id(procedure, data)))
        success = notifications.success_for(procedure)
        if success:
            self.notify(success)
        return data

    # ------------------------------------------------------------------
    # transport
    # ------------------------------------------------------------------
    def _url(self, procedure: str) -> str:
        return f"{self.base_url}/api/{procedure.replace('.', '/')}"

    def _call(self, method: str, procedure: str, *, params=None, json=None):
        url = self._url(procedure)
        try:
            if method == 'GET':
                resp = self.session.get(url, params=params, headers=self.headers, timeout=self.timeout)
            else:
                resp = self.session.post(url, json=json, headers=self.headers, timeout=self.timeout)
        except requests.RequestException as e:
            logger.warning('%s unreachable: %s', procedure, e)
            raise ClientError(procedure, None, 'network_error',
                              notification=notifications.error_for(procedure)) from e
        try:
            body = resp.json()
        except ValueError:
            body = {}
        if resp.status_code >= 400 or not body.get('ok'):
            error = body.get('error') or {}
            code = error.get('code') or 'server_error'
            fields = error.get('fields') or {}
            if code == 'validation_error':
                notification = notifications.validation_error(fields)
            else:
                notification = notifications.error_for(procedure)
            raise ClientError(procedure, resp.status_code, code, fields=fields, notification=notification)
        return decode(body.get('data'))
