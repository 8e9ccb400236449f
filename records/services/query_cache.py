"""
Server-side cache for query procedures.

Every cache prefix (see :mod:`records.invalidation`) owns a generation
token stored in the Django cache. Entries are keyed by prefix, token and
a digest of the query arguments, so invalidating a prefix is a single
write that replaces its token and orphans every entry under the old one.

A query reads the token *before* it runs and stores its result under
that token. If a mutation invalidates the prefix while the query is
still running, the result lands under the old token and is never
served.
"""
from __future__ import annotations

import hashlib
import json
import logging
import uuid
from typing import Any, Callable, Iterable

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.conf import settings
from django.core.cache import cache
from django.utils import timezone

from records.invalidation import stale_prefixes
from records.metrics import CACHE_INVALIDATIONS, QUERY_CACHE_REQUESTS

logger = logging.getLogger(__name__)

UPDATES_GROUP = 'updates'

_MISSING = object()


def _generation_key(prefix: str) -> str:
    return f'qgen:{prefix}'


def generation(prefix: str) -> str:
    key = _generation_key(prefix)
    token = cache.get(key)
    if token is None:
        # token never expires; if evicted a fresh one orphans old entries
        cache.add(key, uuid.uuid4().hex, None)
        token = cache.get(key)
    return token


def _args_digest(args: dict | None) -> str:
    raw = json.dumps(args or {}, sort_keys=True, default=str)
    return hashlib.sha1(raw.encode('utf-8')).hexdigest()


def cache_key(prefix: str, token: str, args: dict | None = None) -> str:
    return f'q:{prefix}:{token}:{_args_digest(args)}'


def cached_query(procedure: str, prefix: str, args: dict | None, compute: Callable[[], Any]) -> Any:
    """Return the cached result for ``prefix``/``args`` or compute and store it.

    ``None`` results are cached too: "record not found" is a valid,
    cacheable answer.
    """
    token = generation(prefix)
    key = cache_key(prefix, token, args)
    hit = cache.get(key, _MISSING)
    if hit is not _MISSING:
        QUERY_CACHE_REQUESTS.labels(procedure=procedure, result='hit').inc()
        return hit
    QUERY_CACHE_REQUESTS.labels(procedure=procedure, result='miss').inc()
    result = compute()
    cache.set(key, result, settings.QUERY_CACHE_TIMEOUT)
    return result


def invalidate_prefixes(prefixes: Iterable[str]) -> list[str]:
    prefixes = list(prefixes)
    cache.set_many({_generation_key(p): uuid.uuid4().hex for p in prefixes}, None)
    return prefixes


def invalidate(mutation: str, record_id: str | None = None) -> list[str]:
    """Invalidate everything ``mutation`` may have changed and tell clients.

    Call only after the mutation has committed.
    """
    prefixes = invalidate_prefixes(stale_prefixes(mutation, record_id))
    CACHE_INVALIDATIONS.labels(mutation=mutation).inc(len(prefixes))
    logger.info('invalidated %s after %s', ', '.join(prefixes), mutation,
                extra={'mutation': mutation, 'keys': prefixes})
    broadcast_invalidation(mutation, prefixes)
    return prefixes


def broadcast_invalidation(mutation: str, prefixes: list[str]) -> None:
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return
    event = {
        'type': 'broadcast.invalidate',
        'mutation': mutation,
        'keys': prefixes,
        'ts': timezone.now().isoformat(),
    }
    try:
        async_to_sync(channel_layer.group_send)(UPDATES_GROUP, event)
    except Exception:
        # the cache is already invalidated; connected browsers miss one push
        logger.exception('could not broadcast invalidation for %s', mutation)
