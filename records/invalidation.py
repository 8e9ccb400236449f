"""
Which cached query results each mutation makes stale.

Query results are cached under *prefixes*. ``record.all`` covers every
listing page, search term and sort direction at once. The single-record
fetch is scoped per record: ``record.specific:<record id>``. Because
that fetch embeds the record's treatment entries, transaction
mutations invalidate the owning record's prefix.

Both the server-side query cache and :class:`records.client.RecordsClient`
use this map.
"""
from __future__ import annotations

RECORD_ALL = 'record.all'
RECORD_SPECIFIC = 'record.specific'

# prefixes that take the affected record id as a suffix
SCOPED_PREFIXES = frozenset({RECORD_SPECIFIC})

INVALIDATES: dict[str, tuple[str, ...]] = {
    'record.add': (RECORD_ALL,),
    'record.edit': (RECORD_ALL, RECORD_SPECIFIC),
    'record.delete': (RECORD_ALL, RECORD_SPECIFIC),
    'transaction.add': (RECORD_SPECIFIC,),
    'transaction.edit': (RECORD_SPECIFIC,),
    'transaction.delete': (RECORD_SPECIFIC,),
}

MUTATIONS = tuple(INVALIDATES)


def scoped(prefix: str, record_id: str | None) -> str:
    if prefix in SCOPED_PREFIXES:
        return f'{prefix}:{record_id}'
    return prefix


def stale_prefixes(mutation: str, record_id: str | None = None) -> list[str]:
    """Return the cache prefixes invalidated by a successful ``mutation``.

    ``record_id`` is the record the mutation touched: the record itself
    for record mutations, the owning record for transaction mutations.
    It is required whenever the mutation invalidates a scoped prefix.
    """
    try:
        prefixes = INVALIDATES[mutation]
    except KeyError:
        raise ValueError(f'unknown mutation: {mutation}') from None
    if record_id is None and any(p in SCOPED_PREFIXES for p in prefixes):
        raise ValueError(f'{mutation} needs the affected record id')
    return [scoped(p, record_id) for p in prefixes]


def affected_record_id(mutation: str, result: dict) -> str | None:
    """Pick the affected record id out of a mutation's result payload."""
    if mutation.startswith('transaction.'):
        return result.get('recordId')
    return result.get('id')
