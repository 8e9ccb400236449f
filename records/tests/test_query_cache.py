"""
Unit tests for the invalidation map and the generation-token query cache.
"""
import logging

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

from records import invalidation
from records.invalidation import (
    MUTATIONS,
    RECORD_ALL,
    RECORD_SPECIFIC,
    affected_record_id,
    scoped,
    stale_prefixes,
)
from records.services import query_cache


class FakeLayer:
    def __init__(self, fail=False):
        self.sent = []
        self.fail = fail

    async def group_send(self, group, event):
        if self.fail:
            raise ConnectionError('redis went away')
        self.sent.append((group, event))


class Counter:
    def __init__(self, value):
        self.value = value
        self.calls = 0

    def __call__(self):
        self.calls += 1
        return self.value


@pytest.fixture
def fake_layer(monkeypatch):
    layer = FakeLayer()
    monkeypatch.setattr(query_cache, 'get_channel_layer', lambda: layer)
    return layer


# ----------------------------------------------------------------------
# invalidation map
# ----------------------------------------------------------------------

def test_record_add_only_touches_listing():
    assert stale_prefixes('record.add') == [RECORD_ALL]
    assert stale_prefixes('record.add', 'r1') == [RECORD_ALL]


@pytest.mark.parametrize('mutation', ['record.edit', 'record.delete'])
def test_record_edit_and_delete_touch_listing_and_that_record(mutation):
    assert stale_prefixes(mutation, 'r1') == [RECORD_ALL, 'record.specific:r1']


@pytest.mark.parametrize('mutation', ['transaction.add', 'transaction.edit', 'transaction.delete'])
def test_transaction_mutations_touch_owning_record_only(mutation):
    assert stale_prefixes(mutation, 'r1') == ['record.specific:r1']


def test_every_mutation_is_mapped():
    assert set(MUTATIONS) == {
        'record.add', 'record.edit', 'record.delete',
        'transaction.add', 'transaction.edit', 'transaction.delete',
    }


def test_unknown_mutation_is_rejected():
    with pytest.raises(ValueError):
        stale_prefixes('record.truncate')


def test_scoped_prefix_needs_record_id():
    with pytest.raises(ValueError):
        stale_prefixes('transaction.add')


def test_scoped_only_suffixes_scoped_prefixes():
    assert scoped(RECORD_ALL, 'r1') == RECORD_ALL
    assert scoped(RECORD_SPECIFIC, 'r1') == 'record.specific:r1'
    assert RECORD_SPECIFIC in invalidation.SCOPED_PREFIXES


def test_affected_record_id_follows_entry_owner():
    assert affected_record_id('transaction.edit', {'id': 't1', 'recordId': 'r1'}) == 'r1'
    assert affected_record_id('record.delete', {'id': 'r2', 'name': 'x'}) == 'r2'


# ----------------------------------------------------------------------
# query cache
# ----------------------------------------------------------------------

def test_cached_query_computes_once_per_arguments():
    compute = Counter({'pageCount': 1})
    args = {'pageNumber': 1, 'searchTerm': '', 'sortType': 'asc'}

    assert query_cache.cached_query('record.all', RECORD_ALL, args, compute) == {'pageCount': 1}
    assert query_cache.cached_query('record.all', RECORD_ALL, dict(args), compute) == {'pageCount': 1}
    assert compute.calls == 1

    query_cache.cached_query('record.all', RECORD_ALL, {**args, 'sortType': 'desc'}, compute)
    assert compute.calls == 2


def test_none_results_are_cached():
    compute = Counter(None)
    prefix = scoped(RECORD_SPECIFIC, 'missing')
    assert query_cache.cached_query('record.specific', prefix, None, compute) is None
    assert query_cache.cached_query('record.specific', prefix, None, compute) is None
    assert compute.calls == 1


def test_invalidating_a_prefix_orphans_its_entries(fake_layer):
    listing = Counter('listing')
    r1 = Counter('r1')
    r2 = Counter('r2')
    query_cache.cached_query('record.all', RECORD_ALL, {'p': 1}, listing)
    query_cache.cached_query('record.specific', 'record.specific:r1', None, r1)
    query_cache.cached_query('record.specific', 'record.specific:r2', None, r2)

    query_cache.invalidate('record.edit', 'r1')

    query_cache.cached_query('record.all', RECORD_ALL, {'p': 1}, listing)
    query_cache.cached_query('record.specific', 'record.specific:r1', None, r1)
    query_cache.cached_query('record.specific', 'record.specific:r2', None, r2)
    assert (listing.calls, r1.calls, r2.calls) == (2, 2, 1)


def test_result_computed_during_invalidation_is_not_served(fake_layer):
    calls = []

    def slow_query():
        calls.append(1)
        if len(calls) == 1:
            # a mutation commits while this query is still reading
            query_cache.invalidate('record.add')
            return 'before mutation'
        return 'after mutation'

    first = query_cache.cached_query('record.all', RECORD_ALL, {'p': 1}, slow_query)
    second = query_cache.cached_query('record.all', RECORD_ALL, {'p': 1}, slow_query)
    assert first == 'before mutation'
    assert second == 'after mutation'
    assert len(calls) == 2


def test_generation_token_is_stable_until_invalidated():
    token = query_cache.generation(RECORD_ALL)
    assert query_cache.generation(RECORD_ALL) == token
    query_cache.invalidate_prefixes([RECORD_ALL])
    assert query_cache.generation(RECORD_ALL) != token


def test_invalidate_broadcasts_to_updates_group(fake_layer):
    keys = query_cache.invalidate('transaction.delete', 'r9')
    assert keys == ['record.specific:r9']
    assert len(fake_layer.sent) == 1
    group, event = fake_layer.sent[0]
    assert group == query_cache.UPDATES_GROUP == 'updates'
    assert event['type'] == 'broadcast.invalidate'
    assert event['mutation'] == 'transaction.delete'
    assert event['keys'] == ['record.specific:r9']
    assert event['ts']


def test_broadcast_failure_does_not_undo_invalidation(monkeypatch, caplog):
    monkeypatch.setattr(query_cache, 'get_channel_layer', lambda: FakeLayer(fail=True))
    compute = Counter('page')
    query_cache.cached_query('record.all', RECORD_ALL, {'p': 1}, compute)

    with caplog.at_level(logging.ERROR):
        # "records" does not propagate to the root logger caplog listens on
        logging.getLogger('records').addHandler(caplog.handler)
        try:
            query_cache.invalidate('record.add')
        finally:
            logging.getLogger('records').removeHandler(caplog.handler)

    query_cache.cached_query('record.all', RECORD_ALL, {'p': 1}, compute)
    assert compute.calls == 2
    assert any('could not broadcast' in r.getMessage() for r in caplog.records)


def test_invalidation_reaches_in_memory_channel_layer():
    layer = get_channel_layer()
    channel = async_to_sync(layer.new_channel)()
    async_to_sync(layer.group_add)(query_cache.UPDATES_GROUP, channel)
    try:
        query_cache.invalidate('record.delete', 'r5')
        message = async_to_sync(layer.receive)(channel)
    finally:
        async_to_sync(layer.group_discard)(query_cache.UPDATES_GROUP, channel)
    assert message['type'] == 'broadcast.invalidate'
    assert message['keys'] == [RECORD_ALL, 'record.specific:r5']
