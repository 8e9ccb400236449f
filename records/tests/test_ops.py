"""
Operational surface: health check, metrics, logging, websocket updates
and the management commands.
"""
import json
import logging
from io import StringIO

import pytest
from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from channels.testing import WebsocketCommunicator
from django.contrib.auth import authenticate
from django.contrib.auth.models import AnonymousUser
from django.core.management import call_command
from django.test import RequestFactory
from rest_framework.test import APIClient

from records.models import Record
from records.observability import RedactingJSONFormatter
from records.realtime.consumers import UpdatesConsumer

pytestmark = pytest.mark.django_db


class Collect(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


def test_healthz_reports_db_and_cache():
    r = APIClient().get('/healthz')
    assert r.status_code == 200
    assert r.json() == {'ok': True, 'db': True, 'cache': True}


def test_metrics_export_query_cache_counters(api_client):
    api_client.get('/api/record/all', {'pageNumber': 1, 'sortType': 'asc'})
    r = APIClient().get('/metrics')
    assert r.status_code == 200
    assert b'clinic_query_cache_requests_total' in r.content


def test_formatter_redacts_patient_fields():
    record = logging.makeLogRecord({
        'name': 'records.test',
        'levelname': 'INFO',
        'msg': 'record %s saved',
        'args': ('abc',),
        'telephone': '0917-555-0101',
        'record_id': 'abc',
        'payload': {'complaint': 'Toothache', 'tooth': '11'},
    })
    line = json.loads(RedactingJSONFormatter().format(record))
    assert line['message'] == 'record abc saved'
    assert line['telephone'] == '[REDACTED]'
    assert line['record_id'] == 'abc'
    assert line['payload'] == {'complaint': '[REDACTED]', 'tooth': '11'}


def test_request_log_has_procedure_but_not_search_term(api_client):
    handler = Collect()
    log = logging.getLogger('records.requests')
    log.addHandler(handler)
    try:
        api_client.get('/api/record/all', {'pageNumber': 1, 'sortType': 'asc', 'searchTerm': 'Jane'})
    finally:
        log.removeHandler(handler)

    [entry] = handler.records
    assert entry.procedure == 'record.all'
    assert entry.status == 200
    assert 'Jane' not in entry.getMessage()


def _updates_app(user):
    app = UpdatesConsumer.as_asgi()

    async def with_user(scope, receive, send):
        return await app({**scope, 'user': user}, receive, send)
    return with_user


def test_updates_socket_relays_invalidations(staff_user):
    async def scenario():
        communicator = WebsocketCommunicator(_updates_app(staff_user), '/ws/updates/')
        connected, _ = await communicator.connect()
        assert connected
        welcome = await communicator.receive_json_from()
        await get_channel_layer().group_send('updates', {
            'type': 'broadcast.invalidate',
            'mutation': 'record.add',
            'keys': ['record.all'],
            'ts': '2024-01-01T00:00:00Z',
        })
        event = await communicator.receive_json_from()
        await communicator.disconnect()
        return welcome, event

    welcome, event = async_to_sync(scenario)()
    assert welcome['type'] == 'welcome'
    assert event['mutation'] == 'record.add'
    assert event['keys'] == ['record.all']


def test_updates_socket_refuses_anonymous():
    async def scenario():
        communicator = WebsocketCommunicator(_updates_app(AnonymousUser()), '/ws/updates/')
        connected, _ = await communicator.connect()
        return connected

    assert async_to_sync(scenario)() is False


def test_populate_data_creates_records_and_refreshes_listing(api_client):
    params = {'pageNumber': 1, 'sortType': 'asc'}
    assert api_client.get('/api/record/all', params).data['data']['pageCount'] == 0

    out = StringIO()
    call_command('populate_data', records=25, seed=7, stdout=out)
    assert Record.objects.count() == 25
    assert 'Created 25 records' in out.getvalue()
    assert api_client.get('/api/record/all', params).data['data']['pageCount'] == 2


def test_refresh_caches_warms_first_page(api_client, make_record):
    make_record(name='Before')
    call_command('refresh_caches', stdout=StringIO())

    # not invalidated, so the warmed page is served
    make_record(name='After')
    page = api_client.get('/api/record/all', {'pageNumber': 1, 'sortType': 'asc'}).data['data']
    assert [r['name'] for r in page['records']] == ['Before']

    desc = api_client.get('/api/record/all', {'pageNumber': 1, 'sortType': 'desc'}).data['data']
    assert [r['name'] for r in desc['records']] == ['Before']


def test_ensure_test_users_is_idempotent():
    call_command('ensure_test_users', password='first-pass-1', stdout=StringIO())
    call_command('ensure_test_users', password='second-pass-2', stdout=StringIO())
    staff = authenticate(username='staff1', password='second-pass-2')
    admin = authenticate(username='admin', password='second-pass-2')
    assert staff is not None and staff.is_staff and not staff.is_superuser
    assert admin is not None and admin.is_superuser


def test_formatter_logs_request_path_without_query_string():
    request = RequestFactory().get('/api/record/all', {'pageNumber': 1, 'searchTerm': 'Jane Doe'})
    record = logging.makeLogRecord({
        'name': 'django.request',
        'levelname': 'ERROR',
        'msg': 'Internal Server Error: %s',
        'args': (request.path,),
        'status_code': 500,
        'request': request,
    })
    output = RedactingJSONFormatter().format(record)
    line = json.loads(output)
    assert line['request'] == 'GET /api/record/all'
    assert line['status_code'] == 500
    assert 'Jane' not in output
