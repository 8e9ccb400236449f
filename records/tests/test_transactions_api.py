import pytest
from rest_framework import status

from records.models import TreatmentEntry

pytestmark = pytest.mark.django_db


@pytest.fixture
def entry_payload():
    return {'date': '2024-02-14', 'tooth': '16', 'service': 'Composite filling', 'fees': '1500.00'}


def specific(client, record_id):
    resp = client.get('/api/record/specific', {'id': record_id})
    assert resp.status_code == status.HTTP_200_OK
    return resp.data['data']


def test_add_entry_shows_up_in_cached_specific(api_client, make_record, entry_payload):
    record = make_record()
    assert specific(api_client, record.id)['entries'] == []

    resp = api_client.post('/api/transaction/add', {**entry_payload, 'recordId': record.id}, format='json')
    assert resp.status_code == status.HTTP_201_CREATED
    entry = resp.data['data']
    assert entry['recordId'] == record.id
    assert entry['fees'] == '1500.00'

    entries = specific(api_client, record.id)['entries']
    assert [e['id'] for e in entries] == [entry['id']]
    assert entries[0]['service'] == 'Composite filling'


@pytest.mark.parametrize('fees', ['0', '0.00', '-5', 'free', ''])
def test_add_entry_rejects_non_positive_fees(api_client, make_record, entry_payload, fees):
    record = make_record()
    resp = api_client.post('/api/transaction/add', {**entry_payload, 'recordId': record.id, 'fees': fees},
                           format='json')
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert 'fees' in resp.data['error']['fields']
    assert TreatmentEntry.objects.count() == 0


def test_add_entry_accepts_smallest_fee(api_client, make_record, entry_payload):
    record = make_record()
    resp = api_client.post('/api/transaction/add', {**entry_payload, 'recordId': record.id, 'fees': '0.01'},
                           format='json')
    assert resp.status_code == status.HTTP_201_CREATED
    assert resp.data['data']['fees'] == '0.01'


@pytest.mark.parametrize('field', ['date', 'tooth', 'service', 'fees', 'recordId'])
def test_add_entry_requires_every_field(api_client, make_record, entry_payload, field):
    record = make_record()
    payload = {**entry_payload, 'recordId': record.id}
    payload.pop(field)
    resp = api_client.post('/api/transaction/add', payload, format='json')
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    assert field in resp.data['error']['fields']


def test_add_entry_for_unknown_record_is_not_found(api_client, entry_payload):
    resp = api_client.post('/api/transaction/add', {**entry_payload, 'recordId': 'nobody'}, format='json')
    assert resp.status_code == status.HTTP_404_NOT_FOUND
    assert resp.data['error']['code'] == 'not_found'


def test_edit_entry_replaces_fields_but_keeps_owner(api_client, make_record, make_entry, entry_payload):
    owner = make_record(name='Owner')
    other = make_record(name='Other')
    entry = make_entry(owner)
    assert specific(api_client, owner.id)['entries'][0]['tooth'] == '11'

    resp = api_client.post('/api/transaction/edit',
                           {**entry_payload, 'id': entry.id, 'recordId': other.id}, format='json')
    assert resp.status_code == status.HTTP_200_OK
    assert resp.data['data']['recordId'] == owner.id

    entry.refresh_from_db()
    assert entry.record_id == owner.id
    assert entry.tooth == '16'
    assert str(entry.fees) == '1500.00'
    assert specific(api_client, owner.id)['entries'][0]['tooth'] == '16'
    assert specific(api_client, other.id)['entries'] == []


def test_edit_entry_unknown_id_is_not_found(api_client, entry_payload):
    resp = api_client.post('/api/transaction/edit', {**entry_payload, 'id': 'missing'}, format='json')
    assert resp.status_code == status.HTTP_404_NOT_FOUND


def test_edit_entry_rejects_zero_fees(api_client, make_record, make_entry, entry_payload):
    entry = make_entry(make_record())
    resp = api_client.post('/api/transaction/edit', {**entry_payload, 'id': entry.id, 'fees': '0'}, format='json')
    assert resp.status_code == status.HTTP_400_BAD_REQUEST
    entry.refresh_from_db()
    assert str(entry.fees) == '800.00'


def test_delete_entry_then_record(api_client, make_record, make_entry):
    record = make_record()
    entry = make_entry(record)
    assert len(specific(api_client, record.id)['entries']) == 1

    resp = api_client.post('/api/transaction/delete', {'id': entry.id}, format='json')
    assert resp.status_code == status.HTTP_200_OK
    assert resp.data['data']['id'] == entry.id
    assert resp.data['data']['recordId'] == record.id
    assert specific(api_client, record.id)['entries'] == []

    again = api_client.post('/api/transaction/delete', {'id': entry.id}, format='json')
    assert again.status_code == status.HTTP_404_NOT_FOUND

    resp = api_client.post('/api/record/delete', {'id': record.id}, format='json')
    assert resp.status_code == status.HTTP_200_OK


def test_entry_mutations_leave_listing_cache_alone(api_client, make_record, entry_payload):
    record = make_record(name='Listed')
    first = api_client.get('/api/record/all', {'pageNumber': 1, 'sortType': 'asc'}).data['data']

    # a record written directly only shows up once record.all is invalidated
    make_record(name='Unlisted')
    api_client.post('/api/transaction/add', {**entry_payload, 'recordId': record.id}, format='json')

    again = api_client.get('/api/record/all', {'pageNumber': 1, 'sortType': 'asc'}).data['data']
    assert again == first


def test_long_unknown_ids_are_not_found(api_client, entry_payload):
    long_id = 'y' * 40
    resp = api_client.post('/api/transaction/add', {**entry_payload, 'recordId': long_id}, format='json')
    assert resp.status_code == status.HTTP_404_NOT_FOUND
    resp = api_client.post('/api/transaction/edit', {**entry_payload, 'id': long_id}, format='json')
    assert resp.status_code == status.HTTP_404_NOT_FOUND
    resp = api_client.post('/api/transaction/delete', {'id': long_id}, format='json')
    assert resp.status_code == status.HTTP_404_NOT_FOUND
