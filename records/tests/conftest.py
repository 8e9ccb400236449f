"""
Shared fixtures for the records tests.

Every test starts with an empty Django cache so cached query results
and throttle counters never leak between tests.
"""
from datetime import date

import pytest
from django.contrib.auth import get_user_model
from django.core.cache import cache
from rest_framework.test import APIClient

from records.models import Record, TreatmentEntry

User = get_user_model()


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def staff_user(db):
    return User.objects.create_user(username='staff1', password='Cl1nic-pass!', is_staff=True)


@pytest.fixture
def api_client(staff_user):
    client = APIClient()
    client.force_authenticate(user=staff_user)
    return client


@pytest.fixture
def record_payload():
    return {
        'name': 'Jane Doe',
        'status': 'single',
        'gender': 'female',
        'birthday': '1990-01-01',
        'telephone': '123',
        'address': 'Street 1',
        'occupation': 'Teacher',
        'complaint': 'Checkup',
    }


@pytest.fixture
def make_record(db):
    def _make(name='John Smith', **kw):
        fields = {
            'name': name,
            'address': 'Street 2',
            'telephone': '555-0101',
            'occupation': 'Engineer',
            'status': 'married',
            'gender': 'male',
            'complaint': 'Toothache',
            'birthday': date(1985, 6, 15),
        }
        fields.update(kw)
        return Record.objects.create(**fields)
    return _make


@pytest.fixture
def make_entry(db):
    def _make(record, **kw):
        fields = {
            'date': date(2024, 3, 1),
            'tooth': '11',
            'service': 'Oral prophylaxis',
            'fees': '800.00',
        }
        fields.update(kw)
        return TreatmentEntry.objects.create(record=record, **fields)
    return _make
