# tests/test_pending_store.py
from datetime import timedelta

import pytest

from walksense.authentication.models import PendingRegistration
from walksense.authentication.views import get_pending_store
from walksense.authentication.pending_store import (
    DatabasePendingStore, MemoryPendingStore, create_pending_store,
)


@pytest.fixture(params=['memory', 'database'])
def store(request, app):
    return create_pending_store(request.param)


def test_put_then_get(store):
    store.put('registration_abc', {'otp': '123456'}, timedelta(minutes=10))

    assert store.get('registration_abc') == {'otp': '123456'}


def test_missing_key(store):
    assert store.get('registration_missing') is None


def test_entry_expires(store, clock):
    store.put('registration_abc', {'otp': '123456'}, timedelta(minutes=10))
    clock.advance(minutes=9, seconds=59)
    assert store.get('registration_abc') is not None

    clock.advance(seconds=1)
    assert store.get('registration_abc') is None


def test_put_overwrites_and_resets_ttl(store, clock):
    store.put('registration_abc', {'otp': '111111'}, timedelta(minutes=10))
    clock.advance(minutes=8)
    store.put('registration_abc', {'otp': '222222'}, timedelta(minutes=10))
    clock.advance(minutes=8)

    assert store.get('registration_abc') == {'otp': '222222'}


def test_delete(store):
    store.put('registration_abc', {'otp': '123456'}, timedelta(minutes=10))
    store.delete('registration_abc')
    store.delete('registration_abc')

    assert store.get('registration_abc') is None


def test_returned_payload_is_a_copy(store):
    store.put('registration_abc', {'guardian': {'email': 'guardian@test.com'}}, timedelta(minutes=10))

    store.get('registration_abc')['guardian']['email'] = 'changed@test.com'

    assert store.get('registration_abc')['guardian']['email'] == 'guardian@test.com'


def test_database_store_drops_expired_rows(app, clock):
    store = DatabasePendingStore()
    store.put('registration_abc', {'otp': '123456'}, timedelta(minutes=10))
    clock.advance(minutes=11)

    assert store.get('registration_abc') is None
    assert PendingRegistration.query.count() == 0


def test_testing_config_uses_memory_store(app):
    assert isinstance(get_pending_store(), MemoryPendingStore)


def test_unknown_store_kind():
    with pytest.raises(ValueError):
        create_pending_store('redis')
