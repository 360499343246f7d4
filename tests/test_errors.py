# tests/test_errors.py
import pytest


@pytest.fixture
def exploding_app(app):
    @app.route('/api/explode')
    def explode():
        raise RuntimeError('sensor bus offline')

    return app


def test_unexpected_error_is_masked(exploding_app):
    resp = exploding_app.test_client().get('/api/explode')

    assert resp.status_code == 500
    assert resp.get_json() == {
        'success': False,
        'message': 'An unexpected error occurred.',
        'error': 'An error occurred',
    }


def test_unexpected_error_detail_in_debug(exploding_app):
    exploding_app.debug = True

    resp = exploding_app.test_client().get('/api/explode')

    assert resp.status_code == 500
    assert resp.get_json()['error'] == 'sensor bus offline'


def test_unknown_route_is_json(client):
    resp = client.get('/api/nowhere')

    assert resp.status_code == 404
    assert resp.get_json()['success'] is False
