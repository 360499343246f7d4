# tests/test_login.py
from walksense.authentication.models import AccessToken
from tests.helpers import auth_header, login_token, make_guardian


def test_guardian_login_issues_token(client):
    guardian, _ = make_guardian()

    resp = client.post('/api/login', json={'email': 'guardian@test.com', 'password': 'password123'})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body['success'] is True
    assert body['token']
    assert body['user'] == {'id': guardian.id, 'name': 'Maria Santos',
                            'email': 'guardian@test.com', 'role': 'guardian'}
    assert 'guardian' not in body


def test_token_is_stored_hashed(client):
    make_guardian()

    token = login_token(client)

    stored = AccessToken.query.one()
    assert stored.token_hash != token
    assert len(stored.token_hash) == 64


def test_wrong_password_is_rejected(client):
    make_guardian()

    resp = client.post('/api/login', json={'email': 'guardian@test.com', 'password': 'not-it'})

    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Invalid credentials'
    assert AccessToken.query.count() == 0


def test_login_email_is_case_insensitive(client):
    guardian, _ = make_guardian()

    resp = client.post('/api/login', json={'email': ' Guardian@Test.com', 'password': 'password123'})

    assert resp.status_code == 200
    assert resp.get_json()['user']['id'] == guardian.id


def test_unknown_email_is_rejected(client):
    resp = client.post('/api/login', json={'email': 'ghost@test.com', 'password': 'password123'})

    assert resp.status_code == 401


def test_login_as_pwd_scopes_token_to_dependent(client):
    guardian, pwd_user = make_guardian()

    resp = client.post('/api/login', json={'email': 'guardian@test.com', 'password': 'password123',
                                           'login_as': 'pwd'})

    assert resp.status_code == 200
    body = resp.get_json()
    assert body['message'] == 'Login successful as PWD'
    assert body['user']['id'] == pwd_user.id
    assert body['user']['role'] == 'pwd'
    assert body['guardian'] == {'id': guardian.id, 'name': 'Maria Santos', 'email': 'guardian@test.com'}

    me = client.get('/api/user', headers=auth_header(body['token']))
    assert me.get_json()['user']['id'] == pwd_user.id


def test_login_as_pwd_without_linked_pwd(client):
    make_guardian(with_pwd=False)

    resp = client.post('/api/login', json={'email': 'guardian@test.com', 'password': 'password123',
                                           'login_as': 'pwd'})

    assert resp.status_code == 404
    assert resp.get_json()['message'] == 'No PWD account found for this guardian'
    assert AccessToken.query.count() == 0


def test_login_as_guardian_explicitly(client):
    guardian, _ = make_guardian()

    token = login_token(client, login_as='guardian')

    me = client.get('/api/user', headers=auth_header(token))
    assert me.get_json()['user']['id'] == guardian.id


def test_unknown_login_as_value(client):
    make_guardian()

    resp = client.post('/api/login', json={'email': 'guardian@test.com', 'password': 'password123',
                                           'login_as': 'admin'})

    assert resp.status_code == 422
    assert 'login_as' in resp.get_json()['errors']


def test_missing_fields(client):
    resp = client.post('/api/login', json={})

    assert resp.status_code == 422
    errors = resp.get_json()['errors']
    assert 'email' in errors
    assert 'password' in errors


def test_logout_revokes_only_presented_token(client):
    make_guardian()
    first = login_token(client)
    second = login_token(client)

    resp = client.post('/api/logout', headers=auth_header(first))

    assert resp.status_code == 200
    assert client.get('/api/user', headers=auth_header(first)).status_code == 401
    assert client.get('/api/user', headers=auth_header(second)).status_code == 200


def test_logout_is_idempotent(client):
    make_guardian()
    token = login_token(client)

    assert client.post('/api/logout', headers=auth_header(token)).status_code == 200
    assert client.post('/api/logout', headers=auth_header(token)).status_code == 200
    assert AccessToken.query.count() == 0


def test_logout_requires_bearer_token(client):
    resp = client.post('/api/logout')

    assert resp.status_code == 401


def test_protected_route_without_token(client):
    resp = client.get('/api/user')

    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Unauthenticated.'
