# tests/helpers.py
from walksense import timeutils
from walksense.init_db import db
from walksense.authentication.models import User
from walksense.authentication.views import create_linked_accounts, hash_password


def registration_payload(email='guardian@test.com'):
    return {
        'guardian': {
            'firstname': 'Maria',
            'lastname': 'Santos',
            'middle_initial': 'R',
            'address': '123 Main Street, Davao City',
            'email': email,
            'password': 'password123',
            'password_confirmation': 'password123',
        },
        'pwd': {
            'firstname': 'John',
            'lastname': 'Doe',
            'middle_initial': 'A',
        },
    }


def make_guardian(email='guardian@test.com', password='password123', with_pwd=True,
                  pwd_name=('John', 'Doe')):
    """Create a verified guardian directly, optionally with a linked PWD."""
    guardian = {
        'firstname': 'Maria',
        'lastname': 'Santos',
        'address': '123 Main Street, Davao City',
        'email': email,
        'password_hash': hash_password(password),
    }
    if with_pwd:
        pwd = {'firstname': pwd_name[0], 'lastname': pwd_name[1]}
        guardian_user, pwd_user = create_linked_accounts(guardian, pwd, timeutils.utcnow())
        db.session.commit()
        return guardian_user, pwd_user

    guardian_user = User(name='Maria Santos', email=email, password=guardian['password_hash'],
                         role='guardian', is_verified=True, email_verified_at=timeutils.utcnow())
    db.session.add(guardian_user)
    db.session.commit()
    return guardian_user, None


def login_token(client, email='guardian@test.com', password='password123', login_as=None):
    body = {'email': email, 'password': password}
    if login_as:
        body['login_as'] = login_as
    resp = client.post('/api/login', json=body)
    assert resp.status_code == 200, resp.get_json()
    return resp.get_json()['token']


def auth_header(token):
    return {'Authorization': f'Bearer {token}'}
