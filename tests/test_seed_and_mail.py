# tests/test_seed_and_mail.py
import json
import logging

from walksense.mail import BrevoMailer, MAILER_EXTENSION, send_email
from walksense.authentication.models import PwdProfile, User
from walksense.authentication.seed import create_seed_accounts, load_seed_accounts
from walksense.logging_config import LocalTimeFormatter
from tests.helpers import login_token

SEED = {
    'accounts': [{
        'guardian': {
            'firstname': 'Maria', 'lastname': 'Santos', 'middle_initial': 'R',
            'address': '123 Main Street, Davao City',
            'email': 'guardian@test.com', 'password': 'password123',
        },
        'pwd': {'firstname': 'John', 'lastname': 'Doe', 'middle_initial': 'A', 'email': 'pwd@test.com'},
    }],
}


def test_seed_accounts_are_created_once(app, client, tmp_path):
    seed_file = tmp_path / 'seed_accounts.json'
    seed_file.write_text(json.dumps(SEED))
    accounts = load_seed_accounts(str(seed_file))

    assert create_seed_accounts(accounts) == 1
    assert create_seed_accounts(accounts) == 0

    assert User.query.count() == 2
    pwd = PwdProfile.query.one()
    assert pwd.user.email == 'pwd@test.com'
    assert pwd.guardian.email == 'guardian@test.com'
    assert login_token(client, login_as='pwd')


def test_missing_seed_file(tmp_path):
    assert load_seed_accounts(str(tmp_path / 'absent.json')) == []
    assert load_seed_accounts(None) == []


def test_malformed_seed_entry(app):
    assert create_seed_accounts([{'guardian': {'email': 'guardian@test.com'}}]) == 0
    assert User.query.count() == 0


def test_seed_cli_command(app, tmp_path):
    seed_file = tmp_path / 'seed_accounts.json'
    seed_file.write_text(json.dumps(SEED))

    result = app.test_cli_runner().invoke(args=['seed-accounts', str(seed_file)])

    assert 'Created 1 account pair(s).' in result.output


def test_unconfigured_brevo_mailer_skips_delivery():
    assert BrevoMailer({}).send('guardian@test.com', 'Subject', '<p>Body</p>') is False


def test_send_email_never_raises(app):
    class BrokenMailer:
        def send(self, *args, **kwargs):
            raise RuntimeError('smtp down')

    app.extensions[MAILER_EXTENSION] = BrokenMailer()

    assert send_email('guardian@test.com', 'Subject', '<p>Body</p>') is None


def test_send_email_in_background(app):
    app.config['MAIL_ASYNC'] = True
    recorder = app.extensions[MAILER_EXTENSION]

    thread = send_email('guardian@test.com', 'Subject', '<p>Body</p>')
    thread.join(timeout=5)

    assert recorder.sent[-1]['to'] == 'guardian@test.com'


def test_log_timestamps_use_local_timezone():
    formatter = LocalTimeFormatter(fmt='%(asctime)s', datefmt='%Y-%m-%d %H:%M:%S %z',
                                   timezone='Asia/Manila')
    record = logging.LogRecord('walksense', logging.INFO, __file__, 1, 'message', None, None)
    record.created = 0

    assert formatter.format(record) == '1970-01-01 08:00:00 +0800'
