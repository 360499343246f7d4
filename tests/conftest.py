# tests/conftest.py
from datetime import datetime, timedelta

import pytest
from flask import g

from walksense import timeutils
from walksense.app_factory import create_app
from walksense.init_db import db
from walksense.mail import MAILER_EXTENSION
from walksense.authentication import views as auth_views


class RecordingMailer:
    def __init__(self):
        self.sent = []

    def send(self, to, subject, html_content, to_name=None):
        self.sent.append({'to': to, 'subject': subject, 'html': html_content, 'name': to_name})
        return True


class FrozenClock:
    def __init__(self, start):
        self.now = start

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock(monkeypatch):
    frozen = FrozenClock(datetime(2026, 1, 31, 8, 0, 0))
    monkeypatch.setattr(timeutils, 'utcnow', frozen)
    return frozen


@pytest.fixture
def app(clock):
    app = create_app('walksense.config.TestingConfig')
    app.extensions[MAILER_EXTENSION] = RecordingMailer()

    @app.before_request
    def reset_login_state():
        # Requests share the fixture's app context, and with it ``g``
        g.pop('_login_user', None)

    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def mailer(app):
    return app.extensions[MAILER_EXTENSION]


@pytest.fixture
def otp_codes(monkeypatch):
    """Queue the codes the OTP generator hands out, in order."""
    codes = []
    monkeypatch.setattr(auth_views, 'generate_otp', lambda: codes.pop(0))
    return codes
