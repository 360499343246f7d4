# walksense/config.py
import os
import binascii


def _env_flag(name, default=False):
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or binascii.hexlify(os.urandom(24)).decode()

    BASE_DIR = os.path.abspath(os.path.dirname(__file__))

    DATABASE_PATH = os.path.join(BASE_DIR, 'walksense.db')

    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL', f'sqlite:///{DATABASE_PATH}')

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    DEBUG = _env_flag('WALKSENSE_DEBUG')

    # The mobile client talks to <host>/api
    API_URL_PREFIX = os.environ.get('API_URL_PREFIX', '/api')

    OTP_TTL_MINUTES = int(os.environ.get('OTP_TTL_MINUTES', 2))
    PENDING_REGISTRATION_TTL_MINUTES = int(os.environ.get('PENDING_REGISTRATION_TTL_MINUTES', 10))

    # 'database' or 'memory'
    PENDING_STORE = os.environ.get('PENDING_STORE', 'database')

    EMAIL_CONFIG_PATH = os.environ.get('EMAIL_CONFIG_PATH', os.path.join(BASE_DIR, 'email_config.json'))
    MAIL_ASYNC = _env_flag('MAIL_ASYNC', default=True)

    SEED_ACCOUNTS_PATH = os.environ.get('SEED_ACCOUNTS_PATH', os.path.join(BASE_DIR, 'seed_accounts.json'))

    LOG_TIMEZONE = os.environ.get('LOG_TIMEZONE', 'Asia/Manila')


class TestingConfig(Config):
    TESTING = True
    SECRET_KEY = 'testing'
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    PENDING_STORE = 'memory'
    MAIL_ASYNC = False
    EMAIL_CONFIG_PATH = None
    SEED_ACCOUNTS_PATH = None
