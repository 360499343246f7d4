# walksense/authentication/views.py
import hmac
import time
import secrets
import hashlib
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Optional
from flask import current_app
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from werkzeug.security import generate_password_hash, check_password_hash
from walksense import timeutils
from walksense.init_db import db
from walksense.errors import (
    AlreadyVerified, DuplicateEmail, Expired, InvalidCredentials, Mismatch,
    NoLinkedPwd, NotFound, PersistenceFailure, RoleNotAllowed, ValidationFailed,
)
from walksense.authentication.models import (
    ROLE_GUARDIAN, ROLE_PWD, AccessToken, GuardianProfile, PwdProfile, User,
)
from walksense.authentication.pending_store import create_pending_store
from walksense.logging_config import setup_logging
from walksense.mail import send_email
from walksense.signals import user_registered
from walksense.validation import FieldErrors, is_valid_email, require_string

logger = setup_logging()

PENDING_STORE_EXTENSION = 'walksense_pending_store'
PWD_EMAIL_DOMAIN = 'walksense.local'
TOKEN_NAME = 'mobile-token'
PASSWORD_MIN_LENGTH = 8
LOGIN_ROLES = (ROLE_GUARDIAN, ROLE_PWD)


def get_pending_store(app=None):
    app = app or current_app
    store = app.extensions.get(PENDING_STORE_EXTENSION)
    if store is None:
        store = create_pending_store(app.config.get('PENDING_STORE', 'database'))
        app.extensions[PENDING_STORE_EXTENSION] = store
    return store


def registration_cache_key(email):
    return 'registration_' + hashlib.md5(email.encode('utf-8')).hexdigest()


def hash_password(password):
    return generate_password_hash(password, method='pbkdf2:sha256')


# Function to generate a 6-digit OTP, leading zeros kept
def generate_otp():
    return f"{secrets.randbelow(1000000):06d}"


def _otp_ttl():
    return timedelta(minutes=current_app.config.get('OTP_TTL_MINUTES', 2))


def _pending_ttl():
    return timedelta(minutes=current_app.config.get('PENDING_REGISTRATION_TTL_MINUTES', 10))


def validate_registration(data):
    """Validate a register request body, returning the guardian and PWD field-sets."""
    errors = FieldErrors()
    if not isinstance(data, dict):
        raise ValidationFailed(errors={'guardian': ['The guardian field is required.'],
                                       'pwd': ['The pwd field is required.']})

    guardian_data = data.get('guardian')
    pwd_data = data.get('pwd')
    if not isinstance(guardian_data, dict):
        errors.add('guardian', 'The guardian field is required.')
        guardian_data = {}
    if not isinstance(pwd_data, dict):
        errors.add('pwd', 'The pwd field is required.')
        pwd_data = {}

    guardian = {
        'firstname': require_string(errors, guardian_data, 'guardian.firstname', 'guardian firstname', 50),
        'lastname': require_string(errors, guardian_data, 'guardian.lastname', 'guardian lastname', 50),
        'middle_initial': require_string(errors, guardian_data, 'guardian.middle_initial',
                                         'guardian middle initial', 10, required=False),
        'address': require_string(errors, guardian_data, 'guardian.address', 'guardian address', 255),
    }

    email = require_string(errors, guardian_data, 'guardian.email', 'guardian email', 255)
    if email is not None:
        if email != email.lower():
            errors.add('guardian.email', 'The guardian email field must be lowercase.')
        elif not is_valid_email(email):
            errors.add('guardian.email', 'The guardian email field must be a valid email address.')
    guardian['email'] = email

    password = guardian_data.get('password')
    if not password or not isinstance(password, str):
        errors.add('guardian.password', 'The guardian password field is required.')
    elif len(password) < PASSWORD_MIN_LENGTH:
        errors.add('guardian.password',
                   f'The guardian password field must be at least {PASSWORD_MIN_LENGTH} characters.')
    elif guardian_data.get('password_confirmation') != password:
        errors.add('guardian.password', 'The guardian password field confirmation does not match.')

    pwd = {
        'firstname': require_string(errors, pwd_data, 'pwd.firstname', 'pwd firstname', 50),
        'lastname': require_string(errors, pwd_data, 'pwd.lastname', 'pwd lastname', 50),
        'middle_initial': require_string(errors, pwd_data, 'pwd.middle_initial',
                                         'pwd middle initial', 50, required=False),
    }

    if errors:
        logger.warning(f"Registration rejected with invalid fields: {sorted(errors)}")
        raise ValidationFailed(errors=dict(errors))

    guardian['password_hash'] = hash_password(password)
    return guardian, pwd


def send_otp_email(email, name, otp):
    minutes = current_app.config.get('OTP_TTL_MINUTES', 2)
    html_content = (
        f"Hello {name},<br>"
        f"Thank you for registering with WalkSense! Please use the verification code below "
        f"to complete your registration:<br><br><strong>{otp}</strong><br><br>"
        f"This code will expire in <strong>{minutes} minutes</strong>.<br>"
        f"If you didn't request this code, please ignore this email."
    )
    send_email(email, 'Your WalkSense verification code', html_content, to_name=name)


def issue_otp(pending):
    """Attach a fresh OTP to ``pending``, stage it and email the code."""
    email = pending['guardian']['email']
    otp = generate_otp()
    pending['otp'] = otp
    pending['otp_expires_at'] = (timeutils.utcnow() + _otp_ttl()).isoformat()

    key = registration_cache_key(email)
    get_pending_store().put(key, pending, _pending_ttl())
    logger.info(f"Verification code issued for pending registration {key}")

    guardian = pending['guardian']
    send_otp_email(email, f"{guardian['firstname']} {guardian['lastname']}", otp)
    return otp


def start_registration(data):
    guardian, pwd = validate_registration(data)

    if User.query.filter_by(email=guardian['email']).first():
        logger.warning(f"Registration attempt with existing email: {guardian['email']}")
        raise DuplicateEmail(errors={'guardian.email': ['The guardian email has already been taken.']})

    issue_otp({'guardian': guardian, 'pwd': pwd})
    return guardian['email']


def _validate_email_field(data):
    email = data.get('email') if isinstance(data, dict) else None
    if isinstance(email, str):
        email = email.strip().lower()
    if not email:
        raise ValidationFailed(errors={'email': ['The email field is required.']})
    if not is_valid_email(email):
        raise ValidationFailed(errors={'email': ['The email field must be a valid email address.']})
    return email


def _load_pending(email):
    key = registration_cache_key(email)
    pending = get_pending_store().get(key)
    if not pending or pending['guardian']['email'] != email:
        logger.warning(f"No pending registration found for {key}")
        raise NotFound('No pending registration found. Please register again.')
    return key, pending


def verify_otp(data):
    """Check a submitted OTP and, if it is valid, create the accounts."""
    email = _validate_email_field(data)
    otp = data.get('otp')
    if not isinstance(otp, str) or len(otp) != 6:
        raise ValidationFailed(errors={'otp': ['The otp field must be 6 characters.']})

    key, pending = _load_pending(email)
    logger.info(f"Attempting OTP verification for {key}")

    # A wrong code is reported before an expired one
    if not hmac.compare_digest(pending['otp'].encode('utf-8'), otp.encode('utf-8')):
        logger.warning(f"Invalid verification code submitted for {key}")
        raise Mismatch()

    if timeutils.utcnow() > datetime.fromisoformat(pending['otp_expires_at']):
        logger.warning(f"Expired verification code submitted for {key}")
        raise Expired()

    guardian_user = commit_registration(pending)

    try:
        get_pending_store().delete(key)
    except PersistenceFailure as e:
        logger.error(f"Accounts created but pending registration {key} was not discarded: {e.detail}")

    user_registered.send(current_app._get_current_object(), user=guardian_user)
    return guardian_user


def resend_otp(data):
    email = _validate_email_field(data)

    existing = User.query.filter_by(email=email).first()
    if existing is not None and existing.is_verified:
        logger.warning(f"OTP resend requested for already verified account: {email}")
        raise AlreadyVerified()

    key, pending = _load_pending(email)
    logger.info(f"Resending verification code for {key}")
    issue_otp(pending)


def _pwd_placeholder_email(guardian_user_id):
    return f"pwd_{guardian_user_id}_{int(time.time())}@{PWD_EMAIL_DOMAIN}"


def create_linked_accounts(guardian, pwd, verified_at):
    """Add guardian and PWD users plus their profiles to the current session."""
    guardian_user = User(
        name=f"{guardian['firstname']} {guardian['lastname']}",
        email=guardian['email'],
        password=guardian['password_hash'],
        role=ROLE_GUARDIAN,
        is_verified=True,
        email_verified_at=verified_at,
    )
    db.session.add(guardian_user)
    db.session.flush()

    db.session.add(GuardianProfile(
        user_id=guardian_user.id,
        firstname=guardian['firstname'],
        lastname=guardian['lastname'],
        middle_initial=guardian.get('middle_initial'),
        address=guardian['address'],
    ))

    pwd_user = User(
        name=f"{pwd['firstname']} {pwd['lastname']}",
        email=pwd.get('email') or _pwd_placeholder_email(guardian_user.id),
        password=None,
        role=ROLE_PWD,
        is_verified=True,
        email_verified_at=verified_at,
    )
    db.session.add(pwd_user)
    db.session.flush()

    db.session.add(PwdProfile(
        user_id=pwd_user.id,
        guardian_id=guardian_user.id,
        firstname=pwd['firstname'],
        lastname=pwd['lastname'],
        middle_initial=pwd.get('middle_initial'),
    ))
    return guardian_user, pwd_user


def commit_registration(pending):
    """Create all four rows of a verified registration, or none of them."""
    try:
        guardian_user, pwd_user = create_linked_accounts(
            pending['guardian'], pending['pwd'], timeutils.utcnow())
        db.session.commit()
    except IntegrityError as e:
        db.session.rollback()
        logger.error(f"Account creation failed after OTP verification: {e}")
        raise DuplicateEmail(detail=str(e))
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Account creation failed after OTP verification: {e}")
        raise PersistenceFailure('Failed to create account. Please try again.', detail=str(e))

    logger.info(f"Guardian {guardian_user.email} registered with PWD user {pwd_user.id}")
    return guardian_user


@dataclass(frozen=True)
class ScopeSelf:
    user: User


@dataclass(frozen=True)
class ScopeDelegate:
    """A guardian operating the app as their dependent."""
    pwd_user: User
    guardian: User


def authenticate(email, password, login_as: Optional[str] = None):
    """Resolve credentials to the identity a new token should be scoped to."""
    errors = FieldErrors()
    if isinstance(email, str):
        # Stored emails are lowercase
        email = email.strip().lower()
    if not email:
        errors.add('email', 'The email field is required.')
    elif not is_valid_email(email):
        errors.add('email', 'The email field must be a valid email address.')
    if not password or not isinstance(password, str):
        errors.add('password', 'The password field is required.')
    if login_as is not None and login_as not in LOGIN_ROLES:
        errors.add('login_as', 'The selected login as is invalid.')
    if errors:
        raise ValidationFailed(errors=dict(errors))

    user = User.query.filter_by(email=email).first()
    if (not user or not user.is_verified or not user.password
            or not check_password_hash(user.password, password)):
        logger.warning(f"Failed login attempt for email: {email}")
        raise InvalidCredentials()

    if user.role == ROLE_GUARDIAN and login_as == ROLE_PWD:
        pwd = (PwdProfile.query.filter_by(guardian_id=user.id)
               .order_by(PwdProfile.id).first())
        if pwd is None or pwd.user is None:
            logger.warning(f"Guardian {email} tried to log in as PWD without a linked PWD")
            raise NoLinkedPwd()
        return ScopeDelegate(pwd_user=pwd.user, guardian=user)

    if user.role == ROLE_GUARDIAN:
        return ScopeSelf(user=user)

    logger.warning(f"Login refused for {email}: role {user.role} as {login_as}")
    raise RoleNotAllowed()


def _hash_token(plain_token):
    return hashlib.sha256(plain_token.encode('utf-8')).hexdigest()


def issue_token(user, name=TOKEN_NAME):
    plain_token = secrets.token_urlsafe(40)
    try:
        db.session.add(AccessToken(user_id=user.id, name=name, token_hash=_hash_token(plain_token)))
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to issue token for user {user.id}: {e}")
        raise PersistenceFailure(detail=str(e))
    return plain_token


def login(email, password, login_as=None):
    scope = authenticate(email, password, login_as)
    if isinstance(scope, ScopeDelegate):
        token = issue_token(scope.pwd_user)
        logger.info(f"Guardian {scope.guardian.email} logged in as PWD user {scope.pwd_user.id}")
    else:
        token = issue_token(scope.user)
        logger.info(f"User {scope.user.email} logged in successfully.")
    return scope, token


def revoke_token(plain_token):
    """Delete the stored token; unknown or already revoked tokens are ignored."""
    if not plain_token:
        return False
    try:
        deleted = AccessToken.query.filter_by(token_hash=_hash_token(plain_token)).delete()
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to revoke token: {e}")
        raise PersistenceFailure(detail=str(e))
    return bool(deleted)


def bearer_token(request):
    header = request.headers.get('Authorization', '')
    scheme, _, token = header.partition(' ')
    if scheme.lower() != 'bearer' or not token.strip():
        return None
    return token.strip()


def load_user_from_request(request):
    plain_token = bearer_token(request)
    if not plain_token:
        return None

    access_token = AccessToken.query.filter_by(token_hash=_hash_token(plain_token)).first()
    if access_token is None:
        return None

    access_token.last_used_at = timeutils.utcnow()
    try:
        db.session.commit()
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Failed to record token use: {e}")

    return access_token.user
