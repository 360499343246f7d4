# walksense/location/views.py
from datetime import timedelta
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from walksense import timeutils
from walksense.init_db import db
from walksense.errors import NotFound, PersistenceFailure, Unauthorized, ValidationFailed
from walksense.authentication.models import PwdProfile
from walksense.location.models import CurrentLocation, Location
from walksense.logging_config import setup_logging
from walksense.validation import FieldErrors, number_field

logger = setup_logging()

DEFAULT_HISTORY_HOURS = 24
MAX_HISTORY_HOURS = 24 * 365


def validate_sample(data):
    errors = FieldErrors()
    if not isinstance(data, dict):
        data = {}

    sample = {
        'latitude': number_field(errors, data, 'latitude', required=True, minimum=-90, maximum=90),
        'longitude': number_field(errors, data, 'longitude', required=True, minimum=-180, maximum=180),
        'accuracy': number_field(errors, data, 'accuracy', minimum=0),
        'altitude': number_field(errors, data, 'altitude'),
        'speed': number_field(errors, data, 'speed', minimum=0),
        'heading': number_field(errors, data, 'heading', minimum=0, maximum=360),
    }

    battery_level = number_field(errors, data, 'battery_level', minimum=0, maximum=100)
    if battery_level is not None:
        if battery_level.is_integer():
            battery_level = int(battery_level)
        else:
            errors.add('battery_level', 'The battery_level field must be an integer.')
    sample['battery_level'] = battery_level

    if errors:
        logger.warning(f"Location sample rejected: {sorted(errors)}")
        raise ValidationFailed(errors=dict(errors))
    return sample


def _current_snapshot(user_id):
    return CurrentLocation.query.filter_by(user_id=user_id).first()


def _write_sample(user_id, sample, now):
    location = Location(user_id=user_id, recorded_at=now, **sample)
    db.session.add(location)

    # No ordering guard: whichever sample lands last becomes the snapshot
    current = _current_snapshot(user_id)
    if current is None:
        current = CurrentLocation(user_id=user_id)
        db.session.add(current)
    current.latitude = sample['latitude']
    current.longitude = sample['longitude']
    current.accuracy = sample['accuracy']
    current.battery_level = sample['battery_level']
    current.last_updated = now

    db.session.commit()
    return location


def record_sample(user_id, data):
    """Append a location sample and move the user's snapshot to it.

    Two first samples racing for the same user can both try to insert the
    snapshot row; the loser rolls back and writes again against the row the
    winner created.
    """
    sample = validate_sample(data)
    now = timeutils.utcnow()

    try:
        try:
            location = _write_sample(user_id, sample, now)
        except IntegrityError as e:
            db.session.rollback()
            logger.info(f"Snapshot insert for user {user_id} lost a race, retrying: {e.orig}")
            location = _write_sample(user_id, sample, now)
    except SQLAlchemyError as e:
        db.session.rollback()
        logger.error(f"Location update failed: {e}")
        raise PersistenceFailure('Failed to update location', detail=str(e))

    return location


def linked_pwd(guardian_id, pwd_user_id):
    pwd = PwdProfile.query.filter_by(user_id=pwd_user_id, guardian_id=guardian_id).first()
    if pwd is None:
        logger.warning(f"Guardian {guardian_id} denied access to PWD user {pwd_user_id}")
        raise Unauthorized()
    return pwd


def get_current_location(guardian_id, pwd_user_id):
    pwd = linked_pwd(guardian_id, pwd_user_id)

    current = CurrentLocation.query.filter_by(user_id=pwd_user_id).first()
    if current is None:
        raise NotFound('No location data available')
    return current, pwd


def parse_history_hours(value):
    if value is None or value == '':
        return DEFAULT_HISTORY_HOURS
    try:
        hours = float(value)
    except (TypeError, ValueError):
        hours = None
    if hours is None or not 0 < hours <= MAX_HISTORY_HOURS:
        raise ValidationFailed(errors={
            'hours': [f'The hours field must be a positive number no greater than {MAX_HISTORY_HOURS}.'],
        })
    return hours


def get_history(guardian_id, pwd_user_id, hours=DEFAULT_HISTORY_HOURS):
    pwd = linked_pwd(guardian_id, pwd_user_id)

    since = timeutils.utcnow() - timedelta(hours=hours)
    return (Location.query
            .filter(Location.user_id == pwd.user_id, Location.recorded_at >= since)
            .order_by(Location.recorded_at.desc(), Location.id.desc())
            .all())


def get_all_linked_locations(guardian_id):
    pwds = PwdProfile.query.filter_by(guardian_id=guardian_id).order_by(PwdProfile.id).all()

    pwd_locations = []
    for pwd in pwds:
        current = CurrentLocation.query.filter_by(user_id=pwd.user_id).first()
        pwd_locations.append({
            'pwd_id': pwd.user_id,
            'pwd_name': pwd.display_name,
            'location': current.to_dict() if current else None,
        })
    return pwd_locations
