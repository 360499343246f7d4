# walksense/location/models.py
from walksense.init_db import db
from walksense.timeutils import utcnow


def _isoformat(value):
    return value.isoformat() if value else None


class Location(db.Model):
    __tablename__ = 'locations'
    __table_args__ = (db.Index('ix_locations_user_recorded', 'user_id', 'recorded_at'),)

    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False)
    user = db.relationship('User', backref=db.backref('locations', lazy=True))
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    accuracy = db.Column(db.Float, nullable=True)
    altitude = db.Column(db.Float, nullable=True)
    speed = db.Column(db.Float, nullable=True)
    heading = db.Column(db.Float, nullable=True)
    battery_level = db.Column(db.Integer, nullable=True)
    recorded_at = db.Column(db.DateTime, nullable=False, default=utcnow)
    created_at = db.Column(db.DateTime, default=utcnow)

    def to_dict(self):
        return {
            'id': self.id,
            'user_id': self.user_id,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'accuracy': self.accuracy,
            'altitude': self.altitude,
            'speed': self.speed,
            'heading': self.heading,
            'battery_level': self.battery_level,
            'recorded_at': _isoformat(self.recorded_at),
        }


class CurrentLocation(db.Model):
    __tablename__ = 'current_locations'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    user = db.relationship('User', backref=db.backref('current_location', uselist=False, lazy=True))
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    accuracy = db.Column(db.Float, nullable=True)
    battery_level = db.Column(db.Integer, nullable=True)
    last_updated = db.Column(db.DateTime, nullable=False)

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'latitude': self.latitude,
            'longitude': self.longitude,
            'accuracy': self.accuracy,
            'battery_level': self.battery_level,
            'last_updated': _isoformat(self.last_updated),
        }
