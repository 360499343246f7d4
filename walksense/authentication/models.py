# walksense/authentication/models.py
from flask_login import UserMixin
from walksense.init_db import db
from walksense.timeutils import utcnow

ROLE_GUARDIAN = 'guardian'
ROLE_PWD = 'pwd'


class User(UserMixin, db.Model):
    __tablename__ = 'users'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    email = db.Column(db.String(255), unique=True, nullable=False)
    # PWD accounts have no independent login
    password = db.Column(db.String(255), nullable=True)
    role = db.Column(db.Enum(ROLE_GUARDIAN, ROLE_PWD, name='user_role'), nullable=False)
    is_verified = db.Column(db.Boolean, default=False, nullable=False)
    email_verified_at = db.Column(db.DateTime, nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)
    updated_at = db.Column(db.DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_guardian(self):
        return self.role == ROLE_GUARDIAN

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'email': self.email,
            'role': self.role,
            'is_verified': self.is_verified,
            'email_verified_at': self.email_verified_at.isoformat() if self.email_verified_at else None,
        }


class GuardianProfile(db.Model):
    __tablename__ = 'guardians'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    user = db.relationship('User', backref=db.backref('guardian_profile', uselist=False, lazy=True))
    firstname = db.Column(db.String(50), nullable=False)
    lastname = db.Column(db.String(50), nullable=False)
    middle_initial = db.Column(db.String(10), nullable=True)
    address = db.Column(db.String(255), nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)


class PwdProfile(db.Model):
    __tablename__ = 'pwds'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), unique=True, nullable=False)
    user = db.relationship('User', foreign_keys=[user_id],
                           backref=db.backref('pwd_profile', uselist=False, lazy=True))
    # References the guardian's users.id, not guardians.id
    guardian_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    guardian = db.relationship('User', foreign_keys=[guardian_id],
                               backref=db.backref('dependents', lazy=True))
    firstname = db.Column(db.String(50), nullable=False)
    lastname = db.Column(db.String(50), nullable=False)
    middle_initial = db.Column(db.String(50), nullable=True)
    created_at = db.Column(db.DateTime, default=utcnow)

    @property
    def display_name(self):
        return f"{self.firstname} {self.lastname}"


class AccessToken(db.Model):
    __tablename__ = 'personal_access_tokens'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    user = db.relationship('User', backref=db.backref('tokens', lazy=True, cascade='all, delete-orphan'))
    name = db.Column(db.String(100), nullable=False)
    token_hash = db.Column(db.String(64), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=utcnow)
    last_used_at = db.Column(db.DateTime, nullable=True)


class PendingRegistration(db.Model):
    __tablename__ = 'pending_registrations'
    key = db.Column(db.String(64), primary_key=True)
    payload = db.Column(db.JSON, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False, index=True)
