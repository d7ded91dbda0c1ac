"""User model definition.
This module defines the User ORM model and any user-related helper methods.
The password hash is kept in its own table (see ``models.password``).
"""
from datetime import datetime

from extensions import db, bcrypt
from .password import Password

class User(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(120), unique=True, nullable=False, index=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Profile information
    name = db.Column(db.String(80))
    surname = db.Column(db.String(80))
    avatar_url = db.Column(db.String(512))
    favorite_coffee_preparation = db.Column(db.String(80))

    # Email verification gates login
    is_verified = db.Column(db.Boolean, default=False, nullable=False)

    # Relationships
    password = db.relationship('Password', backref='user', uselist=False, cascade='all, delete-orphan')
    coffees = db.relationship('Coffee', backref='user', lazy='dynamic', cascade='all, delete-orphan')
    password_reset = db.relationship('PasswordReset', backref='user', uselist=False, cascade='all, delete-orphan')
    email_confirmation = db.relationship('EmailConfirmation', backref='user', uselist=False, cascade='all, delete-orphan')

    def set_password(self, password):
        password_hash = bcrypt.generate_password_hash(password).decode('utf-8')
        if self.password is None:
            self.password = Password(hash=password_hash)
        else:
            self.password.hash = password_hash

    def check_password(self, password):
        if self.password is None:
            return False
        return bcrypt.check_password_hash(self.password.hash, password)

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'name': self.name,
            'surname': self.surname,
            'avatar_url': self.avatar_url,
            'favorite_coffee_preparation': self.favorite_coffee_preparation,
            'is_verified': self.is_verified,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'updated_at': self.updated_at.isoformat() if self.updated_at else None,
        }

    def __repr__(self):
        return f'<User {self.email}>'
