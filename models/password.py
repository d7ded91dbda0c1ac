"""Password model definition.
Stores the bcrypt hash for a user, one row per user.
"""
from extensions import db

class Password(db.Model):
    id = db.Column(db.Integer, primary_key=True)
    hash = db.Column(db.String(128), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), unique=True, nullable=False)

    def __repr__(self):
        return f'<Password for user {self.user_id}>'
