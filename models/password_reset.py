"""Password Reset model definition.
At most one outstanding reset token per user; the token string is the key.
"""
from datetime import datetime
from extensions import db

class PasswordReset(db.Model):
    __tablename__ = 'password_resets'

    token = db.Column(db.String(100), primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('user.id', ondelete='CASCADE'), unique=True, nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, nullable=False)
    expires_at = db.Column(db.DateTime, nullable=False)

    def is_expired(self, now):
        return now > self.expires_at

    def to_dict(self):
        return {
            'user_id': self.user_id,
            'created_at': self.created_at.isoformat() if self.created_at else None,
            'expires_at': self.expires_at.isoformat() if self.expires_at else None,
        }

    def __repr__(self):
        return f'<PasswordReset {self.user_id} - {self.created_at}>'
