"""Single-use token service.

Issues, verifies and consumes the time-limited tokens behind the password reset
and email confirmation flows. Each user holds at most one outstanding token per
kind: issuing a new one deletes the previous one. Expiry is checked lazily when
a token is read; an expired token is deleted on the spot and reported exactly
like an unknown one, so callers cannot tell the two apart.
"""
from datetime import datetime, timedelta
from enum import Enum
import secrets

from flask import current_app
from extensions import db
from models.password_reset import PasswordReset
from models.email_confirmation import EmailConfirmation


class TokenKind(Enum):
    PASSWORD_RESET = 'password_reset'
    EMAIL_CONFIRMATION = 'email_confirmation'


_MODELS = {
    TokenKind.PASSWORD_RESET: PasswordReset,
    TokenKind.EMAIL_CONFIRMATION: EmailConfirmation,
}


def default_ttl(kind):
    """TTL for a token kind, read from the app config."""
    if kind is TokenKind.PASSWORD_RESET:
        return timedelta(minutes=current_app.config.get('PASSWORD_RESET_TTL_MINUTES', 5))
    return timedelta(hours=current_app.config.get('EMAIL_CONFIRMATION_TTL_HOURS', 24))


class TokenService:

    def __init__(self, kind, clock=None):
        self.kind = kind
        self.model = _MODELS[kind]
        self.clock = clock or datetime.utcnow

    def issue(self, user_id, ttl=None):
        """Replace any outstanding token of this kind for the user with a new one"""
        if ttl is None:
            ttl = default_ttl(self.kind)
        try:
            for existing in self.model.query.filter_by(user_id=user_id).all():
                db.session.delete(existing)
            # the unique user_id constraint needs the delete flushed before the insert
            db.session.flush()

            now = self.clock()
            token = self.model(
                token=secrets.token_urlsafe(32),
                user_id=user_id,
                created_at=now,
                expires_at=now + ttl,
            )
            db.session.add(token)
            db.session.commit()

            current_app.logger.info(f'{self.kind.value} token issued for user {user_id}')
            return token

        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f'Error issuing {self.kind.value} token: {e}')
            raise

    def verify(self, token):
        """Return the live token, or None if it is unknown or has expired"""
        if not token:
            return None

        record = db.session.get(self.model, token)
        if record is None:
            return None

        if record.is_expired(self.clock()):
            user_id = record.user_id
            db.session.delete(record)
            db.session.commit()
            current_app.logger.info(f'Expired {self.kind.value} token removed for user {user_id}')
            return None

        return record

    def consume(self, record):
        """Delete a token and commit whatever effect the caller staged with it"""
        user_id = record.user_id
        try:
            db.session.delete(record)
            db.session.commit()
        except Exception as e:
            db.session.rollback()
            current_app.logger.error(f'Error consuming {self.kind.value} token: {e}')
            raise
        current_app.logger.info(f'{self.kind.value} token consumed for user {user_id}')

    def find_for_user(self, user_id):
        return self.model.query.filter_by(user_id=user_id).first()
