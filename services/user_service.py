"""User and authentication service functions.

Account creation, login verification and the two token-backed flows
(password reset and email confirmation) built on ``TokenService``.
"""
from typing import Optional, Tuple

from flask import current_app
from extensions import db
from models import User
from services.token_service import TokenService, TokenKind

LOGIN_OK = 'ok'
LOGIN_INVALID = 'invalid'
LOGIN_NEEDS_VERIFICATION = 'needs_verification'

ALREADY_VERIFIED = 'already_verified'


def validate_email(email) -> bool:
    """Loose email check: a string longer than three characters containing '@'."""
    return isinstance(email, str) and len(email) > 3 and '@' in email


def safe_redirect(target, default: str = '/') -> str:
    """Only allow relative, same-site redirect targets."""
    if not target or not isinstance(target, str):
        return default
    if not target.startswith('/') or target.startswith('//'):
        return default
    return target


def get_user_by_id(user_id: int) -> Optional[User]:
    return db.session.get(User, user_id)


def get_user_by_email(email: str) -> Optional[User]:
    return User.query.filter_by(email=email).first()


def create_user(email: str, password: str, **profile_data) -> User:
    """Create a new, already verified user with the given email and password."""
    user = User(
        email=email,
        is_verified=True,
        **{k: v for k, v in profile_data.items() if v is not None}
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    return user


def create_unverified_user(email: str,
                           password: str,
                           name: Optional[str] = None,
                           surname: Optional[str] = None,
                           avatar_url: Optional[str] = None,
                           favorite_coffee_preparation: Optional[str] = None) -> User:
    """Create a user who must confirm their email before logging in."""
    user = User(
        email=email,
        name=name,
        surname=surname,
        avatar_url=avatar_url,
        favorite_coffee_preparation=favorite_coffee_preparation,
        is_verified=False,
    )
    user.set_password(password)
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f'Unverified user created: {email}')
    return user


def delete_user_by_email(email: str) -> bool:
    user = get_user_by_email(email)
    if not user:
        return False
    db.session.delete(user)
    db.session.commit()
    return True


def verify_login(email: str, password: str) -> Tuple[str, Optional[dict]]:
    """
    Check a login attempt.

    Returns a ``(status, user)`` pair. ``status`` is one of ``LOGIN_OK``,
    ``LOGIN_INVALID`` or ``LOGIN_NEEDS_VERIFICATION``; ``user`` is the
    serialized user (no password hash) for ``LOGIN_OK`` and None otherwise.
    """
    user = get_user_by_email(email)
    if not user or user.password is None:
        return LOGIN_INVALID, None

    if not user.is_verified:
        return LOGIN_NEEDS_VERIFICATION, None

    if not user.check_password(password):
        return LOGIN_INVALID, None

    return LOGIN_OK, user.to_dict()


# Password reset

def create_password_reset_token(email: str, clock=None):
    """Issue a reset token for the account with this email, if there is one."""
    user = get_user_by_email(email)
    if not user:
        return None

    token = TokenService(TokenKind.PASSWORD_RESET, clock=clock).issue(user.id)
    return user, token


def verify_password_reset_token(token: str, clock=None):
    return TokenService(TokenKind.PASSWORD_RESET, clock=clock).verify(token)


def reset_password(token: str, new_password: str, clock=None) -> Optional[User]:
    """Set a new password using a live reset token, then delete the token."""
    service = TokenService(TokenKind.PASSWORD_RESET, clock=clock)
    reset = service.verify(token)
    if not reset:
        return None

    user = reset.user
    user.set_password(new_password)
    service.consume(reset)

    current_app.logger.info(f'Password reset completed for user {user.id}')
    return user


# Email confirmation

def create_email_confirmation_token(user_id: int, clock=None):
    user = get_user_by_id(user_id)
    if not user:
        return None

    token = TokenService(TokenKind.EMAIL_CONFIRMATION, clock=clock).issue(user.id)
    return user, token


def confirm_user_email(token: str, clock=None) -> Optional[User]:
    """Mark the token owner's email as verified, then delete the token."""
    service = TokenService(TokenKind.EMAIL_CONFIRMATION, clock=clock)
    confirmation = service.verify(token)
    if not confirmation:
        return None

    user = confirmation.user
    user.is_verified = True
    service.consume(confirmation)

    current_app.logger.info(f'Email confirmed for user {user.id}')
    return user


def resend_email_confirmation(email: str, clock=None):
    """
    Issue a fresh confirmation token for an unverified account.

    Returns None when no account exists, ``ALREADY_VERIFIED`` when there is
    nothing to confirm, otherwise a ``(user, token)`` pair.
    """
    user = get_user_by_email(email)
    if not user:
        return None

    if user.is_verified:
        return ALREADY_VERIFIED

    return create_email_confirmation_token(user.id, clock=clock)
