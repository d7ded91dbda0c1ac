from functools import wraps

from flask import Blueprint, request, session, current_app, jsonify
from models import User
from services import user_service
from services.user_service import (
    LOGIN_OK,
    LOGIN_NEEDS_VERIFICATION,
    ALREADY_VERIFIED,
    validate_email,
    safe_redirect,
)
from services.email_service import get_email_sender
from services.avatar_storage import AvatarStorageError, avatar_file_details, get_avatar_storage
from extensions import db

auth_bp = Blueprint('auth', __name__)

RESET_REQUESTED_MESSAGE = 'If your email exists in our system, you will receive a password reset link.'
INVALID_RESET_TOKEN_MESSAGE = 'Invalid or expired reset token. Please request a new password reset link.'
INVALID_CONFIRMATION_MESSAGE = 'This confirmation link is invalid or has expired. Please request a new one.'


def get_form():
    """Submitted fields, from a form post or a JSON body"""
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) and data else request.form


def form_email(form):
    """Normalized email field; anything but a string counts as empty"""
    email = form.get('email')
    return email.strip().lower() if isinstance(email, str) else ''


def form_text(form, field):
    value = form.get(field)
    return value if isinstance(value, str) and value else None


def field_errors(*fields, **messages):
    """Error object with one key per field, None where the field is fine"""
    errors = {field: None for field in fields}
    errors.update(messages)
    return errors


def create_user_session(user_id, remember=False, redirect_to='/'):
    session.clear()
    session['user_id'] = user_id
    session.permanent = remember
    return jsonify({'success': True, 'redirect_to': redirect_to})


def login_required(f):
    """Decorator to require login for routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        if get_current_user() is None:
            return jsonify({'error': 'Authentication required'}), 401
        return f(*args, **kwargs)
    return decorated_function


def get_current_user():
    """Get current logged in user"""
    if 'user_id' in session:
        return db.session.get(User, session['user_id'])
    return None


def _password_error(password):
    if not isinstance(password, str) or len(password) == 0:
        return 'Password is required'
    if len(password) < current_app.config['MIN_PASSWORD_LENGTH']:
        return 'Password is too short'
    return None


@auth_bp.route('/join', methods=['POST'])
def join():
    if get_current_user():
        return jsonify({'redirect_to': '/'}), 409

    join_fields = ('email', 'password', 'name', 'surname', 'avatarUrl', 'favoriteCoffeePreparation')
    form = get_form()
    email = form_email(form)
    password = form.get('password')
    name = form_text(form, 'name')
    surname = form_text(form, 'surname')
    avatar_data = form.get('avatarData')
    favorite_preparation = form_text(form, 'favoriteCoffeePreparation')
    redirect_to = safe_redirect(form.get('redirectTo'))

    if not validate_email(email):
        return jsonify({'errors': field_errors(*join_fields, email='Email is invalid')}), 400

    password_error = _password_error(password)
    if password_error:
        return jsonify({'errors': field_errors(*join_fields, password=password_error)}), 400

    if user_service.get_user_by_email(email):
        return jsonify({'errors': field_errors(*join_fields, email='A user already exists with this email')}), 400

    avatar_url = None
    if isinstance(avatar_data, str) and avatar_data:
        try:
            file_name, content_type = avatar_file_details(avatar_data)
            avatar_url = get_avatar_storage().upload_avatar(avatar_data, file_name, content_type)
        except AvatarStorageError as e:
            current_app.logger.error(f'Error uploading avatar for {email}: {e}')
            return jsonify({'errors': field_errors(*join_fields, avatarUrl='Failed to upload avatar image')}), 500

    try:
        user = user_service.create_unverified_user(
            email,
            password,
            name=name,
            surname=surname,
            avatar_url=avatar_url,
            favorite_coffee_preparation=favorite_preparation,
        )
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f'Registration error: {e}')
        return jsonify({'errors': field_errors(*join_fields, email='An error occurred during registration')}), 500

    # A failed confirmation email does not undo signup; the user can ask for a resend
    result = user_service.create_email_confirmation_token(user.id)
    if result:
        confirmed_user, confirmation = result
        if get_email_sender().send_email_confirmation(confirmed_user, confirmation.token):
            current_app.logger.info(f'Confirmation email sent to {email}')
        else:
            current_app.logger.error(f'Failed to send confirmation email to {email}')

    response = create_user_session(user.id, remember=False, redirect_to=redirect_to)
    response.status_code = 201
    return response


def _resend_confirmation(email):
    result = user_service.resend_email_confirmation(email)

    if result is None:
        return jsonify({
            'errors': {'email': 'No account found with this email address', 'password': None},
            'resend_status': None,
        }), 400

    if result == ALREADY_VERIFIED:
        return jsonify({'errors': {'email': None, 'password': None}, 'resend_status': 'already-verified'})

    user, confirmation = result
    if get_email_sender().send_email_confirmation(user, confirmation.token):
        return jsonify({'errors': {'email': None, 'password': None}, 'resend_status': 'sent'})

    return jsonify({
        'errors': {'email': 'Failed to send verification email', 'password': None},
        'resend_status': 'error',
    }), 500


@auth_bp.route('/login', methods=['POST'])
def login():
    form = get_form()
    email = form_email(form)
    password = form.get('password')
    redirect_to = safe_redirect(form.get('redirectTo'))
    remember = form.get('remember') in ('on', True, 'true')

    if form.get('intent') == 'resend-confirmation' and validate_email(email):
        return _resend_confirmation(email)

    if not validate_email(email):
        return jsonify({'errors': {'email': 'Email is invalid', 'password': None}, 'resend_status': None}), 400

    password_error = _password_error(password)
    if password_error:
        return jsonify({'errors': {'email': None, 'password': password_error}, 'resend_status': None}), 400

    status, user = user_service.verify_login(email, password)

    if status == LOGIN_NEEDS_VERIFICATION:
        current_app.logger.info(f'Login blocked for unverified account {email}')
        return jsonify({
            'errors': {
                'email': 'Your email address has not been verified. Please check your inbox or request a new confirmation email.',
                'password': None,
            },
            'pending_verification': True,
            'verification_email': email,
            'resend_status': None,
        }), 403

    if status != LOGIN_OK:
        current_app.logger.info(f'Failed login attempt for {email}')
        return jsonify({'errors': {'email': 'Invalid email or password', 'password': None}, 'resend_status': None}), 400

    current_app.logger.info(f'User {email} logged in successfully')
    return create_user_session(user['id'], remember=remember, redirect_to=redirect_to)


@auth_bp.route('/logout', methods=['POST'])
def logout():
    user_id = session.get('user_id')
    session.clear()
    current_app.logger.info(f'User {user_id} logged out')
    return jsonify({'success': True, 'redirect_to': '/'})


@auth_bp.route('/me')
@login_required
def me():
    return jsonify({'user': get_current_user().to_dict()})


@auth_bp.route('/forgot-password', methods=['POST'])
def forgot_password():
    email = form_email(get_form())

    if not validate_email(email):
        return jsonify({'errors': {'email': 'Email is invalid'}, 'status': 'error'}), 400

    # Same answer whether or not the account exists
    result = user_service.create_password_reset_token(email)
    if not result:
        return jsonify({'status': 'success', 'message': RESET_REQUESTED_MESSAGE})

    user, reset = result
    if not get_email_sender().send_password_reset_email(user, reset.token):
        return jsonify({
            'errors': {'email': 'Failed to send reset email. Please try again.'},
            'status': 'error',
        }), 500

    current_app.logger.info(f'Password reset requested for {email}')
    return jsonify({'status': 'success', 'message': RESET_REQUESTED_MESSAGE})


@auth_bp.route('/reset-password/<token>', methods=['GET', 'POST'])
def reset_password(token):
    if request.method == 'GET':
        reset = user_service.verify_password_reset_token(token)
        if not reset:
            return jsonify({'is_valid_token': False, 'error': INVALID_RESET_TOKEN_MESSAGE})
        return jsonify({'is_valid_token': True, 'token': token, 'email': reset.user.email})

    form = get_form()
    password = form.get('password')
    password_confirm = form.get('passwordConfirm')

    if not isinstance(password, str) or len(password) == 0:
        return jsonify({'errors': {'password': 'Password is required'}}), 400

    min_length = current_app.config['MIN_PASSWORD_LENGTH']
    if len(password) < min_length:
        return jsonify({'errors': {'password': f'Password must be at least {min_length} characters'}}), 400

    if password != password_confirm:
        return jsonify({'errors': {'passwordConfirm': 'Passwords do not match'}}), 400

    user = user_service.reset_password(token, password)
    if not user:
        return jsonify({'errors': {'password': 'Invalid or expired reset token'}}), 400

    return create_user_session(user.id)


@auth_bp.route('/confirm-email/<token>')
def confirm_email(token):
    user = user_service.confirm_user_email(token)
    if not user:
        return jsonify({'success': False, 'error': INVALID_CONFIRMATION_MESSAGE}), 400

    return create_user_session(user.id)
