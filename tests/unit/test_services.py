"""
Unit tests for service layer components.
"""
import pytest
from datetime import datetime, timedelta
from models import User, Coffee, PasswordReset, EmailConfirmation
from services import user_service, coffee_service
from services.token_service import TokenService, TokenKind
from services.user_service import LOGIN_OK, LOGIN_INVALID, LOGIN_NEEDS_VERIFICATION, ALREADY_VERIFIED


class TestTokenService:
    """Test cases for TokenService."""

    def test_issue_sets_expiry_from_ttl(self, db_session, test_user, clock):
        service = TokenService(TokenKind.PASSWORD_RESET, clock=clock)
        token = service.issue(test_user.id)

        assert token.user_id == test_user.id
        assert token.created_at == clock.now
        assert token.expires_at == clock.now + timedelta(minutes=5)
        assert len(token.token) >= 32

    def test_confirmation_tokens_last_a_day(self, db_session, test_user, clock):
        token = TokenService(TokenKind.EMAIL_CONFIRMATION, clock=clock).issue(test_user.id)
        assert token.expires_at == clock.now + timedelta(hours=24)

    def test_explicit_zero_ttl_is_honored(self, db_session, test_user, clock):
        service = TokenService(TokenKind.PASSWORD_RESET, clock=clock)
        token = service.issue(test_user.id, ttl=timedelta(0))
        value = token.token

        assert token.expires_at == clock.now
        clock.advance(seconds=1)
        assert service.verify(value) is None

    def test_issue_replaces_previous_token(self, db_session, test_user, clock):
        service = TokenService(TokenKind.PASSWORD_RESET, clock=clock)
        first = service.issue(test_user.id).token
        second = service.issue(test_user.id).token

        assert first != second
        assert service.verify(first) is None
        assert service.verify(second) is not None
        assert PasswordReset.query.filter_by(user_id=test_user.id).count() == 1

    def test_kinds_are_independent(self, db_session, test_user, clock):
        reset = TokenService(TokenKind.PASSWORD_RESET, clock=clock).issue(test_user.id).token
        TokenService(TokenKind.EMAIL_CONFIRMATION, clock=clock).issue(test_user.id)

        assert TokenService(TokenKind.PASSWORD_RESET, clock=clock).verify(reset) is not None
        assert EmailConfirmation.query.count() == 1

    def test_verify_unknown_token(self, db_session):
        service = TokenService(TokenKind.PASSWORD_RESET)
        assert service.verify('does-not-exist') is None
        assert service.verify('') is None

    def test_token_valid_up_to_expiry(self, db_session, test_user, clock):
        service = TokenService(TokenKind.PASSWORD_RESET, clock=clock)
        token = service.issue(test_user.id).token

        clock.advance(minutes=5)
        assert service.verify(token) is not None

    def test_expired_token_is_deleted_on_verify(self, db_session, test_user, clock):
        service = TokenService(TokenKind.PASSWORD_RESET, clock=clock)
        token = service.issue(test_user.id).token

        clock.advance(minutes=5, seconds=1)
        assert service.verify(token) is None
        assert db_session.get(PasswordReset, token) is None

    def test_consume_deletes_token(self, db_session, test_user, clock):
        service = TokenService(TokenKind.EMAIL_CONFIRMATION, clock=clock)
        record = service.verify(service.issue(test_user.id).token)

        service.consume(record)
        assert service.find_for_user(test_user.id) is None

    def test_verify_returns_owner(self, db_session, test_user, clock):
        service = TokenService(TokenKind.PASSWORD_RESET, clock=clock)
        record = service.verify(service.issue(test_user.id).token)
        assert record.user.email == test_user.email


class TestUserService:
    """Test cases for user_service."""

    def test_create_user(self, db_session):
        """Test user creation service."""
        user = user_service.create_user(
            email='newuser@example.com',
            password='securepassword123',
            name='New'
        )
        assert user.email == 'newuser@example.com'
        assert user.name == 'New'
        assert user.is_verified is True
        assert user.check_password('securepassword123')

    def test_create_unverified_user(self, db_session):
        user = user_service.create_unverified_user(
            'fresh@example.com', 'securepassword123',
            name='Ada', surname='Lovelace',
            avatar_url='https://bucket.s3.us-east-1.amazonaws.com/avatars/a.png',
            favorite_coffee_preparation='Cortado',
        )
        assert user.is_verified is False
        assert user.surname == 'Lovelace'
        assert user.favorite_coffee_preparation == 'Cortado'

    def test_delete_user_by_email(self, db_session, test_user):
        assert user_service.delete_user_by_email(test_user.email) is True
        assert user_service.get_user_by_email('test@example.com') is None
        assert user_service.delete_user_by_email('test@example.com') is False

    @pytest.mark.parametrize('email,valid', [
        ('user@example.com', True),
        ('a@b', False),
        ('a@bc', True),
        ('a@', False),
        ('plainaddress', False),
        ('', False),
        (None, False),
    ])
    def test_validate_email(self, email, valid):
        assert user_service.validate_email(email) is valid

    @pytest.mark.parametrize('target,expected', [
        ('/coffees', '/coffees'),
        (None, '/'),
        ('', '/'),
        ('//evil.example.com', '/'),
        ('https://evil.example.com', '/'),
    ])
    def test_safe_redirect(self, target, expected):
        assert user_service.safe_redirect(target) == expected


class TestVerifyLogin:
    """Test cases for verify_login."""

    def test_success_returns_user_without_hash(self, db_session, test_user):
        status, user = user_service.verify_login('test@example.com', 'password123')
        assert status == LOGIN_OK
        assert user['id'] == test_user.id
        assert 'password' not in user
        assert 'hash' not in user

    def test_wrong_password(self, db_session, test_user):
        assert user_service.verify_login('test@example.com', 'wrong-password') == (LOGIN_INVALID, None)

    def test_unknown_email(self, db_session):
        assert user_service.verify_login('nobody@example.com', 'password123') == (LOGIN_INVALID, None)

    def test_unverified_user_needs_verification(self, db_session, unverified_user):
        status, user = user_service.verify_login('user@example.com', 'password123')
        assert status == LOGIN_NEEDS_VERIFICATION
        assert user is None


class TestPasswordResetFlow:
    """Test cases for the password reset helpers."""

    def test_create_token_for_unknown_email(self, db_session):
        assert user_service.create_password_reset_token('nobody@example.com') is None
        assert PasswordReset.query.count() == 0

    def test_new_request_invalidates_old_token(self, db_session, test_user, clock):
        _, first = user_service.create_password_reset_token(test_user.email, clock=clock)
        first_token = first.token
        _, second = user_service.create_password_reset_token(test_user.email, clock=clock)

        assert user_service.verify_password_reset_token(first_token, clock=clock) is None
        assert user_service.verify_password_reset_token(second.token, clock=clock) is not None

    def test_expired_reset_token(self, db_session, unverified_user, clock):
        user, reset = user_service.create_password_reset_token('user@example.com', clock=clock)
        token = reset.token

        clock.advance(minutes=6)
        assert user_service.verify_password_reset_token(token, clock=clock) is None
        assert PasswordReset.query.filter_by(token=token).first() is None

    def test_reset_password(self, db_session, test_user, clock):
        _, reset = user_service.create_password_reset_token(test_user.email, clock=clock)
        token = reset.token

        user = user_service.reset_password(token, 'brand-new-password', clock=clock)

        assert user.id == test_user.id
        assert user.check_password('brand-new-password')
        assert not user.check_password('password123')
        assert PasswordReset.query.count() == 0

    def test_reset_token_is_single_use(self, db_session, test_user, clock):
        _, reset = user_service.create_password_reset_token(test_user.email, clock=clock)
        token = reset.token

        assert user_service.reset_password(token, 'brand-new-password', clock=clock) is not None
        assert user_service.reset_password(token, 'other-password', clock=clock) is None

    def test_reset_with_expired_token_keeps_password(self, db_session, test_user, clock):
        _, reset = user_service.create_password_reset_token(test_user.email, clock=clock)
        token = reset.token

        clock.advance(minutes=10)
        assert user_service.reset_password(token, 'brand-new-password', clock=clock) is None
        assert db_session.get(User, test_user.id).check_password('password123')


class TestEmailConfirmationFlow:
    """Test cases for the email confirmation helpers."""

    def test_confirm_user_email(self, db_session, unverified_user, clock):
        _, confirmation = user_service.create_email_confirmation_token(unverified_user.id, clock=clock)

        user = user_service.confirm_user_email(confirmation.token, clock=clock)

        assert user.is_verified is True
        assert EmailConfirmation.query.count() == 0

    def test_confirm_with_expired_token(self, db_session, unverified_user, clock):
        _, confirmation = user_service.create_email_confirmation_token(unverified_user.id, clock=clock)
        token = confirmation.token

        clock.advance(hours=24, seconds=1)
        assert user_service.confirm_user_email(token, clock=clock) is None
        assert db_session.get(User, unverified_user.id).is_verified is False
        assert EmailConfirmation.query.count() == 0

    def test_confirmation_token_for_missing_user(self, db_session):
        assert user_service.create_email_confirmation_token(9999) is None

    def test_resend_for_unknown_email(self, db_session):
        assert user_service.resend_email_confirmation('nobody@example.com') is None

    def test_resend_for_verified_user(self, db_session, test_user):
        assert user_service.resend_email_confirmation(test_user.email) == ALREADY_VERIFIED

    def test_resend_replaces_token(self, db_session, unverified_user, clock):
        _, first = user_service.create_email_confirmation_token(unverified_user.id, clock=clock)
        first_token = first.token

        user, second = user_service.resend_email_confirmation(unverified_user.email, clock=clock)

        assert user.id == unverified_user.id
        assert second.token != first_token
        assert user_service.confirm_user_email(first_token, clock=clock) is None


class TestCoffeeService:
    """Test cases for coffee_service."""

    def test_create_and_get_coffee(self, db_session, test_user):
        coffee = coffee_service.create_coffee(
            user_id=test_user.id, name='House', brand='Stumptown', preparation='Drip',
            shots=0, flavor='Caramel', rating=4, description='Reliable')

        fetched = coffee_service.get_coffee(coffee.id, test_user.id)
        assert fetched.name == 'House'
        assert fetched.shots == 0

    def test_get_coffee_scoped_by_owner(self, db_session, test_coffee, other_user):
        assert coffee_service.get_coffee(test_coffee.id, other_user.id) is None

    def test_list_items_newest_first(self, db_session, test_user, make_coffees):
        make_coffees(test_user, 3)
        names = [c.name for c in coffee_service.get_coffee_list_items(test_user.id)]
        assert names == ['Coffee 2', 'Coffee 1', 'Coffee 0']

    def test_list_items_excludes_other_users(self, db_session, test_user, other_user, make_coffees):
        make_coffees(test_user, 2)
        make_coffees(other_user, 4)
        assert len(coffee_service.get_coffee_list_items(test_user.id)) == 2

    def test_update_coffee(self, db_session, test_coffee, test_user):
        updated = coffee_service.update_coffee(test_coffee.id, test_user.id, rating=5, flavor='Berry')
        assert updated.rating == 5
        assert updated.flavor == 'Berry'
        assert updated.brand == 'Lavazza'

    def test_update_other_users_coffee(self, db_session, test_coffee, other_user):
        assert coffee_service.update_coffee(test_coffee.id, other_user.id, rating=1) is None
        assert db_session.get(Coffee, test_coffee.id).rating == 4

    def test_delete_coffee(self, db_session, test_coffee, test_user, other_user):
        assert coffee_service.delete_coffee(test_coffee.id, other_user.id) == 0
        assert coffee_service.delete_coffee(test_coffee.id, test_user.id) == 1
        assert Coffee.query.count() == 0

    def test_unique_coffees(self, db_session, test_user, make_coffees):
        make_coffees(test_user, 2, name='Zeta', brand='B')
        make_coffees(test_user, 1, name='Alpha', brand='Z')
        make_coffees(test_user, 1, name='Alpha', brand='A')

        assert coffee_service.get_unique_coffees(test_user.id) == [
            {'name': 'Alpha', 'brand': 'A'},
            {'name': 'Alpha', 'brand': 'Z'},
            {'name': 'Zeta', 'brand': 'B'},
        ]


class TestPagination:
    """Test cases for get_coffee_list_items_paginated."""

    def test_last_page_of_25(self, db_session, test_user, make_coffees):
        make_coffees(test_user, 25)

        result = coffee_service.get_coffee_list_items_paginated(test_user.id, page=3, per_page=10)

        assert len(result['items']) == 5
        assert result['pagination'] == {
            'total_items': 25,
            'total_pages': 3,
            'current_page': 3,
            'per_page': 10,
            'has_next_page': False,
            'has_prev_page': True,
        }
        # oldest five entries land on the last page
        assert [c.name for c in result['items']] == ['Coffee 4', 'Coffee 3', 'Coffee 2', 'Coffee 1', 'Coffee 0']

    def test_first_page(self, db_session, test_user, make_coffees):
        make_coffees(test_user, 25)

        result = coffee_service.get_coffee_list_items_paginated(test_user.id, page=1, per_page=10)

        assert result['items'][0].name == 'Coffee 24'
        assert result['pagination']['has_next_page'] is True
        assert result['pagination']['has_prev_page'] is False

    def test_empty_diary(self, db_session, test_user):
        result = coffee_service.get_coffee_list_items_paginated(test_user.id)

        assert result['items'] == []
        assert result['pagination']['total_pages'] == 0
        assert result['pagination']['has_next_page'] is False
        assert result['pagination']['has_prev_page'] is False

    def test_page_below_one_is_first_page(self, db_session, test_user, make_coffees):
        make_coffees(test_user, 3)
        result = coffee_service.get_coffee_list_items_paginated(test_user.id, page=0, per_page=2)
        assert result['pagination']['current_page'] == 1
        assert len(result['items']) == 2

    def test_page_beyond_range_skips_query(self, db_session, test_user, make_coffees):
        make_coffees(test_user, 2)

        result = coffee_service.get_coffee_list_items_paginated(test_user.id, page=10**20, per_page=10)

        assert result['items'] == []
        assert result['pagination']['current_page'] == 10**20

    def test_invalid_per_page(self, db_session, test_user):
        with pytest.raises(ValueError):
            coffee_service.get_coffee_list_items_paginated(test_user.id, per_page=0)


class TestCoffeeFormValidation:
    """Test cases for validate_coffee_form."""

    def test_valid_form(self, sample_coffee_data):
        data, errors = coffee_service.validate_coffee_form(sample_coffee_data)
        assert not coffee_service.has_errors(errors)
        assert data['shots'] == 1
        assert data['rating'] == 5

    def test_missing_fields_reported_per_field(self):
        data, errors = coffee_service.validate_coffee_form({'name': 'Only a name', 'shots': 'two'})
        assert errors['name'] is None
        assert errors['brand'] == 'Coffee brand is required'
        assert errors['shots'] == 'Number of shots is required'
        assert errors['rating'] == 'Rating is required'
        assert errors['description'] == 'Description is required'
        assert coffee_service.has_errors(errors)

    def test_out_of_range_integers_rejected(self, sample_coffee_data):
        sample_coffee_data['shots'] = '9' * 25
        data, errors = coffee_service.validate_coffee_form(sample_coffee_data)
        assert data['shots'] is None
        assert errors['shots'] == 'Number of shots is required'

    @pytest.mark.parametrize('value,expected', [
        ('3', 3),
        ('  2 shots', 2),
        ('-1', -1),
        ('abc', None),
        ('', None),
        (None, None),
        (4, 4),
    ])
    def test_parse_int(self, value, expected):
        assert coffee_service.parse_int(value) == expected
