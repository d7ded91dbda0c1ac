"""
Pytest configuration and shared fixtures for the test suite.
"""
import pytest
from datetime import datetime, timedelta
from app import create_app, db
from models import User, Coffee


class FakeEmailSender:
    """Records outgoing email instead of calling the provider."""

    def __init__(self, succeed=True):
        self.succeed = succeed
        self.reset_emails = []
        self.confirmation_emails = []

    def send_password_reset_email(self, user, token):
        self.reset_emails.append((user.email, token))
        return self.succeed

    def send_email_confirmation(self, user, token):
        self.confirmation_emails.append((user.email, token))
        return self.succeed


class FakeClock:
    """Settable stand-in for datetime.utcnow."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 3, 4, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now += timedelta(**kwargs)


@pytest.fixture(scope='function')
def app():
    """Create application for testing."""
    app = create_app('testing')
    app.config.update({
        'SECRET_KEY': 'test-secret-key',
    })

    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()

@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()

@pytest.fixture
def db_session(app):
    """Create database session."""
    with app.app_context():
        yield db.session

@pytest.fixture
def fake_email_sender(app):
    """Replace the application's email sender with a recording fake."""
    sender = FakeEmailSender()
    app.extensions['email_sender'] = sender
    return sender

@pytest.fixture
def clock():
    return FakeClock()

@pytest.fixture
def test_user(db_session):
    """Create a verified test user."""
    user = User(
        email='test@example.com',
        name='Test',
        is_verified=True
    )
    user.set_password("password123")
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture
def unverified_user(db_session):
    """Create a test user who has not confirmed their email."""
    user = User(
        email='user@example.com',
        is_verified=False
    )
    user.set_password("password123")
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture
def other_user(db_session):
    user = User(email='other@example.com', is_verified=True)
    user.set_password("password456")
    db_session.add(user)
    db_session.commit()
    return user

@pytest.fixture
def test_coffee(db_session, test_user):
    """Create test coffee entry."""
    coffee = Coffee(
        user_id=test_user.id,
        name='Morning Blend',
        brand='Lavazza',
        preparation='Espresso',
        shots=2,
        flavor='Chocolate',
        rating=4,
        description='Smooth and rich'
    )
    db_session.add(coffee)
    db_session.commit()
    return coffee

@pytest.fixture
def make_coffees(db_session):
    """Factory creating `count` entries for a user, one minute apart (newest last)."""
    def _make(user, count, start=None, **overrides):
        start = start or datetime(2025, 1, 1, 8, 0, 0)
        coffees = []
        for i in range(count):
            fields = {
                'name': f'Coffee {i}',
                'brand': 'Brand',
                'preparation': 'Espresso',
                'shots': 1,
                'flavor': 'Nutty',
                'rating': 3,
                'description': 'Entry',
            }
            fields.update(overrides)
            coffee = Coffee(user_id=user.id, created_at=start + timedelta(minutes=i), **fields)
            db_session.add(coffee)
            coffees.append(coffee)
        db_session.commit()
        return coffees
    return _make

@pytest.fixture
def logged_in_client(client, test_user):
    """Client with the test user's id in the session cookie."""
    with client.session_transaction() as sess:
        sess['user_id'] = test_user.id
    return client

@pytest.fixture
def sample_coffee_data():
    """Sample coffee form data for testing."""
    return {
        'name': 'Ethiopia Yirgacheffe',
        'brand': 'Blue Bottle',
        'preparation': 'Pour Over',
        'shots': '1',
        'flavor': 'Floral',
        'rating': '5',
        'description': 'Bright and citrusy'
    }

@pytest.fixture
def sample_user_data():
    """Sample signup data for testing."""
    return {
        'email': 'newuser@example.com',
        'password': 'securepassword123',
        'name': 'New',
        'surname': 'User',
        'favoriteCoffeePreparation': 'Latte'
    }
