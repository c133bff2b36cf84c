"""
Pytest configuration and fixtures for backend tests.

Provides shared fixtures for:
- Test database sessions (in-memory SQLite, foreign keys on)
- A fixed clock for status-sensitive service tests
- Account, church and event factories
- A recording notification queue
- Access token headers and a FastAPI test client
"""

import os
import pytest
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app modules
os.environ['LIGHTCHURCH_DB_URL'] = 'sqlite:///:memory:'
os.environ['LIGHTCHURCH_ENV'] = 'test'
os.environ['JWT_SECRET_KEY'] = 'test-secret-key-for-access-tokens-0123456789'

from backend.src.models import (
    Base, Account, AccountRole, AccountStatus, Church, Event, EventDetail,
    EventInterest, PushTarget,
)
from backend.src.services.notification_service import NotificationQueue


# Instant used by the fixed clock: events are placed around it
FIXED_NOW = datetime(2026, 6, 1, 12, 0, 0)


# ============================================================================
# Database Fixtures
# ============================================================================

@pytest.fixture(scope='function')
def test_db_engine():
    """Create an in-memory SQLite database engine for testing."""
    from sqlalchemy import event

    engine = create_engine(
        'sqlite:///:memory:',
        connect_args={'check_same_thread': False},
        poolclass=StaticPool,
    )

    # Enable foreign key constraints for SQLite (cascades on event delete)
    def _fk_pragma_on_connect(dbapi_con, con_record):
        dbapi_con.execute('pragma foreign_keys=ON')

    event.listen(engine, 'connect', _fk_pragma_on_connect)

    Base.metadata.create_all(engine)
    yield engine
    Base.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture(scope='function')
def test_db_session(test_db_engine):
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False,
        autoflush=False,
        bind=test_db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def session_factory(test_db_engine):
    """Session factory bound to the test engine (for background dispatch)."""
    return sessionmaker(autocommit=False, autoflush=False, bind=test_db_engine)


# ============================================================================
# Clock and Notifications
# ============================================================================

@pytest.fixture
def fixed_now():
    return FIXED_NOW


@pytest.fixture
def clock(fixed_now):
    """Clock returning FIXED_NOW."""
    return lambda: fixed_now


class RecordingNotificationQueue(NotificationQueue):
    """Queue that records intents instead of dispatching them."""

    def __init__(self):
        self.intents = []

    def enqueue(self, intent):
        self.intents.append(intent)

    @property
    def kinds(self):
        return [intent.kind for intent in self.intents]


@pytest.fixture
def notification_queue():
    return RecordingNotificationQueue()


# ============================================================================
# Sample Data Factories
# ============================================================================

@pytest.fixture
def create_account(test_db_session):
    """Factory for creating Account models in the database."""
    counter = {'n': 0}

    def _create(
        role=AccountRole.PASTOR,
        status=AccountStatus.VALIDATED,
        email=None,
        first_name='Jean',
        last_name='Dupont',
    ):
        counter['n'] += 1
        account = Account(
            email=email or f"account{counter['n']}@example.com",
            first_name=first_name,
            last_name=last_name,
            role=role,
            status=status,
        )
        test_db_session.add(account)
        test_db_session.commit()
        test_db_session.refresh(account)
        return account
    return _create


@pytest.fixture
def test_pastor(create_account):
    return create_account(email='pastor@example.com', first_name='Paul', last_name='Martin')


@pytest.fixture
def other_pastor(create_account):
    return create_account(email='other@example.com', first_name='Marc', last_name='Durand')


@pytest.fixture
def test_super_admin(create_account):
    return create_account(
        role=AccountRole.SUPER_ADMIN,
        email='admin@example.com',
        first_name='Alice',
        last_name='Admin',
    )


@pytest.fixture
def test_church(test_db_session, test_pastor):
    church = Church(
        church_name='Eglise de la Grace',
        admin_id=test_pastor.id,
        latitude=48.8566,
        longitude=2.3522,
    )
    test_db_session.add(church)
    test_db_session.commit()
    test_db_session.refresh(church)
    return church


@pytest.fixture
def create_event(test_db_session, test_pastor, fixed_now):
    """
    Factory for creating Event models in the database.

    start/end default to one day after FIXED_NOW, lasting two hours.
    """
    def _create(
        organizer=None,
        church=None,
        title='Culte du dimanche',
        start_time=None,
        end_time=None,
        cancelled=False,
        cancelled_by=None,
        with_detail=True,
    ):
        organizer = organizer or test_pastor
        start_time = start_time or fixed_now + timedelta(days=1)
        end_time = end_time or start_time + timedelta(hours=2)

        event = Event(
            organizer_id=organizer.id,
            church_id=church.id if church else None,
            title=title,
            start_time=start_time,
            end_time=end_time,
            interested_count=0,
        )
        if cancelled:
            event.mark_cancelled(
                'Weather alert, postponed', cancelled_by or organizer.id, start_time - timedelta(days=2)
            )
        if with_detail:
            event.detail = EventDetail(city='Paris', speaker_name='Pasteur Paul')
        test_db_session.add(event)
        test_db_session.commit()
        test_db_session.refresh(event)
        return event
    return _create


@pytest.fixture
def add_interest(test_db_session):
    """Insert an interest row directly (keeps interested_count in step)."""
    def _add(event, device_id):
        test_db_session.add(EventInterest(event_id=event.id, device_id=device_id))
        event.interested_count = (event.interested_count or 0) + 1
        test_db_session.commit()
    return _add


@pytest.fixture
def create_push_target(test_db_session):
    """Factory for creating PushTarget models in the database."""
    def _create(device_id, push_token=None, platform='ios'):
        target = PushTarget(
            device_id=device_id,
            push_token=push_token or f"ExponentPushToken[{device_id}]",
            platform=platform,
        )
        test_db_session.add(target)
        test_db_session.commit()
        test_db_session.refresh(target)
        return target
    return _create


# ============================================================================
# Authentication
# ============================================================================

@pytest.fixture
def auth_headers():
    """Factory returning Authorization headers for an account."""
    from backend.src.config.settings import get_settings
    from backend.src.services.token_service import TokenService

    settings = get_settings()
    service = TokenService(settings.jwt_secret_key, algorithm=settings.jwt_algorithm)

    def _headers(account):
        return {'Authorization': f'Bearer {service.generate_token(account)}'}
    return _headers


# ============================================================================
# API Test Client
# ============================================================================

@pytest.fixture
def test_client(test_db_session, notification_queue):
    """Create a test client for FastAPI application."""
    from fastapi.testclient import TestClient
    from backend.src.main import app
    from backend.src.api.dependencies import get_notification_queue
    from backend.src.db.database import get_db
    from backend.src.utils.rate_limit import limiter

    def get_test_db():
        try:
            yield test_db_session
        finally:
            pass

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_notification_queue] = lambda: notification_queue
    limiter.enabled = False

    with TestClient(app) as client:
        yield client

    limiter.enabled = True
    app.dependency_overrides.clear()
