import os
import tempfile

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Set test environment variables before importing app
os.environ["APP_ENV"] = "dev"
os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")
os.environ.setdefault("WHATSAPP_VERIFY_TOKEN", "test_token")
os.environ.setdefault("WHATSAPP_ACCESS_TOKEN", "test_token")
os.environ.setdefault("WHATSAPP_PHONE_NUMBER_ID", "test_id")
# Note: WHATSAPP_APP_SECRET not set by default - allows tests without signature verification
os.environ.setdefault("WHATSAPP_DRY_RUN", "true")
os.environ.setdefault("PUBLIC_DIR", tempfile.mkdtemp(prefix="quote-bot-public-"))
os.environ.setdefault("PUBLIC_BASE_URL", "https://bot.example.com")

from app.db.base import Base
# Import all models so Base.metadata includes every table
import app.db.models as _models  # noqa: F401
from app.db.deps import get_db
from app.main import app
from app.services.bot import QuoteBot, get_bot
from app.services.conversation.sessions import InMemorySessionStore
from app.services.messaging import message_composer
from tests.helpers.fakes import FakeChannel, FakeLeadStore, FakeRegistry, FakeRenderer

SQLALCHEMY_DATABASE_URL = os.environ.get("DATABASE_URL", "sqlite:///:memory:")

# SQLite needs check_same_thread=False and StaticPool so every session sees the same in-memory DB
engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Make the app (and the lead store, which opens its own sessions) use the same DB
import app.db.session as _db_session

_db_session.engine = engine
_db_session.SessionLocal = TestingSessionLocal


@pytest.fixture(scope="function")
def db():
    """Create a fresh database for each test."""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(autouse=True)
def fresh_copy_cache():
    message_composer.reset_cache()
    yield
    message_composer.reset_cache()


@pytest.fixture
def channel():
    return FakeChannel()


@pytest.fixture
def renderer():
    return FakeRenderer()


@pytest.fixture
def lead_store():
    return FakeLeadStore()


@pytest.fixture
def registry():
    return FakeRegistry()


@pytest.fixture
def store():
    return InMemorySessionStore()


@pytest.fixture
def bot(store, channel, renderer, lead_store, registry):
    """QuoteBot wired to fakes only."""
    return QuoteBot(
        store=store,
        channel=channel,
        renderer=renderer,
        leads=lead_store,
        registry=registry,
    )


@pytest.fixture(scope="function")
def client(db, bot):
    """Create a test client with database and bot dependency overrides."""

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_bot] = lambda: bot
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
