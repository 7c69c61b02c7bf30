"""
Shared fixtures: a throwaway SQLite database, a test client and a captured
outbox in place of the email API.
"""
import os
import tempfile

# Must be set before scalerebel.auth.database is imported
_db_dir = tempfile.mkdtemp(prefix="scalerebel-test-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_db_dir, 'test.db')}"

import pytest
from fastapi.testclient import TestClient

from scalerebel.app import app
from scalerebel.auth.database import Base, SessionLocal, engine, ensure_tables
from scalerebel.auth.otp import request_code, verify_code

ADMIN_EMAIL = "owner@thescalerebel.com"
CONTACT_EMAIL = "hello@thescalerebel.com"


@pytest.fixture(autouse=True)
def env(monkeypatch):
    monkeypatch.setenv("ADMIN_EMAIL", ADMIN_EMAIL)
    monkeypatch.setenv("RESEND_API_KEY", "re_test_key")
    monkeypatch.setenv("CONTACT_EMAIL", CONTACT_EMAIL)
    monkeypatch.delenv("SEND_CONFIRMATION_EMAIL", raising=False)


@pytest.fixture(autouse=True)
def fresh_db():
    ensure_tables()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def outbox(monkeypatch):
    """Capture outgoing emails instead of calling the email API."""
    sent = []

    def fake_send_email(to, subject, text, html_body=None, reply_to=None):
        sent.append({
            "to": to,
            "subject": subject,
            "text": text,
            "html": html_body,
            "reply_to": reply_to,
        })
        return True

    monkeypatch.setattr("scalerebel.auth.email_utils.send_email", fake_send_email)
    monkeypatch.setattr("scalerebel.contact.routes.send_email", fake_send_email)
    return sent


@pytest.fixture
def admin_token(db):
    code = request_code(db, ADMIN_EMAIL)
    session = verify_code(db, ADMIN_EMAIL, code)
    return session.token


@pytest.fixture
def auth_headers(admin_token):
    return {"Authorization": f"Bearer {admin_token}"}
