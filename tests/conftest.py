"""
Pytest configuration shared by all tests.

Settings are read from the environment when authflow is first imported, so
the test environment is set here before any authflow import.
"""

import os

os.environ.setdefault("JWT_SECRET", "test-signing-secret-0123456789abcdef0123456789")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("PASSWORD_BCRYPT_COST", "4")
os.environ.setdefault("TOTP_ISSUER", "authflow-test")
os.environ.setdefault("LOG_FORMAT", "text")

import pytest
from sqlalchemy.orm import Session

from authflow.core.database import Base, engine
from authflow import models  # noqa: F401
from authflow.services.auth_service import AuthService
from authflow.services.credential_store import InMemoryCredentialStore
from authflow.services.token_service import StepTokenService
from authflow.services.totp_service import TOTPProvisioner, TOTPValidator
from authflow.utils.security import PasswordVerifier


TEST_SECRET = os.environ["JWT_SECRET"]
TEST_ISSUER = os.environ["TOTP_ISSUER"]


@pytest.fixture(scope="session")
def passwords():
    """Low-cost bcrypt verifier shared across tests"""
    return PasswordVerifier(rounds=4)


@pytest.fixture
def memory_store():
    """Fresh in-memory credential store"""
    return InMemoryCredentialStore()


@pytest.fixture
def token_service():
    """Step token service signed with the test secret"""
    return StepTokenService(secret_key=TEST_SECRET)


@pytest.fixture
def validator():
    return TOTPValidator(valid_window=1)


@pytest.fixture
def auth_service(memory_store, token_service, passwords, validator):
    """AuthService wired to the in-memory store"""
    return AuthService(
        store=memory_store,
        tokens=token_service,
        passwords=passwords,
        provisioner=TOTPProvisioner(memory_store, issuer=TEST_ISSUER),
        validator=validator
    )


@pytest.fixture
def db_session():
    """
    Database session on a freshly created in-memory SQLite schema.

    Tables are dropped after each test for isolation.
    """
    Base.metadata.create_all(bind=engine)
    session = Session(bind=engine, expire_on_commit=False)

    yield session

    session.close()
    Base.metadata.drop_all(bind=engine)
