"""
API dependencies - wiring of the authentication core
"""

from datetime import timedelta
from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from authflow.core.config import Settings, get_settings
from authflow.core.database import get_db
from authflow.services.auth_service import AuthService
from authflow.services.credential_store import CredentialStore, SqlCredentialStore
from authflow.services.token_service import StepTokenService
from authflow.services.totp_service import TOTPProvisioner, TOTPValidator
from authflow.utils.security import PasswordVerifier


@lru_cache()
def get_password_verifier() -> PasswordVerifier:
    """Process-wide password verifier"""
    return PasswordVerifier(rounds=get_settings().PASSWORD_BCRYPT_COST)


@lru_cache()
def get_token_service() -> StepTokenService:
    """Process-wide step token service"""
    settings = get_settings()
    return StepTokenService(
        secret_key=settings.JWT_SECRET,
        algorithm=settings.JWT_ALGORITHM,
        issuer=settings.JWT_ISSUER,
        pending_ttl=timedelta(minutes=settings.STEP_TOKEN_TTL_MINUTES),
        authenticated_ttl=timedelta(minutes=settings.ACCESS_TOKEN_TTL_MINUTES)
    )


@lru_cache()
def get_totp_validator() -> TOTPValidator:
    """Process-wide TOTP validator"""
    settings = get_settings()
    return TOTPValidator(
        valid_window=settings.TOTP_VALID_WINDOW,
        digits=settings.TOTP_DIGITS,
        interval=settings.TOTP_INTERVAL_SECONDS
    )


def get_credential_store(db: Session = Depends(get_db)) -> CredentialStore:
    """
    Get credential store bound to the request's database session

    Args:
        db: Database session

    Returns:
        SqlCredentialStore instance
    """
    return SqlCredentialStore(db)


def get_auth_service(
    store: CredentialStore = Depends(get_credential_store),
    settings: Settings = Depends(get_settings)
) -> AuthService:
    """
    Get authentication service instance

    Args:
        store: Credential store
        settings: Application settings

    Returns:
        AuthService instance
    """
    return AuthService(
        store=store,
        tokens=get_token_service(),
        passwords=get_password_verifier(),
        provisioner=TOTPProvisioner(
            store,
            issuer=settings.TOTP_ISSUER,
            digits=settings.TOTP_DIGITS,
            interval=settings.TOTP_INTERVAL_SECONDS
        ),
        validator=get_totp_validator(),
        uniform_login_errors=settings.LOGIN_UNIFORM_ERRORS,
        min_password_length=settings.PASSWORD_MIN_LENGTH
    )
