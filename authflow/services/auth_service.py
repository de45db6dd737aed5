"""
Authentication Service - the two-step login state machine

    Anonymous --(password OK)--> PendingSecondFactor --(TOTP OK)--> Authenticated

Users without 2FA go from Anonymous straight to Authenticated at login.
The service holds no state between calls; progress is carried by step tokens.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from authflow import metrics
from authflow.exceptions import (
    AuthFlowError,
    BadCredentials,
    BadTwoFactorCode,
    EmailTaken,
    InvalidStepToken,
    StoreError,
    TokenError,
    UserNotFound,
    ValidationError,
)
from authflow.services.credential_store import CredentialStore
from authflow.services.token_service import IssuedToken, Stage, StepToken, StepTokenService
from authflow.services.totp_service import TotpEnrollment, TOTPProvisioner, TOTPValidator
from authflow.utils.security import PasswordVerifier, mask_email


logger = logging.getLogger(__name__)

UNIFORM_LOGIN_ERROR = "Invalid email or password"


@dataclass(frozen=True)
class UserSummary:
    """Public view of a user - never includes the hash or secret"""
    id: int
    email: str


@dataclass(frozen=True)
class LoginResult:
    """Outcome of the password step"""
    token: IssuedToken
    totp_enabled: bool

    @property
    def requires_second_factor(self) -> bool:
        return self.token.stage == Stage.PENDING_SECOND_FACTOR


def _error_status(error: AuthFlowError) -> str:
    if isinstance(error, StoreError):
        return "error"
    if isinstance(error, TokenError):
        return "invalid_token"
    if isinstance(error, UserNotFound):
        return "unknown_user"
    return "rejected"


class AuthService:
    """Orchestrates registration, login and the TOTP second factor"""

    def __init__(
        self,
        store: CredentialStore,
        tokens: StepTokenService,
        passwords: PasswordVerifier,
        provisioner: TOTPProvisioner,
        validator: TOTPValidator,
        uniform_login_errors: bool = False,
        min_password_length: int = 8
    ):
        self.store = store
        self.tokens = tokens
        self.passwords = passwords
        self.provisioner = provisioner
        self.validator = validator
        self.uniform_login_errors = uniform_login_errors
        self.min_password_length = min_password_length

    def register(self, email: str, password: str) -> UserSummary:
        """
        Register a new user with 2FA disabled

        Args:
            email: User email
            password: Plain text password

        Returns:
            UserSummary with id and email

        Raises:
            ValidationError: If email or password is empty, or the password
                is shorter than min_password_length or longer than bcrypt accepts
            EmailTaken: If the email is already registered
            StoreError: If the user could not be stored
        """
        if not email or not password:
            raise ValidationError("Email and password are required")
        if len(password) < self.min_password_length:
            raise ValidationError(
                f"Password must be at least {self.min_password_length} characters"
            )

        try:
            if self.store.find_by_email(email) is not None:
                raise EmailTaken()
            user_id = self.store.insert(email, self.passwords.hash(password))
        except EmailTaken:
            metrics.auth_registrations_total.labels(status="email_taken").inc()
            logger.warning(f"Registration rejected, email taken: {mask_email(email)}")
            raise
        except StoreError:
            metrics.auth_registrations_total.labels(status="error").inc()
            raise

        metrics.auth_registrations_total.labels(status="success").inc()
        logger.info(f"User registered: id={user_id} email={mask_email(email)}")

        return UserSummary(id=user_id, email=email)

    def login(self, email: str, password: str) -> LoginResult:
        """
        Password step

        Users with 2FA enabled receive a short-lived PendingSecondFactor
        token; users without it receive an Authenticated token directly.

        Args:
            email: User email
            password: Plain text password

        Returns:
            LoginResult with the issued token and the user's 2FA flag

        Raises:
            UserNotFound: If no user has this email (BadCredentials when
                uniform login errors are enabled)
            BadCredentials: If the password does not match
            StoreError: If the lookup failed
        """
        if not email or not password:
            raise ValidationError("Email and password are required")

        try:
            user = self.store.find_by_email(email)
        except StoreError:
            metrics.auth_login_attempts_total.labels(status="error").inc()
            raise

        if user is None:
            metrics.auth_login_attempts_total.labels(status="unknown_user").inc()
            logger.warning(f"Login failed, unknown user: {mask_email(email)}")
            if self.uniform_login_errors:
                self.passwords.burn(password)
                raise BadCredentials(UNIFORM_LOGIN_ERROR)
            raise UserNotFound()

        if not self.passwords.verify(password, user.password_hash):
            metrics.auth_login_attempts_total.labels(status="invalid_credentials").inc()
            logger.warning(f"Login failed, bad password: user_id={user.id}")
            if self.uniform_login_errors:
                raise BadCredentials(UNIFORM_LOGIN_ERROR)
            raise BadCredentials()

        if user.totp_enabled:
            token = self._mint(user.id, Stage.PENDING_SECOND_FACTOR)
            metrics.auth_login_attempts_total.labels(status="mfa_required").inc()
            logger.info(f"Password accepted, second factor required: user_id={user.id}")
        else:
            token = self._mint(user.id, Stage.AUTHENTICATED)
            metrics.auth_login_attempts_total.labels(status="success").inc()
            logger.info(f"Login successful without second factor: user_id={user.id}")

        return LoginResult(token=token, totp_enabled=user.totp_enabled)

    def setup_two_factor(self, step_token: str) -> TotpEnrollment:
        """
        Provision (or re-provision) TOTP for the token's user

        Accepts a valid token of any stage. Tokens issued before 2FA was
        enabled stay valid until they expire.

        Args:
            step_token: Encoded step token

        Returns:
            TotpEnrollment (secret, otpauth URI, QR data URI)

        Raises:
            InvalidStepToken: If the token fails signature or expiry checks
            UserNotFound: If the subject no longer exists
            StoreError: If the secret could not be persisted
        """
        try:
            token = self._validate(step_token, tuple(Stage))
            user = self.store.find_by_id(token.subject_id)
            if user is None:
                raise UserNotFound()
            enrollment = self.provisioner.provision(user)
        except TokenError as e:
            metrics.auth_mfa_setups_total.labels(status="invalid_token").inc()
            raise InvalidStepToken(e.message)
        except AuthFlowError as e:
            metrics.auth_mfa_setups_total.labels(status=_error_status(e)).inc()
            raise

        metrics.auth_mfa_setups_total.labels(status="success").inc()
        return enrollment

    def verify_two_factor(
        self,
        step_token: str,
        code: str,
        now: Optional[datetime] = None
    ) -> IssuedToken:
        """
        Second-factor step

        A failed code does not consume the PendingSecondFactor token; it can
        be retried until it expires. Codes are not single-use within their
        validity window.

        Args:
            step_token: Encoded PendingSecondFactor token
            code: TOTP code from the authenticator app
            now: Time to verify the code at (defaults to current time)

        Returns:
            Authenticated IssuedToken

        Raises:
            TokenError: If the token is invalid, expired or not PendingSecondFactor
            UserNotFound: If the subject no longer exists
            BadTwoFactorCode: If the code does not verify
            StoreError: If the lookup failed
        """
        try:
            token = self._validate(step_token, (Stage.PENDING_SECOND_FACTOR,))
            user = self.store.find_by_id(token.subject_id)
            if user is None:
                raise UserNotFound()
        except AuthFlowError as e:
            metrics.auth_mfa_verifications_total.labels(status=_error_status(e)).inc()
            raise

        if not self.validator.verify(user.totp_secret, code, now=now):
            metrics.auth_mfa_verifications_total.labels(status="invalid_code").inc()
            logger.warning(f"2FA code rejected: user_id={user.id}")
            raise BadTwoFactorCode()

        metrics.auth_mfa_verifications_total.labels(status="success").inc()
        logger.info(f"2FA verified: user_id={user.id}")

        return self._mint(user.id, Stage.AUTHENTICATED)

    def _mint(self, user_id: int, stage: Stage) -> IssuedToken:
        issued = self.tokens.mint(user_id, stage)
        metrics.auth_token_operations_total.labels(operation="mint", status=stage.value).inc()
        return issued

    def _validate(self, step_token: str, stages: tuple) -> StepToken:
        try:
            token = self.tokens.validate(step_token, stages)
        except TokenError as e:
            metrics.auth_token_operations_total.labels(operation="validate", status="rejected").inc()
            logger.info(f"Step token rejected: {e.message}")
            raise

        metrics.auth_token_operations_total.labels(operation="validate", status="accepted").inc()
        return token
