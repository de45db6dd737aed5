"""
TOTP Service - secret provisioning and code verification (RFC 6238)
"""

import base64
import io
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

import pyotp
import qrcode

from authflow.exceptions import UserNotFound
from authflow.services.credential_store import CredentialStore, UserRecord
from authflow.utils.security import mask_email


logger = logging.getLogger(__name__)

# pyotp.random_base32() default: 32 base32 characters = 160 bits
SECRET_LENGTH = 32


@dataclass(frozen=True)
class TotpEnrollment:
    """Material handed to the client to enroll an authenticator app"""
    secret: str
    otpauth_url: str
    qr: str


class TOTPProvisioner:
    """Generates and persists a user's TOTP secret"""

    def __init__(
        self,
        store: CredentialStore,
        issuer: str,
        digits: int = 6,
        interval: int = 30
    ):
        self.store = store
        self.issuer = issuer
        self.digits = digits
        self.interval = interval

    def provision(self, user: UserRecord) -> TotpEnrollment:
        """
        Provision a fresh TOTP secret for the user

        Replaces any existing secret. The secret and the enabled flag are
        written together and the enrollment is returned only after that
        write succeeds.

        Args:
            user: User record

        Returns:
            TotpEnrollment with base32 secret, otpauth:// URI and QR data URI

        Raises:
            UserNotFound: If the user row disappeared
            StoreError: If the secret could not be persisted
        """
        secret = pyotp.random_base32(length=SECRET_LENGTH)

        totp = pyotp.TOTP(secret, digits=self.digits, interval=self.interval)
        otpauth_url = totp.provisioning_uri(
            name=user.email,
            issuer_name=self.issuer
        )
        qr = self._generate_qr_code(otpauth_url)

        if not self.store.update_totp(user.id, secret, True):
            raise UserNotFound()

        logger.info(f"TOTP provisioned for {mask_email(user.email)}")

        return TotpEnrollment(secret=secret, otpauth_url=otpauth_url, qr=qr)

    def _generate_qr_code(self, data: str) -> str:
        """
        Generate QR code as data URI

        Args:
            data: Data to encode in QR code

        Returns:
            QR code as data URI (can be used in <img src="">)
        """
        qr = qrcode.QRCode(
            version=1,
            error_correction=qrcode.constants.ERROR_CORRECT_L,
            box_size=10,
            border=4,
        )
        qr.add_data(data)
        qr.make(fit=True)

        img = qr.make_image(fill_color="black", back_color="white")

        buffer = io.BytesIO()
        img.save(buffer, format='PNG')
        buffer.seek(0)

        img_base64 = base64.b64encode(buffer.read()).decode()
        return f"data:image/png;base64,{img_base64}"


class TOTPValidator:
    """Checks submitted codes against a stored secret"""

    def __init__(self, valid_window: int = 1, digits: int = 6, interval: int = 30):
        self.valid_window = valid_window
        self.digits = digits
        self.interval = interval

    def verify(
        self,
        secret: Optional[str],
        code: Optional[str],
        now: Optional[Union[datetime, float]] = None
    ) -> bool:
        """
        Verify a TOTP code, accepting +/- valid_window steps of clock drift

        Never raises: a missing or malformed secret or code is a mismatch.

        Args:
            secret: Base32-encoded TOTP secret
            code: Code entered by the user
            now: Time to verify at (defaults to current time)

        Returns:
            True if the code matches
        """
        if not secret or not code:
            return False

        code = code.strip()
        if len(code) != self.digits or not code.isdigit():
            return False

        try:
            totp = pyotp.TOTP(secret, digits=self.digits, interval=self.interval)
            return totp.verify(code, for_time=now, valid_window=self.valid_window)
        except (ValueError, TypeError):
            return False
