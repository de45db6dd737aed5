"""
Step Token Service - signed, short-lived bearer tokens for the login steps

A step token binds the password step to the TOTP step without server-side
session state. Its validity is self-contained: HMAC signature plus expiry.
"""

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Iterable, Optional

from jose import jwt, JWTError, ExpiredSignatureError

from authflow.exceptions import TokenError


class Stage(str, enum.Enum):
    """Position of a token in the login state machine"""
    PENDING_SECOND_FACTOR = "pending_2fa"
    AUTHENTICATED = "authenticated"


@dataclass(frozen=True)
class StepToken:
    """Decoded, verified step token"""
    subject_id: int
    stage: Stage
    issued_at: datetime
    expires_at: datetime


@dataclass(frozen=True)
class IssuedToken:
    """Encoded step token as handed to the client"""
    token: str
    stage: Stage
    expires_at: datetime

    @property
    def expires_in(self) -> int:
        return max(0, int((self.expires_at - datetime.now(timezone.utc)).total_seconds()))


class StepTokenService:
    """Mints and validates step tokens"""

    def __init__(
        self,
        secret_key: str,
        algorithm: str = "HS256",
        issuer: str = "authflow",
        pending_ttl: timedelta = timedelta(minutes=5),
        authenticated_ttl: timedelta = timedelta(hours=1)
    ):
        self.secret_key = secret_key
        self.algorithm = algorithm
        self.issuer = issuer
        self.ttls: Dict[Stage, timedelta] = {
            Stage.PENDING_SECOND_FACTOR: pending_ttl,
            Stage.AUTHENTICATED: authenticated_ttl,
        }

    def mint(self, user_id: int, stage: Stage, now: Optional[datetime] = None) -> IssuedToken:
        """
        Mint a token for a user at a stage

        Args:
            user_id: Subject user ID
            stage: Stage claim
            now: Issue time (defaults to current time)

        Returns:
            IssuedToken with the encoded JWT
        """
        now = now or datetime.now(timezone.utc)
        expires_at = now + self.ttls[stage]

        claims = {
            "iss": self.issuer,
            "sub": str(user_id),
            "userId": user_id,
            "stage": stage.value,
            "iat": int(now.timestamp()),
            "exp": int(expires_at.timestamp()),
        }

        token = jwt.encode(claims, self.secret_key, algorithm=self.algorithm)
        return IssuedToken(token=token, stage=stage, expires_at=expires_at)

    def validate(self, token: str, allowed_stages: Iterable[Stage] = tuple(Stage)) -> StepToken:
        """
        Validate signature, expiry and stage of a token

        Args:
            token: Encoded JWT
            allowed_stages: Stages the caller accepts

        Returns:
            Decoded StepToken

        Raises:
            TokenError: If the token is expired, forged, malformed or at a disallowed stage
        """
        if not token or not isinstance(token, str):
            raise TokenError("Missing token")

        try:
            payload = jwt.decode(
                token,
                self.secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={"require_exp": True, "require_iat": True, "require_sub": True}
            )
        except ExpiredSignatureError:
            raise TokenError("Token expired")
        except JWTError:
            raise TokenError("Invalid token")

        try:
            stage = Stage(payload["stage"])
            subject_id = int(payload["sub"])
        except (KeyError, ValueError, TypeError):
            raise TokenError("Invalid token")

        if stage not in tuple(allowed_stages):
            raise TokenError("Token not valid for this step")

        return StepToken(
            subject_id=subject_id,
            stage=stage,
            issued_at=datetime.fromtimestamp(payload["iat"], tz=timezone.utc),
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc)
        )
