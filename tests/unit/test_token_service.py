"""
Unit tests for step tokens

Covers minting, signature checks, expiry and stage enforcement.
"""

from datetime import datetime, timedelta, timezone

import pytest
from jose import jwt

from authflow.exceptions import TokenError
from authflow.services.token_service import Stage, StepTokenService


class TestMint:
    """Test token minting"""

    def test_pending_token_uses_short_ttl(self, token_service):
        now = datetime.now(timezone.utc)
        issued = token_service.mint(7, Stage.PENDING_SECOND_FACTOR, now=now)

        assert issued.stage == Stage.PENDING_SECOND_FACTOR
        assert issued.expires_at == now + timedelta(minutes=5)
        assert 0 < issued.expires_in <= 300

    def test_authenticated_token_uses_long_ttl(self, token_service):
        now = datetime.now(timezone.utc)
        issued = token_service.mint(7, Stage.AUTHENTICATED, now=now)

        assert issued.expires_at == now + timedelta(hours=1)

    def test_claims(self, token_service):
        issued = token_service.mint(7, Stage.PENDING_SECOND_FACTOR)
        claims = jwt.get_unverified_claims(issued.token)

        assert claims["sub"] == "7"
        assert claims["userId"] == 7
        assert claims["stage"] == "pending_2fa"
        assert claims["exp"] > claims["iat"]


class TestValidate:
    """Test token validation"""

    def test_round_trip(self, token_service):
        issued = token_service.mint(42, Stage.AUTHENTICATED)

        token = token_service.validate(issued.token)

        assert token.subject_id == 42
        assert token.stage == Stage.AUTHENTICATED
        assert token.expires_at > token.issued_at

    def test_expired_token_rejected(self, token_service):
        past = datetime.now(timezone.utc) - timedelta(minutes=10)
        issued = token_service.mint(42, Stage.PENDING_SECOND_FACTOR, now=past)

        with pytest.raises(TokenError, match="expired"):
            token_service.validate(issued.token)

    def test_token_signed_with_other_key_rejected(self, token_service):
        forger = StepTokenService(secret_key="another-secret-another-secret-0123456789")
        issued = forger.mint(42, Stage.AUTHENTICATED)

        with pytest.raises(TokenError):
            token_service.validate(issued.token)

    def test_tampered_payload_rejected(self, token_service):
        issued = token_service.mint(42, Stage.PENDING_SECOND_FACTOR)
        header, payload, signature = issued.token.split(".")
        forged_payload = jwt.encode(
            {"sub": "42", "stage": "authenticated", "iat": 0, "exp": 9999999999, "iss": "authflow"},
            "irrelevant-key-irrelevant-key-0123456789"
        ).split(".")[1]

        with pytest.raises(TokenError):
            token_service.validate(".".join([header, forged_payload, signature]))

    def test_stage_not_allowed(self, token_service):
        issued = token_service.mint(42, Stage.AUTHENTICATED)

        with pytest.raises(TokenError, match="not valid for this step"):
            token_service.validate(issued.token, (Stage.PENDING_SECOND_FACTOR,))

    def test_missing_stage_claim_rejected(self, token_service):
        now = int(datetime.now(timezone.utc).timestamp())
        token = jwt.encode(
            {"sub": "42", "iat": now, "exp": now + 60, "iss": "authflow"},
            token_service.secret_key,
            algorithm="HS256"
        )

        with pytest.raises(TokenError):
            token_service.validate(token)

    def test_wrong_issuer_rejected(self, token_service):
        other = StepTokenService(secret_key=token_service.secret_key, issuer="someone-else")
        issued = other.mint(42, Stage.AUTHENTICATED)

        with pytest.raises(TokenError):
            token_service.validate(issued.token)

    @pytest.mark.parametrize("garbage", ["", "not.a.jwt", "abc", None])
    def test_garbage_rejected(self, token_service, garbage):
        with pytest.raises(TokenError):
            token_service.validate(garbage)
