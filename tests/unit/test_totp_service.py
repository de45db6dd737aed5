"""
Unit tests for TOTP provisioning and verification
"""

from unittest.mock import Mock

import pyotp
import pytest

from authflow.exceptions import StoreError, UserNotFound
from authflow.services.totp_service import TOTPProvisioner, TOTPValidator


NOW = 1_700_000_000


@pytest.fixture
def secret():
    return pyotp.random_base32()


def code_at(secret: str, offset_seconds: int) -> str:
    return pyotp.TOTP(secret).at(NOW + offset_seconds)


class TestTOTPValidator:
    """Test code verification and drift window"""

    @pytest.mark.parametrize("offset", [-30, 0, 30])
    def test_accepts_adjacent_steps(self, validator, secret, offset):
        assert validator.verify(secret, code_at(secret, offset), now=NOW) is True

    @pytest.mark.parametrize("offset", [-90, -60, 60, 90])
    def test_rejects_codes_outside_window(self, validator, secret, offset):
        code = code_at(secret, offset)
        # Skip the rare case where the distant code collides with one in the window
        if any(code == code_at(secret, near) for near in (-30, 0, 30)):
            pytest.skip("code collision")

        assert validator.verify(secret, code, now=NOW) is False

    def test_zero_window_accepts_only_current_step(self, secret):
        strict = TOTPValidator(valid_window=0)

        assert strict.verify(secret, code_at(secret, 0), now=NOW) is True
        if code_at(secret, 30) != code_at(secret, 0):
            assert strict.verify(secret, code_at(secret, 30), now=NOW) is False

    def test_deterministic(self, validator, secret):
        code = code_at(secret, 0)

        assert validator.verify(secret, code, now=NOW) == validator.verify(secret, code, now=NOW)

    def test_defaults_to_current_time(self, validator, secret):
        assert validator.verify(secret, pyotp.TOTP(secret).now()) is True

    @pytest.mark.parametrize("bad_secret", [None, "", "not base32 !!!"])
    def test_missing_or_malformed_secret_fails_closed(self, validator, bad_secret):
        assert validator.verify(bad_secret, "123456", now=NOW) is False

    @pytest.mark.parametrize("bad_code", [None, "", "12345", "1234567", "abcdef", "12 456"])
    def test_malformed_code_fails_closed(self, validator, secret, bad_code):
        assert validator.verify(secret, bad_code, now=NOW) is False

    def test_surrounding_whitespace_ignored(self, validator, secret):
        assert validator.verify(secret, f" {code_at(secret, 0)} ", now=NOW) is True


class TestTOTPProvisioner:
    """Test secret generation and persistence"""

    @pytest.fixture
    def user(self, memory_store, passwords):
        user_id = memory_store.insert("bob@example.com", passwords.hash("Secret123"))
        return memory_store.find_by_id(user_id)

    @pytest.fixture
    def provisioner(self, memory_store):
        return TOTPProvisioner(memory_store, issuer="authflow-test")

    def test_provision_persists_secret_and_flag(self, provisioner, memory_store, user):
        enrollment = provisioner.provision(user)

        stored = memory_store.find_by_id(user.id)
        assert stored.totp_enabled is True
        assert stored.totp_secret == enrollment.secret

    def test_secret_has_160_bits(self, provisioner, user):
        enrollment = provisioner.provision(user)

        # 32 base32 characters, 5 bits each
        assert len(enrollment.secret) == 32
        assert len(pyotp.TOTP(enrollment.secret).byte_secret()) == 20

    def test_enrollment_uri(self, provisioner, user):
        enrollment = provisioner.provision(user)

        assert enrollment.otpauth_url.startswith("otpauth://totp/authflow-test:bob%40example.com?")
        assert f"secret={enrollment.secret}" in enrollment.otpauth_url
        assert "issuer=authflow-test" in enrollment.otpauth_url

    def test_qr_is_png_data_uri(self, provisioner, user):
        enrollment = provisioner.provision(user)

        assert enrollment.qr.startswith("data:image/png;base64,")
        assert len(enrollment.qr) > 100

    def test_reprovision_overwrites_secret(self, provisioner, memory_store, user):
        first = provisioner.provision(user)
        second = provisioner.provision(user)

        assert first.secret != second.secret
        assert memory_store.find_by_id(user.id).totp_secret == second.secret

    def test_vanished_user_raises(self, memory_store, user):
        store = Mock(wraps=memory_store)
        store.update_totp.return_value = False
        provisioner = TOTPProvisioner(store, issuer="authflow-test")

        with pytest.raises(UserNotFound):
            provisioner.provision(user)

    def test_store_failure_returns_nothing(self, memory_store, user):
        """No enrollment is handed out unless the secret was stored"""
        store = Mock()
        store.update_totp.side_effect = StoreError(operation="update_totp")
        provisioner = TOTPProvisioner(store, issuer="authflow-test")

        with pytest.raises(StoreError):
            provisioner.provision(user)

        assert memory_store.find_by_id(user.id).totp_enabled is False
