"""Tests for OtpStore - single-use expiring login codes."""

import pytest

from auth.otp_store import OtpStore, generate_otp


@pytest.fixture
def otp_store(valkey):
    return OtpStore(valkey, expiry_seconds=300)


class TestGenerateOtp:

    def test_default_six_digits(self):
        code = generate_otp()

        assert len(code) == 6
        assert code.isdigit()

    def test_custom_length(self):
        assert len(generate_otp(4)) == 4

    def test_codes_vary(self):
        assert len({generate_otp() for _ in range(20)}) > 1


class TestPut:

    def test_stores_digest_with_ttl(self, otp_store, valkey):
        otp_store.put("9876543210", "123456")

        stored = valkey.store["otp:9876543210"]
        assert stored != "123456"
        assert len(stored) == 64
        assert valkey.ttls["otp:9876543210"] == 300

    def test_new_code_replaces_old(self, otp_store):
        otp_store.put("9876543210", "111111")
        otp_store.put("9876543210", "222222")

        assert otp_store.consume("9876543210", "111111") is False
        assert otp_store.consume("9876543210", "222222") is True


class TestConsume:

    def test_correct_code_consumed_once(self, otp_store):
        otp_store.put("9876543210", "123456")

        assert otp_store.consume("9876543210", "123456") is True
        assert otp_store.consume("9876543210", "123456") is False

    def test_wrong_code_keeps_stored_code(self, otp_store):
        otp_store.put("9876543210", "123456")

        assert otp_store.consume("9876543210", "654321") is False
        assert otp_store.consume("9876543210", "123456") is True

    def test_expired_code_rejected(self, otp_store, valkey):
        otp_store.put("9876543210", "123456")
        valkey.expire_now("otp:9876543210")

        assert otp_store.consume("9876543210", "123456") is False

    def test_codes_are_per_phone(self, otp_store):
        otp_store.put("9876543210", "123456")

        assert otp_store.consume("9123456789", "123456") is False

    def test_lost_delete_race_is_rejected(self, otp_store, valkey, monkeypatch):
        """Only the caller whose delete removed the entry wins."""
        otp_store.put("9876543210", "123456")
        monkeypatch.setattr(valkey, "delete", lambda key: False)

        assert otp_store.consume("9876543210", "123456") is False
