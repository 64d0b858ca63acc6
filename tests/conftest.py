import pytest

from otp_engine import otp_core
from otp_engine.algorithms import HashKind, OTPParams
from otp_server import create_app

# RFC 6238 Appendix B seeds (ASCII), one per hash
RFC_KEYS = {
    HashKind.SHA1: b"12345678901234567890",
    HashKind.SHA256: b"12345678901234567890123456789012",
    HashKind.SHA512: b"1234567890123456789012345678901234567890123456789012345678901234",
}


@pytest.fixture
def rfc_key():
    return RFC_KEYS[HashKind.SHA1]


@pytest.fixture
def rfc_secret(rfc_key):
    return otp_core.encode_base32(rfc_key)


@pytest.fixture
def rfc_params():
    return OTPParams(hash_kind=HashKind.SHA1, digits=8, time_step=30)


@pytest.fixture
def app():
    return create_app({"TESTING": True})


@pytest.fixture
def client(app):
    return app.test_client()
