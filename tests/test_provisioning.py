import base64

import pytest

from otp_engine import otp_core
from otp_engine.algorithms import HashKind, OTPParams
from otp_engine.errors import ErrorKind, InvalidEncoding, MalformedURI, UnsupportedAlgorithm
from otp_engine.provisioning import (
    format_hotp_uri,
    format_otpauth_uri,
    parse_otpauth_uri,
    render_qr_data_uri,
    render_qr_png,
)

PNG_MAGIC = b"\x89PNG\r\n\x1a\n"


def test_totp_uri_exact_format():
    uri = format_otpauth_uri("JBSWY3DPEHPK3PXP", "alice@example.com", "MyService")
    assert uri == (
        "otpauth://totp/MyService:alice@example.com?secret=JBSWY3DPEHPK3PXP"
        "&issuer=MyService&algorithm=SHA1&digits=6&period=30"
    )


def test_totp_uri_strips_padding_and_uses_params():
    secret = otp_core.encode_base32(b"12345678901234567890123456789012")
    assert secret.endswith("====")
    params = OTPParams(HashKind.SHA256, 8, 60)
    uri = format_otpauth_uri(secret.lower(), "bob", "Acme", params)
    assert uri == (
        f"otpauth://totp/Acme:bob?secret={secret.rstrip('=')}"
        "&issuer=Acme&algorithm=SHA256&digits=8&period=60"
    )


def test_hotp_uri():
    uri = format_hotp_uri("JBSWY3DPEHPK3PXP", "alice", "MyService", counter=5)
    assert uri == (
        "otpauth://hotp/MyService:alice?secret=JBSWY3DPEHPK3PXP"
        "&issuer=MyService&algorithm=SHA1&digits=6&counter=5"
    )


def test_uri_rejects_bad_secret():
    with pytest.raises(InvalidEncoding):
        format_otpauth_uri("JBSWY3DP!", "alice", "MyService")


def test_parse_round_trip():
    secret = otp_core.generate_secret(HashKind.SHA512)
    params = OTPParams(HashKind.SHA512, 8, 45)
    parsed = parse_otpauth_uri(format_otpauth_uri(secret, "alice", "Acme", params))
    assert parsed.otp_type == "totp"
    assert parsed.issuer == "Acme"
    assert parsed.account == "alice"
    assert parsed.params == params
    assert parsed.counter is None
    assert otp_core.decode_base32(parsed.secret) == otp_core.decode_base32(secret)


def test_parse_hotp_and_defaults():
    parsed = parse_otpauth_uri("otpauth://hotp/Acme:bob?secret=JBSWY3DPEHPK3PXP&counter=7")
    assert parsed.otp_type == "hotp"
    assert parsed.counter == 7
    assert parsed.issuer == "Acme"
    assert parsed.params == OTPParams()


def test_parse_label_without_issuer():
    parsed = parse_otpauth_uri("otpauth://totp/carol%40example.com?secret=jbswy3dpehpk3pxp===")
    assert parsed.account == "carol@example.com"
    assert parsed.issuer == ""
    assert parsed.secret == "JBSWY3DPEHPK3PXP"


@pytest.mark.parametrize("uri", [
    "https://totp/Acme:bob?secret=JBSWY3DPEHPK3PXP",
    "otpauth://motp/Acme:bob?secret=JBSWY3DPEHPK3PXP",
    "otpauth://totp/Acme:bob?issuer=Acme",
    "otpauth://hotp/Acme:bob?secret=JBSWY3DPEHPK3PXP&counter=x",
])
def test_parse_rejects_malformed(uri):
    with pytest.raises(MalformedURI) as excinfo:
        parse_otpauth_uri(uri)
    assert excinfo.value.kind is ErrorKind.MALFORMED_URI


def test_parse_rejects_bad_algorithm():
    with pytest.raises(UnsupportedAlgorithm):
        parse_otpauth_uri("otpauth://totp/Acme:bob?secret=JBSWY3DPEHPK3PXP&algorithm=MD5")


def test_render_qr_png():
    png = render_qr_png("otpauth://totp/Acme:bob?secret=JBSWY3DPEHPK3PXP")
    assert png.startswith(PNG_MAGIC)


def test_render_qr_data_uri():
    data_uri = render_qr_data_uri("otpauth://totp/Acme:bob?secret=JBSWY3DPEHPK3PXP")
    prefix = "data:image/png;base64,"
    assert data_uri.startswith(prefix)
    assert base64.b64decode(data_uri[len(prefix):]).startswith(PNG_MAGIC)
