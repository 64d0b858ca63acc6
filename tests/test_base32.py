import base64
import os

import pyotp
import pytest

from otp_engine import base32
from otp_engine.errors import ErrorKind, InvalidEncoding, OTPError

# RFC 4648 section 10
RFC4648_VECTORS = [
    (b"", ""),
    (b"f", "MY======"),
    (b"fo", "MZXQ===="),
    (b"foo", "MZXW6==="),
    (b"foob", "MZXW6YQ="),
    (b"fooba", "MZXW6YTB"),
    (b"foobar", "MZXW6YTBOI======"),
]


@pytest.mark.parametrize("raw, encoded", RFC4648_VECTORS)
def test_rfc4648_vectors(raw, encoded):
    assert base32.encode(raw) == encoded
    assert base32.decode(encoded) == raw


def test_round_trip_all_lengths():
    for length in range(0, 65):
        raw = os.urandom(length)
        encoded = base32.encode(raw)
        assert base32.decode(encoded) == raw
        # same bits as the standard library encoder
        assert encoded == base64.b32encode(raw).decode("ascii")
        assert len(encoded.rstrip("=")) == -(-length * 8 // 5)
        assert len(encoded) % 8 == 0


def test_known_secret():
    assert base32.encode(b"Hello!\xde\xad\xbe\xef") == "JBSWY3DPEHPK3PXP"
    assert base32.encode(b"12345678901234567890") == "GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ"


def test_decode_is_lenient():
    assert base32.decode("mzxw6ytboi") == b"foobar"
    assert base32.decode("MZXW 6YTB\nOI======") == b"foobar"
    assert base32.decode("MZXW6===") == base32.decode("MZXW6")
    assert base32.decode("") == b""
    assert base32.decode("  ") == b""
    assert base32.decode(b"MZXW6YQ=") == b"foob"


def test_decode_drops_leftover_bits():
    assert base32.decode("MY") == b"f"
    assert base32.decode("A") == b""


@pytest.mark.parametrize("text", ["MZXW1", "MZXW8YQ", "MZ-XW", "ÄBCD"])
def test_decode_rejects_foreign_characters(text):
    with pytest.raises(InvalidEncoding) as excinfo:
        base32.decode(text)
    assert excinfo.value.kind is ErrorKind.INVALID_ENCODING
    assert isinstance(excinfo.value, OTPError)


@pytest.mark.parametrize("text", ["ß", "ı" * 8, "JBSWY3DPßPK3PXP", "ﬀ"])
def test_decode_rejects_non_ascii_text(text):
    # Unicode case mapping: "ß".upper() == "SS"
    with pytest.raises(InvalidEncoding):
        base32.decode(text)
    assert not base32.is_valid(text)


def test_decode_rejects_non_string():
    with pytest.raises(InvalidEncoding):
        base32.decode(12345)


def test_decode_rejects_non_ascii_bytes():
    with pytest.raises(InvalidEncoding):
        base32.decode(b"\xffAAA")


def test_encode_rejects_text():
    with pytest.raises(TypeError):
        base32.encode("foobar")


def test_is_valid():
    assert base32.is_valid("JBSWY3DPEHPK3PXP")
    assert base32.is_valid("jbswy3dp ehpk3pxp")
    assert not base32.is_valid("")
    assert not base32.is_valid("====")
    assert not base32.is_valid("JBSWY3DP1")


def test_decodes_pyotp_secrets():
    secret = pyotp.random_base32()
    assert base32.decode(secret) == base64.b32decode(secret)
