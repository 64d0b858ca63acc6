"""
otp_engine package
==================

Thư viện sinh và xác minh OTP (HOTP/TOTP) theo chuẩn RFC 4226 & RFC 6238.

──────────────────────────────────────────────
Giải thuật cốt lõi
──────────────────────────────────────────────
- HOTP (HMAC-based One-Time Password):
  code = Truncate(HMAC-<hash>(key=secret, msg=counter)) mod 10^digits
  → Counter do caller giữ và tăng dần (token event-based).

- TOTP (Time-based One-Time Password):
  HOTP với counter = floor(timestamp / time_step)
  → Mặc định time_step = 30 giây, 6 chữ số, SHA-1.

- Dynamic Truncation:
  Lấy 4 byte từ HMAC tại offset = (last byte & 0x0F), bỏ bit dấu → 31 bit.

- Cấu hình (OTPParams) luôn được truyền tường minh vào từng hàm,
  không có cấu hình global.

──────────────────────────────────────────────
Ví dụ sử dụng nhanh
──────────────────────────────────────────────
>>> from otp_engine import generate_secret, generate_code, verify_code, OTPParams
>>> params = OTPParams(hash_kind="SHA256", digits=8)
>>> secret = generate_secret(params.hash_kind)
>>> code = generate_code(secret, params=params)
>>> verify_code(secret, code, window=1, params=params)
0
"""

from .algorithms import DEFAULT_PARAMS, HashKind, OTPParams
from .errors import (
    ErrorKind,
    InvalidConfiguration,
    InvalidEncoding,
    InvalidTimeStep,
    MalformedCandidateCode,
    MalformedURI,
    OTPError,
    UnsupportedAlgorithm,
)
from .otp_core import (
    decode_base32,
    encode_base32,
    generate_code,
    generate_secret,
    hotp,
    totp,
    verify_code,
    verify_hotp,
    verify_totp,
)
from .provisioning import format_hotp_uri, format_otpauth_uri, parse_otpauth_uri

__version__ = "1.0.0"

__all__ = [
    "DEFAULT_PARAMS",
    "HashKind",
    "OTPParams",
    "ErrorKind",
    "OTPError",
    "InvalidEncoding",
    "InvalidTimeStep",
    "UnsupportedAlgorithm",
    "MalformedCandidateCode",
    "InvalidConfiguration",
    "MalformedURI",
    "encode_base32",
    "decode_base32",
    "generate_secret",
    "generate_code",
    "verify_code",
    "hotp",
    "totp",
    "verify_totp",
    "verify_hotp",
    "format_otpauth_uri",
    "format_hotp_uri",
    "parse_otpauth_uri",
]
