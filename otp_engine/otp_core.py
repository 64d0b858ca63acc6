"""
otp_core.py — Core library cho TOTP / HOTP (RFC 4226 / RFC 6238).

Mục tiêu:
- Chứa các hàm thuần (pure functions) để dùng trực tiếp bởi REST API / CLI.
- Không đọc/ghi file, không giữ state: secret do caller truyền vào mỗi lần gọi.
- Hỗ trợ HMAC-SHA1 / SHA256 / SHA512, 6 hoặc 8 chữ số, time step tùy chọn.

Pipeline:
    secret (Base32) -> decode -> raw key
    timestamp -> counter = floor(timestamp / time_step)
    (raw key, counter) -> HMAC -> dynamic truncate -> mã thập phân

Lưu ý bảo mật:
- Secret được sinh bằng CSPRNG (module `secrets`), không dùng `random`.
- So sánh mã bằng hmac.compare_digest (không lộ timing theo prefix).
- Không log secret hay mã OTP mong đợi.
"""

import hmac
import logging
import math
import secrets
import struct
import time
from typing import Optional, Tuple

from . import base32
from .algorithms import (
    DEFAULT_PARAMS,
    HashKind,
    OTPParams,
    validate_time_step,
    validate_window,
)
from .errors import InvalidConfiguration, MalformedCandidateCode

logger = logging.getLogger(__name__)

# --- Config / constants ----------------------------------------------------
MAX_COUNTER = 2 ** 64 - 1   # counter là unsigned 64-bit
DEFAULT_WINDOW = 1          # chấp nhận lệch ±1 time step
DEFAULT_LOOK_AHEAD = 1      # HOTP: cho phép counter của token đi trước 1 bước


# --- Base32 ----------------------------------------------------------------
def encode_base32(data: bytes) -> str:
    """Mã hóa bytes -> Base32 (có padding '=')."""
    return base32.encode(data)


def decode_base32(text: str) -> bytes:
    """
    Giải mã Base32 -> bytes. Chấp nhận chữ thường, thiếu padding, whitespace.

    Raises:
        InvalidEncoding: nếu có ký tự ngoài bảng chữ cái Base32.
    """
    return base32.decode(text)


def _decode_key(secret_b32: str) -> bytes:
    key = base32.decode(secret_b32)
    if not key:
        raise InvalidConfiguration("Secret is empty")
    return key


# --- Counter derivation ----------------------------------------------------
def time_counter(epoch_seconds: float, step: int) -> int:
    """
    counter = floor(epoch_seconds / step) theo RFC 6238 (T0 = 0).

    Raises:
        InvalidTimeStep: nếu step <= 0 hoặc không phải số nguyên.
    """
    validate_time_step(step)
    return int(epoch_seconds // step)


def remaining_seconds(epoch_seconds: float, step: int) -> int:
    """Số giây còn lại trước khi counter tăng lên (làm tròn lên, 59.5s -> 1)."""
    validate_time_step(step)
    return math.ceil(step - (epoch_seconds % step))


# --- RFC helpers -----------------------------------------------------------
def int_to_bytes(counter: int) -> bytes:
    """
    Chuyển counter sang 8-byte big-endian unsigned như RFC4226 yêu cầu.

    Ví dụ: int_to_bytes(1) -> b'\\x00\\x00\\x00\\x00\\x00\\x00\\x00\\x01'

    Raises:
        InvalidConfiguration: nếu counter nằm ngoài [0, 2**64).
    """
    if isinstance(counter, bool) or not isinstance(counter, int):
        raise InvalidConfiguration(f"Counter must be an integer, got {counter!r}")
    if not 0 <= counter <= MAX_COUNTER:
        raise InvalidConfiguration(f"Counter out of range: {counter}")
    return struct.pack(">Q", counter)


def hmac_digest(key: bytes, counter: int, hash_kind: HashKind = HashKind.SHA1) -> bytes:
    """HMAC(key, counter 8 byte) — 20/32/64 bytes cho SHA1/256/512."""
    if not key:
        raise InvalidConfiguration("HMAC key must not be empty")
    return hmac.new(key, int_to_bytes(counter), hash_kind.digestmod).digest()


def dynamic_truncate(digest: bytes) -> int:
    """
    Áp dụng dynamic truncation theo RFC4226.

    - offset = last_byte & 0x0F (luôn trong [0, 15])
    - Lấy 4 bytes từ offset, clear MSB (0x7F) cho byte đầu
    - Trả về integer 31-bit (không âm)

    Digest ngắn nhất là 20 bytes (SHA1) nên offset + 4 <= 19 luôn hợp lệ.
    """
    offset = digest[-1] & 0x0F
    return (
        ((digest[offset] & 0x7F) << 24)
        | ((digest[offset + 1] & 0xFF) << 16)
        | ((digest[offset + 2] & 0xFF) << 8)
        | (digest[offset + 3] & 0xFF)
    )


def format_code(value: int, digits: int) -> str:
    """value mod 10^digits, zero-pad đủ `digits` ký tự (82 -> '000082')."""
    return str(value % (10 ** digits)).zfill(digits)


def generate(key: bytes, counter: int, params: OTPParams = DEFAULT_PARAMS) -> str:
    """
    Sinh mã OTP từ raw key và counter.

    Steps:
    1. Message = 8-byte counter (big-endian)
    2. HMAC-<hash>(key, message)
    3. Dynamic truncate -> dbc
    4. otp = dbc % 10^digits, zero-pad

    Hàm thuần: cùng (key, counter, params) luôn cho cùng kết quả.
    """
    digest = hmac_digest(key, counter, params.hash_kind)
    logger.debug("HMAC-%s(counter=%d) -> %d bytes", params.hash_kind.value, counter, len(digest))
    return format_code(dynamic_truncate(digest), params.digits)


# --- Verifier --------------------------------------------------------------
def check_candidate(candidate, digits: int) -> str:
    """
    Kiểm tra nhanh mã user nhập: chỉ chữ số ASCII, đúng độ dài.

    Raises:
        MalformedCandidateCode: nếu mã không hợp lệ về hình thức.
    """
    if not isinstance(candidate, str):
        raise MalformedCandidateCode(f"Code must be a string, got {type(candidate).__name__}")
    if len(candidate) != digits:
        raise MalformedCandidateCode(f"Code must have {digits} digits, got {len(candidate)}")
    if not (candidate.isascii() and candidate.isdigit()):
        raise MalformedCandidateCode("Code must contain only digits 0-9")
    return candidate


def _window_offsets(window: int):
    # offset 0 trước (trường hợp phổ biến), sau đó -w..+w tăng dần
    yield 0
    for offset in range(-window, window + 1):
        if offset != 0:
            yield offset


def verify(
    key: bytes,
    candidate: str,
    counter: int,
    window: int = DEFAULT_WINDOW,
    params: OTPParams = DEFAULT_PARAMS,
) -> Optional[int]:
    """
    Xác minh mã trong cửa sổ [counter - window, counter + window].

    Trả về:
        offset (int) của counter khớp: 0 = đúng giờ, âm = mã cũ còn trong
        dung sai, dương = đồng hồ client chạy nhanh.
        None nếu không khớp hoặc mã sai định dạng (không raise).
    """
    validate_window(window)
    int_to_bytes(counter)  # counter gốc phải hợp lệ, chỉ bỏ qua counter lân cận
    try:
        check_candidate(candidate, params.digits)
    except MalformedCandidateCode as e:
        logger.debug("Rejected candidate without HMAC work: %s", e)
        return None

    for offset in _window_offsets(window):
        test_counter = counter + offset
        if not 0 <= test_counter <= MAX_COUNTER:
            continue
        expected = generate(key, test_counter, params)
        if hmac.compare_digest(expected, candidate):
            logger.debug("Code matched at offset %+d", offset)
            return offset
    logger.debug("No match in window ±%d around counter %d", window, counter)
    return None


# --- Secret generator ------------------------------------------------------
def generate_raw_secret(hash_kind: HashKind = HashKind.SHA1) -> bytes:
    """
    Sinh secret ngẫu nhiên (CSPRNG) với độ dài khuyến nghị cho hash:
    160/256/512 bit cho SHA1/SHA256/SHA512.
    """
    hash_kind = HashKind.parse(hash_kind)
    return secrets.token_bytes(hash_kind.recommended_bits // 8)


def generate_secret(hash_kind: HashKind = HashKind.SHA1) -> str:
    """
    Sinh secret ngẫu nhiên, trả về Base32 (có padding).

    Ví dụ (SHA1, 20 bytes): "JBSWY3DPEHPK3PXPJBSWY3DPEHPK3PXP"
    """
    hash_kind = HashKind.parse(hash_kind)
    raw = generate_raw_secret(hash_kind)
    logger.debug("Generated %d-bit secret for %s", len(raw) * 8, hash_kind.value)
    return base32.encode(raw)


# --- Public operations -----------------------------------------------------
def _resolve_counter(timestamp: Optional[float], counter: Optional[int], params: OTPParams) -> int:
    if counter is not None:
        if timestamp is not None:
            raise InvalidConfiguration("Pass either a timestamp or a counter, not both")
        return counter
    if timestamp is None:
        timestamp = time.time()
    return time_counter(timestamp, params.time_step)


def generate_code(
    secret_b32: str,
    timestamp: Optional[float] = None,
    params: OTPParams = DEFAULT_PARAMS,
    counter: Optional[int] = None,
) -> str:
    """
    Sinh mã OTP từ secret Base32.

    - counter != None -> HOTP với counter đó
    - ngược lại -> TOTP tại `timestamp` (epoch seconds, mặc định time.time())

    Raises:
        InvalidEncoding: secret Base32 không hợp lệ
        InvalidConfiguration: counter ngoài phạm vi, secret rỗng...
    """
    key = _decode_key(secret_b32)
    return generate(key, _resolve_counter(timestamp, counter, params), params)


def verify_code(
    secret_b32: str,
    candidate: str,
    timestamp: Optional[float] = None,
    window: int = DEFAULT_WINDOW,
    params: OTPParams = DEFAULT_PARAMS,
    counter: Optional[int] = None,
) -> Optional[int]:
    """
    Xác minh mã user nhập. Trả về offset khớp hoặc None.

    Mã sai / sai định dạng -> None (không raise). Chỉ lỗi encoding của
    secret hoặc cấu hình mới được raise.
    """
    key = _decode_key(secret_b32)
    return verify(key, candidate, _resolve_counter(timestamp, counter, params), window, params)


def hotp(secret_b32: str, counter: int, params: OTPParams = DEFAULT_PARAMS) -> str:
    """Sinh mã HOTP (RFC4226) cho counter cho trước."""
    return generate_code(secret_b32, params=params, counter=counter)


def totp(
    secret_b32: str,
    timestamp: Optional[float] = None,
    params: OTPParams = DEFAULT_PARAMS,
) -> Tuple[str, int]:
    """
    Sinh mã TOTP (RFC6238).

    Trả về:
        (code, remaining_seconds)
        - code: OTP string
        - remaining_seconds: số giây còn lại cho mã hiện tại
    """
    if timestamp is None:
        timestamp = time.time()
    code = generate_code(secret_b32, timestamp, params)
    return code, remaining_seconds(timestamp, params.time_step)


def verify_totp(
    secret_b32: str,
    code: str,
    window: int = DEFAULT_WINDOW,
    timestamp: Optional[float] = None,
    params: OTPParams = DEFAULT_PARAMS,
) -> bool:
    """Xác minh mã TOTP, cho phép lệch ±window time step."""
    return verify_code(secret_b32, code, timestamp, window, params) is not None


def verify_hotp(
    secret_b32: str,
    code: str,
    counter: int,
    look_ahead: int = DEFAULT_LOOK_AHEAD,
    params: OTPParams = DEFAULT_PARAMS,
) -> Tuple[bool, int]:
    """
    Xác minh mã HOTP, thử counter .. counter + look_ahead (resync khi token
    đã bấm trước vài lần).

    Trả về:
        (True, matched_counter + 1) nếu khớp — caller lưu counter mới này
        (False, counter) nếu không khớp
    """
    validate_window(look_ahead)
    int_to_bytes(counter)
    key = _decode_key(secret_b32)
    try:
        check_candidate(code, params.digits)
    except MalformedCandidateCode as e:
        logger.debug("Rejected HOTP candidate: %s", e)
        return False, counter

    for i in range(look_ahead + 1):
        test_counter = counter + i
        if test_counter > MAX_COUNTER:
            break
        if hmac.compare_digest(generate(key, test_counter, params), code):
            return True, test_counter + 1
    return False, counter
