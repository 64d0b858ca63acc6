"""
algorithms.py — Tham số thuật toán cho HOTP/TOTP.

OTPParams được validate một lần khi tạo, sau đó truyền tường minh vào mọi
hàm. Không có cấu hình "hiện tại" dùng chung cho cả process.
"""

import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .errors import InvalidConfiguration, InvalidTimeStep, UnsupportedAlgorithm

DEFAULT_DIGITS = 6
DEFAULT_TIME_STEP = 30
SUPPORTED_DIGITS = (6, 8)


class HashKind(Enum):
    SHA1 = "SHA1"
    SHA256 = "SHA256"
    SHA512 = "SHA512"

    @property
    def digestmod(self):
        return _DIGESTMODS[self]

    @property
    def digest_size(self) -> int:
        """Độ dài output HMAC tính bằng byte (20/32/64)."""
        return self.digestmod().digest_size

    @property
    def recommended_bits(self) -> int:
        """Độ dài secret (bit) RFC 6238 khuyến nghị cho hash này."""
        return _RECOMMENDED_BITS[self]

    @classmethod
    def parse(cls, value: Union[str, "HashKind"]) -> "HashKind":
        """
        Chấp nhận "SHA1", "sha-256", "HmacSHA512"... và trả về member tương ứng.

        Raises:
            UnsupportedAlgorithm: nếu không phải SHA1/SHA256/SHA512.
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise UnsupportedAlgorithm(f"Unsupported hash algorithm: {value!r}")
        name = value.strip().upper().replace("-", "")
        if name.startswith("HMAC"):
            name = name[4:]
        try:
            return cls(name)
        except ValueError:
            raise UnsupportedAlgorithm(
                f"Unsupported hash algorithm: {value!r} (expected SHA1, SHA256 or SHA512)"
            ) from None


_DIGESTMODS = {
    HashKind.SHA1: hashlib.sha1,
    HashKind.SHA256: hashlib.sha256,
    HashKind.SHA512: hashlib.sha512,
}

_RECOMMENDED_BITS = {
    HashKind.SHA1: 160,
    HashKind.SHA256: 256,
    HashKind.SHA512: 512,
}


def validate_time_step(time_step) -> int:
    # bool là subclass của int, phải loại riêng
    if isinstance(time_step, bool) or not isinstance(time_step, int):
        raise InvalidTimeStep(f"Time step must be a positive integer, got {time_step!r}")
    if time_step <= 0:
        raise InvalidTimeStep(f"Time step must be a positive integer, got {time_step}")
    return time_step


def validate_digits(digits) -> int:
    if isinstance(digits, bool) or digits not in SUPPORTED_DIGITS:
        raise InvalidConfiguration(f"Digits must be 6 or 8, got {digits!r}")
    return digits


def validate_window(window) -> int:
    if isinstance(window, bool) or not isinstance(window, int) or window < 0:
        raise InvalidConfiguration(f"Window must be a non-negative integer, got {window!r}")
    return window


@dataclass(frozen=True)
class OTPParams:
    hash_kind: HashKind = HashKind.SHA1
    digits: int = DEFAULT_DIGITS
    time_step: int = DEFAULT_TIME_STEP

    def __post_init__(self):
        object.__setattr__(self, "hash_kind", HashKind.parse(self.hash_kind))
        validate_digits(self.digits)
        validate_time_step(self.time_step)

    @classmethod
    def from_mapping(cls, data, defaults: "OTPParams" = None) -> "OTPParams":
        """
        Dựng params từ dict theo tên field của otpauth
        (algorithm / digits / period), thiếu thì lấy từ `defaults`.
        """
        defaults = defaults or DEFAULT_PARAMS
        try:
            digits = int(data.get("digits", defaults.digits))
            period = int(data.get("period", defaults.time_step))
        except (TypeError, ValueError) as e:
            raise InvalidConfiguration(f"digits/period must be integers: {e}") from e
        return cls(
            hash_kind=data.get("algorithm", defaults.hash_kind),
            digits=digits,
            time_step=period,
        )

    def describe(self) -> str:
        return (
            f"algorithm={self.hash_kind.value}, digits={self.digits}, "
            f"period={self.time_step}s"
        )


DEFAULT_PARAMS = OTPParams()
