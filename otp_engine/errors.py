"""
errors.py — Các loại lỗi của OTP engine.

Chỉ có một exception duy nhất (OTPError) mang theo `kind` thuộc một tập đóng
(ErrorKind). Các subclass bên dưới chỉ để gán sẵn `kind`, giúp caller có thể
`except InvalidEncoding` hoặc `except OTPError` rồi kiểm tra `err.kind`.

Lưu ý: mã OTP sai KHÔNG phải là lỗi — verifier luôn trả về kết quả
(offset hoặc None), không raise.
"""

from enum import Enum


class ErrorKind(Enum):
    INVALID_ENCODING = "invalid_encoding"
    INVALID_TIME_STEP = "invalid_time_step"
    UNSUPPORTED_ALGORITHM = "unsupported_algorithm"
    MALFORMED_CANDIDATE_CODE = "malformed_candidate_code"
    INVALID_CONFIGURATION = "invalid_configuration"
    MALFORMED_URI = "malformed_uri"


class OTPError(ValueError):
    """Lỗi encoding / cấu hình của OTP engine."""

    kind = ErrorKind.INVALID_CONFIGURATION

    def __init__(self, message: str, kind: ErrorKind = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind

    def to_dict(self) -> dict:
        return {"error": str(self), "kind": self.kind.value}


class InvalidEncoding(OTPError):
    kind = ErrorKind.INVALID_ENCODING


class InvalidTimeStep(OTPError):
    kind = ErrorKind.INVALID_TIME_STEP


class UnsupportedAlgorithm(OTPError):
    kind = ErrorKind.UNSUPPORTED_ALGORITHM


class MalformedCandidateCode(OTPError):
    kind = ErrorKind.MALFORMED_CANDIDATE_CODE


class InvalidConfiguration(OTPError):
    kind = ErrorKind.INVALID_CONFIGURATION


class MalformedURI(OTPError):
    kind = ErrorKind.MALFORMED_URI
