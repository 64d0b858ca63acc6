"""
provisioning.py — otpauth:// URI và QR code cho ứng dụng Authenticator.

- TOTP URI: otpauth://totp/{issuer}:{account}?secret=...&issuer=...&algorithm=...&digits=...&period=...
- HOTP URI: otpauth://hotp/{issuer}:{account}?secret=...&issuer=...&algorithm=...&digits=...&counter=N

Thứ tự và tên field cố định theo quy ước của Google Authenticator / Authy.
Secret trong URI luôn bỏ padding '='.
"""

import base64
import io
from typing import NamedTuple, Optional
from urllib.parse import parse_qs, unquote, urlsplit

import qrcode

from . import base32
from .algorithms import DEFAULT_PARAMS, OTPParams
from .errors import MalformedURI, OTPError

OTPAUTH_SCHEME = "otpauth"
OTP_TYPES = ("totp", "hotp")


class OTPAuthURI(NamedTuple):
    otp_type: str
    issuer: str
    account: str
    secret: str
    params: OTPParams
    counter: Optional[int] = None


def _common_query(secret_b32: str, issuer: str, params: OTPParams) -> str:
    secret = base32.strip_padding(base32.normalize(secret_b32))
    return (
        f"secret={secret}&issuer={issuer}"
        f"&algorithm={params.hash_kind.value}&digits={params.digits}"
    )


def format_otpauth_uri(
    secret_b32: str,
    account: str,
    issuer: str,
    params: OTPParams = DEFAULT_PARAMS,
) -> str:
    """
    Tạo otpauth:// URI cho TOTP — dễ import vào ứng dụng Authenticator.

    Note: issuer/account được chèn nguyên văn (không urlencode), caller tự
    encode nếu chứa ký tự đặc biệt.
    """
    base32.decode(secret_b32)
    return (
        f"otpauth://totp/{issuer}:{account}?{_common_query(secret_b32, issuer, params)}"
        f"&period={params.time_step}"
    )


def format_hotp_uri(
    secret_b32: str,
    account: str,
    issuer: str,
    params: OTPParams = DEFAULT_PARAMS,
    counter: int = 0,
) -> str:
    """Tạo otpauth:// URI cho HOTP (counter khởi đầu do verifier giữ)."""
    base32.decode(secret_b32)
    return (
        f"otpauth://hotp/{issuer}:{account}?{_common_query(secret_b32, issuer, params)}"
        f"&counter={counter}"
    )


def parse_otpauth_uri(uri: str) -> OTPAuthURI:
    """
    Phân tích otpauth:// URI (ngược với format_otpauth_uri / format_hotp_uri).

    - Label dạng "issuer:account" hoặc chỉ "account"; query `issuer` được ưu
      tiên nếu có.
    - Thiếu algorithm/digits/period -> dùng mặc định SHA1/6/30.

    Raises:
        MalformedURI: sai scheme/type, thiếu secret, counter không hợp lệ...
        OTPError: secret hoặc tham số thuật toán không hợp lệ
    """
    parts = urlsplit(uri)
    if parts.scheme.lower() != OTPAUTH_SCHEME:
        raise MalformedURI(f"Not an otpauth URI: {uri!r}")
    otp_type = parts.netloc.lower()
    if otp_type not in OTP_TYPES:
        raise MalformedURI(f"Unknown OTP type: {parts.netloc!r}")

    label = unquote(parts.path.lstrip("/"))
    if ":" in label:
        label_issuer, account = label.split(":", 1)
    else:
        label_issuer, account = "", label

    query = {key: values[0] for key, values in parse_qs(parts.query).items()}
    secret = query.get("secret")
    if not secret:
        raise MalformedURI("otpauth URI has no secret")
    if not base32.decode(secret):
        raise MalformedURI("otpauth URI secret is empty")

    try:
        params = OTPParams.from_mapping(query)
    except OTPError as e:
        raise type(e)(f"Invalid otpauth parameters: {e}") from e

    counter = None
    if otp_type == "hotp":
        try:
            counter = int(query.get("counter", "0"))
        except ValueError:
            raise MalformedURI(f"Invalid HOTP counter: {query.get('counter')!r}") from None

    return OTPAuthURI(
        otp_type=otp_type,
        issuer=query.get("issuer", label_issuer),
        account=account,
        secret=base32.strip_padding(base32.normalize(secret)),
        params=params,
        counter=counter,
    )


# --- QR code ---------------------------------------------------------------
def render_qr_png(uri: str, box_size: int = 10, border: int = 4) -> bytes:
    """Render URI thành ảnh QR code dạng PNG (bytes)."""
    qr = qrcode.QRCode(box_size=box_size, border=border)
    qr.add_data(uri)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")

    buffer = io.BytesIO()
    img.save(buffer, format="PNG")
    return buffer.getvalue()


def render_qr_data_uri(uri: str) -> str:
    """QR PNG dưới dạng data URI để nhúng thẳng vào <img src=...>."""
    img_str = base64.b64encode(render_qr_png(uri)).decode("ascii")
    return f"data:image/png;base64,{img_str}"
