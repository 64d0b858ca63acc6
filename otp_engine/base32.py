"""
base32.py — Codec Base32 (RFC 4648) cho OTP secret.

Khác với base64.b32decode, decoder này "dễ tính" giống các app authenticator:
- Padding '=' là tùy chọn
- Chấp nhận chữ thường và whitespace
- Các bit thừa không đủ 1 byte ở cuối bị bỏ đi

Ký tự ngoài bảng chữ cái (kể cả ký tự non-ASCII) luôn bị từ chối,
không bao giờ bị thay thế ngầm.
"""

from typing import Union

from .errors import InvalidEncoding

ALPHABET = "ABCDEFGHIJKLMNOPQRSTUVWXYZ234567"
PADDING = "="

_LOOKUP = {ch: index for index, ch in enumerate(ALPHABET)}


def encode(data: bytes) -> str:
    """
    Mã hóa bytes -> Base32 chữ hoa, padding '=' cho đủ bội số của 8.

    Input rỗng -> chuỗi rỗng (không padding).
    """
    if isinstance(data, str):
        raise TypeError("encode() expects bytes, not str")
    data = bytes(data)
    if not data:
        return ""

    out = []
    buffer = 0
    bits = 0
    for byte in data:
        buffer = (buffer << 8) | byte
        bits += 8
        while bits >= 5:
            bits -= 5
            out.append(ALPHABET[(buffer >> bits) & 0x1F])
        buffer &= (1 << bits) - 1

    # nhóm cuối chưa đủ 5 bit: căn trái
    if bits:
        out.append(ALPHABET[(buffer << (5 - bits)) & 0x1F])

    out.append(PADDING * (-len(out) % 8))
    return "".join(out)


def normalize(text: Union[str, bytes]) -> str:
    """
    Bỏ padding và whitespace, chuyển chữ hoa.

    Raises:
        InvalidEncoding: nếu input không phải str/bytes hoặc chứa ký tự
            non-ASCII (upper() kiểu Unicode biến 'ß' thành 'SS').
    """
    if isinstance(text, (bytes, bytearray)):
        try:
            text = bytes(text).decode("ascii")
        except UnicodeDecodeError as e:
            raise InvalidEncoding("Base32 text must be ASCII") from e
    if not isinstance(text, str):
        raise InvalidEncoding(f"Base32 text must be a string, got {type(text).__name__}")
    for position, ch in enumerate(text):
        if not ch.isascii():
            raise InvalidEncoding(f"Invalid Base32 character {ch!r} at position {position}")
    return "".join(text.split()).replace(PADDING, "").upper()


def decode(text: Union[str, bytes]) -> bytes:
    """
    Giải mã Base32 -> bytes.

    Raises:
        InvalidEncoding: nếu có ký tự ngoài A-Z2-7 (sau khi bỏ padding và
            whitespace).
    """
    cleaned = normalize(text)

    out = bytearray()
    buffer = 0
    bits = 0
    for position, ch in enumerate(cleaned):
        value = _LOOKUP.get(ch)
        if value is None:
            raise InvalidEncoding(
                f"Invalid Base32 character {ch!r} at position {position}"
            )
        buffer = (buffer << 5) | value
        bits += 5
        if bits >= 8:
            bits -= 8
            out.append((buffer >> bits) & 0xFF)
            buffer &= (1 << bits) - 1

    # bit thừa (< 8) là phần padding của encode, bỏ đi
    return bytes(out)


def is_valid(text: Union[str, bytes]) -> bool:
    """True nếu text khác rỗng và chỉ gồm ký tự Base32."""
    try:
        cleaned = normalize(text)
    except InvalidEncoding:
        return False
    return bool(cleaned) and all(ch in _LOOKUP for ch in cleaned)


def strip_padding(text: str) -> str:
    return text.rstrip(PADDING)
