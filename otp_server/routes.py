"""
OTP API ROUTES - FLASK BLUEPRINT

Tất cả endpoint đều stateless: client gửi secret (Base32) trong JSON body,
server không lưu gì. Tham số thuật toán (algorithm / digits / period) là
tùy chọn, mặc định lấy từ cấu hình app.

VÍ DỤ:
curl -X POST http://localhost:5000/api/generate_secret -H "Content-Type: application/json" -d "{}"
curl -X POST http://localhost:5000/api/totp -H "Content-Type: application/json" -d '{"secret": "JBSWY3DPEHPK3PXP"}'
"""

import time

from flask import Blueprint, current_app, jsonify, request

from otp_engine import otp_core
from otp_engine.algorithms import OTPParams
from otp_engine.errors import InvalidConfiguration, InvalidEncoding
from otp_engine.provisioning import format_hotp_uri, format_otpauth_uri, render_qr_data_uri

otp_bp = Blueprint("otp", __name__, url_prefix="/api")


def _json_body() -> dict:
    """Body JSON của request; body rỗng / không phải JSON -> {}."""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError("JSON body must be an object")
    return data


def _params(data) -> OTPParams:
    """Params của request, fallback về cấu hình mặc định của app."""
    return OTPParams.from_mapping(data, defaults=current_app.extensions["otp_params"])


def _missing(data, *fields):
    missing = [f for f in fields if f not in data]
    if missing:
        return jsonify({"error": f"Missing required field(s): {', '.join(missing)}"}), 400
    return None


def _int_field(data, name, default=None):
    value = data.get(name, default)
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValueError(f"{name} must be an integer")
    return int(value)


def _window_field(data, name, default):
    # mỗi offset = 1 lần HMAC, chặn trên bởi OTP_MAX_WINDOW
    value = _int_field(data, name, default)
    limit = current_app.config["OTP_MAX_WINDOW"]
    if value is not None and value > limit:
        raise InvalidConfiguration(f"{name} must not exceed {limit}, got {value}")
    return value


def _secret(data) -> str:
    secret = data["secret"]
    if not isinstance(secret, str):
        raise InvalidEncoding(f"secret must be a Base32 string, got {type(secret).__name__}")
    return secret


def _timestamp(data) -> float:
    value = data.get("timestamp")
    if value is None:
        return time.time()
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("timestamp must be a number (epoch seconds)")
    return value


@otp_bp.route("/generate_secret", methods=["POST"])
def generate_secret():
    """
    TẠO SECRET KEY MỚI

      curl -X POST http://localhost:5000/api/generate_secret -H "Content-Type: application/json" \
           -d '{"algorithm": "SHA256", "digits": 8, "account": "alice@example.com", "qr": true}'
    """
    data = _json_body()
    params = _params(data)
    account = data.get("account", current_app.config["OTP_ACCOUNT"])
    issuer = data.get("issuer", current_app.config["OTP_ISSUER"])

    secret = otp_core.generate_secret(params.hash_kind)
    code, remaining = otp_core.totp(secret, time.time(), params)
    totp_uri = format_otpauth_uri(secret, account, issuer, params)

    current_app.logger.info("Generated %s secret for %s:%s", params.hash_kind.value, issuer, account)

    body = {
        "success": True,
        "secret": secret,
        "account": account,
        "issuer": issuer,
        "totp_uri": totp_uri,
        "current_code": code,
        "remaining": remaining,
        "config": params.describe(),
    }
    if data.get("qr"):
        body["qr_code"] = render_qr_data_uri(totp_uri)
    return jsonify(body)


@otp_bp.route("/totp", methods=["POST"])
def get_totp():
    """
    LẤY MÃ TOTP (Time-based OTP)

    Input: {"secret": "...", "timestamp": 1111111109, "digits": 8, "period": 30, "algorithm": "SHA1"}
    Output: {"code": "...", "remaining": 21, "counter": 37037036}
    """
    data = _json_body()
    error = _missing(data, "secret")
    if error:
        return error
    params = _params(data)
    timestamp = _timestamp(data)

    code, remaining = otp_core.totp(_secret(data), timestamp, params)
    return jsonify({
        "code": code,
        "remaining": remaining,
        "counter": otp_core.time_counter(timestamp, params.time_step),
        "period": params.time_step,
    })


@otp_bp.route("/hotp", methods=["POST"])
def get_hotp():
    """
    LẤY MÃ HOTP (HMAC-based OTP)

    Input: {"secret": "...", "counter": 1, "digits": 6}
    """
    data = _json_body()
    error = _missing(data, "secret", "counter")
    if error:
        return error
    params = _params(data)

    counter = _int_field(data, "counter")
    code = otp_core.hotp(_secret(data), counter, params)
    return jsonify({"code": code, "counter": counter})


@otp_bp.route("/verify_totp", methods=["POST"])
def verify_totp():
    """
    XÁC MINH MÃ TOTP

    Input:
      {
        "secret": "...",
        "code": "123456",     # Mã OTP cần xác minh
        "window": 1,          # Cho phép sai lệch ±1 chu kỳ (mặc định theo config)
        "timestamp": ...      # Tùy chọn, mặc định thời gian hiện tại
      }

    Output:
      {"valid": true, "offset": 0}  hoặc  {"valid": false, "offset": null}
    """
    data = _json_body()
    error = _missing(data, "secret", "code")
    if error:
        return error
    params = _params(data)
    window = _window_field(data, "window", current_app.config["OTP_WINDOW"])

    offset = otp_core.verify_code(_secret(data), data["code"], _timestamp(data), window, params)
    current_app.logger.info("TOTP verification: %s", "valid" if offset is not None else "invalid")
    return jsonify({"valid": offset is not None, "offset": offset})


@otp_bp.route("/verify_hotp", methods=["POST"])
def verify_hotp():
    """
    XÁC MINH MÃ HOTP

    Input: {"secret": "...", "code": "123456", "counter": 1, "look_ahead": 1}

    Output:
      {"valid": true, "new_counter": 2}  # Nếu thành công
      {"valid": false}                   # Nếu thất bại

    new_counter là counter tiếp theo client nên lưu lại.
    """
    data = _json_body()
    error = _missing(data, "secret", "code", "counter")
    if error:
        return error
    params = _params(data)
    look_ahead = _window_field(data, "look_ahead", otp_core.DEFAULT_LOOK_AHEAD)

    valid, new_counter = otp_core.verify_hotp(
        _secret(data), data["code"], _int_field(data, "counter"), look_ahead, params
    )
    current_app.logger.info("HOTP verification: %s", "valid" if valid else "invalid")
    if valid:
        return jsonify({"valid": True, "new_counter": new_counter})
    return jsonify({"valid": False})


@otp_bp.route("/otpauth_uri", methods=["POST"])
def get_otpauth_uri():
    """
    LẤY URI ĐỂ TẠO QR CODE CHO AUTHENTICATOR APPS

    Input: {"secret": "...", "account": "user@gmail.com", "issuer": "MyApp", "counter": 0}
    """
    data = _json_body()
    error = _missing(data, "secret")
    if error:
        return error
    params = _params(data)
    account = data.get("account", current_app.config["OTP_ACCOUNT"])
    issuer = data.get("issuer", current_app.config["OTP_ISSUER"])

    return jsonify({
        "totp_uri": format_otpauth_uri(_secret(data), account, issuer, params),
        "hotp_uri": format_hotp_uri(
            _secret(data), account, issuer, params, counter=_int_field(data, "counter", 0)
        ),
    })


@otp_bp.route("/qr_code", methods=["POST"])
def get_qr_code():
    """
    TẠO QR CODE (PNG, base64 data URI) CHO TOTP URI

    Input: {"secret": "...", "account": "...", "issuer": "..."}
    """
    data = _json_body()
    error = _missing(data, "secret")
    if error:
        return error
    params = _params(data)
    account = data.get("account", current_app.config["OTP_ACCOUNT"])
    issuer = data.get("issuer", current_app.config["OTP_ISSUER"])

    totp_uri = format_otpauth_uri(_secret(data), account, issuer, params)
    return jsonify({"qr_code": render_qr_data_uri(totp_uri), "uri": totp_uri})
