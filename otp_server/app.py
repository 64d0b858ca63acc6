"""
FLASK APP ENTRY POINT - OTP API SERVER
======================================

Thiết lập Flask app, cấu hình CORS, đăng ký API routes.

CÁC TÍNH NĂNG CHÍNH
- App factory `create_app()` (dễ test với config riêng)
- CORS enabled cho frontend integration
- Cấu hình mặc định (OTP_ALGORITHM, OTP_DIGITS, ...) có thể override bằng
  biến môi trường FLASK_OTP_* (ví dụ FLASK_OTP_DIGITS=8)
- Server stateless: không lưu secret, client gửi secret kèm mỗi request

Cấu hình sai (ví dụ OTP_PERIOD=0) làm create_app() raise ngay lúc khởi động.
"""

import logging

from flask import Flask, jsonify
from flask_cors import CORS

from otp_engine.algorithms import OTPParams, validate_window
from otp_engine.errors import InvalidConfiguration, OTPError
from otp_engine.log_handler import build_logger

DEFAULT_CONFIG = {
    "OTP_ALGORITHM": "SHA1",
    "OTP_DIGITS": 6,
    "OTP_PERIOD": 30,
    "OTP_WINDOW": 1,
    "OTP_MAX_WINDOW": 10,   # giới hạn window/look_ahead client gửi lên
    "OTP_ISSUER": "otp-tool",
    "OTP_ACCOUNT": "user@example",
}


def params_from_config(config) -> OTPParams:
    """Dựng OTPParams mặc định từ Flask config (validate một lần khi khởi động)."""
    return OTPParams.from_mapping({
        "algorithm": config["OTP_ALGORITHM"],
        "digits": config["OTP_DIGITS"],
        "period": config["OTP_PERIOD"],
    })


def create_app(test_config=None) -> Flask:
    app = Flask(__name__)
    app.config.from_mapping(DEFAULT_CONFIG)
    app.config.from_prefixed_env()
    if test_config is not None:
        app.config.from_mapping(test_config)

    build_logger("otp_server", logging.DEBUG if app.debug else logging.INFO)

    # Cấu hình OTP mặc định: immutable, lưu trong app.extensions (không global)
    app.extensions["otp_params"] = params_from_config(app.config)
    validate_window(app.config["OTP_MAX_WINDOW"])
    if validate_window(app.config["OTP_WINDOW"]) > app.config["OTP_MAX_WINDOW"]:
        raise InvalidConfiguration("OTP_WINDOW must not exceed OTP_MAX_WINDOW")

    # BẬT CORS cho frontend chạy trên domain/port khác
    CORS(app)

    from otp_server.routes import otp_bp
    app.register_blueprint(otp_bp)

    @app.errorhandler(OTPError)
    def handle_otp_error(e):
        # Lỗi encoding/cấu hình từ core: trả 400, không retry
        app.logger.info("OTP error (%s): %s", e.kind.value, e)
        return jsonify(success=False, **e.to_dict()), 400

    @app.errorhandler(ValueError)
    def handle_bad_value(e):
        # int("abc") etc. on request fields
        return jsonify(success=False, error=str(e)), 400

    @app.route("/", methods=["GET"])
    def index():
        """TRANG CHỦ API - thông tin cấu hình và danh sách endpoints."""
        return jsonify({
            "service": "otp-engine",
            "defaults": app.extensions["otp_params"].describe(),
            "endpoints": sorted(
                str(rule) for rule in app.url_map.iter_rules()
                if rule.endpoint.startswith("otp.")
            ),
        })

    app.logger.info("OTP server configured: %s", app.extensions["otp_params"].describe())
    return app


# KHỞI CHẠY SERVER (development)
if __name__ == "__main__":
    create_app().run(debug=True, host="0.0.0.0", port=5000)
