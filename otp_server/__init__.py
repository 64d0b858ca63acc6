"""
OTP SERVER PACKAGE

Flask HTTP API bọc quanh otp_engine (stateless, không lưu secret).
Chạy development server:  flask --app otp_server run
"""

from .app import create_app

__all__ = ['create_app']
