import logging

from otp_engine.log_handler import LOG_FORMAT, build_logger


def test_build_logger_is_idempotent():
    logger = build_logger("otp_engine.tests", logging.DEBUG)
    again = build_logger("otp_engine.tests", logging.INFO)
    assert logger is again
    assert len(logger.handlers) == 1
    assert logger.level == logging.INFO
    assert logger.handlers[0].formatter._fmt == LOG_FORMAT


def test_core_logs_pipeline_steps(caplog):
    from otp_engine import otp_core

    with caplog.at_level(logging.DEBUG, logger="otp_engine.otp_core"):
        otp_core.verify_code("GEZDGNBVGY3TQOJQGEZDGNBVGY3TQOJQ", "12a456", 59)
    assert "Rejected candidate without HMAC work" in caplog.text
    assert "GEZDGNBV" not in caplog.text
