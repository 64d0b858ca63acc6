import logging
import sys

LOG_FORMAT = (
    "[%(asctime)s] [%(levelname)s] %(name)s "
    "%(message)s  (in %(filename)s:%(lineno)d)"
)


def build_logger(name: str = "otp_engine", level: int = logging.INFO) -> logging.Logger:
    logger = logging.getLogger(name)
    logger.setLevel(level)

    # Prevent creation of handlers more than once
    if logger.handlers:
        return logger

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(console_handler)

    return logger
