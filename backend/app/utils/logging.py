import logging

LOGGER_NAME = "speech_relay"


def get_logger(level: str = "INFO") -> logging.Logger:
    logger = logging.getLogger(LOGGER_NAME)
    if not logger.handlers:
        handler = logging.StreamHandler()
        fmt = logging.Formatter("[%(asctime)s] %(levelname)s %(name)s: %(message)s")
        handler.setFormatter(fmt)
        logger.addHandler(handler)
    logger.setLevel(level)
    return logger


def mask(s: str) -> str:
    if not s:
        return ""
    return (s[:3] + "***" + s[-2:]) if len(s) > 5 else "***"
