"""
Logging configuration for the CLOB client.

Console/file handlers via dictConfig, optional JSON output through
python-json-logger, and a filter that scrubs key material from every record.
"""

import copy
import logging
import logging.config
import re
from typing import Optional

from .config import ClobSettings, get_settings


class CredentialRedactionFilter(logging.Filter):
    """
    Redacts credentials from log records.

    - Ethereum private keys (0x + 64 hex chars)
    - secret=/passphrase=/key= style values
    - long base64 strings (API secrets)

    Records are never dropped, only sanitized.
    """

    PRIVATE_KEY_PATTERN = re.compile(r'0x[0-9a-fA-F]{64}(?![0-9a-fA-F])')
    # Keep the "secret=" prefix, replace the value
    API_SECRET_PATTERN = re.compile(
        r'((?:secret|passphrase|password|private_key)["\']?\s*[:=]\s*["\']?)[A-Za-z0-9+/=_-]{8,}["\']?',
        re.IGNORECASE
    )
    BASE64_SECRET_PATTERN = re.compile(r'[A-Za-z0-9+/_-]{40,}={0,2}')
    # Addresses are public and match the base64 shape
    ADDRESS_PATTERN = re.compile(r'0x[0-9a-fA-F]{40}')

    def filter(self, record: logging.LogRecord) -> bool:
        if record.msg:
            record.msg = self._redact(str(record.msg))

        if record.args:
            if isinstance(record.args, dict):
                record.args = {k: self._redact(str(v)) for k, v in record.args.items()}
            elif isinstance(record.args, tuple):
                record.args = tuple(self._redact(str(arg)) for arg in record.args)

        if record.exc_text:
            record.exc_text = self._redact(record.exc_text)

        return True

    def _redact(self, text: str) -> str:
        if not text:
            return text

        text = self.PRIVATE_KEY_PATTERN.sub('0x[REDACTED]', text)
        text = self.API_SECRET_PATTERN.sub(r'\1[REDACTED]', text)
        text = self.BASE64_SECRET_PATTERN.sub(self._redact_base64, text)
        return text

    def _redact_base64(self, match: re.Match) -> str:
        value = match.group(0)
        if self.ADDRESS_PATTERN.fullmatch(value):
            return value
        return value[:8] + '...[REDACTED]'


DEFAULT_LOGGING_CONFIG = {
    "version": 1,
    "disable_existing_loggers": False,
    "filters": {
        "redact": {
            "()": "polyclob.logging_config.CredentialRedactionFilter"
        }
    },
    "formatters": {
        "standard": {
            "format": "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "detailed": {
            "format": (
                "%(asctime)s [%(levelname)s] %(name)s:%(lineno)d "
                "- %(message)s (%(funcName)s)"
            ),
            "datefmt": "%Y-%m-%d %H:%M:%S"
        },
        "json": {
            "()": "pythonjsonlogger.json.JsonFormatter",
            "format": "%(asctime)s %(name)s %(levelname)s %(message)s"
        }
    },
    "handlers": {
        "console": {
            "class": "logging.StreamHandler",
            "level": "DEBUG",
            "formatter": "standard",
            "filters": ["redact"],
            "stream": "ext://sys.stdout"
        }
    },
    "loggers": {
        "polyclob": {
            "level": "INFO",
            "handlers": ["console"],
            "propagate": False
        }
    },
    "root": {
        "level": "WARNING",
        "handlers": ["console"]
    }
}


def build_logging_config(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: bool = False
) -> dict:
    """
    Build a dictConfig mapping.

    Args:
        level: Log level for the polyclob logger
        log_file: Optional rotating log file
        json_format: Use JSON formatting
    """
    config = copy.deepcopy(DEFAULT_LOGGING_CONFIG)
    package_logger = config["loggers"]["polyclob"]

    if level:
        package_logger["level"] = level.upper()

    if log_file:
        config["handlers"]["file"] = {
            "class": "logging.handlers.RotatingFileHandler",
            "level": "DEBUG",
            "formatter": "detailed",
            "filters": ["redact"],
            "filename": log_file,
            "maxBytes": 10485760,  # 10MB
            "backupCount": 5
        }
        package_logger["handlers"].append("file")

    if json_format:
        for handler in config["handlers"].values():
            handler["formatter"] = "json"

    return config


def setup_logging(
    level: Optional[str] = None,
    log_file: Optional[str] = None,
    json_format: bool = False,
    settings: Optional[ClobSettings] = None
) -> None:
    """
    Setup logging configuration.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR); settings.log_level if None
        log_file: Optional log file path
        json_format: Use JSON formatting
        settings: Settings to take the level from (loaded from env if None)
    """
    if level is None:
        level = (settings or get_settings()).log_level
    logging.config.dictConfig(build_logging_config(level, log_file, json_format))
