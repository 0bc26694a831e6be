"""
Logger configuration for FleetPilot.

Provider keys travel in query strings (ipapi, OpenWeatherMap, Gemini) and
httpx puts the full URL into its error messages, so every record passes
through a patcher that masks those parameters.
"""

import re
import sys
from pathlib import Path

from loguru import logger

from .config import get_config_path, mask_api_key

SECRET_QUERY_PARAMS = ("access_key", "appid", "key", "sessionId")

_SECRET_PARAM_RE = re.compile(
    r"([?&](?:%s)=)([^&'\"\s]+)" % "|".join(SECRET_QUERY_PARAMS)
)

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - <level>{message}</level>"
)
FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} - {message}"


def redact_secrets(text: str) -> str:
    """Mask API key values that appear as URL query parameters."""
    if not text:
        return text
    return _SECRET_PARAM_RE.sub(lambda m: m.group(1) + mask_api_key(m.group(2)), text)


def _redact_record(record) -> None:
    record["message"] = redact_secrets(record["message"])


def get_log_path() -> Path:
    """Get the log directory path."""
    return get_config_path() / "logs"


def setup_logging(config_service):
    """Configure Loguru logger based on application settings."""
    logger.remove()
    logger.configure(patcher=_redact_record)

    level = config_service.get_setting("log_level").upper()

    logger.add(sys.stderr, level=level, format=CONSOLE_FORMAT, colorize=True)

    if config_service.get_setting("log_to_file"):
        log_path = get_log_path()
        log_path.mkdir(parents=True, exist_ok=True)

        logger.add(
            log_path / "fleetpilot.log",
            level=level,
            rotation=f"{config_service.get_setting('max_log_size')} MB",
            retention="10 days",
            compression="zip",
            encoding="utf-8",
            format=FILE_FORMAT,
            enqueue=True,
            backtrace=True,
            diagnose=False,  # locals may hold API keys
        )

    logger.debug(f"Logger initialized at {level}")


__all__ = [
    "SECRET_QUERY_PARAMS",
    "get_log_path",
    "redact_secrets",
    "setup_logging",
]
