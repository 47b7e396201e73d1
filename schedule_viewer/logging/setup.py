import re
import sys
import logging
from typing import Any

from loguru import logger

from schedule_viewer.config.settings import settings

# Matches the key=... query parameter of Sheets API URLs
API_KEY_QUERY_PATTERN = re.compile(r"([?&]key=)[^&\s]+")


def mask_secret(value: str) -> str:
    """Masks a secret, keeping only its edges when long enough to be recognisable."""
    if len(value) > 8:
        return value[:4] + "****" + value[-4:]
    return "********"


def sensitive_data_filter(record: dict[str, Any]) -> bool:
    """Filter function to mask sensitive data in log records."""
    sensitive_keys = ["key", "token", "password", "secret", "credential"]

    if record.get("extra"):
        for extra_key, extra_value in record["extra"].items():
            if any(sk in extra_key.lower() for sk in sensitive_keys) and isinstance(
                extra_value, str
            ):
                record["extra"][extra_key] = mask_secret(extra_value)

    # URLs carrying the API key in the query string
    record["message"] = API_KEY_QUERY_PATTERN.sub(r"\1********", record["message"])

    api_key = settings.google_sheets_api_key
    if api_key and api_key in record["message"]:
        record["message"] = record["message"].replace(api_key, "********")

    return True  # Keep the record after filtering/masking


def setup_logging() -> None:
    """Configures Loguru logger based on application settings."""
    logger.remove()  # Remove default handler

    logger.add(
        sys.stderr,
        level=settings.log_level.upper(),
        format=(
            "<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> - "
            "<level>{message}</level>"
        ),
        colorize=True,
        backtrace=True,
        diagnose=True,
        filter=sensitive_data_filter,
    )

    logger.info(f"Logging initialized with level: {settings.log_level}")

    # Intercept standard logging messages (httpx, werkzeug)
    class InterceptHandler(logging.Handler):
        def emit(self, record: logging.LogRecord) -> None:
            # Get corresponding Loguru level if it exists
            try:
                level = logger.level(record.levelname).name
            except ValueError:
                level = record.levelno

            # Find caller from where originated the logged message
            frame, depth = logging.currentframe(), 2
            while frame.f_code.co_filename == logging.__file__:
                frame = frame.f_back
                depth += 1

            logger.opt(depth=depth, exception=record.exc_info).log(
                level, record.getMessage()
            )

    logging.basicConfig(handlers=[InterceptHandler()], level=0, force=True)
    logger.info("Standard logging intercepted.")
