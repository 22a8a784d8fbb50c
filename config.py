import logging
import os
import sys
from dataclasses import dataclass, fields

import streamlit as st

from activation import DEFAULT_DURATION_HOURS, ContentKind

# --- إعدادات لوحة التحكم ---
# All console settings live in one explicit object that the shell passes
# around; nothing here is mutated after load.

ENV_PREFIX = "CONSOLE_"
LOG_FORMAT = "%(asctime)s - %(levelname)s - [%(threadName)s:%(name)s] - %(message)s"


@dataclass(frozen=True)
class ConsoleConfig:
    refresh_interval_seconds: int = 60
    timezone: str = "Asia/Beirut"
    public_site_url: str = "https://balagh.org"
    logo_path: str = "logo.png"
    storage_bucket: str = ""
    translate_url: str = "https://translate.googleapis.com/translate_a/single"
    translate_timeout: int = 10
    log_level: str = "INFO"
    text_direction: str = "ltr"
    default_activity_hours: int = DEFAULT_DURATION_HOURS[ContentKind.ACTIVITY]
    default_live_news_hours: int = DEFAULT_DURATION_HOURS[ContentKind.LIVE_NEWS]
    max_duration_hours: int = 168

    def default_hours_for(self, collection_name: str) -> int:
        """Duration used when an activity or live news document stores none."""
        if collection_name == "activities":
            return self.default_activity_hours
        return self.default_live_news_hours


def _coerce(value, target_type):
    if target_type is int:
        return int(value)
    if target_type is bool:
        return str(value).strip().lower() in ("1", "true", "yes", "on")
    return str(value)


def _read_secrets_section(name: str) -> dict:
    try:
        if name in st.secrets:
            return dict(st.secrets[name])
    except Exception as e:
        # لا يوجد ملف أسرار محلياً
        logging.getLogger(__name__).debug("No Streamlit secrets available: %s", e)
    return {}


def load_config(secrets: dict = None, environ: dict = None) -> ConsoleConfig:
    """
    Builds the console configuration.

    Precedence: the [console] table of Streamlit secrets, then CONSOLE_*
    environment variables, then the dataclass defaults.
    """
    if secrets is None:
        secrets = _read_secrets_section("console")
    if environ is None:
        environ = os.environ

    values = {}
    for field in fields(ConsoleConfig):
        env_key = ENV_PREFIX + field.name.upper()
        if field.name in secrets:
            values[field.name] = _coerce(secrets[field.name], type(field.default))
        elif env_key in environ:
            values[field.name] = _coerce(environ[env_key], type(field.default))

    config = ConsoleConfig(**values)
    if config.text_direction not in ("ltr", "rtl"):
        raise ValueError(f"text_direction must be 'ltr' or 'rtl', got {config.text_direction!r}")
    if config.refresh_interval_seconds < 1:
        raise ValueError("refresh_interval_seconds must be positive")
    if min(config.default_activity_hours, config.default_live_news_hours) < 1:
        raise ValueError("default durations must be at least 1 hour")
    return config


def setup_logging(level: str = "INFO"):
    """Configures root logging once for the console process."""
    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, level.upper(), logging.INFO))

    if not any(getattr(h, "_console_handler", False) for h in root_logger.handlers):
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        console_handler._console_handler = True
        root_logger.addHandler(console_handler)

    # Noisy libraries
    logging.getLogger("apscheduler.scheduler").setLevel(logging.WARNING)
    logging.getLogger("apscheduler.executors.default").setLevel(logging.WARNING)
    logging.getLogger("urllib3.connectionpool").setLevel(logging.INFO)

    return logging.getLogger(__name__)
