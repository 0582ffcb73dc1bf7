"""
Centralized configuration module for application-wide settings.

Settings are read from environment variables (a local ``.env`` file is loaded
first when present) through small getter functions, so tests can patch the
environment and reload this module to observe new values.
"""

import logging
import os
from datetime import datetime, time
from typing import Optional
from zoneinfo import ZoneInfo

from dotenv import load_dotenv

logger = logging.getLogger(__name__)

# Only load .env when the process did not already receive a database URL
if not os.getenv("DATABASE_URL"):
    load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("true", "1", "yes")


def _parse_clock(raw: str, name: str) -> Optional[time]:
    raw = raw.strip()
    if not raw:
        return None
    try:
        return time.fromisoformat(raw)
    except ValueError:
        logger.warning(
            f"Invalid time '{raw}' in {name}; ignoring it",
            extra={"context": {"setting": name, "value": raw}},
        )
        return None


# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the application timezone from the TZ environment variable.

    Appointment dates are wall-clock times in this zone. Defaults to UTC so
    tests stay deterministic; an invalid name also falls back to UTC.
    """
    tz_name = os.getenv("TZ", "UTC")

    try:
        return ZoneInfo(tz_name)
    except Exception as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in TZ environment variable. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


APP_TZ = get_app_timezone()


def local_now() -> datetime:
    """Current wall-clock time in APP_TZ, as a naive datetime."""
    return datetime.now(APP_TZ).replace(tzinfo=None)


# ===========================
# Persistence / Security
# ===========================


def get_database_url() -> str:
    return os.getenv("DATABASE_URL", "sqlite:///./clinic.db")


def get_secret_key() -> str:
    return os.getenv("FLASK_SECRET_KEY", "dev-secret-change-me")


# ===========================
# Cascade Configuration
# ===========================


def get_follow_up_default_time() -> time:
    """
    Time of day given to follow-up appointments derived from an injection.

    Environment Variables:
        FOLLOW_UP_DEFAULT_TIME: HH:MM (default 10:00)
    """
    return _parse_clock(
        os.getenv("FOLLOW_UP_DEFAULT_TIME", "10:00"), "FOLLOW_UP_DEFAULT_TIME"
    ) or time(10, 0)


def get_next_appointment_default_time() -> Optional[time]:
    """
    Fallback time for a follow-up's next appointment when only a date is given.

    Environment Variables:
        NEXT_APPOINTMENT_DEFAULT_TIME: HH:MM, empty by default. When empty a
            next appointment without a time derives no appointment at all.
    """
    return _parse_clock(
        os.getenv("NEXT_APPOINTMENT_DEFAULT_TIME", ""),
        "NEXT_APPOINTMENT_DEFAULT_TIME",
    )


FOLLOW_UP_DEFAULT_TIME = get_follow_up_default_time()
NEXT_APPOINTMENT_DEFAULT_TIME = get_next_appointment_default_time()

FOLLOW_UP_APPOINTMENT_NOTES = "Post-injection check-up scheduled automatically"
NEXT_APPOINTMENT_NOTES = "Appointment scheduled after follow-up"


# ===========================
# Patient Record Configuration
# ===========================


def get_normalize_cpa() -> bool:
    """
    Whether cpa_managed is cleared when sedation is not required.

    Environment Variables:
        NORMALIZE_CPA_WITHOUT_SEDATION: Default 'false' (keep the value as
            entered). Truthy values: "true", "1", "yes".
    """
    return _env_flag("NORMALIZE_CPA_WITHOUT_SEDATION")


NORMALIZE_CPA_WITHOUT_SEDATION = get_normalize_cpa()


# ===========================
# Dashboard / Logging
# ===========================


def get_dashboard_list_limit() -> int:
    raw = os.getenv("DASHBOARD_LIST_LIMIT", "5")
    try:
        return max(1, int(raw))
    except ValueError:
        logger.warning(f"Invalid DASHBOARD_LIST_LIMIT '{raw}', using 5")
        return 5


DASHBOARD_LIST_LIMIT = get_dashboard_list_limit()


def get_log_settings() -> dict:
    return {
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "use_json_format": _env_flag("LOG_JSON"),
        "log_to_file": _env_flag("LOG_TO_FILE", "true"),
    }


def log_clinic_config():
    """Log the active configuration once at application startup."""
    logger.info(
        "Clinic configuration initialized",
        extra={
            "context": {
                "timezone": str(APP_TZ),
                "follow_up_default_time": FOLLOW_UP_DEFAULT_TIME.strftime("%H:%M"),
                "next_appointment_default_time": (
                    NEXT_APPOINTMENT_DEFAULT_TIME.strftime("%H:%M")
                    if NEXT_APPOINTMENT_DEFAULT_TIME
                    else None
                ),
                "normalize_cpa": NORMALIZE_CPA_WITHOUT_SEDATION,
            }
        },
    )
