import os
from datetime import timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError


class Config:
    """Default settings, overridable through the environment."""

    SECRET_KEY = os.getenv("SECRET_KEY", "change-this-secret")
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///clinica.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "change-this-jwt-secret")
    # tokens won't expire for now (adjust in prod)
    JWT_ACCESS_TOKEN_EXPIRES = False

    CLINIC_NAME = os.getenv("CLINIC_NAME", "Clínica Salud Integral")
    # Timezone the clinic writes appointment start times in
    CLINIC_TIMEZONE = os.getenv("CLINIC_TIMEZONE", "UTC")
    # How many recent appointments/patients the admin dashboard shows; parsed at startup
    DASHBOARD_RECENT_LIMIT = os.getenv("DASHBOARD_RECENT_LIMIT", "10")

    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")


def clinic_timezone(config):
    """tzinfo appointment start times are written in."""
    name = (config.get("CLINIC_TIMEZONE") or "UTC").strip()
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"CLINIC_TIMEZONE {name!r} is not a known timezone")


def resolve_settings(config):
    """Parse settings that need more than a string, so bad values fail at startup."""
    raw = config.get("DASHBOARD_RECENT_LIMIT")
    try:
        config["DASHBOARD_RECENT_LIMIT"] = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"DASHBOARD_RECENT_LIMIT must be an integer, got {raw!r}")
    config["CLINIC_TZINFO"] = clinic_timezone(config)
