"""Configuration settings for the HR platform domain core."""

import os


def get_database_uri():
    """Get database connection URI from environment variables."""
    uri = os.environ.get("DATABASE_URL")
    if uri:
        return uri

    host = os.environ.get("DB_HOST")
    if not host:
        return "sqlite:///hr_platform.db"

    port = os.environ.get("DB_PORT", "5432")
    password = os.environ.get("DB_PASSWORD", "hr_platform_pass")
    user = os.environ.get("DB_USER", "hr_platform_user")
    db_name = os.environ.get("DB_NAME", "hr_platform_db")
    return f"postgresql://{user}:{password}@{host}:{port}/{db_name}"


def get_redis_host_and_port():
    """Get Redis connection details from environment variables."""
    host = os.environ.get("REDIS_HOST", "localhost")
    port = int(os.environ.get("REDIS_PORT", "6379"))
    return dict(host=host, port=port)


def get_event_bus_config():
    """Get in-process event bus settings from environment variables."""
    return dict(
        history_size=int(os.environ.get("EVENT_HISTORY_SIZE", "1000")),
        failed_delivery_size=int(os.environ.get("EVENT_FAILED_DELIVERY_SIZE", "1000")),
        handler_timeout=float(os.environ.get("EVENT_HANDLER_TIMEOUT", "5.0")),
        blocking=os.environ.get("EVENT_BUS_BLOCKING", "false").lower() == "true",
        shutdown_grace_period=float(os.environ.get("EVENT_SHUTDOWN_GRACE", "5.0")),
    )


def get_event_fanout_enabled():
    """Whether domain events are forwarded to Redis pub/sub channels."""
    return os.environ.get("EVENT_FANOUT_ENABLED", "true").lower() == "true"


def get_log_level():
    """Get log level name from environment variables."""
    return os.environ.get("LOG_LEVEL", "INFO").upper()


def get_offboarding_checklist_size():
    """Get the number of offboarding checklist entries kept in memory."""
    return int(os.environ.get("OFFBOARDING_CHECKLIST_SIZE", "1000"))
