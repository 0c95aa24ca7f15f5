"""Unit tests for environment-driven configuration."""
import config


def test_defaults(monkeypatch):
    for name in (
        "DATABASE_URL", "DB_HOST", "EVENT_HISTORY_SIZE", "EVENT_FAILED_DELIVERY_SIZE",
        "EVENT_HANDLER_TIMEOUT", "EVENT_BUS_BLOCKING", "EVENT_SHUTDOWN_GRACE", "LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)

    assert config.get_database_uri() == "sqlite:///hr_platform.db"
    assert config.get_event_bus_config() == dict(
        history_size=1000,
        failed_delivery_size=1000,
        handler_timeout=5.0,
        blocking=False,
        shutdown_grace_period=5.0,
    )
    assert config.get_log_level() == "INFO"


def test_postgres_uri_from_parts(monkeypatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("DB_HOST", "db")
    monkeypatch.setenv("DB_USER", "hr")
    monkeypatch.setenv("DB_PASSWORD", "secret")
    monkeypatch.setenv("DB_NAME", "people")

    assert config.get_database_uri() == "postgresql://hr:secret@db:5432/people"


def test_event_bus_overrides(monkeypatch):
    monkeypatch.setenv("EVENT_BUS_BLOCKING", "TRUE")
    monkeypatch.setenv("EVENT_HANDLER_TIMEOUT", "0.5")
    monkeypatch.setenv("EVENT_FANOUT_ENABLED", "false")

    settings = config.get_event_bus_config()

    assert settings["blocking"] is True
    assert settings["handler_timeout"] == 0.5
    assert config.get_event_fanout_enabled() is False
