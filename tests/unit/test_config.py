from evdispatch import config


def test_yaml_values_are_applied(monkeypatch):
    monkeypatch.delenv("EVDISPATCH_DATABASE_URL", raising=False)
    monkeypatch.delenv("EVDISPATCH_LOG_LEVEL", raising=False)
    monkeypatch.setattr(config, "_yaml", {
        "database": {"url": "sqlite+aiosqlite:///tmp/x.db"},
        "log_level": "DEBUG",
        "geo_capture": {"timeout_seconds": 3.5},
        "report": {"default_sort": "customer"},
    })
    settings = config.get_settings()
    assert settings.database_url == "sqlite+aiosqlite:///tmp/x.db"
    assert settings.log_level == "DEBUG"
    assert settings.geo_capture.timeout_seconds == 3.5
    assert settings.geo_capture.high_accuracy is True
    assert settings.report.default_sort == "customer"
    assert settings.report.km_to_miles == 0.621371


def test_environment_overrides_yaml(monkeypatch):
    monkeypatch.setattr(config, "_yaml", {"database": {"url": "sqlite+aiosqlite:///from-yaml.db"}})
    monkeypatch.setenv("EVDISPATCH_DATABASE_URL", "sqlite+aiosqlite:///from-env.db")
    assert config.get_settings().database_url == "sqlite+aiosqlite:///from-env.db"


def test_defaults_without_yaml(monkeypatch):
    monkeypatch.delenv("EVDISPATCH_DATABASE_URL", raising=False)
    monkeypatch.delenv("EVDISPATCH_LOG_LEVEL", raising=False)
    monkeypatch.setattr(config, "_yaml", {})
    settings = config.get_settings()
    assert settings.log_level == "INFO"
    assert settings.geo_capture.settle_delay_seconds == 0.5
    assert settings.report.default_sort == "date"
