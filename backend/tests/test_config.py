import pytest
from fastapi.testclient import TestClient
from pydantic import ValidationError
from pymongo.errors import ServerSelectionTimeoutError

from authservice import main
from authservice.core.config import Settings, env_file_for, parse_duration


@pytest.mark.parametrize(
    "value, expected",
    [(90, 90), ("90", 90), ("30s", 30), ("15m", 900), ("1h", 3600), ("7d", 604800), (" 2H ", 7200)],
)
def test_parse_duration(value, expected):
    assert parse_duration(value) == expected


@pytest.mark.parametrize("value", ["", "soon", "1w", "-5m"])
def test_parse_duration_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_duration(value)


def test_settings_read_environment(monkeypatch):
    monkeypatch.setenv("MONGO_URI", "mongodb://db:27017/auth")
    monkeypatch.setenv("JWT_SECRET_KEY", "from-env")
    monkeypatch.setenv("JWT_EXPIRES_IN", "15m")
    monkeypatch.setenv("ALLOWED_ORIGINS", "http://localhost:3000, https://app.example.com")
    monkeypatch.setenv("APP_ENV", "Production")

    settings = Settings(_env_file=None)

    assert settings.mongo_uri == "mongodb://db:27017/auth"
    assert settings.jwt_secret_key == "from-env"
    assert settings.jwt_expires_in == 900
    assert settings.allowed_origins == ["http://localhost:3000", "https://app.example.com"]
    assert settings.is_production
    assert settings.mode_label == "Production"


def test_settings_defaults(monkeypatch):
    for name in ("MONGO_URI", "JWT_SECRET_KEY", "JWT_EXPIRES_IN", "APP_ENV", "COOKIE_SECURE"):
        monkeypatch.delenv(name, raising=False)

    settings = Settings(_env_file=None)

    assert settings.mongo_uri is None
    assert settings.jwt_expires_in == 3600
    assert settings.cookie_name == "authToken"
    assert settings.cookie_secure is False
    assert settings.mode_label == "Development"


def test_settings_are_immutable(settings):
    with pytest.raises(ValidationError):
        settings.jwt_secret_key = "changed"


def test_env_file_follows_runtime_mode():
    assert env_file_for("production").name == ".env.prod"
    assert env_file_for("development").name == ".env.dev"
    assert env_file_for(None).name == ".env.dev"


def test_run_exits_without_connection_string(monkeypatch):
    monkeypatch.delenv("MONGO_URI", raising=False)
    monkeypatch.setattr(main, "get_settings", lambda: Settings(_env_file=None))
    monkeypatch.setattr(main.uvicorn, "run", lambda *args, **kwargs: pytest.fail("server must not start"))

    with pytest.raises(SystemExit) as info:
        main.run()

    assert info.value.code == 1


def _unreachable_store(settings):
    raise ServerSelectionTimeoutError("127.0.0.1:1: connection refused")


def test_run_exits_when_store_is_unreachable(monkeypatch, settings):
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(main, "connect_db", _unreachable_store)
    monkeypatch.setattr(main.uvicorn, "run", lambda *args, **kwargs: pytest.fail("server must not start"))

    with pytest.raises(SystemExit) as info:
        main.run()

    assert info.value.code == 1


def test_run_serves_once_store_answers(monkeypatch, settings):
    served = []
    monkeypatch.setattr(main, "get_settings", lambda: settings)
    monkeypatch.setattr(main, "connect_db", lambda settings: None)
    monkeypatch.setattr(main.uvicorn, "run", lambda app, **kwargs: served.append(kwargs))

    main.run()

    assert served == [{"host": settings.host, "port": settings.port, "log_level": "info"}]


def test_startup_fails_when_store_is_unreachable(monkeypatch, settings):
    monkeypatch.setattr(main, "connect_db", _unreachable_store)

    with pytest.raises(ServerSelectionTimeoutError):
        with TestClient(main.create_app(settings)):
            pass
