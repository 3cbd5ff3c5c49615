import pytest

from shortener.config import DEFAULT_SECRET_KEY, Settings, get_settings, redact_dsn

ENV_VARS = [
    "SERVER_ADDRESS",
    "BASE_URL",
    "FILE_STORAGE_PATH",
    "DATABASE_DSN",
    "SECRET_KEY",
    "LOG_LEVEL",
    "DB_CONNECT_TIMEOUT",
    "DB_STATEMENT_TIMEOUT_MS",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults():
    s = get_settings()
    assert s.server_address == "localhost:8080"
    assert s.base_url == "http://localhost:8080/"
    assert s.storage_backend == "memory"
    assert s.secret_key == DEFAULT_SECRET_KEY


def test_flags():
    s = get_settings(["-a", ":9090", "-b", "http://short.io", "-f", "/tmp/j.json", "--secret", "s3"])
    assert s.server_address == ":9090"
    assert s.base_url == "http://short.io/"
    assert s.file_storage_path == "/tmp/j.json"
    assert s.secret_key == "s3"
    assert s.storage_backend == "file"


def test_env_overrides_flags(monkeypatch):
    monkeypatch.setenv("BASE_URL", "http://env.example")
    monkeypatch.setenv("DATABASE_DSN", "postgresql://u:p@h/db")
    monkeypatch.setenv("DB_STATEMENT_TIMEOUT_MS", "250")
    s = get_settings(["-b", "http://flag.example/"])
    assert s.base_url == "http://env.example/"
    assert s.storage_backend == "postgres"
    assert s.db_statement_timeout_ms == 250


def test_bad_int_env_falls_back(monkeypatch):
    monkeypatch.setenv("DB_CONNECT_TIMEOUT", "soon")
    assert get_settings().db_connect_timeout == 5


def test_empty_secret_falls_back_to_default(monkeypatch):
    monkeypatch.setenv("SECRET_KEY", "")
    assert get_settings().secret_key == DEFAULT_SECRET_KEY


@pytest.mark.parametrize(
    "address,expected",
    [("localhost:8080", ("localhost", 8080)), (":9000", ("0.0.0.0", 9000))],
)
def test_host_port(address, expected):
    assert Settings(server_address=address).host_port() == expected


def test_redact_dsn():
    assert redact_dsn("postgresql://user:hunter2@db:5432/app") == "postgresql://user:****@db:5432/app"
    assert redact_dsn("postgresql://db/app") == "postgresql://db/app"
    assert redact_dsn("") == ""
