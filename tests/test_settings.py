from todo_service.settings import get_settings


def test_defaults(monkeypatch):
    for name in (
        "TODO_PORT",
        "TODO_DB_PATH",
        "TODO_DB_POOL_SIZE",
        "TODO_DB_ACQUIRE_TIMEOUT",
        "TODO_DB_STATEMENT_TIMEOUT",
        "TODO_LOG_LEVEL",
        "CORS_ALLOW_ORIGINS",
    ):
        monkeypatch.delenv(name, raising=False)
    s = get_settings()
    assert s.port == 8080
    assert s.db_path == "./data/todo.db"
    assert s.pool_size == 10
    assert s.acquire_timeout == 5.0
    assert s.statement_timeout == 30.0
    assert s.log_level == "INFO"
    assert s.cors_allow_origins == ["*"]


def test_environment_overrides(monkeypatch):
    monkeypatch.setenv("TODO_PORT", "9090")
    monkeypatch.setenv("TODO_DB_PATH", "/tmp/x.db")
    monkeypatch.setenv("TODO_DB_POOL_SIZE", "3")
    monkeypatch.setenv("TODO_DB_ACQUIRE_TIMEOUT", "0.25")
    monkeypatch.setenv("TODO_LOG_LEVEL", "debug")
    monkeypatch.setenv("CORS_ALLOW_ORIGINS", "http://a.example, http://b.example")
    s = get_settings()
    assert s.port == 9090
    assert s.db_path == "/tmp/x.db"
    assert s.pool_size == 3
    assert s.acquire_timeout == 0.25
    assert s.log_level == "DEBUG"
    assert s.cors_allow_origins == ["http://a.example", "http://b.example"]


def test_invalid_values_fall_back(monkeypatch):
    monkeypatch.setenv("TODO_PORT", "not-a-port")
    monkeypatch.setenv("TODO_DB_POOL_SIZE", "0")
    monkeypatch.setenv("TODO_DB_STATEMENT_TIMEOUT", "-1")
    monkeypatch.setenv("TODO_LOG_LEVEL", "chatty")
    s = get_settings()
    assert s.port == 8080
    assert s.pool_size == 10
    assert s.statement_timeout == 30.0
    assert s.log_level == "INFO"
