from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from apps.credential_api import main as credential_api_main
from credential_manager.config.settings import load_settings
from credential_manager.infrastructure.security.password_hasher import BcryptPasswordHasher


@pytest.fixture(autouse=True)
def _isolated_runtime(monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    for name in ("HOST", "PORT", "DATABASE_URL", "DATABASE_PASSWORD", "LOG_FORMAT"):
        monkeypatch.delenv(name, raising=False)
    monkeypatch.setenv("ENVIRONMENT", "development")
    root = logging.getLogger()
    saved_handlers = list(root.handlers)
    saved_level = root.level
    load_settings.cache_clear()
    yield
    load_settings.cache_clear()
    root.handlers[:] = saved_handlers
    root.setLevel(saved_level)


def test_main_starts_uvicorn_with_factory_and_keep_alive(monkeypatch: pytest.MonkeyPatch) -> None:
    captured: dict[str, object] = {}

    def _fake_run(app: str, **kwargs: object) -> None:
        captured["app"] = app
        captured["kwargs"] = kwargs

    monkeypatch.setattr(
        credential_api_main,
        "uvicorn",
        type("UvicornStub", (), {"run": _fake_run}),
        raising=False,
    )

    credential_api_main.main()

    assert captured["app"] == "apps.credential_api.main:create_app"
    assert captured["kwargs"] == {
        "host": "0.0.0.0",
        "port": 3000,
        "factory": True,
        "server_header": False,
        "timeout_keep_alive": 60,
    }


def test_create_app_without_store_uses_database_url_setting(
    tmp_path: Path,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    db_path = tmp_path / "credential_runtime.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+aiosqlite:///{db_path}")

    app = credential_api_main.create_app(password_hasher=BcryptPasswordHasher(rounds=4))
    with TestClient(app) as client:
        response = client.post(
            "/signup",
            data={"username": "runtime@example.com", "password": "Passw0rd"},
        )

    assert response.status_code == 201
    assert db_path.exists()
