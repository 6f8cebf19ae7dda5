"""credential-api entrypoint and HTTP route wiring."""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI

from credential_manager.application.ports.password_hasher_port import PasswordHasherPort
from credential_manager.application.services.credential_service import CredentialService
from credential_manager.config.settings import load_settings
from credential_manager.infrastructure.db.credential_store import SqlAlchemyCredentialStore
from credential_manager.infrastructure.db.schema import ensure_schema
from credential_manager.infrastructure.db.session import create_database_engine
from credential_manager.infrastructure.http.credential_router import build_credential_router
from credential_manager.infrastructure.http.errors import install_error_handlers
from credential_manager.infrastructure.http.middleware import install_request_pipeline
from credential_manager.infrastructure.logging import configure_logging
from credential_manager.infrastructure.security.password_hasher import BcryptPasswordHasher

logger = logging.getLogger(__name__)

_KEEP_ALIVE_TIMEOUT_SECONDS = 60


def build_credential_store(
    database_url: str,
    *,
    database_password: str | None = None,
) -> SqlAlchemyCredentialStore:
    """Build the SQLAlchemy-backed credential store for one database URL."""

    engine = create_database_engine(database_url, password=database_password)
    return SqlAlchemyCredentialStore(engine)


def create_app(
    *,
    store: SqlAlchemyCredentialStore | None = None,
    password_hasher: PasswordHasherPort | None = None,
) -> FastAPI:
    """Create FastAPI app serving liveness and credential endpoints."""

    if store is None:
        settings = load_settings()
        configure_logging(level=settings.log_level, log_format=settings.log_format)
        store = build_credential_store(
            settings.database_url,
            database_password=settings.database_password,
        )
    if password_hasher is None:
        password_hasher = BcryptPasswordHasher()

    credential_service = CredentialService(store=store, password_hasher=password_hasher)
    owned_store = store

    @asynccontextmanager
    async def lifespan(_: FastAPI) -> AsyncIterator[None]:
        await ensure_schema(owned_store.engine)
        logger.info("credential_api_started")
        try:
            yield
        finally:
            await owned_store.dispose()
            logger.info("credential_api_stopped")

    app = FastAPI(lifespan=lifespan)
    install_error_handlers(app)
    install_request_pipeline(app)
    app.include_router(build_credential_router(credential_service=credential_service))
    return app


def run_asgi_server(*, host: str | None = None, port: int | None = None) -> None:
    """Run credential-api as a long-lived ASGI process using application factory mode."""

    settings = load_settings()
    uvicorn.run(
        "apps.credential_api.main:create_app",
        host=host or settings.host,
        port=port or settings.port,
        factory=True,
        server_header=False,
        timeout_keep_alive=_KEEP_ALIVE_TIMEOUT_SECONDS,
    )


def main() -> None:
    """Run credential-api runtime process."""

    run_asgi_server()


if __name__ == "__main__":
    main()
