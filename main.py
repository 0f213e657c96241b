"""
Account service — application entry point.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.middleware import register_exception_handlers, register_middleware
from api.routes import router as service_router
from auth.handler import CredentialHandler
from auth.routes import router as auth_router
from auth.tokens import TokenSigner
from config.settings import Settings, config
from database.memory_store import InMemoryAccountStore
from database.session import create_engine, create_session_factory, init_models
from database.sql_store import SqlAccountStore
from database.store import AccountStore

logging.basicConfig(
    level=logging.DEBUG if config.debug else logging.INFO,
    format="%(asctime)s  %(levelname)-8s  %(name)s — %(message)s",
    stream=sys.stdout,
)
for _noisy in ("sqlalchemy.engine", "aiosqlite", "asyncio"):
    logging.getLogger(_noisy).setLevel(logging.WARNING)
logger = logging.getLogger(__name__)


def build_handler(settings: Settings) -> CredentialHandler:
    """Wire store and signer from settings."""
    store: AccountStore
    if settings.store_backend == "memory":
        store = InMemoryAccountStore()
    elif settings.store_backend == "sql":
        engine = create_engine(settings.database_url)
        store = SqlAccountStore(create_session_factory(engine), engine=engine)
    else:
        raise ValueError(f"Unknown store backend: {settings.store_backend!r}")

    signer = TokenSigner(settings.jwt_secret, settings.jwt_expiry_seconds)
    return CredentialHandler(store, signer, bcrypt_rounds=settings.bcrypt_rounds)


def create_app(
    handler: Optional[CredentialHandler] = None,
    settings: Settings = config,
) -> FastAPI:
    app = FastAPI(
        title="Account Service",
        version="1.0.0",
        description="Signup, login and profile management.",
    )
    app.state.handler = handler or build_handler(settings)

    # CORS
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_middleware(app, secure_headers=settings.secure_headers)
    register_exception_handlers(app)

    # Routes
    app.include_router(auth_router, prefix="/v1")
    app.include_router(service_router, prefix="/v1")

    @app.on_event("startup")
    async def on_startup():
        store = app.state.handler.store
        if isinstance(store, SqlAccountStore) and store.engine is not None:
            logger.info("Creating account tables if missing…")
            await init_models(store.engine)
        logger.info("Application ready to accept requests.")

    @app.on_event("shutdown")
    async def on_shutdown():
        await app.state.handler.store.close()

    return app


if __name__ == "__main__":
    uvicorn.run(
        "main:create_app",
        factory=True,
        host=config.host,
        port=config.port,
        reload=config.debug,
        log_level="debug" if config.debug else "info",
    )
