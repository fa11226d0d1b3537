from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.core.app_state import AppState
from app.infra.logging_config import LoggingConfig, get_logger
from app.routers.conversations_router import conversations_router
from app.routers.items_router import items_router

logger = get_logger()


def create_app(testing: bool = False, state: Optional[AppState] = None) -> FastAPI:
    settings = get_settings()
    LoggingConfig()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.lostlink = state or AppState()
        logger.info(
            "Starting %s (%s)", settings.app_name, "testing" if testing else settings.environment
        )
        try:
            yield
        finally:
            await app.state.lostlink.shutdown()

    app = FastAPI(title=settings.app_name, lifespan=lifespan)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(conversations_router)
    app.include_router(items_router)

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
