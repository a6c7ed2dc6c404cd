from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import get_settings
from app.context import init_context
from app.utils.errors import install_exception_handlers
from routes.fulfillment import router as fulfillment_router
from routes.gifts import router as gifts_router

settings = get_settings()

logging.basicConfig(
    level=logging.DEBUG if settings.debug else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    app.state.fulfillment = init_context()
    try:
        yield
    finally:
        await app.state.fulfillment.engine.sessions.close()


app = FastAPI(title="Gifty Fulfillment API", version="1.0.0", lifespan=lifespan)

app.add_middleware(
    CORSMiddleware,
    allow_origins=[origin.strip() for origin in settings.cors_origins.split(",") if origin.strip()],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

install_exception_handlers(app)
app.include_router(gifts_router)
app.include_router(fulfillment_router)


@app.get("/health")
async def health() -> dict:
    return {"status": "ok"}
