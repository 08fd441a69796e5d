# legalai/main.py
import logging
from pathlib import Path

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from legalai.config import settings
from legalai.core.db import init_db, close_db
from legalai.core.bootstrap import run_startup_tasks

from legalai.api.v1.routers import (
    admin,
    advisories,
    auth,
    chat,
    laws,
    metrics,
    profile,
    quota,
    subscription,
)

logger = logging.getLogger("uvicorn.error")

app = FastAPI(title=settings.APP_NAME)

# CORS (with Cookie)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

@app.on_event("startup")
async def on_startup():
    await init_db(generate_schemas=settings.db_generate_schemas)
    # Default admin, role quotas, app config row, expired plans
    await run_startup_tasks()
    if not settings.openai_api_key or not settings.openai_assistant_id:
        logger.warning("[assistant] OPENAI_API_KEY / OPENAI_ASSISTANT_ID not set -> chat replies will fail")

@app.on_event("shutdown")
async def on_shutdown():
    await close_db()

# REST
app.include_router(auth.router, prefix="/api/v1")
app.include_router(profile.router, prefix="/api/v1")
app.include_router(quota.router, prefix="/api/v1")
app.include_router(subscription.router, prefix="/api/v1")
app.include_router(chat.router, prefix="/api/v1")
app.include_router(advisories.router, prefix="/api/v1")
app.include_router(laws.router, prefix="/api/v1")
app.include_router(admin.router, prefix="/api/v1")
app.include_router(metrics.router, prefix="/api/v1")

# Uploaded avatars
_avatar_dir = Path(settings.avatar_storage_dir)
_avatar_dir.mkdir(parents=True, exist_ok=True)
app.mount(settings.avatar_public_base_url, StaticFiles(directory=_avatar_dir), name="avatars")

@app.get("/healthz")
def healthz():
    return {"ok": True}
