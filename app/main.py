import asyncio
import os
from datetime import datetime, timezone

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.config import settings
from app.database import SessionLocal, init_db
from app.logging_config import get_logger, setup_logging
from app.routers import admin, message, webhook
from app.services.catalog_service import get_catalog
from app.services.conversation_service import get_assistant, get_poll_cursor
from app.services.whatsapp_service import is_configured

setup_logging(settings.log_level)

app = FastAPI(
    title="Sprout Support API",
    description="WhatsApp support assistant: menu-driven issue selection and ticket creation",
    version="0.1.0",
)

cors_env = os.environ.get("CORS_ALLOW_ORIGINS", "*")
cors_origins = [origin.strip() for origin in cors_env.split(",") if origin.strip()]
if not cors_origins:
    cors_origins = ["*"]

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(message.router)
app.include_router(webhook.router)
app.include_router(admin.router)

logger = get_logger("main")
poll_logger = get_logger("poll_worker")
_poll_worker_task: asyncio.Task | None = None


def _is_poll_worker_enabled() -> bool:
    if os.environ.get("PYTEST_CURRENT_TEST"):
        return False
    return settings.poll_enabled


def _poll_once() -> int:
    db = SessionLocal()
    try:
        results = get_assistant().poll_inbound(db, get_poll_cursor())
        db.commit()
        return len(results)
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


async def _poll_worker_loop() -> None:
    # Runs on the event loop thread, like the webhook handler, so the two inbound paths never interleave.
    while True:
        try:
            await asyncio.sleep(max(settings.poll_interval_seconds, 0.1))
            processed = _poll_once()
            if processed:
                poll_logger.info("Poll worker processed", extra={"context": {"processed": processed}})
        except asyncio.CancelledError:
            break
        except Exception as exc:
            poll_logger.error(
                "Poll worker loop failed",
                extra={"context": {"error": str(exc)}},
            )


@app.on_event("startup")
async def startup() -> None:
    init_db()
    # A broken catalog should stop the service here rather than on the first message.
    catalog = get_catalog()
    logger.info("Service started", extra={"context": {"departments": len(catalog.departments)}})


@app.on_event("startup")
async def start_poll_worker() -> None:
    global _poll_worker_task
    if not _is_poll_worker_enabled():
        return
    if _poll_worker_task is None or _poll_worker_task.done():
        _poll_worker_task = asyncio.create_task(_poll_worker_loop())
        poll_logger.info("Poll worker started")


@app.on_event("shutdown")
async def stop_poll_worker() -> None:
    global _poll_worker_task
    if _poll_worker_task is None:
        return
    _poll_worker_task.cancel()
    try:
        await _poll_worker_task
    except asyncio.CancelledError:
        pass
    _poll_worker_task = None


@app.get("/health")
async def health():
    return {
        "status": "ok",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "transport_configured": is_configured(),
    }
