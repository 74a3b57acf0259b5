"""FastAPI application for the Slotly booking core."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from slotly.config import settings
from slotly.database import init_db, close_db
from slotly.handlers.webhook_delivery import dispatcher
from slotly.routes.bookings import router as bookings_router
from slotly.routes.scheduling import router as scheduling_router
from slotly.routes.webhooks import router as webhooks_router

logging.basicConfig(level=logging.DEBUG if settings.debug else logging.INFO)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("slotly starting up")
    await init_db()
    yield
    logger.info("slotly shutting down")
    await dispatcher.shutdown()
    await close_db()


app = FastAPI(
    title="Slotly",
    description="No-show risk scoring, smart-scheduling recommendations and signed booking webhooks",
    version="1.0.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(bookings_router, prefix=settings.api_prefix)
app.include_router(scheduling_router, prefix=settings.api_prefix)
app.include_router(webhooks_router, prefix=settings.api_prefix)


@app.get("/health")
async def health():
    return {"status": "ok", "service": "slotly", "pending_webhooks": dispatcher.pending}
