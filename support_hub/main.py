"""
Support Hub - FastAPI Backend
"""
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from support_hub.config import get_settings
from support_hub.dependencies import get_ticket_store
from support_hub.routes import analytics, analyze, dashboard, health, preferences, tickets
from support_hub.middleware.logging_middleware import LoggingMiddleware
from support_hub.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Start the realtime bridge when enabled; drop subscriptions on shutdown"""
    bridge = None
    if settings.realtime_enabled:
        from support_hub.services.realtime import RealtimeBridge
        bridge = RealtimeBridge(get_ticket_store())
        try:
            await bridge.start()
        except Exception as e:
            logger.error(f"Realtime bridge failed to start: {e}")
            bridge = None

    yield

    if bridge is not None:
        await bridge.stop()
    if get_ticket_store.cache_info().currsize:
        get_ticket_store().close()


app = FastAPI(
    title="Support Hub",
    description="Customer-support ticket dashboard API with AI analysis and live updates",
    version="1.0.0",
    lifespan=lifespan
)

# Middleware order matters: executed bottom to top
# 1. CORS (first)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 2. Logging (request/response)
app.add_middleware(LoggingMiddleware)

# Routers (prefixes are defined in each router module)
app.include_router(analyze.router)
app.include_router(tickets.router)
app.include_router(analytics.router)
app.include_router(preferences.router)
app.include_router(dashboard.router)
app.include_router(health.router)


@app.get("/")
async def root():
    return {"message": "Support Hub API", "version": "1.0.0"}


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host=settings.fastapi_host, port=settings.fastapi_port)
