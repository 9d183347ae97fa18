"""FastAPI application for the HTTP side-channel (health and metrics)."""

from fastapi import FastAPI

from src.api import health
from src.config import get_settings

settings = get_settings()

app = FastAPI(
    title="User Service",
    description="Health, readiness and metrics for the user gRPC service",
    version=settings.version,
)

# Register routers
app.include_router(health.router)
