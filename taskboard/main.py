"""FastAPI application entry point."""
from fastapi import FastAPI

from taskboard.logging_config import configure_logging
from taskboard.routers import events, health, notification_settings


configure_logging()

app = FastAPI(title="Taskboard Notifications API")


@app.get("/health", tags=["system"])
async def health_check() -> dict[str, str]:
    """Simple health probe for liveness checks."""
    return {"status": "ok"}


# Include routers
app.include_router(health.router)
app.include_router(notification_settings.router)
app.include_router(events.router)


if __name__ == "__main__":
    import uvicorn

    from taskboard.config import get_settings

    settings = get_settings()
    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_level=settings.log_level.lower())
