"""
FastAPI application entrypoint.
"""
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from api.routes import router, build_controller
from tryon.config import Settings

logging.basicConfig(level=logging.DEBUG)


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    # Release the camera on shutdown even if a session is still live
    app.state.controller.close()
    scheduler = getattr(app.state.controller.session.scheduler, "close", None)
    if scheduler is not None:
        scheduler()


app = FastAPI(title="Jewelry Virtual Try-On API", version="1.0.0", lifespan=lifespan)
app.state.settings = Settings()
app.state.controller = build_controller(app.state.settings)
app.include_router(router)

@app.get("/health")
def health() -> dict:
    """
    Health check endpoint.

    Returns:
        dict: Simple status payload.
    """
    return {"status": "ok"}
