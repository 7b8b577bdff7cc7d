"""
ClipShow - episode assembly service
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from dotenv import load_dotenv

# Import Routers
from .routers import api
from ..config import get_settings
from ..config.startup_validation import run_startup_validation
from ..utils.logger import configure_logging

load_dotenv(override=True)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    configure_logging(settings.log_level, settings.log_dir)
    app.state.startup_validation = run_startup_validation(settings)
    yield


def create_app() -> FastAPI:
    app = FastAPI(title="ClipShow", version="1.0.0", lifespan=lifespan)

    # Include Routers
    app.include_router(api.router)

    @app.get("/health")
    async def health():
        return {"status": "healthy"}

    return app

app = create_app()

if __name__ == "__main__":
    import uvicorn
    settings = get_settings()
    uvicorn.run("clipshow.app.main:app", host=settings.host, port=settings.port, reload=settings.debug)
