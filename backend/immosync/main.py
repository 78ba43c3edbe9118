from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from immosync import __version__
from immosync.api import health, internal, sync
from immosync.core.config import get_settings
from immosync.core.logging_config import setup_logging

setup_logging()
settings = get_settings()
app = FastAPI(title=settings.app_name, version=__version__)

origins = [origin.strip() for origin in settings.cors_origins.split(",")]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router)
app.include_router(sync.router)
app.include_router(internal.router)
