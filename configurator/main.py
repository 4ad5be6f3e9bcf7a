from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
import logging

from .config import settings
from .routers import configurator

logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
logger = logging.getLogger("configurator")
logger.setLevel(settings.LOG_LEVEL.upper())

app = FastAPI(
    title="Infrastructure Configurator",
    description="Catalog-driven infrastructure order configuration and price estimation",
    version="1.0.0"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API routes
app.include_router(configurator.router, prefix="/api")


@app.get("/health")
def health():
    return {"status": "ok", "app": "infrastructure-configurator"}
