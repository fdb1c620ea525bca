"""
FastAPI application -- CNPJ lookup API server.

Run locally:
    uvicorn backend.app:app --reload --port 8000

On Railway, railway_start.py handles this.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from backend.routes import lookup

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("CNPJ lookup API started")

    yield

    # Shutdown: close the adapters' HTTP clients
    await lookup.close_manager()


app = FastAPI(
    title="Consulta CNPJ API",
    version="1.0.0",
    description="Brazilian company lookup reconciled from CNPJá, ReceitaWS and BrasilAPI",
    lifespan=lifespan,
)

app.include_router(lookup.router)


@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "ok"}
