"""
api/server.py
-------------
FastAPI application entry point.

Run dev server:
    uvicorn tripopt.api.server:app --reload --port 8000

Endpoints:
    GET  /v1/health
    POST /v1/optimize
"""
from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tripopt import __version__, config
from tripopt.api.routes import health, optimize

logging.basicConfig(
    level=config.LOG_LEVEL,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(
    title="Group Trip Optimizer API",
    version=__version__,
    description=(
        "Fair multi-day group itinerary optimizer: preference normalization, "
        "budgeted place selection and timed daily schedules."
    ),
    docs_url="/docs",
    redoc_url="/redoc",
)

# Allow the web frontend (any origin during development)
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(health.router,   prefix="/v1", tags=["Health"])
app.include_router(optimize.router, prefix="/v1", tags=["Optimize"])


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("tripopt.api.server:app", host="0.0.0.0", port=8000, reload=True)
