"""
FastAPI entrypoint for the canvas converter service.

Compiles saved canvas documents into standalone HTML and binds runtime
business data into their placeholders. The service is stateless: every
request carries the complete document and data it operates on, and
nothing is persisted.

Rendering the resulting HTML to images or PDF is the job of a separate
headless renderer.
"""

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from converter.app.api.convert import router as convert_router
from converter.app.api.schema import router as schema_router
from converter.app.config import get_settings

settings = get_settings()

logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s %(message)s",
)

app = FastAPI(
    title="canvas-converter",
    description="Canvas document to HTML template compilation engine",
    version="0.1.0",
)

app.include_router(convert_router)
app.include_router(schema_router, prefix="/schema")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_allow_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get(
    "/health",
    summary="Service health check",
)
def health_check() -> JSONResponse:
    """Simple health check endpoint."""
    return JSONResponse(
        content={
            "status": "ok",
            "service": "converter",
        }
    )
