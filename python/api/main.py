"""
FastAPI Main Application

Entry point for the statement import API.
"""

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from statement_import.exceptions import StatementImportError

from .routes import imports_router, rules_router
from .stores import get_rule_store

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan handler."""
    logger.info("Starting Statement Import API...")
    get_rule_store()
    yield
    logger.info("Shutting down Statement Import API...")


app = FastAPI(
    title="Statement Import API",
    description="Import, deduplicate and categorize ING bank statement movements",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS configuration
cors_origins = os.getenv("CORS_ORIGINS", "http://localhost:3000").split(",")

app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(imports_router, prefix="/api")
app.include_router(rules_router, prefix="/api")


@app.exception_handler(StatementImportError)
async def statement_import_error_handler(request: Request, exc: StatementImportError) -> JSONResponse:
    """Report failures no route handled, such as a broken rule or settings file."""
    logger.error(f"Unhandled import failure on {request.url.path}: {exc}")
    return JSONResponse(status_code=500, content={"detail": {"message": str(exc), "errors": []}})


@app.get("/")
async def root():
    """Root endpoint."""
    return {
        "name": "Statement Import API",
        "version": "1.0.0",
        "status": "running",
    }


@app.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"status": "healthy"}


@app.get("/api")
async def api_info():
    """API information endpoint."""
    return {
        "endpoints": {
            "preview": "/api/import/preview",
            "import": "/api/import",
            "check_rule": "/api/rules/check",
            "matching_rules": "/api/rules/matching",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=os.getenv("ENVIRONMENT", "development") == "development",
    )
