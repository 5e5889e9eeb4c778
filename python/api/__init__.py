"""
FastAPI Backend for Statement Import

Provides REST API endpoints for previewing and importing bank statements.
"""

from .main import app

__all__ = ["app"]
