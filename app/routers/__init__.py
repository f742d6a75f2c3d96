"""
API routers package.
"""
from app.routers import ingest, summary

__all__ = ["ingest", "summary"]
