"""
HTTP surface: document upload, file list/delete and chat endpoints.

Run with:
    uvicorn server.app:create_app --factory
"""

from .app import create_app
from .config import ServerConfig
from .services import Services, build_services

__all__ = ["create_app", "ServerConfig", "Services", "build_services"]
