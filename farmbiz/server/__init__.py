"""HTTP 서버 (FastAPI)"""
from .app import create_app
from .container import ServiceContainer

__all__ = ["create_app", "ServiceContainer"]
