"""CLI 모듈"""
from .commands import main, run_cli

__all__ = ["main", "run_cli"]
