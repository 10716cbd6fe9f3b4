"""Core services: settings and logging."""
from .logger import LoggerService
from .settings import Settings, settings

__all__ = ["LoggerService", "Settings", "settings"]
