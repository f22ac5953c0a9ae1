"""Database package providing SQLAlchemy base definitions and session helpers."""

from .base import Base  # noqa: F401
from .session import create_engine_from_settings, create_session_maker, init_models  # noqa: F401
from . import models  # noqa: F401

__all__ = ["Base", "create_engine_from_settings", "create_session_maker", "init_models", "models"]
