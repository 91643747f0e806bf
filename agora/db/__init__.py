"""Database package."""
from agora.db.session import engine, SessionLocal, get_db
from agora.db.base import Base

__all__ = ["engine", "SessionLocal", "get_db", "Base"]
