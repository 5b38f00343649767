"""Database package for PainPoint."""
from db.connection import dispose_engine, get_db, get_engine, get_session, get_sessionmaker

__all__ = ["get_engine", "get_sessionmaker", "get_db", "get_session", "dispose_engine"]
