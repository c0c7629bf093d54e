"""Database configuration and utilities."""

from .session import Base, build_engine, build_sessionmaker

__all__ = ["Base", "build_engine", "build_sessionmaker"]
