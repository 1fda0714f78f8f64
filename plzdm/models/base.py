"""Declarative base for plzdm models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all plzdm SQLAlchemy models."""

    pass
