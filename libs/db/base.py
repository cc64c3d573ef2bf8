"""Declarative base shared by every service's models."""

from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    """Base class for all pharmacy models. One metadata for the whole backend."""
