"""
Base module for SQLAlchemy models.

Models import Base from here so that metadata registration never depends on
the database module (which imports the models).
"""
import enum

from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def str_enum(enum_cls: type[enum.Enum]) -> SAEnum:
    """Enum column persisted by value ("pending"), not by member name ("PENDING")."""
    return SAEnum(
        enum_cls,
        native_enum=False,
        length=32,
        values_callable=lambda members: [m.value for m in members],
        validate_strings=True,
    )
