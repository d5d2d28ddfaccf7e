"""Storage layer for the order store.

Provides async database access via SQLAlchemy.
"""

from .database import (
    Base,
    close_db,
    create_engine,
    create_session_factory,
    init_db,
    session_scope,
)
from .orm_models import OrderORM
from .repositories import OrderRepository

__all__ = [
    # Database
    "Base",
    "create_engine",
    "create_session_factory",
    "session_scope",
    "init_db",
    "close_db",
    # ORM Models
    "OrderORM",
    # Repositories
    "OrderRepository",
]
