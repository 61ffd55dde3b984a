from core.db.base import Base
from core.db.gateway import PersistenceGateway
from core.db.mixins import TimestampMixin
from core.db.session import async_session_factory, engine, get_db

__all__ = [
    "Base",
    "TimestampMixin",
    "PersistenceGateway",
    "async_session_factory",
    "engine",
    "get_db",
]
