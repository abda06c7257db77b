"""
Storage Infrastructure
======================

Key-value document storage for the helpdesk.

The helpdesk persists two JSON documents (the ticket collection and the
helpdesk config) under string keys and rewrites each wholesale on every
mutation. Providers only need get/set/delete-by-key semantics over strings:

- ``InMemoryKeyValueStore``: process-local dict, used by tests
- ``SQLAlchemyKeyValueStore``: one row per key in a ``documents`` table,
  using SQLAlchemy 2.0 with a synchronous engine
"""

from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, Optional

from sqlalchemy import DateTime, String, Text, create_engine, select
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from quicket.core import RepositoryException


class KeyValueStore(ABC):
    """Interface for the raw string document store."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None when the key is absent."""

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        """Store ``value`` under ``key``, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove ``key``; absent keys are ignored."""

    def close(self) -> None:
        """Release provider resources."""


class InMemoryKeyValueStore(KeyValueStore):
    """Dict-backed store. Contents vanish with the process."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def __contains__(self, key: str) -> bool:
        return key in self._data


class Base(DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    SQLAlchemy 2.0 style using DeclarativeBase.
    """
    pass


class DocumentModel(Base):
    """
    Database model for a stored document.

    Maps to the 'documents' table.
    """
    __tablename__ = "documents"

    key: Mapped[str] = mapped_column(String(255), primary_key=True)
    value: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc)
    )


class SQLAlchemyKeyValueStore(KeyValueStore):
    """
    Key-value store backed by a relational database.

    Every call runs in its own short transaction; the helpdesk is
    single-writer so no row locking is attempted.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self._engine: Engine = create_engine(database_url, echo=echo)
        self._session_maker = sessionmaker(
            bind=self._engine,
            class_=Session,
            expire_on_commit=False,
            autoflush=False,
        )
        Base.metadata.create_all(self._engine)

    def get(self, key: str) -> Optional[str]:
        try:
            with self._session_maker() as session:
                row = session.execute(
                    select(DocumentModel.value).where(DocumentModel.key == key)
                ).scalar_one_or_none()
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to read document {key!r}", {"error": str(e)})
        return row

    def set(self, key: str, value: str) -> None:
        try:
            with self._session_maker() as session, session.begin():
                document = session.get(DocumentModel, key)
                if document is None:
                    session.add(DocumentModel(key=key, value=value))
                else:
                    document.value = value
                    document.updated_at = datetime.now(timezone.utc)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to write document {key!r}", {"error": str(e)})

    def delete(self, key: str) -> None:
        try:
            with self._session_maker() as session, session.begin():
                document = session.get(DocumentModel, key)
                if document is not None:
                    session.delete(document)
        except SQLAlchemyError as e:
            raise RepositoryException(f"Failed to delete document {key!r}", {"error": str(e)})

    def close(self) -> None:
        """Dispose of pooled connections."""
        self._engine.dispose()


__all__ = [
    "KeyValueStore",
    "InMemoryKeyValueStore",
    "SQLAlchemyKeyValueStore",
    "DocumentModel",
    "Base",
]
