"""
Property Indexer - SQL Entity Store

Durable EntityStore on SQLAlchemy 2.0. Any database SQLAlchemy supports
works; SQLite is the default for local runs.
"""
from contextlib import contextmanager
from pathlib import Path
from typing import Generator, Iterator, Optional
import logging

from sqlalchemy import create_engine, select
from sqlalchemy.engine import Engine, make_url
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from core.errors import IndexerStoreError
from db.entities import Entity, entity_type
from db.models import Base, EntityRow, key_digest


logger = logging.getLogger(__name__)

_BLOCK_FIELDS = ("block_number", "last_activity_block", "first_seen_block")


def _block_of(payload: dict) -> int:
    for name in _BLOCK_FIELDS:
        value = payload.get(name)
        if isinstance(value, int):
            return value
    return 0


class SqlEntityStore:
    """
    Entity store backed by a single SQL table.

    Each save commits on its own, so a crash leaves every fully processed
    event durable.
    """

    def __init__(self, database_url: str, echo: bool = False):
        self.database_url = database_url
        self.echo = echo

        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    def initialize(self) -> None:
        """Create the engine, session factory and table."""
        url = make_url(self.database_url)
        kwargs = {"echo": self.echo}

        if url.get_backend_name() == "sqlite":
            database = url.database
            if database and database != ":memory:":
                Path(database).parent.mkdir(parents=True, exist_ok=True)
            else:
                # Every session must see the same in-memory database
                kwargs["poolclass"] = StaticPool
                kwargs["connect_args"] = {"check_same_thread": False}

        try:
            self._engine = create_engine(url, **kwargs)
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise IndexerStoreError(f"cannot open store at {url.render_as_string(hide_password=True)}", cause=e) from e

        self._session_factory = sessionmaker(self._engine, expire_on_commit=False)
        logger.info(f"Entity store ready ({url.get_backend_name()})")

    def close(self) -> None:
        if self._engine:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None
            logger.info("Entity store closed")

    def __enter__(self) -> "SqlEntityStore":
        if not self._session_factory:
            self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Session that commits on success and rolls back on error."""
        if not self._session_factory:
            self.initialize()

        with self._session_factory() as session:
            try:
                yield session
                session.commit()
            except SQLAlchemyError as e:
                session.rollback()
                raise IndexerStoreError(f"store operation failed: {e}", cause=e) from e
            except Exception:
                session.rollback()
                raise

    def load(self, kind: str, key: str) -> Optional[Entity]:
        cls = entity_type(kind)
        with self.session() as session:
            row = session.get(EntityRow, (kind, key_digest(key)))
            if row is None:
                return None
            return cls.from_dict(row.payload)

    def save(self, entity: Entity) -> None:
        payload = entity.to_dict()
        with self.session() as session:
            row = session.get(EntityRow, (entity.kind, key_digest(entity.id)))
            if row is None:
                session.add(EntityRow(
                    kind=entity.kind,
                    key_digest=key_digest(entity.id),
                    entity_id=entity.id,
                    payload=payload,
                    block_number=_block_of(payload),
                ))
            else:
                row.payload = payload
                row.block_number = _block_of(payload)

    def iter_kind(self, kind: str) -> Iterator[Entity]:
        cls = entity_type(kind)
        with self.session() as session:
            rows = session.scalars(
                select(EntityRow)
                .where(EntityRow.kind == kind)
                .order_by(EntityRow.entity_id)
            ).all()
            payloads = [row.payload for row in rows]
        for payload in payloads:
            yield cls.from_dict(payload)

    def count(self, kind: str) -> int:
        return sum(1 for _ in self.iter_kind(kind))
