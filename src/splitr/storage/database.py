"""SQLite database: schema, engine and session tracking."""
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Iterator, Optional

from sqlalchemy import (
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
    create_engine,
    event,
    func,
    text,
)
from sqlalchemy.engine import Engine
from sqlalchemy.orm import DeclarativeBase, Mapped, Session, mapped_column, sessionmaker

from ..utils.retry import with_retry

logger = logging.getLogger(__name__)


class Base(DeclarativeBase):
    pass


class TimestampMixin:
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )


class NetworkRow(Base, TimestampMixin):
    __tablename__ = "networks"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    name: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)


class NetworkHostRow(Base, TimestampMixin):
    __tablename__ = "network_hosts"
    __table_args__ = (UniqueConstraint("network_id", "address"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    network_id: Mapped[int] = mapped_column(
        ForeignKey("networks.id", ondelete="CASCADE"), nullable=False
    )
    address: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[Optional[str]] = mapped_column(String(255))


class NetworkHostSetupRow(Base, TimestampMixin):
    __tablename__ = "network_host_setups"

    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    network_host_id: Mapped[int] = mapped_column(
        ForeignKey("network_hosts.id", ondelete="CASCADE"), nullable=False, index=True
    )
    network_host_ip: Mapped[str] = mapped_column(String(255), nullable=False)
    subnet_mask: Mapped[str] = mapped_column(String(255), nullable=False)
    router: Mapped[str] = mapped_column(String(255), nullable=False)


def _enable_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


class Database:
    """Engine, session factory and the session of the running transaction.

    The current session is held in a ContextVar. Tasks started outside a
    transaction never share one; tasks created inside one inherit it.
    """

    def __init__(self, db_path: Path, echo: bool = False):
        self.db_path = db_path
        self.engine: Engine = create_engine(f"sqlite:///{db_path}", echo=echo)
        event.listen(self.engine, "connect", _enable_foreign_keys)
        self.session_factory = sessionmaker(bind=self.engine, autoflush=False, expire_on_commit=False)
        self._current: ContextVar[Optional[Session]] = ContextVar(
            f"splitr_session_{id(self)}", default=None
        )

    @classmethod
    def open(cls, db_path: Path) -> "Database":
        """Create the data directory and file, check the connection, apply schema."""
        db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info(f"connecting to database: {db_path}")

        db = cls(db_path)
        db.check_connection()
        db.create_schema()
        return db

    @with_retry()
    def check_connection(self) -> None:
        with self.engine.connect() as conn:
            conn.execute(text("SELECT 1"))

    def create_schema(self) -> None:
        Base.metadata.create_all(self.engine)

    def current_session(self) -> Optional[Session]:
        return self._current.get()

    @contextmanager
    def bind_session(self, session: Session) -> Iterator[Session]:
        """Make a session current for the duration of the block."""
        token = self._current.set(session)
        try:
            yield session
        finally:
            self._current.reset(token)

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Session of the running transaction, or a short autocommit one.

        Storage code always goes through here; outside a transaction each
        block commits on its own.
        """
        current = self._current.get()
        if current is not None:
            yield current
            return

        with self.session_factory.begin() as session:
            yield session

    def close(self) -> None:
        self.engine.dispose()
