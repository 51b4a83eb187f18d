"""Unit of work spanning several storage calls and one OS side effect."""
import asyncio
import logging
from typing import Awaitable, Callable, TypeVar

from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageError
from .database import Database

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TransactionManager:
    """Run an async callback inside one database transaction.

    The transaction commits only after the callback returns and rolls back
    if it raises. A nested `do` joins the outer transaction, so the outer
    caller decides the commit.

    Top-level calls run one at a time. The SQLite write lock is held across
    awaited DNS lookups and route commands, and a second writer on the same
    thread would otherwise stall the event loop in sqlite's busy wait.
    Waiting callers yield on an asyncio lock instead.

    Usage:
        async def apply():
            storage.delete_batch_by_network_host_ids(ids)
            storage.add_batch(rows)
            await executor.set_network_additional_routes(network, rows)

        await tx.do(apply)
    """

    def __init__(self, db: Database):
        self.db = db
        self._lock = asyncio.Lock()

    async def do(self, fn: Callable[[], Awaitable[T]]) -> T:
        if self.db.current_session() is not None:
            return await fn()

        async with self._lock:
            try:
                with self.db.session_factory.begin() as session:
                    with self.db.bind_session(session):
                        try:
                            return await fn()
                        except Exception:
                            logger.debug("transaction callback failed, rolling back")
                            raise
            except SQLAlchemyError as e:
                raise StorageError(f"failed to commit transaction: {e}") from e
