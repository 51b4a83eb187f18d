"""Chunked persistence of resolved routes (network_host_setups).

Rows here are a derived cache owned by reconciliation: they are deleted and
re-inserted as a whole for the affected hosts on every sync. Neither batch
method opens a transaction of its own; call them inside
TransactionManager.do so the delete, the insert and the OS route change
share one unit of work.
"""
import logging
from datetime import datetime, timezone
from typing import Iterable, Iterator, Sequence, TypeVar

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import SQLAlchemyError

from ..errors import StorageBatchError
from ..schema import NetworkHostSetup
from .database import Database, NetworkHostSetupRow

logger = logging.getLogger(__name__)

# SQLite caps bound parameters per statement at 32766; an insert row binds 5
ADD_BATCH_CHUNK_SIZE = 5000
DELETE_BATCH_CHUNK_SIZE = 25000

T = TypeVar("T")


def chunked(items: Sequence[T], size: int) -> Iterator[Sequence[T]]:
    """Yield consecutive slices of at most `size` items."""
    for start in range(0, len(items), size):
        yield items[start:start + size]


class NetworkHostSetupStorage:

    def __init__(
        self,
        db: Database,
        add_chunk_size: int = ADD_BATCH_CHUNK_SIZE,
        delete_chunk_size: int = DELETE_BATCH_CHUNK_SIZE,
    ):
        if add_chunk_size <= 0 or delete_chunk_size <= 0:
            raise ValueError("chunk sizes must be positive")
        self.db = db
        self.add_chunk_size = add_chunk_size
        self.delete_chunk_size = delete_chunk_size

    def add_batch(self, batch: Sequence[NetworkHostSetup]) -> None:
        """Insert rows with one multi-row INSERT per chunk."""
        for chunk in chunked(batch, self.add_chunk_size):
            try:
                self._add_chunk(chunk)
            except SQLAlchemyError as e:
                raise StorageBatchError(f"failed to add batch: {e}") from e

    def _add_chunk(self, chunk: Sequence[NetworkHostSetup]) -> None:
        now = datetime.now(timezone.utc)
        values = [
            {
                "network_host_id": setup.network_host_id,
                "network_host_ip": setup.network_host_ip,
                "subnet_mask": setup.subnet_mask,
                "router": setup.router,
                "created_at": now,
            }
            for setup in chunk
        ]
        with self.db.session() as session:
            session.execute(insert(NetworkHostSetupRow).values(values))
        logger.debug(f"inserted {len(values)} network host setups")

    def delete_batch_by_network_host_ids(self, network_host_ids: Sequence[int]) -> None:
        """Delete all rows of the given hosts, one DELETE ... IN (...) per chunk."""
        for chunk in chunked(network_host_ids, self.delete_chunk_size):
            try:
                with self.db.session() as session:
                    session.execute(
                        delete(NetworkHostSetupRow)
                        .where(NetworkHostSetupRow.network_host_id.in_(list(chunk)))
                    )
            except SQLAlchemyError as e:
                raise StorageBatchError(f"failed to delete batch: {e}") from e

    def list_by_network_host_ids(self, network_host_ids: Iterable[int]) -> list[NetworkHostSetup]:
        ids = list(network_host_ids)
        if not ids:
            return []

        stmt = (
            select(NetworkHostSetupRow)
            .where(NetworkHostSetupRow.network_host_id.in_(ids))
            .order_by(NetworkHostSetupRow.id)
        )
        try:
            with self.db.session() as session:
                rows = session.execute(stmt).scalars().all()
                return [
                    NetworkHostSetup(
                        id=row.id,
                        network_host_id=row.network_host_id,
                        network_host_ip=row.network_host_ip,
                        subnet_mask=row.subnet_mask,
                        router=row.router,
                        created_at=row.created_at,
                    )
                    for row in rows
                ]
        except SQLAlchemyError as e:
            raise StorageBatchError(f"failed to list network host setups: {e}") from e
