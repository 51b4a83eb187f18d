"""Storage for user-defined networks."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, insert, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import NetworkAlreadyExistsError, NetworkNotFoundError, StorageError
from ..schema import ListNetworkFilter, Network
from .database import Database, NetworkRow

logger = logging.getLogger(__name__)

UNIQUE_VIOLATION = "UNIQUE constraint failed"
FOREIGN_KEY_VIOLATION = "FOREIGN KEY constraint failed"


def _to_network(row) -> Network:
    return Network(id=row.id, name=row.name, created_at=row.created_at)


class NetworkStorage:

    def __init__(self, db: Database):
        self.db = db

    def add(self, network: Network) -> Network:
        stmt = (
            insert(NetworkRow)
            .values(name=network.name)
            .returning(NetworkRow.id, NetworkRow.name, NetworkRow.created_at)
        )
        try:
            with self.db.session() as session:
                row = session.execute(stmt).one()
        except IntegrityError as e:
            if UNIQUE_VIOLATION in str(e.orig):
                raise NetworkAlreadyExistsError(
                    f"network {network.name!r} already exists"
                ) from e
            raise StorageError(f"failed to add network: {e}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"failed to add network: {e}") from e

        return _to_network(row)

    def get(self, network_id: int) -> Network:
        stmt = (
            select(NetworkRow.id, NetworkRow.name, NetworkRow.created_at)
            .where(NetworkRow.id == network_id)
        )
        try:
            with self.db.session() as session:
                row = session.execute(stmt).one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to get network {network_id}: {e}") from e

        if row is None:
            raise NetworkNotFoundError(network_id)
        return _to_network(row)

    def list(self, filter: Optional[ListNetworkFilter] = None) -> list[Network]:
        """Networks, newest first."""
        stmt = (
            select(NetworkRow.id, NetworkRow.name, NetworkRow.created_at)
            .order_by(NetworkRow.id.desc())
        )
        if filter is not None:
            if filter.ids:
                stmt = stmt.where(NetworkRow.id.in_(filter.ids))
            if filter.names:
                stmt = stmt.where(or_(*(NetworkRow.name.like(name) for name in filter.names)))
            if filter.search:
                stmt = stmt.where(NetworkRow.name.like(f"%{filter.search}%"))

        try:
            with self.db.session() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to list networks: {e}") from e

        return [_to_network(row) for row in rows]

    def delete(self, network_id: int) -> None:
        try:
            with self.db.session() as session:
                session.execute(delete(NetworkRow).where(NetworkRow.id == network_id))
        except SQLAlchemyError as e:
            raise StorageError(f"failed to delete network {network_id}: {e}") from e
