"""Storage for hosts declared on a network."""
from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, func, insert, or_, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from ..errors import (
    NetworkHostAlreadyExistsError,
    NetworkHostNotFoundError,
    NetworkNotFoundError,
    StorageError,
)
from ..schema import ListNetworkHostFilter, NetworkHost
from .database import Database, NetworkHostRow
from .network import FOREIGN_KEY_VIOLATION, UNIQUE_VIOLATION

logger = logging.getLogger(__name__)

COLUMNS = (
    NetworkHostRow.id,
    NetworkHostRow.network_id,
    NetworkHostRow.address,
    NetworkHostRow.description,
    NetworkHostRow.created_at,
)


def _to_host(row) -> NetworkHost:
    return NetworkHost(
        id=row.id,
        network_id=row.network_id,
        address=row.address,
        description=row.description,
        created_at=row.created_at,
    )


class NetworkHostStorage:

    def __init__(self, db: Database):
        self.db = db

    def add(self, host: NetworkHost) -> NetworkHost:
        """Insert a host.

        Raises:
            NetworkHostAlreadyExistsError: Address already declared on the network
            NetworkNotFoundError: The network does not exist
        """
        stmt = (
            insert(NetworkHostRow)
            .values(
                network_id=host.network_id,
                address=host.address,
                description=host.description,
            )
            .returning(*COLUMNS)
        )
        try:
            with self.db.session() as session:
                row = session.execute(stmt).one()
        except IntegrityError as e:
            if UNIQUE_VIOLATION in str(e.orig):
                raise NetworkHostAlreadyExistsError(
                    f"host {host.address!r} already exists in network {host.network_id}"
                ) from e
            if FOREIGN_KEY_VIOLATION in str(e.orig):
                raise NetworkNotFoundError(host.network_id) from e
            raise StorageError(f"failed to add network host: {e}") from e
        except SQLAlchemyError as e:
            raise StorageError(f"failed to add network host: {e}") from e

        return _to_host(row)

    def get(self, host_id: int) -> NetworkHost:
        stmt = select(*COLUMNS).where(NetworkHostRow.id == host_id)
        try:
            with self.db.session() as session:
                row = session.execute(stmt).one_or_none()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to get network host {host_id}: {e}") from e

        if row is None:
            raise NetworkHostNotFoundError(f"network host {host_id} not found")
        return _to_host(row)

    def list(self, filter: Optional[ListNetworkHostFilter] = None) -> list[NetworkHost]:
        """Hosts ordered case-insensitively by description, falling back to address."""
        stmt = select(*COLUMNS).order_by(
            func.upper(func.coalesce(NetworkHostRow.description, NetworkHostRow.address)).asc()
        )
        if filter is not None:
            if filter.ids:
                stmt = stmt.where(NetworkHostRow.id.in_(filter.ids))
            if filter.network_ids:
                stmt = stmt.where(NetworkHostRow.network_id.in_(filter.network_ids))
            if filter.addresses:
                stmt = stmt.where(NetworkHostRow.address.in_(filter.addresses))
            if filter.search:
                term = f"%{filter.search.upper()}%"
                stmt = stmt.where(or_(
                    func.upper(NetworkHostRow.address).like(term),
                    func.upper(NetworkHostRow.description).like(term),
                ))

        try:
            with self.db.session() as session:
                rows = session.execute(stmt).all()
        except SQLAlchemyError as e:
            raise StorageError(f"failed to list network hosts: {e}") from e

        return [_to_host(row) for row in rows]

    def delete(self, host_id: int) -> None:
        try:
            with self.db.session() as session:
                session.execute(delete(NetworkHostRow).where(NetworkHostRow.id == host_id))
        except SQLAlchemyError as e:
            raise StorageError(f"failed to delete network host {host_id}: {e}") from e
