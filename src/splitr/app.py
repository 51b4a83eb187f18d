"""Wiring of storage, command execution and use cases."""
import logging
from dataclasses import dataclass
from typing import Optional

from .command.executor import CommandExecutor
from .config import Settings
from .storage import (
    Database,
    NetworkHostSetupStorage,
    NetworkHostStorage,
    NetworkStorage,
    TransactionManager,
)
from .usecase import (
    NetworkHostSetupUseCase,
    NetworkHostUseCase,
    NetworkUseCase,
    Resolver,
)

logger = logging.getLogger(__name__)


@dataclass
class App:
    settings: Settings
    db: Database
    executor: CommandExecutor
    network_host_setup: NetworkHostSetupUseCase
    networks: NetworkUseCase
    network_hosts: NetworkHostUseCase

    def close(self) -> None:
        self.db.close()


def create_app(
    settings: Settings,
    executor: Optional[CommandExecutor] = None,
    resolver: Optional[Resolver] = None,
    db: Optional[Database] = None,
) -> App:
    """Build the object graph; each use case gets its collaborators explicitly."""
    db = db or Database.open(settings.db_path)
    executor = executor or CommandExecutor()
    tx = TransactionManager(db)

    network_storage = NetworkStorage(db)
    network_host_storage = NetworkHostStorage(db)
    network_host_setup_storage = NetworkHostSetupStorage(db)

    network_host_setup = NetworkHostSetupUseCase(
        tx,
        executor,
        network_storage,
        network_host_storage,
        network_host_setup_storage,
        resolver=resolver,
    )

    return App(
        settings=settings,
        db=db,
        executor=executor,
        network_host_setup=network_host_setup,
        networks=NetworkUseCase(tx, executor, network_storage, network_host_setup),
        network_hosts=NetworkHostUseCase(
            tx, network_host_setup, network_storage, network_host_storage
        ),
    )
