from npm_root_repair.domain.protocols.package_parser_protocol import PackageParserProtocol
from npm_root_repair.domain.protocols.package_root_store_protocol import PackageRootStoreProtocol
from npm_root_repair.domain.protocols.repository_registry_protocol import RepositoryRegistryProtocol
from npm_root_repair.domain.protocols.scheduler_protocol import SchedulerProtocol
from npm_root_repair.domain.protocols.storage_tx_protocol import StorageTxProtocol
from npm_root_repair.domain.protocols.transactional_batch_runner_protocol import (
    TransactionalBatchRunnerProtocol,
)

__all__ = [
    "PackageParserProtocol",
    "PackageRootStoreProtocol",
    "RepositoryRegistryProtocol",
    "SchedulerProtocol",
    "StorageTxProtocol",
    "TransactionalBatchRunnerProtocol",
]
