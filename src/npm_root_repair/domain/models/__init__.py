from npm_root_repair.domain.models.app_config import AppConfig, RuntimePaths
from npm_root_repair.domain.models.asset import Asset, AssetKind
from npm_root_repair.domain.models.batch_cursor import BatchCursor, next_cursor
from npm_root_repair.domain.models.blob import Blob, BlobMetrics
from npm_root_repair.domain.models.package_id import NpmPackageId
from npm_root_repair.domain.models.package_root import PackageRoot
from npm_root_repair.domain.models.repository import Repository, RepositoryType
from npm_root_repair.domain.models.results import BatchResult, RepositoryRepairResult

__all__ = [
    "AppConfig",
    "Asset",
    "AssetKind",
    "BatchCursor",
    "BatchResult",
    "Blob",
    "BlobMetrics",
    "NpmPackageId",
    "PackageRoot",
    "Repository",
    "RepositoryRepairResult",
    "RepositoryType",
    "RuntimePaths",
    "next_cursor",
]
