"""Failures raised by the repair engine."""

from __future__ import annotations


class RepairError(Exception):
    """Base exception for repair failures."""


class ManifestParseError(RepairError):
    """A tarball's package.json is missing, unreadable or lacks name/version."""

    def __init__(self, message: str, asset_name: str | None = None) -> None:
        super().__init__(message)
        self.asset_name = asset_name


class TransactionError(RepairError):
    """The storage transaction for a batch could not be completed."""

    def __init__(self, message: str, repository: str | None = None) -> None:
        super().__init__(message)
        self.repository = repository


class PackageRootConflictError(RepairError):
    """A guarded package-root write found a different revision than expected."""

    def __init__(self, package_id: str, expected: str, actual: str | None) -> None:
        super().__init__(
            f"Package root {package_id} changed concurrently: expected rev {expected!r}, found {actual!r}"
        )
        self.package_id = package_id
        self.expected = expected
        self.actual = actual


class PackageRootReadError(RepairError):
    """A stored package-root document could not be decoded."""

    def __init__(self, package_id: str, message: str) -> None:
        super().__init__(f"Unreadable package root {package_id}: {message}")
        self.package_id = package_id
