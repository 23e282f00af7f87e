"""Helpers for the denormalized npm package-root document.

A package root aggregates every published version of one package::

    {
        "_id": "@scope/name",
        "name": "@scope/name",
        "dist-tags": {"latest": "1.0.0"},
        "versions": {
            "1.0.0": {..., "dist": {"shasum": "...", "integrity": "sha512-...", "tarball": "..."}},
        },
    }
"""

from __future__ import annotations

import copy
from collections.abc import Mapping
from typing import Callable, cast

from npm_root_repair.domain.models.package_id import NpmPackageId

PackageRoot = dict[str, object]

META_ID = "_id"
META_REV = "_rev"
P_NAME = "name"
P_VERSION = "version"
DIST_TAGS = "dist-tags"
LATEST = "latest"
VERSIONS = "versions"
DIST = "dist"
SHASUM = "shasum"
INTEGRITY = "integrity"
TARBALL = "tarball"


def child(document: dict[str, object], key: str) -> dict[str, object]:
    """Return the nested mapping under ``key``, creating it when missing."""
    value = document.get(key)
    if not isinstance(value, dict):
        value = {}
        document[key] = value
    return cast(dict[str, object], value)


def get_dist(package_root: dict[str, object], version: str) -> dict[str, object]:
    return child(child(child(package_root, VERSIONS), version), DIST)


def find_dist_value(package_root: Mapping[str, object], version: str, key: str) -> str | None:
    """Read ``versions[version].dist[key]`` without creating intermediate nodes."""
    node: object = package_root
    for part in (VERSIONS, version, DIST):
        if not isinstance(node, Mapping):
            return None
        node = cast(Mapping[str, object], node).get(part)
    if not isinstance(node, Mapping):
        return None
    value = cast(Mapping[str, object], node).get(key)
    return value if isinstance(value, str) else None


def extract_package_root_version_unless_empty(package_root_version: str, package_json_version: str) -> str:
    return package_root_version if package_root_version else package_json_version


def create_full_package_metadata(
    package_json: Mapping[str, object],
    repository_name: str,
    sha1sum: str,
) -> PackageRoot:
    """Shape one parsed ``package.json`` into a single-version package root.

    The shasum always comes from the blob store, never from the manifest.
    """
    package_name = str(package_json.get(P_NAME) or "")
    package_version = str(package_json.get(P_VERSION) or "")
    package_id = NpmPackageId.parse(package_name)

    package_root: PackageRoot = {
        META_ID: package_id.id,
        P_NAME: package_id.id,
        DIST_TAGS: {LATEST: package_version},
    }

    version_root = child(child(package_root, VERSIONS), package_version)
    for key, value in package_json.items():
        version_root[key] = copy.deepcopy(value)
    version_root[META_ID] = f"{package_id.id}@{package_version}"

    dist = child(version_root, DIST)
    dist[SHASUM] = sha1sum
    dist[TARBALL] = f"{repository_name}/{package_id.repository_path(package_version)}"
    return package_root


def _overlay(target: dict[str, object], source: Mapping[str, object]) -> None:
    for key, value in source.items():
        existing = target.get(key)
        if isinstance(value, Mapping) and isinstance(existing, dict):
            _overlay(cast(dict[str, object], existing), cast(Mapping[str, object], value))
        else:
            target[key] = copy.deepcopy(value)


def merge_package_root(
    stored: Mapping[str, object],
    fragment: Mapping[str, object],
    latest_resolver: Callable[[str, str], str] = extract_package_root_version_unless_empty,
) -> PackageRoot:
    """Overlay ``fragment`` on a copy of ``stored``; other versions are left untouched."""
    merged = cast(PackageRoot, copy.deepcopy(dict(stored)))
    _overlay(merged, fragment)

    stored_tags = stored.get(DIST_TAGS)
    fragment_tags = fragment.get(DIST_TAGS)
    stored_latest = ""
    fragment_latest = ""
    if isinstance(stored_tags, Mapping):
        stored_latest = str(cast(Mapping[str, object], stored_tags).get(LATEST) or "")
    if isinstance(fragment_tags, Mapping):
        fragment_latest = str(cast(Mapping[str, object], fragment_tags).get(LATEST) or "")
    latest = latest_resolver(stored_latest, fragment_latest)
    if latest:
        child(merged, DIST_TAGS)[LATEST] = latest
    return merged
