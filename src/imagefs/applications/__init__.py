"""Application manifest helpers for imagefs."""

from imagefs.applications.node import (
    LOCKFILE_TYPES,
    NodeManifestPair,
    pair_node_lockfiles,
    read_manifest_files,
)

__all__ = [
    "LOCKFILE_TYPES",
    "NodeManifestPair",
    "pair_node_lockfiles",
    "read_manifest_files",
]
