"""Scanner module for imagefs.

This module provides functionality for discovering manifest and binary files
inside a container image and computing content hashes for the binaries.

Public API:
    - ImageScanner: Lists an image and classifies its files by glob
    - Globs: Manifest and binary glob patterns
    - FindGlobsResult: Result of ImageScanner.find_globs()
    - BinaryHasher: Streams files out of the image and hashes them
    - BinaryFileData: Hash record of one file
    - HashReport: Records plus the paths that could not be hashed
"""

from imagefs.scanner.hasher import BinaryFileData, BinaryHasher, HashReport
from imagefs.scanner.orchestrator import (
    FileCategory,
    FindGlobsResult,
    Globs,
    ImageScanner,
    classify_path,
)

__all__ = [
    "BinaryFileData",
    "BinaryHasher",
    "FileCategory",
    "FindGlobsResult",
    "Globs",
    "HashReport",
    "ImageScanner",
    "classify_path",
]
