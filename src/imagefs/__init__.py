"""imagefs: find and fingerprint files inside container images."""

__version__ = "0.1.0"
