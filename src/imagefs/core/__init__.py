"""Core utilities package.

Glob matching and the cooperative event-loop yield checkpoint. Subprocess
helpers live in imagefs.core.subprocess_utils and are imported directly.
"""

from imagefs.core.globs import expand_braces, is_excluded, match, matches
from imagefs.core.spinner import LoopSpinner

__all__ = [
    "LoopSpinner",
    "expand_braces",
    "is_excluded",
    "match",
    "matches",
]
