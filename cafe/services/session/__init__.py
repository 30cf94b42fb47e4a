"""Session registry module.

Session directory over the shared cache plus its periodic cleanup worker.
"""

from .service import (
    DEFAULT_SESSION_TTL_SECONDS,
    CacheSessionRegistry,
    SessionRegistry,
)
from .worker import SessionCleanupWorker

__all__ = [
    "DEFAULT_SESSION_TTL_SECONDS",
    "CacheSessionRegistry",
    "SessionRegistry",
    "SessionCleanupWorker",
]
