"""Top-level package for the upcoming-event digest engine."""

from __future__ import annotations

from .digest import MAX_CLUSTERS, Digest, EventInstance, build_digest
from .scheduler import RefreshResult, RefreshScheduler
from .timeline import event_flip_instant, flip_instant, localize

__all__ = [
    "__version__",
    "Digest",
    "EventInstance",
    "MAX_CLUSTERS",
    "RefreshResult",
    "RefreshScheduler",
    "build_digest",
    "event_flip_instant",
    "flip_instant",
    "localize",
]

__version__ = "0.1.0"
