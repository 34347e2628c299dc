"""Display surfaces for the digest card."""
from __future__ import annotations

from .base import DisplayDriver
from .mock import DEFAULT_RESOLUTION, MockDisplayDriver

__all__ = [
    "DEFAULT_RESOLUTION",
    "DisplayDriver",
    "MockDisplayDriver",
]
