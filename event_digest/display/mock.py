"""In-memory display used when no physical surface is attached."""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Optional

from PIL import Image

from .base import DisplayDriver

DEFAULT_RESOLUTION: tuple[int, int] = (800, 480)


@dataclass
class MockDisplayDriver(DisplayDriver):
    """Keeps pushed frames in memory and optionally writes them as PNG files."""

    resolution: tuple[int, int] = DEFAULT_RESOLUTION
    output_dir: Optional[Path] = None
    logger: logging.Logger = field(default_factory=lambda: logging.getLogger(__name__))
    keep_history: bool = True

    def __post_init__(self) -> None:
        self._initialized = False
        self._history: list[Image.Image] = []
        if self.output_dir is not None:
            self.output_dir = Path(self.output_dir)
            self.output_dir.mkdir(parents=True, exist_ok=True)

    def initialize(self) -> None:
        if not self._initialized:
            self.logger.debug("Mock display initialized")
            self._initialized = True

    def display_image(self, image: Image.Image) -> None:
        if not self._initialized:
            raise RuntimeError("Mock display has not been initialized. Call initialize() first.")
        if image.size != self.resolution:
            raise ValueError(
                f"Image has resolution {image.size}, expected {self.resolution} for the mock display."
            )
        processed = image.convert("L")
        if self.keep_history:
            self._history.append(processed.copy())
        if self.output_dir is not None:
            timestamp = datetime.now(timezone.utc).strftime("%Y%m%d-%H%M%S-%fZ")
            output_path = self.output_dir / f"digest-frame-{timestamp}.png"
            processed.save(output_path)
            self.logger.debug("Saved mock frame to %s", output_path)

    def sleep(self) -> None:
        if self._initialized:
            self.logger.debug("Mock display sleeping")
            self._initialized = False

    @property
    def history(self) -> list[Image.Image]:
        """Return copies of the frames pushed to the display (if enabled)."""

        return [frame.copy() for frame in self._history]
