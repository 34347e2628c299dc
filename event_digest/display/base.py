"""Abstract display driver interface used by the application."""
from __future__ import annotations

from abc import ABC, abstractmethod

from PIL import Image


class DisplayDriver(ABC):
    """Defines the behaviour required from any surface showing the card."""

    @property
    @abstractmethod
    def resolution(self) -> tuple[int, int]:
        """Return the (width, height) of the display in pixels."""

    @abstractmethod
    def initialize(self) -> None:
        """Power on and prepare the display for updates."""

    @abstractmethod
    def display_image(self, image: Image.Image) -> None:
        """Push a rendered PIL image to the display."""

    @abstractmethod
    def sleep(self) -> None:
        """Put the display into low power sleep mode."""
