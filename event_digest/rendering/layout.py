"""Layout constants for the digest card."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final


@dataclass(frozen=True)
class CardLayout:
    """Collection of reusable layout constants for the card image."""

    canvas_width: int = 800
    canvas_height: int = 480
    outer_padding: int = 24
    icon_size: int = 96
    icon_header_height: int = 24
    column_gap: int = 24
    stripe_width: int = 8
    section_gap: int = 28
    divider_thickness: int = 2
    corner_radius: int = 10
    title_max_lines: int = 2
    location_max_lines: int = 1

    @property
    def content_left(self) -> int:
        return self.outer_padding + self.icon_size + self.column_gap

    @property
    def content_right(self) -> int:
        return self.canvas_width - self.outer_padding

    @property
    def content_width(self) -> int:
        return self.content_right - self.content_left

    @property
    def text_left(self) -> int:
        return self.content_left + self.stripe_width + 12

    @property
    def text_width(self) -> int:
        return self.content_right - self.text_left


DEFAULT_LAYOUT: Final[CardLayout] = CardLayout()

__all__ = ["CardLayout", "DEFAULT_LAYOUT"]
