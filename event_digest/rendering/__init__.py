"""Card view model and Pillow renderer for the digest."""

from .layout import DEFAULT_LAYOUT, CardLayout
from .renderer import DigestRenderer, RendererConfig, render_date_overlay
from .view import CardSection, DigestCard, build_card

__all__ = [
    "CardLayout",
    "CardSection",
    "DEFAULT_LAYOUT",
    "DigestCard",
    "DigestRenderer",
    "RendererConfig",
    "build_card",
    "render_date_overlay",
]
