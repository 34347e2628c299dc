"""Renderer for composing the upcoming-event card image."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Sequence

from PIL import Image, ImageDraw, ImageFont

from .layout import DEFAULT_LAYOUT, CardLayout
from .view import CardSection, DigestCard

NO_EVENTS_TEXT = "No upcoming events"

# Grey levels for the section stripe, indexed by calendar colour tag. Tag 0
# (no colour) uses the foreground colour.
STRIPE_SHADES = (32, 64, 96, 128, 160)


def _font_length(font: ImageFont.ImageFont, text: str) -> float:
    return float(font.getlength(text))


def _load_font(path_candidates: Sequence[Path], size: int) -> ImageFont.ImageFont:
    for candidate in path_candidates:
        if candidate and candidate.exists():
            return ImageFont.truetype(str(candidate), size=size)
    return ImageFont.load_default(size=size)


def _default_font_candidates(bold: bool) -> List[Path]:
    names = [
        "DejaVuSans-Bold.ttf" if bold else "DejaVuSans.ttf",
        "Arial Bold.ttf" if bold else "Arial.ttf",
    ]
    candidates: List[Path] = []
    search_dirs = [
        Path("/usr/share/fonts/truetype/dejavu"),
        Path("/usr/share/fonts"),
        Path("/Library/Fonts"),
        Path.home() / ".fonts",
    ]
    for name in names:
        for directory in search_dirs:
            candidates.append(directory / name)
    return candidates


def render_date_overlay(day_number: int, font: ImageFont.ImageFont, *, fill: int = 0) -> Image.Image:
    """Return a tight bitmap of ``day_number`` for the calendar icon.

    Single digits and numbers starting with ``2`` or ending in ``1`` or ``0``
    get one pixel of left padding so they sit centred in the icon.
    """

    text = str(day_number)
    _, _, right, bottom = font.getbbox(text)
    width = max(1, int(math.ceil(right)))
    height = max(1, int(math.ceil(bottom)))
    left_padding = 1 if (len(text) == 1 or text[0] == "2" or text[-1] in "10") else 0

    overlay = Image.new("L", (width + left_padding, height), color=255)
    ImageDraw.Draw(overlay).text((left_padding, 0), text, font=font, fill=fill)
    return overlay


@dataclass
class RendererConfig:
    """Configuration values and font management for the renderer."""

    layout: CardLayout = DEFAULT_LAYOUT
    font_regular_path: Path | None = None
    font_bold_path: Path | None = None
    preview_output_dir: Path | None = None
    background_color: int = 255
    foreground_color: int = 0
    muted_color: int = 96
    date_font_size: int = 44
    when_font_size: int = 22
    title_font_size: int = 34
    body_font_size: int = 22

    def __post_init__(self) -> None:
        if self.preview_output_dir is not None:
            self.preview_output_dir = Path(self.preview_output_dir)
            self.preview_output_dir.mkdir(parents=True, exist_ok=True)

    def _font_candidates(self, bold: bool) -> List[Path]:
        provided = self.font_bold_path if bold else self.font_regular_path
        candidates: List[Path] = []
        if provided is not None:
            candidates.append(Path(provided))
        candidates.extend(_default_font_candidates(bold))
        return candidates

    def font(self, size: int, *, bold: bool = False) -> ImageFont.ImageFont:
        return _load_font(self._font_candidates(bold), size)


class DigestRenderer:
    """Compose the card image for the display."""

    def __init__(self, config: RendererConfig | None = None) -> None:
        self.config = config or RendererConfig()

    @property
    def size(self) -> tuple[int, int]:
        layout = self.config.layout
        return layout.canvas_width, layout.canvas_height

    def render(self, card: DigestCard, now: datetime, *, preview_name: str | None = None) -> Image.Image:
        """Render ``card`` and return a grayscale Pillow image."""

        cfg = self.config
        image = Image.new("L", self.size, color=cfg.background_color)
        draw = ImageDraw.Draw(image)

        if card.no_events or card.primary is None:
            self._draw_no_events(draw)
        else:
            self._draw_icon(image, draw, card.day_number)
            y = self._draw_primary(draw, card.primary, card.title2)
            if card.secondary is not None:
                self._draw_secondary(draw, card.secondary, y + cfg.layout.section_gap)

        if cfg.preview_output_dir is not None:
            name = preview_name or now.strftime("%Y%m%d-%H%M%S")
            image.save(cfg.preview_output_dir / f"{name}.png")

        return image

    # ------------------------------------------------------------------
    # Rendering helpers
    # ------------------------------------------------------------------
    def _draw_no_events(self, draw: ImageDraw.ImageDraw) -> None:
        cfg = self.config
        font = cfg.font(cfg.title_font_size)
        width, height = self.size
        text_width = _font_length(font, NO_EVENTS_TEXT)
        x = (width - text_width) / 2
        y = (height - cfg.title_font_size) / 2
        draw.text((x, y), NO_EVENTS_TEXT, font=font, fill=cfg.muted_color)

    def _draw_icon(self, image: Image.Image, draw: ImageDraw.ImageDraw, day_number: int) -> None:
        cfg = self.config
        layout = cfg.layout
        left = layout.outer_padding
        top = layout.outer_padding
        right = left + layout.icon_size
        bottom = top + layout.icon_size

        draw.rounded_rectangle(
            (left, top, right, bottom),
            radius=layout.corner_radius,
            outline=cfg.foreground_color,
            width=2,
        )
        draw.rectangle((left, top, right, top + layout.icon_header_height), fill=cfg.foreground_color)

        overlay = render_date_overlay(day_number, cfg.font(cfg.date_font_size, bold=True), fill=cfg.foreground_color)
        body_top = top + layout.icon_header_height
        x = left + (layout.icon_size - overlay.width) // 2
        y = body_top + (bottom - body_top - overlay.height) // 2
        image.paste(overlay, (x, y))

    def _draw_primary(self, draw: ImageDraw.ImageDraw, section: CardSection, title2: str | None) -> int:
        cfg = self.config
        layout = cfg.layout
        when_font = cfg.font(cfg.when_font_size, bold=True)
        title_font = cfg.font(cfg.title_font_size, bold=True)
        body_font = cfg.font(cfg.body_font_size)

        top = layout.outer_padding
        y = top
        draw.text((layout.text_left, y), section.when, font=when_font, fill=cfg.foreground_color)
        y += cfg.when_font_size + 8

        for line in self._wrap_text(section.title, title_font, max_width=layout.text_width, max_lines=layout.title_max_lines):
            draw.text((layout.text_left, y), line, font=title_font, fill=cfg.foreground_color)
            y += cfg.title_font_size + 4

        if section.where:
            for line in self._wrap_text(section.where, body_font, max_width=layout.text_width, max_lines=layout.location_max_lines):
                draw.text((layout.text_left, y), line, font=body_font, fill=cfg.muted_color)
                y += cfg.body_font_size + 4

        if title2:
            y += 6
            draw.line(
                (layout.text_left, y, layout.content_right, y),
                fill=cfg.foreground_color,
                width=layout.divider_thickness,
            )
            y += layout.divider_thickness + 8
            line = self._truncate_line(title2, body_font, layout.text_width)
            draw.text((layout.text_left, y), line, font=body_font, fill=cfg.foreground_color)
            y += cfg.body_font_size + 4

        self._draw_stripe(draw, top, y, section.color)
        return y

    def _draw_secondary(self, draw: ImageDraw.ImageDraw, section: CardSection, top: int) -> int:
        cfg = self.config
        layout = cfg.layout
        when_font = cfg.font(cfg.when_font_size)
        title_font = cfg.font(cfg.body_font_size, bold=True)

        y = top
        draw.text((layout.text_left, y), section.when, font=when_font, fill=cfg.muted_color)
        y += cfg.when_font_size + 6
        line = self._truncate_line(section.title, title_font, layout.text_width)
        draw.text((layout.text_left, y), line, font=title_font, fill=cfg.foreground_color)
        y += cfg.body_font_size + 4

        self._draw_stripe(draw, top, y, section.color)
        return y

    def _draw_stripe(self, draw: ImageDraw.ImageDraw, top: int, bottom: int, color: int) -> None:
        layout = self.config.layout
        draw.rectangle(
            (layout.content_left, top, layout.content_left + layout.stripe_width, bottom),
            fill=self.stripe_fill(color),
        )

    def stripe_fill(self, color: int) -> int:
        """Return the grey level used for a section with colour tag ``color``."""

        if color <= 0:
            return self.config.foreground_color
        return STRIPE_SHADES[(color - 1) % len(STRIPE_SHADES)]

    def _wrap_text(
        self,
        text: str,
        font: ImageFont.ImageFont,
        *,
        max_width: int,
        max_lines: int,
    ) -> List[str]:
        words = text.split()
        if not words:
            return []
        lines: List[str] = []
        current = words[0]
        for word in words[1:]:
            candidate = f"{current} {word}"
            if _font_length(font, candidate) <= max_width:
                current = candidate
            else:
                lines.append(current)
                current = word
        lines.append(current)

        wrapped = [self._truncate_line(line, font, max_width) for line in lines]
        if len(wrapped) <= max_lines:
            return wrapped
        truncated_lines = wrapped[:max_lines]
        last_line = truncated_lines[-1]
        ellipsis = "…"
        while last_line and _font_length(font, last_line + ellipsis) > max_width:
            last_line = last_line[:-1].rstrip()
        truncated_lines[-1] = (last_line + ellipsis) if last_line else ellipsis
        return truncated_lines

    def _truncate_line(self, line: str, font: ImageFont.ImageFont, max_width: int) -> str:
        if _font_length(font, line) <= max_width:
            return line
        ellipsis = "…"
        current = line
        while current and _font_length(font, current + ellipsis) > max_width:
            current = current[:-1].rstrip()
        return (current + ellipsis) if current else ellipsis


__all__ = ["DigestRenderer", "NO_EVENTS_TEXT", "RendererConfig", "STRIPE_SHADES", "render_date_overlay"]
