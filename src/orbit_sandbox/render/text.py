from __future__ import annotations

from collections import OrderedDict
from typing import Iterable, Optional, Sequence

import pygame


Color = tuple[int, int, int] | tuple[int, int, int, int]

_TEXT_SURFACE_CACHE_MAX_SIZE = 256
_TEXT_SURFACE_CACHE: OrderedDict[tuple[int, str, Color], pygame.Surface] = OrderedDict()


def get_text_surface(font: pygame.font.Font, text: str, color: Color) -> pygame.Surface:
    """Rendered text surface, cached per font, text and color."""

    key = (id(font), text, color)
    cached = _TEXT_SURFACE_CACHE.get(key)
    if cached is not None:
        _TEXT_SURFACE_CACHE.move_to_end(key)
        return cached
    rendered = font.render(text, True, color)
    _TEXT_SURFACE_CACHE[key] = rendered
    if len(_TEXT_SURFACE_CACHE) > _TEXT_SURFACE_CACHE_MAX_SIZE:
        _TEXT_SURFACE_CACHE.popitem(last=False)
    return rendered


def load_font(preferred_names: Iterable[str], size: int, *, bold: bool = False) -> pygame.font.Font:
    names = list(preferred_names)
    for name in names:
        match = pygame.font.match_font(name, bold=bold)
        if match:
            return pygame.font.Font(match, size)
    return pygame.font.SysFont(names[0] if names else None, size, bold=bold)


def build_text_panel(
    font: pygame.font.Font,
    lines: Sequence[tuple[str, tuple[int, int, int]]],
    *,
    background_color: Color,
    padding: tuple[int, int] = (12, 10),
    min_width: Optional[int] = None,
) -> pygame.Surface:
    """Rounded translucent panel holding one text line per entry."""

    if not lines:
        raise ValueError("lines must not be empty")
    padding_x, padding_y = padding
    line_height = font.get_linesize()
    width = max(font.size(text)[0] for text, _ in lines) + padding_x * 2
    if min_width is not None:
        width = max(width, min_width)
    height = line_height * len(lines) + padding_y * 2
    panel = pygame.Surface((width, height), pygame.SRCALPHA)
    pygame.draw.rect(panel, background_color, panel.get_rect(), border_radius=10)
    for idx, (text, color) in enumerate(lines):
        if text:
            panel.blit(get_text_surface(font, text, color), (padding_x, padding_y + idx * line_height))
    return panel


__all__ = ["Color", "build_text_panel", "get_text_surface", "load_font"]
