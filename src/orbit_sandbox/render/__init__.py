"""Rendering helpers for the orbit sandbox."""

from .camera import Camera, view_radius
from .draw import (
    draw_bodies,
    draw_boundary,
    draw_craft,
    draw_dashed_path,
    draw_hud,
    draw_overlay,
    draw_starfield,
    format_distance,
    format_duration,
    generate_starfield,
    hud_lines,
)
from .text import build_text_panel, get_text_surface, load_font

__all__ = [
    "Camera",
    "build_text_panel",
    "draw_bodies",
    "draw_boundary",
    "draw_craft",
    "draw_dashed_path",
    "draw_hud",
    "draw_overlay",
    "draw_starfield",
    "format_distance",
    "format_duration",
    "generate_starfield",
    "get_text_surface",
    "hud_lines",
    "load_font",
    "view_radius",
]
