from __future__ import annotations

import math
import random
from typing import TYPE_CHECKING, Iterable, Optional, Sequence

import pygame

from .camera import Camera
from .text import build_text_panel, get_text_surface

if TYPE_CHECKING:  # pragma: no cover
    from orbit_sandbox.core.config import RenderCfg
    from orbit_sandbox.core.missions import MissionTracker
    from orbit_sandbox.core.model import Body, Craft
    from orbit_sandbox.core.simulation import SimulationSnapshot

# Circles beyond this pixel radius are not drawn; pygame slows down badly.
MAX_CIRCLE_PIXELS = 200_000


def _fuel_color(fraction: float, render_cfg: RenderCfg) -> tuple[int, int, int]:
    good, low, empty = render_cfg.fuel_bar_colors
    if fraction > 0.5:
        return good
    if fraction > 0.2:
        return low
    return empty


def format_distance(meters: float) -> str:
    if abs(meters) >= 1e9:
        return f"{meters / 1e9:,.2f} Gm"
    if abs(meters) >= 1e6:
        return f"{meters / 1e6:,.2f} Mm"
    return f"{meters / 1e3:,.1f} km"


def format_duration(seconds: float) -> str:
    seconds = max(0.0, seconds)
    days, rem = divmod(int(seconds), 86_400)
    hours, rem = divmod(rem, 3_600)
    minutes, secs = divmod(rem, 60)
    if days:
        return f"{days}d {hours:02d}:{minutes:02d}:{secs:02d}"
    return f"{hours:02d}:{minutes:02d}:{secs:02d}"


def generate_starfield(
    num_stars: int,
    *,
    size: tuple[int, int],
    rng: Optional[random.Random] = None,
) -> list[tuple[int, int, int]]:
    """Random ``(x, y, brightness)`` triples in screen space."""

    rng = rng or random.Random()
    width, height = size
    return [
        (rng.randrange(max(1, width)), rng.randrange(max(1, height)), rng.randint(90, 220))
        for _ in range(num_stars)
    ]


def draw_starfield(surface: pygame.Surface, stars: Iterable[tuple[int, int, int]]) -> None:
    for x, y, brightness in stars:
        surface.set_at((x, y), (brightness, brightness, min(255, brightness + 20)))


def draw_bodies(
    surface: pygame.Surface,
    bodies: Iterable[Body],
    camera: Camera,
    *,
    render_cfg: RenderCfg,
    label_font: Optional[pygame.font.Font] = None,
) -> None:
    width, height = surface.get_size()
    for body in bodies:
        sx, sy = camera.world_to_screen(body.position[0], body.position[1])
        radius_px = max(render_cfg.min_body_pixel_radius, int(camera.meters_to_pixels(body.radius)))
        if radius_px > MAX_CIRCLE_PIXELS:
            continue
        if sx + radius_px < 0 or sx - radius_px > width or sy + radius_px < 0 or sy - radius_px > height:
            continue
        pygame.draw.circle(surface, body.color, (sx, sy), radius_px)
        if label_font is not None:
            label = get_text_surface(label_font, body.name, render_cfg.hud_text_color)
            surface.blit(label, label.get_rect(midtop=(sx, sy + radius_px + 4)))


def draw_craft(
    surface: pygame.Surface,
    craft: Craft,
    camera: Camera,
    *,
    render_cfg: RenderCfg,
) -> None:
    """Heading triangle with a flame while thrusting."""

    sx, sy = camera.world_to_screen(craft.position[0], craft.position[1])
    size = render_cfg.craft_pixel_size
    heading = craft.orientation
    fx, fy = math.cos(heading), -math.sin(heading)
    # Perpendicular in screen space.
    px, py = -fy, fx
    nose = (sx + fx * size * 1.4, sy + fy * size * 1.4)
    left = (sx - fx * size + px * size * 0.8, sy - fy * size + py * size * 0.8)
    right = (sx - fx * size - px * size * 0.8, sy - fy * size - py * size * 0.8)

    color = render_cfg.destroyed_color if craft.destroyed else render_cfg.craft_color
    if craft.thrusting:
        flicker = 1.6 + random.random() * 0.8
        tail = (sx - fx * size * (1.0 + flicker), sy - fy * size * (1.0 + flicker))
        base_l = (sx - fx * size + px * size * 0.4, sy - fy * size + py * size * 0.4)
        base_r = (sx - fx * size - px * size * 0.4, sy - fy * size - py * size * 0.4)
        pygame.draw.polygon(surface, render_cfg.flame_color, [base_l, tail, base_r])
    pygame.draw.polygon(surface, color, [nose, left, right])


def draw_dashed_path(
    surface: pygame.Surface,
    points: Sequence[tuple[float, float]],
    camera: Camera,
    *,
    color: tuple[int, int, int],
    dash_pixels: int,
) -> None:
    """Dashed polyline through world ``points``; the dash pattern runs across segments."""

    if len(points) < 2:
        return
    screen = [camera.world_to_screen(x, y) for x, y in points]
    dash = max(1, dash_pixels)
    drawing = True
    remaining = float(dash)
    for (x0, y0), (x1, y1) in zip(screen, screen[1:]):
        seg_len = math.hypot(x1 - x0, y1 - y0)
        if seg_len == 0.0:
            continue
        travelled = 0.0
        while travelled < seg_len:
            step = min(remaining, seg_len - travelled)
            if drawing:
                t0 = travelled / seg_len
                t1 = (travelled + step) / seg_len
                start = (x0 + (x1 - x0) * t0, y0 + (y1 - y0) * t0)
                end = (x0 + (x1 - x0) * t1, y0 + (y1 - y0) * t1)
                pygame.draw.line(surface, color, start, end, 1)
            travelled += step
            remaining -= step
            if remaining <= 0.0:
                drawing = not drawing
                remaining = float(dash)


def draw_boundary(
    surface: pygame.Surface,
    radius: float,
    camera: Camera,
    *,
    render_cfg: RenderCfg,
) -> None:
    radius_px = int(camera.meters_to_pixels(radius))
    if radius_px <= 0 or radius_px > MAX_CIRCLE_PIXELS:
        return
    center = camera.world_to_screen(0.0, 0.0)
    pygame.draw.circle(surface, render_cfg.boundary_color, center, radius_px, render_cfg.boundary_line_width)


def hud_lines(
    snapshot: SimulationSnapshot,
    *,
    render_cfg: RenderCfg,
    orbit_text: Sequence[str] = (),
    mission: Optional[MissionTracker] = None,
) -> list[tuple[str, tuple[int, int, int]]]:
    text = render_cfg.hud_text_color
    warn = render_cfg.hud_warning_color
    craft = snapshot.craft
    if not snapshot.running:
        status = "Stopped (Space to start)"
    elif snapshot.paused:
        status = "Paused"
    else:
        status = "Running"
    lines = [
        (f"Status: {status}", text),
        (f"Time: {format_duration(snapshot.elapsed_sim_time)}  x{snapshot.time_scale:g}", text),
        (f"Speed: {craft.speed / 1000.0:,.3f} km/s", text),
        (f"Distance from origin: {format_distance(math.hypot(craft.position[0], craft.position[1]))}", text),
        (f"Fuel: {craft.fuel_fraction * 100.0:5.1f} %", warn if craft.fuel_fraction <= 0.2 else text),
    ]
    lines.extend((line, text) for line in orbit_text)
    if mission is not None:
        state = "Completed!" if mission.completed else "In progress"
        lines.append((f"Mission: {mission.active.name} ({state})", text))
    if snapshot.out_of_bounds:
        lines.append((f"OUT OF BOUNDS: return within {snapshot.boundary_remaining:4.1f} s", warn))
    return lines


def draw_hud(
    surface: pygame.Surface,
    lines: Sequence[tuple[str, tuple[int, int, int]]],
    fuel_fraction: float,
    *,
    font: pygame.font.Font,
    render_cfg: RenderCfg,
) -> None:
    panel = build_text_panel(font, lines, background_color=render_cfg.overlay_color)
    surface.blit(panel, (12, 12))
    bar_w, bar_h = render_cfg.fuel_bar_size
    bar_rect = pygame.Rect(12, 20 + panel.get_height(), bar_w, bar_h)
    pygame.draw.rect(surface, (40, 48, 64), bar_rect, border_radius=3)
    filled = bar_rect.copy()
    filled.width = int(bar_w * max(0.0, min(1.0, fuel_fraction)))
    if filled.width > 0:
        pygame.draw.rect(surface, _fuel_color(fuel_fraction, render_cfg), filled, border_radius=3)


def draw_overlay(
    surface: pygame.Surface,
    title: str,
    message: str,
    *,
    title_font: pygame.font.Font,
    body_font: pygame.font.Font,
    render_cfg: RenderCfg,
    hint: str = "Press R to reset",
) -> None:
    """Centered modal box used for terminal outcomes and mission completion."""

    width, height = surface.get_size()
    shade = pygame.Surface((width, height), pygame.SRCALPHA)
    shade.fill((0, 0, 0, 120))
    surface.blit(shade, (0, 0))

    title_surf = get_text_surface(title_font, title, render_cfg.overlay_title_color)
    body_surf = get_text_surface(body_font, message, render_cfg.hud_text_color)
    hint_surf = get_text_surface(body_font, hint, render_cfg.hud_text_color)
    box_w = max(title_surf.get_width(), body_surf.get_width(), hint_surf.get_width()) + 60
    box_h = title_surf.get_height() + body_surf.get_height() + hint_surf.get_height() + 60
    box = pygame.Surface((box_w, box_h), pygame.SRCALPHA)
    pygame.draw.rect(box, render_cfg.overlay_color, box.get_rect(), border_radius=14)
    y = 20
    for surf in (title_surf, body_surf, hint_surf):
        box.blit(surf, surf.get_rect(midtop=(box_w // 2, y)))
        y += surf.get_height() + 10
    surface.blit(box, box.get_rect(center=(width // 2, height // 2)))


__all__ = [
    "MAX_CIRCLE_PIXELS",
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
    "hud_lines",
]
