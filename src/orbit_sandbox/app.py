"""Interactive pygame frontend for the orbit sandbox."""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

import pygame

from orbit_sandbox.core.config import RENDER_CFG, RenderCfg, SimulationCfg
from orbit_sandbox.core.ephemeris import TableEphemerisSource
from orbit_sandbox.core.logging_utils import RunLogger
from orbit_sandbox.core.missions import MissionTracker, default_objectives
from orbit_sandbox.core.physics import orbital_parameters
from orbit_sandbox.core.simulation import Simulation
from orbit_sandbox.core.timekeeping import FrameTimer
from orbit_sandbox.render import (
    Camera,
    draw_bodies,
    draw_boundary,
    draw_craft,
    draw_dashed_path,
    draw_hud,
    draw_overlay,
    draw_starfield,
    format_distance,
    generate_starfield,
    hud_lines,
    load_font,
    view_radius,
)

logger = logging.getLogger(__name__)

KEY_CONTROLS: dict[int, str] = {
    pygame.K_w: "thrust",
    pygame.K_UP: "thrust",
    pygame.K_a: "rotate_left",
    pygame.K_LEFT: "rotate_left",
    pygame.K_d: "rotate_right",
    pygame.K_RIGHT: "rotate_right",
}
FAST_KEYS = (pygame.K_PLUS, pygame.K_EQUALS, pygame.K_KP_PLUS)
SLOW_KEYS = (pygame.K_MINUS, pygame.K_KP_MINUS)
FONT_NAMES = ["consolas", "dejavusansmono", "menlo", "couriernew"]


def run_app(
    cfg: SimulationCfg,
    *,
    render_cfg: RenderCfg = RENDER_CFG,
    ephemeris_source: Optional[TableEphemerisSource] = None,
    record_dir: Optional[Path] = None,
    title: str = "Orbit Sandbox",
) -> None:
    """Open the window and run until it is closed."""

    pygame.init()
    pygame.display.set_caption(title)
    screen = pygame.display.set_mode((render_cfg.width, render_cfg.height), pygame.RESIZABLE)
    hud_font = load_font(FONT_NAMES, 15)
    label_font = load_font(FONT_NAMES, 13)
    title_font = load_font(FONT_NAMES, 30, bold=True)

    sim = Simulation(cfg, ephemeris_source=ephemeris_source)
    missions = MissionTracker(default_objectives())
    camera = Camera(
        screen.get_size(),
        render_cfg.initial_pixels_per_meter,
        min_ppm=render_cfg.min_pixels_per_meter,
        max_ppm=render_cfg.max_pixels_per_meter,
    )
    stars = generate_starfield(300, size=screen.get_size())
    frame_timer = FrameTimer()
    clock = pygame.time.Clock()
    recorder: Optional[RunLogger] = None

    def open_recorder() -> None:
        nonlocal recorder
        close_recorder()
        if record_dir is None:
            return
        recorder = RunLogger(record_dir)
        recorder.write_meta(sim.describe())
        sim.recorder = recorder
        logger.info("Recording run %s", recorder.run_id)

    def close_recorder() -> None:
        nonlocal recorder
        if recorder is not None:
            recorder.close()
            recorder = None
            sim.recorder = None

    def change_time_scale(factor: float) -> None:
        scale = min(render_cfg.max_time_scale, max(1.0, sim.clock.time_scale * factor))
        sim.set_time_scale(scale)

    def fit_view() -> None:
        camera.set_center(sim.craft.position)
        camera.fit_radius(view_radius(sim.craft.position, sim.bodies))

    def reset() -> None:
        sim.reset()
        frame_timer.reset()
        open_recorder()
        fit_view()

    open_recorder()
    fit_view()
    running = True
    try:
        while running:
            for event in pygame.event.get():
                if event.type == pygame.QUIT:
                    running = False
                elif event.type == pygame.VIDEORESIZE:
                    camera.update_size(event.size)
                    stars = generate_starfield(300, size=event.size)
                elif event.type == pygame.KEYDOWN:
                    if event.key == pygame.K_ESCAPE:
                        running = False
                    elif event.key in KEY_CONTROLS:
                        sim.start_control(KEY_CONTROLS[event.key])
                    elif event.key == pygame.K_SPACE:
                        if missions.completed:
                            missions.advance()
                        else:
                            sim.start()
                    elif event.key == pygame.K_r:
                        reset()
                    elif event.key in FAST_KEYS:
                        change_time_scale(render_cfg.time_scale_step)
                    elif event.key in SLOW_KEYS:
                        change_time_scale(1.0 / render_cfg.time_scale_step)
                    elif event.key == pygame.K_f:
                        camera.toggle_follow()
                elif event.type == pygame.KEYUP and event.key in KEY_CONTROLS:
                    sim.stop_control(KEY_CONTROLS[event.key])
                elif event.type == pygame.MOUSEWHEEL:
                    step = render_cfg.zoom_step if event.y > 0 else 1.0 / render_cfg.zoom_step
                    camera.zoom_by_factor(step)
                elif event.type == pygame.MOUSEBUTTONDOWN and event.button == 1:
                    camera.begin_pan(event.pos)
                elif event.type == pygame.MOUSEMOTION:
                    camera.pan(event.pos)
                elif event.type == pygame.MOUSEBUTTONUP and event.button == 1:
                    camera.end_pan()

            frame_dt = frame_timer.tick()
            if ephemeris_source is not None:
                ephemeris_source.pump()
            outcome = sim.frame(frame_dt)
            if outcome is not None:
                logger.info("Run finished: %s", outcome.detail)
            for sim_event in sim.drain_events():
                logger.debug("Event %s at t=%.1f %s", sim_event.kind, sim_event.time, sim_event.detail)

            snapshot = sim.snapshot()
            missions.update(snapshot, frame_dt)
            camera.track(snapshot.craft.position)

            screen.fill(render_cfg.background_color)
            draw_starfield(screen, stars)
            draw_boundary(screen, snapshot.boundary_radius, camera, render_cfg=render_cfg)
            draw_bodies(screen, snapshot.bodies, camera, render_cfg=render_cfg, label_font=label_font)
            if snapshot.paused:
                draw_dashed_path(
                    screen,
                    snapshot.predicted_path,
                    camera,
                    color=render_cfg.prediction_color,
                    dash_pixels=render_cfg.prediction_dash_pixels,
                )
            draw_craft(screen, snapshot.craft, camera, render_cfg=render_cfg)

            orbit = orbital_parameters(
                snapshot.craft.position,
                snapshot.craft.velocity,
                snapshot.bodies,
                snapshot.gravitational_constant,
            )
            orbit_text: list[str] = []
            if orbit is not None:
                orbit_text = [
                    f"Nearest: {orbit.body_name}  altitude {format_distance(orbit.altitude)}",
                    f"Circular {orbit.circular_speed / 1000.0:,.3f} km/s  "
                    f"escape {orbit.escape_speed / 1000.0:,.3f} km/s",
                    f"Eccentricity {orbit.eccentricity:.3f} ({'bound' if orbit.bound else 'unbound'})",
                ]
            lines = hud_lines(snapshot, render_cfg=render_cfg, orbit_text=orbit_text, mission=missions)
            draw_hud(screen, lines, snapshot.craft.fuel_fraction, font=hud_font, render_cfg=render_cfg)

            if snapshot.outcome is not None:
                draw_overlay(
                    screen,
                    "Mission Failed" if snapshot.outcome.reason != "halted" else "Simulation Halted",
                    snapshot.outcome.detail,
                    title_font=title_font,
                    body_font=hud_font,
                    render_cfg=render_cfg,
                )
            elif missions.completed and snapshot.running and not snapshot.paused:
                draw_overlay(
                    screen,
                    "Mission Complete!",
                    missions.active.description,
                    hint="Press Space for the next mission",
                    title_font=title_font,
                    body_font=hud_font,
                    render_cfg=render_cfg,
                )

            pygame.display.flip()
            clock.tick(render_cfg.fps)
    finally:
        close_recorder()
        pygame.quit()


__all__ = ["KEY_CONTROLS", "run_app"]
