# engine.py
"""
Drives the particle field frame by frame.

This module defines the Engine class, which owns the lifecycle of the
effect (idle, initializing, running, stopped), resolves the settings once
the surface size is known, and on every granted tick advances the field and
emits the draw calls for that frame.
"""
import logging
import queue
from enum import Enum
from typing import Any, Dict, Optional, Tuple

from constants import LINK_RGB
from interaction import InteractionController
from particle import ParticleField
from settings import BoundaryError, resolve_settings

# --- Data Contracts ---
#
# class Engine:
#   - __init__(self, surface, sink, scheduler, settings=None, seed=None, log_throttle=100):
#     - Inputs:
#       - surface: object with get_bounds() -> (width, height), raising
#         BoundaryError when the surface is unavailable or empty.
#       - sink: object with
#           clear(bounds)
#           draw_line(point_a, point_b, stroke_width, rgba)
#           draw_disc(center, radius, fill_color)   # fill_color = (h, s, l)
#       - scheduler: object with request_next_tick(callback).
#       - settings: partial particle settings (see settings.SETTING_KEYS).
#       - seed: optional seed for the particle generator.
#   - start(self) -> None:
#     - Side Effects: IDLE/STOPPED -> INITIALIZING -> RUNNING (first tick
#       requested) or STOPPED (bounds invalid, nothing created).
#     - Raises: any non-BoundaryError setup failure, after moving to STOPPED.
#   - stop(self) -> None: any state -> STOPPED, effective at the next tick.
#   - on_tick(self) -> None:
#     - Invariants: no-op unless RUNNING; requests exactly one next tick
#       when it runs; links are drawn before particles.
#   - on_pointer_enter / on_pointer_leave: queued while RUNNING, applied at
#     the start of the next tick.


class EngineState(Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    RUNNING = "running"
    STOPPED = "stopped"


class _PointerEvent(Enum):
    ENTER = "enter"
    LEAVE = "leave"


class Engine:
    """
    Owns the settings, the particle field and the hover controller, and
    turns externally granted ticks into frames.
    """
    def __init__(
        self,
        surface: Any,
        sink: Any,
        scheduler: Any,
        settings: Optional[Dict[str, Any]] = None,
        seed: Optional[int] = None,
        log_throttle: int = 100,
    ):
        self.surface = surface
        self.sink = sink
        self.scheduler = scheduler
        self.partial_settings: Dict[str, Any] = dict(settings or {})
        self.seed = seed
        self.log_throttle = max(1, int(log_throttle))

        self.state = EngineState.IDLE
        self.settings: Optional[Dict[str, float]] = None
        self.bounds: Optional[Tuple[int, int]] = None
        self.field: Optional[ParticleField] = None
        self.controller: Optional[InteractionController] = None
        self.tick_count = 0

        # Pointer signals can come from another thread; they are only
        # consumed by on_tick so they never interleave with an update.
        self._pointer_events = queue.SimpleQueue()
        self._tick_pending = False

    @property
    def is_running(self) -> bool:
        return self.state is EngineState.RUNNING

    def start(self) -> None:
        """Starts the effect, or restarts it with a new field after a stop."""
        if self.state not in (EngineState.IDLE, EngineState.STOPPED):
            logging.debug(f"start() ignored, engine is {self.state.value}.")
            return

        logging.info("Engine initialization.")
        self.state = EngineState.INITIALIZING
        try:
            bounds = self.surface.get_bounds()
            settings = resolve_settings(self.partial_settings, *bounds)
        except BoundaryError as e:
            logging.error(f"{e} Make sure the surface has a non-null size. Cancelling initialization.")
            self._abort_start()
            return
        except Exception:
            logging.exception("Surface query failed. Cancelling initialization.")
            self._abort_start()
            raise

        logging.info(f"Surface size (w, h) : ({bounds[0]}, {bounds[1]})")
        try:
            field = ParticleField(self.seed)
            field.initialize(settings, bounds)
        except Exception:
            logging.exception("Particle creation failed. Cancelling initialization.")
            self._abort_start()
            raise
        self.bounds = bounds
        self.settings = settings
        self.field = field
        self.controller = InteractionController(field, settings)
        self.tick_count = 0
        self._drain_pointer_events(apply=False)

        self.state = EngineState.RUNNING
        logging.info("Everything is ready.")
        self._request_tick()

    def _abort_start(self) -> None:
        self.field = None
        self.controller = None
        self.state = EngineState.STOPPED

    def stop(self) -> None:
        if self.state is not EngineState.STOPPED:
            logging.info("Engine stopping.")
        self.state = EngineState.STOPPED

    def set_multiplier_in(self, multiplier: float) -> None:
        """Multiplier applied on the next pointer enter."""
        self._set_setting('multiplier_in', multiplier)

    def set_multiplier_out(self, multiplier: float) -> None:
        """Multiplier applied on the next pointer leave."""
        self._set_setting('multiplier_out', multiplier)

    def _set_setting(self, key: str, value: float) -> None:
        # Kept in the partial settings too so a restart does not lose it.
        self.partial_settings[key] = value
        if self.settings is not None:
            self.settings[key] = value

    def on_pointer_enter(self) -> None:
        if self.is_running:
            self._pointer_events.put(_PointerEvent.ENTER)

    def on_pointer_leave(self) -> None:
        if self.is_running:
            self._pointer_events.put(_PointerEvent.LEAVE)

    def on_tick(self) -> None:
        """Runs one frame: pointer events, physics, render, next request."""
        self._tick_pending = False
        if not self.is_running:
            logging.info("Loop stopped.")
            return

        self._drain_pointer_events(apply=True)
        self.field.tick(self.bounds)
        self.render()
        self.tick_count += 1

        # Hot loops must throttle logs
        if self.tick_count % self.log_throttle == 0:
            logging.info(f"Tick {self.tick_count}")
            logging.debug(f"Tick {self.tick_count} | Average Speed: {self.field.average_speed():.4f}")

        self._request_tick()

    def render(self) -> None:
        """Clears the surface, then draws links under the particles."""
        settings = self.settings
        self.sink.clear(self.bounds)

        line_width = settings['line_width']
        for link in self.field.compute_links(settings['tolerance']):
            self.sink.draw_line(
                (link.source.x, link.source.y),
                (link.target.x, link.target.y),
                line_width,
                (*LINK_RGB, link.opacity),
            )

        for particle in self.field:
            params = particle.render_parameters()
            self.sink.draw_disc(
                (params.x, params.y),
                params.radius,
                (params.hue, params.saturation, params.lightness),
            )

    def _request_tick(self) -> None:
        # A stop/start cycle can happen while the previous request is still
        # outstanding; that request will pick up the new run.
        if self._tick_pending:
            return
        self._tick_pending = True
        self.scheduler.request_next_tick(self.on_tick)

    def _drain_pointer_events(self, apply: bool) -> None:
        while True:
            try:
                event = self._pointer_events.get_nowait()
            except queue.Empty:
                return
            if not apply:
                continue
            if event is _PointerEvent.ENTER:
                self.controller.pointer_enter()
            else:
                self.controller.pointer_leave()
