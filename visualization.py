# visualization.py
"""
Handles the pygame side of the particle field: the window, the drawing
calls and the frame clock.
"""
import logging
from typing import Callable, Optional, Sequence, Tuple

import pygame

from constants import BACKGROUND_COLOR, FPS, FULLSCREEN, WINDOW_CAPTION, WINDOW_HEIGHT, WINDOW_WIDTH
from settings import BoundaryError

# Forward reference for type hinting to avoid circular import
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from engine import Engine


# --- Data Contracts ---
#
# class Visualizer:
#   - __init__(self, width: int = WINDOW_WIDTH, height: int = WINDOW_HEIGHT, fullscreen: bool = FULLSCREEN):
#     - Side Effects: Initializes pygame and creates the display surface.
#   - get_bounds(self) -> Tuple[int, int]:
#     - Raises: BoundaryError if the display is gone or has no area.
#   - clear / draw_line / draw_disc: the render sink used by the Engine.
#   - handle_events(self, engine: "Engine") -> bool:
#     - Outputs: False if the user has quit, True otherwise.
#     - Side Effects: forwards pointer enter/leave to the engine.
#
# class FrameScheduler:
#   - request_next_tick(self, callback) -> None: stores one pending callback.
#   - run_pending(self) -> None: waits for the next frame and runs it.


def hsl_color(hue: float, saturation: float, lightness: float) -> pygame.Color:
    """
    Converts an HSL triple to a pygame colour.

    pygame rejects components outside their range, so the hue wraps around
    and saturation/lightness are clamped to [0, 100] here.
    """
    color = pygame.Color(0, 0, 0)
    color.hsla = (
        hue % 360,
        min(max(saturation, 0), 100),
        min(max(lightness, 0), 100),
        100,
    )
    return color


class Visualizer:
    """
    The pygame window the particles are drawn on.

    Links are drawn on a transparent layer so their alpha blends with the
    background; the layer is composited before the first disc of a frame so
    particles always cover the ends of their links.
    """
    def __init__(self, width: int = WINDOW_WIDTH, height: int = WINDOW_HEIGHT, fullscreen: bool = FULLSCREEN):
        pygame.init()

        if fullscreen:
            display_info = pygame.display.Info()
            width, height = display_info.current_w, display_info.current_h
            self.screen = pygame.display.set_mode((width, height), pygame.FULLSCREEN)
        else:
            self.screen = pygame.display.set_mode((width, height))

        pygame.display.set_caption(WINDOW_CAPTION)
        self.link_layer = pygame.Surface(self.screen.get_size(), pygame.SRCALPHA)
        self._links_composited = False

        logging.info(f"Visualizer initialized with pygame display ({width}x{height}).")

    def get_bounds(self) -> Tuple[int, int]:
        if not pygame.display.get_init() or pygame.display.get_surface() is None:
            raise BoundaryError("The display surface was not found.")
        width, height = self.screen.get_size()
        if width <= 0 or height <= 0:
            raise BoundaryError(f"The display surface has a size of {width}x{height}.")
        return width, height

    def clear(self, bounds: Tuple[int, int]) -> None:
        if self.link_layer.get_size() != tuple(bounds):
            self.link_layer = pygame.Surface(bounds, pygame.SRCALPHA)
        self.screen.fill(BACKGROUND_COLOR)
        self.link_layer.fill((0, 0, 0, 0))
        self._links_composited = False

    def draw_line(
        self,
        start: Tuple[float, float],
        end: Tuple[float, float],
        stroke_width: float,
        rgba: Sequence[float],
    ) -> None:
        if stroke_width <= 0:
            return
        r, g, b, opacity = rgba
        color = (r, g, b, int(round(255 * opacity)))
        # pygame needs a whole number of pixels and draws nothing below 1.
        width = max(1, int(round(stroke_width)))
        pygame.draw.line(self.link_layer, color, start, end, width)

    def draw_disc(self, center: Tuple[float, float], radius: float, fill_color: Sequence[float]) -> None:
        self._composite_links()
        pygame.draw.circle(self.screen, hsl_color(*fill_color), center, radius)

    def _composite_links(self) -> None:
        if not self._links_composited:
            self.screen.blit(self.link_layer, (0, 0))
            self._links_composited = True

    def present(self) -> None:
        self._composite_links()
        pygame.display.flip()

    def handle_events(self, engine: "Engine") -> bool:
        """
        Forwards pygame events to the engine.

        Returns:
            bool: False if the window should close, True otherwise.
        """
        for event in pygame.event.get():
            if event.type == pygame.QUIT:
                logging.info("Quit event received. Shutting down visualizer.")
                return False

            if event.type == pygame.KEYDOWN:
                if event.key == pygame.K_ESCAPE:
                    logging.info("ESC key pressed. Shutting down visualizer.")
                    return False

            if event.type == pygame.WINDOWENTER:
                engine.on_pointer_enter()
            elif event.type == pygame.WINDOWLEAVE:
                engine.on_pointer_leave()
        return True

    def close(self):
        """Shuts down pygame."""
        pygame.quit()


class FrameScheduler:
    """
    Grants at most one tick per display frame, capped at the given FPS.
    """
    def __init__(self, fps: int = FPS):
        self.fps = fps
        self.clock = pygame.time.Clock()
        self._pending: Optional[Callable[[], None]] = None

    @property
    def pending(self) -> bool:
        return self._pending is not None

    def request_next_tick(self, callback: Callable[[], None]) -> None:
        self._pending = callback

    def run_pending(self) -> None:
        if self._pending is None:
            return
        callback, self._pending = self._pending, None
        self.clock.tick(self.fps)
        callback()
