"""
Shared fixtures: recording stand-ins for the surface, render sink and
frame scheduler the Engine talks to.
"""
import os

# pygame must not open a real window during tests.
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")
os.environ.setdefault("SDL_AUDIODRIVER", "dummy")

import pytest

from settings import BoundaryError


class FakeSurface:
    def __init__(self, width, height):
        self.width = width
        self.height = height

    def get_bounds(self):
        if self.width <= 0 or self.height <= 0:
            raise BoundaryError(f"The surface has a size of {self.width}x{self.height}.")
        return self.width, self.height


class RecordingSink:
    """Keeps every draw call as a (name, args) tuple."""
    def __init__(self):
        self.calls = []

    def clear(self, bounds):
        self.calls.append(("clear", (bounds,)))

    def draw_line(self, start, end, stroke_width, rgba):
        self.calls.append(("line", (start, end, stroke_width, rgba)))

    def draw_disc(self, center, radius, fill_color):
        self.calls.append(("disc", (center, radius, fill_color)))

    def names(self):
        return [name for name, _ in self.calls]

    def reset(self):
        self.calls = []


class ManualScheduler:
    """Holds requested callbacks until the test grants a tick."""
    def __init__(self):
        self.requests = []

    def request_next_tick(self, callback):
        self.requests.append(callback)

    def grant(self, times=1):
        for _ in range(times):
            if not self.requests:
                return
            callback = self.requests.pop(0)
            callback()


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def scheduler():
    return ManualScheduler()


@pytest.fixture
def surface():
    return FakeSurface(800, 400)
