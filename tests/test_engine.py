"""
Tests for the Engine lifecycle, tick loop, pointer forwarding and draw
order, using recording stand-ins for the host.
"""
import pytest

from conftest import FakeSurface
from engine import Engine, EngineState
from particle import ParticleField


def _engine(surface, sink, scheduler, **kwargs):
    kwargs.setdefault('seed', 123)
    return Engine(surface, sink, scheduler, **kwargs)


class TestLifecycle:

    def test_starts_idle(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)

        assert engine.state is EngineState.IDLE
        assert engine.field is None
        assert scheduler.requests == []

    def test_start_runs_and_requests_first_tick(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)
        engine.start()

        assert engine.state is EngineState.RUNNING
        assert engine.bounds == (800, 400)
        assert engine.settings['amount'] == 80
        assert engine.settings['tolerance'] == 150
        assert len(engine.field) == 80
        assert len(scheduler.requests) == 1

    def test_zero_bounds_stop_without_particles(self, sink, scheduler):
        engine = _engine(FakeSurface(0, 0), sink, scheduler)
        engine.start()

        assert engine.state is EngineState.STOPPED
        assert engine.field is None
        assert scheduler.requests == []
        assert sink.calls == []

    def test_start_while_running_is_ignored(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)
        engine.start()
        field = engine.field
        engine.start()

        assert engine.field is field
        assert len(scheduler.requests) == 1

    def test_stop_takes_effect_on_next_tick(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)
        engine.start()
        engine.stop()
        scheduler.grant()

        assert engine.state is EngineState.STOPPED
        assert sink.calls == []
        assert scheduler.requests == []

    def test_restart_after_failed_start(self, sink, scheduler):
        surface = FakeSurface(0, 300)
        engine = _engine(surface, sink, scheduler)
        engine.start()
        assert engine.state is EngineState.STOPPED

        surface.width = 400
        engine.start()
        assert engine.state is EngineState.RUNNING
        assert len(engine.field) == 30

    def test_surface_error_stops_and_allows_retry(self, sink, scheduler, monkeypatch):
        surface = FakeSurface(800, 400)

        def broken_bounds():
            raise RuntimeError("display lost")

        monkeypatch.setattr(surface, "get_bounds", broken_bounds)
        engine = _engine(surface, sink, scheduler)
        with pytest.raises(RuntimeError):
            engine.start()

        assert engine.state is EngineState.STOPPED
        assert engine.field is None
        assert engine.controller is None
        assert scheduler.requests == []

        monkeypatch.undo()
        engine.start()
        assert engine.state is EngineState.RUNNING
        assert len(scheduler.requests) == 1

    def test_particle_creation_error_stops_and_allows_retry(self, surface, sink, scheduler, monkeypatch):
        def out_of_memory(self, settings, bounds):
            raise MemoryError()

        monkeypatch.setattr(ParticleField, "initialize", out_of_memory)
        engine = _engine(surface, sink, scheduler, settings={'amount': 10})
        with pytest.raises(MemoryError):
            engine.start()

        assert engine.state is EngineState.STOPPED
        assert engine.field is None
        assert engine.controller is None
        assert scheduler.requests == []

        monkeypatch.undo()
        engine.start()
        assert engine.state is EngineState.RUNNING
        assert len(engine.field) == 10

    def test_restart_rebuilds_field(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)
        engine.start()
        first = engine.field
        scheduler.grant()
        engine.stop()
        scheduler.grant()
        engine.start()

        assert engine.state is EngineState.RUNNING
        assert engine.field is not first
        assert engine.tick_count == 0

    def test_quick_restart_keeps_a_single_tick_in_flight(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)
        engine.start()
        engine.stop()
        engine.start()

        assert len(scheduler.requests) == 1
        scheduler.grant()
        assert len(scheduler.requests) == 1


class TestTick:

    def test_tick_moves_particles_and_requests_next(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)
        engine.start()
        before = [(p.x, p.y) for p in engine.field]
        scheduler.grant()

        assert [(p.x, p.y) for p in engine.field] != before
        assert engine.tick_count == 1
        assert len(scheduler.requests) == 1

    def test_particles_stay_in_bounds(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler, settings={'amount': 40, 'speed_min': 5000, 'speed_max': 9000})
        engine.start()
        scheduler.grant(300)

        for p in engine.field:
            assert p.size <= p.x <= 800 - p.size
            assert p.size <= p.y <= 400 - p.size

    def test_tick_when_idle_is_noop(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)
        engine.on_tick()

        assert engine.state is EngineState.IDLE
        assert sink.calls == []
        assert scheduler.requests == []


class TestRender:

    def test_clear_then_links_then_discs(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler, settings={'amount': 30, 'tolerance': 400})
        engine.start()
        scheduler.grant()

        names = sink.names()
        assert names[0] == "clear"
        assert sink.calls[0][1] == ((800, 400),)
        first_disc = names.index("disc")
        assert "line" in names
        assert all(name == "line" for name in names[1:first_disc])
        assert names[first_disc:] == ["disc"] * 30

    def test_each_link_drawn_once(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler, settings={'amount': 25})
        engine.start()
        scheduler.grant()

        lines = [args for name, args in sink.calls if name == "line"]
        segments = [frozenset((start, end)) for start, end, _, _ in lines]
        assert len(segments) == len(set(segments))

        links = engine.field.compute_links(engine.settings['tolerance'])
        assert len(lines) == len(links)

    def test_line_style(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler, settings={'amount': 20, 'tolerance': 1000, 'line_width': 2})
        engine.start()
        scheduler.grant()

        for name, args in sink.calls:
            if name != "line":
                continue
            start, end, stroke_width, rgba = args
            assert stroke_width == 2
            assert rgba[:3] == (255, 255, 255)
            assert 0 < rgba[3] <= 1

    def test_no_links_with_zero_tolerance(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler, settings={'amount': 20, 'tolerance': 0})
        engine.start()
        scheduler.grant()

        assert "line" not in sink.names()


class TestPointer:

    def test_enter_scales_particles_on_next_tick(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler, settings={'multiplier_in': 2})
        engine.start()
        engine.on_pointer_enter()

        # Signals are consumed at the start of the next tick.
        assert all(p.multiplier == 1 for p in engine.field)

        scheduler.grant()
        for p in engine.field:
            params = p.render_parameters()
            assert params.radius == p.size * 2
            assert params.lightness == 80

        discs = [args for name, args in sink.calls if name == "disc"]
        assert all(fill[2] == 80 for _, _, fill in discs)

    def test_double_enter_applies_once(self, surface, sink, scheduler, monkeypatch):
        engine = _engine(surface, sink, scheduler, settings={'multiplier_in': 2})
        engine.start()
        applied = []
        original = engine.field.set_global_multiplier
        monkeypatch.setattr(
            engine.field, "set_global_multiplier",
            lambda value: (applied.append(value), original(value)),
        )

        engine.on_pointer_enter()
        engine.on_pointer_enter()
        scheduler.grant()
        engine.on_pointer_enter()
        scheduler.grant()

        assert applied == [2]

    def test_leave_restores_multiplier_out(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler, settings={'multiplier_in': 3, 'multiplier_out': 1})
        engine.start()
        engine.on_pointer_enter()
        scheduler.grant()
        engine.on_pointer_leave()
        engine.on_pointer_leave()
        scheduler.grant()

        assert all(p.multiplier == 1 for p in engine.field)
        assert engine.controller.is_hovered is False

    def test_signals_ignored_unless_running(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler, settings={'multiplier_in': 2})
        engine.on_pointer_enter()
        engine.start()
        scheduler.grant()

        assert all(p.multiplier == 1 for p in engine.field)

    def test_set_multiplier_in_used_on_next_enter(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)
        engine.start()
        engine.set_multiplier_in(4)
        engine.on_pointer_enter()
        scheduler.grant()

        assert all(p.multiplier == 4 for p in engine.field)

    def test_set_multiplier_out_survives_restart(self, surface, sink, scheduler):
        engine = _engine(surface, sink, scheduler)
        engine.set_multiplier_out(0.5)
        engine.start()

        assert engine.settings['multiplier_out'] == 0.5
        engine.on_pointer_enter()
        scheduler.grant()
        engine.on_pointer_leave()
        scheduler.grant()
        assert all(p.multiplier == 0.5 for p in engine.field)


class TestLogging:

    def test_failed_start_is_logged(self, sink, scheduler, caplog):
        engine = _engine(FakeSurface(0, 0), sink, scheduler)
        with caplog.at_level("ERROR"):
            engine.start()

        assert "Cancelling initialization" in caplog.text

    def test_progress_is_throttled(self, surface, sink, scheduler, caplog):
        engine = _engine(surface, sink, scheduler, settings={'amount': 5}, log_throttle=10)
        engine.start()
        with caplog.at_level("INFO"):
            scheduler.grant(25)

        ticks = [r.message for r in caplog.records if r.message.startswith("Tick ")]
        assert ticks == ["Tick 10", "Tick 20"]
