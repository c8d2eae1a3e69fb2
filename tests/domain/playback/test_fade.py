"""Tests for the timed fade controller."""

import pytest

from soloist.domain.playback.fade import FadeController


class Recorder:
    def __init__(self):
        self.levels: list[float] = []
        self.completed: list[float] = []

    def apply(self, level: float) -> None:
        self.levels.append(level)

    def complete(self, target: float) -> None:
        self.completed.append(target)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def fade(recorder: Recorder, scheduler) -> FadeController:
    return FadeController(
        apply=recorder.apply,
        duration_ms=3000,
        on_complete=recorder.complete,
        scheduler=scheduler,
    )


class TestFadeRamp:
    def test_ramp_reaches_target_exactly_at_duration(self, fade, recorder, scheduler) -> None:
        fade.start(0.8)
        scheduler.advance(3.0)

        assert recorder.levels[-1] == 0.8
        assert recorder.completed == [0.8]
        assert not fade.active

    def test_ramp_is_monotonic_without_overshoot(self, fade, recorder, scheduler) -> None:
        fade.start(0.8)
        scheduler.advance(3.0)

        assert len(recorder.levels) == 30
        assert recorder.levels == sorted(recorder.levels)
        assert all(level <= 0.8 for level in recorder.levels)

    def test_not_complete_before_duration(self, fade, recorder, scheduler) -> None:
        fade.start(1.0)
        scheduler.advance(2.9)

        assert recorder.completed == []
        assert fade.active
        assert recorder.levels[-1] < 1.0

    def test_each_step_adds_one_increment(self, fade, recorder, scheduler) -> None:
        fade.start(0.6)
        scheduler.advance(0.1)
        scheduler.advance(0.1)

        assert recorder.levels == pytest.approx([0.02, 0.04])

    def test_zero_duration_finishes_immediately(self, recorder, scheduler) -> None:
        fade = FadeController(recorder.apply, 0, recorder.complete, scheduler=scheduler)
        fade.start(0.5)

        assert recorder.levels == [0.5]
        assert recorder.completed == [0.5]
        assert scheduler.pending == 0

    def test_zero_target_finishes_immediately(self, fade, recorder, scheduler) -> None:
        fade.start(0.0)

        assert recorder.completed == [0.0]
        assert scheduler.pending == 0

    def test_start_level_joins_step_grid(self, fade, recorder, scheduler) -> None:
        """A ramp from half the target only runs the remaining half of the steps."""
        fade.start(0.9, start_level=0.45)
        scheduler.advance(1.35)
        assert recorder.completed == []

        scheduler.advance(0.35)
        assert recorder.completed == [0.9]

    def test_start_level_at_target_completes_immediately(self, fade, recorder) -> None:
        fade.start(0.7, start_level=0.7)

        assert recorder.completed == [0.7]
        assert not fade.active

    def test_invalid_steps(self, recorder) -> None:
        with pytest.raises(ValueError):
            FadeController(recorder.apply, 3000, steps=0)


class TestFadeCancel:
    def test_cancel_stops_ramp(self, fade, recorder, scheduler) -> None:
        fade.start(1.0)
        scheduler.advance(0.5)
        applied = list(recorder.levels)

        fade.cancel()
        scheduler.advance(5.0)

        assert recorder.levels == applied
        assert recorder.completed == []
        assert not fade.active

    def test_cancel_is_idempotent(self, fade) -> None:
        fade.cancel()
        fade.cancel()
        assert not fade.active

    def test_restart_keeps_single_ramp(self, fade, recorder, scheduler) -> None:
        fade.start(1.0)
        scheduler.advance(0.5)
        fade.start(0.5)

        assert scheduler.pending == 1

        scheduler.advance(3.0)
        assert recorder.completed == [0.5]
