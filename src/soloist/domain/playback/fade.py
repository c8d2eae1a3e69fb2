"""
Timed volume fade for playback starts.

A fade is a chain of scheduled callbacks on the event loop: each step
raises the output level by target / steps until it reaches the target.
Only one ramp is ever live per controller.
"""

import asyncio
import math
from typing import Callable, Optional, Protocol

from loguru import logger

from .models import FADE_STEPS


class TimerHandle(Protocol):
    def cancel(self) -> None: ...


class Scheduler(Protocol):
    """Anything that can run a callback after a delay (in seconds)."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle: ...


class AsyncioScheduler:
    """Schedules on the running asyncio loop."""

    def call_later(self, delay: float, callback: Callable[[], None]) -> TimerHandle:
        return asyncio.get_running_loop().call_later(delay, callback)


class FadeController:
    """Cancelable, time-stepped ramp of an output level up to a target.

    Args:
        apply: Called with the new output level on every step
        duration_ms: Total ramp duration for a ramp starting at 0
        on_complete: Called with the target once the final step has run
        steps: Number of discrete steps in a full ramp
        scheduler: Timer source (defaults to the running asyncio loop)
    """

    def __init__(
        self,
        apply: Callable[[float], None],
        duration_ms: int,
        on_complete: Optional[Callable[[float], None]] = None,
        steps: int = FADE_STEPS,
        scheduler: Optional[Scheduler] = None,
    ):
        if steps < 1:
            raise ValueError(f"steps must be >= 1, got {steps}")

        self._apply = apply
        self._on_complete = on_complete
        self._steps = steps
        self._step_interval = duration_ms / steps / 1000.0  # seconds
        self._scheduler = scheduler or AsyncioScheduler()

        self._handle: Optional[TimerHandle] = None
        self._step = 0
        self._target = 0.0
        self._increment = 0.0

    @property
    def active(self) -> bool:
        """True while a ramp has a pending step."""
        return self._handle is not None

    @property
    def step(self) -> int:
        return self._step

    def start(self, target: float, start_level: float = 0.0) -> None:
        """Start a ramp to target, cancelling any ramp already running.

        A ramp from a non-zero start_level joins the same step grid a ramp
        from 0 would follow, so it takes proportionally less time.
        """
        self.cancel()

        self._target = target
        self._increment = target / self._steps
        if self._increment > 0:
            self._step = min(self._steps, max(0, math.floor(start_level / self._increment)))
        else:
            self._step = self._steps

        logger.debug(
            f"Fade start: target={target:.3f}, from={start_level:.3f}, "
            f"step={self._step}/{self._steps}"
        )

        if self._step >= self._steps or self._step_interval <= 0:
            self._finish()
            return

        self._schedule_next()

    def cancel(self) -> None:
        """Stop the running ramp, if any. Safe to call at any time."""
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None
            logger.debug(f"Fade cancelled at step {self._step}/{self._steps}")

    def _schedule_next(self) -> None:
        self._handle = self._scheduler.call_later(self._step_interval, self._tick)

    def _tick(self) -> None:
        self._handle = None
        self._step += 1

        if self._step >= self._steps:
            self._finish()
            return

        # min() keeps timer jitter from ever overshooting the target
        self._apply(min(self._step * self._increment, self._target))
        self._schedule_next()

    def _finish(self) -> None:
        self._step = self._steps
        self._apply(self._target)
        if self._on_complete:
            self._on_complete(self._target)
