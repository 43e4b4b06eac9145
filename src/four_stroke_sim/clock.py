"""
Crank-Angle Clock
Owns the single time-varying input of the simulation: the global crank
angle, advanced once per frame from elapsed wall-clock time.

    Δθ = rpm · 6 · speed_multiplier · Δt        [deg]   (Δt ≤ 0.1 s)
    θ  ← (θ + Δθ) mod 720

The clock is the only writer of the angle.  Readers take one ``snapshot()``
per frame and evaluate all four cylinders from it.
"""

import threading
from typing import Optional

from .engine_config import CYCLE_DEGREES, MAX_FRAME_DT, EngineSettings
from .kinematics import normalize_angle
from .logging_setup import get_logger

log = get_logger(__name__)


class CrankAngleClock:
    """Persistent global crank-angle accumulator with pause/resume.

    Attributes
    ----------
    max_frame_dt : float  Largest elapsed time [s] applied in one frame
    """

    def __init__(
        self,
        angle: float = 0.0,
        running: bool = True,
        max_frame_dt: float = MAX_FRAME_DT,
    ) -> None:
        """
        Parameters
        ----------
        angle        : float  Initial global crank angle  [deg]
        running      : bool   Whether ``advance`` moves the angle
        max_frame_dt : float  Frame-gap clamp  [s]  (must be > 0)

        Raises
        ------
        ValueError
            If max_frame_dt ≤ 0.
        """
        if max_frame_dt <= 0.0:
            raise ValueError(f"max_frame_dt must be > 0 s, got {max_frame_dt}")
        self.max_frame_dt = max_frame_dt
        self._angle = normalize_angle(angle)
        self._running = bool(running)
        self._last_timestamp: Optional[float] = None
        self._lock = threading.Lock()

    # ── Read side ─────────────────────────────────────────────────────────

    @property
    def angle(self) -> float:
        """Current global crank angle  [deg]  ∈ [0, 720)."""
        return self.snapshot()

    @property
    def running(self) -> bool:
        return self._running

    def snapshot(self) -> float:
        """Read the angle once for a whole frame."""
        with self._lock:
            return self._angle

    # ── Time advancement ──────────────────────────────────────────────────

    def clamp_dt(self, dt: float) -> float:
        """Limit a frame's elapsed time to [0, max_frame_dt]."""
        if dt > self.max_frame_dt:
            log.debug("Frame gap %.3fs clamped to %.3fs", dt, self.max_frame_dt)
            return self.max_frame_dt
        return max(0.0, dt)

    def advance(self, dt: float, settings: EngineSettings) -> float:
        """Advance by ``dt`` seconds of wall-clock time when running.

        Parameters
        ----------
        dt       : float           Elapsed time since the previous frame  [s]
        settings : EngineSettings  Supplies rpm and speed_multiplier

        Returns
        -------
        float  Global crank angle after the step  [deg]
        """
        step = settings.degrees_per_second * self.clamp_dt(dt)
        with self._lock:
            if self._running:
                self._angle = normalize_angle(self._angle + step)
            return self._angle

    def tick(self, timestamp: float, settings: EngineSettings) -> float:
        """Frame-callback form of ``advance``.

        The first tick only records ``timestamp`` [s]; each later tick
        advances by the time since the previous one.
        """
        last = self._last_timestamp
        self._last_timestamp = timestamp
        dt = 0.0 if last is None else timestamp - last
        return self.advance(dt, settings)

    # ── Control ───────────────────────────────────────────────────────────

    def pause(self) -> None:
        """Stop advancing; the angle is kept.  Idempotent."""
        with self._lock:
            self._running = False

    def resume(self) -> None:
        """Continue advancing from the current angle.  Idempotent."""
        with self._lock:
            self._running = True

    def toggle(self) -> bool:
        """Flip between running and paused; returns the new running flag."""
        with self._lock:
            self._running = not self._running
            return self._running

    def reset(self) -> None:
        """Return to 0° and pause."""
        with self._lock:
            self._angle = 0.0
            self._running = False
        log.info("Clock reset to 0°")

    def step_by(self, degrees: float) -> float:
        """Move the angle by ``degrees`` (either sign), running or not."""
        with self._lock:
            self._angle = normalize_angle(self._angle + degrees)
            return self._angle

    def __repr__(self) -> str:
        state = "running" if self._running else "paused"
        return f"CrankAngleClock({self._angle:.2f}° of {CYCLE_DEGREES:g}°, {state})"
