"""Rotation model — simulated planetary spin plus user camera offsets.

Two independent quantities live in RotationState:

* ``angle`` advances from elapsed time at the sidereal rate times the
  effective speed multiplier. Only advance() writes it.
* ``user_yaw`` / ``user_pitch`` accumulate drag input. Only drag handling
  writes them.

Keeping them apart means dragging the globe never shifts the simulated time
base.
"""

import math
from dataclasses import replace

from aqiglobe.models import RotationMode, RotationState

SIDEREAL_DAY_SECONDS = 86164.0
SIDEREAL_ANGULAR_SPEED = 2 * math.pi / SIDEREAL_DAY_SECONDS  # rad/s
PITCH_LIMIT = math.pi / 3  # ±60°
DRAG_SENSITIVITY = 0.005  # Radians per UI unit


def advance(state: RotationState, delta_seconds: float) -> RotationState:
    """Return the state after ``delta_seconds`` of simulated time.

    Negative or non-finite deltas (clock hiccups) advance nothing, so the
    angle never runs backwards.
    """
    if not math.isfinite(delta_seconds) or delta_seconds <= 0:
        return state
    step = SIDEREAL_ANGULAR_SPEED * delta_seconds * state.effective_multiplier
    return replace(state, angle=state.angle + step)


def apply_drag(
    state: RotationState,
    dx: float,
    dy: float,
    sensitivity: float = DRAG_SENSITIVITY,
) -> RotationState:
    """Add a drag delta (UI units) to the camera offsets. Pitch is clamped."""
    pitch = state.user_pitch + dy * sensitivity
    pitch = max(-PITCH_LIMIT, min(PITCH_LIMIT, pitch))
    return replace(state, user_yaw=state.user_yaw + dx * sensitivity, user_pitch=pitch)


class RotationClock:
    """Owns the globe's RotationState and the input that changes it.

    Renderers read ``state``; frame ticks call advance(); the input surface
    calls drag() or the pointer_* methods and the speed/mode setters.
    """

    def __init__(
        self,
        speed: float = 1000.0,
        real_time: bool = False,
        min_speed: float = 0.1,
        max_speed: float = 10000.0,
    ) -> None:
        if not 0 < min_speed <= max_speed:
            raise ValueError(f"invalid speed bounds: [{min_speed}, {max_speed}]")
        self.min_speed = min_speed
        self.max_speed = max_speed
        self._state = RotationState(
            mode=RotationMode.REAL_TIME if real_time else RotationMode.SCALED,
            speed_multiplier=self._clamp_speed(speed),
        )
        self._pointer: tuple[float, float] | None = None

    @property
    def state(self) -> RotationState:
        return self._state

    @property
    def is_dragging(self) -> bool:
        return self._pointer is not None

    def _clamp_speed(self, speed: float) -> float:
        if not math.isfinite(speed):
            return self.max_speed if speed > 0 else self.min_speed
        return max(self.min_speed, min(self.max_speed, speed))

    def advance(self, delta_seconds: float) -> RotationState:
        self._state = advance(self._state, delta_seconds)
        return self._state

    def drag(self, dx: float, dy: float) -> RotationState:
        self._state = apply_drag(self._state, dx, dy)
        return self._state

    def set_speed(self, speed: float) -> float:
        """Set the SCALED-mode multiplier, clamped to the bounds. Returns the value used."""
        value = self._clamp_speed(speed)
        self._state = replace(self._state, speed_multiplier=value)
        return value

    def set_real_time(self, enabled: bool) -> None:
        """Switch mode. The angle is untouched; only the future rate changes.

        The SCALED multiplier is kept so switching back restores it.
        """
        mode = RotationMode.REAL_TIME if enabled else RotationMode.SCALED
        self._state = replace(self._state, mode=mode)

    # Pointer events: absolute positions in, drag deltas out

    def pointer_down(self, x: float, y: float) -> None:
        self._pointer = (x, y)

    def pointer_move(self, x: float, y: float) -> RotationState:
        if self._pointer is None:
            return self._state
        px, py = self._pointer
        self._pointer = (x, y)
        return self.drag(x - px, y - py)

    def pointer_up(self) -> None:
        self._pointer = None
