"""Moving-average clamp that keeps speed and pitch from jumping between segments."""

from collections import deque

from audiobook_annotator.constants import MONITOR_MAX_DEVIATION, MONITOR_WINDOW


class ConsistencyMonitor:
    """Clamp each new value to within max_deviation of the recent average.

    Speed and pitch keep separate histories. The clamped value, not the
    requested one, is what enters the history.
    """

    def __init__(self, window: int = MONITOR_WINDOW, max_deviation: float = MONITOR_MAX_DEVIATION):
        if window < 1:
            raise ValueError("window must be at least 1")
        self.window = window
        self.max_deviation = max_deviation
        self._speeds: deque = deque(maxlen=window)
        self._pitches: deque = deque(maxlen=window)

    def _clamp(self, history: deque, target: float) -> float:
        if history:
            mean = sum(history) / len(history)
            low = mean * (1 - self.max_deviation)
            high = mean * (1 + self.max_deviation)
            target = min(max(target, low), high)
        history.append(target)
        return target

    def adjust_speed(self, target: float) -> float:
        return self._clamp(self._speeds, target)

    def adjust_pitch(self, target: float) -> float:
        return self._clamp(self._pitches, target)

    def validate_and_adjust(self, speed: float, pitch: float) -> tuple[float, float]:
        return self.adjust_speed(speed), self.adjust_pitch(pitch)

    def reset(self) -> None:
        """Forget history, e.g. at a chapter boundary."""
        self._speeds.clear()
        self._pitches.clear()
