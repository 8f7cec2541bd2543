# components/state/sensor_history.py
"""
Synthesised sensor history for the tool server.

There is no recorder behind the tool server: history samples are
generated on request, spread evenly over the requested window and
jittered around the nominal operating point. They are not derived from
any engine trajectory.
"""

import random
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any

from components.state.incubator_state import utc_timestamp

DEFAULT_SAMPLES = 10
DEFAULT_DURATION_S = 3600.0

# Nominal operating point and jitter span
BASE_TEMPERATURE_C = 36.5
TEMPERATURE_JITTER_C = 1.0
BASE_HUMIDITY_PERCENT = 65.0
HUMIDITY_JITTER_PERCENT = 5.0


@dataclass(frozen=True)
class SensorSample:
    timestamp: str
    temperature: float
    humidity: float

    def to_wire(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "temperature": self.temperature,
            "humidity": self.humidity,
        }


def synthesize_history(
    duration: float = DEFAULT_DURATION_S,
    samples: int = DEFAULT_SAMPLES,
    now: datetime | None = None,
    rng: random.Random | None = None,
) -> list[SensorSample]:
    """Generate ``samples`` readings, newest first.

    Sample ``i`` is stamped ``now - i * (duration / samples)``, so
    timestamps strictly decrease and the first one is ``now``.

    Args:
        duration: Window length in seconds (> 0)
        samples: Number of samples (>= 1)
        now: Reference time (current UTC time if None)
        rng: Random source (module-level random if None)

    Raises:
        ValueError: If duration or samples are out of range, or the window
            reaches before the earliest representable date
    """
    if duration <= 0:
        raise ValueError(f"duration must be > 0, got {duration}")
    if samples < 1:
        raise ValueError(f"samples must be >= 1, got {samples}")

    now = now or datetime.now(timezone.utc)
    rng = rng or random.Random()
    spacing = duration / samples

    try:
        moments = [now - timedelta(seconds=i * spacing) for i in range(samples)]
    except OverflowError as e:
        raise ValueError(
            f"duration {duration} s reaches outside the representable date range"
        ) from e

    return [
        SensorSample(
            timestamp=utc_timestamp(moment),
            temperature=BASE_TEMPERATURE_C + rng.random() * TEMPERATURE_JITTER_C,
            humidity=BASE_HUMIDITY_PERCENT + rng.random() * HUMIDITY_JITTER_PERCENT,
        )
        for moment in moments
    ]
