import math
from dataclasses import dataclass, field
from typing import Iterator

from framesplit.errors import ConfigurationError


@dataclass(frozen=True)
class SamplingWindow:
    """
    Which timestamps to sample: start, start + step, ... strictly inside
    [start, min(end, stream length)).

    An empty window (start at or past the effective end) is valid and has
    frame_count == 0.
    """
    start_sec: float
    end_sec: float
    step_sec: float
    stream_length_sec: float

    frame_count: int = field(init=False)

    def __post_init__(self) -> None:
        if not (math.isfinite(self.step_sec) and self.step_sec > 0):
            raise ConfigurationError(f"step must be > 0 seconds, got {self.step_sec}")

        count = math.floor((self.effective_end_sec - self.start_sec) / self.step_sec)
        object.__setattr__(self, "frame_count", max(0, count))

    @property
    def effective_end_sec(self) -> float:
        return min(self.end_sec, self.stream_length_sec)

    def position_of(self, index: int) -> float:
        if not 0 <= index < self.frame_count:
            raise IndexError(f"frame index {index} outside [0, {self.frame_count})")
        return self.start_sec + index * self.step_sec

    def positions(self) -> Iterator[float]:
        for i in range(self.frame_count):
            yield self.position_of(i)
