"""Turn a PathResult into timed straight-line steps for animation.

Each pair of adjacent slice points becomes one step.  A step's share of
its segment's duration equals its share of the segment's distance, so
long gaps between vertices take proportionally longer.
"""

from dataclasses import dataclass

from geodesy import distance_km, interpolate


@dataclass(frozen=True)
class PlaybackStep:
    start: tuple[float, float]
    end: tuple[float, float]
    line: str
    distance_km: float
    duration_seconds: float
    offset_seconds: float  # playback time at which this step begins


@dataclass(frozen=True)
class Playback:
    stations: tuple
    steps: tuple[PlaybackStep, ...]
    duration_seconds: float

    @property
    def final_position(self):
        if self.stations:
            return tuple(self.stations[-1].coordinates)
        if self.steps:
            return self.steps[-1].end
        return None


def build_playback(result, time_scale: float = 1.0) -> Playback:
    """Split every segment of *result* into distance-proportional steps.

    *time_scale* > 1 plays faster than real time.
    """
    if time_scale <= 0:
        raise ValueError("time_scale must be positive")
    steps = []
    offset = 0.0
    for seg in result.segments:
        coords = seg.coordinates
        for i in range(1, len(coords)):
            a, b = coords[i - 1], coords[i]
            piece = distance_km(a, b)
            if seg.distance_km > 0:
                seconds = piece / seg.distance_km * seg.duration_seconds
            else:
                seconds = 0.0
            seconds /= time_scale
            steps.append(PlaybackStep(tuple(a), tuple(b), seg.line, piece, seconds, offset))
            offset += seconds
    return Playback(tuple(result.stations), tuple(steps), offset)


def position_at(playback: Playback, elapsed_seconds: float):
    """Interpolated [lon, lat] after *elapsed_seconds* of playback."""
    if not playback.steps:
        return playback.final_position
    if elapsed_seconds <= 0:
        return playback.steps[0].start
    if elapsed_seconds >= playback.duration_seconds:
        return playback.final_position
    for step in playback.steps:
        if elapsed_seconds < step.offset_seconds + step.duration_seconds:
            if step.duration_seconds <= 0:
                return step.end
            ratio = (elapsed_seconds - step.offset_seconds) / step.duration_seconds
            return interpolate(step.start, step.end, ratio)
    return playback.final_position


def iter_frames(playback: Playback, frame_seconds: float):
    """Yield (elapsed, position) every *frame_seconds*, ending on the last station."""
    if frame_seconds <= 0:
        raise ValueError("frame_seconds must be positive")
    elapsed = 0.0
    while elapsed < playback.duration_seconds:
        yield elapsed, position_at(playback, elapsed)
        elapsed += frame_seconds
    yield playback.duration_seconds, playback.final_position
