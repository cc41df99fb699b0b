"""
Corner segmentation of a curvature profile.

Two complementary detectors run over the same profile:

Sustained corners
-----------------
A finite-state machine walks the samples:

    SCANNING --radius < curved--> IN_CORNER
    IN_CORNER --straight run confirmed--> SCANNING (corner closed)
    IN_CORNER --straight run confirmed, half a 90 at tight radius--> PENDING_APEX_CHECK
    PENDING_APEX_CHECK --curvature resumes same way--> IN_CORNER
    PENDING_APEX_CHECK --otherwise--> SCANNING (corner closed)

While in a corner the cumulative bearing change is compared with its peak
every few samples. Rotating back past the peak means the road has turned
the other way (an S-bend), so the corner closes at the peak and a new one
opens there. Termination needs a run of straight samples ahead, longer for
tight corners, because sharp apexes often show a one-sample straight blip.

Instant turns
-------------
Abrupt turns such as unrounded junction corners are too short for the
sustained rules. They are found by comparing bearings a few samples either
side of each point where the local radius is tight.

Both detectors emit CornerCandidates which are pooled and deduplicated.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import AnalysisConfig, DEFAULT_CONFIG
from .geometry import angle_difference
from .models import CornerCandidate, CurvatureSample, Direction, RoutePoint

logger = logging.getLogger('rallynotes.corners')

# Peak rotation must grow by more than this to move (ignores float noise on straights)
_PEAK_EPSILON_DEG = 1e-6

# Decimal places kept when comparing a radius with the severity bounds
_RADIUS_DECIMALS = 1


class SegmenterState(Enum):
    SCANNING = "scanning"
    IN_CORNER = "in_corner"
    PENDING_APEX_CHECK = "pending_apex_check"


def numeric_severity(radius: float, config: AnalysisConfig = DEFAULT_CONFIG) -> int:
    """
    Convert a radius to McRae severity (1 = tightest, 6 = near straight).

    Each class includes its upper bound, so a 20 m corner is a 1. Radii are
    compared at decimetre resolution.
    """
    radius = round(radius, _RADIUS_DECIMALS)
    for severity, bound in enumerate(config.severity_radii_m, start=1):
        if radius <= bound:
            return severity
    return 6


def bearing_deltas(samples: Sequence[CurvatureSample]) -> List[float]:
    """Signed bearing change into each sample (positive = right), 0 for the first."""
    deltas = [0.0]
    for k in range(1, len(samples)):
        deltas.append(angle_difference(samples[k - 1].bearing, samples[k].bearing))
    return deltas


def _direction_sign(direction: Direction) -> float:
    return 1.0 if direction is Direction.RIGHT else -1.0


def turning_indices(
    deltas: Sequence[float],
    start: int,
    end: int,
    direction: Direction,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> List[int]:
    """Indices in (start, end] where the road rotates the corner's way."""
    sign = _direction_sign(direction)
    return [
        k for k in range(start + 1, end + 1)
        if deltas[k] * sign >= config.min_rotation_deg
    ]


def corner_radii(
    samples: Sequence[CurvatureSample],
    deltas: Sequence[float],
    start: int,
    end: int,
    direction: Direction,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> List[float]:
    """
    Radii of the samples where the corner is actually turning.

    Straight tails next to an arc still get finite radii from windows that
    reach into the arc; leaving them out keeps corner statistics honest.
    Falls back to every sample in the window if none rotate.
    """
    indices = turning_indices(deltas, start, end, direction, config)
    if not indices:
        indices = list(range(start, end + 1))
    return [samples[k].radius for k in indices]


def core_indices(
    deltas: Sequence[float],
    start: int,
    end: int,
    direction: Direction,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> List[int]:
    """
    Turning indices clear of the corner's ends.

    A sample within the smallest curvature window of either end fits its
    circle partly through the neighbouring road (a straight, or the other
    half of an S-bend) and reads much wider than the corner. The first and
    last (smallest window offset + 1) turning samples are dropped.
    """
    indices = turning_indices(deltas, start, end, direction, config)
    trim = config.window_offsets()[0] + 1
    return indices[trim:len(indices) - trim]


def corner_radius(
    samples: Sequence[CurvatureSample],
    deltas: Sequence[float],
    start: int,
    end: int,
    direction: Direction,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> float:
    """
    Radius a corner is classified by.

    Mean radius of the core samples. A corner too short to have a core
    uses its tightest turning sample.
    """
    core = core_indices(deltas, start, end, direction, config)
    if core:
        return float(np.mean([samples[k].radius for k in core]))
    return float(min(corner_radii(samples, deltas, start, end, direction, config)))


def locate_turn_in(
    points: Sequence[RoutePoint],
    samples: Sequence[CurvatureSample],
    deltas: Sequence[float],
    start: int,
    end: int,
    direction: Direction,
    min_radius: float,
    avg_radius: float,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> float:
    """
    Distance at which the driver should begin turning.

    Severity 1-2: first turning sample within turn_in_tight_ratio of the
    minimum radius. Severity 3-4: first turning sample within
    turn_in_medium_ratio of the average radius. Gentler corners use the
    window start.
    """
    severity = numeric_severity(avg_radius, config)
    if severity <= 2:
        limit = min_radius * (1.0 + config.turn_in_tight_ratio)
    elif severity <= 4:
        limit = avg_radius * (1.0 + config.turn_in_medium_ratio)
    else:
        return points[start].distance

    candidates = turning_indices(deltas, start, end, direction, config)
    if not candidates:
        candidates = list(range(start, end + 1))

    for k in candidates:
        if samples[k].radius <= limit:
            return points[k].distance
    return points[start].distance


def build_candidate(
    points: Sequence[RoutePoint],
    samples: Sequence[CurvatureSample],
    deltas: Sequence[float],
    start: int,
    end: int,
    rotation: float,
    source: str,
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> CornerCandidate:
    """Summarise a detection window as a CornerCandidate."""
    direction = Direction.RIGHT if rotation > 0 else Direction.LEFT
    radii = corner_radii(samples, deltas, start, end, direction, config)
    min_radius = float(min(radii))
    avg_radius = corner_radius(samples, deltas, start, end, direction, config)
    position = locate_turn_in(
        points, samples, deltas, start, end, direction, min_radius, avg_radius, config
    )
    return CornerCandidate(
        start_index=start,
        end_index=end,
        position=position,
        total_angle=abs(rotation),
        direction=direction,
        min_radius=min_radius,
        avg_radius=avg_radius,
        source=source,
    )


@dataclass
class CornerRun:
    """Accumulator for the corner the segmenter is currently inside."""
    start: int
    end: int                      # Last curved sample
    min_radius: float
    rotation: float = 0.0         # Signed bearing change since start
    peak_rotation: float = 0.0    # Largest rotation in the corner's direction
    peak_index: int = 0           # Last consistent sample
    since_check: int = 0


@dataclass
class _Scan:
    """Per-call working state, so one segmenter can serve many routes."""
    points: Sequence[RoutePoint]
    samples: Sequence[CurvatureSample]
    deltas: List[float]
    candidates: List[CornerCandidate]


class CornerSegmenter:
    """Find sustained corners with an explicit state machine."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG):
        self.config = config

    def segment(
        self,
        points: Sequence[RoutePoint],
        samples: Sequence[CurvatureSample],
    ) -> List[CornerCandidate]:
        """
        Detect sustained corners.

        Args:
            points: Resampled route points (for distances)
            samples: Curvature profile, one sample per point

        Returns:
            Corner candidates in route order
        """
        n = len(samples)
        if n < 3:
            return []

        scan = _Scan(points, samples, bearing_deltas(samples), [])
        state = SegmenterState.SCANNING
        run: Optional[CornerRun] = None
        i = 0

        while i < n:
            if state is SegmenterState.SCANNING:
                state, i, run = self._scanning(scan, i)
            elif state is SegmenterState.IN_CORNER:
                state, i, run = self._in_corner(scan, i, run)
            else:
                state, i, run = self._pending_apex_check(scan, i, run)

        if run is not None:
            self._close(scan, run)

        logger.debug("Sustained detector found %d corners", len(scan.candidates))
        return scan.candidates

    # -- states ---------------------------------------------------------------

    def _scanning(self, scan: _Scan, i: int) -> Tuple[SegmenterState, int, Optional[CornerRun]]:
        radius = scan.samples[i].radius
        if radius < self.config.curved_radius_m:
            run = CornerRun(start=i, end=i, min_radius=radius, peak_index=i)
            return SegmenterState.IN_CORNER, i + 1, run
        return SegmenterState.SCANNING, i + 1, None

    def _in_corner(
        self, scan: _Scan, i: int, run: CornerRun
    ) -> Tuple[SegmenterState, int, Optional[CornerRun]]:
        if scan.samples[i].radius < self.config.curved_radius_m:
            self._extend(scan, run, i)
            run.since_check += 1
            if run.since_check >= self.config.direction_check_interval:
                run.since_check = 0
                if self.direction_flipped(run):
                    return self._split(scan, run)
            return SegmenterState.IN_CORNER, i + 1, run

        # Straight sample: the corner only ends on a long enough straight run
        need = self.straight_run_needed(run)
        resume = self._first_curved(scan, i, i + need)
        if resume is not None:
            for k in range(i, resume):
                self._extend(scan, run, k)
            return SegmenterState.IN_CORNER, resume, run

        if self.looks_like_half_turn(run):
            return SegmenterState.PENDING_APEX_CHECK, i, run

        self._close(scan, run)
        return SegmenterState.SCANNING, i, None

    def _pending_apex_check(
        self, scan: _Scan, i: int, run: CornerRun
    ) -> Tuple[SegmenterState, int, Optional[CornerRun]]:
        n = len(scan.samples)
        look_from = i + self.straight_run_needed(run)
        look_to = min(n, look_from + self.config.apex_lookahead_samples)

        resume = self._first_curved(scan, look_from, look_to)
        if resume is not None:
            resumed = self._stretch_rotation(scan, resume)
            if resumed * run.rotation > 0 and abs(resumed) >= self.config.min_rotation_deg:
                logger.debug(
                    "Apex gap at sample %d: corner resumes at %d", i, resume
                )
                for k in range(i, resume):
                    self._extend(scan, run, k)
                return SegmenterState.IN_CORNER, resume, run

        self._close(scan, run)
        return SegmenterState.SCANNING, i, None

    # -- rules ----------------------------------------------------------------

    def straight_run_needed(self, run: CornerRun) -> int:
        """Straight samples required to end the corner (more when tight)."""
        if run.min_radius < self.config.tight_radius_m:
            return self.config.tight_straight_run_samples
        return self.config.straight_run_samples

    def looks_like_half_turn(self, run: CornerRun) -> bool:
        """A tight corner stopped around 45 degrees may be half of a 90."""
        angle = abs(run.rotation)
        return (
            self.config.half_turn_min_deg <= angle <= self.config.half_turn_max_deg
            and run.min_radius < self.config.tight_radius_m
        )

    def direction_flipped(self, run: CornerRun) -> bool:
        """True once the road has rotated back past the corner's peak."""
        peak = run.peak_rotation
        if abs(peak) < self.config.flip_min_angle_deg:
            return False
        sign = 1.0 if peak > 0 else -1.0
        return (peak - run.rotation) * sign > self.config.flip_tolerance_deg

    def is_significant(self, angle: float, min_radius: float) -> bool:
        """Registration check: tight corners need less angle to count."""
        if min_radius < self.config.hairpin_radius_m:
            return angle >= self.config.tight_min_corner_angle_deg
        return angle >= self.config.min_corner_angle_deg

    # -- helpers --------------------------------------------------------------

    def _extend(self, scan: _Scan, run: CornerRun, k: int) -> None:
        run.rotation += scan.deltas[k]
        radius = scan.samples[k].radius
        if radius < self.config.curved_radius_m:
            run.end = k
            run.min_radius = min(run.min_radius, radius)

        grows = abs(run.rotation) > abs(run.peak_rotation) + _PEAK_EPSILON_DEG
        same_way = run.rotation * run.peak_rotation > 0
        unsettled = abs(run.peak_rotation) < self.config.flip_min_angle_deg
        if grows and (same_way or unsettled):
            run.peak_rotation = run.rotation
            run.peak_index = k

    def _split(self, scan: _Scan, run: CornerRun) -> Tuple[SegmenterState, int, CornerRun]:
        """Close the corner at its peak and open a new one there."""
        peak = run.peak_index
        logger.debug(
            "Direction flip in corner %d-%d, splitting at %d", run.start, run.end, peak
        )
        closed = CornerRun(
            start=run.start,
            end=peak,
            min_radius=run.min_radius,
            rotation=run.peak_rotation,
            peak_rotation=run.peak_rotation,
            peak_index=peak,
        )
        self._close(scan, closed)

        radius = scan.samples[peak].radius
        fresh = CornerRun(start=peak, end=peak, min_radius=radius, peak_index=peak)
        return SegmenterState.IN_CORNER, peak + 1, fresh

    def _first_curved(self, scan: _Scan, start: int, stop: int) -> Optional[int]:
        stop = min(stop, len(scan.samples))
        for k in range(start, stop):
            if scan.samples[k].radius < self.config.curved_radius_m:
                return k
        return None

    def _stretch_rotation(self, scan: _Scan, start: int) -> float:
        """Rotation over the contiguous curved stretch beginning at start."""
        total = 0.0
        k = start
        while k < len(scan.samples) and scan.samples[k].radius < self.config.curved_radius_m:
            total += scan.deltas[k]
            k += 1
        return total

    def _close(self, scan: _Scan, run: CornerRun) -> None:
        if run.rotation == 0.0 or run.end <= run.start:
            return

        candidate = build_candidate(
            scan.points, scan.samples, scan.deltas,
            run.start, run.end, run.rotation, "sustained", self.config,
        )
        if not self.is_significant(candidate.total_angle, candidate.min_radius):
            logger.debug(
                "Dropping corner %d-%d: %.1f deg at %.0fm radius",
                run.start, run.end, candidate.total_angle, candidate.min_radius,
            )
            return
        scan.candidates.append(candidate)


class InstantTurnDetector:
    """Catch abrupt single-point turns the sustained detector cannot see."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG):
        self.config = config

    def detect(
        self,
        points: Sequence[RoutePoint],
        samples: Sequence[CurvatureSample],
    ) -> List[CornerCandidate]:
        span = self.config.instant_span_samples
        n = len(samples)
        if n < 2 * span + 1:
            return []

        deltas = bearing_deltas(samples)
        hits: List[Tuple[int, float]] = []
        for i in range(span, n - span):
            if samples[i].radius >= self.config.instant_max_radius_m:
                continue
            change = angle_difference(samples[i - span].bearing, samples[i + span].bearing)
            if abs(change) > self.config.instant_min_angle_deg:
                hits.append((i, change))

        candidates = []
        for group in self._group_hits(hits):
            i, change = min(
                group, key=lambda hit: (-abs(hit[1]), samples[hit[0]].radius)
            )
            start, end = i - span, i + span
            direction = Direction.RIGHT if change > 0 else Direction.LEFT
            radius = samples[i].radius
            position = locate_turn_in(
                points, samples, deltas, start, end, direction, radius, radius, self.config
            )
            candidates.append(CornerCandidate(
                start_index=start,
                end_index=end,
                position=position,
                total_angle=abs(change),
                direction=direction,
                min_radius=radius,
                avg_radius=radius,
                source="instant",
            ))

        logger.debug("Instant detector found %d turns", len(candidates))
        return candidates

    @staticmethod
    def _group_hits(hits: List[Tuple[int, float]]) -> List[List[Tuple[int, float]]]:
        """Split hits into runs of adjacent indices turning the same way."""
        groups: List[List[Tuple[int, float]]] = []
        for hit in hits:
            if groups:
                prev_i, prev_change = groups[-1][-1]
                if hit[0] == prev_i + 1 and hit[1] * prev_change > 0:
                    groups[-1].append(hit)
                    continue
            groups.append([hit])
        return groups


def _more_informative(a: CornerCandidate, b: CornerCandidate) -> bool:
    """Larger angle wins, then the tighter radius."""
    if abs(a.total_angle - b.total_angle) > 1e-9:
        return a.total_angle > b.total_angle
    return a.min_radius < b.min_radius


def _same_corner(a: CornerCandidate, b: CornerCandidate, distance_m: float) -> bool:
    if a.direction is not b.direction:
        return False
    close = abs(a.position - b.position) <= distance_m
    overlap = a.start_index <= b.end_index and b.start_index <= a.end_index
    return close or overlap


def deduplicate_candidates(
    candidates: Sequence[CornerCandidate],
    config: AnalysisConfig = DEFAULT_CONFIG,
) -> List[CornerCandidate]:
    """
    Merge detections of the same corner.

    Candidates are sorted by position; one that turns the same way as the
    previously kept candidate and sits within dedup_distance_m of it (or
    overlaps its window) is the same corner, and the more informative
    reading is kept.
    """
    pool = sorted(candidates, key=lambda c: (c.position, c.start_index))
    kept: List[CornerCandidate] = []

    for candidate in pool:
        if kept and _same_corner(kept[-1], candidate, config.dedup_distance_m):
            if _more_informative(candidate, kept[-1]):
                kept[-1] = candidate
            continue
        kept.append(candidate)

    if len(kept) < len(pool):
        logger.debug("Deduplicated %d candidates to %d", len(pool), len(kept))
    return kept
