"""
Corner analysis: turns a CornerCandidate into a pace note.

Decides radius change (tightens/widens), McRae severity, special labels
(Hairpin, Square, Acute), Long/Short, elevation hazards and advice.
"""

import logging
from typing import List, Optional, Sequence, Tuple

import numpy as np

from .config import AnalysisConfig, DEFAULT_CONFIG
from .corners import bearing_deltas, core_indices, numeric_severity
from .geometry import angle_difference, bearing
from .models import (
    ADVICE_BLIND,
    ADVICE_CAUTION,
    ADVICE_HEAVY_BRAKING,
    CornerCandidate,
    CurvatureSample,
    Hazard,
    Modifier,
    ModifierKind,
    NoteType,
    PaceNote,
    RoutePoint,
    Severity,
    SeverityLabel,
)

logger = logging.getLogger('rallynotes.analyzer')


def direction_consistent(start_bearing: float, end_bearing: float, chord_bearing: float) -> bool:
    """
    True if the corner turns steadily one way.

    Entry and exit headings must lie on opposite sides of the straight
    line from corner start to corner end.
    """
    start_rel = angle_difference(chord_bearing, start_bearing)
    end_rel = angle_difference(chord_bearing, end_bearing)
    return start_rel * end_rel < 0


def radius_change(
    radii: Sequence[float],
    ratio: float,
    min_samples: int,
) -> Optional[Tuple[ModifierKind, float, float]]:
    """
    Compare entry and exit radius of a corner.

    The radius profile is split into thirds; the mean of the first third
    is the entry radius and of the last third the exit radius. Profiles
    shorter than min_samples are not judged.

    Returns:
        (TIGHTENS or WIDENS, entry_radius, exit_radius), or None
    """
    if len(radii) < max(min_samples, 3):
        return None

    third = len(radii) // 3
    entry = float(np.mean(radii[:third]))
    exit_ = float(np.mean(radii[-third:]))

    if exit_ <= entry * (1.0 - ratio):
        return ModifierKind.TIGHTENS, entry, exit_
    if exit_ >= entry * (1.0 + ratio):
        return ModifierKind.WIDENS, entry, exit_
    return None


def special_label(
    angle: float, severity: int, config: AnalysisConfig = DEFAULT_CONFIG
) -> Optional[SeverityLabel]:
    """Hairpin, Square or Acute for a corner, checked in that order."""
    lo, hi = config.hairpin_angle_deg
    if lo <= angle <= hi and severity <= 2:
        return SeverityLabel.HAIRPIN
    lo, hi = config.square_angle_deg
    if lo <= angle <= hi and severity <= 3:
        return SeverityLabel.SQUARE
    lo, hi = config.acute_angle_deg
    if lo < angle < hi and severity <= 3:
        return SeverityLabel.ACUTE
    return None


def length_modifier(
    angle: float, severity: int, config: AnalysisConfig = DEFAULT_CONFIG
) -> Optional[Modifier]:
    """Long or Short depending on angle, with thresholds per severity band."""
    for max_severity, long_deg, short_deg in config.length_thresholds_deg:
        if severity <= max_severity:
            if angle > long_deg:
                return Modifier(ModifierKind.LONG)
            if angle < short_deg:
                return Modifier(ModifierKind.SHORT)
            return None
    return None


def classify_elevation(
    distances: Sequence[float],
    elevations: Sequence[float],
    config: AnalysisConfig = DEFAULT_CONFIG,
    use_slope: bool = True,
) -> Optional[Hazard]:
    """
    Classify the elevation profile of a stretch of road.

    Jump: large elevation range over a short stretch.
    Crest: a rise then fall, or (with use_slope) a sustained climb.
    Dip: a sustained descent (with use_slope), or a fall then rise
    when slopes are ignored.

    Returns at most one hazard.
    """
    if len(distances) < 2 or len(distances) != len(elevations):
        return None

    length = distances[-1] - distances[0]
    if length <= 0:
        return None

    elev = np.asarray(elevations, dtype=float)
    start, end = float(elev[0]), float(elev[-1])
    peak, trough = float(elev.max()), float(elev.min())

    if peak - trough > config.jump_range_m and length < config.jump_max_length_m:
        return Hazard.JUMP

    rise = peak - max(start, end)
    if rise >= config.crest_min_rise_m:
        return Hazard.CREST

    if use_slope:
        slope = (end - start) / length * 100.0
        if slope > config.slope_hazard_per_100m:
            return Hazard.CREST
        if slope < -config.slope_hazard_per_100m:
            return Hazard.DIP
        return None

    if min(start, end) - trough >= config.crest_min_rise_m:
        return Hazard.DIP
    return None


def advisories_for(severity: Severity, hazard: Optional[Hazard]) -> Tuple[str, ...]:
    """Advice strings for a corner: Caution, Heavy Braking, Blind."""
    advice: List[str] = []
    if (severity.value is not None and severity.value <= 2) or severity.label is SeverityLabel.HAIRPIN:
        advice.append(ADVICE_CAUTION)
    if hazard is Hazard.JUMP:
        advice.append(ADVICE_HEAVY_BRAKING)
    elif hazard is Hazard.CREST:
        advice.append(ADVICE_BLIND)
    return tuple(advice)


class CornerAnalyzer:
    """Build corner PaceNotes from detector candidates."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG):
        self.config = config

    def analyze(
        self,
        candidate: CornerCandidate,
        points: Sequence[RoutePoint],
        samples: Sequence[CurvatureSample],
        deltas: Optional[Sequence[float]] = None,
    ) -> PaceNote:
        """
        Analyze one corner.

        Args:
            candidate: Detected corner
            points: Resampled route points
            samples: Curvature profile for points
            deltas: Precomputed bearing deltas (computed if omitted)

        Returns:
            TURN or SPECIAL_TURN PaceNote at the candidate's turn-in position
        """
        if deltas is None:
            deltas = bearing_deltas(samples)

        cfg = self.config
        change = self._radius_change(candidate, points, samples, deltas)

        if change is not None:
            kind, entry_radius, exit_radius = change
            numeric = numeric_severity(entry_radius, cfg)
            target = numeric_severity(exit_radius, cfg)
        else:
            numeric = numeric_severity(candidate.avg_radius, cfg)

        label = special_label(candidate.total_angle, numeric, cfg)
        severity = Severity(value=numeric, label=label)

        modifiers: List[Modifier] = []
        length = length_modifier(candidate.total_angle, numeric, cfg)
        if length is not None:
            modifiers.append(length)
        if change is not None and target != numeric:
            modifiers.append(Modifier(kind, to_severity=target))

        hazard = self._corner_hazard(candidate, points)
        note = PaceNote(
            position=candidate.position,
            note_type=NoteType.SPECIAL_TURN if label is not None else NoteType.TURN,
            direction=candidate.direction,
            severity=severity,
            modifiers=tuple(modifiers),
            hazards=(hazard,) if hazard is not None else (),
            advisories=advisories_for(severity, hazard),
        )

        logger.debug(
            "Corner at %.0fm: %s %s, %.0f deg, r=%.0f/%.0f (%s)",
            candidate.position, candidate.direction.title, severity,
            candidate.total_angle, candidate.min_radius, candidate.avg_radius,
            candidate.source,
        )
        return note

    def _radius_change(
        self,
        candidate: CornerCandidate,
        points: Sequence[RoutePoint],
        samples: Sequence[CurvatureSample],
        deltas: Sequence[float],
    ) -> Optional[Tuple[ModifierKind, float, float]]:
        start, end = candidate.start_index, candidate.end_index
        first, last = points[start], points[end]
        if first.lat == last.lat and first.lon == last.lon:
            return None

        chord = bearing(first.lat, first.lon, last.lat, last.lon)
        if not direction_consistent(samples[start].bearing, samples[end].bearing, chord):
            return None

        core = core_indices(deltas, start, end, candidate.direction, self.config)
        radii = [samples[k].radius for k in core]
        return radius_change(
            radii, self.config.radius_change_ratio, self.config.radius_change_min_samples
        )

    def _corner_hazard(
        self, candidate: CornerCandidate, points: Sequence[RoutePoint]
    ) -> Optional[Hazard]:
        window = points[candidate.start_index:candidate.end_index + 1]
        return classify_elevation(
            [p.distance for p in window],
            [p.elevation if p.elevation is not None else 0.0 for p in window],
            self.config,
        )
