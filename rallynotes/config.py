"""
Configuration for pace note generation.

Tuning constants are grouped by pipeline stage. Every stage reads them
through an AnalysisConfig instance so tests and callers can run alternate
tunings without touching module state.
"""

import json
import logging
import os
from dataclasses import dataclass, fields, replace
from typing import Any, Tuple

logger = logging.getLogger('rallynotes.config')


# =============================================================================
# Resampling
# =============================================================================

RESAMPLE_STEP_M = 3.0            # Spacing of resampled points (metres)
MIN_RESAMPLED_POINTS = 10        # Fewer points than this = route too short


# =============================================================================
# Curvature Profiling
# =============================================================================

CURVATURE_WINDOWS_M = (5.0, 10.0, 15.0, 20.0)  # Circle-fit half windows (metres)
                                                # Small = sharp apexes
                                                # Large = smooth gentle bends
STRAIGHT_RADIUS_M = 10000.0      # Sentinel radius for "effectively straight"
DEGENERATE_AREA_M2 = 1e-6        # Triangles below this area are collinear


# =============================================================================
# Corner Segmentation
# =============================================================================

CURVED_RADIUS_M = 500.0          # Below this radius a sample is "curved"
TIGHT_RADIUS_M = 70.0            # Severity 3 boundary - needs longer straight run
HAIRPIN_RADIUS_M = 40.0          # Severity 2 boundary - smaller minimum angle

STRAIGHT_RUN_SAMPLES = 2         # Straight samples needed to end a corner
TIGHT_STRAIGHT_RUN_SAMPLES = 5   # ...when the corner has been tight so far

HALF_TURN_MIN_DEG = 35.0         # "Looks like half a 90" window for the
HALF_TURN_MAX_DEG = 55.0         # apex gap lookahead
APEX_LOOKAHEAD_SAMPLES = 8       # How far past the straight run to peek

DIRECTION_CHECK_INTERVAL = 2     # Samples between direction checks
FLIP_MIN_ANGLE_DEG = 10.0        # Rotation needed before a flip can count
FLIP_TOLERANCE_DEG = 10.0        # Rotation back past the peak = S-bend

MIN_CORNER_ANGLE_DEG = 15.0      # Minimum total angle to register a corner
TIGHT_MIN_CORNER_ANGLE_DEG = 8.0 # ...for corners tighter than HAIRPIN_RADIUS_M
MIN_ROTATION_DEG = 0.1           # Per-sample rotation counted as turning

INSTANT_SPAN_SAMPLES = 3         # Lookback/lookahead for instant turns
INSTANT_MIN_ANGLE_DEG = 60.0     # Bearing change for an instant turn
INSTANT_MAX_RADIUS_M = 100.0     # ...with a local radius tighter than this

DEDUP_DISTANCE_M = 20.0          # Same-direction candidates closer than this
                                 # are one corner


# =============================================================================
# Corner Analysis
# =============================================================================

# Upper radius bounds (metres, inclusive) for severities 1-5, anything wider is a 6
SEVERITY_RADII_M = (20.0, 40.0, 70.0, 120.0, 200.0)

RADIUS_CHANGE_RATIO = 0.2        # 20% entry/exit difference = tightens/widens
RADIUS_CHANGE_MIN_SAMPLES = 9    # Core samples needed to judge a change (3 per third)

TURN_IN_TIGHT_RATIO = 0.3        # Severity 1-2: within 30% of min radius
TURN_IN_MEDIUM_RATIO = 0.2       # Severity 3-4: within 20% of avg radius

HAIRPIN_ANGLE_DEG = (150.0, 180.0)
SQUARE_ANGLE_DEG = (75.0, 105.0)
ACUTE_ANGLE_DEG = (25.0, 60.0)   # Exclusive bounds

# (max severity, long above, short below) in degrees of total angle
LENGTH_THRESHOLDS_DEG = (
    (2, 110.0, 35.0),
    (4, 75.0, 20.0),
    (6, 45.0, 15.0),
)

JUMP_RANGE_M = 10.0              # Elevation range for a jump...
JUMP_MAX_LENGTH_M = 50.0         # ...over less than this distance
SLOPE_HAZARD_PER_100M = 5.0      # Crest/dip slope threshold (m per 100 m)
CREST_MIN_RISE_M = 2.0           # Peak above both ends for a rise-then-fall


# =============================================================================
# Note Assembly
# =============================================================================

START_MERGE_DISTANCE_M = 50.0    # First corner this close replaces Start
POSITION_ROUNDING_M = 10         # Callout positions rounded to this
STRAIGHT_HAZARDS = True          # Report elevation hazards between corners
HAZARD_WINDOW_M = 50.0           # Window length for straight-section hazards

CHICANE_DISTANCE_M = 40.0        # Maximum gap between merged notes
CHICANE_MAX_SEVERITY_GAP = 3     # Maximum severity difference to merge
CHICANE_MERGE_ENABLED = True


@dataclass(frozen=True)
class AnalysisConfig:
    """Injectable tuning for every pipeline stage."""

    resample_step_m: float = RESAMPLE_STEP_M
    min_resampled_points: int = MIN_RESAMPLED_POINTS

    curvature_windows_m: Tuple[float, ...] = CURVATURE_WINDOWS_M
    straight_radius_m: float = STRAIGHT_RADIUS_M
    degenerate_area_m2: float = DEGENERATE_AREA_M2

    curved_radius_m: float = CURVED_RADIUS_M
    tight_radius_m: float = TIGHT_RADIUS_M
    hairpin_radius_m: float = HAIRPIN_RADIUS_M
    straight_run_samples: int = STRAIGHT_RUN_SAMPLES
    tight_straight_run_samples: int = TIGHT_STRAIGHT_RUN_SAMPLES
    half_turn_min_deg: float = HALF_TURN_MIN_DEG
    half_turn_max_deg: float = HALF_TURN_MAX_DEG
    apex_lookahead_samples: int = APEX_LOOKAHEAD_SAMPLES
    direction_check_interval: int = DIRECTION_CHECK_INTERVAL
    flip_min_angle_deg: float = FLIP_MIN_ANGLE_DEG
    flip_tolerance_deg: float = FLIP_TOLERANCE_DEG
    min_corner_angle_deg: float = MIN_CORNER_ANGLE_DEG
    tight_min_corner_angle_deg: float = TIGHT_MIN_CORNER_ANGLE_DEG
    min_rotation_deg: float = MIN_ROTATION_DEG

    instant_span_samples: int = INSTANT_SPAN_SAMPLES
    instant_min_angle_deg: float = INSTANT_MIN_ANGLE_DEG
    instant_max_radius_m: float = INSTANT_MAX_RADIUS_M
    dedup_distance_m: float = DEDUP_DISTANCE_M

    severity_radii_m: Tuple[float, ...] = SEVERITY_RADII_M
    radius_change_ratio: float = RADIUS_CHANGE_RATIO
    radius_change_min_samples: int = RADIUS_CHANGE_MIN_SAMPLES
    turn_in_tight_ratio: float = TURN_IN_TIGHT_RATIO
    turn_in_medium_ratio: float = TURN_IN_MEDIUM_RATIO
    hairpin_angle_deg: Tuple[float, float] = HAIRPIN_ANGLE_DEG
    square_angle_deg: Tuple[float, float] = SQUARE_ANGLE_DEG
    acute_angle_deg: Tuple[float, float] = ACUTE_ANGLE_DEG
    length_thresholds_deg: Tuple[Tuple[int, float, float], ...] = LENGTH_THRESHOLDS_DEG
    jump_range_m: float = JUMP_RANGE_M
    jump_max_length_m: float = JUMP_MAX_LENGTH_M
    slope_hazard_per_100m: float = SLOPE_HAZARD_PER_100M
    crest_min_rise_m: float = CREST_MIN_RISE_M

    start_merge_distance_m: float = START_MERGE_DISTANCE_M
    position_rounding_m: int = POSITION_ROUNDING_M
    straight_hazards: bool = STRAIGHT_HAZARDS
    hazard_window_m: float = HAZARD_WINDOW_M

    chicane_distance_m: float = CHICANE_DISTANCE_M
    chicane_max_severity_gap: int = CHICANE_MAX_SEVERITY_GAP
    chicane_merge_enabled: bool = CHICANE_MERGE_ENABLED

    def __post_init__(self):
        if self.resample_step_m <= 0:
            raise ValueError("resample_step_m must be positive")
        if self.min_resampled_points < 3:
            raise ValueError("min_resampled_points must be at least 3")
        if not self.curvature_windows_m or min(self.curvature_windows_m) <= 0:
            raise ValueError("curvature_windows_m needs positive window sizes")
        if len(self.severity_radii_m) != 5:
            raise ValueError("severity_radii_m needs bounds for severities 1-5")
        if any(b <= a for a, b in zip(self.severity_radii_m, self.severity_radii_m[1:])):
            raise ValueError("severity_radii_m must be strictly increasing")
        if self.curved_radius_m <= self.severity_radii_m[-1]:
            raise ValueError("curved_radius_m must exceed the severity 5 bound")
        if self.radius_change_min_samples < 3:
            raise ValueError("radius_change_min_samples must be at least 3")
        if self.position_rounding_m <= 0:
            raise ValueError("position_rounding_m must be positive")
        if self.straight_run_samples < 1 or self.tight_straight_run_samples < 1:
            raise ValueError("straight run lengths must be at least one sample")
        if self.direction_check_interval < 1:
            raise ValueError("direction_check_interval must be at least 1")
        if self.instant_span_samples < 1:
            raise ValueError("instant_span_samples must be at least 1")
        if self.chicane_max_severity_gap < 0:
            raise ValueError("chicane_max_severity_gap cannot be negative")

    def with_overrides(self, **overrides: Any) -> 'AnalysisConfig':
        """Return a copy with the given fields replaced."""
        return replace(self, **overrides)

    def window_offsets(self) -> Tuple[int, ...]:
        """Curvature windows converted to sample offsets (deduplicated, sorted)."""
        offsets = {
            max(1, int(round(w / self.resample_step_m)))
            for w in self.curvature_windows_m
        }
        return tuple(sorted(offsets))


DEFAULT_CONFIG = AnalysisConfig()

_TUPLE_FIELDS = {
    'curvature_windows_m', 'severity_radii_m', 'hairpin_angle_deg',
    'square_angle_deg', 'acute_angle_deg',
}


def load_config(path: str, base: AnalysisConfig = DEFAULT_CONFIG) -> AnalysisConfig:
    """
    Load tuning overrides from a JSON file.

    The file holds a flat object of AnalysisConfig field names. A missing or
    corrupt file falls back to the base config with a warning; unknown keys
    are logged and ignored. Invalid values still raise ValueError.
    """
    if not os.path.exists(path):
        logger.warning("Config file not found, using defaults: %s", path)
        return base

    try:
        with open(path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except json.JSONDecodeError as e:
        logger.warning("Corrupt config file %s, using defaults: %s", path, e)
        return base

    if not isinstance(data, dict):
        logger.warning("Config file %s is not a JSON object, using defaults", path)
        return base

    known = {f.name for f in fields(AnalysisConfig)}
    overrides = {}
    for key, value in data.items():
        if key not in known:
            logger.warning("Ignoring unknown config key: %s", key)
            continue
        if key in _TUPLE_FIELDS and isinstance(value, list):
            value = tuple(value)
        elif key == 'length_thresholds_deg' and isinstance(value, list):
            value = tuple(tuple(row) for row in value)
        overrides[key] = value

    logger.info("Loaded %d config overrides from %s", len(overrides), path)
    return base.with_overrides(**overrides)
