"""
Multi-scale curvature profiling of a resampled route.

Each point gets the tightest circumradius found over several window sizes
and the local travel bearing. Small windows resolve sharp apexes, large
windows ride over GPS noise on gentle bends; taking the minimum keeps a
tight inner curve from being averaged away by a single wide window.
"""

import logging
from typing import List

import numpy as np

from .config import AnalysisConfig, DEFAULT_CONFIG
from .geometry import circumradii, to_local_xy
from .models import CurvatureSample, RoutePoint

logger = logging.getLogger('rallynotes.curvature')


class CurvatureProfiler:
    """Estimate local turning radius and bearing along a resampled route."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG):
        self.config = config

    def profile(self, points: List[RoutePoint]) -> List[CurvatureSample]:
        """
        Build one CurvatureSample per point.

        Args:
            points: Uniformly resampled route points

        Returns:
            Samples with radius in metres (straight sentinel where no window
            produced a valid circle) and bearing in degrees (-180, 180]
        """
        n = len(points)
        if n == 0:
            return []

        x, y = to_local_xy([p.lat for p in points], [p.lon for p in points])
        radii = self._min_radii(x, y)
        bearings = self._bearings(x, y)

        samples = [
            CurvatureSample(index=i, radius=float(radii[i]), bearing=float(bearings[i]))
            for i in range(n)
        ]

        curved = int(np.sum(radii < self.config.curved_radius_m))
        logger.debug("Curvature profile: %d samples, %d curved", n, curved)
        return samples

    def _min_radii(self, x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Tightest valid circumradius over all window offsets."""
        sentinel = self.config.straight_radius_m
        best = np.full(len(x), sentinel)

        for offset in self.config.window_offsets():
            radii = circumradii(x, y, offset, self.config.degenerate_area_m2)
            valid = ~np.isnan(radii)
            best[valid] = np.minimum(best[valid], radii[valid])

        return np.minimum(best, sentinel)

    @staticmethod
    def _bearings(x: np.ndarray, y: np.ndarray) -> np.ndarray:
        """Bearing from each point toward the next, last point reuses the previous."""
        n = len(x)
        if n < 2:
            return np.zeros(n)

        dx = np.diff(x)
        dy = np.diff(y)
        forward = np.degrees(np.arctan2(dx, dy))
        forward[forward == -180.0] = 180.0
        return np.append(forward, forward[-1])
