"""End-to-end pace note generation for a route."""

import logging
from typing import Any, Iterable, List, Optional

from .analyzer import CornerAnalyzer
from .config import AnalysisConfig, DEFAULT_CONFIG
from .corners import CornerSegmenter, InstantTurnDetector, bearing_deltas, deduplicate_candidates
from .curvature import CurvatureProfiler
from .models import PaceNote
from .pacenotes import ChicaneMerger, NoteAssembler
from .route import resample_route

logger = logging.getLogger('rallynotes.pipeline')


class PaceNotePipeline:
    """
    Route points in, ordered pace notes out.

    Stages: resample, curvature profile, corner detection (sustained and
    instant), deduplication, corner analysis, assembly, chicane merge.
    """

    def __init__(self, config: Optional[AnalysisConfig] = None):
        self.config = config or DEFAULT_CONFIG
        self.profiler = CurvatureProfiler(self.config)
        self.segmenter = CornerSegmenter(self.config)
        self.instant = InstantTurnDetector(self.config)
        self.analyzer = CornerAnalyzer(self.config)
        self.assembler = NoteAssembler(self.config)
        self.merger = ChicaneMerger(self.config)

    def run(
        self,
        points: Iterable[Any],
        total_distance: Optional[float] = None,
    ) -> List[PaceNote]:
        """
        Generate pace notes.

        Args:
            points: Raw route points (RoutePoint, tuples or .lat/.lon objects)
            total_distance: Route length for the Finish note, defaults to the
                measured length

        Returns:
            Pace notes from Start to Finish, or [] for a route too short
            to analyze
        """
        raw = list(points)
        if len(raw) < 2:
            logger.debug("Route has %d points, no notes", len(raw))
            return []

        resampled = resample_route(raw, self.config)
        if not resampled:
            return []

        samples = self.profiler.profile(resampled)
        sustained = self.segmenter.segment(resampled, samples)
        instant = self.instant.detect(resampled, samples)
        candidates = deduplicate_candidates(sustained + instant, self.config)
        logger.debug(
            "Corners: %d sustained, %d instant, %d after dedup",
            len(sustained), len(instant), len(candidates),
        )

        deltas = bearing_deltas(samples)
        corner_notes = [
            self.analyzer.analyze(c, resampled, samples, deltas) for c in candidates
        ]
        spans = [
            (resampled[c.start_index].distance, resampled[c.end_index].distance)
            for c in candidates
        ]

        if total_distance is None:
            total_distance = resampled[-1].distance

        notes = self.assembler.assemble(corner_notes, total_distance, resampled, spans)
        notes = self.merger.merge(notes)

        logger.info(
            "Generated %d pace notes for %.0fm route", len(notes), total_distance
        )
        return notes


def generate_pace_notes(
    points: Iterable[Any],
    total_distance: Optional[float] = None,
    config: Optional[AnalysisConfig] = None,
) -> List[PaceNote]:
    """Generate pace notes for a route with the given (or default) tuning."""
    return PaceNotePipeline(config).run(points, total_distance)
