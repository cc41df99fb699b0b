"""Assemble corner notes into a stage's pace notes, merge chicanes, render callouts."""

import logging
import math
from dataclasses import replace
from typing import List, Optional, Sequence, Tuple

from .analyzer import classify_elevation
from .config import AnalysisConfig, DEFAULT_CONFIG
from .models import (
    ADVICE_BLIND,
    ADVICE_HEAVY_BRAKING,
    Hazard,
    Modifier,
    NoteType,
    PaceNote,
    RoutePoint,
    SecondCorner,
    Severity,
)

logger = logging.getLogger('rallynotes.pacenotes')

# Advice attached to straight-section hazard notes
HAZARD_ADVICE = {
    Hazard.CREST: ADVICE_BLIND,
    Hazard.JUMP: ADVICE_HEAVY_BRAKING,
}


def round_position(position: float, step: float) -> float:
    """Round half-up to the nearest step (145 -> 150 for step 10)."""
    return float(math.floor(position / step + 0.5) * step)


def _union(first: Sequence, second: Sequence) -> tuple:
    """Ordered union, first sequence's items first."""
    merged = list(first)
    for item in second:
        if item not in merged:
            merged.append(item)
    return tuple(merged)


class NoteAssembler:
    """Add start/finish notes, straight hazards, rounding and note spacing."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG):
        self.config = config

    def assemble(
        self,
        corner_notes: Sequence[PaceNote],
        total_distance: float,
        points: Optional[Sequence[RoutePoint]] = None,
        corner_spans: Sequence[Tuple[float, float]] = (),
    ) -> List[PaceNote]:
        """
        Build the ordered note list for a route.

        Args:
            corner_notes: Analyzed corner notes, any order
            total_distance: Route length in metres (Finish position)
            points: Resampled points, used for straight-section hazards
            corner_spans: (start, end) distances of each corner

        Returns:
            Notes from Start to Finish with rounded positions and
            distance_to_next filled in
        """
        cfg = self.config
        corners = sorted(corner_notes, key=lambda n: n.position)

        notes: List[PaceNote] = []
        if corners and corners[0].position <= cfg.start_merge_distance_m:
            notes.append(replace(corners[0], position=0.0))
            corners = corners[1:]
        else:
            notes.append(PaceNote(
                position=0.0,
                note_type=NoteType.STRAIGHT,
                severity=Severity.numeric(6),
            ))

        body = list(corners)
        if cfg.straight_hazards and points:
            body.extend(self.straight_hazards(points, corner_spans))
        body.sort(key=lambda n: n.position)
        notes.extend(body)

        finish_at = max(total_distance, notes[-1].position)
        notes.append(PaceNote(
            position=finish_at,
            note_type=NoteType.FINISH,
            severity=Severity.finish(),
        ))

        rounded = [
            replace(n, position=round_position(n.position, cfg.position_rounding_m))
            for n in notes
        ]
        return self._link(rounded)

    def straight_hazards(
        self,
        points: Sequence[RoutePoint],
        corner_spans: Sequence[Tuple[float, float]] = (),
    ) -> List[PaceNote]:
        """
        ADVISORY notes for crests, dips and jumps on the road between corners.

        The route is cut into hazard_window_m windows; windows touching a
        corner are skipped. A run of windows with the same hazard gives a
        single note at the first window.
        """
        if all(p.elevation is None or p.elevation == 0 for p in points):
            return []

        width = self.config.hazard_window_m
        total = points[-1].distance
        notes: List[PaceNote] = []
        previous: Optional[Hazard] = None
        start = 0.0
        i = 0

        while start < total:
            stop = start + width
            if any(s < stop and e >= start for s, e in corner_spans):
                previous = None
                start = stop
                continue

            while i < len(points) and points[i].distance < start:
                i += 1
            window = []
            j = i
            while j < len(points) and points[j].distance < stop:
                window.append(points[j])
                j += 1

            hazard = None
            if len(window) >= 3:
                hazard = classify_elevation(
                    [p.distance for p in window],
                    [p.elevation if p.elevation is not None else 0.0 for p in window],
                    self.config,
                    use_slope=False,
                )
            if hazard is not None and hazard is not previous:
                advice = HAZARD_ADVICE.get(hazard)
                notes.append(PaceNote(
                    position=window[0].distance,
                    note_type=NoteType.ADVISORY,
                    hazards=(hazard,),
                    advisories=(advice,) if advice else (),
                ))
            previous = hazard
            start = stop

        if notes:
            logger.debug("Found %d straight-section hazards", len(notes))
        return notes

    @staticmethod
    def _link(notes: List[PaceNote]) -> List[PaceNote]:
        """Fill distance_to_next from each note to the following one."""
        linked = []
        for i, note in enumerate(notes):
            if i + 1 < len(notes):
                gap = notes[i + 1].position - note.position
            else:
                gap = None
            linked.append(replace(note, distance_to_next=gap))
        return linked


class ChicaneMerger:
    """Combine close corner pairs into "A into B" callouts."""

    def __init__(self, config: AnalysisConfig = DEFAULT_CONFIG):
        self.config = config

    def can_merge(self, first: PaceNote, second: PaceNote) -> bool:
        cfg = self.config
        if not (first.is_corner and second.is_corner):
            return False
        if first.direction is None or second.direction is None:
            return False
        a, b = first.numeric_severity, second.numeric_severity
        if a is None or b is None or a == 1 or b == 1:
            return False  # Hairpins always get their own call
        if abs(a - b) > cfg.chicane_max_severity_gap:
            return False
        return second.position - first.position <= cfg.chicane_distance_m

    def merge(self, notes: Sequence[PaceNote]) -> List[PaceNote]:
        """
        Merge close corner pairs.

        The first (Start role) and last (Finish) notes never take part.
        A merged note absorbs exactly one following note.
        """
        notes = list(notes)
        if not self.config.chicane_merge_enabled or len(notes) < 4:
            return notes

        last = len(notes) - 1
        merged = [notes[0]]
        i = 1
        while i < last:
            current = notes[i]
            if i + 1 < last and self.can_merge(current, notes[i + 1]):
                merged.append(self._combine(current, notes[i + 1], notes[i + 2]))
                i += 2
            else:
                merged.append(current)
                i += 1
        merged.append(notes[last])

        count = len(notes) - len(merged)
        if count:
            logger.debug("Merged %d corner pairs", count)
        return merged

    @staticmethod
    def _combine(first: PaceNote, second: PaceNote, following: PaceNote) -> PaceNote:
        return replace(
            first,
            hazards=_union(first.hazards, second.hazards),
            advisories=_union(first.advisories, second.advisories),
            second=SecondCorner(
                position=second.position,
                direction=second.direction,
                severity=second.severity,
                modifiers=second.modifiers,
            ),
            distance_to_next=following.position - first.position,
        )


def _corner_words(direction, severity: Severity, modifiers: Sequence[Modifier]) -> str:
    if severity.is_special:
        words = [severity.label.value, direction.title]
    else:
        words = [direction.title, str(severity.value)]
    words.extend(str(m) for m in modifiers)
    return " ".join(words)


def format_callout(note: PaceNote) -> str:
    """
    Callout text for a note.

    "Start", "Finish", "Crest", "Hairpin Right", "Right 4 Long tightens to 2",
    and for merged notes "Right 4 into Left 6".
    """
    if note.note_type is NoteType.FINISH:
        return "Finish"
    if note.note_type is NoteType.STRAIGHT:
        return "Start"
    if note.note_type is NoteType.ADVISORY:
        return " ".join(h.value for h in note.hazards)

    text = _corner_words(note.direction, note.severity, note.modifiers)
    if note.second is not None:
        second = note.second
        text += " into " + _corner_words(second.direction, second.severity, second.modifiers)
    return text


def format_note_line(note: PaceNote) -> str:
    """Stage-sheet line: "<pos>m: <callout> [hazards] (advice)"."""
    line = f"{int(round(note.position))}m: {format_callout(note)}"
    if note.hazards and note.note_type is not NoteType.ADVISORY:
        line += " [" + ", ".join(h.value for h in note.hazards) + "]"
    if note.advisories:
        line += " (" + ", ".join(note.advisories) + ")"
    return line
