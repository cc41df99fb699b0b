"""
Data models for route analysis and pace notes.

Contains dataclasses for route points, curvature samples, corner
candidates and the pace notes handed to display/export code.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class Direction(Enum):
    LEFT = "left"
    RIGHT = "right"

    @property
    def title(self) -> str:
        return self.value.capitalize()


class NoteType(Enum):
    TURN = "turn"
    SPECIAL_TURN = "special_turn"
    STRAIGHT = "straight"
    ADVISORY = "advisory"
    FINISH = "finish"


class SeverityLabel(Enum):
    HAIRPIN = "Hairpin"
    SQUARE = "Square"
    ACUTE = "Acute"
    FINISH = "FINISH"


class Hazard(Enum):
    CREST = "Crest"
    DIP = "Dip"
    JUMP = "Jump"


class ModifierKind(Enum):
    LONG = "Long"
    SHORT = "Short"
    TIGHTENS = "tightens"
    WIDENS = "widens"


# Loosest numeric class each special label may alias
LABEL_MAX_NUMERIC = {
    SeverityLabel.HAIRPIN: 2,
    SeverityLabel.SQUARE: 3,
    SeverityLabel.ACUTE: 3,
}

ADVICE_CAUTION = "Caution"
ADVICE_HEAVY_BRAKING = "Heavy Braking"
ADVICE_BLIND = "Blind"


@dataclass(frozen=True)
class RoutePoint:
    """A route point with cumulative distance from the route start."""
    lat: float
    lon: float
    elevation: Optional[float] = None
    distance: float = 0.0         # Metres from route start


@dataclass(frozen=True)
class CurvatureSample:
    """Local curvature estimate at one resampled point."""
    index: int
    radius: float                 # Metres, STRAIGHT_RADIUS_M if straight
    bearing: float                # Travel direction, degrees (-180, 180]


@dataclass(frozen=True)
class CornerCandidate:
    """
    A corner found by one of the detectors, before analysis.

    Attributes:
        start_index: First resampled point of the detection window.
        end_index: Last resampled point of the detection window.
        position: Distance in metres of the turn-in point.
        total_angle: Absolute bearing change through the corner (degrees).
        direction: LEFT or RIGHT.
        min_radius: Tightest radius seen while the road was turning.
        avg_radius: Mean radius while the road was turning.
        source: "sustained" or "instant".
    """
    start_index: int
    end_index: int
    position: float
    total_angle: float
    direction: Direction
    min_radius: float
    avg_radius: float
    source: str = "sustained"


@dataclass(frozen=True)
class Severity:
    """
    McRae severity: a numeric class 1-6, optionally aliased by a label.

    Hairpin may only alias classes 1-2, Square and Acute classes 1-3, so a
    named turn is never looser than a plain number. Finish carries no
    numeric class.
    """
    value: Optional[int]
    label: Optional[SeverityLabel] = None

    def __post_init__(self):
        if self.label is SeverityLabel.FINISH:
            if self.value is not None:
                raise ValueError("Finish severity has no numeric class")
            return
        if self.value is None or not 1 <= self.value <= 6:
            raise ValueError(f"Numeric severity must be 1-6, got {self.value!r}")
        if self.label is not None and self.value > LABEL_MAX_NUMERIC[self.label]:
            raise ValueError(
                f"{self.label.value} requires severity <= "
                f"{LABEL_MAX_NUMERIC[self.label]}, got {self.value}"
            )

    @classmethod
    def numeric(cls, value: int) -> 'Severity':
        return cls(value=value)

    @classmethod
    def special(cls, label: SeverityLabel, value: int) -> 'Severity':
        return cls(value=value, label=label)

    @classmethod
    def finish(cls) -> 'Severity':
        return cls(value=None, label=SeverityLabel.FINISH)

    @property
    def is_special(self) -> bool:
        return self.label is not None and self.label is not SeverityLabel.FINISH

    def __str__(self) -> str:
        if self.label is not None:
            return self.label.value
        return str(self.value)


@dataclass(frozen=True)
class Modifier:
    """Length (Long/Short) or radius-change (tightens/widens to N) modifier."""
    kind: ModifierKind
    to_severity: Optional[int] = None

    def __post_init__(self):
        radius_change = self.kind in (ModifierKind.TIGHTENS, ModifierKind.WIDENS)
        if radius_change and self.to_severity is None:
            raise ValueError(f"{self.kind.value} needs a target severity")
        if not radius_change and self.to_severity is not None:
            raise ValueError(f"{self.kind.value} takes no target severity")

    @property
    def is_radius_change(self) -> bool:
        return self.to_severity is not None

    def __str__(self) -> str:
        if self.to_severity is not None:
            return f"{self.kind.value} to {self.to_severity}"
        return self.kind.value


@dataclass(frozen=True)
class SecondCorner:
    """The absorbed corner of a merged (chicane) note, kept for display."""
    position: float
    direction: Direction
    severity: Severity
    modifiers: Tuple[Modifier, ...] = ()


@dataclass(frozen=True)
class PaceNote:
    """
    A single pace note callout.

    Attributes:
        position: Distance from route start in metres (rounded once assembled).
        note_type: TURN, SPECIAL_TURN, STRAIGHT (start), ADVISORY or FINISH.
        direction: Corner direction; None for straights, advisories, finish.
        severity: McRae class and optional label; None only for advisories.
        modifiers: Length and radius-change modifiers, in callout order.
        hazards: Elevation hazards on this stretch.
        advisories: Advice strings ("Caution", "Blind", "Heavy Braking").
        distance_to_next: Metres to the next note, None for the last note.
        second: The absorbed second corner when this is a merged note.
    """
    position: float
    note_type: NoteType
    direction: Optional[Direction] = None
    severity: Optional[Severity] = None
    modifiers: Tuple[Modifier, ...] = ()
    hazards: Tuple[Hazard, ...] = ()
    advisories: Tuple[str, ...] = ()
    distance_to_next: Optional[float] = None
    second: Optional[SecondCorner] = None

    @property
    def is_corner(self) -> bool:
        return self.note_type in (NoteType.TURN, NoteType.SPECIAL_TURN)

    @property
    def is_merged(self) -> bool:
        return self.second is not None

    @property
    def numeric_severity(self) -> Optional[int]:
        return self.severity.value if self.severity is not None else None

    @property
    def severity_text(self) -> str:
        """Severity as shown to the driver, "A into B" for merged notes."""
        if self.severity is None:
            return ""
        if self.second is not None:
            return f"{self.severity} into {self.second.severity}"
        return str(self.severity)
