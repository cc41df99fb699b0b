"""Rally pace note generation from GPS routes."""

from .config import AnalysisConfig, DEFAULT_CONFIG, load_config
from .models import (
    CornerCandidate,
    CurvatureSample,
    Direction,
    Hazard,
    Modifier,
    ModifierKind,
    NoteType,
    PaceNote,
    RoutePoint,
    SecondCorner,
    Severity,
    SeverityLabel,
)
from .pacenotes import format_callout, format_note_line
from .pipeline import PaceNotePipeline, generate_pace_notes

__version__ = "0.1.0"
