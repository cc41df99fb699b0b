"""Tests for rallynotes/models.py - severity, modifiers and pace notes."""

import dataclasses

import pytest

from rallynotes.models import (
    Direction,
    Hazard,
    Modifier,
    ModifierKind,
    NoteType,
    PaceNote,
    SecondCorner,
    Severity,
    SeverityLabel,
)


class TestSeverity:
    """Test severity variants and their invariants."""

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [1, 2, 3, 4, 5, 6])
    def test_numeric(self, value):
        """Numeric severities 1-6 are valid."""
        severity = Severity.numeric(value)
        assert severity.value == value
        assert str(severity) == str(value)
        assert severity.is_special is False

    @pytest.mark.unit
    @pytest.mark.parametrize("value", [0, 7, None])
    def test_numeric_out_of_range(self, value):
        """Anything outside 1-6 is rejected."""
        with pytest.raises(ValueError):
            Severity(value=value)

    @pytest.mark.unit
    @pytest.mark.parametrize("label,loosest", [
        (SeverityLabel.HAIRPIN, 2),
        (SeverityLabel.SQUARE, 3),
        (SeverityLabel.ACUTE, 3),
    ])
    def test_label_limits(self, label, loosest):
        """A label can alias its loosest class but nothing looser."""
        assert Severity.special(label, loosest).label is label
        with pytest.raises(ValueError):
            Severity.special(label, loosest + 1)

    @pytest.mark.unit
    def test_special_text(self):
        """Labelled severity reads as the label."""
        assert str(Severity.special(SeverityLabel.HAIRPIN, 1)) == "Hairpin"
        assert Severity.special(SeverityLabel.SQUARE, 3).is_special is True

    @pytest.mark.unit
    def test_finish(self):
        """Finish has no numeric class."""
        finish = Severity.finish()
        assert finish.value is None
        assert finish.is_special is False
        with pytest.raises(ValueError):
            Severity(value=3, label=SeverityLabel.FINISH)

    @pytest.mark.unit
    def test_frozen(self):
        """Severity is immutable."""
        with pytest.raises(dataclasses.FrozenInstanceError):
            Severity.numeric(3).value = 4


class TestModifier:
    """Test modifier variants."""

    @pytest.mark.unit
    def test_radius_change_needs_target(self):
        """Tightens/widens must say to what."""
        with pytest.raises(ValueError):
            Modifier(ModifierKind.TIGHTENS)
        assert str(Modifier(ModifierKind.TIGHTENS, 2)) == "tightens to 2"
        assert Modifier(ModifierKind.WIDENS, 5).is_radius_change is True

    @pytest.mark.unit
    def test_length_takes_no_target(self):
        """Long/Short stand alone."""
        with pytest.raises(ValueError):
            Modifier(ModifierKind.LONG, 3)
        assert str(Modifier(ModifierKind.SHORT)) == "Short"
        assert Modifier(ModifierKind.LONG).is_radius_change is False


class TestPaceNote:
    """Test PaceNote helpers."""

    @pytest.mark.unit
    def test_corner_flags(self):
        """Turns and special turns are corners."""
        turn = PaceNote(100, NoteType.TURN, Direction.LEFT, Severity.numeric(4))
        advisory = PaceNote(200, NoteType.ADVISORY, hazards=(Hazard.CREST,))
        assert turn.is_corner is True
        assert advisory.is_corner is False
        assert advisory.numeric_severity is None
        assert advisory.severity_text == ""

    @pytest.mark.unit
    def test_merged_severity_text(self):
        """A merged note reads "A into B"."""
        note = PaceNote(
            100, NoteType.TURN, Direction.RIGHT, Severity.numeric(4),
            second=SecondCorner(130, Direction.LEFT, Severity.numeric(6)),
        )
        assert note.is_merged is True
        assert note.severity_text == "4 into 6"

    @pytest.mark.unit
    def test_direction_title(self):
        """Directions print capitalised."""
        assert Direction.LEFT.title == "Left"
        assert Direction.RIGHT.title == "Right"
