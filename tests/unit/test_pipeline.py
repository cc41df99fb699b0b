"""End-to-end tests for rallynotes/pipeline.py on synthetic stages."""

import pytest

from rallynotes.config import AnalysisConfig
from rallynotes.models import Direction, Hazard, NoteType, SeverityLabel
from rallynotes.pacenotes import format_note_line
from rallynotes.pipeline import PaceNotePipeline, generate_pace_notes

from fixtures.route_builders import RouteBuilder, straight_route


def corners(notes):
    return [n for n in notes if n.is_corner]


class TestStraightRoute:
    """A route with no corners."""

    @pytest.mark.unit
    def test_start_and_finish_only(self, straight_2km):
        """2 km straight is exactly Start and Finish."""
        notes = generate_pace_notes(straight_2km)

        assert [n.note_type for n in notes] == [NoteType.STRAIGHT, NoteType.FINISH]
        assert notes[0].position == 0
        assert notes[0].distance_to_next == 2000
        assert notes[1].position == 2000

    @pytest.mark.unit
    def test_total_distance_override(self, straight_2km):
        """The provider's total distance places Finish."""
        notes = generate_pace_notes(straight_2km, total_distance=2104.0)
        assert notes[-1].position == 2100


class TestShortRoutes:
    """Routes too short to analyze."""

    @pytest.mark.unit
    def test_no_points(self):
        """No points, no notes."""
        assert generate_pace_notes([]) == []

    @pytest.mark.unit
    def test_single_point(self):
        """One point, no notes."""
        assert generate_pace_notes(straight_route(0)) == []

    @pytest.mark.unit
    def test_too_short(self):
        """A 20 m route has no notes."""
        assert generate_pace_notes(straight_route(20, step=10)) == []

    @pytest.mark.unit
    def test_generator_input(self, straight_2km):
        """Any iterable of points is accepted."""
        notes = generate_pace_notes(p for p in straight_2km)
        assert len(notes) == 2


class TestCornerScenarios:
    """Known corners give the expected notes."""

    @pytest.mark.unit
    def test_ninety_right(self, right_square):
        """A 90 degree right at 30 m radius after 500 m."""
        notes = generate_pace_notes(right_square)
        found = corners(notes)

        assert len(found) == 1
        note = found[0]
        assert abs(note.position - 500) <= 30
        assert note.direction is Direction.RIGHT
        assert note.numeric_severity == 2 or note.severity.label is SeverityLabel.SQUARE
        assert notes[0].note_type is NoteType.STRAIGHT
        assert notes[-1].note_type is NoteType.FINISH

    @pytest.mark.unit
    def test_s_bend_split(self, s_bend):
        """Left into right without a straight is two corners."""
        found = corners(generate_pace_notes(s_bend))

        assert [n.direction for n in found] == [Direction.LEFT, Direction.RIGHT]
        for note in found:
            assert not any(m.is_radius_change for m in note.modifiers)
            assert note.second is None

    @pytest.mark.unit
    def test_hairpin_not_merged(self, hairpin_then_left):
        """A 20 m hairpin is a 1 and keeps its own callout."""
        found = corners(generate_pace_notes(hairpin_then_left))

        assert len(found) == 2
        hairpin, left = found
        assert hairpin.direction is Direction.RIGHT
        assert hairpin.numeric_severity == 1
        assert hairpin.severity.label is SeverityLabel.HAIRPIN
        assert "Caution" in hairpin.advisories
        assert left.direction is Direction.LEFT
        assert left.numeric_severity == 3
        assert hairpin.second is None and left.second is None

    @pytest.mark.unit
    @pytest.mark.parametrize("radius,angle", [
        (20, 60),
        (15, 60),
        (20, 45),
        (30, 90),
        (50, 70),
    ])
    def test_s_bend_constant_radius(self, radius, angle):
        """Constant-radius S-bends never tighten or widen, merged or not."""
        route = (
            RouteBuilder()
            .straight(300)
            .arc(radius, angle, "left")
            .arc(radius, angle, "right")
            .straight(300)
            .points()
        )
        found = corners(generate_pace_notes(route))

        directions = []
        for note in found:
            assert not any(m.is_radius_change for m in note.modifiers)
            directions.append(note.direction)
            if note.second is not None:
                assert not any(m.is_radius_change for m in note.second.modifiers)
                directions.append(note.second.direction)
        assert directions == [Direction.LEFT, Direction.RIGHT]

    @pytest.mark.unit
    @pytest.mark.parametrize("radius,angle,expected", [
        (19, 170, 1),
        (20, 170, 1),
        (38, 90, 2),
        (60, 90, 3),
        (115, 60, 4),
        (190, 60, 5),
    ])
    def test_arc_severity(self, radius, angle, expected):
        """A single arc is classed by its own radius."""
        route = (
            RouteBuilder()
            .straight(300)
            .arc(radius, angle, "right")
            .straight(300)
            .points()
        )
        found = corners(generate_pace_notes(route))

        assert len(found) == 1
        assert found[0].numeric_severity == expected
        assert not any(m.is_radius_change for m in found[0].modifiers)

    @pytest.mark.unit
    def test_crest_in_corner(self, crest_corner):
        """Climbing through a corner adds Crest and Blind."""
        found = corners(generate_pace_notes(crest_corner))
        assert len(found) == 1
        assert Hazard.CREST in found[0].hazards
        assert "Blind" in found[0].advisories

    @pytest.mark.unit
    def test_positions_ordered_and_rounded(self, s_bend):
        """Positions are multiples of 10 and never decrease."""
        notes = generate_pace_notes(s_bend)
        positions = [n.position for n in notes]
        assert positions == sorted(positions)
        assert all(p % 10 == 0 for p in positions)
        for a, b in zip(notes, notes[1:]):
            if not a.is_merged:
                assert a.distance_to_next == b.position - a.position

    @pytest.mark.unit
    def test_deterministic(self, hairpin_then_left):
        """Same input, same notes."""
        first = generate_pace_notes(hairpin_then_left)
        second = generate_pace_notes(hairpin_then_left)
        assert first == second

    @pytest.mark.unit
    def test_stage_sheet(self, right_square):
        """Every note renders a stage-sheet line."""
        lines = [format_note_line(n) for n in generate_pace_notes(right_square)]
        assert lines[0] == "0m: Start"
        assert lines[-1].endswith("m: Finish")
        assert "Right" in lines[1]


class TestPipelineConfig:
    """Config flows through every stage."""

    @pytest.mark.unit
    def test_custom_step(self, right_square):
        """A coarser step still finds the corner."""
        pipeline = PaceNotePipeline(AnalysisConfig(resample_step_m=5.0))
        assert len(corners(pipeline.run(right_square))) == 1

    @pytest.mark.unit
    def test_default_config(self):
        """No config means defaults."""
        assert PaceNotePipeline().config == AnalysisConfig()
