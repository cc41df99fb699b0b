"""
Shared pytest fixtures for rallynotes tests.
"""

import json
import os
import sys
import tempfile

import pytest

# Add project root and tests directory to path for imports
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
TESTS_DIR = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, PROJECT_ROOT)
sys.path.insert(0, TESTS_DIR)

from fixtures.route_builders import RouteBuilder, straight_route  # noqa: E402


@pytest.fixture
def temp_dir():
    """Temporary directory removed after the test."""
    with tempfile.TemporaryDirectory() as path:
        yield path


@pytest.fixture
def temp_config_file():
    """Create a temporary JSON config file with a few overrides."""
    data = {
        "chicane_distance_m": 60.0,
        "severity_radii_m": [15, 30, 60, 100, 180],
    }
    with tempfile.NamedTemporaryFile(mode='w', suffix='.json', delete=False) as f:
        json.dump(data, f)
        temp_path = f.name
    yield temp_path
    # Cleanup
    if os.path.exists(temp_path):
        os.remove(temp_path)


@pytest.fixture
def straight_2km():
    """2 km straight route heading north."""
    return straight_route(2000.0)


@pytest.fixture
def right_square():
    """500 m straight, 90 degree right at 30 m radius, 500 m straight."""
    return (
        RouteBuilder()
        .straight(500)
        .arc(30, 90, "right")
        .straight(500)
        .points()
    )


@pytest.fixture
def s_bend():
    """Left 70 degrees then right 70 degrees, both 50 m radius."""
    return (
        RouteBuilder()
        .straight(300)
        .arc(50, 70, "left")
        .arc(50, 70, "right")
        .straight(300)
        .points()
    )


@pytest.fixture
def hairpin_then_left():
    """Right hairpin (20 m radius, 170 degrees), 15 m straight, then a 60 degree left at 50 m."""
    return (
        RouteBuilder()
        .straight(300)
        .arc(20, 170, "right")
        .straight(15)
        .arc(50, 60, "left")
        .straight(300)
        .points()
    )


@pytest.fixture
def crest_corner():
    """90 degree right climbing 8 m through the corner."""
    return (
        RouteBuilder()
        .straight(400)
        .arc(30, 90, "right", rise=8.0)
        .straight(400)
        .points()
    )


@pytest.fixture
def tightening_corner():
    """Right hander: 30 degrees at 100 m radius then 60 degrees at 30 m."""
    return (
        RouteBuilder()
        .straight(400)
        .arc(100, 30, "right")
        .arc(30, 60, "right")
        .straight(400)
        .points()
    )
